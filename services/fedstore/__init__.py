"""Federated user storage backed by an external directory and authenticator."""

__version__ = "0.1.0"
