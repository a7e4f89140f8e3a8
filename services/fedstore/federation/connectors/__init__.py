"""Collaborator connectors for federation providers.

Builds the directory client and authenticator named in a provider's
configuration.
"""

from fedstore.config import AuthenticatorConfig, DirectoryConfig
from fedstore.federation.authenticator import Authenticator
from fedstore.federation.directory import DirectoryClient
from fedstore.federation.exceptions import ProviderConfigurationError


def build_directory_client(config: DirectoryConfig) -> DirectoryClient:
    """Create the directory client for a provider."""
    from fedstore.federation.connectors.http_directory import HTTPDirectoryClient
    from fedstore.federation.connectors.static_directory import StaticDirectoryClient

    if config.type == "http":
        return HTTPDirectoryClient(config)
    if config.type == "static":
        return StaticDirectoryClient(config)
    raise ProviderConfigurationError(f"Unknown directory type: {config.type}")


def build_authenticator(config: AuthenticatorConfig) -> Authenticator:
    """Create the authenticator for a provider."""
    from fedstore.federation.connectors.pam import PAMAuthenticator

    if config.type == "pam":
        return PAMAuthenticator(config)
    raise ProviderConfigurationError(f"Unknown authenticator type: {config.type}")
