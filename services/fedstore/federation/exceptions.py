"""Federation error hierarchy.

Ordinary negative outcomes (unknown user, rejected password, identity
drift) never leave FederationProvider as exceptions; these types are the
contract between the provider and its collaborators.
"""


class FederationError(Exception):
    """Base exception for all federation operations."""


class ExternalLookupError(FederationError):
    """Directory lookup did not produce an identity.

    Attributes:
        username: Username that was looked up
    """

    def __init__(self, username: str, message: str):
        self.username = username
        super().__init__(f"{username}: {message}")


class DirectoryUserNotFoundError(ExternalLookupError):
    """The username does not exist in the external directory."""

    def __init__(self, username: str):
        super().__init__(username, "not found in directory")


class DirectoryUnavailableError(ExternalLookupError):
    """Directory unreachable, timed out, or answered with a malformed payload."""


class AuthenticatorError(FederationError):
    """Base exception for authenticator failures (not password mismatches)."""


class AuthenticatorUnavailableError(AuthenticatorError):
    """Authenticator unreachable or unusable on this host."""


class ReadOnlyAttributeError(FederationError):
    """Attempt to write an externally-sourced attribute through an overlay.

    Attributes:
        attribute: Name of the rejected attribute
    """

    def __init__(self, attribute: str):
        self.attribute = attribute
        super().__init__(f"'{attribute}' is managed by the external directory and is read-only")


class ProviderConfigurationError(FederationError):
    """A federation provider cannot be built from its configuration."""
