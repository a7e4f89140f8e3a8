"""External authenticator interface."""

from abc import ABC, abstractmethod


class Authenticator(ABC):
    """Validates a username/secret pair against the external authority."""

    @property
    @abstractmethod
    def authenticator_type(self) -> str:
        """Backend type (e.g. 'pam')."""

    @abstractmethod
    async def authenticate(self, username: str, secret: str) -> bool:
        """Return True iff the authority accepts the secret.

        A rejected secret is False. Failures to reach a verdict raise
        AuthenticatorError.
        """
