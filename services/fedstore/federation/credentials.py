"""Credential types accepted by federation providers."""

from dataclasses import dataclass, field

PASSWORD = "password"

SUPPORTED_CREDENTIAL_TYPES = frozenset({PASSWORD})


@dataclass(frozen=True)
class CredentialInput:
    """A single authentication attempt. The secret is never persisted."""

    type: str
    value: str = field(repr=False)

    @classmethod
    def password(cls, value: str) -> "CredentialInput":
        return cls(type=PASSWORD, value=value)


def supports_credential_type(credential_type: str) -> bool:
    """Only passwords are validated against the external authenticator."""
    return credential_type in SUPPORTED_CREDENTIAL_TYPES
