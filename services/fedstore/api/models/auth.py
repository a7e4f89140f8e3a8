"""Authentication-related Pydantic models."""

from pydantic import Field

from .common import FedstoreBaseModel
from .users import UserResponse


class ProviderInfo(FedstoreBaseModel):
    """A configured federation provider."""

    id: str
    name: str
    directory: str
    authenticator: str


class ProvidersResponse(FedstoreBaseModel):
    """Response for GET /auth/providers."""

    providers: list[ProviderInfo]
    default_provider: str | None = None


class LoginRequest(FedstoreBaseModel):
    """Password login against a federation provider."""

    realm: str = Field(..., min_length=1, max_length=255)
    username: str = Field(..., min_length=1, max_length=255)
    password: str = Field(..., min_length=1)
    provider: str | None = Field(
        default=None,
        description="Provider id; the default provider is used when omitted",
    )


class LoginResponse(FedstoreBaseModel):
    """Successful login."""

    user: UserResponse
    provider: str
