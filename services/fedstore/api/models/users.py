"""User-related Pydantic models."""

from datetime import datetime
from uuid import UUID

from .common import FedstoreBaseModel


class UserResponse(FedstoreBaseModel):
    """Federated user view, built from a ReadOnlyUserOverlay."""

    id: UUID
    realm_id: str
    username: str
    email: str
    first_name: str
    last_name: str
    enabled: bool
    federation_link: str | None
    groups: list[str]
    created_at: datetime
