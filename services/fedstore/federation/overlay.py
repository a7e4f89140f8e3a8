"""Read-only view of a federated user.

Callers outside the federation provider never get the raw User row for a
federated identity. They get this wrapper, which forwards reads and rejects
writes to anything the external directory is authoritative for. Rejection
raises ReadOnlyAttributeError; nothing is silently dropped.
"""

import uuid
from datetime import datetime

from fedstore.db.models import User
from fedstore.federation.exceptions import ReadOnlyAttributeError

# Fields owned by the external directory (or by the provider link itself)
READ_ONLY_ATTRIBUTES = frozenset(
    {"username", "email", "first_name", "last_name", "groups", "federation_link"}
)


class ReadOnlyUserOverlay:
    """Thin forwarding wrapper around a validated local user record."""

    __slots__ = ("_user",)

    def __init__(self, user: User) -> None:
        object.__setattr__(self, "_user", user)

    def __setattr__(self, name: str, value: object) -> None:
        if name in READ_ONLY_ATTRIBUTES:
            raise ReadOnlyAttributeError(name)
        if name == "enabled":
            self._user.enabled = bool(value)
            return
        raise AttributeError(f"'{type(self).__name__}' object has no attribute '{name}'")

    def __repr__(self) -> str:
        return (
            f"ReadOnlyUserOverlay(id={self.id}, realm_id={self.realm_id!r}, "
            f"username={self.username!r}, federation_link={self.federation_link!r})"
        )

    def __eq__(self, other: object) -> bool:
        if isinstance(other, ReadOnlyUserOverlay):
            return self.id == other.id
        return NotImplemented

    def __hash__(self) -> int:
        return hash(self.id)

    # --- Reads ---

    @property
    def id(self) -> uuid.UUID:
        return self._user.id

    @property
    def realm_id(self) -> str:
        return self._user.realm_id

    @property
    def username(self) -> str:
        return self._user.username

    @property
    def email(self) -> str:
        return self._user.email

    @property
    def first_name(self) -> str:
        return self._user.first_name

    @property
    def last_name(self) -> str:
        return self._user.last_name

    @property
    def enabled(self) -> bool:
        return self._user.enabled

    @property
    def federation_link(self) -> str | None:
        return self._user.federation_link

    @property
    def groups(self) -> list[str]:
        """Sorted paths of the user's groups (copies, not the ORM collection)."""
        return sorted(group.path for group in self._user.groups)

    @property
    def created_at(self) -> datetime:
        return self._user.created_at

    def is_member_of(self, path: str) -> bool:
        return any(group.path == path for group in self._user.groups)

    # --- Writes ---

    def join_group(self, path: str) -> None:
        raise ReadOnlyAttributeError("groups")

    def leave_group(self, path: str) -> None:
        raise ReadOnlyAttributeError("groups")
