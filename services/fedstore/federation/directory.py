"""External directory client interface.

A directory client resolves a username to the canonical attribute map and
group names held by the external identity authority. Implementations live in
fedstore.federation.connectors.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field


@dataclass(frozen=True)
class DirectoryEntry:
    """Canonical identity as reported by the external directory.

    Attribute values are kept as the directory sent them: a string, a list
    of strings for multi-valued attributes, or None.
    """

    username: str
    attributes: dict[str, str | list[str] | None] = field(default_factory=dict)
    groups: list[str] = field(default_factory=list)


class DirectoryClient(ABC):
    """Abstract interface for external directory lookups."""

    @property
    @abstractmethod
    def directory_type(self) -> str:
        """Backend type (e.g. 'http', 'static')."""

    @abstractmethod
    async def lookup(self, username: str) -> DirectoryEntry:
        """Return the directory entry for username.

        Raises:
            DirectoryUserNotFoundError: The username does not exist.
            DirectoryUnavailableError: The directory could not give a definite answer.
        """

    async def close(self) -> None:
        """Release connections. Must be idempotent."""
        return None
