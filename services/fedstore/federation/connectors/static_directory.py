"""Directory backed by entries in the configuration file.

Useful for development and for tests that need a real DirectoryClient.
"""

from fedstore.config import DirectoryConfig
from fedstore.federation.directory import DirectoryClient, DirectoryEntry
from fedstore.federation.exceptions import DirectoryUserNotFoundError


class StaticDirectoryClient(DirectoryClient):
    """Serves directory entries from DirectoryConfig.users."""

    def __init__(self, config: DirectoryConfig) -> None:
        self._users = config.users

    @property
    def directory_type(self) -> str:
        return "static"

    async def lookup(self, username: str) -> DirectoryEntry:
        user = self._users.get(username)
        if user is None:
            raise DirectoryUserNotFoundError(username)
        return DirectoryEntry(
            username=username,
            attributes=dict(user.attributes),
            groups=list(user.groups),
        )
