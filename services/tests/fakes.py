"""In-memory collaborators for federation tests."""

import asyncio
import uuid
from collections.abc import Awaitable, Callable

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from fedstore.federation.authenticator import Authenticator
from fedstore.federation.directory import DirectoryClient, DirectoryEntry
from fedstore.federation.exceptions import (
    DirectoryUnavailableError,
    DirectoryUserNotFoundError,
)
from fedstore.services.user_store import UserStore

PROVIDER_ID = "sssd-1"
REALM = "acme"


def make_entry(
    username: str,
    mail: str = "",
    givenname: str = "",
    sn: str = "",
    groups: list[str] | None = None,
) -> DirectoryEntry:
    attributes: dict[str, str | list[str] | None] = {}
    if mail:
        attributes["mail"] = mail
    if givenname:
        attributes["givenname"] = givenname
    if sn:
        attributes["sn"] = sn
    return DirectoryEntry(username=username, attributes=attributes, groups=groups or [])


class FakeDirectory(DirectoryClient):
    """Directory serving a mutable dict of entries.

    script, when non-empty, is consumed first: each item is either the
    entry to return or an exception to raise.
    """

    def __init__(self, entries: dict[str, DirectoryEntry] | None = None) -> None:
        self.entries: dict[str, DirectoryEntry] = dict(entries or {})
        self.script: list[DirectoryEntry | Exception] = []
        self.unavailable = False
        self.before_lookup: Callable[[str], Awaitable[None]] | None = None
        self.lookups: list[str] = []
        self.close_calls = 0
        # 1-based lookup number that blocks until cancelled
        self.stall_at: int | None = None
        self.stalled = asyncio.Event()

    @property
    def directory_type(self) -> str:
        return "fake"

    async def lookup(self, username: str) -> DirectoryEntry:
        self.lookups.append(username)
        if self.stall_at == len(self.lookups):
            self.stalled.set()
            await asyncio.Event().wait()
        if self.before_lookup is not None:
            hook, self.before_lookup = self.before_lookup, None
            await hook(username)
        # Yield so concurrent callers interleave
        await asyncio.sleep(0)
        if self.script:
            item = self.script.pop(0)
            if isinstance(item, Exception):
                raise item
            return item
        if self.unavailable:
            raise DirectoryUnavailableError(username, "connection refused")
        entry = self.entries.get(username)
        if entry is None:
            raise DirectoryUserNotFoundError(username)
        return entry

    async def close(self) -> None:
        self.close_calls += 1


class FakeAuthenticator(Authenticator):
    """Authenticator accepting a fixed password per username."""

    def __init__(self, passwords: dict[str, str] | None = None) -> None:
        self.passwords = dict(passwords or {})
        self.calls: list[str] = []
        self.delay: float = 0.0
        self.error: Exception | None = None

    @property
    def authenticator_type(self) -> str:
        return "fake"

    async def authenticate(self, username: str, secret: str) -> bool:
        self.calls.append(username)
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.error is not None:
            raise self.error
        return self.passwords.get(username) == secret


async def seed_user(
    session_factory: async_sessionmaker[AsyncSession],
    username: str,
    email: str,
    federation_link: str | None = PROVIDER_ID,
    groups: tuple[str, ...] = (),
    realm_id: str = REALM,
) -> uuid.UUID:
    """Commit a local user row directly, bypassing the provider."""
    async with session_factory() as session:
        store = UserStore(session)
        user = await store.add_user(realm_id, username)
        user.email = email
        user.federation_link = federation_link
        for path in groups:
            await store.join_group(user, await store.find_or_create_group(realm_id, path))
        await session.commit()
        return user.id
