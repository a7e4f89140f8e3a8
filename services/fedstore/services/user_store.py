"""Local user and group storage.

Thin CRUD layer over the users/groups tables, scoped by realm. It works inside
the caller's session and never commits: the federation provider decides when
an import becomes visible.
"""

from typing import Any

from sqlalchemy import select
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.ext.asyncio import AsyncSession

from fedstore.db.models import Group, User, generate_uuid7
from fedstore.logging_config import get_logger

logger = get_logger(__name__)

# Dialects with INSERT ... ON CONFLICT DO NOTHING
_UPSERT_INSERTS: dict[str, Any] = {
    "postgresql": postgresql.insert,
    "sqlite": sqlite.insert,
}


class UserStore:
    """CRUD for user and group records keyed by realm."""

    def __init__(self, db: AsyncSession) -> None:
        self._db = db

    async def get_user_by_username(self, realm_id: str, username: str) -> User | None:
        result = await self._db.execute(
            select(User).where(User.realm_id == realm_id, User.username == username)
        )
        return result.scalar_one_or_none()

    async def add_user(self, realm_id: str, username: str) -> User:
        """Stage a new user row and flush it so unique violations surface here."""
        user = User(realm_id=realm_id, username=username, groups=[])
        self._db.add(user)
        await self._db.flush()
        return user

    async def remove_user(self, realm_id: str, user: User) -> None:
        """Delete a user row and its group memberships."""
        if user.realm_id != realm_id:
            raise ValueError(f"User {user.id} does not belong to realm {realm_id}")
        await self._db.delete(user)
        await self._db.flush()

    async def find_group_by_path(self, realm_id: str, path: str) -> Group | None:
        result = await self._db.execute(
            select(Group).where(Group.realm_id == realm_id, Group.path == path)
        )
        return result.scalar_one_or_none()

    async def find_or_create_group(self, realm_id: str, path: str) -> Group:
        """Return the group at path, creating it if absent.

        Safe to race: concurrent creators converge on the single row allowed
        by the (realm_id, path) unique constraint.
        """
        group = await self.find_group_by_path(realm_id, path)
        if group is not None:
            return group

        name = path.rstrip("/").rsplit("/", 1)[-1]
        dialect = self._db.get_bind().dialect.name
        insert = _UPSERT_INSERTS.get(dialect)
        if insert is not None:
            stmt = (
                insert(Group)
                .values(id=generate_uuid7(), realm_id=realm_id, path=path, name=name)
                .on_conflict_do_nothing(index_elements=["realm_id", "path"])
            )
            result = await self._db.execute(stmt)
            created = result.rowcount > 0
            group = await self.find_group_by_path(realm_id, path)
        else:
            group = Group(realm_id=realm_id, path=path, name=name)
            self._db.add(group)
            await self._db.flush()
            created = True

        if group is None:
            raise RuntimeError(f"Group {path} vanished right after creation in realm {realm_id}")

        if created:
            logger.info("Created group", realm=realm_id, path=path)
        return group

    async def join_group(self, user: User, group: Group) -> None:
        """Add a membership edge. Joining twice is a no-op."""
        if all(existing.id != group.id for existing in user.groups):
            user.groups.append(group)
