"""Federation provider.

Keeps local user rows as a cache of an external directory while delegating
every trust decision to the external authority:

1. Look the username up in local storage.
2. Not there: import it from the directory (user, groups, link) and validate.
3. There but linked to another provider (or none): refuse, touch nothing.
4. There and linked to us: check the directory still agrees on the email.
   If it doesn't, delete the row and import it again.

The whole sequence runs under a per-(realm, username) lock and commits before
the lock is released, so concurrent first logins converge on one row. A row
only becomes visible once its groups and link are in place.

Callers always get a ReadOnlyUserOverlay or None, never an exception, for
ordinary negative outcomes.
"""

import asyncio
from typing import Any

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from fedstore.config import FederationProviderConfig
from fedstore.db.models import User
from fedstore.federation.authenticator import Authenticator
from fedstore.federation.connectors import build_authenticator, build_directory_client
from fedstore.federation.credentials import CredentialInput, supports_credential_type
from fedstore.federation.directory import DirectoryClient
from fedstore.federation.exceptions import (
    AuthenticatorError,
    DirectoryUnavailableError,
    DirectoryUserNotFoundError,
)
from fedstore.federation.locks import KeyedLock
from fedstore.federation.mapper import map_directory_entry
from fedstore.federation.overlay import ReadOnlyUserOverlay
from fedstore.logging_config import get_logger
from fedstore.services.user_store import UserStore

logger = get_logger(__name__)

# Shared by every provider: they all write the same local store
_resolution_locks = KeyedLock()


class FederationProviderFactory:
    """Process-lifetime owner of one provider's collaborators.

    Holds the directory client and authenticator and hands out
    request-scoped FederationProvider instances bound to a database session.
    """

    def __init__(
        self,
        config: FederationProviderConfig,
        directory: DirectoryClient,
        authenticator: Authenticator,
        locks: KeyedLock | None = None,
    ) -> None:
        self.config = config
        self.directory = directory
        self.authenticator = authenticator
        self.locks = locks if locks is not None else _resolution_locks
        self._closed = False

    @classmethod
    def from_config(cls, config: FederationProviderConfig) -> "FederationProviderFactory":
        """Build collaborators from configuration.

        Raises:
            ProviderConfigurationError: A collaborator can't be constructed.
        """
        return cls(
            config,
            build_directory_client(config.directory),
            build_authenticator(config.authenticator),
        )

    @property
    def id(self) -> str:
        return self.config.id

    @property
    def name(self) -> str:
        return self.config.name

    def create(self, db: AsyncSession) -> "FederationProvider":
        return FederationProvider(db, self)

    async def close(self) -> None:
        """Disconnect from the directory. Safe to call repeatedly."""
        if self._closed:
            return
        self._closed = True
        await self.directory.close()
        logger.info("Federation provider closed", provider=self.name)


class FederationProvider:
    """Request-scoped federation provider working in one database session."""

    def __init__(self, db: AsyncSession, factory: FederationProviderFactory) -> None:
        self._db = db
        self._factory = factory
        self._config = factory.config
        self._store = UserStore(db)

    @property
    def id(self) -> str:
        return self._config.id

    @property
    def name(self) -> str:
        return self._config.name

    # --- Lookup ---

    async def get_user_by_username(
        self, realm_id: str, username: str
    ) -> ReadOnlyUserOverlay | None:
        """Return a freshly validated overlay for username, or None."""
        if not username:
            return None
        async with self._factory.locks.hold((realm_id, username)):
            return await self._find_or_create_authenticated_user(realm_id, username)

    async def get_user_by_id(self, realm_id: str, user_id: Any) -> ReadOnlyUserOverlay | None:
        """Identities are only resolved by username."""
        return None

    async def get_user_by_email(self, realm_id: str, email: str) -> ReadOnlyUserOverlay | None:
        """Identities are only resolved by username."""
        return None

    async def _find_or_create_authenticated_user(
        self, realm_id: str, username: str
    ) -> ReadOnlyUserOverlay | None:
        log = logger.bind(realm=realm_id, username=username, provider=self.name)

        user = await self._store.get_user_by_username(realm_id, username)
        if user is not None:
            log.debug("Federated user found in local storage")

            if user.federation_link != self.id:
                log.warning(
                    "User already exists but is not linked to this provider",
                    federation_link=user.federation_link,
                )
                return None

            current = await self._check_identity(realm_id, user)
            if current is None:
                return None
            if current:
                return ReadOnlyUserOverlay(user)

            log.warning("User is linked to this provider but no longer matches the directory")
            log.warning("Will re-create user", user_id=str(user.id))
            await self._store.remove_user(realm_id, user)
        else:
            log.debug("Federated user not in local storage, importing")

        try:
            overlay = await self.import_user(realm_id, username)
        except DirectoryUserNotFoundError:
            log.info("User not found in directory")
            # Keeps a drift deletion: the directory definitely has no such user
            await self._db.commit()
            return None
        except DirectoryUnavailableError as e:
            log.error("Directory unavailable during import", error=str(e))
            await self._db.rollback()
            return None
        except IntegrityError:
            await self._db.rollback()
            log.warning("User was imported concurrently elsewhere, validating that record")
            return await self._validate_existing(realm_id, username)

        await self._db.commit()
        return overlay

    async def _validate_existing(
        self, realm_id: str, username: str
    ) -> ReadOnlyUserOverlay | None:
        user = await self._store.get_user_by_username(realm_id, username)
        if user is None or user.federation_link != self.id:
            return None
        return await self.validate_and_overlay(realm_id, user)

    # --- Import ---

    async def import_user(self, realm_id: str, username: str) -> ReadOnlyUserOverlay | None:
        """Create the local copy of a directory user and validate it.

        Changes are flushed to the caller's transaction, not committed. Must
        be called with the (realm, username) lock held.

        Raises:
            ExternalLookupError: The directory has no such user or can't be reached.
            IntegrityError: Another writer created the same username first.
        """
        entry = await self._factory.directory.lookup(username)
        mapped = map_directory_entry(entry, self._config.attributes)

        logger.debug(
            "Creating federated user in local storage",
            realm=realm_id,
            username=username,
            provider=self.name,
        )
        user = await self._store.add_user(realm_id, username)
        user.enabled = True
        user.email = mapped.email
        user.first_name = mapped.first_name
        user.last_name = mapped.last_name
        for path in mapped.group_paths:
            group = await self._store.find_or_create_group(realm_id, path)
            await self._store.join_group(user, group)
        user.federation_link = self.id
        await self._db.flush()

        overlay = await self.validate_and_overlay(realm_id, user)
        if overlay is not None:
            logger.info(
                "Imported federated user",
                realm=realm_id,
                username=username,
                provider=self.name,
                user_id=str(user.id),
                groups=mapped.group_paths,
            )
            return overlay

        if self._config.rollback_unvalidated_import:
            logger.warning(
                "Imported user failed validation, discarding local record",
                realm=realm_id,
                username=username,
                provider=self.name,
            )
            await self._store.remove_user(realm_id, user)
        else:
            logger.warning(
                "Imported user failed validation, local record kept",
                realm=realm_id,
                username=username,
                provider=self.name,
            )
        return None

    # --- Validation ---

    async def validate_and_overlay(
        self, realm_id: str, local: User
    ) -> ReadOnlyUserOverlay | None:
        """Wrap local in an overlay if the directory still agrees with it."""
        if await self._check_identity(realm_id, local):
            return ReadOnlyUserOverlay(local)
        return None

    async def is_identity_current(self, local: User) -> bool:
        """Compare the directory's email with the cached one, ignoring case.

        Raises:
            ExternalLookupError: The directory has no such user or can't be reached.
        """
        entry = await self._factory.directory.lookup(local.username)
        mapped = map_directory_entry(entry, self._config.attributes)
        return mapped.email.lower() == (local.email or "").lower()

    async def _check_identity(self, realm_id: str, local: User) -> bool | None:
        """True if current, False if drifted or gone, None if the directory can't say."""
        try:
            return await self.is_identity_current(local)
        except DirectoryUserNotFoundError:
            logger.warning(
                "Linked user no longer exists in directory",
                realm=realm_id,
                username=local.username,
                provider=self.name,
            )
            return False
        except DirectoryUnavailableError as e:
            logger.error(
                "Directory unavailable, cannot validate user",
                realm=realm_id,
                username=local.username,
                provider=self.name,
                error=str(e),
            )
            return None

    # --- Credentials ---

    def supports_credential_type(self, credential_type: str) -> bool:
        return supports_credential_type(credential_type)

    def is_configured_for(
        self, realm_id: str, user: ReadOnlyUserOverlay | User, credential_type: str
    ) -> bool:
        return self.supports_credential_type(credential_type)

    async def is_valid(
        self,
        realm_id: str,
        user: ReadOnlyUserOverlay | User,
        credential: CredentialInput,
    ) -> bool:
        """Check a credential with the external authenticator. Never raises."""
        if not self.supports_credential_type(credential.type):
            logger.debug(
                "Unsupported credential type",
                provider=self.name,
                credential_type=credential.type,
            )
            return False

        log = logger.bind(realm=realm_id, username=user.username, provider=self.name)
        try:
            async with asyncio.timeout(self._config.authenticator.timeout_seconds):
                valid = await self._factory.authenticator.authenticate(
                    user.username, credential.value
                )
        except TimeoutError:
            log.warning("Authenticator timed out")
            return False
        except AuthenticatorError as e:
            log.error("Authenticator unavailable", error=str(e))
            return False
        except Exception:
            log.exception("Authenticator failed unexpectedly")
            return False

        return valid is True

    # --- Lifecycle hooks ---

    def pre_remove_realm(self, realm_id: str) -> None:
        """No provider state is keyed to realms."""

    def pre_remove_role(self, realm_id: str, role_name: str) -> None:
        """No provider state is keyed to roles."""

    def pre_remove_group(self, realm_id: str, group_path: str) -> None:
        """Group rows are managed by the local store."""
