"""HTTP directory gateway connector.

Looks users up through a JSON directory gateway fronting SSSD/LDAP:

    GET {base_url}/users/{username}
    200 {"attributes": {"mail": "...", "givenname": "...", "sn": "..."},
         "groups": ["admins", ...]}
    404 unknown user

The httpx client is created on first use and pooled for the lifetime of the
provider factory; close() releases it.
"""

from typing import Any
from urllib.parse import quote

import httpx

from fedstore.config import DirectoryConfig
from fedstore.federation.directory import DirectoryClient, DirectoryEntry
from fedstore.federation.exceptions import (
    DirectoryUnavailableError,
    DirectoryUserNotFoundError,
    ProviderConfigurationError,
)
from fedstore.logging_config import get_logger

logger = get_logger(__name__)


class HTTPDirectoryClient(DirectoryClient):
    """Directory client speaking to a JSON gateway with httpx."""

    def __init__(
        self,
        config: DirectoryConfig,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        if not config.base_url:
            raise ProviderConfigurationError("HTTP directory requires base_url")
        self._config = config
        self._transport = transport
        self._client: httpx.AsyncClient | None = None

    @property
    def directory_type(self) -> str:
        return "http"

    def _ensure_client(self) -> httpx.AsyncClient:
        """Create the pooled client on first use."""
        if self._client is None:
            headers = {"Accept": "application/json"}
            if self._config.api_token:
                headers["Authorization"] = f"Bearer {self._config.api_token}"
            self._client = httpx.AsyncClient(
                base_url=self._config.base_url,
                headers=headers,
                timeout=httpx.Timeout(self._config.timeout_seconds),
                verify=self._config.verify_tls,
                transport=self._transport,
            )
        return self._client

    async def lookup(self, username: str) -> DirectoryEntry:
        client = self._ensure_client()
        try:
            resp = await client.get(f"/users/{quote(username, safe='')}")
        except httpx.TimeoutException as e:
            raise DirectoryUnavailableError(username, "directory lookup timed out") from e
        except httpx.HTTPError as e:
            raise DirectoryUnavailableError(username, f"directory request failed: {e}") from e

        if resp.status_code == httpx.codes.NOT_FOUND:
            raise DirectoryUserNotFoundError(username)
        if resp.status_code != httpx.codes.OK:
            raise DirectoryUnavailableError(
                username, f"directory answered HTTP {resp.status_code}"
            )

        try:
            payload = resp.json()
        except ValueError as e:
            raise DirectoryUnavailableError(username, "directory returned invalid JSON") from e

        entry = _parse_entry(username, payload)
        logger.debug(
            "Directory lookup",
            username=username,
            attributes=sorted(entry.attributes),
            groups=entry.groups,
        )
        return entry

    async def close(self) -> None:
        if self._client is None:
            return
        client, self._client = self._client, None
        await client.aclose()
        logger.info("Closed directory client", base_url=self._config.base_url)


def _parse_entry(username: str, payload: Any) -> DirectoryEntry:
    """Validate the gateway payload shape."""
    if not isinstance(payload, dict):
        raise DirectoryUnavailableError(username, "directory payload is not an object")

    attributes = payload.get("attributes") or {}
    groups = payload.get("groups") or []
    if not isinstance(attributes, dict) or not isinstance(groups, list):
        raise DirectoryUnavailableError(username, "directory payload has unexpected shape")

    clean: dict[str, str | list[str] | None] = {}
    for key, value in attributes.items():
        if value is None or isinstance(value, str):
            clean[str(key)] = value
        elif isinstance(value, list) and all(isinstance(v, str) for v in value):
            clean[str(key)] = value
        else:
            raise DirectoryUnavailableError(username, f"attribute {key!r} has unexpected type")

    if not all(isinstance(g, str) for g in groups):
        raise DirectoryUnavailableError(username, "group names must be strings")

    return DirectoryEntry(username=username, attributes=clean, groups=list(groups))
