"""Tests for collaborator construction and the static directory."""

import pytest

from fedstore.config import AuthenticatorConfig, DirectoryConfig, StaticDirectoryUser
from fedstore.federation.connectors import build_authenticator, build_directory_client
from fedstore.federation.connectors.http_directory import HTTPDirectoryClient
from fedstore.federation.connectors.pam import PAMAuthenticator
from fedstore.federation.connectors.static_directory import StaticDirectoryClient
from fedstore.federation.exceptions import DirectoryUserNotFoundError


class TestBuildCollaborators:
    """Test building collaborators from configuration."""

    def test_http_directory(self):
        config = DirectoryConfig(type="http", base_url="https://directory.example.com")
        assert isinstance(build_directory_client(config), HTTPDirectoryClient)

    def test_static_directory(self):
        client = build_directory_client(DirectoryConfig(type="static"))
        assert isinstance(client, StaticDirectoryClient)

    def test_pam_authenticator(self):
        authenticator = build_authenticator(AuthenticatorConfig(service="sssd-login"))
        assert isinstance(authenticator, PAMAuthenticator)
        assert authenticator.authenticator_type == "pam"


class TestStaticDirectory:
    """Test the configuration-backed directory."""

    @pytest.fixture
    def client(self) -> StaticDirectoryClient:
        return StaticDirectoryClient(
            DirectoryConfig(
                type="static",
                users={
                    "alice": StaticDirectoryUser(
                        attributes={"mail": "a@x.com"},
                        groups=["admins"],
                    )
                },
            )
        )

    async def test_lookup_found(self, client):
        """Test a configured user is returned."""
        entry = await client.lookup("alice")
        assert entry.username == "alice"
        assert entry.attributes == {"mail": "a@x.com"}
        assert entry.groups == ["admins"]

    async def test_lookup_missing(self, client):
        """Test an unconfigured user is not found."""
        with pytest.raises(DirectoryUserNotFoundError):
            await client.lookup("bob")

    async def test_close_noop(self, client):
        await client.close()
        assert client.directory_type == "static"
