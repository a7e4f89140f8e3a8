"""Tests for the federation provider registry."""

from unittest.mock import patch

import pytest

from fedstore.config import DirectoryConfig, FederationConfig, FederationProviderConfig
from fedstore.federation import (
    _factories,
    close_providers,
    get_default_provider_factory,
    get_provider_factory,
    init_providers,
    list_providers,
)
from fedstore.federation.exceptions import ProviderConfigurationError
from fedstore.federation.locks import KeyedLock
from fedstore.federation.provider import FederationProviderFactory
from tests.fakes import FakeAuthenticator, FakeDirectory


def static_provider(provider_id: str, **overrides) -> FederationProviderConfig:
    return FederationProviderConfig(
        id=provider_id,
        name=f"{provider_id}-name",
        directory=DirectoryConfig(type="static"),
        **overrides,
    )


def fake_factory(provider_id: str) -> FederationProviderFactory:
    return FederationProviderFactory(
        FederationProviderConfig(id=provider_id, name=provider_id),
        FakeDirectory(),
        FakeAuthenticator(),
        locks=KeyedLock(),
    )


class TestProviderRegistry:
    """Test provider registry functions."""

    def setup_method(self):
        """Clear registry before each test."""
        _factories.clear()

    def teardown_method(self):
        _factories.clear()

    def test_register_and_get_provider(self):
        """Test registering and retrieving a provider."""
        factory = fake_factory("sssd-1")
        _factories["sssd-1"] = factory

        assert get_provider_factory("sssd-1") is factory
        assert get_provider_factory("nonexistent") is None

    def test_default_falls_back_to_first(self):
        """Test the first provider is the default when none is configured."""
        first = fake_factory("first")
        _factories["first"] = first
        _factories["second"] = fake_factory("second")

        with patch("fedstore.federation.settings") as mock_settings:
            mock_settings.federation.default_provider = ""
            assert get_default_provider_factory() is first

    def test_configured_default(self):
        """Test an explicit default provider wins."""
        _factories["first"] = fake_factory("first")
        second = fake_factory("second")
        _factories["second"] = second

        with patch("fedstore.federation.settings") as mock_settings:
            mock_settings.federation.default_provider = "second"
            assert get_default_provider_factory() is second

    def test_no_providers(self):
        """Test no default without providers."""
        with patch("fedstore.federation.settings") as mock_settings:
            mock_settings.federation.default_provider = ""
            assert get_default_provider_factory() is None

    def test_list_providers(self):
        """Test listing reports ids, names and collaborator types."""
        _factories["sssd-1"] = fake_factory("sssd-1")

        assert list_providers() == [
            {"id": "sssd-1", "name": "sssd-1", "directory": "fake", "authenticator": "fake"}
        ]


class TestInitProviders:
    """Test building the registry from configuration."""

    def setup_method(self):
        _factories.clear()

    def teardown_method(self):
        _factories.clear()

    def test_init_from_config(self):
        """Test enabled providers are built and registered."""
        federation = FederationConfig(
            providers=[static_provider("sssd-1"), static_provider("off", enabled=False)]
        )
        with patch("fedstore.federation.settings") as mock_settings:
            mock_settings.federation = federation
            init_providers()

        assert list(_factories) == ["sssd-1"]
        factory = _factories["sssd-1"]
        assert factory.directory.directory_type == "static"
        assert factory.authenticator.authenticator_type == "pam"

    def test_duplicate_ids_rejected(self):
        """Test two providers can't share an id."""
        federation = FederationConfig(
            providers=[static_provider("sssd-1"), static_provider("sssd-1")]
        )
        with patch("fedstore.federation.settings") as mock_settings:
            mock_settings.federation = federation
            with pytest.raises(ProviderConfigurationError):
                init_providers()

    def test_bad_collaborator_aborts(self):
        """Test an HTTP directory without base_url fails startup."""
        bad = FederationProviderConfig(id="bad", name="bad", directory=DirectoryConfig())
        with patch("fedstore.federation.settings") as mock_settings:
            mock_settings.federation = FederationConfig(providers=[bad])
            with pytest.raises(ProviderConfigurationError):
                init_providers()

    async def test_close_providers(self):
        """Test shutdown closes each directory and empties the registry."""
        factory = fake_factory("sssd-1")
        _factories["sssd-1"] = factory

        await close_providers()

        assert factory.directory.close_calls == 1
        assert _factories == {}
