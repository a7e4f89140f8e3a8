"""Federation provider registry.

Manages initialized provider factories, keyed by provider id.
"""

from fedstore.config import settings
from fedstore.federation.exceptions import ProviderConfigurationError
from fedstore.federation.provider import FederationProviderFactory
from fedstore.logging_config import get_logger

logger = get_logger(__name__)

# Registry of initialized provider factories
_factories: dict[str, FederationProviderFactory] = {}


def init_providers() -> None:
    """Initialize all configured federation providers.

    Called during application startup (lifespan handler). A provider that
    can't be built aborts startup.
    """
    _factories.clear()

    for provider_config in settings.federation.providers:
        if not provider_config.enabled:
            logger.info("Skipping disabled federation provider", provider=provider_config.name)
            continue
        if provider_config.id in _factories:
            raise ProviderConfigurationError(
                f"Duplicate federation provider id: {provider_config.id}"
            )
        factory = FederationProviderFactory.from_config(provider_config)
        _factories[factory.id] = factory
        logger.info(
            "Registered federation provider",
            provider=factory.name,
            provider_id=factory.id,
            directory=factory.directory.directory_type,
            authenticator=factory.authenticator.authenticator_type,
        )

    logger.info("Federation providers initialized", count=len(_factories))


def get_provider_factory(provider_id: str) -> FederationProviderFactory | None:
    """Get a provider factory by id."""
    return _factories.get(provider_id)


def get_default_provider_factory() -> FederationProviderFactory | None:
    """Get the default provider, if configured."""
    default_id = settings.federation.default_provider
    if default_id:
        return _factories.get(default_id)
    # Fall back to first configured provider
    if _factories:
        return next(iter(_factories.values()))
    return None


def list_providers() -> list[dict[str, str]]:
    """List all configured providers (id, name and collaborator types)."""
    return [
        {
            "id": f.id,
            "name": f.name,
            "directory": f.directory.directory_type,
            "authenticator": f.authenticator.authenticator_type,
        }
        for f in _factories.values()
    ]


async def close_providers() -> None:
    """Release every provider's directory connection."""
    for factory in _factories.values():
        try:
            await factory.close()
        except Exception:
            logger.warning(
                "Failed to close federation provider", provider=factory.name, exc_info=True
            )
    _factories.clear()
