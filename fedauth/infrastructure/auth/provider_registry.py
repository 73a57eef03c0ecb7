"""Provider registry implementation."""

import logging
from collections.abc import Callable

import httpx

from fedauth.config import AuthConfig, ProviderSettings
from fedauth.domain.auth.port.identity_provider import IdentityProvider
from fedauth.domain.auth.port.provider_registry import ProviderFactory, ProviderRegistry
from fedauth.domain.shared.error import ConfigurationError, NotFoundError
from fedauth.infrastructure.auth import nextcloud, oidc
from fedauth.infrastructure.auth.base import OAuth2Provider

logger = logging.getLogger(__name__)

BUILTIN_PROVIDERS: dict[str, Callable[[], OAuth2Provider]] = {
    nextcloud.NAME: nextcloud.new_nextcloud_provider,
    oidc.NAME: oidc.new_oidc_provider,
}


class InMemoryProviderRegistry(ProviderRegistry):
    """In-memory provider registry.

    Stores a mapping of provider names to factories. Factories are
    registered at application startup; every `get` builds a new instance.
    """

    def __init__(self, factories: dict[str, ProviderFactory] | None = None) -> None:
        """Initialize registry with optional initial factories.

        Args:
            factories: Optional dict mapping provider names to factories
        """
        self._factories: dict[str, ProviderFactory] = dict(factories or {})

    def register(self, name: str, factory: ProviderFactory) -> None:
        """Register a provider factory.

        Args:
            name: The provider name
            factory: Zero-argument callable building a provider
        """
        self._factories[name] = factory

    def get(self, provider: str) -> IdentityProvider:
        """Build a new identity provider by name."""
        factory = self._factories.get(provider)
        if factory is None:
            raise NotFoundError(
                f"Unknown identity provider: {provider}",
                code="provider_not_found",
            )
        return factory()

    def available_providers(self) -> list[str]:
        """Get list of registered provider names."""
        return list(self._factories.keys())


def register_builtin_providers(registry: ProviderRegistry) -> None:
    """Register every bundled provider under its default name."""
    for name, factory in BUILTIN_PROVIDERS.items():
        registry.register(name, factory)


def build_provider_registry(
    config: AuthConfig, http_client: httpx.AsyncClient | None = None
) -> ProviderRegistry:
    """Build the registry of providers enabled in configuration.

    Each configured name is backed by a bundled provider (the name itself,
    or `type` when set, e.g. two OIDC issuers named "oidc" and "oidc2").

    Raises:
        ConfigurationError: If a configured provider type is unknown
    """
    registry = InMemoryProviderRegistry()

    for name, settings in config.providers.items():
        if not settings.enabled:
            logger.debug("Provider disabled in config: %s", name)
            continue

        provider_type = settings.type or name
        factory = BUILTIN_PROVIDERS.get(provider_type)
        if factory is None:
            raise ConfigurationError(
                f"Unknown provider type '{provider_type}' for provider '{name}'",
                code="unknown_provider_type",
            )

        registry.register(name, _configured_factory(name, factory, settings, http_client))
        logger.info("Registered identity provider: name=%s, type=%s", name, provider_type)

    return registry


def _configured_factory(
    name: str,
    factory: Callable[[], OAuth2Provider],
    settings: ProviderSettings,
    http_client: httpx.AsyncClient | None,
) -> ProviderFactory:
    overrides = settings.overrides()

    def build() -> IdentityProvider:
        provider = factory()
        provider.configure(name=name, **overrides)
        provider.use_http_client(http_client)
        return provider

    return build
