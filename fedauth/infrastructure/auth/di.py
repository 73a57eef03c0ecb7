"""DI provider for auth infrastructure."""

from collections.abc import AsyncIterator

import httpx
from dishka import from_context, provide

from fedauth.config import Config
from fedauth.domain.auth.port.provider_registry import ProviderRegistry
from fedauth.domain.auth.service.auth import AuthService
from fedauth.infrastructure.auth.provider_registry import build_provider_registry
from fedauth.util.di.base import Provider
from fedauth.util.di.scope import Scope


class AuthInfraProvider(Provider):
    """DI provider for identity provider adapters."""

    config = from_context(provides=Config, scope=Scope.APP)

    auth_service = provide(AuthService, scope=Scope.REQUEST)

    @provide(scope=Scope.APP)
    async def get_auth_http_client(self, config: Config) -> AsyncIterator[httpx.AsyncClient]:
        """Shared HTTP client for provider calls (connection pooling)."""
        async with httpx.AsyncClient(timeout=config.http.timeout()) as client:
            yield client

    @provide(scope=Scope.APP)
    def get_provider_registry(
        self, config: Config, http_client: httpx.AsyncClient
    ) -> ProviderRegistry:
        """Provide ProviderRegistry with the configured identity providers."""
        return build_provider_registry(config.auth, http_client)
