"""Provider registry port for the auth domain."""

from abc import abstractmethod
from collections.abc import Callable
from typing import Protocol

from fedauth.domain.auth.port.identity_provider import IdentityProvider

ProviderFactory = Callable[[], IdentityProvider]


class ProviderRegistry(Protocol):
    """Registry of provider factories keyed by provider name.

    Populated once during bootstrap and read-only afterwards.
    """

    @abstractmethod
    def register(self, name: str, factory: ProviderFactory) -> None:
        """Register a factory. Re-registering a name overwrites it."""
        ...

    @abstractmethod
    def get(self, provider: str) -> IdentityProvider:
        """Construct a fresh provider instance by name.

        Raises:
            NotFoundError: If no factory is registered under that name
        """
        ...

    @abstractmethod
    def available_providers(self) -> list[str]:
        """Get list of registered provider names."""
        ...

    def is_available(self, provider: str) -> bool:
        """Check if a provider is registered."""
        return provider in self.available_providers()
