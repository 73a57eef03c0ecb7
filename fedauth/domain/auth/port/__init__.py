"""Auth domain ports."""

from .identity_provider import IdentityProvider, Normalizer
from .provider_registry import ProviderFactory, ProviderRegistry

__all__ = [
    "IdentityProvider",
    "Normalizer",
    "ProviderFactory",
    "ProviderRegistry",
]
