"""Provider registry for file hosting probers."""

from typing import Dict, List

from hashseries.models.media import ProviderType
from hashseries.providers.base import ProviderInterface


class ProviderRegistry:
    """Registry for managing file hosting probers."""

    _providers: Dict[ProviderType, ProviderInterface] = {}

    @classmethod
    def register(cls, provider: ProviderInterface) -> None:
        """Register a provider instance."""
        cls._providers[provider.provider_type] = provider

    @classmethod
    def get(cls, provider_type: ProviderType) -> ProviderInterface | None:
        """Get the provider for a link type."""
        return cls._providers.get(provider_type)

    @classmethod
    def all(cls) -> List[ProviderInterface]:
        """Get all registered providers."""
        return list(cls._providers.values())

    @classmethod
    def names(cls) -> List[str]:
        """Get names of all registered providers."""
        return [provider.name for provider in cls._providers.values()]

    @classmethod
    def as_mapping(cls) -> Dict[ProviderType, ProviderInterface]:
        return dict(cls._providers)

    @classmethod
    def clear(cls) -> None:
        cls._providers.clear()


# Convenience function for registration
def register_provider(provider: ProviderInterface) -> None:
    """Register a provider with the global registry."""
    ProviderRegistry.register(provider)
