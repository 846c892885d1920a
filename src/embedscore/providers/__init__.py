"""Provider abstraction for embedding services.

This module provides a registry pattern for managing embedding providers,
allowing runtime selection of different backends.
"""

from typing import TYPE_CHECKING, Any, ClassVar

if TYPE_CHECKING:
    from .base import EmbeddingProvider

from .openai_embeddings import OpenAIEmbeddingProvider

__all__ = ["ProviderRegistry"]


class ProviderRegistry:
    """Registry for managing embedding providers.

    This class maintains a registry of available providers,
    allowing registration and retrieval by name.
    """

    _providers: ClassVar[dict[str, type["EmbeddingProvider"]]] = {}

    @classmethod
    def register(cls, name: str, provider_class: type["EmbeddingProvider"]) -> None:
        """Register an embedding provider.

        Args:
            name: Name to register the provider under
            provider_class: Provider class that implements EmbeddingProvider
        """
        cls._providers[name] = provider_class

    @classmethod
    def get(cls, name: str) -> type["EmbeddingProvider"]:
        """Get a provider class by name.

        Args:
            name: Name of the provider to retrieve

        Returns:
            Provider class

        Raises:
            KeyError: If provider name not found
        """
        if name not in cls._providers:
            available = ", ".join(cls._providers.keys()) if cls._providers else "none"
            raise KeyError(
                f"Provider '{name}' not found. Available providers: {available}"
            )
        return cls._providers[name]

    @classmethod
    def create(cls, name: str, **kwargs: Any) -> "EmbeddingProvider":
        """Instantiate a registered provider.

        Args:
            name: Name of the provider
            **kwargs: Passed to the provider constructor

        Raises:
            KeyError: If provider name not found
        """
        return cls.get(name)(**kwargs)


# Register providers
ProviderRegistry.register("openai", OpenAIEmbeddingProvider)
