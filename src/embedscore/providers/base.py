"""Abstract base class for embedding providers.

This module defines the interface that all embedding providers must implement,
so the cache can wrap any backend behind the same call.
"""

from abc import ABC, abstractmethod

from ..embeddings.models import Embedding, ModelConfiguration


class EmbeddingProvider(ABC):
    """Abstract base class for embedding providers.

    All providers must inherit from this class and implement ``embed``,
    which maps one text plus a model configuration to a fixed-length vector.
    """

    @abstractmethod
    async def embed(self, text: str, config: ModelConfiguration) -> Embedding:
        """Convert text to an embedding vector.

        Args:
            text: The text to embed, used verbatim
            config: Model configuration that determines the vector space

        Returns:
            1-D float array whose length is fixed by the configuration

        Raises:
            ProviderError: If the provider is unreachable or rejects the request
        """
        pass
