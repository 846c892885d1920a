"""Unit tests for the EmbeddingProvider base class."""

import numpy as np
import pytest

from embedscore.embeddings.models import ModelConfiguration
from embedscore.providers.base import EmbeddingProvider


class TestEmbeddingProviderBase:
    """The abstract interface every provider implements."""

    def test_cannot_instantiate_abstract_class(self) -> None:
        with pytest.raises(TypeError):
            EmbeddingProvider()  # type: ignore[abstract]

    def test_subclass_without_embed_is_abstract(self) -> None:
        class IncompleteProvider(EmbeddingProvider):
            pass

        with pytest.raises(TypeError):
            IncompleteProvider()  # type: ignore[abstract]

    @pytest.mark.asyncio
    async def test_complete_subclass(self) -> None:
        class ConstantProvider(EmbeddingProvider):
            async def embed(self, text, config):
                return np.ones(config.dimensions)

        vector = await ConstantProvider().embed("x", ModelConfiguration("m", 4))

        assert vector.tolist() == [1.0, 1.0, 1.0, 1.0]
