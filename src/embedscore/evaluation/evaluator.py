"""Pairwise similarity evaluation over cached embeddings."""

import logging

from ..cache.store import EmbeddingCache
from ..embeddings.models import ModelConfiguration
from ..metrics import Metric, check_dimensions

logger = logging.getLogger(__name__)


class Evaluator:
    """Score two texts under one model configuration and one metric.

    Both embeddings are resolved through the cache, one after the other,
    then handed to the metric. The score is returned exactly as the metric
    produced it.
    """

    def __init__(self, cache: EmbeddingCache):
        self.cache = cache

    async def compare(
        self,
        text_a: str,
        text_b: str,
        config: ModelConfiguration,
        metric: Metric,
    ) -> float:
        """Return metric(embedding(text_a), embedding(text_b)).

        Raises:
            ProviderError: If either embedding cannot be obtained
            CacheIOError: If a new embedding cannot be persisted
            DimensionMismatch: If the two embeddings differ in length
            DegenerateVectorError: If the metric rejects a zero vector
        """
        embedding_a = await self.cache.get(config, text_a)
        embedding_b = await self.cache.get(config, text_b)

        # Same configuration should give equal lengths; check anyway
        check_dimensions(embedding_a, embedding_b)

        score = metric(embedding_a, embedding_b)
        logger.debug(
            f"{getattr(metric, '__name__', metric)}('{text_a[:30]}', '{text_b[:30]}') "
            f"= {score:.6f} ({config.identifier})"
        )
        return score
