"""Core functionality for embedscore - wires config, cache, runner and report."""

import logging
from pathlib import Path

from .cache import get_default_cache_path
from .cache.store import EmbeddingCache
from .config import EmbedScoreConfig
from .embeddings.models import ModelConfiguration
from .evaluation.evaluator import Evaluator
from .evaluation.runner import BatchRunner
from .evaluation.testcases import DirectPair, load_test_cases
from .providers import ProviderRegistry
from .providers.base import EmbeddingProvider
from .report import Report, write_report

logger = logging.getLogger(__name__)


def create_provider(config: EmbedScoreConfig) -> EmbeddingProvider:
    """Instantiate the configured provider.

    Raises:
        KeyError: If provider not found
        ProviderAuthError: If the provider has no credentials
    """
    return ProviderRegistry.create(config.provider.name, timeout=config.provider.timeout)


def open_cache(
    config: EmbedScoreConfig,
    provider: EmbeddingProvider,
    cache_path: Path | None = None,
) -> EmbeddingCache:
    """Create and load the embedding cache.

    Args:
        config: Loaded configuration
        provider: Provider used on cache misses
        cache_path: Overrides the configured cache location
    """
    path = cache_path or config.paths.cache or get_default_cache_path()
    cache = EmbeddingCache(path, provider, timeout=config.provider.timeout)
    cache.load()
    return cache


async def run_evaluation(
    config: EmbedScoreConfig,
    cases_path: Path | None = None,
    output_path: Path | None = None,
    cache_path: Path | None = None,
    prefetch: bool | None = None,
    provider: EmbeddingProvider | None = None,
) -> tuple[Report, Path]:
    """Evaluate a test-case file and write the CSV report.

    Args:
        config: Loaded configuration
        cases_path: Test-case file, created with an example if absent
        output_path: CSV destination
        cache_path: Embedding cache file
        prefetch: Fetch embeddings concurrently before scoring
        provider: Provider instance to use instead of the configured one

    Returns:
        The report and the path it was written to

    Raises:
        TestCaseError: If the test-case file is invalid
        ProviderError: If any embedding request fails
        CacheIOError: If the cache cannot be written
        OSError: If the report cannot be written
    """
    cases_path = cases_path or config.paths.test_cases
    output_path = output_path or config.paths.output
    if prefetch is None:
        prefetch = config.run.prefetch

    suite = load_test_cases(
        cases_path, config.defaults.model_config, config.defaults.metric
    )
    logger.debug(f"Loaded {type(suite).__name__} test cases from {cases_path}")

    provider = provider or create_provider(config)
    cache = open_cache(config, provider, cache_path)

    runner = BatchRunner(Evaluator(cache), prefetch=prefetch)
    report = await runner.run(suite)

    write_report(report, output_path)
    return report, output_path


async def compare_texts(
    first: str,
    second: str,
    config: EmbedScoreConfig,
    model: ModelConfiguration | None = None,
    metric: str | None = None,
    cache_path: Path | None = None,
    provider: EmbeddingProvider | None = None,
) -> Report:
    """Score a single pair of texts.

    Args:
        first: First text
        second: Second text
        config: Loaded configuration
        model: Model configuration, configured default if omitted
        metric: Metric name, configured default if omitted
        cache_path: Embedding cache file
        provider: Provider instance to use instead of the configured one

    Returns:
        Single-row report

    Raises:
        KeyError: If the metric is unknown
        ProviderError: If an embedding request fails
    """
    suite = DirectPair(
        first=first,
        second=second,
        model=model or config.defaults.model_config,
        metric=metric or config.defaults.metric,
    )

    provider = provider or create_provider(config)
    cache = open_cache(config, provider, cache_path)

    return await BatchRunner(Evaluator(cache)).run(suite)
