"""Pytest configuration and fixtures for embedscore tests."""

import asyncio
from collections.abc import Generator
from pathlib import Path

import numpy as np
import pytest

from embedscore.embeddings.models import ModelConfiguration
from embedscore.providers import ProviderRegistry
from embedscore.providers.base import EmbeddingProvider


class StubProvider(EmbeddingProvider):
    """Provider returning fixed vectors and recording every call.

    Unknown texts get a deterministic vector derived from the text length so
    that any text can be embedded without network access.
    """

    vectors: dict[str, list[float]] = {
        "The cat sat": [1.0, 0.0],
        "cat": [1.0, 0.0],
        "hat": [0.0, 1.0],
    }

    def __init__(self, timeout: float = 5.0, delay: float = 0.0) -> None:
        self.timeout = timeout
        self.delay = delay
        self.calls: list[tuple[str, ModelConfiguration]] = []

    async def embed(self, text: str, config: ModelConfiguration) -> np.ndarray:
        self.calls.append((text, config))
        if self.delay:
            await asyncio.sleep(self.delay)
        if text in self.vectors:
            return np.array(self.vectors[text], dtype=np.float64)
        return np.array([float(len(text)), 1.0], dtype=np.float64)


@pytest.fixture
def stub_provider() -> StubProvider:
    """Fresh stub provider with an empty call log."""
    return StubProvider()


@pytest.fixture
def model_config() -> ModelConfiguration:
    return ModelConfiguration(model="stub-model", dimensions=2)


@pytest.fixture
def cache_path(tmp_path: Path) -> Path:
    """Embedding cache location inside the test's temp directory."""
    return tmp_path / "cache" / "embeddings.json"


@pytest.fixture
def registered_stub() -> Generator[type[StubProvider]]:
    """Register StubProvider as "stub" for the duration of a test."""
    ProviderRegistry.register("stub", StubProvider)
    yield StubProvider
    ProviderRegistry._providers.pop("stub", None)


@pytest.fixture
def stub_config_file(tmp_path: Path) -> Path:
    """Config file selecting the stub provider with 2-dim cosine defaults."""
    path = tmp_path / "config.toml"
    path.write_text(
        f"""\
[provider]
name = "stub"
timeout = 5.0

[defaults]
model = "stub-model"
dimensions = 2
metric = "cosine"

[paths]
test_cases = "{(tmp_path / 'test-cases.json').as_posix()}"
output = "{(tmp_path / 'output.csv').as_posix()}"
cache = "{(tmp_path / 'embeddings.json').as_posix()}"

[run]
prefetch = false
"""
    )
    return path


@pytest.fixture
def slow_stub_provider() -> StubProvider:
    """Stub provider that yields to the event loop before answering."""
    return StubProvider(delay=0.05)
