"""Unit tests for provider registry functionality."""

import pytest

from embedscore.providers import ProviderRegistry
from embedscore.providers.openai_embeddings import OpenAIEmbeddingProvider


class MockProvider:
    """Mock provider class for testing registration."""

    def __init__(self, **kwargs) -> None:
        self.kwargs = kwargs


class AnotherMockProvider:
    """Another mock provider class for testing multiple registrations."""

    pass


@pytest.fixture(autouse=True)
def restore_registry():
    """Keep registry changes local to each test."""
    saved = dict(ProviderRegistry._providers)
    yield
    ProviderRegistry._providers.clear()
    ProviderRegistry._providers.update(saved)


class TestProviderRegistry:
    """Test ProviderRegistry functionality."""

    def test_openai_registered_by_default(self) -> None:
        assert ProviderRegistry.get("openai") is OpenAIEmbeddingProvider

    def test_register_and_get_provider(self) -> None:
        ProviderRegistry.register("test", MockProvider)

        assert "test" in ProviderRegistry._providers
        assert ProviderRegistry.get("test") is MockProvider

    def test_register_overwrites_existing(self) -> None:
        ProviderRegistry.register("test", MockProvider)
        ProviderRegistry.register("test", AnotherMockProvider)

        assert ProviderRegistry.get("test") is AnotherMockProvider

    def test_get_unknown_provider_lists_available(self) -> None:
        with pytest.raises(KeyError, match="Provider 'nope' not found. Available providers: openai"):
            ProviderRegistry.get("nope")

    def test_get_from_empty_registry(self) -> None:
        ProviderRegistry._providers.clear()

        with pytest.raises(KeyError, match="Available providers: none"):
            ProviderRegistry.get("openai")

    def test_create_passes_kwargs(self) -> None:
        ProviderRegistry.register("test", MockProvider)

        instance = ProviderRegistry.create("test", timeout=2.0)

        assert isinstance(instance, MockProvider)
        assert instance.kwargs == {"timeout": 2.0}
