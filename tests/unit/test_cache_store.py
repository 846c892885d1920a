"""Unit tests for the write-through embedding cache."""

import asyncio
import json
from pathlib import Path
from unittest.mock import patch

import numpy as np
import pytest

from embedscore.cache import get_cache_dir
from embedscore.cache.store import EmbeddingCache
from embedscore.embeddings.models import ModelConfiguration
from embedscore.errors import CacheIOError, ProviderError
from embedscore.providers.base import EmbeddingProvider


class FailingProvider(EmbeddingProvider):
    async def embed(self, text, config):
        raise ProviderError("quota exceeded", status_code=429)


class SlowProvider(EmbeddingProvider):
    async def embed(self, text, config):
        await asyncio.sleep(1.0)
        return np.array([1.0, 0.0])


class PartlyFailingProvider(EmbeddingProvider):
    """Fails at once for "bad"; every other text answers after a short delay."""

    def __init__(self):
        self.completed: list[str] = []

    async def embed(self, text, config):
        if text == "bad":
            raise ProviderError("quota exceeded", status_code=429)
        await asyncio.sleep(0.05)
        self.completed.append(text)
        return np.array([1.0, 0.0])


class BadShapeProvider(EmbeddingProvider):
    def __init__(self, value):
        self.value = value

    async def embed(self, text, config):
        return self.value


class TestCacheInitialization:
    """Constructor validation."""

    def test_rejects_non_positive_timeout(self, cache_path, stub_provider) -> None:
        with pytest.raises(ValueError, match="timeout must be positive, got 0"):
            EmbeddingCache(cache_path, stub_provider, timeout=0)

    def test_starts_empty(self, cache_path, stub_provider) -> None:
        cache = EmbeddingCache(cache_path, stub_provider)
        assert len(cache) == 0
        assert cache.models() == {}

    def test_get_cache_dir_creates_directory(self, tmp_path, monkeypatch) -> None:
        monkeypatch.setattr(Path, "home", lambda: tmp_path)
        cache_dir = get_cache_dir()
        assert cache_dir == tmp_path / ".cache" / "embedscore"
        assert cache_dir.is_dir()


class TestCacheLoad:
    """Loading tolerates missing and corrupt stores."""

    def test_missing_file_gives_empty_store(self, cache_path, stub_provider) -> None:
        cache = EmbeddingCache(cache_path, stub_provider)
        cache.load()
        assert len(cache) == 0
        assert cache.diagnostic is None

    @pytest.mark.parametrize(
        "content",
        [
            "",
            "{not json",
            "[1, 2, 3]",
            '{"m": [1, 2]}',
            '{"m": {"x": "abc"}}',
            '{"m": {"x": []}}',
            '{"m": {"x": [null, 1.0]}}',
            '{"m": {"x": [NaN, 1.0]}}',
            '{"m": {"x": [Infinity, 1.0]}}',
        ],
    )
    def test_corrupt_file_gives_empty_store(
        self, cache_path, stub_provider, content, caplog
    ) -> None:
        cache_path.parent.mkdir(parents=True)
        cache_path.write_text(content)

        cache = EmbeddingCache(cache_path, stub_provider)
        with caplog.at_level("WARNING"):
            cache.load()

        assert len(cache) == 0
        assert cache.diagnostic is not None
        assert "Failed to load embedding cache" in caplog.text

    def test_loads_namespaced_document(self, cache_path, stub_provider) -> None:
        cache_path.parent.mkdir(parents=True)
        cache_path.write_text(
            json.dumps({"a[2]": {"x": [1.0, 2.0]}, "b": {"x": [3.0], "y": [4.0]}})
        )

        cache = EmbeddingCache(cache_path, stub_provider)
        cache.load()

        assert len(cache) == 3
        assert cache.models() == {"a[2]": 1, "b": 2}
        np.testing.assert_array_equal(
            cache.lookup(ModelConfiguration("a", 2), "x"), [1.0, 2.0]
        )


class TestCacheGet:
    """Hits, misses and write-through persistence."""

    @pytest.mark.asyncio
    async def test_second_get_uses_cache(
        self, cache_path, stub_provider, model_config
    ) -> None:
        cache = EmbeddingCache(cache_path, stub_provider)

        first = await cache.get(model_config, "cat")
        second = await cache.get(model_config, "cat")

        assert len(stub_provider.calls) == 1
        assert second is first
        assert second.tobytes() == first.tobytes()

    @pytest.mark.asyncio
    async def test_miss_persists_immediately(
        self, cache_path, stub_provider, model_config
    ) -> None:
        cache = EmbeddingCache(cache_path, stub_provider)

        await cache.get(model_config, "hat")

        document = json.loads(cache_path.read_text())
        assert document == {"stub-model[2]": {"hat": [0.0, 1.0]}}

    @pytest.mark.asyncio
    async def test_text_keys_are_exact(
        self, cache_path, stub_provider, model_config
    ) -> None:
        cache = EmbeddingCache(cache_path, stub_provider)

        await cache.get(model_config, "cat")
        await cache.get(model_config, "Cat")
        await cache.get(model_config, " cat")

        assert [text for text, _ in stub_provider.calls] == ["cat", "Cat", " cat"]
        assert len(cache) == 3

    @pytest.mark.asyncio
    async def test_model_configurations_are_namespaced(
        self, cache_path, stub_provider
    ) -> None:
        config_a = ModelConfiguration("stub-model", 2)
        config_b = ModelConfiguration("stub-model")
        cache = EmbeddingCache(cache_path, stub_provider)

        vector_a = await cache.get(config_a, "x")
        vector_b = await cache.get(config_b, "x")

        assert len(stub_provider.calls) == 2
        assert vector_a is not vector_b
        assert cache.models() == {"stub-model[2]": 1, "stub-model": 1}
        assert set(json.loads(cache_path.read_text())) == {"stub-model[2]", "stub-model"}

    @pytest.mark.asyncio
    async def test_reload_round_trip(
        self, cache_path, stub_provider, model_config
    ) -> None:
        cache = EmbeddingCache(cache_path, stub_provider)
        for text in ["cat", "hat", "The cat sat", "something else"]:
            await cache.get(model_config, text)

        reloaded = EmbeddingCache(cache_path, stub_provider)
        reloaded.load()

        assert reloaded.models() == cache.models()
        for text in ["cat", "hat", "The cat sat", "something else"]:
            np.testing.assert_array_equal(
                reloaded.lookup(model_config, text), cache.lookup(model_config, text)
            )

    @pytest.mark.asyncio
    async def test_round_trip_preserves_float_precision(
        self, cache_path, model_config
    ) -> None:
        values = [0.1 + 0.2, -1.0 / 3.0]
        cache = EmbeddingCache(cache_path, BadShapeProvider(values))
        await cache.get(model_config, "x")

        reloaded = EmbeddingCache(cache_path)
        reloaded.load()

        assert reloaded.lookup(model_config, "x").tolist() == values

    @pytest.mark.asyncio
    async def test_loaded_entries_skip_provider(
        self, cache_path, stub_provider, model_config
    ) -> None:
        await EmbeddingCache(cache_path, stub_provider).get(model_config, "cat")

        fresh_provider = type(stub_provider)()
        cache = EmbeddingCache(cache_path, fresh_provider)
        cache.load()
        await cache.get(model_config, "cat")

        assert fresh_provider.calls == []

    @pytest.mark.asyncio
    async def test_provider_error_propagates_and_stores_nothing(
        self, cache_path, model_config
    ) -> None:
        cache = EmbeddingCache(cache_path, FailingProvider())

        with pytest.raises(ProviderError, match="quota exceeded"):
            await cache.get(model_config, "cat")

        assert len(cache) == 0
        assert not cache_path.exists()

    @pytest.mark.asyncio
    async def test_timeout_raises_provider_error(self, cache_path, model_config) -> None:
        cache = EmbeddingCache(cache_path, SlowProvider(), timeout=0.01)

        with pytest.raises(ProviderError, match="timed out after 0.01s"):
            await cache.get(model_config, "cat")

    @pytest.mark.asyncio
    async def test_read_only_cache_raises_on_miss(self, cache_path, model_config) -> None:
        cache = EmbeddingCache(cache_path)

        with pytest.raises(ProviderError, match="No embedding provider configured"):
            await cache.get(model_config, "cat")

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "value",
        [
            [],
            [[1.0, 0.0]],
            ["a", "b"],
            [1.0, 2.0, 3.0],
            [float("nan"), 1.0],
            [float("inf"), 1.0],
        ],
    )
    async def test_unusable_vector_rejected(self, cache_path, model_config, value) -> None:
        cache = EmbeddingCache(cache_path, BadShapeProvider(value))

        with pytest.raises(ProviderError):
            await cache.get(model_config, "cat")

        assert len(cache) == 0
        assert not cache_path.exists()

    @pytest.mark.asyncio
    async def test_nan_vector_error_message(self, cache_path, model_config) -> None:
        cache = EmbeddingCache(cache_path, BadShapeProvider([float("nan"), 1.0]))

        with pytest.raises(ProviderError, match="NaN or infinite values for stub-model"):
            await cache.get(model_config, "cat")

    @pytest.mark.asyncio
    async def test_write_failure_raises_cache_io_error(
        self, cache_path, stub_provider, model_config
    ) -> None:
        cache = EmbeddingCache(cache_path, stub_provider)

        with patch("embedscore.cache.store.os.replace", side_effect=OSError("disk full")):
            with pytest.raises(CacheIOError, match="disk full"):
                await cache.get(model_config, "cat")

        # No temp files left behind
        assert list(cache_path.parent.iterdir()) == []


class TestCacheConcurrency:
    """At most one provider call per key, even when lookups overlap."""

    @pytest.mark.asyncio
    async def test_concurrent_gets_share_one_call(
        self, cache_path, model_config, slow_stub_provider
    ) -> None:
        provider = slow_stub_provider
        cache = EmbeddingCache(cache_path, provider)

        results = await asyncio.gather(
            *(cache.get(model_config, "cat") for _ in range(5))
        )

        assert len(provider.calls) == 1
        assert all(result is results[0] for result in results)

    @pytest.mark.asyncio
    async def test_prefetch_deduplicates(
        self, cache_path, model_config, slow_stub_provider
    ) -> None:
        provider = slow_stub_provider
        cache = EmbeddingCache(cache_path, provider)
        await cache.get(model_config, "cat")

        await cache.prefetch(model_config, ["cat", "hat", "hat", "The cat sat", "hat"])

        assert sorted(text for text, _ in provider.calls) == ["The cat sat", "cat", "hat"]
        assert len(cache) == 3
        assert len(json.loads(cache_path.read_text())["stub-model[2]"]) == 3

    @pytest.mark.asyncio
    async def test_prefetch_all_cached_is_noop(
        self, cache_path, stub_provider, model_config
    ) -> None:
        cache = EmbeddingCache(cache_path, stub_provider)
        await cache.get(model_config, "cat")

        await cache.prefetch(model_config, ["cat", "cat"])

        assert len(stub_provider.calls) == 1

    @pytest.mark.asyncio
    async def test_prefetch_failure_cancels_pending_requests(
        self, cache_path, model_config
    ) -> None:
        provider = PartlyFailingProvider()
        cache = EmbeddingCache(cache_path, provider)

        with pytest.raises(ProviderError, match="quota exceeded"):
            await cache.prefetch(model_config, ["cat", "bad", "hat"])

        # Give any surviving request time to finish and write
        await asyncio.sleep(0.1)

        assert provider.completed == []
        assert len(cache) == 0
        assert not cache_path.exists()
        assert cache._inflight == {}


class TestCacheClear:
    """Clearing the store."""

    @pytest.mark.asyncio
    async def test_clear_removes_file_and_entries(
        self, cache_path, stub_provider, model_config
    ) -> None:
        cache = EmbeddingCache(cache_path, stub_provider)
        await cache.get(model_config, "cat")

        cache.clear()

        assert len(cache) == 0
        assert not cache_path.exists()

    def test_clear_missing_file(self, cache_path, stub_provider) -> None:
        EmbeddingCache(cache_path, stub_provider).clear()
        assert not cache_path.exists()
