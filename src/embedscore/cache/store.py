"""Persistent write-through cache of text embeddings."""

import asyncio
import json
import logging
import os
import tempfile
from collections.abc import Iterable
from pathlib import Path

import numpy as np

from ..embeddings.models import Embedding, ModelConfiguration
from ..errors import CacheIOError, ProviderError
from ..providers.base import EmbeddingProvider

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 5.0


class EmbeddingCache:
    """JSON-backed cache mapping (model configuration, text) to embeddings.

    The persisted document is namespaced first by model configuration
    identifier, then by the exact text:

        {"text-embedding-3-large[1536]": {"The rat in a hat": [0.01, ...]}}

    Every miss calls the provider once, stores the vector and rewrites the
    whole file before returning, so a computed embedding survives a crash
    right after the provider call. Entries are never evicted during a run.

    Example:
        cache = EmbeddingCache(path, provider)
        cache.load()
        vector = await cache.get(ModelConfiguration("text-embedding-3-small"), "cat")
    """

    def __init__(
        self,
        path: Path,
        provider: EmbeddingProvider | None = None,
        timeout: float = DEFAULT_TIMEOUT,
    ):
        """Initialize cache bound to a file and a provider.

        Args:
            path: Location of the persisted JSON store
            provider: Provider called on cache misses, None for a read-only cache
            timeout: Seconds to wait for a single provider call

        Raises:
            ValueError: If timeout is not positive
        """
        if timeout <= 0:
            raise ValueError(f"timeout must be positive, got {timeout}")

        self.path = Path(path)
        self.provider = provider
        self.timeout = timeout

        # Last load diagnostic, None when the store loaded cleanly
        self.diagnostic: str | None = None

        self._store: dict[str, dict[str, Embedding]] = {}
        self._inflight: dict[tuple[str, str], asyncio.Future[Embedding]] = {}
        self._write_lock = asyncio.Lock()

    def load(self) -> None:
        """Read the persisted store into memory.

        A missing, empty, unreadable or malformed file leaves an empty store
        and records a diagnostic instead of raising.
        """
        self._store = {}
        self.diagnostic = None

        if not self.path.exists():
            logger.debug(f"No embedding cache at {self.path}, starting empty")
            return

        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
            self._store = self._parse(data)
        except (OSError, TypeError, ValueError) as e:
            self._store = {}
            self.diagnostic = f"Failed to load embedding cache {self.path}: {e}"
            logger.warning(f"{self.diagnostic}; starting with empty cache")
            return

        logger.debug(f"Loaded {len(self)} cached embeddings from {self.path}")

    def save(self) -> None:
        """Write the whole store to disk atomically.

        Raises:
            CacheIOError: If the file cannot be written
        """
        document = {
            identifier: {text: vector.tolist() for text, vector in entries.items()}
            for identifier, entries in self._store.items()
        }

        tmp_path = None
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_path = tempfile.mkstemp(
                dir=self.path.parent, prefix=f".{self.path.name}.", suffix=".tmp"
            )
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(document, f, indent=2, ensure_ascii=False)
            os.replace(tmp_path, self.path)
        except OSError as e:
            if tmp_path and os.path.exists(tmp_path):
                os.unlink(tmp_path)
            raise CacheIOError(
                f"Failed to write embedding cache {self.path}: {e}", original_error=e
            ) from e

        logger.debug(f"Saved {len(self)} embeddings to {self.path}")

    async def get(self, config: ModelConfiguration, text: str) -> Embedding:
        """Return the embedding for text, calling the provider on a miss.

        Concurrent lookups of the same missing key share a single provider
        call.

        Args:
            config: Model configuration, used as the cache namespace
            text: Exact text to embed

        Returns:
            Cached or freshly computed embedding

        Raises:
            ProviderError: If the provider fails, times out or returns an
                unusable vector
            CacheIOError: If persisting the new entry fails
        """
        cached = self.lookup(config, text)
        if cached is not None:
            logger.debug(f"Cache hit for '{text[:50]}' ({config.identifier})")
            return cached

        key = (config.identifier, text)
        pending = self._inflight.get(key)
        if pending is None:
            logger.debug(f"Cache miss for '{text[:50]}' ({config.identifier})")
            pending = asyncio.ensure_future(self._resolve(config, text))
            self._inflight[key] = pending
            pending.add_done_callback(lambda done: self._forget(key, done))

        return await pending

    async def prefetch(self, config: ModelConfiguration, texts: Iterable[str]) -> None:
        """Resolve many texts concurrently under one configuration.

        Duplicates collapse to one provider call per unique text. The first
        failure cancels the remaining requests before it propagates, so nothing
        is written to the cache after prefetch has raised.

        Raises:
            ProviderError: If any provider call fails
            CacheIOError: If persisting fails
        """
        unique = [text for text in dict.fromkeys(texts) if not self.contains(config, text)]
        if not unique:
            return

        logger.debug(f"Prefetching {len(unique)} embeddings for {config.identifier}")
        tasks = [asyncio.ensure_future(self.get(config, text)) for text in unique]
        try:
            await asyncio.gather(*tasks)
        except BaseException:
            for task in tasks:
                task.cancel()
            # Wait for cancellation to land and collect the sibling errors
            await asyncio.gather(*tasks, return_exceptions=True)
            raise

    def lookup(self, config: ModelConfiguration, text: str) -> Embedding | None:
        """Return the cached embedding without contacting the provider."""
        entries = self._store.get(config.identifier)
        if entries is None:
            return None
        return entries.get(text)

    def contains(self, config: ModelConfiguration, text: str) -> bool:
        return self.lookup(config, text) is not None

    def models(self) -> dict[str, int]:
        """Number of cached embeddings per model identifier."""
        return {identifier: len(entries) for identifier, entries in self._store.items()}

    def clear(self) -> None:
        """Drop all entries and delete the persisted file.

        Raises:
            CacheIOError: If the file exists but cannot be removed
        """
        self._store = {}
        try:
            self.path.unlink(missing_ok=True)
        except OSError as e:
            raise CacheIOError(
                f"Failed to delete embedding cache {self.path}: {e}", original_error=e
            ) from e
        logger.info(f"Cleared embedding cache at {self.path}")

    def __len__(self) -> int:
        return sum(len(entries) for entries in self._store.values())

    async def _resolve(self, config: ModelConfiguration, text: str) -> Embedding:
        if self.provider is None:
            raise ProviderError(
                f"No embedding provider configured to embed '{text[:50]}'"
            )

        try:
            raw = await asyncio.wait_for(
                self.provider.embed(text, config), timeout=self.timeout
            )
        except asyncio.TimeoutError as e:
            raise ProviderError(
                f"Embedding request for {config.identifier} timed out after {self.timeout}s",
                original_error=e,
            ) from e

        embedding = self._validate(raw, config)

        # Single writer: whole-file rewrite per new entry
        async with self._write_lock:
            self._store.setdefault(config.identifier, {})[text] = embedding
            self.save()

        logger.debug(
            f"Cached {embedding.shape[0]}-dim embedding for '{text[:50]}' ({config.identifier})"
        )
        return embedding

    def _forget(self, key: tuple[str, str], done: "asyncio.Future[Embedding]") -> None:
        if self._inflight.get(key) is done:
            del self._inflight[key]

    @staticmethod
    def _validate(raw: object, config: ModelConfiguration) -> Embedding:
        try:
            embedding = np.asarray(raw, dtype=np.float64)
        except (TypeError, ValueError) as e:
            raise ProviderError(
                f"Provider returned a non-numeric embedding for {config.identifier}",
                original_error=e,
            ) from e

        if embedding.ndim != 1 or embedding.size == 0:
            raise ProviderError(
                f"Provider returned an embedding of shape {embedding.shape} "
                f"for {config.identifier}"
            )
        if not np.isfinite(embedding).all():
            raise ProviderError(
                f"Provider returned NaN or infinite values for {config.identifier}"
            )
        if config.dimensions is not None and embedding.size != config.dimensions:
            raise ProviderError(
                f"Provider returned {embedding.size} dimensions, "
                f"expected {config.dimensions} for {config.identifier}"
            )
        return embedding

    @staticmethod
    def _parse(data: object) -> dict[str, dict[str, Embedding]]:
        if not isinstance(data, dict):
            raise ValueError("top level must be an object of model namespaces")

        store: dict[str, dict[str, Embedding]] = {}
        for identifier, entries in data.items():
            if not isinstance(entries, dict):
                raise ValueError(f"namespace {identifier!r} must be an object")
            parsed: dict[str, Embedding] = {}
            for text, values in entries.items():
                vector = np.asarray(values, dtype=np.float64)
                if vector.ndim != 1 or vector.size == 0:
                    raise ValueError(f"entry {text!r} in {identifier!r} is not a vector")
                # null decodes to NaN under float64
                if not np.isfinite(vector).all():
                    raise ValueError(
                        f"entry {text!r} in {identifier!r} has non-finite values"
                    )
                parsed[text] = vector
            store[identifier] = parsed
        return store
