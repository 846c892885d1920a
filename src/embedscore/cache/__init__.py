"""Embedding cache for embedscore."""

from pathlib import Path

CACHE_FILENAME = "embeddings.json"


def get_cache_dir() -> Path:
    """Get or create the embedscore cache directory.

    Creates ~/.cache/embedscore/ if it doesn't exist.

    Returns:
        Path to the cache directory
    """
    cache_dir = Path.home() / ".cache" / "embedscore"
    cache_dir.mkdir(parents=True, exist_ok=True)
    return cache_dir


def get_default_cache_path() -> Path:
    """Path of the persisted embedding store inside the cache directory."""
    return get_cache_dir() / CACHE_FILENAME
