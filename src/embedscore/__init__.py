"""embedscore - semantic similarity scoring with cached embeddings."""

__version__ = "0.1.0"
__all__ = ["compare_texts", "run_evaluation"]


def __getattr__(name: str):  # type: ignore[no-untyped-def]
    if name in __all__:
        from . import core

        return getattr(core, name)
    raise AttributeError(f"module 'embedscore' has no attribute {name!r}")
