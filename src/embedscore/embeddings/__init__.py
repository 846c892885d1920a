"""Embedding types and model configuration."""

from .models import Embedding, ModelConfiguration

__all__ = ["Embedding", "ModelConfiguration"]
