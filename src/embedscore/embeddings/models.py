"""Embedding models and constants for similarity evaluation."""

from dataclasses import dataclass
from typing import Any, TypeAlias

import numpy as np

# Model configuration constants
DEFAULT_MODEL = "text-embedding-3-large"
DEFAULT_DIMENSIONS = 1536

# Type alias for clarity
Embedding: TypeAlias = np.ndarray  # Shape: (dimensions,)


@dataclass(frozen=True)
class ModelConfiguration:
    """Embedding model plus the parameters that shape its output.

    Two configurations are equal iff every field matches, which makes an
    instance usable as a cache namespace.

    Attributes:
        model: Provider model name (e.g., "text-embedding-3-large")
        dimensions: Requested output dimensionality, None for the model default
    """

    model: str
    dimensions: int | None = None

    def __post_init__(self) -> None:
        if not self.model:
            raise ValueError("Model name cannot be empty")
        if self.dimensions is not None and self.dimensions <= 0:
            raise ValueError(
                f"dimensions must be a positive integer, got {self.dimensions}"
            )

    @property
    def identifier(self) -> str:
        """Stable string used as cache namespace and report label."""
        if self.dimensions is None:
            return self.model
        return f"{self.model}[{self.dimensions}]"

    def request_params(self) -> dict[str, Any]:
        """Keyword arguments sent to the provider for this configuration."""
        params: dict[str, Any] = {"model": self.model}
        if self.dimensions is not None:
            params["dimensions"] = self.dimensions
        return params

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "ModelConfiguration":
        """Build a configuration from a `{"model": ..., "dimensions": ...}` mapping.

        Raises:
            ValueError: If the mapping has no model name or bad dimensions
        """
        if not isinstance(data, dict) or "model" not in data:
            raise ValueError(f"Model configuration needs a 'model' field: {data!r}")
        dimensions = data.get("dimensions")
        if dimensions is not None and (
            isinstance(dimensions, bool) or not isinstance(dimensions, int)
        ):
            raise ValueError(f"dimensions must be an integer, got {dimensions!r}")
        return cls(model=str(data["model"]), dimensions=dimensions)

    def __str__(self) -> str:
        return self.identifier
