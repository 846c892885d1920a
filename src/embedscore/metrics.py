"""Vector similarity metrics normalized to the [0, 1] range.

Every metric takes two equal-length vectors and returns a float where larger
means more similar. Distances are mapped through ``exp(-d)``, cosine is
rescaled from [-1, 1], and the inner product goes through a logistic sigmoid.
"""

import math
from collections.abc import Callable, Sequence
from typing import TypeAlias

import numpy as np

from .errors import DegenerateVectorError, DimensionMismatch

VectorLike: TypeAlias = np.ndarray | Sequence[float]
Metric: TypeAlias = Callable[[VectorLike, VectorLike], float]

# math.exp overflows just above 709; the sigmoid saturates long before that
_MAX_LOG = 700.0


def _as_vectors(vec1: VectorLike, vec2: VectorLike) -> tuple[np.ndarray, np.ndarray]:
    """Convert both inputs to finite 1-D float arrays of matching length.

    Raises:
        DimensionMismatch: If the vectors differ in length or are not 1-D
        DegenerateVectorError: If either vector holds NaN or infinite values
    """
    a = np.asarray(vec1, dtype=np.float64)
    b = np.asarray(vec2, dtype=np.float64)

    if a.ndim != 1 or b.ndim != 1 or a.shape != b.shape:
        raise DimensionMismatch(a.shape, b.shape)
    if not (np.isfinite(a).all() and np.isfinite(b).all()):
        raise DegenerateVectorError("Cannot score vectors containing NaN or infinite values")

    return a, b


def _peak(vector: np.ndarray) -> float:
    """Largest absolute component, 0.0 for an empty or zero vector."""
    return float(np.max(np.abs(vector))) if vector.size else 0.0


def check_dimensions(vec1: VectorLike, vec2: VectorLike) -> None:
    """Raise unless both vectors are finite, 1-D and of equal length."""
    _as_vectors(vec1, vec2)


def euclidean_similarity(vec1: VectorLike, vec2: VectorLike) -> float:
    """Return ``exp(-||a - b||_2)``; 1.0 for identical vectors."""
    a, b = _as_vectors(vec1, vec2)
    # Overflow to inf is the correct limit here: exp(-inf) == 0.0
    with np.errstate(over="ignore"):
        distance = float(np.sqrt(np.sum((a - b) ** 2)))
    return math.exp(-distance)


def manhattan_similarity(vec1: VectorLike, vec2: VectorLike) -> float:
    """Return ``exp(-||a - b||_1)``; 1.0 for identical vectors."""
    a, b = _as_vectors(vec1, vec2)
    with np.errstate(over="ignore"):
        distance = float(np.sum(np.abs(a - b)))
    return math.exp(-distance)


def cosine_similarity(vec1: VectorLike, vec2: VectorLike) -> float:
    """Return cosine similarity rescaled from [-1, 1] to [0, 1].

    Each vector is divided by its largest absolute component first. Cosine
    ignores magnitude, so this changes nothing except keeping the norms and
    the dot product inside float range.

    Raises:
        DimensionMismatch: If the vectors differ in length
        DegenerateVectorError: If either vector has zero magnitude or holds
            non-finite values
    """
    a, b = _as_vectors(vec1, vec2)
    peak1, peak2 = _peak(a), _peak(b)
    if peak1 == 0.0 or peak2 == 0.0:
        raise DegenerateVectorError(
            "Cosine similarity is undefined for a zero-magnitude vector"
        )

    a, b = a / peak1, b / peak2
    cosine = float(np.dot(a, b)) / (float(np.linalg.norm(a)) * float(np.linalg.norm(b)))

    # Clamp to valid range to handle floating point precision
    cosine = max(-1.0, min(1.0, cosine))
    return (cosine + 1.0) / 2.0


def _inner_product(a: np.ndarray, b: np.ndarray) -> float:
    """``a . b`` without intermediate overflow; saturates to +/-inf."""
    peak1, peak2 = _peak(a), _peak(b)
    if peak1 == 0.0 or peak2 == 0.0:
        return 0.0

    scaled = float(np.dot(a / peak1, b / peak2))
    if scaled == 0.0:
        return 0.0

    log_magnitude = math.log(abs(scaled)) + math.log(peak1) + math.log(peak2)
    if log_magnitude > _MAX_LOG:
        return math.copysign(math.inf, scaled)
    return math.copysign(math.exp(log_magnitude), scaled)


def negative_inner_product(vec1: VectorLike, vec2: VectorLike) -> float:
    """Return ``1 / (1 + exp(d))`` where ``d = -(a . b)``.

    Equivalent to the logistic sigmoid of the inner product, so a larger
    inner product yields a score closer to 1.
    """
    a, b = _as_vectors(vec1, vec2)
    distance = -_inner_product(a, b)

    # Branch on sign so exp() never overflows
    if distance >= 0:
        z = math.exp(-distance)
        return z / (1.0 + z)
    return 1.0 / (1.0 + math.exp(distance))


METRICS: dict[str, Metric] = {
    "euclidean": euclidean_similarity,
    "manhattan": manhattan_similarity,
    "cosine": cosine_similarity,
    "negative-inner-product": negative_inner_product,
}


def get_metric(name: str) -> Metric:
    """Look up a metric function by name.

    Raises:
        KeyError: If no metric is registered under that name
    """
    if name not in METRICS:
        available = ", ".join(METRICS)
        raise KeyError(f"Metric '{name}' not found. Available metrics: {available}")
    return METRICS[name]
