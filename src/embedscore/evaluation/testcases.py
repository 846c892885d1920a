"""Test-case documents and their three supported shapes.

A test-case file is JSON in one of three layouts, detected once at load time:

- term list: ``{"texts": [{"name", "text"}], "terms": [...]}``; every text is
  compared against every term under one model and one metric.
- model matrix: ``{"models": [...], "metrics": [...], "cases": [{"name",
  "first", "second"}]}``; every case is scored under every model and metric.
- direct pair: ``{"first": ..., "second": ...}``; a single comparison.

``model`` and ``metric`` may be omitted from the term-list and direct-pair
layouts, in which case the configured defaults are used.
"""

import json
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, TypeAlias

from ..embeddings.models import ModelConfiguration
from ..errors import TestCaseError
from ..metrics import METRICS

logger = logging.getLogger(__name__)

EXAMPLE_TEST_CASES: dict[str, Any] = {
    "terms": [
        "rat",
        "hat",
        "cat",
        "building",
        "construction worker",
        "president",
        "cheese",
        "Bjorn Borg",
        "kitchenette",
        "makeup",
    ],
    "texts": [{"name": "The rat in a hat", "text": "The rat in a hat"}],
}


@dataclass(frozen=True)
class NamedText:
    """A text to compare, with the short name used in the report."""

    name: str
    text: str


@dataclass(frozen=True)
class PairedCase:
    """Two texts compared directly with each other."""

    name: str
    first: str
    second: str


@dataclass(frozen=True)
class TermList:
    """Every text against every term, one model, one metric."""

    texts: tuple[NamedText, ...]
    terms: tuple[str, ...]
    model: ModelConfiguration
    metric: str


@dataclass(frozen=True)
class ModelMatrix:
    """Every case under every model, one score column per metric."""

    models: tuple[ModelConfiguration, ...]
    metrics: tuple[str, ...]
    cases: tuple[PairedCase, ...]


@dataclass(frozen=True)
class DirectPair:
    """A single comparison of two texts."""

    first: str
    second: str
    model: ModelConfiguration
    metric: str
    name: str = "direct"


TestSuite: TypeAlias = TermList | ModelMatrix | DirectPair


def write_example(path: Path) -> Path:
    """Write the example term-list document to path."""
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(EXAMPLE_TEST_CASES, indent=2), encoding="utf-8")
    return path


def load_test_cases(
    path: Path,
    default_model: ModelConfiguration,
    default_metric: str,
) -> TestSuite:
    """Load a test-case file, creating the example document if it is absent.

    Args:
        path: JSON test-case file
        default_model: Model used when the document names none
        default_metric: Metric used when the document names none

    Returns:
        The parsed suite as one of TermList, ModelMatrix or DirectPair

    Raises:
        TestCaseError: If the file cannot be read or matches no layout
    """
    if not path.exists():
        write_example(path)
        logger.info(f"No test cases found. Wrote example to {path}")

    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, UnicodeDecodeError, json.JSONDecodeError) as e:
        raise TestCaseError(f"Failed to read test cases from {path}: {e}", e) from e

    return parse_test_cases(data, default_model, default_metric)


def parse_test_cases(
    data: Any,
    default_model: ModelConfiguration,
    default_metric: str,
) -> TestSuite:
    """Resolve a decoded document into its tagged suite type.

    Raises:
        TestCaseError: If the document matches no layout or has bad fields
    """
    if not isinstance(data, dict):
        raise TestCaseError("Test-case document must be a JSON object")

    try:
        if "models" in data or "cases" in data:
            return _parse_matrix(data)
        if "terms" in data or "texts" in data:
            return _parse_term_list(data, default_model, default_metric)
        if "first" in data or "second" in data:
            return _parse_direct_pair(data, default_model, default_metric)
    except (AttributeError, KeyError, TypeError, ValueError) as e:
        raise TestCaseError(f"Invalid test-case document: {e}", e) from e

    raise TestCaseError(
        "Unrecognized test-case document: expected 'terms'/'texts', "
        "'models'/'metrics'/'cases' or 'first'/'second'"
    )


def _parse_term_list(
    data: dict[str, Any], default_model: ModelConfiguration, default_metric: str
) -> TermList:
    texts = tuple(
        NamedText(name=_string(item.get("name", item["text"])), text=_string(item["text"]))
        for item in _list(data, "texts")
    )
    terms = tuple(_string(term) for term in _list(data, "terms"))
    return TermList(
        texts=texts,
        terms=terms,
        model=_model(data.get("model"), default_model),
        metric=_metric(data.get("metric", default_metric)),
    )


def _parse_matrix(data: dict[str, Any]) -> ModelMatrix:
    models = tuple(ModelConfiguration.from_dict(item) for item in _list(data, "models"))
    metrics = tuple(_metric(name) for name in _list(data, "metrics"))
    cases = tuple(
        PairedCase(
            name=_string(item["name"]),
            first=_string(item["first"]),
            second=_string(item["second"]),
        )
        for item in _list(data, "cases")
    )
    return ModelMatrix(models=models, metrics=metrics, cases=cases)


def _parse_direct_pair(
    data: dict[str, Any], default_model: ModelConfiguration, default_metric: str
) -> DirectPair:
    return DirectPair(
        first=_string(data["first"]),
        second=_string(data["second"]),
        model=_model(data.get("model"), default_model),
        metric=_metric(data.get("metric", default_metric)),
        name=_string(data.get("name", "direct")),
    )


def _list(data: dict[str, Any], field: str) -> list[Any]:
    value = data[field]
    if not isinstance(value, list) or not value:
        raise ValueError(f"'{field}' must be a non-empty list")
    return value


def _string(value: Any) -> str:
    if not isinstance(value, str):
        raise TypeError(f"expected a string, got {value!r}")
    return value


def _model(value: Any, default: ModelConfiguration) -> ModelConfiguration:
    if value is None:
        return default
    if isinstance(value, str):
        return ModelConfiguration(model=value)
    return ModelConfiguration.from_dict(value)


def _metric(name: Any) -> str:
    if name not in METRICS:
        raise ValueError(
            f"unknown metric {name!r}, expected one of {', '.join(METRICS)}"
        )
    return name
