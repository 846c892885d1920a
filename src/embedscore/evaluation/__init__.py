"""Similarity evaluation: single comparisons, test suites and batch runs."""

from .evaluator import Evaluator
from .runner import BatchRunner, format_score
from .testcases import (
    DirectPair,
    ModelMatrix,
    NamedText,
    PairedCase,
    TermList,
    TestSuite,
    load_test_cases,
    parse_test_cases,
)

__all__ = [
    "BatchRunner",
    "DirectPair",
    "Evaluator",
    "ModelMatrix",
    "NamedText",
    "PairedCase",
    "TermList",
    "TestSuite",
    "format_score",
    "load_test_cases",
    "parse_test_cases",
]
