"""Batch evaluation of test suites into an ordered report."""

import logging
import math
from decimal import ROUND_HALF_UP, Decimal

from ..embeddings.models import ModelConfiguration
from ..metrics import get_metric
from ..report import MetricResult, Report
from .evaluator import Evaluator
from .testcases import DirectPair, ModelMatrix, TermList, TestSuite

logger = logging.getLogger(__name__)

TERM_LIST_HEADER = ["model", "evaluation", "text-abbreviation", "term", "score"]
DIRECT_PAIR_HEADER = ["model", "evaluation", "first", "second", "score"]


def format_score(score: float) -> str:
    """Render a [0, 1] score as an integer percentage, e.g. ``"57%"``.

    The score is rounded to two decimals first (halves away from zero on the
    exact binary value), then scaled to a percentage and rounded again.
    """
    two_places = Decimal(score).quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)
    percent = math.floor(float(two_places) * 100 + 0.5)
    return f"{percent}%"


class BatchRunner:
    """Run every comparison a suite describes and collect the report.

    Rows are produced in a fixed order: models, then test cases, then terms,
    then metrics. The first failure aborts the whole run.

    Example:
        runner = BatchRunner(Evaluator(cache))
        report = await runner.run(suite)
        write_report(report, Path("output.csv"))
    """

    def __init__(self, evaluator: Evaluator, prefetch: bool = False):
        """Initialize runner.

        Args:
            evaluator: Evaluator used for every comparison
            prefetch: Fetch missing embeddings concurrently before scoring
        """
        self.evaluator = evaluator
        self.prefetch = prefetch

    async def run(self, suite: TestSuite) -> Report:
        """Evaluate a suite of any supported shape.

        Raises:
            TypeError: If suite is not a known shape
            EmbedScoreError: Propagated from the first failing comparison
        """
        if isinstance(suite, TermList):
            return await self._run_term_list(suite)
        if isinstance(suite, ModelMatrix):
            return await self._run_matrix(suite)
        if isinstance(suite, DirectPair):
            return await self._run_direct_pair(suite)
        raise TypeError(f"Unsupported test suite type: {type(suite).__name__}")

    async def _run_term_list(self, suite: TermList) -> Report:
        report = Report(header=list(TERM_LIST_HEADER), quoted_columns=frozenset({2, 3}))
        metric = get_metric(suite.metric)
        model = suite.model.identifier

        await self._prefetch(
            suite.model, [item.text for item in suite.texts] + list(suite.terms)
        )

        for item in suite.texts:
            for term in suite.terms:
                score = await self.evaluator.compare(item.text, term, suite.model, metric)
                formatted = format_score(score)
                report.results.append(
                    MetricResult(model, suite.metric, item.name, term, score)
                )
                report.rows.append([model, suite.metric, item.name, term, formatted])
                logger.info(f"[{item.name}] {suite.metric} with [{term}] = {formatted}")

        return report

    async def _run_matrix(self, suite: ModelMatrix) -> Report:
        report = Report(
            header=["model", "test-case", *suite.metrics],
            quoted_columns=frozenset({1}),
        )
        metrics = [(name, get_metric(name)) for name in suite.metrics]

        for config in suite.models:
            model = config.identifier
            await self._prefetch(
                config,
                [text for case in suite.cases for text in (case.first, case.second)],
            )

            for case in suite.cases:
                row = [model, case.name]
                for name, metric in metrics:
                    score = await self.evaluator.compare(
                        case.first, case.second, config, metric
                    )
                    formatted = format_score(score)
                    report.results.append(
                        MetricResult(model, name, case.name, case.second, score)
                    )
                    row.append(formatted)
                    logger.info(f"[{case.name}] {name} ({model}) = {formatted}")
                report.rows.append(row)

        return report

    async def _run_direct_pair(self, suite: DirectPair) -> Report:
        report = Report(
            header=list(DIRECT_PAIR_HEADER), quoted_columns=frozenset({2, 3})
        )
        model = suite.model.identifier

        score = await self.evaluator.compare(
            suite.first, suite.second, suite.model, get_metric(suite.metric)
        )
        formatted = format_score(score)
        report.results.append(
            MetricResult(model, suite.metric, suite.name, suite.second, score)
        )
        report.rows.append([model, suite.metric, suite.first, suite.second, formatted])
        logger.info(f"[{suite.first}] {suite.metric} with [{suite.second}] = {formatted}")

        return report

    async def _prefetch(self, config: ModelConfiguration, texts: list[str]) -> None:
        if self.prefetch:
            await self.evaluator.cache.prefetch(config, texts)
