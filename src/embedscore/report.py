"""Tabular similarity report and its CSV rendering."""

import logging
from dataclasses import dataclass, field
from pathlib import Path

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class MetricResult:
    """One computed score, before formatting.

    Attributes:
        model: Model configuration identifier
        metric: Metric name
        case: Test-case name
        comparand: What the case was compared with (term or second text)
        score: Normalized score in [0, 1]
    """

    model: str
    metric: str
    case: str
    comparand: str
    score: float


@dataclass
class Report:
    """Header, formatted rows and raw results in evaluation order.

    Attributes:
        header: Column names
        rows: One list of rendered cells per evaluated item
        quoted_columns: Indexes of columns holding comparand text
        results: Every score behind the rows, in the order computed
    """

    header: list[str]
    rows: list[list[str]] = field(default_factory=list)
    quoted_columns: frozenset[int] = frozenset()
    results: list[MetricResult] = field(default_factory=list)


def _quote(value: str) -> str:
    return '"' + value.replace('"', '""') + '"'


def render_csv(report: Report) -> str:
    """Render the report as comma-separated text.

    Comparand columns are always quoted; rows are joined with newlines.
    """
    lines = [",".join(report.header)]
    for row in report.rows:
        lines.append(
            ",".join(
                _quote(value) if index in report.quoted_columns else value
                for index, value in enumerate(row)
            )
        )
    return "\n".join(lines)


def write_report(report: Report, path: Path) -> Path:
    """Write the report as CSV to path, replacing any existing file.

    Raises:
        OSError: If the file cannot be written
    """
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(render_csv(report), encoding="utf-8")
    logger.debug(f"Wrote {len(report.rows)} rows to {path}")
    return path
