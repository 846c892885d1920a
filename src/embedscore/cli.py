"""Typer CLI definition for embedscore."""

import asyncio
import logging
from pathlib import Path
from typing import NoReturn

import typer
from dotenv import load_dotenv

from .cache import get_default_cache_path
from .cache.store import EmbeddingCache
from .config import EmbedScoreConfig, load_config
from .core import compare_texts, run_evaluation
from .embeddings.models import ModelConfiguration
from .errors import (
    CacheIOError,
    ConfigError,
    DegenerateVectorError,
    DimensionMismatch,
    ProviderAuthError,
    ProviderError,
    TestCaseError,
)
from .metrics import METRICS
from .report import write_report

app = typer.Typer(help="Score text similarity across embedding models and metrics")


def configure_logging(debug: bool) -> None:
    """Send log output to stderr; scores at INFO, cache activity at DEBUG."""
    if debug:
        logging.basicConfig(
            level=logging.DEBUG,
            format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
            force=True,
        )
    else:
        logging.basicConfig(level=logging.INFO, format="%(message)s", force=True)


def _load(config_path: Path | None, debug: bool) -> EmbedScoreConfig:
    load_dotenv()
    configure_logging(debug)
    try:
        return load_config(config_path)
    except ConfigError as e:
        _fail(e, debug, "Configuration error")


def _fail(error: Exception, debug: bool, label: str) -> NoReturn:
    if debug:
        typer.echo(f"Debug - {label}: {error!r}", err=True)
    else:
        typer.echo(f"Error: {error}", err=True)
    raise typer.Exit(1) from None


def _handle_errors(error: Exception, debug: bool) -> NoReturn:
    """Map a failed run to a one-line message and exit code 1."""
    if isinstance(error, ProviderAuthError):
        _fail(error, debug, "Authentication error")
    elif isinstance(error, ProviderError):
        _fail(error, debug, "Provider error")
    elif isinstance(error, CacheIOError):
        _fail(error, debug, "Cache error")
    elif isinstance(error, (DimensionMismatch, DegenerateVectorError)):
        _fail(error, debug, "Metric error")
    elif isinstance(error, (TestCaseError, ConfigError)):
        _fail(error, debug, "Input error")
    elif isinstance(error, KeyError):
        _fail(error, debug, "Lookup error")
    elif isinstance(error, OSError):
        _fail(error, debug, "File system error")
    else:
        if debug:
            typer.echo(f"Debug - Unexpected error: {error!r}", err=True)
        else:
            typer.echo("Error: An unexpected error occurred", err=True)
        raise typer.Exit(1) from None


@app.command()
def run(
    cases: Path | None = typer.Option(
        None, "-c", "--cases", help="Test-case JSON file (from config if omitted)"
    ),
    output: Path | None = typer.Option(
        None, "-o", "--output", help="CSV report path (from config if omitted)"
    ),
    cache: Path | None = typer.Option(None, "--cache", help="Embedding cache file"),
    config: Path | None = typer.Option(None, "--config", help="Config file path"),
    prefetch: bool | None = typer.Option(
        None,
        "--prefetch/--no-prefetch",
        help="Fetch missing embeddings concurrently before scoring",
    ),
    debug: bool = typer.Option(
        False, "--debug", help="Show verbose error messages and cache activity"
    ),
) -> None:
    """Evaluate every test case and write the CSV report."""
    settings = _load(config, debug)

    try:
        report, path = asyncio.run(
            run_evaluation(
                settings,
                cases_path=cases,
                output_path=output,
                cache_path=cache,
                prefetch=prefetch,
            )
        )
    except Exception as e:
        _handle_errors(e, debug)

    typer.echo(f"Scores for {len(report.rows)} rows saved to {path}")


@app.command()
def compare(
    first: str = typer.Argument(..., help="First text"),
    second: str = typer.Argument(..., help="Second text"),
    model: str | None = typer.Option(
        None, "-m", "--model", help="Embedding model (from config if omitted)"
    ),
    dimensions: int | None = typer.Option(
        None, "-d", "--dimensions", help="Requested embedding dimensions"
    ),
    metric: str | None = typer.Option(
        None, "--metric", help=f"One of: {', '.join(METRICS)}"
    ),
    output: Path | None = typer.Option(
        None, "-o", "--output", help="Also write the single-row CSV report"
    ),
    cache: Path | None = typer.Option(None, "--cache", help="Embedding cache file"),
    config: Path | None = typer.Option(None, "--config", help="Config file path"),
    debug: bool = typer.Option(False, "--debug", help="Show verbose error messages"),
) -> None:
    """Score the similarity of two texts directly."""
    settings = _load(config, debug)

    # Configured dimensions belong to the configured model only
    model_config = None
    if model is not None or dimensions is not None:
        try:
            model_config = ModelConfiguration(
                model=model or settings.defaults.model, dimensions=dimensions
            )
        except ValueError as e:
            _fail(e, debug, "Input error")

    try:
        report = asyncio.run(
            compare_texts(
                first,
                second,
                settings,
                model=model_config,
                metric=metric,
                cache_path=cache,
            )
        )
        if output:
            write_report(report, output)
    except Exception as e:
        _handle_errors(e, debug)

    typer.echo(report.rows[0][-1])


@app.command("cache-info")
def cache_info(
    cache: Path | None = typer.Option(None, "--cache", help="Embedding cache file"),
    config: Path | None = typer.Option(None, "--config", help="Config file path"),
    debug: bool = typer.Option(False, "--debug", help="Show verbose error messages"),
) -> None:
    """Show how many embeddings are cached per model."""
    settings = _load(config, debug)
    store = EmbeddingCache(cache or settings.paths.cache or get_default_cache_path())
    store.load()

    if store.diagnostic:
        typer.echo(f"Warning: {store.diagnostic}", err=True)

    typer.echo(f"Cache: {store.path}")
    models = store.models()
    if not models:
        typer.echo("No cached embeddings")
        return
    for identifier, count in sorted(models.items()):
        typer.echo(f"  {identifier}: {count}")
    typer.echo(f"Total: {len(store)}")


@app.command("clear-cache")
def clear_cache(
    cache: Path | None = typer.Option(None, "--cache", help="Embedding cache file"),
    config: Path | None = typer.Option(None, "--config", help="Config file path"),
    debug: bool = typer.Option(False, "--debug", help="Show verbose error messages"),
) -> None:
    """Delete the persisted embedding cache."""
    settings = _load(config, debug)
    store = EmbeddingCache(cache or settings.paths.cache or get_default_cache_path())

    try:
        store.clear()
    except CacheIOError as e:
        _fail(e, debug, "Cache error")

    typer.echo(f"Cleared {store.path}")


@app.command("metrics")
def list_metrics() -> None:
    """List available similarity metrics."""
    for name in METRICS:
        typer.echo(name)
