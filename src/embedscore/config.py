"""Configuration management for embedscore.

Loads configuration from ~/.config/embedscore/config.toml.
Priority chain: CLI flags > env vars > config file.
"""

import logging
import os
import tomllib
from dataclasses import dataclass
from pathlib import Path

from .embeddings.models import ModelConfiguration
from .errors import ConfigError
from .metrics import METRICS

logger = logging.getLogger(__name__)

CONFIG_DIR = Path.home() / ".config" / "embedscore"
CONFIG_PATH = CONFIG_DIR / "config.toml"

DEFAULT_CONFIG = """\
# embedscore configuration

[provider]
# Embedding provider: "openai"
name = "openai"

# Seconds to wait for a single embedding request
timeout = 5.0

[defaults]
# Model used when a test-case file does not name one
model = "text-embedding-3-large"

# Requested output dimensionality (omit for the model default)
dimensions = 1536

# Metric: "cosine", "euclidean", "manhattan", "negative-inner-product"
metric = "cosine"

[paths]
# Relative paths resolve against the working directory
test_cases = "test-cases.json"
output = "output.csv"

# Persisted embedding cache (defaults to ~/.cache/embedscore/embeddings.json)
# cache = "~/.cache/embedscore/embeddings.json"

[run]
# Fetch missing embeddings concurrently before scoring
prefetch = false

# API keys are read from environment variables (or a .env file), not this file:
#   OPENAI_API_KEY  - OpenAI provider
"""


@dataclass(frozen=True)
class ProviderConfig:
    """Embedding provider configuration."""

    name: str
    timeout: float


@dataclass(frozen=True)
class DefaultsConfig:
    """Model and metric used when a test-case file names none."""

    model: str
    dimensions: int | None
    metric: str

    @property
    def model_config(self) -> ModelConfiguration:
        return ModelConfiguration(model=self.model, dimensions=self.dimensions)


@dataclass(frozen=True)
class PathsConfig:
    """Input, output and cache locations."""

    test_cases: Path
    output: Path
    cache: Path | None


@dataclass(frozen=True)
class RunConfig:
    """Batch run behaviour."""

    prefetch: bool


@dataclass(frozen=True)
class EmbedScoreConfig:
    """Top-level embedscore configuration."""

    provider: ProviderConfig
    defaults: DefaultsConfig
    paths: PathsConfig
    run: RunConfig


def get_config_path() -> Path:
    """Config file location, overridable with EMBEDSCORE_CONFIG."""
    override = os.getenv("EMBEDSCORE_CONFIG")
    return Path(override).expanduser() if override else CONFIG_PATH


def generate_config(path: Path | None = None) -> Path:
    """Generate default config file, ~/.config/embedscore/config.toml by default."""
    path = path or get_config_path()
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(DEFAULT_CONFIG)
    return path


def load_config(path: Path | None = None) -> EmbedScoreConfig:
    """Load configuration from config file with env var overrides.

    On first run, generates the default config file and continues with it.

    Args:
        path: Config file to read instead of the default location

    Returns:
        Loaded and validated EmbedScoreConfig.

    Raises:
        ConfigError: If the file cannot be parsed or values are invalid.
    """
    path = path or get_config_path()

    if not path.exists():
        generate_config(path)
        logger.info(f"No config found. Generated {path} with defaults")

    try:
        with open(path, "rb") as f:
            data = tomllib.load(f)
    except (OSError, tomllib.TOMLDecodeError) as e:
        raise ConfigError(f"Failed to read config {path}: {e}", e) from e

    provider = data.get("provider", {})
    defaults = data.get("defaults", {})
    paths = data.get("paths", {})
    run = data.get("run", {})

    # Validate required fields
    missing = []
    if "name" not in provider:
        missing.append("provider.name")
    if "model" not in defaults:
        missing.append("defaults.model")
    if "metric" not in defaults:
        missing.append("defaults.metric")

    if missing:
        raise ConfigError(
            f"Missing required config values: {', '.join(missing)}. "
            f"Edit {path} or delete it to regenerate."
        )

    # Env vars override config file values
    timeout = _parse_float(
        "provider.timeout", os.getenv("EMBEDSCORE_TIMEOUT", provider.get("timeout", 5.0))
    )
    dimensions_raw = os.getenv("EMBEDSCORE_DIMENSIONS", defaults.get("dimensions"))
    metric = os.getenv("EMBEDSCORE_METRIC", defaults["metric"])
    cache_raw = os.getenv("EMBEDSCORE_CACHE", paths.get("cache"))

    if timeout <= 0:
        raise ConfigError(f"provider.timeout must be positive, got {timeout}")
    if metric not in METRICS:
        raise ConfigError(
            f"Unknown metric '{metric}'. Available metrics: {', '.join(METRICS)}"
        )

    return EmbedScoreConfig(
        provider=ProviderConfig(
            name=os.getenv("EMBEDSCORE_PROVIDER", provider["name"]),
            timeout=timeout,
        ),
        defaults=DefaultsConfig(
            model=os.getenv("EMBEDSCORE_MODEL", defaults["model"]),
            dimensions=_parse_dimensions(dimensions_raw),
            metric=metric,
        ),
        paths=PathsConfig(
            test_cases=Path(paths.get("test_cases", "test-cases.json")),
            output=Path(paths.get("output", "output.csv")),
            cache=Path(cache_raw).expanduser() if cache_raw else None,
        ),
        run=RunConfig(prefetch=bool(run.get("prefetch", False))),
    )


def _parse_float(name: str, value: object) -> float:
    try:
        return float(value)  # type: ignore[arg-type]
    except (TypeError, ValueError) as e:
        raise ConfigError(f"{name} must be a number, got {value!r}", e) from e


def _parse_dimensions(value: object) -> int | None:
    if value is None or value == "":
        return None
    try:
        dimensions = int(value)  # type: ignore[call-overload]
    except (TypeError, ValueError) as e:
        raise ConfigError(f"defaults.dimensions must be an integer, got {value!r}", e) from e
    if dimensions <= 0:
        raise ConfigError(f"defaults.dimensions must be positive, got {dimensions}")
    return dimensions
