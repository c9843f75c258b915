"""Configuration management for benchscope.

Values are resolved from explicit arguments, then environment variables
(``.env`` is loaded with python-dotenv), then ``configs/base.yaml``, then
the defaults below.
"""

import os
import warnings
from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Any, Dict, Optional

import yaml
from dotenv import load_dotenv

from benchscope.clients.browserscope_client import DEFAULT_BASE_URL
from benchscope.report.chart_data import CHART_KINDS
from benchscope.results.base import FILTER_MAP

load_dotenv()

# Root directories
PROJECT_ROOT = Path(__file__).resolve().parents[2]
CONFIG_DIR = PROJECT_ROOT / "configs"
RESULTS_DIR = PROJECT_ROOT / "results"


def _env_flag(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


@dataclass
class Timings:
    """Delays in seconds."""

    # Delay before refreshing the cumulative results after posting
    refresh: float = 3
    # Delay between load attempts
    retry: float = 5
    # Time to wait for a request to finish
    timeout: float = 10


@dataclass
class Texts:
    """Status messages shown in the output container."""

    empty: str = "No data available"
    error: str = "The get/post request has failed :("
    loading: str = "Loading cumulative results data..."
    post: str = "Posting results snapshot..."
    wait: str = "Benchmarks running. Please wait..."


@dataclass
class AppConfig:
    """Application configuration with environment-based defaults."""

    key: str = field(default_factory=lambda: os.getenv("BROWSERSCOPE_KEY", ""))
    base_url: str = field(default_factory=lambda: os.getenv("BROWSERSCOPE_URL", DEFAULT_BASE_URL))
    postable: bool = field(default_factory=lambda: _env_flag("BENCHSCOPE_POSTABLE", True))

    # Class name given to the user's browser name in charts
    ua_class: str = "rt-ua-cur"
    chart: str = "bar"
    filter_by: str = "all"

    timings: Timings = field(default_factory=Timings)
    texts: Texts = field(default_factory=Texts)

    def __post_init__(self):
        """Validate configuration after initialization."""
        self._validate()

    def _validate(self):
        """Validate configuration values."""
        if not self.key:
            warnings.warn("Browserscope key not set. Results cannot be loaded or posted.")

        if self.chart not in CHART_KINDS:
            raise ValueError(f"chart must be one of {', '.join(CHART_KINDS)}, got {self.chart}")

        if self.filter_by not in FILTER_MAP:
            raise ValueError(
                f"filter_by must be one of {', '.join(FILTER_MAP)}, got {self.filter_by}"
            )

        for timing in fields(Timings):
            value = getattr(self.timings, timing.name)
            if value <= 0:
                raise ValueError(f"timings.{timing.name} must be positive, got {value}")


def _find_config_file() -> Optional[Path]:
    """Find base.yaml config file."""
    possible_paths = [
        CONFIG_DIR / "base.yaml",
        Path("configs/base.yaml"),
    ]

    for config_path in possible_paths:
        if config_path.exists():
            return config_path

    return None


def _load_yaml(config_path: Path) -> Dict[str, Any]:
    with open(config_path) as f:
        return yaml.safe_load(f) or {}


def load_config(config_path: Optional[Path] = None, **overrides) -> AppConfig:
    """Load configuration from YAML with environment overrides.

    Args:
        config_path: YAML file; defaults to configs/base.yaml when present
        **overrides: Field values taking precedence over everything else

    Returns:
        Validated AppConfig

    Raises:
        FileNotFoundError: If an explicit config_path does not exist
        ValueError: On invalid values
    """
    if config_path is not None and not Path(config_path).exists():
        raise FileNotFoundError(f"Config file not found: {config_path}")

    path = Path(config_path) if config_path is not None else _find_config_file()
    data = _load_yaml(path) if path else {}

    browserscope = data.get("browserscope", {})
    chart = data.get("chart", {})

    values: Dict[str, Any] = {
        "key": os.getenv("BROWSERSCOPE_KEY", browserscope.get("key", "")),
        "base_url": os.getenv("BROWSERSCOPE_URL", browserscope.get("base_url", DEFAULT_BASE_URL)),
        "postable": _env_flag("BENCHSCOPE_POSTABLE", browserscope.get("postable", True)),
        "ua_class": chart.get("ua_class", "rt-ua-cur"),
        "chart": chart.get("kind", "bar"),
        "filter_by": chart.get("filter_by", "all"),
        "timings": Timings(**data.get("timings", {})),
        "texts": Texts(**data.get("texts", {})),
    }
    values.update({name: value for name, value in overrides.items() if value is not None})
    return AppConfig(**values)
