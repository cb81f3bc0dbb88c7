"""Configuration loading and management for metrics-tree.

This module is the settings provider of the pipeline: it answers which
metrics are enabled, which files belong to a scope and how builds run.
Configuration sources are merged in priority order:
    1. Defaults (defined in MetricsConfig)
    2. Global config (~/.metrics-tree.toml)
    3. Project config (./metrics-tree.toml)
    4. Explicit config file
    5. Environment variables (METRICS_TREE_* prefix)
    6. CLI overrides (passed as kwargs)

Example:
    >>> config = load_config(workers=2, disabled_metrics=["CCM"])
    >>> config.workers
    2
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import TYPE_CHECKING, Any, Literal, Optional, get_type_hints

from .exceptions import ConfigurationError, InvalidConfigError, UnknownMetricError

if TYPE_CHECKING:
    from .metrics.profiles import Profile
    from .metrics.types import MetricType

Verbosity = Literal["quiet", "normal", "verbose"]

ENV_PREFIX = "METRICS_TREE_"
CONFIG_FILENAME = "metrics-tree.toml"


@dataclass(frozen=True)
class MetricsConfig:
    """Configuration for metric computation.

    Attributes:
        Performance tuning:
            workers: Number of parallel workers (None = auto-detect)
            parallel_threshold: Minimum files in a scope before per-file work is parallel
            build_timeout_seconds: Default wait for a blocking stage request (0 = no limit)

        Scope:
            tracked_extensions: Source extensions belonging to a scope and watched for changes
            exclude_patterns: Glob patterns (relative paths) excluded from a scope
            follow_symlinks: Follow symbolic links during enumeration

        Metrics:
            enabled_metrics: Metric codes to compute (empty = all)
            disabled_metrics: Metric codes never computed
            profiles: Named fitness profiles, ``{name: {code: [low, high]}}``

        Change notification:
            debounce_ms: Watcher debounce before invalidating a scope

        Output control:
            verbosity: Logging verbosity level
    """

    # Performance tuning
    workers: Optional[int] = None
    parallel_threshold: int = 10
    build_timeout_seconds: float = 0.0

    # Scope
    tracked_extensions: list[str] = field(default_factory=lambda: [".py"])
    exclude_patterns: list[str] = field(
        default_factory=lambda: [
            "venv/*",
            ".venv/*",
            "__pycache__/*",
            ".tox/*",
            ".mypy_cache/*",
            "build/*",
            "dist/*",
            "*.egg-info/*",
            ".eggs/*",
            "node_modules/*",
        ]
    )
    follow_symlinks: bool = False

    # Metrics
    enabled_metrics: list[str] = field(default_factory=list)
    disabled_metrics: list[str] = field(default_factory=list)
    profiles: dict[str, dict[str, list[float]]] = field(default_factory=dict)

    # Change notification
    debounce_ms: int = 1600

    # Output control
    verbosity: Verbosity = "normal"

    def __post_init__(self) -> None:
        """Validate configuration after initialization."""
        if self.workers is not None and self.workers < 1:
            raise ValueError("workers must be at least 1")
        if self.parallel_threshold < 1:
            raise ValueError("parallel_threshold must be at least 1")
        if self.build_timeout_seconds < 0:
            raise ValueError("build_timeout_seconds must be non-negative")
        if self.debounce_ms < 0:
            raise ValueError("debounce_ms must be non-negative")
        if not self.tracked_extensions:
            raise ValueError("tracked_extensions must not be empty")
        for ext in self.tracked_extensions:
            if not ext.startswith("."):
                raise ValueError(f"tracked extension must start with '.': {ext}")
        if self.verbosity not in ("quiet", "normal", "verbose"):
            raise ValueError(f"unknown verbosity: {self.verbosity}")

        # Resolve metric codes eagerly so a typo fails at load time
        for code in list(self.enabled_metrics) + list(self.disabled_metrics):
            _metric_type(code)

    @property
    def enabled_metric_types(self) -> frozenset["MetricType"]:
        """The enabled-set query consumed once per stage build."""
        from .metrics.types import MetricType

        if self.enabled_metrics:
            enabled = {_metric_type(code) for code in self.enabled_metrics}
        else:
            enabled = set(MetricType)
        return frozenset(enabled - {_metric_type(code) for code in self.disabled_metrics})

    def is_enabled(self, metric_type: "MetricType") -> bool:
        """Return True when ``metric_type`` should be computed."""
        if metric_type.value in self.disabled_metrics:
            return False
        return not self.enabled_metrics or metric_type.value in self.enabled_metrics

    def get_profiles(self) -> list["Profile"]:
        """Build the configured fitness profiles."""
        from .metrics.profiles import Profile, Range

        result = []
        for name, ranges in sorted(self.profiles.items()):
            parsed = {}
            for code, bounds in ranges.items():
                if len(bounds) != 2:
                    raise InvalidConfigError(f"profiles.{name}.{code}", bounds, "expected [low, high]")
                parsed[_metric_type(code)] = Range(float(bounds[0]), float(bounds[1]))
            result.append(Profile(name, parsed))
        return result


def _metric_type(code: str) -> "MetricType":
    from .metrics.types import MetricType

    try:
        return MetricType(code)
    except ValueError:
        raise UnknownMetricError(code) from None


def load_config(config_file: Optional[Path] = None, **overrides) -> MetricsConfig:
    """Load configuration with auto-discovery and merging.

    Args:
        config_file: Optional explicit config file path
        **overrides: Direct overrides (typically from CLI flags). ``None``
            values are ignored so optional CLI flags can be passed through.

    Returns:
        Validated MetricsConfig instance

    Raises:
        ConfigurationError: If a config file is invalid or missing
    """
    merged: dict = {}

    global_config = Path.home() / f".{CONFIG_FILENAME}"
    if global_config.exists():
        try:
            merged.update(_load_toml_file(global_config))
        except Exception as e:
            raise ConfigurationError(f"Invalid global config '{global_config}': {e}")

    project_config = Path.cwd() / CONFIG_FILENAME
    if project_config.exists():
        try:
            merged.update(_load_toml_file(project_config))
        except Exception as e:
            raise ConfigurationError(f"Invalid project config '{project_config}': {e}")

    if config_file is not None:
        if not config_file.exists():
            raise ConfigurationError(f"Config file not found: {config_file}")
        try:
            merged.update(_load_toml_file(config_file))
        except Exception as e:
            raise ConfigurationError(f"Invalid config file '{config_file}': {e}")

    merged.update(_load_env_vars())

    if overrides.pop("verbose", False):
        overrides["verbosity"] = "verbose"
    if overrides.pop("quiet", False):
        overrides["verbosity"] = "quiet"
    merged.update({k: v for k, v in overrides.items() if v is not None})

    try:
        return MetricsConfig(**merged)
    except TypeError as e:
        # Unknown field in config
        raise ConfigurationError(f"Invalid configuration: {e}")
    except ValueError as e:
        raise ConfigurationError(f"Invalid configuration: {e}")


def _load_env_vars() -> dict[str, Any]:
    """Load configuration from METRICS_TREE_* environment variables.

    List fields accept comma-separated values, e.g.
    ``METRICS_TREE_DISABLED_METRICS=CCM,MMI``.
    """
    type_hints = get_type_hints(MetricsConfig)

    result: dict[str, Any] = {}

    for field_name in MetricsConfig.__dataclass_fields__:
        env_key = f"{ENV_PREFIX}{field_name.upper()}"
        env_value = os.environ.get(env_key)

        if env_value is None:
            continue

        type_hint = type_hints.get(field_name)
        if type_hint is None:
            continue

        try:
            parsed = _parse_env_value(env_value, type_hint, field_name)
            if parsed is not None:
                result[field_name] = parsed
        except ValueError as e:
            raise ConfigurationError(f"Invalid {env_key}: {e}")

    return result


def _parse_env_value(value: str, type_hint: Any, field_name: str) -> Any:
    """Parse environment variable string to the correct type.

    Args:
        value: Raw string from environment
        type_hint: Type annotation from dataclass
        field_name: Field name for error messages

    Returns:
        Parsed value or None if the field cannot be set from the environment

    Raises:
        ValueError: If value can't be parsed to expected type
    """
    origin = getattr(type_hint, "__origin__", None)

    # Handle Optional[X] which is Union[X, None]
    args = getattr(type_hint, "__args__", ())
    if type(None) in args:
        non_none_types = [t for t in args if t is not type(None)]
        if non_none_types:
            type_hint = non_none_types[0]
            origin = getattr(type_hint, "__origin__", None)

    if origin is dict or type_hint is dict:
        return None

    if origin is list or type_hint is list:
        return [item.strip() for item in value.split(",") if item.strip()]

    if type_hint is bool:
        lower = value.lower()
        if lower in ("true", "1", "yes", "on"):
            return True
        elif lower in ("false", "0", "no", "off"):
            return False
        else:
            raise ValueError(f"expected true/false, got '{value}'")

    if type_hint is int:
        return int(value)

    if type_hint is float:
        return float(value)

    if type_hint is str or origin is Literal:
        return value

    return None


def _load_toml_file(path: Path) -> dict:
    """Load TOML file and return parsed dict."""
    try:
        import tomllib
    except ModuleNotFoundError:
        import tomli as tomllib  # type: ignore[no-redef]

    with open(path, "rb") as f:
        return tomllib.load(f)
