"""Configuration exceptions: paths, settings, metric codes."""

from pathlib import Path
from typing import Any

from .base import MetricsTreeError


class ConfigurationError(MetricsTreeError):
    """Base class for configuration-related errors."""

    pass


class InvalidPathError(ConfigurationError):
    """Raised when a provided path is invalid."""

    def __init__(self, path: Path, reason: str):
        super().__init__(f"Invalid path: {path}", details={"path": str(path), "reason": reason})
        self.path = path
        self.reason = reason


class InvalidConfigError(ConfigurationError):
    """Raised when configuration values are invalid."""

    def __init__(self, key: str, value: Any, reason: str):
        super().__init__(
            f"Invalid configuration for {key}: {value}",
            details={"key": key, "value": str(value), "reason": reason},
        )
        self.key = key
        self.value = value
        self.reason = reason


class UnknownMetricError(ConfigurationError):
    """Raised when a metric code does not name a MetricType."""

    def __init__(self, code: str):
        super().__init__(f"Unknown metric code: {code}", details={"code": code})
        self.code = code
