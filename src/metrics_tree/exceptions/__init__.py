"""Exception hierarchy for metrics-tree."""

from .analysis import (
    AnalysisError,
    BuildCancelledError,
    BuildIncompleteError,
    ParsingError,
    SourceAccessError,
    UndefinedValueError,
)
from .base import MetricsTreeError
from .config import (
    ConfigurationError,
    InvalidConfigError,
    InvalidPathError,
    UnknownMetricError,
)

__all__ = [
    "MetricsTreeError",
    "AnalysisError",
    "SourceAccessError",
    "ParsingError",
    "UndefinedValueError",
    "BuildIncompleteError",
    "BuildCancelledError",
    "ConfigurationError",
    "InvalidPathError",
    "InvalidConfigError",
    "UnknownMetricError",
]
