"""Analysis-related exceptions: source access, parsing, undefined values, builds."""

from pathlib import Path
from typing import Optional

from .base import MetricsTreeError


class AnalysisError(MetricsTreeError):
    """Base class for analysis-related errors."""

    pass


class SourceAccessError(AnalysisError):
    """Raised when a compilation unit cannot be read."""

    def __init__(self, filepath: Path, reason: str):
        super().__init__(
            f"Cannot read source file: {filepath}",
            details={"filepath": str(filepath), "reason": reason},
        )
        self.filepath = filepath
        self.reason = reason


class ParsingError(AnalysisError):
    """Raised when source content cannot be parsed at all."""

    def __init__(self, filepath: Path, reason: str):
        super().__init__(
            f"Failed to parse Python file: {filepath}",
            details={"filepath": str(filepath), "reason": reason},
        )
        self.filepath = filepath
        self.reason = reason


class UndefinedValueError(AnalysisError):
    """Raised when an UNDEFINED metric value is forced into a number."""

    def __init__(self, operation: str):
        super().__init__(
            f"Cannot convert an undefined metric value with {operation}",
            details={"operation": operation},
        )
        self.operation = operation


class BuildIncompleteError(AnalysisError):
    """Raised to callers waiting on a stage build that did not complete.

    The cache never holds a partial generation when this is raised.
    """

    def __init__(self, scope_key: str, stage: str, reason: str):
        super().__init__(
            f"Build of {stage} for {scope_key} did not complete",
            details={"scope": scope_key, "stage": stage, "reason": reason},
        )
        self.scope_key = scope_key
        self.stage = stage
        self.reason = reason


class BuildCancelledError(BuildIncompleteError):
    """Raised when a stage build was cancelled or its generation invalidated."""

    def __init__(self, scope_key: str, stage: str, reason: Optional[str] = None):
        super().__init__(scope_key, stage, reason or "cancelled")
