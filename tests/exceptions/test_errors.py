"""Tests for the exception hierarchy."""

from pathlib import Path

import pytest

from metrics_tree.exceptions import (
    AnalysisError,
    BuildCancelledError,
    BuildIncompleteError,
    ConfigurationError,
    InvalidConfigError,
    InvalidPathError,
    MetricsTreeError,
    ParsingError,
    SourceAccessError,
    UndefinedValueError,
    UnknownMetricError,
)


class TestHierarchy:
    """Test that every error can be caught as MetricsTreeError."""

    @pytest.mark.parametrize(
        "error",
        [
            SourceAccessError(Path("a.py"), "denied"),
            ParsingError(Path("a.py"), "bad bytes"),
            UndefinedValueError("float()"),
            BuildIncompleteError("scope", "dependencies", "boom"),
            BuildCancelledError("scope", "dependencies"),
            InvalidPathError(Path("missing"), "Not a directory"),
            InvalidConfigError("workers", 0, "must be positive"),
            UnknownMetricError("XYZ"),
        ],
    )
    def test_base_class(self, error):
        assert isinstance(error, MetricsTreeError)

    def test_analysis_errors(self):
        assert issubclass(SourceAccessError, AnalysisError)
        assert issubclass(BuildCancelledError, BuildIncompleteError)

    def test_configuration_errors(self):
        assert issubclass(InvalidPathError, ConfigurationError)
        assert issubclass(UnknownMetricError, ConfigurationError)


class TestMessages:
    """Test messages and details."""

    def test_details_in_str(self):
        error = SourceAccessError(Path("pkg/a.py"), "denied")
        assert str(error) == "Cannot read source file: pkg/a.py (filepath=pkg/a.py, reason=denied)"
        assert error.reason == "denied"

    def test_no_details(self):
        assert str(MetricsTreeError("plain")) == "plain"

    def test_cancelled_default_reason(self):
        error = BuildCancelledError("scope", "package_model")
        assert error.reason == "cancelled"
        assert error.stage == "package_model"
        assert error.scope_key == "scope"

    def test_unknown_metric_code(self):
        assert UnknownMetricError("XYZ").code == "XYZ"
