"""
Tests for Custom Exceptions

Tests exception attributes, inheritance, and chaining.
"""

import pytest

from tidyflow.core.exceptions import (
    PipelineException,
    ConfigurationError,
    DataReaderError,
    DataValidationError,
    SchemaValidationError,
    MissingValueError,
    JoinIntegrityError,
    FeatureEngineeringError,
    ModelTrainingError,
    RankDeficiencyError,
    ConvergenceError,
    PredictionError,
    UnseenCategoryError,
    EvaluationError,
    ArtifactError,
)


class TestPipelineException:
    """Test suite for base PipelineException."""

    def test_message_stored(self):
        error = PipelineException("Test error message")

        assert "Test error message" in str(error)
        assert error.message == "Test error message"

    def test_details_in_str(self):
        error = PipelineException("Test error", details={"key": "value"})

        assert error.details == {"key": "value"}
        assert "Details" in str(error)

    def test_cause_chained(self):
        original = ValueError("Original error")
        error = PipelineException("Wrapper error", cause=original)

        assert error.cause is original
        assert "Caused by: Original error" in str(error)

    def test_to_dict(self):
        error = ConfigurationError("bad", details={"prop": 2})
        result = error.to_dict()

        assert result["type"] == "ConfigurationError"
        assert result["message"] == "bad"
        assert result["details"] == {"prop": 2}
        assert result["cause"] is None


class TestHierarchy:
    """Data, fitting and prediction failures are distinguishable."""

    @pytest.mark.parametrize("exc_class", [
        SchemaValidationError, MissingValueError, JoinIntegrityError,
    ])
    def test_data_validation_family(self, exc_class):
        assert issubclass(exc_class, DataValidationError)

    @pytest.mark.parametrize("exc_class", [RankDeficiencyError, ConvergenceError])
    def test_fitting_family(self, exc_class):
        assert issubclass(exc_class, ModelTrainingError)

    def test_unseen_category_is_prediction_error(self):
        assert issubclass(UnseenCategoryError, PredictionError)

    @pytest.mark.parametrize("exc_class", [
        ConfigurationError, DataReaderError, DataValidationError,
        FeatureEngineeringError, ModelTrainingError, PredictionError,
        EvaluationError, ArtifactError,
    ])
    def test_all_derive_from_base(self, exc_class):
        assert issubclass(exc_class, PipelineException)


class TestSpecificAttributes:
    """Subclass-specific attributes."""

    def test_data_reader_source(self):
        error = DataReaderError("unreachable", source="https://example.org/x.csv")

        assert error.source == "https://example.org/x.csv"
        assert "Source: https://example.org/x.csv" in str(error)

    def test_join_integrity_counts(self):
        error = JoinIntegrityError("dup", left_rows=10, right_rows=5, result_rows=12)

        assert (error.left_rows, error.right_rows, error.result_rows) == (10, 5, 12)

    def test_rank_deficiency(self):
        error = RankDeficiencyError("aliased", rank=3, n_columns=4, model_name="lm")

        assert error.rank == 3
        assert error.n_columns == 4
        assert "Model: lm" in str(error)

    def test_unseen_category_levels(self):
        error = UnseenCategoryError("unseen", column="dest", levels=["LEX"])

        assert error.column == "dest"
        assert error.levels == ["LEX"]
        assert "LEX" in str(error)

    def test_convergence_diagnostics_default(self):
        assert ConvergenceError("no").diagnostics == {}

    def test_validation_error_count(self):
        error = DataValidationError("bad", validation_errors=[{"a": 1}, {"b": 2}])

        assert "2 validation error(s)" in str(error)
