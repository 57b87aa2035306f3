"""
Custom Exceptions for the Modelling Pipelines

Provides a hierarchy of exceptions that separates data validation failures,
fitting failures and prediction failures. Every error is fatal to the
current run; nothing is retried.
"""

from typing import Any, Dict, List, Optional


class PipelineException(Exception):
    """
    Base exception for all pipeline errors.

    All custom exceptions inherit from this class.
    """

    def __init__(
        self,
        message: str,
        details: Optional[Dict[str, Any]] = None,
        cause: Optional[Exception] = None
    ):
        """
        Initialize the exception.

        Args:
            message: Error message
            details: Additional error details
            cause: Original exception that caused this error
        """
        super().__init__(message)
        self.message = message
        self.details = details or {}
        self.cause = cause

    def __str__(self) -> str:
        result = self.message
        if self.details:
            result += f" | Details: {self.details}"
        if self.cause:
            result += f" | Caused by: {self.cause}"
        return result

    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to dictionary for logging/serialization."""
        return {
            "type": self.__class__.__name__,
            "message": self.message,
            "details": self.details,
            "cause": str(self.cause) if self.cause else None
        }


class ConfigurationError(PipelineException):
    """
    Raised when there's a configuration error.

    Examples:
    - Split proportion outside (0, 1)
    - Unknown model engine
    - Configuration file not found
    """
    pass


class DataReaderError(PipelineException):
    """
    Raised when a data source cannot be read.

    Examples:
    - Remote CSV unreachable
    - Local file not found
    - Malformed CSV
    """

    def __init__(
        self,
        message: str,
        source: Optional[str] = None,
        **kwargs
    ):
        super().__init__(message, **kwargs)
        self.source = source

    def __str__(self) -> str:
        result = super().__str__()
        if self.source:
            result += f" | Source: {self.source}"
        return result


class DataValidationError(PipelineException):
    """
    Raised when data validation fails.

    Examples:
    - Schema mismatch
    - Missing required columns
    - Missing values after cleaning
    """

    def __init__(
        self,
        message: str,
        validation_errors: Optional[List[Dict[str, Any]]] = None,
        **kwargs
    ):
        """
        Initialize the data validation error.

        Args:
            message: Error message
            validation_errors: List of validation error details
            **kwargs: Additional arguments for parent class
        """
        super().__init__(message, **kwargs)
        self.validation_errors = validation_errors or []

    def __str__(self) -> str:
        result = super().__str__()
        if self.validation_errors:
            error_count = len(self.validation_errors)
            result += f" | {error_count} validation error(s)"
        return result


class SchemaValidationError(DataValidationError):
    """
    Raised when schema validation fails.

    Examples:
    - Missing columns
    - Two record sets with different column names or dtypes
    """

    def __init__(
        self,
        message: str,
        expected_schema: Optional[Dict[str, Any]] = None,
        actual_schema: Optional[Dict[str, Any]] = None,
        **kwargs
    ):
        super().__init__(message, **kwargs)
        self.expected_schema = expected_schema
        self.actual_schema = actual_schema


class MissingValueError(DataValidationError):
    """Raised when missing values survive the cleaning stage."""

    def __init__(
        self,
        message: str,
        columns: Optional[Dict[str, int]] = None,
        **kwargs
    ):
        super().__init__(message, **kwargs)
        self.columns = columns or {}


class JoinIntegrityError(DataValidationError):
    """
    Raised when a join would silently duplicate or drop rows.

    Examples:
    - Duplicate keys on the lookup side of a many-to-one join
    - Result has more rows than the left side of an inner join
    """

    def __init__(
        self,
        message: str,
        left_rows: Optional[int] = None,
        right_rows: Optional[int] = None,
        result_rows: Optional[int] = None,
        **kwargs
    ):
        super().__init__(message, **kwargs)
        self.left_rows = left_rows
        self.right_rows = right_rows
        self.result_rows = result_rows


class FeatureEngineeringError(PipelineException):
    """
    Raised when a recipe step fails.

    Examples:
    - Step fitted on empty data
    - Column is not a date
    - Prepared recipe applied to data missing a required column
    """

    def __init__(
        self,
        message: str,
        feature_name: Optional[str] = None,
        **kwargs
    ):
        super().__init__(message, **kwargs)
        self.feature_name = feature_name

    def __str__(self) -> str:
        result = super().__str__()
        if self.feature_name:
            result += f" | Feature: {self.feature_name}"
        return result


class ModelTrainingError(PipelineException):
    """
    Raised when model training fails.

    Examples:
    - Training data issues
    - Convergence failure
    - Rank-deficient design matrix
    """

    def __init__(
        self,
        message: str,
        model_name: Optional[str] = None,
        **kwargs
    ):
        super().__init__(message, **kwargs)
        self.model_name = model_name

    def __str__(self) -> str:
        result = super().__str__()
        if self.model_name:
            result += f" | Model: {self.model_name}"
        return result


class RankDeficiencyError(ModelTrainingError):
    """Raised when the design matrix has linearly dependent columns."""

    def __init__(
        self,
        message: str,
        rank: Optional[int] = None,
        n_columns: Optional[int] = None,
        **kwargs
    ):
        super().__init__(message, **kwargs)
        self.rank = rank
        self.n_columns = n_columns


class ConvergenceError(ModelTrainingError):
    """
    Raised when an estimator fails to converge.

    Examples:
    - IRLS iterations exhausted
    - Posterior R-hat above the configured threshold
    """

    def __init__(
        self,
        message: str,
        diagnostics: Optional[Dict[str, Any]] = None,
        **kwargs
    ):
        super().__init__(message, **kwargs)
        self.diagnostics = diagnostics or {}


class PredictionError(PipelineException):
    """
    Raised when a fitted model cannot score new data.

    Examples:
    - Prediction requested before fitting
    - Unsupported prediction type
    - New data missing predictors
    """
    pass


class UnseenCategoryError(PredictionError):
    """Raised when new data carries a categorical level unknown at fit time."""

    def __init__(
        self,
        message: str,
        column: Optional[str] = None,
        levels: Optional[List[Any]] = None,
        **kwargs
    ):
        super().__init__(message, **kwargs)
        self.column = column
        self.levels = levels or []

    def __str__(self) -> str:
        result = super().__str__()
        if self.column:
            result += f" | Column: {self.column} | Levels: {self.levels}"
        return result


class EvaluationError(PipelineException):
    """
    Raised when model evaluation fails.

    Examples:
    - Truth column holds a single class
    - Unknown event level
    - Predictions misaligned with truth
    """

    def __init__(
        self,
        message: str,
        metric_name: Optional[str] = None,
        **kwargs
    ):
        super().__init__(message, **kwargs)
        self.metric_name = metric_name


class ArtifactError(PipelineException):
    """
    Raised when artifact operations fail.

    Examples:
    - Model save/load error
    - Invalid artifact format
    """

    def __init__(
        self,
        message: str,
        artifact_path: Optional[str] = None,
        **kwargs
    ):
        super().__init__(message, **kwargs)
        self.artifact_path = artifact_path
