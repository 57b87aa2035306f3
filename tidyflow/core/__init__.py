"""
tidyflow - Core Package

Shared infrastructure for the modelling pipelines:
- Base classes for components
- Logging utilities
- Custom exceptions
"""

from tidyflow.core.base import PipelineComponent, PandasComponent
from tidyflow.core.logger import get_logger, setup_logging, PipelineLogger
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

__all__ = [
    # Base classes
    "PipelineComponent",
    "PandasComponent",
    # Logging
    "get_logger",
    "setup_logging",
    "PipelineLogger",
    # Exceptions
    "PipelineException",
    "ConfigurationError",
    "DataReaderError",
    "DataValidationError",
    "SchemaValidationError",
    "MissingValueError",
    "JoinIntegrityError",
    "FeatureEngineeringError",
    "ModelTrainingError",
    "RankDeficiencyError",
    "ConvergenceError",
    "PredictionError",
    "UnseenCategoryError",
    "EvaluationError",
    "ArtifactError",
]
