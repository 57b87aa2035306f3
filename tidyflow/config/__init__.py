"""
Config Module

Pydantic-based configuration for the modelling pipelines.
"""

from tidyflow.config.schema import (
    FlightDelayConfig,
    UrchinGrowthConfig,
    FlightDataConfig,
    UrchinDataConfig,
    SplittingConfig,
    RecipeConfig,
    LogisticConfig,
    LinearConfig,
    PriorConfig,
    BayesConfig,
    PredictionConfig,
    EvaluationConfig,
    OutputConfig,
    ReproducibilityConfig,
)
from tidyflow.config.loader import load_config, save_config

__all__ = [
    "FlightDelayConfig",
    "UrchinGrowthConfig",
    "FlightDataConfig",
    "UrchinDataConfig",
    "SplittingConfig",
    "RecipeConfig",
    "LogisticConfig",
    "LinearConfig",
    "PriorConfig",
    "BayesConfig",
    "PredictionConfig",
    "EvaluationConfig",
    "OutputConfig",
    "ReproducibilityConfig",
    "load_config",
    "save_config",
]
