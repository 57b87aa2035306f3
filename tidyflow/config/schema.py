"""
Pydantic Configuration Schema

Defines the configuration models for the flight delay and urchin growth
pipelines. All defaults reproduce the tutorial analyses.
"""

from typing import List, Literal, Optional
from pydantic import BaseModel, Field, model_validator


DateFeature = Literal["dow", "month", "year", "doy", "week", "quarter", "decimal"]


class FlightDataConfig(BaseModel):
    """Flight and weather source configuration."""

    model_config = {"frozen": True}

    source: Literal["nycflights13", "csv"] = "nycflights13"
    flights_path: Optional[str] = None
    weather_path: Optional[str] = None
    outcome_column: str = "arr_delay"
    delay_threshold: float = 30.0
    late_label: str = "late"
    on_time_label: str = "on_time"
    join_keys: List[str] = Field(default_factory=lambda: ["origin", "time_hour"])
    keep_columns: List[str] = Field(
        default_factory=lambda: [
            "dep_time", "flight", "origin", "dest", "air_time", "distance",
            "carrier", "date", "arr_delay", "time_hour",
        ]
    )
    id_columns: List[str] = Field(default_factory=lambda: ["flight", "time_hour"])
    date_column: str = "date"
    timezone: str = "America/New_York"
    duplicate_keys: Literal["raise", "keep_first"] = "keep_first"

    @model_validator(mode="after")
    def csv_paths_present(self) -> "FlightDataConfig":
        if self.source == "csv" and not (self.flights_path and self.weather_path):
            raise ValueError("source 'csv' requires flights_path and weather_path")
        return self


class UrchinDataConfig(BaseModel):
    """Urchin growth source configuration."""

    model_config = {"frozen": True}

    url: str = "https://tidymodels.org/start/models/urchins.csv"
    column_names: List[str] = Field(
        default_factory=lambda: ["food_regime", "initial_volume", "width"]
    )
    regime_levels: List[str] = Field(default_factory=lambda: ["Initial", "Low", "High"])
    formula: str = "width ~ initial_volume * food_regime"


class SplittingConfig(BaseModel):
    """Train/test split configuration."""

    model_config = {"frozen": True}

    prop: float = Field(default=0.75, gt=0.0, lt=1.0)
    seed: int = 555


class RecipeConfig(BaseModel):
    """Feature-derivation recipe configuration."""

    model_config = {"frozen": True}

    date_features: List[DateFeature] = Field(default_factory=lambda: ["dow", "month"])
    abbr: bool = True
    holidays: Optional[List[str]] = None
    one_hot: bool = False
    unseen: Literal["error", "ignore"] = "error"
    remove_zero_variance: bool = True


class LogisticConfig(BaseModel):
    """Logistic regression configuration."""

    model_config = {"frozen": True}

    engine: Literal["glm"] = "glm"
    max_iter: int = Field(default=100, ge=1)
    tol: float = Field(default=1e-8, gt=0.0)
    rank_deficient: Literal["error", "drop"] = "error"


class LinearConfig(BaseModel):
    """Ordinary least squares configuration."""

    model_config = {"frozen": True}

    engine: Literal["lm"] = "lm"
    rank_deficient: Literal["error", "drop"] = "error"


class PriorConfig(BaseModel):
    """A location-scale prior on regression coefficients."""

    model_config = {"frozen": True}

    family: Literal["student_t", "normal"] = "student_t"
    df: float = Field(default=1.0, gt=0.0)
    location: float = 0.0
    scale: float = Field(default=2.5, gt=0.0)
    autoscale: bool = True


class BayesConfig(BaseModel):
    """Bayesian linear regression configuration."""

    model_config = {"frozen": True}

    engine: Literal["stan"] = "stan"
    prior: PriorConfig = Field(default_factory=PriorConfig)
    prior_intercept: PriorConfig = Field(default_factory=PriorConfig)
    prior_aux_rate: float = Field(default=1.0, gt=0.0)
    chains: int = Field(default=4, ge=1)
    iter: int = Field(default=2000, ge=2)
    warmup: int = Field(default=1000, ge=1)
    seed: int = 123
    max_rhat: Optional[float] = Field(default=1.1, gt=1.0)

    @model_validator(mode="after")
    def warmup_below_iter(self) -> "BayesConfig":
        if self.warmup >= self.iter:
            raise ValueError(
                f"warmup ({self.warmup}) must be less than iter ({self.iter})"
            )
        return self


class PredictionConfig(BaseModel):
    """Prediction grid and interval configuration."""

    model_config = {"frozen": True}

    initial_volume: float = 20.0
    level: float = Field(default=0.95, gt=0.0, lt=1.0)


class EvaluationConfig(BaseModel):
    """Classification evaluation configuration."""

    model_config = {"frozen": True}

    event_level: Literal["first", "second"] = "first"


class OutputConfig(BaseModel):
    """Output configuration."""

    model_config = {"frozen": True}

    enabled: bool = False
    base_dir: str = "outputs"
    save_tables: bool = True
    save_figures: bool = True
    show_figures: bool = False


class ReproducibilityConfig(BaseModel):
    """Logging configuration."""

    model_config = {"frozen": True}

    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = "INFO"
    log_file: Optional[str] = None


class FlightDelayConfig(BaseModel):
    """Top-level configuration for the flight delay classification pipeline."""

    model_config = {"frozen": True}

    data: FlightDataConfig = Field(default_factory=FlightDataConfig)
    splitting: SplittingConfig = Field(default_factory=SplittingConfig)
    recipe: RecipeConfig = Field(default_factory=RecipeConfig)
    model: LogisticConfig = Field(default_factory=LogisticConfig)
    evaluation: EvaluationConfig = Field(default_factory=EvaluationConfig)
    output: OutputConfig = Field(default_factory=OutputConfig)
    reproducibility: ReproducibilityConfig = Field(default_factory=ReproducibilityConfig)


class UrchinGrowthConfig(BaseModel):
    """Top-level configuration for the urchin growth regression pipeline."""

    model_config = {"frozen": True}

    data: UrchinDataConfig = Field(default_factory=UrchinDataConfig)
    linear: LinearConfig = Field(default_factory=LinearConfig)
    bayes: BayesConfig = Field(default_factory=BayesConfig)
    prediction: PredictionConfig = Field(default_factory=PredictionConfig)
    output: OutputConfig = Field(default_factory=OutputConfig)
    reproducibility: ReproducibilityConfig = Field(default_factory=ReproducibilityConfig)
