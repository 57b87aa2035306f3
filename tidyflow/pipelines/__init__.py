"""
Pipelines Module

End-to-end flight delay and urchin growth analyses.
"""

from tidyflow.pipelines.base import BasePipeline, RunInfo, StageRecord
from tidyflow.pipelines.flight_delays import (
    FlightDelayPipeline,
    FlightDelayResult,
    build_flight_recipe,
)
from tidyflow.pipelines.urchin_growth import (
    UrchinGrowthPipeline,
    UrchinGrowthResult,
    interval_predictions,
)

__all__ = [
    "BasePipeline",
    "RunInfo",
    "StageRecord",
    "FlightDelayPipeline",
    "FlightDelayResult",
    "build_flight_recipe",
    "UrchinGrowthPipeline",
    "UrchinGrowthResult",
    "interval_predictions",
]
