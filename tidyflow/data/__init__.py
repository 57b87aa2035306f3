"""
Data Module

Reading, validation, preparation and splitting of record sets.
"""

from tidyflow.data.base_reader import BaseDataReader
from tidyflow.data.readers import CsvReader, NycFlightsReader
from tidyflow.data.schema_validator import SchemaValidator, SchemaValidationResult
from tidyflow.data.data_splitter import DataSplit, InitialSplit, initial_split, find_unseen_levels
from tidyflow.data.flight_data import (
    FlightDataPreparer,
    prepare_flight_data,
    outcome_balance,
    describe_categoricals,
)
from tidyflow.data.urchins import load_urchins, tidy_urchins, new_points

__all__ = [
    "BaseDataReader",
    "CsvReader",
    "NycFlightsReader",
    "SchemaValidator",
    "SchemaValidationResult",
    "DataSplit",
    "InitialSplit",
    "initial_split",
    "find_unseen_levels",
    "FlightDataPreparer",
    "prepare_flight_data",
    "outcome_balance",
    "describe_categoricals",
    "load_urchins",
    "tidy_urchins",
    "new_points",
]
