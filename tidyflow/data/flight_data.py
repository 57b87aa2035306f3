"""
Flight Data Preparation

Builds the modelling record set for the flight delay classifier: derives the
binary outcome, joins hourly weather on (origin, time_hour), keeps the
modelling columns, drops incomplete rows and encodes text as categoricals.
"""

from typing import Any, Dict, List, Optional, Sequence
import logging

import numpy as np
import pandas as pd
from pandas.api import types as ptypes

from tidyflow.config.schema import FlightDataConfig
from tidyflow.core.base import PandasComponent
from tidyflow.core.exceptions import JoinIntegrityError
from tidyflow.data.schema_validator import SchemaValidator


logger = logging.getLogger(__name__)

STEP_NAME = "flight_data"


class FlightDataPreparer(PandasComponent):
    """Prepare joined, cleaned flight records.

    Args:
        config: FlightDataConfig with outcome, join and column settings.
    """

    def __init__(self, config: Optional[FlightDataConfig] = None):
        super().__init__(name="FlightDataPreparer")
        self.data_config = config or FlightDataConfig()
        self.validator = SchemaValidator()

    def run(self, flights: pd.DataFrame, weather: pd.DataFrame) -> pd.DataFrame:
        return self.prepare(flights, weather)

    def prepare(self, flights: pd.DataFrame, weather: pd.DataFrame) -> pd.DataFrame:
        """Derive, join, select, clean and encode.

        Args:
            flights: Flight records with the outcome column and join keys.
            weather: Hourly weather records keyed by the join keys.

        Returns:
            Cleaned record set with categorical text columns and no missing values.

        Raises:
            SchemaValidationError: If required columns are absent.
            JoinIntegrityError: If the join would duplicate rows.
        """
        cfg = self.data_config
        self._start_execution()

        self.validator.validate_and_raise(
            flights, [cfg.outcome_column, *cfg.join_keys], name="flights"
        )
        self.validator.validate_and_raise(weather, list(cfg.join_keys), name="weather")

        df = flights.copy()
        df[cfg.outcome_column] = self.derive_outcome(df[cfg.outcome_column])
        df[cfg.date_column] = self.derive_date(df["time_hour"])

        joined = self.join_weather(df, weather)

        self.validator.validate_and_raise(joined, cfg.keep_columns, name="joined flights")
        selected = joined[list(cfg.keep_columns)]

        cleaned = selected.dropna().reset_index(drop=True)
        n_dropped = len(selected) - len(cleaned)
        logger.info(
            f"{STEP_NAME} | Dropped {n_dropped:,} rows with missing values "
            f"({len(cleaned):,} remaining)"
        )

        cleaned = encode_text_as_categorical(cleaned)
        self.validator.assert_no_missing(cleaned, name="flight data")

        self._end_execution()
        return cleaned

    def derive_outcome(self, delays: pd.Series) -> pd.Series:
        """Map arrival delays to ``late`` (>= threshold) / ``on_time``.

        Missing delays stay missing so that the cleaning stage removes them.
        """
        cfg = self.data_config
        labels = np.where(delays >= cfg.delay_threshold, cfg.late_label, cfg.on_time_label)
        labels = pd.Series(labels, index=delays.index, dtype=object)
        labels[delays.isna()] = np.nan
        levels = sorted([cfg.late_label, cfg.on_time_label])
        return labels.astype(pd.CategoricalDtype(categories=levels))

    def derive_date(self, time_hour: pd.Series) -> pd.Series:
        """Calendar date (local time, midnight timestamps) of each scheduled hour."""
        stamps = pd.to_datetime(time_hour)
        if stamps.dt.tz is not None:
            stamps = stamps.dt.tz_convert(self.data_config.timezone).dt.tz_localize(None)
        return stamps.dt.normalize()

    def join_weather(self, flights: pd.DataFrame, weather: pd.DataFrame) -> pd.DataFrame:
        """Inner join flights with weather without duplicating flights.

        Raises:
            JoinIntegrityError: On duplicate weather keys under the ``raise``
                policy, or if the joined result has more rows than ``flights``.
        """
        cfg = self.data_config
        keys = list(cfg.join_keys)

        duplicated = weather.duplicated(subset=keys, keep="first")
        n_duplicated = int(duplicated.sum())
        if n_duplicated:
            if cfg.duplicate_keys == "raise":
                raise JoinIntegrityError(
                    f"weather has {n_duplicated} duplicated {keys} keys",
                    right_rows=len(weather),
                    details={"keys": keys},
                )
            logger.warning(
                f"{STEP_NAME} | weather has {n_duplicated} duplicated {keys} keys; "
                f"keeping the first record of each"
            )
            weather = weather[~duplicated]

        try:
            joined = flights.merge(
                weather,
                on=keys,
                how="inner",
                suffixes=("", "_weather"),
                validate="many_to_one",
            )
        except pd.errors.MergeError as e:
            raise JoinIntegrityError(
                f"Join on {keys} is not many-to-one",
                left_rows=len(flights),
                right_rows=len(weather),
                cause=e,
            )

        if len(joined) > len(flights):
            raise JoinIntegrityError(
                "Inner join produced more rows than the flight records",
                left_rows=len(flights),
                right_rows=len(weather),
                result_rows=len(joined),
            )

        logger.info(
            f"{STEP_NAME} | Joined weather on {keys}: {len(flights):,} -> {len(joined):,} rows "
            f"({len(flights) - len(joined):,} without weather)"
        )
        return joined


def encode_text_as_categorical(df: pd.DataFrame) -> pd.DataFrame:
    """Convert every text column to a categorical with sorted levels."""
    df = df.copy()
    for col in df.columns:
        dtype = df[col].dtype
        if isinstance(dtype, pd.CategoricalDtype):
            continue
        if ptypes.is_object_dtype(dtype) or ptypes.is_string_dtype(dtype):
            df[col] = df[col].astype("category")
    return df


def prepare_flight_data(
    flights: pd.DataFrame,
    weather: pd.DataFrame,
    config: Optional[FlightDataConfig] = None
) -> pd.DataFrame:
    """Functional entry point for :class:`FlightDataPreparer`."""
    return FlightDataPreparer(config).prepare(flights, weather)


def outcome_balance(df: pd.DataFrame, outcome: str = "arr_delay") -> pd.DataFrame:
    """Count and proportion of each outcome class."""
    counts = df[outcome].value_counts(sort=False).rename("n")
    table = counts.reset_index().rename(columns={"index": outcome})
    table["prop"] = table["n"] / table["n"].sum()
    return table


def describe_categoricals(
    df: pd.DataFrame,
    columns: Sequence[str],
    top_n: int = 4
) -> pd.DataFrame:
    """Per-column summary of categorical variables.

    Columns: skim_variable, n_missing, complete_rate, ordered, n_unique,
    top_counts (e.g. ``"ATL: 16771, ORD: 16507"``).
    """
    rows: List[Dict[str, Any]] = []
    for col in columns:
        series = df[col]
        n_missing = int(series.isna().sum())
        counts = series.value_counts().head(top_n)
        is_cat = isinstance(series.dtype, pd.CategoricalDtype)
        rows.append({
            "skim_variable": col,
            "n_missing": n_missing,
            "complete_rate": 1.0 - n_missing / len(series) if len(series) else 0.0,
            "ordered": bool(series.cat.ordered) if is_cat else False,
            "n_unique": int(series.nunique()),
            "top_counts": ", ".join(f"{k}: {v}" for k, v in counts.items()),
        })
    return pd.DataFrame(rows)
