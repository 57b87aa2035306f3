"""
Date Feature Step

Expands date columns into calendar features such as day of week and month.
Day-of-week and month come out as ordered categoricals with English labels;
the numeric features come out as integers (``decimal`` as float).
"""

from dataclasses import dataclass
from typing import Dict, List, Sequence, Tuple
import calendar

import numpy as np
import pandas as pd

from tidyflow.core.exceptions import FeatureEngineeringError
from tidyflow.recipes.base import PreparedStep, RecipeStep, require_columns
from tidyflow.recipes.selectors import SelectorLike, as_selector, is_date


STEP_NAME = "date"

SUPPORTED_FEATURES = ("dow", "month", "year", "doy", "week", "quarter", "decimal")

# Sunday-first, matching the usual US calendar layout
DOW_FULL = ["Sunday", "Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday"]
MONTH_FULL = list(calendar.month_name)[1:]


def dow_levels(abbr: bool = True) -> List[str]:
    return [d[:3] for d in DOW_FULL] if abbr else list(DOW_FULL)


def month_levels(abbr: bool = True) -> List[str]:
    return [m[:3] for m in MONTH_FULL] if abbr else list(MONTH_FULL)


def _labelled(codes: np.ndarray, levels: List[str], index: pd.Index) -> pd.Series:
    """Ordered categorical from 0-based codes, -1 meaning missing."""
    values = pd.Categorical.from_codes(
        codes, categories=levels, ordered=True
    )
    return pd.Series(values, index=index)


def date_feature(stamps: pd.Series, feature: str, abbr: bool = True) -> pd.Series:
    """Compute one calendar feature of a datetime Series.

    Args:
        stamps: Datetime values (timezone-aware or naive).
        feature: One of ``dow``, ``month``, ``year``, ``doy``, ``week``,
            ``quarter`` or ``decimal``.
        abbr: Use three-letter labels for ``dow`` and ``month``.

    Returns:
        Series aligned with ``stamps``.
    """
    dt = stamps.dt
    missing = stamps.isna().to_numpy()

    if feature == "dow":
        # pandas: Monday=0 .. Sunday=6; shift to Sunday=0
        codes = ((dt.dayofweek.fillna(0).to_numpy().astype(int) + 1) % 7)
        codes[missing] = -1
        return _labelled(codes, dow_levels(abbr), stamps.index)
    if feature == "month":
        codes = dt.month.fillna(1).to_numpy().astype(int) - 1
        codes[missing] = -1
        return _labelled(codes, month_levels(abbr), stamps.index)
    if feature == "year":
        return dt.year
    if feature == "doy":
        return dt.dayofyear
    if feature == "week":
        return (dt.dayofyear - 1) // 7 + 1
    if feature == "quarter":
        return dt.quarter
    if feature == "decimal":
        days_in_year = np.where(dt.is_leap_year, 366.0, 365.0)
        seconds = (
            (dt.dayofyear - 1) * 86400.0
            + dt.hour * 3600.0 + dt.minute * 60.0 + dt.second
        )
        return dt.year + seconds / (days_in_year * 86400.0)

    raise FeatureEngineeringError(
        f"Unknown date feature '{feature}'; supported: {list(SUPPORTED_FEATURES)}",
        feature_name=feature,
    )


@dataclass(frozen=True)
class PreparedDate(PreparedStep):
    step_name = STEP_NAME

    features: Tuple[str, ...] = ("dow", "month")
    abbr: bool = True

    def transform(self, data: pd.DataFrame) -> pd.DataFrame:
        require_columns(data, self.columns, STEP_NAME)
        out = data.copy()
        for col in self.columns:
            stamps = pd.to_datetime(out[col])
            for feature in self.features:
                out[f"{col}_{feature}"] = date_feature(stamps, feature, self.abbr)
        return out

    def report(self) -> pd.DataFrame:
        rows = [
            {"column": col, "feature": f, "output": f"{col}_{f}"}
            for col in self.columns for f in self.features
        ]
        return pd.DataFrame(rows)

    def settings(self) -> Dict[str, object]:
        return {"features": list(self.features), "abbr": self.abbr}


class StepDate(RecipeStep):
    """Add ``<column>_<feature>`` calendar columns for each selected date column.

    Args:
        columns: Date columns (selector, name or list of names).
        features: Calendar features to derive, in output order.
        abbr: Three-letter day and month labels.
    """

    step_name = STEP_NAME

    def __init__(
        self,
        columns: SelectorLike,
        features: Sequence[str] = ("dow", "month"),
        abbr: bool = True,
    ):
        unknown = [f for f in features if f not in SUPPORTED_FEATURES]
        if unknown:
            raise FeatureEngineeringError(
                f"Unknown date feature(s) {unknown}; supported: {list(SUPPORTED_FEATURES)}"
            )
        self.selector = as_selector(columns)
        self.features = tuple(features)
        self.abbr = abbr

    def prep(self, data: pd.DataFrame, roles: Dict[str, str]) -> PreparedDate:
        columns = self.selector.resolve(data, roles)
        if not columns:
            raise FeatureEngineeringError(
                f"step_date selected no columns ({self.selector.description})"
            )
        not_dates = [c for c in columns if not is_date(data[c])]
        if not_dates:
            raise FeatureEngineeringError(
                f"step_date requires date columns; got {not_dates}",
                feature_name=not_dates[0],
            )

        added = tuple(f"{c}_{f}" for c in columns for f in self.features)
        self.logger.debug(f"{STEP_NAME} | {columns} -> {list(added)}")
        return PreparedDate(
            columns=tuple(columns),
            added=added,
            features=self.features,
            abbr=self.abbr,
        )

    def describe(self) -> str:
        return f"Date features from {self.selector.description}"
