"""
Holiday Indicator Step

Adds a 0/1 column per (date column, holiday) marking rows that fall on the
holiday. Holidays are the actual calendar dates (no weekend observance
shift) and are built from ``pandas.tseries.holiday`` rules.
"""

from dataclasses import dataclass
from typing import Dict, List, Optional, Sequence, Tuple

import pandas as pd
from pandas.tseries.holiday import (
    MO,
    TU,
    GoodFriday,
    Holiday,
    USColumbusDay,
    USLaborDay,
    USMartinLutherKingJr,
    USMemorialDay,
    USPresidentsDay,
    USThanksgivingDay,
)
from pandas.tseries.offsets import DateOffset

from tidyflow.core.exceptions import FeatureEngineeringError
from tidyflow.recipes.base import PreparedStep, RecipeStep, require_columns
from tidyflow.recipes.selectors import SelectorLike, as_selector, is_date


STEP_NAME = "holiday"

HOLIDAY_RULES: Dict[str, Holiday] = {
    "USNewYearsDay": Holiday("USNewYearsDay", month=1, day=1),
    "USMLKingsBirthday": USMartinLutherKingJr,
    "USLincolnsBirthday": Holiday("USLincolnsBirthday", month=2, day=12),
    "USWashingtonsBirthday": Holiday("USWashingtonsBirthday", month=2, day=22),
    "USPresidentsDay": USPresidentsDay,
    "USCPulaskisBirthday": Holiday(
        "USCPulaskisBirthday", month=3, day=1, offset=DateOffset(weekday=MO(1))
    ),
    "USGoodFriday": GoodFriday,
    "USMemorialDay": USMemorialDay,
    "USDecorationMemorialDay": Holiday("USDecorationMemorialDay", month=5, day=30),
    "USIndependenceDay": Holiday("USIndependenceDay", month=7, day=4),
    "USLaborDay": USLaborDay,
    "USColumbusDay": USColumbusDay,
    "USElectionDay": Holiday(
        "USElectionDay", month=11, day=2, offset=DateOffset(weekday=TU(1))
    ),
    "USVeteransDay": Holiday("USVeteransDay", month=11, day=11),
    "USThanksgivingDay": USThanksgivingDay,
    "USChristmasDay": Holiday("USChristmasDay", month=12, day=25),
}

# Jan 20 in the year after a presidential election
INAUGURATION_DAY = "USInaugurationDay"

SUPPORTED_HOLIDAYS = tuple(sorted([*HOLIDAY_RULES, INAUGURATION_DAY]))

# Default set: every supported US holiday except the purely historical ones
DEFAULT_HOLIDAYS = (
    "USChristmasDay",
    "USColumbusDay",
    "USCPulaskisBirthday",
    "USDecorationMemorialDay",
    "USElectionDay",
    "USGoodFriday",
    "USInaugurationDay",
    "USIndependenceDay",
    "USLaborDay",
    "USLincolnsBirthday",
    "USMemorialDay",
    "USMLKingsBirthday",
    "USNewYearsDay",
    "USPresidentsDay",
    "USThanksgivingDay",
    "USVeteransDay",
    "USWashingtonsBirthday",
)


def holiday_dates(name: str, start: pd.Timestamp, end: pd.Timestamp) -> pd.DatetimeIndex:
    """Dates of holiday ``name`` between ``start`` and ``end`` inclusive.

    Raises:
        FeatureEngineeringError: If the holiday name is unknown.
    """
    start = pd.Timestamp(start).normalize()
    end = pd.Timestamp(end).normalize()

    if name == INAUGURATION_DAY:
        years = range(start.year, end.year + 1)
        dates = [pd.Timestamp(year=y, month=1, day=20) for y in years if y % 4 == 1]
        return pd.DatetimeIndex([d for d in dates if start <= d <= end])

    if name not in HOLIDAY_RULES:
        raise FeatureEngineeringError(
            f"Unknown holiday '{name}'; supported: {list(SUPPORTED_HOLIDAYS)}",
            feature_name=name,
        )
    return pd.DatetimeIndex(HOLIDAY_RULES[name].dates(start, end))


def _naive_days(stamps: pd.Series) -> pd.Series:
    stamps = pd.to_datetime(stamps)
    if stamps.dt.tz is not None:
        stamps = stamps.dt.tz_localize(None)
    return stamps.dt.normalize()


@dataclass(frozen=True)
class PreparedHoliday(PreparedStep):
    step_name = STEP_NAME

    holidays: Tuple[str, ...] = DEFAULT_HOLIDAYS

    def transform(self, data: pd.DataFrame) -> pd.DataFrame:
        require_columns(data, self.columns, STEP_NAME)
        out = data.copy()
        for col in self.columns:
            days = _naive_days(out[col])
            observed = days.dropna()
            for name in self.holidays:
                if observed.empty:
                    flags = pd.Series(0, index=out.index)
                else:
                    dates = holiday_dates(name, observed.min(), observed.max())
                    flags = days.isin(dates).astype(int)
                out[f"{col}_{name}"] = flags.astype(int)
        return out

    def settings(self) -> Dict[str, object]:
        return {"holidays": list(self.holidays)}


class StepHoliday(RecipeStep):
    """Add ``<column>_<holiday>`` indicator columns.

    Args:
        columns: Date columns (selector, name or list of names).
        holidays: Holiday names; defaults to the US federal and
            commemorative holidays in :data:`DEFAULT_HOLIDAYS`.
    """

    step_name = STEP_NAME

    def __init__(self, columns: SelectorLike, holidays: Optional[Sequence[str]] = None):
        holidays = tuple(holidays) if holidays else DEFAULT_HOLIDAYS
        unknown = [h for h in holidays if h not in SUPPORTED_HOLIDAYS]
        if unknown:
            raise FeatureEngineeringError(
                f"Unknown holiday(s) {unknown}; supported: {list(SUPPORTED_HOLIDAYS)}"
            )
        self.selector = as_selector(columns)
        self.holidays = holidays

    def prep(self, data: pd.DataFrame, roles: Dict[str, str]) -> PreparedHoliday:
        columns: List[str] = self.selector.resolve(data, roles)
        if not columns:
            raise FeatureEngineeringError(
                f"step_holiday selected no columns ({self.selector.description})"
            )
        not_dates = [c for c in columns if not is_date(data[c])]
        if not_dates:
            raise FeatureEngineeringError(
                f"step_holiday requires date columns; got {not_dates}",
                feature_name=not_dates[0],
            )

        added = tuple(f"{c}_{h}" for c in columns for h in self.holidays)
        self.logger.debug(f"{STEP_NAME} | {len(added)} indicator columns from {columns}")
        return PreparedHoliday(columns=tuple(columns), added=added, holidays=self.holidays)

    def describe(self) -> str:
        return f"Holiday features from {self.selector.description}"
