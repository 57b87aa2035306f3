"""
Tests for Recipe Steps

Tests each step in isolation: calendar features, holiday indicators,
column removal, dummy variables and the zero-variance filter.
"""

import logging

import numpy as np
import pandas as pd
import pytest

from tidyflow.core.exceptions import (
    FeatureEngineeringError,
    SchemaValidationError,
    UnseenCategoryError,
)
from tidyflow.recipes.date_features import StepDate, date_feature, dow_levels, month_levels
from tidyflow.recipes.dummy import StepDummy, dummy_name
from tidyflow.recipes.holidays import DEFAULT_HOLIDAYS, StepHoliday, holiday_dates
from tidyflow.recipes.remove import StepRm
from tidyflow.recipes.zero_variance import StepZv


def _roles(df, outcome=None):
    return {c: "outcome" if c == outcome else "predictor" for c in df.columns}


@pytest.fixture
def dates():
    return pd.DataFrame({
        "date": pd.to_datetime(["2013-01-01", "2013-01-20", "2013-07-04", "2013-11-28", "2013-12-25"]),
        "x": [1.0, 2.0, 3.0, 4.0, 5.0],
    })


# ===================================================================
# DATE
# ===================================================================

class TestStepDate:
    def test_dow_and_month_labels(self, dates):
        prepared = StepDate("date").prep(dates, _roles(dates))

        out = prepared.transform(dates)

        assert list(out["date_dow"]) == ["Tue", "Sun", "Thu", "Thu", "Wed"]
        assert list(out["date_month"]) == ["Jan", "Jan", "Jul", "Nov", "Dec"]

    def test_ordered_full_level_set(self, dates):
        out = StepDate("date").prep(dates, _roles(dates)).transform(dates)

        assert out["date_dow"].cat.ordered
        assert list(out["date_dow"].cat.categories) == dow_levels()
        assert list(out["date_month"].cat.categories) == month_levels()

    def test_unabbreviated(self, dates):
        out = StepDate("date", features=["dow"], abbr=False).prep(dates, _roles(dates)).transform(dates)

        assert out["date_dow"].iloc[0] == "Tuesday"

    def test_original_kept(self, dates):
        prepared = StepDate("date").prep(dates, _roles(dates))

        assert "date" in prepared.transform(dates).columns
        assert prepared.added == ("date_dow", "date_month")

    def test_numeric_features(self, dates):
        stamps = dates["date"]

        assert list(date_feature(stamps, "year")) == [2013] * 5
        assert date_feature(stamps, "doy").iloc[2] == 185
        assert date_feature(stamps, "quarter").iloc[3] == 4
        assert date_feature(stamps, "decimal").iloc[0] == pytest.approx(2013.0)

    def test_missing_date(self):
        stamps = pd.Series(pd.to_datetime(["2013-01-01", None]))

        assert pd.isna(date_feature(stamps, "dow").iloc[1])

    def test_unknown_feature(self):
        with pytest.raises(FeatureEngineeringError):
            StepDate("date", features=["fortnight"])

    def test_requires_date_column(self, dates):
        with pytest.raises(FeatureEngineeringError):
            StepDate("x").prep(dates, _roles(dates))


# ===================================================================
# HOLIDAY
# ===================================================================

class TestHolidayDates:
    def test_fixed_dates(self):
        dates = holiday_dates("USIndependenceDay", "2013-01-01", "2014-12-31")

        assert list(dates) == [pd.Timestamp("2013-07-04"), pd.Timestamp("2014-07-04")]

    def test_no_observance_shift(self):
        # Christmas 2016 fell on a Sunday
        assert list(holiday_dates("USChristmasDay", "2016-01-01", "2016-12-31")) == [
            pd.Timestamp("2016-12-25")
        ]

    def test_thanksgiving(self):
        assert list(holiday_dates("USThanksgivingDay", "2013-01-01", "2013-12-31")) == [
            pd.Timestamp("2013-11-28")
        ]

    def test_inauguration_day_years(self):
        dates = holiday_dates("USInaugurationDay", "2012-01-01", "2017-12-31")

        assert list(dates) == [pd.Timestamp("2013-01-20"), pd.Timestamp("2017-01-20")]

    def test_unknown(self):
        with pytest.raises(FeatureEngineeringError):
            holiday_dates("Festivus", "2013-01-01", "2013-12-31")


class TestStepHoliday:
    def test_indicators(self, dates):
        out = StepHoliday("date").prep(dates, _roles(dates)).transform(dates)

        assert list(out["date_USNewYearsDay"]) == [1, 0, 0, 0, 0]
        assert list(out["date_USInaugurationDay"]) == [0, 1, 0, 0, 0]
        assert list(out["date_USIndependenceDay"]) == [0, 0, 1, 0, 0]
        assert list(out["date_USThanksgivingDay"]) == [0, 0, 0, 1, 0]
        assert list(out["date_USChristmasDay"]) == [0, 0, 0, 0, 1]
        assert out["date_USLaborDay"].sum() == 0

    def test_default_columns(self, dates):
        prepared = StepHoliday("date").prep(dates, _roles(dates))

        assert len(prepared.added) == len(DEFAULT_HOLIDAYS)
        assert all(c.startswith("date_US") for c in prepared.added)

    def test_integer_dtype(self, dates):
        out = StepHoliday("date", holidays=["USNewYearsDay"]).prep(dates, _roles(dates)).transform(dates)

        assert out["date_USNewYearsDay"].dtype.kind == "i"

    def test_timezone_aware(self):
        df = pd.DataFrame({"date": pd.to_datetime(["2013-07-04"]).tz_localize("America/New_York")})

        out = StepHoliday("date", holidays=["USIndependenceDay"]).prep(df, _roles(df)).transform(df)

        assert out["date_USIndependenceDay"].iloc[0] == 1

    def test_unknown_holiday(self):
        with pytest.raises(FeatureEngineeringError):
            StepHoliday("date", holidays=["Festivus"])


# ===================================================================
# RM
# ===================================================================

class TestStepRm:
    def test_removes(self, dates):
        prepared = StepRm("date").prep(dates, _roles(dates))

        assert list(prepared.transform(dates).columns) == ["x"]
        assert prepared.update_roles(_roles(dates)) == {"x": "predictor"}

    def test_nothing_selected(self, dates):
        with pytest.raises(FeatureEngineeringError):
            StepRm("nope").prep(dates, _roles(dates))


# ===================================================================
# DUMMY
# ===================================================================

@pytest.fixture
def nominal():
    return pd.DataFrame({
        "dest": pd.Categorical(["ATL", "BOS", "ORD", "BOS"], categories=["ATL", "BOS", "ORD"]),
        "carrier": ["UA", "AA", "UA", "B6"],
        "y": pd.Categorical(["late", "on_time", "late", "late"]),
    })


class TestStepDummy:
    def test_reference_level_dropped(self, nominal):
        prepared = StepDummy().prep(nominal, _roles(nominal, "y"))

        out = prepared.transform(nominal)

        assert "dest_ATL" not in out.columns
        assert list(out["dest_BOS"]) == [0.0, 1.0, 0.0, 1.0]
        assert list(out["carrier_UA"]) == [1.0, 0.0, 1.0, 0.0]
        assert "y" in out.columns

    def test_one_hot(self, nominal):
        prepared = StepDummy(["dest"], one_hot=True).prep(nominal, _roles(nominal, "y"))

        out = prepared.transform(nominal)

        assert [c for c in out.columns if c.startswith("dest_")] == ["dest_ATL", "dest_BOS", "dest_ORD"]
        assert (out[["dest_ATL", "dest_BOS", "dest_ORD"]].sum(axis=1) == 1).all()

    def test_float_dtype(self, nominal):
        out = StepDummy().prep(nominal, _roles(nominal, "y")).transform(nominal)

        assert out["dest_BOS"].dtype == np.float64

    def test_unused_level_gets_column(self):
        df = pd.DataFrame({"dest": pd.Categorical(["ATL", "BOS"], categories=["ATL", "BOS", "LEX"])})

        out = StepDummy().prep(df, _roles(df)).transform(df)

        assert list(out["dest_LEX"]) == [0.0, 0.0]

    def test_unseen_level_error(self, nominal):
        prepared = StepDummy(["carrier"]).prep(nominal, _roles(nominal, "y"))
        new = nominal.assign(carrier=["WN", "AA", "UA", "AA"])

        with pytest.raises(UnseenCategoryError) as exc_info:
            prepared.transform(new)

        assert exc_info.value.levels == ["WN"]

    def test_unseen_level_ignore(self, nominal, caplog):
        prepared = StepDummy(["carrier"], unseen="ignore").prep(nominal, _roles(nominal, "y"))
        new = nominal.assign(carrier=["WN", "AA", "UA", "AA"])

        with caplog.at_level(logging.WARNING):
            out = prepared.transform(new)

        assert out.loc[0, ["carrier_B6", "carrier_UA"]].tolist() == [0.0, 0.0]
        assert "unseen" in caplog.text

    def test_missing_value_propagates(self, nominal):
        prepared = StepDummy(["carrier"]).prep(nominal, _roles(nominal, "y"))
        new = nominal.assign(carrier=[None, "AA", "UA", "AA"])

        out = prepared.transform(new)

        assert out.loc[0, ["carrier_B6", "carrier_UA"]].isna().all()

    def test_requires_nominal(self, nominal):
        df = nominal.assign(n=[1, 2, 3, 4])

        with pytest.raises(FeatureEngineeringError):
            StepDummy(["n"]).prep(df, _roles(df, "y"))

    def test_missing_input_column(self, nominal):
        prepared = StepDummy(["dest"]).prep(nominal, _roles(nominal, "y"))

        with pytest.raises(SchemaValidationError):
            prepared.transform(nominal.drop(columns=["dest"]))

    def test_bad_policy(self):
        with pytest.raises(FeatureEngineeringError):
            StepDummy(unseen="drop")

    def test_dummy_name(self):
        assert dummy_name("dest", "Low Value") == "dest_Low_Value"


# ===================================================================
# ZV
# ===================================================================

class TestStepZv:
    def test_removes_constant(self):
        df = pd.DataFrame({"a": [1.0, 1.0, 1.0], "b": [1.0, 2.0, 3.0], "y": [0, 1, 0]})

        prepared = StepZv().prep(df, _roles(df, "y"))

        assert prepared.removed == ("a",)
        assert list(prepared.transform(df).columns) == ["b", "y"]

    def test_logs_through_step_logger(self, caplog):
        df = pd.DataFrame({"a": [1.0, 1.0, 1.0], "b": [1.0, 2.0, 3.0]})
        step = StepZv()

        with caplog.at_level(logging.INFO, logger="StepZv"):
            step.prep(df, _roles(df))

        assert step.logger.name == "StepZv"
        assert "zv | Eliminated 1 columns" in caplog.text

    def test_report(self):
        df = pd.DataFrame({"a": [1.0, 1.0], "b": [1.0, 2.0]})

        report = StepZv().prep(df, _roles(df)).report()

        assert report.set_index("Feature")["Status"].to_dict() == {"a": "Eliminated", "b": "Kept"}

    def test_estimated_on_training_only(self):
        train = pd.DataFrame({"a": [0.0, 0.0], "b": [1.0, 2.0]})
        test = pd.DataFrame({"a": [1.0, 0.0], "b": [1.0, 2.0]})

        prepared = StepZv().prep(train, _roles(train))

        assert list(prepared.transform(test).columns) == ["b"]
