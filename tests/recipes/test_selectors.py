"""
Tests for Column Selectors

Tests role and type selection, exclusion and name lookups.
"""

import pandas as pd
import pytest

from tidyflow.recipes.selectors import (
    ID,
    all_dates,
    all_nominal,
    all_numeric,
    all_numeric_predictors,
    all_outcomes,
    all_predictors,
    as_selector,
    has_role,
    names,
)


@pytest.fixture
def data():
    return pd.DataFrame({
        "flight": [1, 2],
        "origin": pd.Categorical(["JFK", "LGA"]),
        "carrier": ["AA", "UA"],
        "distance": [187.0, 762.0],
        "date": pd.to_datetime(["2013-01-01", "2013-01-02"]),
        "arr_delay": pd.Categorical(["late", "on_time"]),
    })


@pytest.fixture
def roles():
    return {
        "flight": ID,
        "origin": "predictor",
        "carrier": "predictor",
        "distance": "predictor",
        "date": "predictor",
        "arr_delay": "outcome",
    }


class TestRoleSelectors:
    def test_predictors(self, data, roles):
        assert all_predictors().resolve(data, roles) == ["origin", "carrier", "distance", "date"]

    def test_outcomes(self, data, roles):
        assert all_outcomes().resolve(data, roles) == ["arr_delay"]

    def test_has_role(self, data, roles):
        assert has_role(ID).resolve(data, roles) == ["flight"]


class TestTypeSelectors:
    def test_nominal(self, data, roles):
        assert all_nominal().resolve(data, roles) == ["origin", "carrier", "arr_delay"]

    def test_numeric(self, data, roles):
        assert all_numeric().resolve(data, roles) == ["flight", "distance"]

    def test_numeric_predictors_skip_id(self, data, roles):
        assert all_numeric_predictors().resolve(data, roles) == ["distance"]

    def test_dates(self, data, roles):
        assert all_dates().resolve(data, roles) == ["date"]


class TestCombinators:
    def test_minus(self, data, roles):
        selector = all_nominal() - all_outcomes()

        assert selector.resolve(data, roles) == ["origin", "carrier"]
        assert "-all_outcomes()" in selector.description

    def test_minus_name(self, data, roles):
        assert all_predictors().minus("date").resolve(data, roles) == ["origin", "carrier", "distance"]

    def test_invert(self, data, roles):
        assert (~all_predictors()).resolve(data, roles) == ["flight", "arr_delay"]

    def test_names_skip_absent(self, data, roles):
        assert names("date", "nope").resolve(data, roles) == ["date"]

    def test_as_selector(self, data, roles):
        assert as_selector(["distance", "flight"]).resolve(data, roles) == ["flight", "distance"]
        assert as_selector("date").resolve(data, roles) == ["date"]
