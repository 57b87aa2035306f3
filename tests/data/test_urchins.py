"""
Tests for Urchin Growth Data

Tests renaming, regime encoding, loading and the prediction grid.
"""

import pandas as pd
import pytest

from tidyflow.core.exceptions import SchemaValidationError
from tidyflow.data.urchins import load_urchins, new_points, tidy_urchins


class TestTidyUrchins:
    def test_renamed(self, urchins_raw):
        df = tidy_urchins(urchins_raw)

        assert list(df.columns) == ["food_regime", "initial_volume", "width"]
        assert len(df) == len(urchins_raw)

    def test_regime_levels(self, urchins_raw):
        df = tidy_urchins(urchins_raw)

        assert list(df["food_regime"].cat.categories) == ["Initial", "Low", "High"]
        assert not df["food_regime"].cat.ordered

    def test_non_numeric_width(self, urchins_raw):
        urchins_raw["SUTW"] = "wide"

        with pytest.raises(SchemaValidationError):
            tidy_urchins(urchins_raw)


class TestLoadUrchins:
    def test_local_csv(self, tmp_path, urchins_raw):
        path = tmp_path / "urchins.csv"
        urchins_raw.to_csv(path, index=False)

        df = load_urchins(str(path))

        assert list(df.columns) == ["food_regime", "initial_volume", "width"]
        assert df["food_regime"].value_counts().tolist() == [24, 24, 24]


class TestNewPoints:
    def test_default_grid(self):
        grid = new_points()

        assert len(grid) == 3
        assert (grid["initial_volume"] == 20).all()
        assert list(grid["food_regime"]) == ["Initial", "Low", "High"]

    def test_subset_keeps_full_levels(self):
        grid = new_points(10, regimes=["High"])

        assert len(grid) == 1
        assert list(grid["food_regime"].cat.categories) == ["Initial", "Low", "High"]
