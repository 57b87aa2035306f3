"""
Tests for Design Matrices

Tests formula and predictor-frame designs, rebuilding on new data and the
rank check.
"""

import numpy as np
import pandas as pd
import pytest

from tidyflow.core.exceptions import (
    ModelTrainingError,
    PredictionError,
    RankDeficiencyError,
    UnseenCategoryError,
)
from tidyflow.data.urchins import new_points
from tidyflow.models.design import INTERCEPT, check_rank, formula_design, xy_design


URCHIN_TERMS = (
    "Intercept",
    "food_regime[T.Low]",
    "food_regime[T.High]",
    "initial_volume",
    "initial_volume:food_regime[T.Low]",
    "initial_volume:food_regime[T.High]",
)


class TestFormulaDesign:
    def test_interaction_terms(self, urchins):
        y, X, spec = formula_design("width ~ initial_volume * food_regime", urchins)

        assert spec.terms == URCHIN_TERMS
        assert list(X.columns) == list(URCHIN_TERMS)
        assert y.name == "width"
        assert spec.has_intercept

    def test_factor_levels_recorded(self, urchins):
        _, _, spec = formula_design("width ~ initial_volume * food_regime", urchins)

        assert dict(spec.factor_levels) == {"food_regime": ("Initial", "Low", "High")}

    def test_rebuild_on_new_points(self, urchins):
        _, _, spec = formula_design("width ~ initial_volume * food_regime", urchins)

        X = spec.build(new_points(20))

        assert X.shape == (3, 6)
        assert list(X["initial_volume:food_regime[T.Low]"]) == [0.0, 20.0, 0.0]

    def test_rebuild_single_regime(self, urchins):
        _, _, spec = formula_design("width ~ initial_volume * food_regime", urchins)

        X = spec.build(pd.DataFrame({"initial_volume": [10.0], "food_regime": ["High"]}))

        assert X.loc[0, "food_regime[T.High]"] == 1.0

    def test_unseen_level(self, urchins):
        _, _, spec = formula_design("width ~ initial_volume * food_regime", urchins)

        with pytest.raises(UnseenCategoryError):
            spec.build(pd.DataFrame({"initial_volume": [10.0], "food_regime": ["Starved"]}))

    def test_missing_predictor(self, urchins):
        _, _, spec = formula_design("width ~ initial_volume * food_regime", urchins)

        with pytest.raises(PredictionError):
            spec.build(pd.DataFrame({"food_regime": ["Low"]}))

    def test_no_tilde(self, urchins):
        with pytest.raises(ModelTrainingError):
            formula_design("width", urchins)

    def test_unknown_outcome(self, urchins):
        with pytest.raises(ModelTrainingError):
            formula_design("height ~ initial_volume", urchins)


class TestXyDesign:
    def test_intercept_first(self):
        X = pd.DataFrame({"a": [1, 2, 3], "b": [0.5, 0.1, 0.2]})

        _, design, spec = xy_design(X, pd.Series([0, 1, 0], name="y"))

        assert list(design.columns) == [INTERCEPT, "a", "b"]
        assert spec.outcome == "y"
        assert spec.rhs is None

    def test_non_numeric(self):
        with pytest.raises(ModelTrainingError):
            xy_design(pd.DataFrame({"a": ["x", "y"]}), pd.Series([0, 1]))

    def test_length_mismatch(self):
        with pytest.raises(ModelTrainingError):
            xy_design(pd.DataFrame({"a": [1.0, 2.0]}), pd.Series([0, 1, 1]))

    def test_build_uses_training_columns(self):
        _, _, spec = xy_design(pd.DataFrame({"a": [1.0, 2.0], "b": [3.0, 4.0]}), pd.Series([0, 1]))

        X = spec.build(pd.DataFrame({"b": [1.0], "a": [2.0], "extra": [9.0]}))

        assert list(X.columns) == [INTERCEPT, "a", "b"]

    def test_single_float_block(self):
        X = pd.DataFrame({"a": [1, 2, 3], "flag": [True, False, True], "b": [0.5, 0.1, 0.2]})

        _, design, _ = xy_design(X, pd.Series([0, 1, 0]))

        assert (design.dtypes == "float64").all()
        assert design[INTERCEPT].tolist() == [1.0, 1.0, 1.0]
        assert design["flag"].tolist() == [1.0, 0.0, 1.0]

    def test_missing_values(self):
        with pytest.raises(ModelTrainingError):
            xy_design(pd.DataFrame({"a": [1.0, np.nan]}), pd.Series([0, 1]))


class TestCheckRank:
    @pytest.fixture
    def aliased(self):
        rng = np.random.default_rng(0)
        x = rng.normal(size=30)
        return pd.DataFrame({INTERCEPT: 1.0, "x": x, "x2": 2.0 * x, "z": rng.normal(size=30)})

    def test_full_rank(self, aliased):
        X = aliased.drop(columns=["x2"])

        assert check_rank(X, "m") == list(X.columns)

    def test_error_policy(self, aliased):
        with pytest.raises(RankDeficiencyError) as exc_info:
            check_rank(aliased, "m")

        assert exc_info.value.rank == 3
        assert exc_info.value.n_columns == 4

    def test_drop_policy(self, aliased):
        kept = check_rank(aliased, "m", policy="drop")

        assert len(kept) == 3
        assert INTERCEPT in kept and "z" in kept
        assert ("x" in kept) != ("x2" in kept)

    def test_blocked_reduction(self):
        rng = np.random.default_rng(1)
        x = rng.normal(size=1000)
        tall = pd.DataFrame({INTERCEPT: 1.0, "x": x, "x2": 2.0 * x, "z": rng.normal(size=1000)})

        with pytest.raises(RankDeficiencyError) as exc_info:
            check_rank(tall, "m", block_rows=64)

        assert exc_info.value.rank == 3
        assert check_rank(tall, "m", policy="drop", block_rows=64) == check_rank(tall, "m", policy="drop")
        assert check_rank(tall.drop(columns=["x2"]), "m", block_rows=64) == [INTERCEPT, "x", "z"]

    def test_more_columns_than_rows(self):
        X = pd.DataFrame(np.eye(2, 3), columns=["a", "b", "c"])

        with pytest.raises(RankDeficiencyError):
            check_rank(X, "m", policy="drop")
