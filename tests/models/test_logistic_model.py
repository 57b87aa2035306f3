"""
Tests for Logistic Regression Model

Tests fitting through both interfaces, probability and class predictions,
rank and outcome checks, and persistence.
"""

from dataclasses import FrozenInstanceError

import numpy as np
import pandas as pd
import pytest

from tidyflow.config.schema import LogisticConfig
from tidyflow.core.exceptions import (
    ArtifactError,
    ModelTrainingError,
    PredictionError,
    RankDeficiencyError,
    UnseenCategoryError,
)
from tidyflow.models.logistic_model import (
    LogisticRegressionFit,
    LogisticRegressionModel,
    outcome_levels,
)


@pytest.fixture
def fit(small_classification_data):
    return LogisticRegressionModel().fit("outcome ~ x + group", small_classification_data)


class TestLogisticFit:
    """Fitting the binomial GLM."""

    def test_levels_from_categorical(self, fit):
        assert fit.levels == ("no", "yes")
        assert fit.mode == "classification"
        assert fit.engine == "glm"

    def test_terms(self, fit):
        assert fit.terms == ("Intercept", "group[T.b]", "group[T.c]", "x")

    def test_models_second_level(self, fit):
        assert fit.coefficients["x"] > 0

    def test_matches_statsmodels(self, small_classification_data, fit):
        import statsmodels.api as sm
        import statsmodels.formula.api as smf

        data = small_classification_data.assign(
            yes=(small_classification_data["outcome"] == "yes").astype(float)
        )
        reference = smf.glm("yes ~ x + group", data, family=sm.families.Binomial()).fit()

        np.testing.assert_allclose(
            fit.coefficients.to_numpy(), reference.params.reindex(list(fit.terms)).to_numpy(), rtol=1e-5
        )

    def test_tidy_normal_intervals(self, fit):
        table = fit.tidy(conf_int=True)

        assert list(table.columns) == [
            "term", "estimate", "std_error", "statistic", "p_value", "conf_low", "conf_high"
        ]
        assert (table["conf_low"] < table["estimate"]).all()
        assert (table["estimate"] < table["conf_high"]).all()

    def test_glance(self, fit):
        glance = fit.glance()

        assert glance.loc[0, "nobs"] == 200
        assert glance.loc[0, "deviance"] < glance.loc[0, "null_deviance"]

    def test_fit_xy(self, small_classification_data):
        X = small_classification_data[["x"]]
        y = small_classification_data["outcome"]

        fit = LogisticRegressionModel().fit_xy(X, y)

        assert fit.terms == ("Intercept", "x")
        assert fit.design.rhs is None

    def test_string_outcome_sorted(self):
        assert outcome_levels(pd.Series(["on_time", "late", "late"])) == ["late", "on_time"]


class TestLogisticPredict:
    def test_probabilities_sum_to_one(self, fit, small_classification_data):
        probs = fit.predict(small_classification_data, type="prob")

        assert list(probs.columns) == [".pred_no", ".pred_yes"]
        np.testing.assert_allclose(probs.sum(axis=1), 1.0)
        assert len(probs) == len(small_classification_data)

    def test_class_matches_probability(self, fit, small_classification_data):
        probs = fit.predict(small_classification_data, type="prob")
        classes = fit.predict(small_classification_data, type="class")

        expected = np.where(probs[".pred_yes"] >= 0.5, "yes", "no")
        assert list(classes[".pred_class"]) == list(expected)
        assert list(classes[".pred_class"].cat.categories) == ["no", "yes"]

    def test_default_type_is_class(self, fit, small_classification_data):
        assert list(fit.predict(small_classification_data).columns) == [".pred_class"]

    def test_unsupported_type(self, fit, small_classification_data):
        with pytest.raises(PredictionError):
            fit.predict(small_classification_data, type="numeric")

    def test_unseen_level(self, fit):
        new = pd.DataFrame({"x": [0.0], "group": ["d"]})

        with pytest.raises(UnseenCategoryError):
            fit.predict(new, type="prob")


class TestLogisticValidation:
    def test_single_observed_class(self, small_classification_data):
        data = small_classification_data.copy()
        data["outcome"] = pd.Categorical(["no"] * len(data), categories=["no", "yes"])

        with pytest.raises(ModelTrainingError):
            LogisticRegressionModel().fit("outcome ~ x", data)

    def test_three_classes(self, small_classification_data):
        with pytest.raises(ModelTrainingError):
            LogisticRegressionModel().fit("group ~ x", small_classification_data)

    def test_rank_deficient_error(self, small_classification_data):
        data = small_classification_data.assign(x2=2.0 * small_classification_data["x"])

        with pytest.raises(RankDeficiencyError):
            LogisticRegressionModel().fit("outcome ~ x + x2", data)

    def test_rank_deficient_drop(self, small_classification_data):
        data = small_classification_data.assign(x2=2.0 * small_classification_data["x"])
        model = LogisticRegressionModel(LogisticConfig(rank_deficient="drop"))

        fit = model.fit("outcome ~ x + x2", data)

        assert len(fit.terms) == 2
        assert len(fit.predict(data, type="prob")) == len(data)


class TestPersistence:
    def test_save_and_load(self, fit, small_classification_data, tmp_path):
        path = tmp_path / "models" / "logistic.joblib"

        fit.save(str(path))
        loaded = LogisticRegressionFit.load(str(path))

        pd.testing.assert_frame_equal(
            loaded.predict(small_classification_data, type="prob"),
            fit.predict(small_classification_data, type="prob"),
        )

    def test_load_missing(self, tmp_path):
        with pytest.raises(ArtifactError):
            LogisticRegressionFit.load(str(tmp_path / "nope.joblib"))

    def test_fit_is_frozen(self, fit):
        with pytest.raises(FrozenInstanceError):
            fit.n_obs = 0
