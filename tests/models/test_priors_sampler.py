"""
Tests for Priors and the Adaptive Metropolis Sampler

Tests prior autoscaling and densities, R-hat, MAD-SD and sampling a known
target distribution.
"""

import numpy as np
import pandas as pd
import pytest
from scipy import stats

from tidyflow.config.schema import PriorConfig
from tidyflow.models.priors import (
    LocationScalePrior,
    aux_prior,
    coefficient_prior,
    intercept_prior,
    normal,
    prior_table,
    student_t,
)
from tidyflow.models.sampler import adaptive_metropolis, mad_sd, split_rhat


class TestPriors:
    @pytest.fixture
    def design(self):
        rng = np.random.default_rng(3)
        X = pd.DataFrame({"a": rng.normal(0, 2, 50), "b": rng.normal(0, 10, 50)})
        y = rng.normal(0, 4, 50)
        return X, y

    def test_autoscaled_coefficients(self, design):
        X, y = design

        prior = coefficient_prior(student_t(), X, y)

        sd_y = np.std(y, ddof=1)
        expected = 2.5 * sd_y / X.std(ddof=1).to_numpy()
        np.testing.assert_allclose(prior.scale, expected)
        assert prior.df == 1.0
        assert prior.family == "student_t"

    def test_fixed_scale(self, design):
        X, y = design

        prior = coefficient_prior(PriorConfig(scale=1.5, autoscale=False), X, y)

        np.testing.assert_allclose(prior.scale, [1.5, 1.5])

    def test_intercept_and_aux(self, design):
        _, y = design
        sd_y = np.std(y, ddof=1)

        assert intercept_prior(student_t(), y).scale[0] == pytest.approx(2.5 * sd_y)
        assert aux_prior(1.0, y).rate == pytest.approx(1.0 / sd_y)
        assert aux_prior(1.0, y, autoscale=False).rate == 1.0

    def test_student_t_logpdf(self):
        prior = LocationScalePrior(location=np.zeros(2), scale=np.array([1.0, 2.0]), df=3.0)
        x = np.array([[0.5, -1.0]])

        expected = stats.t.logpdf(0.5, 3.0, scale=1.0) + stats.t.logpdf(-1.0, 3.0, scale=2.0)
        assert prior.logpdf(x)[0] == pytest.approx(expected)

    def test_normal_logpdf(self):
        prior = LocationScalePrior(location=np.zeros(1), scale=np.ones(1))

        assert prior.family == "normal"
        assert prior.logpdf(np.array([[0.0]]))[0] == pytest.approx(stats.norm.logpdf(0.0))

    def test_normal_helper(self):
        assert normal().family == "normal"

    def test_prior_table(self, design):
        X, y = design
        table = prior_table(
            intercept_prior(student_t(), y), coefficient_prior(student_t(), X, y), aux_prior(1.0, y), ["a", "b"]
        )

        assert list(table["parameter"]) == ["Intercept (centred predictors)", "a", "b", "sigma"]


class TestDiagnostics:
    def test_rhat_of_mixed_chains(self):
        draws = np.random.default_rng(0).normal(size=(4, 1000))

        assert split_rhat(draws) == pytest.approx(1.0, abs=0.02)

    def test_rhat_of_separated_chains(self):
        draws = np.random.default_rng(0).normal(size=(4, 1000)) + np.arange(4)[:, None] * 5

        assert split_rhat(draws) > 2.0

    def test_rhat_too_short(self):
        assert np.isnan(split_rhat(np.zeros((2, 3))))

    def test_mad_sd(self):
        values = np.random.default_rng(1).normal(0, 2, 100_000)

        assert float(mad_sd(values)) == pytest.approx(2.0, rel=0.02)


class TestAdaptiveMetropolis:
    def test_samples_correlated_normal(self):
        cov = np.array([[1.0, 0.8], [0.8, 1.0]])
        precision = np.linalg.inv(cov)
        mean = np.array([3.0, -1.0])

        def log_density(theta):
            centred = theta - mean
            return -0.5 * np.einsum("ci,ij,cj->c", centred, precision, centred)

        rng = np.random.default_rng(11)
        result = adaptive_metropolis(
            log_density, np.zeros((4, 2)), np.eye(2), n_iter=4000, n_warmup=1000, rng=rng
        )

        pooled = result.pooled()
        assert result.draws.shape == (4, 3000, 2)
        np.testing.assert_allclose(pooled.mean(axis=0), mean, atol=0.15)
        np.testing.assert_allclose(np.cov(pooled, rowvar=False), cov, atol=0.2)
        assert 0.1 < result.acceptance_rate.mean() < 0.6

    def test_rejects_non_finite(self):
        def half_line(theta):
            return np.where(theta[:, 0] > 0, -theta[:, 0], -np.inf)

        result = adaptive_metropolis(
            half_line, np.ones((2, 1)), np.eye(1), n_iter=500, n_warmup=100,
            rng=np.random.default_rng(5),
        )

        assert (result.pooled() > 0).all()
