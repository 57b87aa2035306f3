"""
Bayesian Linear Regression Model

Gaussian linear model with Student-t (or normal) priors on the intercept and
coefficients and an exponential prior on the residual scale, sampled with
multi-chain adaptive Metropolis.

The intercept prior applies to the model with centred predictors; reported
coefficients are on the original predictor scale.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, Optional
import logging

import numpy as np
import pandas as pd

from tidyflow.config.schema import BayesConfig
from tidyflow.core.exceptions import ConvergenceError, ModelTrainingError
from tidyflow.models.base_model import ModelFit, ModelSpec, coefficient_table
from tidyflow.models.design import INTERCEPT, DesignSpec, check_rank
from tidyflow.models.priors import aux_prior, coefficient_prior, intercept_prior, prior_table
from tidyflow.models.sampler import adaptive_metropolis, mad_sd, split_rhat


logger = logging.getLogger(__name__)

LOG_2PI = np.log(2.0 * np.pi)


@dataclass(frozen=True, eq=False)
class BayesianLinearRegressionFit(ModelFit):
    """Posterior draws of a Bayesian linear regression.

    Attributes:
        draws: Coefficient draws (draws, terms) in ``terms`` order.
        sigma_draws: Residual scale draws.
        rhat: Split R-hat per parameter (terms and ``sigma``).
        priors: Adjusted priors used for sampling.
        chains: Number of chains.
        seed: Seed used for sampling and for posterior predictive noise.
    """

    prediction_types = ("numeric", "conf_int", "pred_int")

    draws: np.ndarray = field(default=None, repr=False)
    sigma_draws: np.ndarray = field(default=None, repr=False)
    rhat: Dict[str, float] = field(default_factory=dict)
    priors: pd.DataFrame = field(default=None, repr=False)
    chains: int = 4
    seed: int = 123

    @property
    def formula(self) -> str:
        rhs = self.design.rhs if self.design.rhs is not None else " + ".join(self.design.columns)
        return f"{self.design.outcome} ~ {rhs}"

    def tidy(self, conf_int: bool = False, level: float = 0.95) -> pd.DataFrame:
        """Posterior median and MAD-SD per coefficient.

        Args:
            conf_int: Add equal-tailed credible intervals.
            level: Credible level.

        Returns:
            DataFrame with columns term, estimate, std_error (and conf_low,
            conf_high).
        """
        table = self.coef_table[["term", "estimate", "std_error"]].copy()
        if conf_int:
            alpha = 1.0 - level
            table["conf_low"] = np.quantile(self.draws, alpha / 2.0, axis=0)
            table["conf_high"] = np.quantile(self.draws, 1.0 - alpha / 2.0, axis=0)
        return table

    def posterior_summary(self) -> pd.DataFrame:
        """Mean, sd, 10/50/90% quantiles and R-hat for every parameter."""
        values = np.column_stack([self.draws, self.sigma_draws])
        names = [*self.terms, "sigma"]
        return pd.DataFrame({
            "parameter": names,
            "mean": values.mean(axis=0),
            "sd": values.std(axis=0, ddof=1),
            "10%": np.quantile(values, 0.1, axis=0),
            "50%": np.quantile(values, 0.5, axis=0),
            "90%": np.quantile(values, 0.9, axis=0),
            "rhat": [self.rhat.get(n, np.nan) for n in names],
        })

    def summary_text(self, digits: int = 3) -> str:
        sigma_median = float(np.median(self.sigma_draws))
        sigma_mad = float(mad_sd(self.sigma_draws))
        width = max(len(t) for t in [*self.terms, "sigma"]) + 2
        rows = [
            (row.term, f"{row.estimate:.{digits}g}", f"{row.std_error:.{digits}g}")
            for row in self.coef_table.itertuples(index=False)
        ]
        rows.append(("sigma", f"{sigma_median:.{digits}g}", f"{sigma_mad:.{digits}g}"))
        col = max(len("MAD_SD"), *(len(v) for _, *values in rows for v in values)) + 2
        table = [f"{term:<{width}}{median:>{col}}{mad:>{col}}" for term, median, mad in rows]

        lines = [
            "stan_glm (adaptive Metropolis)",
            " family:       gaussian [identity]",
            f" formula:      {self.formula}",
            f" observations: {self.n_obs}",
            f" predictors:   {len(self.terms)}",
            "------",
            f"{'':<{width}}{'Median':>{col}}{'MAD_SD':>{col}}",
        ]
        lines += table[:-1]
        lines += [
            "",
            "Auxiliary parameter(s):",
            table[-1],
            "------",
            f"draws: {len(self.sigma_draws)} ({self.chains} chains), "
            f"max R-hat: {max(self.rhat.values()):.{digits}f}",
        ]
        return "\n".join(lines)

    def print_summary(self, digits: int = 3) -> str:
        """Print the rstanarm-style summary and return it."""
        text = self.summary_text(digits)
        print(text)
        return text

    def _predict(self, X: pd.DataFrame, type: str, level: float = 0.95, **kwargs: Any) -> pd.DataFrame:
        mu = X.to_numpy(dtype=float) @ self.draws.T
        if type == "numeric":
            return pd.DataFrame({".pred": mu.mean(axis=1)})

        if type == "pred_int":
            rng = np.random.default_rng(self.seed)
            mu = mu + self.sigma_draws[None, :] * rng.standard_normal(mu.shape)

        alpha = 1.0 - level
        return pd.DataFrame({
            ".pred_lower": np.quantile(mu, alpha / 2.0, axis=1),
            ".pred_upper": np.quantile(mu, 1.0 - alpha / 2.0, axis=1),
        })


class BayesianLinearRegressionModel(ModelSpec):
    """
    Bayesian linear regression (``linear_reg(engine="stan")``).

    Features:
    - Autoscaled Student-t priors on intercept and coefficients
    - Exponential prior on sigma
    - Seeded multi-chain sampling with split R-hat check
    """

    mode = "regression"
    engine = "stan"

    def __init__(self, config: Optional[BayesConfig] = None, name: Optional[str] = None):
        super().__init__(config or BayesConfig(), name or "BayesianLinearRegressionModel")

    def _fit_design(self, X: pd.DataFrame, y: pd.Series, design: DesignSpec) -> BayesianLinearRegressionFit:
        """
        Sample the posterior.

        Args:
            X: Design matrix with an ``Intercept`` column
            y: Numeric outcome
            design: Design rebuild information

        Returns:
            BayesianLinearRegressionFit

        Raises:
            ModelTrainingError: If the design has no intercept or y is unusable
            RankDeficiencyError: If the design is rank deficient
            ConvergenceError: If any split R-hat exceeds ``max_rhat``
        """
        cfg = self.model_config
        self._start_execution()

        if INTERCEPT not in X.columns:
            raise ModelTrainingError("Bayesian regression requires an intercept", model_name=self.name)
        if not pd.api.types.is_numeric_dtype(y) or y.isna().any():
            raise ModelTrainingError(
                f"Outcome '{design.outcome}' must be numeric without missing values",
                model_name=self.name,
            )

        check_rank(X, self.name, "error")
        terms = list(X.columns)
        predictors = X.drop(columns=[INTERCEPT])
        y_values = y.to_numpy(dtype=float)
        x_values = predictors.to_numpy(dtype=float)
        x_means = x_values.mean(axis=0)
        x_centred = x_values - x_means
        n, k = x_centred.shape

        prior_int = intercept_prior(cfg.prior_intercept, y_values)
        prior_coef = coefficient_prior(cfg.prior, predictors, y_values)
        prior_aux = aux_prior(cfg.prior_aux_rate, y_values, autoscale=cfg.prior.autoscale)

        def log_posterior(theta: np.ndarray) -> np.ndarray:
            alpha, beta, log_sigma = theta[:, 0], theta[:, 1:1 + k], theta[:, -1]
            sigma = np.exp(log_sigma)
            mu = alpha[None, :] + x_centred @ beta.T
            z = (y_values[:, None] - mu) / sigma[None, :]
            loglik = -n * log_sigma - 0.5 * (z ** 2).sum(axis=0) - 0.5 * n * LOG_2PI
            return (
                loglik
                + prior_int.logpdf(alpha[:, None])
                + prior_coef.logpdf(beta)
                + prior_aux.logpdf(sigma)
                + log_sigma
            )

        mode, cov = _least_squares_start(x_centred, y_values)
        rng = np.random.default_rng(cfg.seed)
        init = mode + 2.0 * rng.standard_normal((cfg.chains, len(mode))) @ np.linalg.cholesky(cov).T

        self.logger.info(
            f"{self.name} | Sampling {cfg.chains} chains x {cfg.iter} iterations "
            f"({cfg.warmup} warmup), seed {cfg.seed}"
        )
        result = adaptive_metropolis(
            log_posterior, init, cov, n_iter=cfg.iter, n_warmup=cfg.warmup, rng=rng
        )

        alpha_draws = result.draws[:, :, 0]
        beta_draws = result.draws[:, :, 1:1 + k]
        sigma_draws = np.exp(result.draws[:, :, -1])
        intercept_draws = alpha_draws - beta_draws @ x_means

        by_chain = np.concatenate(
            [intercept_draws[:, :, None], beta_draws, sigma_draws[:, :, None]], axis=2
        )
        names = [INTERCEPT] + [t for t in terms if t != INTERCEPT] + ["sigma"]
        rhat = {name: split_rhat(by_chain[:, :, j]) for j, name in enumerate(names)}

        max_name = max(rhat, key=lambda p: np.nan_to_num(rhat[p], nan=0.0))
        if cfg.max_rhat is not None and rhat[max_name] > cfg.max_rhat:
            raise ConvergenceError(
                f"Chains did not mix: R-hat for '{max_name}' is {rhat[max_name]:.3f} "
                f"(threshold {cfg.max_rhat})",
                diagnostics={
                    "rhat": rhat,
                    "acceptance_rate": result.acceptance_rate.tolist(),
                },
                model_name=self.name,
            )

        # reorder columns to the design's term order
        pooled = by_chain.reshape(-1, by_chain.shape[2])
        order = [names.index(t) for t in terms]
        draws = pooled[:, order]
        sigma_pooled = pooled[:, -1]

        self._end_execution()
        self.logger.info(
            f"{self.name} | {len(pooled):,} draws, max R-hat {rhat[max_name]:.3f}, "
            f"acceptance {result.acceptance_rate.mean():.2f} "
            f"in {self.execution_duration:.1f}s"
        )

        return BayesianLinearRegressionFit(
            model_name=self.name,
            mode=self.mode,
            engine=self.engine,
            design=design,
            coef_table=coefficient_table(
                tuple(terms), np.median(draws, axis=0), mad_sd(draws, axis=0)
            ),
            n_obs=n,
            df_resid=None,
            fit_stats={
                "sigma": float(np.median(sigma_pooled)),
                "max_rhat": float(rhat[max_name]),
                "acceptance_rate": float(result.acceptance_rate.mean()),
                "draws": float(len(pooled)),
            },
            draws=draws,
            sigma_draws=sigma_pooled,
            rhat=rhat,
            priors=prior_table(prior_int, prior_coef, prior_aux, list(predictors.columns)),
            chains=cfg.chains,
            seed=cfg.seed,
        )


def _least_squares_start(x_centred: np.ndarray, y: np.ndarray):
    """Least squares mode and covariance of (alpha, beta, log sigma)."""
    n, k = x_centred.shape
    alpha = y.mean()
    if k:
        beta, *_ = np.linalg.lstsq(x_centred, y - alpha, rcond=None)
        resid = y - alpha - x_centred @ beta
    else:
        beta = np.empty(0)
        resid = y - alpha
    dof = max(n - k - 1, 1)
    sigma2 = max(float(resid @ resid) / dof, 1e-12)

    d = k + 2
    cov = np.zeros((d, d))
    cov[0, 0] = sigma2 / n
    if k:
        cov[1:1 + k, 1:1 + k] = sigma2 * np.linalg.pinv(x_centred.T @ x_centred)
    cov[-1, -1] = 1.0 / (2.0 * dof)

    mode = np.concatenate([[alpha], beta, [0.5 * np.log(sigma2)]])
    return mode, cov
