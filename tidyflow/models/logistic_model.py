"""
Logistic Regression Model

Binomial GLM with logit link, estimated by iteratively reweighted least
squares in statsmodels.
"""

from dataclasses import dataclass
from typing import Any, List, Optional, Tuple

import numpy as np
import pandas as pd
import statsmodels.api as sm
from scipy.special import expit

from tidyflow.config.schema import LogisticConfig
from tidyflow.core.exceptions import ConvergenceError, ModelTrainingError
from tidyflow.models.base_model import ModelFit, ModelSpec, coefficient_table
from tidyflow.models.design import DesignSpec, check_rank


def outcome_levels(y: pd.Series) -> List[Any]:
    """The two outcome classes in level order (categorical order, else sorted)."""
    if isinstance(y.dtype, pd.CategoricalDtype):
        levels = list(y.cat.categories)
    else:
        levels = sorted(y.dropna().unique().tolist(), key=str)
    return levels


@dataclass(frozen=True, eq=False)
class LogisticRegressionFit(ModelFit):
    """Fitted logistic regression.

    The linear predictor models the probability of the second outcome level;
    the first level is the reference.
    """

    prediction_types = ("class", "prob")

    levels: Tuple[Any, ...] = ()

    def linear_predictor(self, X: pd.DataFrame) -> np.ndarray:
        params = self.coefficients.reindex(list(self.terms)).to_numpy()
        return X.to_numpy(dtype=float) @ params

    def _predict(self, X: pd.DataFrame, type: str, **kwargs: Any) -> pd.DataFrame:
        p_second = expit(self.linear_predictor(X))
        first, second = self.levels

        if type == "prob":
            return pd.DataFrame({
                f".pred_{first}": 1.0 - p_second,
                f".pred_{second}": p_second,
            })

        classes = np.where(p_second >= 0.5, second, first)
        return pd.DataFrame({
            ".pred_class": pd.Categorical(classes, categories=list(self.levels)),
        })


class LogisticRegressionModel(ModelSpec):
    """
    Logistic regression classifier (``logistic_reg(engine="glm")``).

    Features:
    - Two-level outcome; levels taken from the categorical order
    - Rank check before fitting
    - Convergence check after IRLS
    """

    mode = "classification"
    engine = "glm"

    def __init__(self, config: Optional[LogisticConfig] = None, name: Optional[str] = None):
        super().__init__(config or LogisticConfig(), name or "LogisticRegressionModel")

    def _fit_design(self, X: pd.DataFrame, y: pd.Series, design: DesignSpec) -> LogisticRegressionFit:
        """
        Fit the binomial GLM.

        Args:
            X: Design matrix (intercept included)
            y: Two-level outcome
            design: Design rebuild information

        Returns:
            LogisticRegressionFit

        Raises:
            ModelTrainingError: If the outcome is not two-level or fitting fails
            RankDeficiencyError: If the design is rank deficient
            ConvergenceError: If IRLS does not converge within max_iter
        """
        cfg = self.model_config
        self._start_execution()

        if y.isna().any():
            raise ModelTrainingError(
                f"Outcome '{design.outcome}' has {int(y.isna().sum())} missing values",
                model_name=self.name,
            )
        levels = outcome_levels(y)
        observed = set(y.unique().tolist())
        if len(levels) != 2 or len(observed) != 2:
            raise ModelTrainingError(
                f"Logistic regression needs exactly two observed outcome levels; "
                f"levels {levels}, observed {sorted(observed, key=str)}",
                model_name=self.name,
            )

        kept = check_rank(X, self.name, cfg.rank_deficient)
        if kept != list(X.columns):
            X = X[kept]
        design = design.with_terms(kept)
        endog = (y == levels[1]).astype(float).to_numpy()

        try:
            results = sm.GLM(endog, X, family=sm.families.Binomial()).fit(
                maxiter=cfg.max_iter, tol=cfg.tol
            )
        except (np.linalg.LinAlgError, ValueError) as e:
            raise ModelTrainingError("GLM fitting failed", model_name=self.name, cause=e)

        iterations = int(results.fit_history.get("iteration", cfg.max_iter))
        if not getattr(results, "converged", True):
            raise ConvergenceError(
                f"IRLS did not converge in {cfg.max_iter} iterations",
                diagnostics={"iterations": iterations, "tol": cfg.tol},
                model_name=self.name,
            )

        self._end_execution()
        self.logger.info(
            f"{self.name} | Converged in {iterations} iterations "
            f"(deviance {results.deviance:.1f}, AIC {results.aic:.1f}) "
            f"in {self.execution_duration:.1f}s"
        )

        return LogisticRegressionFit(
            model_name=self.name,
            mode=self.mode,
            engine=self.engine,
            design=design,
            coef_table=coefficient_table(
                design.terms,
                results.params.to_numpy(),
                results.bse.to_numpy(),
                results.tvalues.to_numpy(),
                results.pvalues.to_numpy(),
            ),
            n_obs=int(results.nobs),
            df_resid=None,
            fit_stats={
                "null_deviance": float(results.null_deviance),
                "deviance": float(results.deviance),
                "df_null": float(results.df_model + results.df_resid),
                "df_residual": float(results.df_resid),
                "logLik": float(results.llf),
                "AIC": float(results.aic),
                "iterations": float(iterations),
            },
            levels=tuple(levels),
        )
