"""
Linear Regression Model

Ordinary least squares with statsmodels, with confidence intervals for the
mean response and prediction intervals for new observations.
"""

from dataclasses import dataclass, field
from typing import Any, Optional

import numpy as np
import pandas as pd
import statsmodels.api as sm

from tidyflow.config.schema import LinearConfig
from tidyflow.core.exceptions import ModelTrainingError
from tidyflow.models.base_model import ModelFit, ModelSpec, coefficient_table
from tidyflow.models.design import DesignSpec, check_rank


@dataclass(frozen=True, eq=False)
class LinearRegressionFit(ModelFit):
    """Fitted OLS model; holds the statsmodels results for interval predictions."""

    prediction_types = ("numeric", "conf_int", "pred_int")

    results: Any = field(default=None, repr=False)

    @property
    def sigma(self) -> float:
        return float(np.sqrt(self.results.scale))

    def _predict(self, X: pd.DataFrame, type: str, level: float = 0.95, **kwargs: Any) -> pd.DataFrame:
        if type == "numeric":
            return pd.DataFrame({".pred": np.asarray(self.results.predict(X), dtype=float)})

        frame = self.results.get_prediction(X).summary_frame(alpha=1.0 - level)
        if type == "conf_int":
            lower, upper = frame["mean_ci_lower"], frame["mean_ci_upper"]
        else:
            lower, upper = frame["obs_ci_lower"], frame["obs_ci_upper"]
        return pd.DataFrame({
            ".pred_lower": lower.to_numpy(dtype=float),
            ".pred_upper": upper.to_numpy(dtype=float),
        })


class LinearRegressionModel(ModelSpec):
    """Least squares regression (``linear_reg(engine="lm")``)."""

    mode = "regression"
    engine = "lm"

    def __init__(self, config: Optional[LinearConfig] = None, name: Optional[str] = None):
        super().__init__(config or LinearConfig(), name or "LinearRegressionModel")

    def _fit_design(self, X: pd.DataFrame, y: pd.Series, design: DesignSpec) -> LinearRegressionFit:
        """Fit OLS on the design matrix.

        Raises:
            ModelTrainingError: If the outcome is not numeric or has missing values.
            RankDeficiencyError: If the design is rank deficient.
        """
        self._start_execution()
        if not pd.api.types.is_numeric_dtype(y):
            raise ModelTrainingError(
                f"Outcome '{design.outcome}' must be numeric, got {y.dtype}",
                model_name=self.name,
            )
        if y.isna().any():
            raise ModelTrainingError(
                f"Outcome '{design.outcome}' has missing values", model_name=self.name
            )

        kept = check_rank(X, self.name, self.model_config.rank_deficient)
        if kept != list(X.columns):
            X = X[kept]
        design = design.with_terms(kept)

        try:
            results = sm.OLS(y.astype(float).to_numpy(), X).fit()
        except (np.linalg.LinAlgError, ValueError) as e:
            raise ModelTrainingError("OLS fitting failed", model_name=self.name, cause=e)

        self._end_execution()
        self.logger.info(
            f"{self.name} | R-squared {results.rsquared:.3f}, "
            f"sigma {np.sqrt(results.scale):.4g} on {int(results.df_resid)} df"
        )

        return LinearRegressionFit(
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
            df_resid=float(results.df_resid),
            fit_stats={
                "r_squared": float(results.rsquared),
                "adj_r_squared": float(results.rsquared_adj),
                "sigma": float(np.sqrt(results.scale)),
                "statistic": float(results.fvalue),
                "p_value": float(results.f_pvalue),
                "df": float(results.df_model),
                "logLik": float(results.llf),
                "AIC": float(results.aic),
                "BIC": float(results.bic),
            },
            results=results,
        )
