"""
Base Model

Abstract model specification and the immutable fitted-model artifact it
produces. A ModelSpec holds settings only; ``fit`` returns a ModelFit that
never changes afterwards and can be saved and loaded with joblib.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, ClassVar, Dict, Optional, Tuple
from pathlib import Path

import numpy as np
import pandas as pd
from scipy import stats

from tidyflow.core.base import PandasComponent
from tidyflow.core.exceptions import ArtifactError, PredictionError
from tidyflow.models.design import DesignSpec, formula_design, xy_design


TIDY_COLUMNS = ["term", "estimate", "std_error", "statistic", "p_value"]


@dataclass(frozen=True, eq=False)
class ModelFit(ABC):
    """Fitted model artifact.

    Attributes:
        model_name: Name of the specification that produced the fit.
        mode: ``classification`` or ``regression``.
        engine: Estimation engine (``glm``, ``lm``, ``stan``).
        design: How to rebuild the design matrix for new data.
        coef_table: Per-term estimate, std_error, statistic, p_value.
        n_obs: Number of training rows.
        df_resid: Residual degrees of freedom for t intervals; None means
            normal intervals.
        fit_stats: Model-level statistics reported by ``glance``.
    """

    model_name: str
    mode: str
    engine: str
    design: DesignSpec
    coef_table: pd.DataFrame = field(repr=False)
    n_obs: int = 0
    df_resid: Optional[float] = None
    fit_stats: Dict[str, float] = field(default_factory=dict)

    prediction_types: ClassVar[Tuple[str, ...]] = ()

    @property
    def coefficients(self) -> pd.Series:
        """Point estimates indexed by term."""
        return self.coef_table.set_index("term")["estimate"]

    @property
    def terms(self) -> Tuple[str, ...]:
        return self.design.terms

    def glance(self) -> pd.DataFrame:
        """One-row summary of model-level fit statistics."""
        return pd.DataFrame([{"model": self.model_name, "nobs": self.n_obs, **self.fit_stats}])

    def tidy(self, conf_int: bool = False, level: float = 0.95) -> pd.DataFrame:
        """Coefficient table with optional confidence intervals.

        Args:
            conf_int: Add ``conf_low`` and ``conf_high`` columns.
            level: Confidence level of the intervals.

        Returns:
            DataFrame with columns term, estimate, std_error, statistic,
            p_value (and conf_low, conf_high).
        """
        table = self.coef_table.copy()
        if conf_int:
            alpha = 1.0 - level
            if self.df_resid is not None:
                crit = stats.t.ppf(1.0 - alpha / 2.0, self.df_resid)
            else:
                crit = stats.norm.ppf(1.0 - alpha / 2.0)
            table["conf_low"] = table["estimate"] - crit * table["std_error"]
            table["conf_high"] = table["estimate"] + crit * table["std_error"]
        return table.reset_index(drop=True)

    def predict(self, new_data: pd.DataFrame, type: Optional[str] = None, **kwargs: Any) -> pd.DataFrame:
        """Predict for ``new_data``; one output row per input row.

        Args:
            new_data: Data with the model's predictors.
            type: Prediction type; defaults to the first supported type.
            **kwargs: Type-specific options (e.g. ``level``).

        Returns:
            DataFrame with tidymodels-style ``.pred*`` columns.

        Raises:
            PredictionError: On an unsupported type or unusable data.
        """
        type = type or self.prediction_types[0]
        if type not in self.prediction_types:
            raise PredictionError(
                f"Unsupported prediction type '{type}' for {self.model_name}; "
                f"supported: {list(self.prediction_types)}"
            )
        X = self.design.build(new_data)
        return self._predict(X, type, **kwargs)

    @abstractmethod
    def _predict(self, X: pd.DataFrame, type: str, **kwargs: Any) -> pd.DataFrame:
        pass

    def save(self, path: str) -> None:
        """Save the fit to disk with joblib."""
        import joblib

        try:
            Path(path).parent.mkdir(parents=True, exist_ok=True)
            joblib.dump(self, path)
        except (OSError, TypeError) as e:
            raise ArtifactError(f"Failed to save {self.model_name}", artifact_path=str(path), cause=e)

    @classmethod
    def load(cls, path: str) -> "ModelFit":
        """Load a fit saved with :meth:`save`."""
        import joblib

        try:
            fit = joblib.load(path)
        except (OSError, EOFError) as e:
            raise ArtifactError("Failed to load model artifact", artifact_path=str(path), cause=e)
        if not isinstance(fit, cls):
            raise ArtifactError(
                f"Artifact holds {type(fit).__name__}, expected {cls.__name__}",
                artifact_path=str(path),
            )
        return fit


def coefficient_table(
    terms: Tuple[str, ...],
    estimates: np.ndarray,
    std_errors: np.ndarray,
    statistics: Optional[np.ndarray] = None,
    p_values: Optional[np.ndarray] = None,
) -> pd.DataFrame:
    n = len(terms)
    return pd.DataFrame({
        "term": list(terms),
        "estimate": np.asarray(estimates, dtype=float),
        "std_error": np.asarray(std_errors, dtype=float),
        "statistic": np.asarray(statistics, dtype=float) if statistics is not None else np.full(n, np.nan),
        "p_value": np.asarray(p_values, dtype=float) if p_values is not None else np.full(n, np.nan),
    }, columns=TIDY_COLUMNS)


class ModelSpec(PandasComponent):
    """
    Abstract model specification.

    Subclasses implement ``_fit_design``; ``fit`` (formula interface) and
    ``fit_xy`` (predictor frame interface) build the design matrix and
    delegate to it.
    """

    mode: str = ""
    engine: str = ""

    def __init__(self, config: Optional[Any] = None, name: Optional[str] = None):
        super().__init__(name=name or self.__class__.__name__)
        self.model_config = config

    def run(self, formula: str, data: pd.DataFrame) -> ModelFit:
        """Run is implemented as fit."""
        return self.fit(formula=formula, data=data)

    def fit(self, formula: str, data: pd.DataFrame) -> ModelFit:
        """Fit with a patsy formula such as ``"width ~ initial_volume * food_regime"``."""
        y, X, design = formula_design(formula, data)
        self.logger.info(
            f"{self.name} | Fitting '{formula}' on {len(X):,} rows, {X.shape[1]} terms"
        )
        return self._fit_design(X, y, design)

    def fit_xy(self, X: pd.DataFrame, y: pd.Series) -> ModelFit:
        """Fit on numeric predictors ``X`` (an intercept is added) and outcome ``y``."""
        y, design_matrix, design = xy_design(X, y)
        self.logger.info(
            f"{self.name} | Fitting on {len(design_matrix):,} rows, "
            f"{design_matrix.shape[1]} terms"
        )
        return self._fit_design(design_matrix, y, design)

    @abstractmethod
    def _fit_design(self, X: pd.DataFrame, y: pd.Series, design: DesignSpec) -> ModelFit:
        pass

    def describe(self) -> Dict[str, Any]:
        settings = self.model_config.model_dump() if self.model_config is not None else {}
        return {"model": self.name, "mode": self.mode, "engine": self.engine, **settings}
