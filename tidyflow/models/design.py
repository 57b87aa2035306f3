"""
Design Matrices

Builds model design matrices either from a patsy formula or from an already
numeric predictor frame, and rebuilds identical matrices for new data.
"""

from dataclasses import dataclass
from typing import Any, List, Optional, Tuple
import logging

import numpy as np
import pandas as pd
from patsy import PatsyError, dmatrix
from scipy import linalg

from tidyflow.core.exceptions import (
    ModelTrainingError,
    PredictionError,
    RankDeficiencyError,
    UnseenCategoryError,
)


logger = logging.getLogger(__name__)

INTERCEPT = "Intercept"

# rows per block when reducing a tall design to its triangular factor
RANK_BLOCK_ROWS = 50_000


@dataclass(frozen=True)
class DesignSpec:
    """Everything needed to rebuild a training design matrix on new data.

    Attributes:
        outcome: Outcome column name.
        rhs: Right-hand side of the formula, or None for a numeric frame.
        columns: Predictor columns of the numeric frame (rhs is None).
        factor_levels: Levels of each categorical predictor at fit time.
        terms: Design matrix column names, in order.
    """

    outcome: str
    rhs: Optional[str]
    columns: Tuple[str, ...]
    factor_levels: Tuple[Tuple[str, Tuple[Any, ...]], ...]
    terms: Tuple[str, ...]

    @property
    def has_intercept(self) -> bool:
        return INTERCEPT in self.terms

    def with_terms(self, terms: List[str]) -> "DesignSpec":
        return DesignSpec(self.outcome, self.rhs, self.columns, self.factor_levels, tuple(terms))

    def build(self, new_data: pd.DataFrame) -> pd.DataFrame:
        """Design matrix for ``new_data`` with the training columns.

        Raises:
            PredictionError: If predictors are missing or contain missing values.
            UnseenCategoryError: If a categorical predictor has an unknown level.
        """
        data = coerce_levels(new_data, self.factor_levels)

        if self.rhs is None:
            missing = [c for c in self.columns if c not in data.columns]
            if missing:
                raise PredictionError(
                    f"New data is missing predictors: {missing}",
                    details={"missing_columns": missing},
                )
            X = data[list(self.columns)].astype(float)
            if X.isna().any().any():
                raise PredictionError("Predictors contain missing values")
            X.insert(0, INTERCEPT, 1.0)
        else:
            try:
                X = dmatrix(self.rhs, data, return_type="dataframe", NA_action="raise")
            except PatsyError as e:
                raise PredictionError(
                    f"Cannot build design matrix for '{self.rhs}'", cause=e
                )

        missing_terms = [t for t in self.terms if t not in X.columns]
        if missing_terms:
            raise PredictionError(
                f"Design matrix for new data lacks terms {missing_terms}",
                details={"terms": list(self.terms)},
            )
        return X[list(self.terms)].reset_index(drop=True)


def coerce_levels(
    data: pd.DataFrame,
    factor_levels: Tuple[Tuple[str, Tuple[Any, ...]], ...]
) -> pd.DataFrame:
    """Cast categorical predictors to their fit-time level sets.

    Raises:
        UnseenCategoryError: If a value is not among the known levels.
    """
    if not factor_levels:
        return data
    data = data.copy()
    for col, levels in factor_levels:
        if col not in data.columns:
            continue
        present = set(data[col].dropna().unique().tolist())
        novel = sorted(present - set(levels), key=str)
        if novel:
            raise UnseenCategoryError(
                f"Column '{col}' has level(s) unknown to the fitted model: {novel}",
                column=col,
                levels=novel,
            )
        data[col] = pd.Categorical(data[col], categories=list(levels))
    return data


def formula_design(formula: str, data: pd.DataFrame) -> Tuple[pd.Series, pd.DataFrame, DesignSpec]:
    """Outcome vector, design matrix and DesignSpec from a patsy formula.

    Raises:
        ModelTrainingError: If the formula cannot be evaluated on ``data``.
    """
    if "~" not in formula:
        raise ModelTrainingError(f"Formula '{formula}' has no '~'")
    outcome, rhs = (part.strip() for part in formula.split("~", 1))

    if outcome not in data.columns:
        raise ModelTrainingError(f"Outcome '{outcome}' is not a column of the data")

    try:
        X = dmatrix(rhs, data, return_type="dataframe", NA_action="raise")
    except PatsyError as e:
        raise ModelTrainingError(f"Cannot evaluate formula '{formula}'", cause=e)

    factor_levels = []
    for factor, info in X.design_info.factor_infos.items():
        name = factor.name()
        if info.type == "categorical" and name in data.columns:
            factor_levels.append((name, tuple(info.categories)))

    spec = DesignSpec(
        outcome=outcome,
        rhs=rhs,
        columns=(),
        factor_levels=tuple(factor_levels),
        terms=tuple(X.columns),
    )
    y = data[outcome].reset_index(drop=True)
    return y, X.reset_index(drop=True), spec


def xy_design(X: pd.DataFrame, y: pd.Series) -> Tuple[pd.Series, pd.DataFrame, DesignSpec]:
    """Design matrix (intercept first) from numeric predictors.

    Raises:
        ModelTrainingError: If a predictor is not numeric or values are missing.
    """
    non_numeric = [c for c in X.columns if not pd.api.types.is_numeric_dtype(X[c])]
    if non_numeric:
        raise ModelTrainingError(
            f"Predictors must be numeric; encode {non_numeric} with a dummy step first"
        )
    if len(X) != len(y):
        raise ModelTrainingError(f"X and y length mismatch: {len(X)} vs {len(y)}")

    values = np.ones((len(X), X.shape[1] + 1))
    for j, col in enumerate(X.columns, start=1):
        values[:, j] = X[col].to_numpy(dtype=float)
    if np.isnan(values).any():
        raise ModelTrainingError("Predictors contain missing values")
    design = pd.DataFrame(values, columns=[INTERCEPT, *X.columns], copy=False)

    spec = DesignSpec(
        outcome=str(y.name) if y.name is not None else "y",
        rhs=None,
        columns=tuple(X.columns),
        factor_levels=(),
        terms=tuple(design.columns),
    )
    return y.reset_index(drop=True), design, spec


def _triangular_factor(values: np.ndarray, block_rows: int) -> np.ndarray:
    """R factor of a tall matrix, accumulated over row blocks."""
    n_cols = values.shape[1]
    r = np.empty((0, n_cols))
    for start in range(0, len(values), block_rows):
        stacked = np.vstack([r, values[start:start + block_rows]])
        r = linalg.qr(stacked, mode="r", check_finite=False)[0][: min(stacked.shape)]
    return r


def check_rank(
    X: pd.DataFrame,
    model_name: str,
    policy: str = "error",
    block_rows: int = RANK_BLOCK_ROWS,
) -> List[str]:
    """Verify the design has full column rank.

    The design is reduced block by block to its k x k triangular factor,
    which is then decomposed with column pivoting; columns beyond the
    numerical rank are aliased with earlier ones.

    Args:
        X: Design matrix.
        model_name: Name reported in errors.
        policy: ``"error"`` raises, ``"drop"`` returns the full-rank subset.
        block_rows: Rows per block of the reduction.

    Returns:
        Column names to keep, in original order.

    Raises:
        RankDeficiencyError: If the design is rank deficient under ``"error"``.
    """
    n_rows, n_cols = X.shape
    if n_rows < n_cols:
        raise RankDeficiencyError(
            f"{n_rows} rows cannot identify {n_cols} coefficients",
            rank=n_rows,
            n_columns=n_cols,
            model_name=model_name,
        )

    factor = _triangular_factor(X.to_numpy(dtype=float), block_rows)
    r, pivot = linalg.qr(factor, mode="r", pivoting=True)
    diag = np.abs(np.diag(r))
    tol = diag.max() * max(n_rows, n_cols) * np.finfo(float).eps if diag.size else 0.0
    rank = int((diag > tol).sum())

    if rank == n_cols:
        return list(X.columns)

    aliased = [X.columns[i] for i in sorted(pivot[rank:])]
    if policy == "error":
        raise RankDeficiencyError(
            f"Design matrix has rank {rank} < {n_cols} columns; aliased: {aliased}",
            rank=rank,
            n_columns=n_cols,
            model_name=model_name,
            details={"aliased": aliased},
        )

    logger.warning(f"{model_name} | Dropping {len(aliased)} aliased column(s): {aliased}")
    keep = set(pivot[:rank])
    return [c for i, c in enumerate(X.columns) if i in keep]
