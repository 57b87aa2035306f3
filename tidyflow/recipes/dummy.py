"""
Dummy Variable Step

Replaces nominal columns with numeric indicator columns. Levels are fixed at
prep time from the training column's categorical dtype (or its sorted
values), so every data set baked afterwards gets the same indicator
columns in the same order.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Tuple
import logging
import re

import numpy as np
import pandas as pd

from tidyflow.core.exceptions import FeatureEngineeringError, UnseenCategoryError
from tidyflow.recipes.base import PreparedStep, RecipeStep, require_columns
from tidyflow.recipes.selectors import (
    SelectorLike,
    all_nominal,
    all_outcomes,
    as_selector,
    is_nominal,
)


logger = logging.getLogger(__name__)

STEP_NAME = "dummy"

UNSEEN_POLICIES = ("error", "ignore")


def dummy_name(column: str, level: Any) -> str:
    """``<column>_<level>`` with characters outside ``[A-Za-z0-9_.]`` replaced."""
    return f"{column}_{re.sub(r'[^0-9A-Za-z_.]', '_', str(level))}"


def training_levels(series: pd.Series) -> List[Any]:
    """Level set of a nominal column: categorical order, else sorted values."""
    if isinstance(series.dtype, pd.CategoricalDtype):
        return list(series.cat.categories)
    return sorted(series.dropna().unique().tolist(), key=str)


@dataclass(frozen=True)
class PreparedDummy(PreparedStep):
    step_name = STEP_NAME

    levels: Tuple[Tuple[str, Tuple[Any, ...]], ...] = ()
    one_hot: bool = False
    unseen: str = "error"
    names: Tuple[Tuple[str, Tuple[str, ...]], ...] = field(default=())

    def transform(self, data: pd.DataFrame) -> pd.DataFrame:
        require_columns(data, self.columns, STEP_NAME)
        indicator_frames = []
        for col, levels in self.levels:
            indicator_frames.append(self._indicators(data[col], col, list(levels)))

        out = data.drop(columns=list(self.columns))
        if indicator_frames:
            out = pd.concat([out, *indicator_frames], axis=1)
        return out

    def _indicators(self, series: pd.Series, col: str, levels: List[Any]) -> pd.DataFrame:
        present = set(series.dropna().unique().tolist())
        novel = sorted(present - set(levels), key=str)
        if novel:
            if self.unseen == "error":
                raise UnseenCategoryError(
                    f"Column '{col}' has level(s) not seen at prep time: {novel}",
                    column=col,
                    levels=novel,
                )
            logger.warning(
                f"{STEP_NAME} | {col}: {len(novel)} unseen level(s) {novel} "
                f"encoded as all-zero rows"
            )

        codes = pd.Categorical(series, categories=levels).codes
        offset = 0 if self.one_hot else 1
        kept = levels[offset:]
        matrix = np.zeros((len(series), len(kept)), dtype=float)

        rows = np.flatnonzero(codes >= offset)
        matrix[rows, codes[rows] - offset] = 1.0
        matrix[series.isna().to_numpy(), :] = np.nan

        columns = dict(self.names)[col]
        return pd.DataFrame(matrix, columns=list(columns), index=series.index)

    def report(self) -> pd.DataFrame:
        rows = []
        for col, levels in self.levels:
            reference = None if self.one_hot else (levels[0] if levels else None)
            rows.append({
                "column": col,
                "n_levels": len(levels),
                "reference": reference,
                "n_indicators": len(dict(self.names)[col]),
            })
        return pd.DataFrame(rows)

    def settings(self) -> Dict[str, Any]:
        return {"one_hot": self.one_hot, "unseen": self.unseen}


class StepDummy(RecipeStep):
    """Convert nominal columns into indicator columns.

    With ``one_hot=False`` the first level is the reference and gets no
    column. Levels unused in the training rows still get a column (all
    zeros); a zero-variance step afterwards removes them.

    Args:
        columns: Nominal columns; defaults to every nominal non-outcome column.
        one_hot: Keep a column for every level, including the first.
        unseen: ``"error"`` raises UnseenCategoryError when baking data with
            a level unknown at prep time; ``"ignore"`` encodes it as zeros.
    """

    step_name = STEP_NAME

    def __init__(
        self,
        columns: SelectorLike = None,
        one_hot: bool = False,
        unseen: str = "error",
    ):
        if unseen not in UNSEEN_POLICIES:
            raise FeatureEngineeringError(
                f"unseen must be one of {list(UNSEEN_POLICIES)}, got '{unseen}'"
            )
        self.selector = as_selector(columns) if columns is not None else all_nominal() - all_outcomes()
        self.one_hot = one_hot
        self.unseen = unseen

    def prep(self, data: pd.DataFrame, roles: Dict[str, str]) -> PreparedDummy:
        columns = self.selector.resolve(data, roles)
        not_nominal = [c for c in columns if not is_nominal(data[c])]
        if not_nominal:
            raise FeatureEngineeringError(
                f"step_dummy requires nominal columns; got {not_nominal}",
                feature_name=not_nominal[0],
            )

        levels: List[Tuple[str, Tuple[Any, ...]]] = []
        names: List[Tuple[str, Tuple[str, ...]]] = []
        added: List[str] = []
        for col in columns:
            col_levels = training_levels(data[col])
            if not col_levels:
                raise FeatureEngineeringError(
                    f"step_dummy: column '{col}' has no levels", feature_name=col
                )
            kept = col_levels if self.one_hot else col_levels[1:]
            col_names = tuple(dummy_name(col, lvl) for lvl in kept)
            levels.append((col, tuple(col_levels)))
            names.append((col, col_names))
            added.extend(col_names)

        self.logger.debug(
            f"{STEP_NAME} | {len(columns)} nominal columns -> {len(added)} indicator columns"
        )
        return PreparedDummy(
            columns=tuple(columns),
            added=tuple(added),
            removed=tuple(columns),
            levels=tuple(levels),
            one_hot=self.one_hot,
            unseen=self.unseen,
            names=tuple(names),
        )

    def describe(self) -> str:
        return f"Dummy variables from {self.selector.description}"
