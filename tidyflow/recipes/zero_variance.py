"""
Zero Variance Filter Step

Eliminates columns with fewer than ``min_unique_values`` distinct non-missing
values in the training data.
"""

from dataclasses import dataclass
from typing import Any, Dict, Tuple

import pandas as pd

from tidyflow.recipes.base import PreparedStep, RecipeStep
from tidyflow.recipes.selectors import SelectorLike, all_predictors, as_selector


STEP_NAME = "zv"


@dataclass(frozen=True)
class PreparedZv(PreparedStep):
    step_name = STEP_NAME

    unique_counts: Tuple[Tuple[str, int], ...] = ()
    min_unique_values: int = 2

    def transform(self, data: pd.DataFrame) -> pd.DataFrame:
        return data.drop(columns=[c for c in self.removed if c in data.columns])

    def report(self) -> pd.DataFrame:
        eliminated = set(self.removed)
        rows = [
            {
                "Feature": col,
                "Unique_Count": n_unique,
                "Status": "Eliminated" if col in eliminated else "Kept",
            }
            for col, n_unique in self.unique_counts
        ]
        return pd.DataFrame(rows, columns=["Feature", "Unique_Count", "Status"])

    def settings(self) -> Dict[str, Any]:
        return {"min_unique_values": self.min_unique_values}


class StepZv(RecipeStep):
    """Remove columns that take a single value in the training data.

    Args:
        columns: Columns to check; defaults to all predictors.
        min_unique_values: Columns with fewer distinct values are removed.
    """

    step_name = STEP_NAME

    def __init__(self, columns: SelectorLike = None, min_unique_values: int = 2):
        self.selector = as_selector(columns) if columns is not None else all_predictors()
        self.min_unique_values = min_unique_values

    def prep(self, data: pd.DataFrame, roles: Dict[str, str]) -> PreparedZv:
        """Identify columns with fewer than min_unique_values unique values."""
        columns = self.selector.resolve(data, roles)
        counts = []
        eliminated = []

        for col in columns:
            n_unique = int(data[col].nunique(dropna=True))
            counts.append((col, n_unique))
            if n_unique < self.min_unique_values:
                eliminated.append(col)

        self.logger.info(
            f"{STEP_NAME} | Eliminated {len(eliminated)} columns "
            f"({len(columns) - len(eliminated)} remaining)"
        )
        if eliminated:
            self.logger.debug(f"{STEP_NAME} | Eliminated: {eliminated}")

        return PreparedZv(
            columns=tuple(columns),
            removed=tuple(eliminated),
            unique_counts=tuple(counts),
            min_unique_values=self.min_unique_values,
        )

    def describe(self) -> str:
        return f"Zero variance filter on {self.selector.description}"
