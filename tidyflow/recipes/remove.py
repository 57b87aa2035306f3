"""
Column Removal Step

Drops selected columns, typically raw date columns once calendar features
have been derived from them.
"""

from dataclasses import dataclass
from typing import Dict

import pandas as pd

from tidyflow.core.exceptions import FeatureEngineeringError
from tidyflow.recipes.base import PreparedStep, RecipeStep
from tidyflow.recipes.selectors import SelectorLike, as_selector


STEP_NAME = "rm"


@dataclass(frozen=True)
class PreparedRm(PreparedStep):
    step_name = STEP_NAME

    def transform(self, data: pd.DataFrame) -> pd.DataFrame:
        return data.drop(columns=[c for c in self.removed if c in data.columns])


class StepRm(RecipeStep):
    """Remove columns.

    Args:
        columns: Columns to drop (selector, name or list of names).
    """

    step_name = STEP_NAME

    def __init__(self, columns: SelectorLike):
        self.selector = as_selector(columns)

    def prep(self, data: pd.DataFrame, roles: Dict[str, str]) -> PreparedRm:
        columns = self.selector.resolve(data, roles)
        if not columns:
            raise FeatureEngineeringError(
                f"step_rm selected no columns ({self.selector.description})"
            )
        self.logger.debug(f"{STEP_NAME} | Removing {columns}")
        return PreparedRm(columns=tuple(columns), removed=tuple(columns))

    def describe(self) -> str:
        return f"Variables removed {self.selector.description}"
