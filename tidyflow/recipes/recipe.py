"""
Recipe

A Recipe declares column roles and an ordered list of preprocessing steps.
``prep`` estimates every step on training data only and returns a
PreparedRecipe, an immutable object that applies the identical
transformations to any data set with the same schema.
"""

from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence, Tuple
import logging
import time

import pandas as pd

from tidyflow.core.exceptions import FeatureEngineeringError, SchemaValidationError
from tidyflow.data.schema_validator import describe_schema
from tidyflow.recipes.base import PreparedStep, RecipeStep, StepResult, build_result
from tidyflow.recipes.date_features import StepDate
from tidyflow.recipes.dummy import StepDummy
from tidyflow.recipes.holidays import StepHoliday
from tidyflow.recipes.remove import StepRm
from tidyflow.recipes.selectors import (
    OUTCOME,
    PREDICTOR,
    SelectorLike,
    is_date,
    is_nominal,
    is_numeric,
)
from tidyflow.recipes.zero_variance import StepZv


logger = logging.getLogger(__name__)

STEP_NAME = "recipe"


def variable_type(series: pd.Series) -> str:
    if is_date(series):
        return "date"
    if is_nominal(series):
        return "nominal"
    if is_numeric(series):
        return "numeric"
    return "other"


@dataclass(frozen=True, eq=False)
class Recipe:
    """Roles plus an ordered, unprepared list of steps.

    Every ``step_*`` and ``update_role`` call returns a new Recipe; the
    original is left unchanged.

    Args:
        outcome: Name of the outcome column.
        data: Data whose columns define the recipe variables. Only the
            column names and dtypes are kept.
    """

    outcome: str
    data: pd.DataFrame = field(repr=False)
    roles: Tuple[Tuple[str, str], ...] = ()
    steps: Tuple[RecipeStep, ...] = ()

    def __post_init__(self):
        if self.outcome not in self.data.columns:
            raise FeatureEngineeringError(
                f"Outcome '{self.outcome}' is not a column of the recipe data",
                feature_name=self.outcome,
            )
        object.__setattr__(self, "data", self.data.iloc[:0].copy())
        if not self.roles:
            roles = tuple(
                (c, OUTCOME if c == self.outcome else PREDICTOR) for c in self.data.columns
            )
            object.__setattr__(self, "roles", roles)

    @property
    def role_map(self) -> Dict[str, str]:
        return dict(self.roles)

    def _replace(self, **changes) -> "Recipe":
        values = {
            "outcome": self.outcome,
            "data": self.data,
            "roles": self.roles,
            "steps": self.steps,
        }
        values.update(changes)
        return Recipe(**values)

    def update_role(self, *columns: str, new_role: str = "predictor") -> "Recipe":
        """Assign ``new_role`` (e.g. ``"ID"``) to the given columns.

        Columns with a role other than predictor or outcome are kept in the
        data but are not used by the model.
        """
        unknown = [c for c in columns if c not in self.data.columns]
        if unknown:
            raise FeatureEngineeringError(f"update_role: unknown columns {unknown}")
        if self.outcome in columns and new_role != OUTCOME:
            raise FeatureEngineeringError(
                f"update_role: cannot change the role of outcome '{self.outcome}'"
            )
        targets = set(columns)
        roles = tuple((c, new_role if c in targets else r) for c, r in self.roles)
        return self._replace(roles=roles)

    def add_step(self, step: RecipeStep) -> "Recipe":
        return self._replace(steps=(*self.steps, step))

    def step_date(
        self, columns: SelectorLike, features: Sequence[str] = ("dow", "month"), abbr: bool = True
    ) -> "Recipe":
        return self.add_step(StepDate(columns, features=features, abbr=abbr))

    def step_holiday(self, columns: SelectorLike, holidays: Optional[Sequence[str]] = None) -> "Recipe":
        return self.add_step(StepHoliday(columns, holidays=holidays))

    def step_rm(self, columns: SelectorLike) -> "Recipe":
        return self.add_step(StepRm(columns))

    def step_dummy(
        self, columns: SelectorLike = None, one_hot: bool = False, unseen: str = "error"
    ) -> "Recipe":
        return self.add_step(StepDummy(columns, one_hot=one_hot, unseen=unseen))

    def step_zv(self, columns: SelectorLike = None) -> "Recipe":
        return self.add_step(StepZv(columns))

    def summary(self) -> pd.DataFrame:
        """One row per variable: variable, type, role, source."""
        rows = [
            {
                "variable": col,
                "type": variable_type(self.data[col]),
                "role": role,
                "source": "original",
            }
            for col, role in self.roles
        ]
        return pd.DataFrame(rows, columns=["variable", "type", "role", "source"])

    def prep(self, training: pd.DataFrame) -> "PreparedRecipe":
        """Estimate every step, in order, on ``training``.

        Args:
            training: Training data containing every recipe variable.

        Returns:
            PreparedRecipe holding the fitted steps and the processed
            training data.

        Raises:
            SchemaValidationError: If training data lacks recipe variables.
            FeatureEngineeringError: If a step cannot be estimated.
        """
        template_columns = list(self.data.columns)
        missing = [c for c in template_columns if c not in training.columns]
        if missing:
            raise SchemaValidationError(
                f"Training data is missing recipe variables: {missing}",
                expected_schema=describe_schema(self.data),
                actual_schema=describe_schema(training),
                details={"missing_columns": missing},
            )
        if training.empty:
            raise FeatureEngineeringError("Cannot prep a recipe on empty training data")

        current = training[template_columns].reset_index(drop=True)
        roles = self.role_map
        prepared_steps: List[PreparedStep] = []
        results: List[StepResult] = []

        for step in self.steps:
            t0 = time.time()
            prepared = step.prep(current, roles)
            transformed = prepared.transform(current)
            result = build_result(prepared, current, transformed, time.time() - t0)
            logger.info(f"{STEP_NAME} | {result.summary()}")

            prepared_steps.append(prepared)
            results.append(result)
            roles = prepared.update_roles(roles)
            current = transformed

        current = _outcome_last(current, self.outcome)
        logger.info(
            f"{STEP_NAME} | Prepared {len(prepared_steps)} steps on {len(training):,} rows: "
            f"{len(template_columns)} -> {current.shape[1]} columns"
        )

        return PreparedRecipe(
            outcome=self.outcome,
            template=self.data,
            input_roles=self.roles,
            roles=tuple((c, roles[c]) for c in current.columns),
            steps=tuple(prepared_steps),
            results=tuple(results),
            training=current,
        )


def _outcome_last(df: pd.DataFrame, outcome: str) -> pd.DataFrame:
    if outcome not in df.columns:
        return df
    return df[[c for c in df.columns if c != outcome] + [outcome]]


@dataclass(frozen=True, eq=False)
class PreparedRecipe:
    """A recipe whose steps were estimated on training data.

    Attributes:
        outcome: Outcome column name.
        template: Zero-row frame with the input columns and dtypes.
        input_roles: Roles of the input variables.
        roles: Roles of the baked output columns.
        steps: Prepared steps, in application order.
        results: One StepResult per step.
        training: Processed training data (what ``bake(None)`` returns).
    """

    outcome: str
    template: pd.DataFrame = field(repr=False)
    input_roles: Tuple[Tuple[str, str], ...]
    roles: Tuple[Tuple[str, str], ...]
    steps: Tuple[PreparedStep, ...]
    results: Tuple[StepResult, ...] = field(repr=False)
    training: pd.DataFrame = field(repr=False)

    @property
    def predictors(self) -> List[str]:
        return [c for c, r in self.roles if r == PREDICTOR]

    @property
    def columns(self) -> List[str]:
        return [c for c, _ in self.roles]

    def bake(self, new_data: Optional[pd.DataFrame] = None) -> pd.DataFrame:
        """Apply the prepared steps to ``new_data``.

        Args:
            new_data: Data with the recipe's input columns; the outcome may
                be absent. ``None`` returns the processed training data.

        Returns:
            Processed data; column names and dtypes match the training
            output (minus the outcome when it was absent).

        Raises:
            SchemaValidationError: If a required input column is absent.
            UnseenCategoryError: If a dummy step meets an unknown level.
        """
        if new_data is None:
            return self.training.copy()

        required = [c for c, _ in self.input_roles if c != self.outcome]
        missing = [c for c in required if c not in new_data.columns]
        if missing:
            raise SchemaValidationError(
                f"New data is missing required columns: {missing}",
                expected_schema=describe_schema(self.template),
                actual_schema=describe_schema(new_data),
                details={"missing_columns": missing},
            )

        columns = [c for c, _ in self.input_roles if c in new_data.columns]
        current = new_data[columns].copy()
        for step in self.steps:
            current = step.transform(current)

        current = _outcome_last(current, self.outcome)
        return current.reset_index(drop=True)

    def juice(self) -> pd.DataFrame:
        return self.bake(None)

    def summary(self) -> pd.DataFrame:
        """Variables after preparation: variable, type, role, source."""
        original = {c for c, _ in self.input_roles}
        rows = [
            {
                "variable": col,
                "type": variable_type(self.training[col]),
                "role": role,
                "source": "original" if col in original else "derived",
            }
            for col, role in self.roles
        ]
        return pd.DataFrame(rows, columns=["variable", "type", "role", "source"])

    def step_summary(self) -> pd.DataFrame:
        return pd.DataFrame([
            {
                "step": r.step_name,
                "n_input": r.n_input,
                "n_output": r.n_output,
                "n_added": len(r.added_columns),
                "n_removed": len(r.removed_columns),
                "duration_seconds": r.duration_seconds,
            }
            for r in self.results
        ])
