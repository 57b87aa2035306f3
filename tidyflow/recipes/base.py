"""
Recipe Step Base Classes

Defines the contract every preprocessing step follows. An unprepared
RecipeStep holds only its settings; ``prep`` estimates whatever the step
needs from training data and returns an immutable PreparedStep that can be
applied to any number of data sets.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, ClassVar, Dict, List, Tuple

import pandas as pd

from tidyflow.core.exceptions import SchemaValidationError
from tidyflow.core.logger import LoggerMixin
from tidyflow.recipes.selectors import PREDICTOR


@dataclass
class StepResult:
    """Result of preparing one recipe step.

    Attributes:
        step_name: Identifier for the step (e.g., 'date', 'dummy').
        input_columns: Columns present before the step.
        output_columns: Columns present after the step.
        added_columns: Columns created by the step.
        removed_columns: Columns dropped by the step.
        results_df: Detailed per-column results DataFrame.
        metadata: Arbitrary extra data (settings used, levels, etc.).
        duration_seconds: Wall-clock time the step took to prepare.
    """

    step_name: str
    input_columns: List[str]
    output_columns: List[str]
    added_columns: List[str] = field(default_factory=list)
    removed_columns: List[str] = field(default_factory=list)
    results_df: pd.DataFrame = field(default_factory=pd.DataFrame)
    metadata: Dict[str, Any] = field(default_factory=dict)
    duration_seconds: float = 0.0

    @property
    def n_input(self) -> int:
        return len(self.input_columns)

    @property
    def n_output(self) -> int:
        return len(self.output_columns)

    def summary(self) -> str:
        """Human-readable one-line summary."""
        return (
            f"{self.step_name}: {self.n_input} -> {self.n_output} columns "
            f"(+{len(self.added_columns)}, -{len(self.removed_columns)}) "
            f"in {self.duration_seconds:.1f}s"
        )


@dataclass(frozen=True)
class PreparedStep(ABC):
    """A step whose parameters were estimated from training data.

    Attributes:
        columns: Columns the step operates on, resolved at prep time.
        added: Columns the step creates.
        removed: Columns the step drops.
    """

    step_name: ClassVar[str] = ""

    columns: Tuple[str, ...]
    added: Tuple[str, ...] = ()
    removed: Tuple[str, ...] = ()

    @abstractmethod
    def transform(self, data: pd.DataFrame) -> pd.DataFrame:
        """Apply the step to a DataFrame without modifying it.

        Args:
            data: DataFrame with at least the step's input columns.

        Returns:
            New DataFrame with the step applied.
        """
        pass

    def update_roles(self, roles: Dict[str, str]) -> Dict[str, str]:
        """Roles after the step: new columns are predictors, dropped ones vanish."""
        removed = set(self.removed)
        updated = {k: v for k, v in roles.items() if k not in removed}
        for col in self.added:
            updated.setdefault(col, PREDICTOR)
        return updated

    def report(self) -> pd.DataFrame:
        """Per-column details of what was estimated."""
        return pd.DataFrame({"column": list(self.columns)})

    def settings(self) -> Dict[str, Any]:
        return {}


class RecipeStep(LoggerMixin, ABC):
    """Base class for all unprepared recipe steps.

    Subclasses implement ``prep``, which estimates step parameters on the
    training data and returns the prepared step, logging through
    ``self.logger``.
    """

    step_name: str = ""

    @abstractmethod
    def prep(self, data: pd.DataFrame, roles: Dict[str, str]) -> PreparedStep:
        """Estimate the step on training data.

        Args:
            data: Training data as produced by the preceding steps.
            roles: Column name to role mapping at this point of the recipe.

        Returns:
            PreparedStep holding the estimated parameters.
        """
        pass

    def describe(self) -> str:
        return self.step_name


def build_result(
    prepared: PreparedStep,
    before: pd.DataFrame,
    after: pd.DataFrame,
    duration: float,
) -> StepResult:
    """StepResult describing the column changes a prepared step made."""
    return StepResult(
        step_name=prepared.step_name,
        input_columns=list(before.columns),
        output_columns=list(after.columns),
        added_columns=list(prepared.added),
        removed_columns=list(prepared.removed),
        results_df=prepared.report(),
        metadata=prepared.settings(),
        duration_seconds=round(duration, 1),
    )


def require_columns(data: pd.DataFrame, columns: Tuple[str, ...], step_name: str) -> None:
    """Raise SchemaValidationError if any step input column is absent."""
    missing = [c for c in columns if c not in data.columns]
    if missing:
        raise SchemaValidationError(
            f"Step '{step_name}' needs columns missing from the data: {missing}",
            expected_schema={c: "any" for c in columns},
            actual_schema={c: str(t) for c, t in data.dtypes.items()},
            details={"missing_columns": missing},
        )
