"""
Workflow

Bundles a preprocessing recipe (or a formula) with a model specification.
Fitting preps the recipe on the training data, bakes it and fits the model
on the resulting predictors; the fitted workflow applies the same
preprocessing before every prediction.
"""

from dataclasses import dataclass, field
from typing import Any, Optional
import logging

import pandas as pd

from tidyflow.core.exceptions import ConfigurationError, ModelTrainingError
from tidyflow.models.base_model import ModelFit, ModelSpec
from tidyflow.recipes.recipe import PreparedRecipe, Recipe


logger = logging.getLogger(__name__)

STEP_NAME = "workflow"


@dataclass(frozen=True, eq=False)
class WorkflowFit:
    """A fitted workflow: prepared recipe (if any) plus model fit."""

    model_fit: ModelFit
    prepared_recipe: Optional[PreparedRecipe] = field(default=None, repr=False)
    formula: Optional[str] = None

    def extract_fit(self) -> ModelFit:
        return self.model_fit

    def extract_recipe(self) -> Optional[PreparedRecipe]:
        return self.prepared_recipe

    def _processed(self, new_data: pd.DataFrame) -> pd.DataFrame:
        if self.prepared_recipe is None:
            return new_data.reset_index(drop=True)
        baked = self.prepared_recipe.bake(new_data)
        return baked[self.prepared_recipe.predictors]

    def predict(self, new_data: pd.DataFrame, type: Optional[str] = None, **kwargs: Any) -> pd.DataFrame:
        """Preprocess ``new_data`` exactly as the training data, then predict.

        Args:
            new_data: Raw data with the recipe's input columns.
            type: Prediction type (``class``/``prob`` or ``numeric``/
                ``conf_int``/``pred_int``).

        Returns:
            One prediction row per input row.
        """
        return self.model_fit.predict(self._processed(new_data), type=type, **kwargs)

    def augment(self, new_data: pd.DataFrame) -> pd.DataFrame:
        """``new_data`` with prediction columns appended.

        Classification adds class probabilities and ``.pred_class``;
        regression adds ``.pred``.
        """
        processed = self._processed(new_data)
        if self.model_fit.mode == "classification":
            parts = [
                self.model_fit.predict(processed, type="prob"),
                self.model_fit.predict(processed, type="class"),
            ]
        else:
            parts = [self.model_fit.predict(processed, type="numeric")]
        return pd.concat([new_data.reset_index(drop=True), *parts], axis=1)


@dataclass(frozen=True, eq=False)
class Workflow:
    """Unfitted workflow; every ``add_*`` call returns a new Workflow."""

    model: Optional[ModelSpec] = None
    recipe: Optional[Recipe] = None
    formula: Optional[str] = None

    def add_model(self, model: ModelSpec) -> "Workflow":
        return Workflow(model=model, recipe=self.recipe, formula=self.formula)

    def add_recipe(self, recipe: Recipe) -> "Workflow":
        if self.formula is not None:
            raise ConfigurationError("A workflow takes a recipe or a formula, not both")
        return Workflow(model=self.model, recipe=recipe)

    def add_formula(self, formula: str) -> "Workflow":
        if self.recipe is not None:
            raise ConfigurationError("A workflow takes a recipe or a formula, not both")
        return Workflow(model=self.model, formula=formula)

    def fit(self, data: pd.DataFrame) -> WorkflowFit:
        """Prep the recipe on ``data`` and fit the model.

        Raises:
            ConfigurationError: If the model or the preprocessor is missing.
        """
        if self.model is None:
            raise ConfigurationError("Workflow has no model; call add_model() first")
        if self.recipe is None and self.formula is None:
            raise ConfigurationError("Workflow has no recipe or formula")

        if self.formula is not None:
            logger.info(f"{STEP_NAME} | Fitting {self.model.name} with formula '{self.formula}'")
            return WorkflowFit(model_fit=self.model.fit(self.formula, data), formula=self.formula)

        prepared = self.recipe.prep(data)
        baked = prepared.training
        predictors = prepared.predictors
        if not predictors:
            raise ModelTrainingError("Prepared recipe leaves no predictors")

        logger.info(
            f"{STEP_NAME} | Fitting {self.model.name} on {len(baked):,} rows, "
            f"{len(predictors)} predictors"
        )
        model_fit = self.model.fit_xy(baked[predictors], baked[prepared.outcome])
        return WorkflowFit(model_fit=model_fit, prepared_recipe=prepared)
