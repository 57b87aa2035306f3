"""
Recipes Module

Role-aware preprocessing recipes: declare roles and steps, prep on training
data, bake any data set with the same schema.
"""

from tidyflow.recipes.base import PreparedStep, RecipeStep, StepResult
from tidyflow.recipes.recipe import PreparedRecipe, Recipe
from tidyflow.recipes.date_features import StepDate
from tidyflow.recipes.holidays import DEFAULT_HOLIDAYS, StepHoliday, holiday_dates
from tidyflow.recipes.remove import StepRm
from tidyflow.recipes.dummy import StepDummy
from tidyflow.recipes.zero_variance import StepZv
from tidyflow.recipes.selectors import (
    Selector,
    all_dates,
    all_nominal,
    all_nominal_predictors,
    all_numeric,
    all_numeric_predictors,
    all_outcomes,
    all_predictors,
    has_role,
    names,
)

__all__ = [
    "Recipe",
    "PreparedRecipe",
    "RecipeStep",
    "PreparedStep",
    "StepResult",
    "StepDate",
    "StepHoliday",
    "StepRm",
    "StepDummy",
    "StepZv",
    "DEFAULT_HOLIDAYS",
    "holiday_dates",
    "Selector",
    "all_dates",
    "all_nominal",
    "all_nominal_predictors",
    "all_numeric",
    "all_numeric_predictors",
    "all_outcomes",
    "all_predictors",
    "has_role",
    "names",
]
