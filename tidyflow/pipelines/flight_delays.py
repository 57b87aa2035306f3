"""
Flight Delay Pipeline

Classifies flights as ``late`` (arrival delay of 30 minutes or more) or
``on_time``:

1. Prepare records (outcome, date, weather join, cleaning)
2. Seeded train/test split and unseen-level audit
3. Recipe: ID roles, date parts, holidays, dummies, zero-variance filter
4. Logistic regression workflow fit on the training partition
5. Test-set probabilities, classes, ROC curve and AUC
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

import pandas as pd
from matplotlib.figure import Figure

from tidyflow.config.schema import FlightDelayConfig
from tidyflow.data.data_splitter import DataSplit, InitialSplit, find_unseen_levels
from tidyflow.data.flight_data import FlightDataPreparer, outcome_balance
from tidyflow.evaluation.evaluator import ClassificationEvaluator, EvaluationResult
from tidyflow.io.output_manager import OutputManager
from tidyflow.models.model_factory import logistic_reg
from tidyflow.pipelines.base import BasePipeline, RunInfo
from tidyflow.plotting.classification_plots import plot_roc_curve
from tidyflow.recipes.recipe import Recipe
from tidyflow.recipes.selectors import ID, all_nominal, all_outcomes, all_predictors
from tidyflow.workflows.workflow import Workflow, WorkflowFit


PIPELINE_NAME = "flight_delays"


@dataclass
class FlightDelayResult:
    """Every intermediate product of a flight delay run."""

    flight_data: pd.DataFrame
    outcome_balance: pd.DataFrame
    split: DataSplit
    unseen_levels: Dict[str, List[Any]]
    recipe: Recipe
    workflow_fit: WorkflowFit
    coefficients: pd.DataFrame
    evaluation: EvaluationResult
    figures: Dict[str, Figure] = field(default_factory=dict)
    run_info: RunInfo = field(default_factory=RunInfo)

    @property
    def auc(self) -> float:
        return self.evaluation.auc

    @property
    def predictions(self) -> pd.DataFrame:
        return self.evaluation.predictions

    @property
    def roc_curve(self) -> pd.DataFrame:
        return self.evaluation.roc_curve


def build_flight_recipe(training: pd.DataFrame, config: Optional[FlightDelayConfig] = None) -> Recipe:
    """Flight delay recipe declared on the training partition.

    ``flight`` and ``time_hour`` become ID variables, the date is split into
    day of week and month plus holiday indicators and then dropped, nominal
    predictors are dummy coded and constant columns removed.
    """
    config = config or FlightDelayConfig()
    data_cfg = config.data
    recipe_cfg = config.recipe
    date_col = data_cfg.date_column

    recipe = (
        Recipe(data_cfg.outcome_column, training)
        .update_role(*data_cfg.id_columns, new_role=ID)
        .step_date(date_col, features=recipe_cfg.date_features, abbr=recipe_cfg.abbr)
        .step_holiday(date_col, holidays=recipe_cfg.holidays)
        .step_rm(date_col)
        .step_dummy(all_nominal() - all_outcomes(), one_hot=recipe_cfg.one_hot, unseen=recipe_cfg.unseen)
    )
    if recipe_cfg.remove_zero_variance:
        recipe = recipe.step_zv(all_predictors())
    return recipe


class FlightDelayPipeline(BasePipeline):
    """Flight delay classification from raw flights and weather tables.

    Args:
        config: FlightDelayConfig; defaults reproduce the tutorial analysis.
        output_manager: Optional OutputManager for saving artifacts.
    """

    def __init__(
        self,
        config: Optional[FlightDelayConfig] = None,
        output_manager: Optional[OutputManager] = None,
    ):
        super().__init__(config or FlightDelayConfig(), PIPELINE_NAME, output_manager)

    def run(self, flights: pd.DataFrame, weather: pd.DataFrame) -> FlightDelayResult:
        """Run every stage and return the collected results.

        Raises:
            PipelineException: Any stage failure, after it has been logged.
        """
        cfg = self.config
        outcome = cfg.data.outcome_column
        self._begin()
        if self.output_manager is not None:
            self.output_manager.register_inputs({"flights": flights, "weather": weather})

        flight_data = self._stage(
            "prepare_data", FlightDataPreparer(cfg.data).prepare, flights, weather
        )
        balance = outcome_balance(flight_data, outcome)
        self.plog.data_stats("flight_data", len(flight_data), flight_data.shape[1])

        split = self._stage("split", InitialSplit(cfg.splitting).split, flight_data)
        train, test = split.training(), split.testing()
        unseen = find_unseen_levels(train, test)

        recipe = self._stage("build_recipe", build_flight_recipe, train, cfg)
        workflow = Workflow().add_model(logistic_reg(config=cfg.model)).add_recipe(recipe)
        workflow_fit = self._stage("fit", workflow.fit, train)
        coefficients = workflow_fit.extract_fit().tidy()
        self.plog.metric("n_coefficients", len(coefficients))

        evaluator = ClassificationEvaluator(cfg.evaluation)
        evaluation = self._stage(
            "evaluate",
            evaluator.evaluate,
            workflow_fit,
            test,
            outcome,
            id_columns=cfg.data.id_columns,
        )
        self.plog.metric("roc_auc", f"{evaluation.auc:.4f}")

        figures = {
            "roc_curve": plot_roc_curve(
                evaluation.roc_curve, auc=evaluation.auc, title="Flight delay ROC curve (test set)"
            )
        }

        self._save_tables({
            "outcome_balance": balance,
            "recipe_summary": workflow_fit.prepared_recipe.summary(),
            "recipe_steps": workflow_fit.prepared_recipe.step_summary(),
            "coefficients": coefficients,
            "test_predictions": evaluation.predictions,
            "roc_curve": evaluation.roc_curve,
            "metrics": evaluation.metrics_frame(),
        })
        self._save_json("unseen_levels", unseen)
        self._save_figures(figures)
        self._save_model("workflow_fit", workflow_fit)
        self._finish("success")

        return FlightDelayResult(
            flight_data=flight_data,
            outcome_balance=balance,
            split=split,
            unseen_levels=unseen,
            recipe=recipe,
            workflow_fit=workflow_fit,
            coefficients=coefficients,
            evaluation=evaluation,
            figures=figures,
            run_info=self.run_info,
        )
