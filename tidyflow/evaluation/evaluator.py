"""
Model Evaluator

Scores a fitted workflow on held-out data and computes ROC and
classification metrics, or regression metrics for numeric outcomes.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional, Sequence

import pandas as pd

from tidyflow.config.schema import EvaluationConfig
from tidyflow.core.base import PandasComponent
from tidyflow.evaluation.metrics import (
    ClassificationMetrics,
    auc_from_curve,
    event_label,
    mae,
    rmse,
    roc_curve,
    rsq,
)
from tidyflow.workflows.workflow import WorkflowFit


@dataclass
class EvaluationResult:
    """Evaluation of one model on one data set.

    Attributes:
        predictions: ID columns, truth and prediction columns, one row per record.
        roc_curve: ROC curve for classification, None for regression.
        auc: ROC AUC for classification, None for regression.
        metrics: All computed metrics.
        model_name: Evaluated model.
        dataset: Data set label (e.g. ``test``).
    """

    predictions: pd.DataFrame
    roc_curve: Optional[pd.DataFrame]
    auc: Optional[float]
    metrics: Dict[str, Any] = field(default_factory=dict)
    model_name: str = ""
    dataset: str = "test"
    timestamp: str = field(default_factory=lambda: datetime.now().isoformat())

    def metrics_frame(self) -> pd.DataFrame:
        """Scalar metrics as a ``.metric`` / ``.estimate`` table."""
        rows = [
            {".metric": k, ".estimate": v}
            for k, v in self.metrics.items()
            if isinstance(v, (int, float))
        ]
        return pd.DataFrame(rows, columns=[".metric", ".estimate"])


class ClassificationEvaluator(PandasComponent):
    """
    Evaluates a fitted classification workflow.

    Features:
    - Predicted probabilities and classes next to IDs and truth
    - ROC curve and AUC for the configured event level
    - Evaluation history
    """

    def __init__(self, config: Optional[EvaluationConfig] = None, name: Optional[str] = None):
        super().__init__(name=name or "ClassificationEvaluator")
        self.eval_config = config or EvaluationConfig()
        self.evaluation_history: List[EvaluationResult] = []

    def run(self, workflow_fit: WorkflowFit, data: pd.DataFrame, truth_column: str) -> EvaluationResult:
        return self.evaluate(workflow_fit, data, truth_column)

    def evaluate(
        self,
        workflow_fit: WorkflowFit,
        data: pd.DataFrame,
        truth_column: str,
        id_columns: Sequence[str] = (),
        dataset_name: str = "test"
    ) -> EvaluationResult:
        """
        Evaluate a fitted workflow.

        Args:
            workflow_fit: Fitted classification workflow
            data: Held-out records including the truth column
            truth_column: Observed outcome column
            id_columns: Columns carried into the prediction table
            dataset_name: Name for this dataset (train, test)

        Returns:
            EvaluationResult

        Raises:
            EvaluationError: If the truth holds a single class
        """
        self._start_execution()
        event_level = self.eval_config.event_level
        truth = data[truth_column].reset_index(drop=True)
        event = event_label(truth, event_level)

        probs = workflow_fit.predict(data, type="prob")
        classes = workflow_fit.predict(data, type="class")
        keep = [c for c in id_columns if c in data.columns]
        predictions = pd.concat(
            [data[keep].reset_index(drop=True), truth, probs, classes], axis=1
        )

        estimate = probs[f".pred_{event}"]
        curve = roc_curve(truth, estimate, event_level)
        metrics = ClassificationMetrics.calculate_all_metrics(
            truth, estimate, classes[".pred_class"], event_level
        )
        metrics["roc_auc_trapezoid"] = round(auc_from_curve(curve), 4)

        result = EvaluationResult(
            predictions=predictions,
            roc_curve=curve,
            auc=float(metrics["roc_auc"]),
            metrics=metrics,
            model_name=workflow_fit.model_fit.model_name,
            dataset=dataset_name,
        )
        self.evaluation_history.append(result)

        self._end_execution()
        self.logger.info(
            f"{result.model_name} on {dataset_name}: "
            f"AUC={metrics['roc_auc']:.4f}, Gini={metrics['gini']:.4f}, "
            f"KS={metrics['ks_statistic']:.4f}, accuracy={metrics['accuracy']:.4f} "
            f"(event '{event}', {len(truth):,} rows)"
        )
        return result


class RegressionEvaluator(PandasComponent):
    """Evaluates a fitted regression workflow with RMSE, R-squared and MAE."""

    def __init__(self, name: Optional[str] = None):
        super().__init__(name=name or "RegressionEvaluator")

    def run(self, workflow_fit: WorkflowFit, data: pd.DataFrame, truth_column: str) -> EvaluationResult:
        return self.evaluate(workflow_fit, data, truth_column)

    def evaluate(
        self,
        workflow_fit: WorkflowFit,
        data: pd.DataFrame,
        truth_column: str,
        dataset_name: str = "train"
    ) -> EvaluationResult:
        truth = data[truth_column].reset_index(drop=True)
        predictions = workflow_fit.augment(data)
        estimate = predictions[".pred"]
        metrics = {
            "rmse": round(rmse(truth, estimate), 4),
            "rsq": round(rsq(truth, estimate), 4),
            "mae": round(mae(truth, estimate), 4),
        }
        self.logger.info(
            f"{workflow_fit.model_fit.model_name} on {dataset_name}: "
            f"RMSE={metrics['rmse']:.4f}, R2={metrics['rsq']:.4f}, MAE={metrics['mae']:.4f}"
        )
        return EvaluationResult(
            predictions=predictions,
            roc_curve=None,
            auc=None,
            metrics=metrics,
            model_name=workflow_fit.model_fit.model_name,
            dataset=dataset_name,
        )
