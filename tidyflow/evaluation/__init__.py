"""
Evaluation Module

Classification and regression metrics and workflow evaluators.
"""

from tidyflow.evaluation.metrics import (
    ClassificationMetrics,
    accuracy,
    auc_from_curve,
    gini_coefficient,
    ks_statistic,
    log_loss,
    mae,
    rmse,
    roc_auc,
    roc_curve,
    rsq,
)
from tidyflow.evaluation.evaluator import (
    ClassificationEvaluator,
    EvaluationResult,
    RegressionEvaluator,
)

__all__ = [
    "ClassificationMetrics",
    "ClassificationEvaluator",
    "RegressionEvaluator",
    "EvaluationResult",
    "accuracy",
    "auc_from_curve",
    "gini_coefficient",
    "ks_statistic",
    "log_loss",
    "mae",
    "rmse",
    "roc_auc",
    "roc_curve",
    "rsq",
]
