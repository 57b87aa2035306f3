"""
Model Metrics

Classification metrics for a two-class outcome (ROC curve, AUC, accuracy,
log loss, Gini, KS) and regression metrics (RMSE, R-squared, MAE).

Classification functions take the truth column and the predicted
probability of the event class. ``event_level="first"`` makes the first
outcome level the event.
"""

from typing import Any, Dict, List, Optional, Sequence, Tuple

import numpy as np
import pandas as pd
from sklearn import metrics as skm

from tidyflow.core.exceptions import EvaluationError


EVENT_LEVELS = ("first", "second")


def outcome_levels(truth: pd.Series) -> List[Any]:
    if isinstance(truth.dtype, pd.CategoricalDtype):
        return list(truth.cat.categories)
    return sorted(pd.Series(truth).dropna().unique().tolist(), key=str)


def event_label(truth: pd.Series, event_level: str = "first") -> Any:
    """The outcome level treated as the event.

    Raises:
        EvaluationError: For an unknown event level or a non-binary outcome.
    """
    if event_level not in EVENT_LEVELS:
        raise EvaluationError(
            f"event_level must be one of {list(EVENT_LEVELS)}, got '{event_level}'",
            metric_name="event_level",
        )
    levels = outcome_levels(pd.Series(truth))
    if len(levels) != 2:
        raise EvaluationError(
            f"Binary metrics need exactly two outcome levels, got {levels}",
            metric_name="event_level",
        )
    return levels[0] if event_level == "first" else levels[1]


def binary_truth(truth: pd.Series, event_level: str = "first") -> Tuple[np.ndarray, Any]:
    """Encode truth as 1 (event) / 0 and check both classes are present.

    Raises:
        EvaluationError: If truth holds a single class or missing values.
    """
    truth = pd.Series(truth)
    if truth.isna().any():
        raise EvaluationError("Truth contains missing values", metric_name="truth")
    event = event_label(truth, event_level)
    y = (truth.to_numpy(dtype=object) == event).astype(int)
    if y.min() == y.max():
        raise EvaluationError(
            f"Truth holds a single class ({truth.iloc[0]!r}); ROC metrics are undefined",
            metric_name="roc_auc",
        )
    return y, event


def _scores(estimate: Sequence[float], n: int) -> np.ndarray:
    scores = np.asarray(estimate, dtype=float)
    if scores.shape != (n,):
        raise EvaluationError(
            f"Predictions misaligned with truth: {scores.shape[0]} vs {n}",
            metric_name="estimate",
        )
    if np.isnan(scores).any():
        raise EvaluationError("Predictions contain missing values", metric_name="estimate")
    return scores


def roc_curve(truth: pd.Series, estimate: Sequence[float], event_level: str = "first") -> pd.DataFrame:
    """
    ROC curve at every distinct threshold.

    Args:
        truth: Observed classes
        estimate: Predicted probability of the event class
        event_level: Which outcome level is the event

    Returns:
        DataFrame with threshold, specificity, sensitivity, fpr, tpr,
        ordered by increasing fpr (first row threshold is +inf)
    """
    y, _ = binary_truth(truth, event_level)
    scores = _scores(estimate, len(y))
    fpr, tpr, thresholds = skm.roc_curve(y, scores, drop_intermediate=False)
    return pd.DataFrame({
        "threshold": thresholds,
        "specificity": 1.0 - fpr,
        "sensitivity": tpr,
        "fpr": fpr,
        "tpr": tpr,
    })


def roc_auc(truth: pd.Series, estimate: Sequence[float], event_level: str = "first") -> float:
    """Area under the ROC curve."""
    y, _ = binary_truth(truth, event_level)
    return float(skm.roc_auc_score(y, _scores(estimate, len(y))))


def auc_from_curve(curve: pd.DataFrame) -> float:
    """Trapezoidal area under a curve from :func:`roc_curve`."""
    return float(skm.auc(curve["fpr"].to_numpy(), curve["tpr"].to_numpy()))


def gini_coefficient(truth: pd.Series, estimate: Sequence[float], event_level: str = "first") -> float:
    """
    Gini coefficient.

    Gini = 2 * AUC - 1
    """
    return 2.0 * roc_auc(truth, estimate, event_level) - 1.0


def ks_statistic(
    truth: pd.Series,
    estimate: Sequence[float],
    event_level: str = "first"
) -> Tuple[float, float]:
    """
    Kolmogorov-Smirnov statistic.

    Maximum separation between the score distributions of events and
    non-events, i.e. max(tpr - fpr) over thresholds.

    Returns:
        Tuple of (KS statistic, threshold at max separation)
    """
    curve = roc_curve(truth, estimate, event_level)
    gap = curve["tpr"] - curve["fpr"]
    best = int(gap.to_numpy().argmax())
    return float(gap.iloc[best]), float(curve["threshold"].iloc[best])


def accuracy(truth: pd.Series, estimate: pd.Series) -> float:
    """Share of predicted classes equal to the truth."""
    truth_values = np.asarray(truth, dtype=object)
    pred_values = np.asarray(estimate, dtype=object)
    if truth_values.shape != pred_values.shape:
        raise EvaluationError("Predicted classes misaligned with truth", metric_name="accuracy")
    return float(skm.accuracy_score(truth_values, pred_values))


def log_loss(truth: pd.Series, estimate: Sequence[float], event_level: str = "first") -> float:
    """Mean negative log-likelihood of the event probabilities."""
    y, _ = binary_truth(truth, event_level)
    return float(skm.log_loss(y, _scores(estimate, len(y)), labels=[0, 1]))


def rmse(truth: Sequence[float], estimate: Sequence[float]) -> float:
    return float(np.sqrt(skm.mean_squared_error(truth, estimate)))


def mae(truth: Sequence[float], estimate: Sequence[float]) -> float:
    return float(skm.mean_absolute_error(truth, estimate))


def rsq(truth: Sequence[float], estimate: Sequence[float]) -> float:
    """Squared correlation between truth and estimate."""
    corr = np.corrcoef(np.asarray(truth, dtype=float), np.asarray(estimate, dtype=float))[0, 1]
    return float(corr ** 2)


class ClassificationMetrics:
    """
    Two-class metrics bundle.

    Includes:
    - ROC AUC and Gini coefficient
    - KS statistic
    - Accuracy, log loss and the confusion matrix
    """

    @staticmethod
    def calculate_all_metrics(
        truth: pd.Series,
        estimate: Sequence[float],
        predicted_class: Optional[pd.Series] = None,
        event_level: str = "first"
    ) -> Dict[str, Any]:
        """
        Calculate all classification metrics.

        Args:
            truth: Observed classes
            estimate: Predicted probability of the event class
            predicted_class: Predicted classes (optional)
            event_level: Which outcome level is the event

        Returns:
            Dictionary of all metrics
        """
        y, event = binary_truth(truth, event_level)
        auc = roc_auc(truth, estimate, event_level)
        ks_stat, ks_threshold = ks_statistic(truth, estimate, event_level)

        result: Dict[str, Any] = {
            "event": event,
            "roc_auc": round(auc, 4),
            "gini": round(2 * auc - 1, 4),
            "ks_statistic": round(ks_stat, 4),
            "ks_threshold": round(ks_threshold, 4),
            "log_loss": round(log_loss(truth, estimate, event_level), 4),
            "event_rate": round(float(y.mean()), 4),
        }

        if predicted_class is not None:
            pred_event = (np.asarray(predicted_class, dtype=object) == event).astype(int)
            tn, fp, fn, tp = skm.confusion_matrix(y, pred_event, labels=[0, 1]).ravel()
            result["accuracy"] = round(accuracy(truth, predicted_class), 4)
            result["confusion_matrix"] = {
                "tn": int(tn),
                "fp": int(fp),
                "fn": int(fn),
                "tp": int(tp),
            }
        return result
