"""Plotting helpers for the flight delay classifier."""

from typing import Optional

import matplotlib.pyplot as plt
import pandas as pd
from matplotlib.figure import Figure


def plot_roc_curve(
    curve: pd.DataFrame,
    auc: Optional[float] = None,
    title: Optional[str] = None,
    ax: Optional[plt.Axes] = None,
) -> Figure:
    """ROC curve (1 - specificity vs sensitivity) with the chance diagonal.

    Args:
        curve: Output of ``roc_curve``.
        auc: Optional AUC shown in the legend.
        title: Optional title.
        ax: Axes to draw on; a new square figure is created if None.
    """
    if ax is None:
        _, ax = plt.subplots(figsize=(6, 6))

    label = f"model (AUC = {auc:.3f})" if auc is not None else "model"
    ax.plot(1.0 - curve["specificity"], curve["sensitivity"], linewidth=1.5, label=label)
    ax.plot([0, 1], [0, 1], "k--", linewidth=1, label="chance")

    ax.set_xlabel("1 - specificity")
    ax.set_ylabel("sensitivity")
    ax.set_xlim(0, 1)
    ax.set_ylim(0, 1)
    ax.set_aspect("equal")
    ax.legend(loc="lower right")
    ax.grid(True, alpha=0.3)
    if title:
        ax.set_title(title)
    return ax.figure
