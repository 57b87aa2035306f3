"""Plotting helpers for the urchin growth regressions."""

from typing import Optional

import matplotlib
import matplotlib.pyplot as plt
import numpy as np
import pandas as pd
import seaborn as sns
from matplotlib.figure import Figure

from tidyflow.models.design import INTERCEPT


def plasma_colors(n: int, end: float = 0.7) -> list:
    """``n`` evenly spaced plasma colours from the start of the map to ``end``."""
    cmap = matplotlib.colormaps["plasma"]
    return [cmap(v) for v in np.linspace(0.0, end, max(n, 1))]


def plot_group_scatter(
    data: pd.DataFrame,
    x: str = "initial_volume",
    y: str = "width",
    group: str = "food_regime",
    end: float = 0.7,
    ax: Optional[plt.Axes] = None,
) -> Figure:
    """Scatter of ``y`` against ``x`` with one least squares line per group.

    Groups follow the categorical level order and get plasma colours
    truncated at ``end``.
    """
    if ax is None:
        _, ax = plt.subplots(figsize=(7, 5))

    series = data[group]
    levels = list(series.cat.categories) if isinstance(series.dtype, pd.CategoricalDtype) else sorted(series.unique())
    colors = plasma_colors(len(levels), end=end)

    for level, color in zip(levels, colors):
        subset = data[series == level]
        if subset.empty:
            continue
        sns.scatterplot(data=subset, x=x, y=y, color=color, label=str(level), ax=ax)
        if len(subset) > 1:
            sns.regplot(data=subset, x=x, y=y, ci=None, scatter=False, color=color, ax=ax)

    ax.set_xlabel(x)
    ax.set_ylabel(y)
    ax.legend(title=group)
    return ax.figure


def plot_coefficients(
    tidy: pd.DataFrame,
    exclude_intercept: bool = True,
    title: Optional[str] = None,
    ax: Optional[plt.Axes] = None,
) -> Figure:
    """Dot-and-whisker plot of coefficient estimates and intervals.

    Expects the output of ``tidy(conf_int=True)``: term, estimate, conf_low,
    conf_high. A dashed vertical line marks zero.
    """
    table = tidy
    if exclude_intercept:
        table = table[table["term"] != INTERCEPT]
    table = table.iloc[::-1].reset_index(drop=True)

    if ax is None:
        _, ax = plt.subplots(figsize=(7, 0.5 * len(table) + 1.5))

    positions = np.arange(len(table))
    ax.errorbar(
        table["estimate"],
        positions,
        xerr=[table["estimate"] - table["conf_low"], table["conf_high"] - table["estimate"]],
        fmt="o",
        color="black",
        ecolor="black",
        capsize=0,
    )
    ax.axvline(0.0, color="grey", linestyle="--")
    ax.set_yticks(positions)
    ax.set_yticklabels(table["term"])
    ax.set_xlabel("estimate")
    if title:
        ax.set_title(title)
    return ax.figure


def plot_prediction_intervals(
    predictions: pd.DataFrame,
    x: str = "food_regime",
    y: str = ".pred",
    lower: str = ".pred_lower",
    upper: str = ".pred_upper",
    ylabel: str = "urchin size",
    title: Optional[str] = None,
    ax: Optional[plt.Axes] = None,
) -> Figure:
    """Point predictions with interval error bars, one per category of ``x``."""
    if ax is None:
        _, ax = plt.subplots(figsize=(6, 4))

    labels = predictions[x].astype(str).tolist()
    positions = np.arange(len(labels))
    ax.scatter(positions, predictions[y], color="black", zorder=3)
    ax.errorbar(
        positions,
        predictions[y],
        yerr=[predictions[y] - predictions[lower], predictions[upper] - predictions[y]],
        fmt="none",
        ecolor="black",
        capsize=6,
    )
    ax.set_xticks(positions)
    ax.set_xticklabels(labels)
    ax.set_xlabel(x)
    ax.set_ylabel(ylabel)
    if title:
        ax.set_title(title)
    return ax.figure
