"""
Plotting Module

Figures for the flight delay and urchin growth analyses. Every function
returns the matplotlib Figure; saving and showing are left to the caller.
"""

from tidyflow.plotting.classification_plots import plot_roc_curve
from tidyflow.plotting.regression_plots import (
    plasma_colors,
    plot_coefficients,
    plot_group_scatter,
    plot_prediction_intervals,
)

__all__ = [
    "plasma_colors",
    "plot_coefficients",
    "plot_group_scatter",
    "plot_prediction_intervals",
    "plot_roc_curve",
]
