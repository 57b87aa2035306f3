"""
Prior Distributions

Location-scale priors for regression coefficients and an exponential prior
for the residual scale. With ``autoscale`` the prior scales adapt to the
data: coefficient scales are multiplied by sd(y) / sd(x) and the intercept
scale by sd(y); the exponential rate is divided by sd(y).
"""

from dataclasses import dataclass
from typing import List, Tuple

import numpy as np
import pandas as pd
from scipy import stats

from tidyflow.config.schema import PriorConfig


@dataclass(frozen=True)
class LocationScalePrior:
    """Student-t (or normal, when ``df`` is None) prior."""

    location: np.ndarray
    scale: np.ndarray
    df: float = None

    @property
    def family(self) -> str:
        return "normal" if self.df is None else "student_t"

    def logpdf(self, x: np.ndarray) -> np.ndarray:
        """Log density summed over the last axis (one value per draw)."""
        x = np.atleast_2d(x)
        if x.shape[-1] == 0:
            return np.zeros(x.shape[0])
        if self.df is None:
            dens = stats.norm.logpdf(x, loc=self.location, scale=self.scale)
        else:
            dens = stats.t.logpdf(x, self.df, loc=self.location, scale=self.scale)
        return dens.sum(axis=-1)


@dataclass(frozen=True)
class ExponentialPrior:
    rate: float

    @property
    def family(self) -> str:
        return "exponential"

    def logpdf(self, x: np.ndarray) -> np.ndarray:
        return stats.expon.logpdf(x, scale=1.0 / self.rate)


def student_t(df: float = 1.0, location: float = 0.0, scale: float = 2.5, autoscale: bool = True) -> PriorConfig:
    return PriorConfig(family="student_t", df=df, location=location, scale=scale, autoscale=autoscale)


def normal(location: float = 0.0, scale: float = 2.5, autoscale: bool = True) -> PriorConfig:
    return PriorConfig(family="normal", location=location, scale=scale, autoscale=autoscale)


def _sd(values: np.ndarray) -> float:
    return float(np.std(values, ddof=1)) if len(values) > 1 else 0.0


def coefficient_prior(config: PriorConfig, X: pd.DataFrame, y: np.ndarray) -> LocationScalePrior:
    """Prior on the non-intercept coefficients, one scale per column of ``X``."""
    k = X.shape[1]
    scales = np.full(k, config.scale, dtype=float)
    if config.autoscale and k:
        sd_y = _sd(y) or 1.0
        sd_x = np.array([_sd(X[c].to_numpy(dtype=float)) for c in X.columns])
        sd_x[sd_x == 0] = 1.0
        scales = scales * sd_y / sd_x
    return LocationScalePrior(
        location=np.full(k, config.location, dtype=float),
        scale=scales,
        df=config.df if config.family == "student_t" else None,
    )


def intercept_prior(config: PriorConfig, y: np.ndarray) -> LocationScalePrior:
    """Prior on the intercept of the centred-predictor model."""
    scale = config.scale * (_sd(y) or 1.0) if config.autoscale else config.scale
    return LocationScalePrior(
        location=np.array([config.location], dtype=float),
        scale=np.array([scale], dtype=float),
        df=config.df if config.family == "student_t" else None,
    )


def aux_prior(rate: float, y: np.ndarray, autoscale: bool = True) -> ExponentialPrior:
    """Exponential prior on sigma."""
    return ExponentialPrior(rate=rate / (_sd(y) or 1.0) if autoscale else rate)


def prior_table(
    intercept: LocationScalePrior,
    coefficients: LocationScalePrior,
    aux: ExponentialPrior,
    terms: List[str],
) -> pd.DataFrame:
    """Adjusted priors actually used, one row per parameter."""
    rows: List[Tuple] = [
        ("Intercept (centred predictors)", intercept.family, intercept.df,
         float(intercept.location[0]), float(intercept.scale[0]), np.nan),
    ]
    for term, loc, scale in zip(terms, coefficients.location, coefficients.scale):
        rows.append((term, coefficients.family, coefficients.df, float(loc), float(scale), np.nan))
    rows.append(("sigma", aux.family, None, np.nan, np.nan, aux.rate))
    return pd.DataFrame(rows, columns=["parameter", "family", "df", "location", "scale", "rate"])
