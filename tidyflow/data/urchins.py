"""
Urchin Growth Data

Loads the sea urchin feeding experiment and builds prediction grids.
"""

from itertools import product
from typing import Optional, Sequence

import pandas as pd

from tidyflow.config.schema import UrchinDataConfig
from tidyflow.data.readers import CsvReader
from tidyflow.data.schema_validator import SchemaValidator


REGIME_COLUMN = "food_regime"


def regime_dtype(levels: Sequence[str]) -> pd.CategoricalDtype:
    """Unordered categorical dtype with the experiment's level order."""
    return pd.CategoricalDtype(categories=list(levels), ordered=False)


def tidy_urchins(raw: pd.DataFrame, config: Optional[UrchinDataConfig] = None) -> pd.DataFrame:
    """Rename columns and encode the feeding regime.

    Args:
        raw: Urchin records with three columns in the published order.
        config: Column names and regime levels.

    Returns:
        DataFrame with ``food_regime`` (categorical), ``initial_volume`` and ``width``.
    """
    config = config or UrchinDataConfig()
    df = raw.copy()
    if list(df.columns) != list(config.column_names):
        df.columns = list(config.column_names)

    SchemaValidator().validate_and_raise(
        df,
        config.column_names,
        kinds={"initial_volume": "numeric", "width": "numeric"},
        name="urchins",
    )
    df[REGIME_COLUMN] = df[REGIME_COLUMN].astype(regime_dtype(config.regime_levels))
    return df


def load_urchins(
    source: Optional[str] = None,
    config: Optional[UrchinDataConfig] = None,
    reader: Optional[CsvReader] = None
) -> pd.DataFrame:
    """Read the urchins CSV (default: the published URL) and tidy it."""
    config = config or UrchinDataConfig()
    reader = reader or CsvReader(config={"column_names": list(config.column_names)})
    raw = reader.read(source or config.url)
    return tidy_urchins(raw, config)


def new_points(
    initial_volume: float = 20.0,
    regimes: Optional[Sequence[str]] = None,
    levels: Optional[Sequence[str]] = None,
) -> pd.DataFrame:
    """Expand-grid of initial volume by feeding regime for prediction.

    Args:
        initial_volume: Starting volume shared by every new point.
        regimes: Feeding regimes to include, in row order; defaults to all levels.
        levels: Full level set of the categorical dtype; defaults to
            ``Initial, Low, High``.

    Returns:
        One row per (initial_volume, food_regime) combination.
    """
    levels = list(levels or UrchinDataConfig().regime_levels)
    rows = list(product([initial_volume], list(regimes or levels)))
    grid = pd.DataFrame(rows, columns=["initial_volume", REGIME_COLUMN])
    grid[REGIME_COLUMN] = grid[REGIME_COLUMN].astype(regime_dtype(levels))
    return grid
