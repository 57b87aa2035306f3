"""
Data Splitter

Reproducible train/test partitioning of a record set, plus an audit of
categorical levels that only occur in the test partition.
"""

from typing import Any, Dict, List, Optional, Sequence
from dataclasses import dataclass, field
import logging
import math

import numpy as np
import pandas as pd
from sklearn.model_selection import train_test_split

from tidyflow.config.schema import SplittingConfig
from tidyflow.core.base import PandasComponent
from tidyflow.core.exceptions import ConfigurationError, DataValidationError


logger = logging.getLogger(__name__)

STEP_NAME = "data_split"


@dataclass(frozen=True)
class DataSplit:
    """A two-way partition of ``data`` by row position.

    Attributes:
        data: The full record set that was split.
        train_index: Sorted row positions in the training partition.
        test_index: Sorted row positions in the testing partition.
        metadata: Split settings and sizes.
    """

    data: pd.DataFrame
    train_index: np.ndarray
    test_index: np.ndarray
    metadata: Dict[str, Any] = field(default_factory=dict)

    def training(self) -> pd.DataFrame:
        """Training partition (original columns, original row order)."""
        return self.data.iloc[self.train_index].reset_index(drop=True)

    def testing(self) -> pd.DataFrame:
        """Testing partition (original columns, original row order)."""
        return self.data.iloc[self.test_index].reset_index(drop=True)

    @property
    def n_train(self) -> int:
        return len(self.train_index)

    @property
    def n_test(self) -> int:
        return len(self.test_index)

    def summary(self) -> str:
        """Human-readable one-line summary."""
        total = self.n_train + self.n_test
        return f"<Training/Testing/Total> <{self.n_train}/{self.n_test}/{total}>"


class InitialSplit(PandasComponent):
    """Randomly assigns ``floor(n * prop)`` rows to training, the rest to testing.

    Args:
        config: SplittingConfig with ``prop`` and ``seed``.
    """

    def __init__(self, config: Optional[SplittingConfig] = None):
        super().__init__(name="InitialSplit")
        config = config or SplittingConfig()
        self.prop = config.prop
        self.seed = config.seed

    def validate(self) -> bool:
        if not 0.0 < self.prop < 1.0:
            self.logger.error(f"prop ({self.prop}) must lie strictly between 0 and 1")
            return False
        return True

    def run(self, df: pd.DataFrame) -> DataSplit:
        return self.split(df)

    def split(self, df: pd.DataFrame) -> DataSplit:
        """Split a DataFrame into training and testing partitions.

        Args:
            df: Record set to partition.

        Returns:
            DataSplit; identical for identical ``(prop, seed)`` and input.

        Raises:
            ConfigurationError: If ``prop`` is outside (0, 1).
            DataValidationError: If either partition would be empty.
        """
        if not self.validate():
            raise ConfigurationError(
                f"Split proportion must be in (0, 1), got {self.prop}",
                details={"prop": self.prop},
            )

        n = len(df)
        n_train = int(math.floor(n * self.prop))
        if n_train < 1 or n_train >= n:
            raise DataValidationError(
                f"Cannot split {n} rows with prop={self.prop}: "
                f"{n_train} training and {n - n_train} testing rows",
                details={"n_rows": n, "prop": self.prop},
            )

        positions = np.arange(n)
        train_pos, test_pos = train_test_split(
            positions,
            train_size=n_train,
            shuffle=True,
            random_state=self.seed,
        )
        train_index = np.sort(train_pos)
        test_index = np.sort(test_pos)

        logger.info(
            f"{STEP_NAME} | Train: {len(train_index):,} rows, Test: {len(test_index):,} rows "
            f"(prop={self.prop}, seed={self.seed})"
        )

        return DataSplit(
            data=df,
            train_index=train_index,
            test_index=test_index,
            metadata={
                "prop": self.prop,
                "seed": self.seed,
                "train_count": len(train_index),
                "test_count": len(test_index),
            },
        )


def initial_split(df: pd.DataFrame, prop: float = 0.75, seed: int = 555) -> DataSplit:
    """Functional shortcut for :class:`InitialSplit`."""
    return InitialSplit(SplittingConfig.model_construct(prop=prop, seed=seed)).split(df)


def find_unseen_levels(
    train: pd.DataFrame,
    test: pd.DataFrame,
    columns: Optional[Sequence[str]] = None
) -> Dict[str, List[Any]]:
    """Levels present in ``test`` rows but in no ``train`` row.

    Args:
        train: Training partition.
        test: Testing partition.
        columns: Columns to audit; defaults to categorical and text columns.

    Returns:
        Mapping of column to sorted unseen levels (columns without unseen
        levels are omitted).
    """
    if columns is None:
        columns = [
            c for c in test.columns
            if isinstance(test[c].dtype, pd.CategoricalDtype)
            or pd.api.types.is_object_dtype(test[c].dtype)
        ]

    unseen: Dict[str, List[Any]] = {}
    for col in columns:
        seen = set(train[col].dropna().unique())
        novel = set(test[col].dropna().unique()) - seen
        if novel:
            unseen[col] = sorted(novel, key=str)
            logger.warning(
                f"{STEP_NAME} | {col}: {len(novel)} level(s) only in test data: {unseen[col]}"
            )
    return unseen
