"""
Base Data Reader

Abstract base class for all data readers.
"""

from abc import abstractmethod
from typing import Any, Dict, Optional

import pandas as pd

from tidyflow.core.base import PandasComponent


class BaseDataReader(PandasComponent):
    """
    Abstract base class for data readers.

    All data readers (CSV file/URL, packaged datasets) inherit from this class
    and return a pandas DataFrame.
    """

    def __init__(
        self,
        config: Optional[Dict[str, Any]] = None,
        name: Optional[str] = None
    ):
        super().__init__(config, name)

    @abstractmethod
    def read(
        self,
        source: str,
        **kwargs
    ) -> pd.DataFrame:
        """
        Read data from the source.

        Args:
            source: Data source identifier (path, URL, dataset name)
            **kwargs: Additional reading options

        Returns:
            Pandas DataFrame
        """
        pass

    def run(self, *args, **kwargs) -> pd.DataFrame:
        """Run is implemented as read for data readers."""
        return self.read(*args, **kwargs)

    def _log_loaded(self, source: str, df: pd.DataFrame) -> None:
        memory = self.check_memory_usage(df)
        self.logger.info(
            f"Loaded {len(df):,} rows x {df.shape[1]} columns from {source} "
            f"({memory['total_mb']:.1f} MB)"
        )
