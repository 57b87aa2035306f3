"""
Data Readers

CSV reader for local files and remote URLs, and a reader for the
nycflights13 ``flights`` and ``weather`` tables.
"""

from typing import Any, Dict, List, Optional, Tuple
from urllib.error import URLError

import pandas as pd

from tidyflow.core.exceptions import DataReaderError
from tidyflow.data.base_reader import BaseDataReader


TIME_HOUR_COLUMN = "time_hour"


def parse_time_hour(values: pd.Series, timezone: str) -> pd.Series:
    """Parse ``time_hour`` strings (UTC ISO-8601) into local timestamps."""
    parsed = pd.to_datetime(values, utc=True)
    return parsed.dt.tz_convert(timezone)


class CsvReader(BaseDataReader):
    """
    Reads a CSV file from a local path or an http(s) URL.

    Args:
        config: Optional reader configuration (``column_names`` to rename
            columns positionally after reading).
        name: Optional reader name
    """

    def __init__(self, config: Optional[Dict[str, Any]] = None, name: Optional[str] = None):
        super().__init__(config, name or "CsvReader")

    def read(self, source: str, **kwargs) -> pd.DataFrame:
        """
        Read a CSV source.

        Args:
            source: File path or URL
            **kwargs: Forwarded to ``pandas.read_csv``

        Returns:
            DataFrame

        Raises:
            DataReaderError: If the source cannot be fetched or parsed
        """
        self._start_execution()
        try:
            df = pd.read_csv(source, **kwargs)
        except (OSError, URLError, pd.errors.ParserError, pd.errors.EmptyDataError) as e:
            self._end_execution()
            raise DataReaderError(f"Failed to read CSV: {e}", source=str(source), cause=e)

        column_names: Optional[List[str]] = self.get_config('column_names')
        if column_names:
            if len(column_names) != df.shape[1]:
                self._end_execution()
                raise DataReaderError(
                    f"Expected {len(column_names)} columns, found {df.shape[1]}",
                    source=str(source),
                    details={"columns": list(df.columns)},
                )
            df.columns = list(column_names)

        self._log_loaded(str(source), df)
        self._end_execution()
        return df


class NycFlightsReader(BaseDataReader):
    """
    Reads the nycflights13 ``flights`` and ``weather`` tables.

    Tables come either from the ``nycflights13`` package or from a pair of
    CSV exports with the same columns. ``time_hour`` is parsed to
    timezone-aware timestamps in both tables so they can be joined.
    """

    TABLES = ("flights", "weather")

    def __init__(self, config: Optional[Dict[str, Any]] = None, name: Optional[str] = None):
        super().__init__(config, name or "NycFlightsReader")
        self.timezone = self.get_config('timezone', 'America/New_York')

    def read(self, source: str, **kwargs) -> pd.DataFrame:
        """
        Read a single table.

        Args:
            source: ``flights`` or ``weather`` for the packaged data, or a
                CSV path/URL
            **kwargs: Forwarded to ``pandas.read_csv`` for CSV sources

        Returns:
            DataFrame with parsed ``time_hour``
        """
        if source in self.TABLES:
            df = self._read_packaged(source)
        else:
            df = CsvReader(name=f"{self.name}.csv").read(source, **kwargs)

        if TIME_HOUR_COLUMN in df.columns:
            df = df.copy()
            df[TIME_HOUR_COLUMN] = parse_time_hour(df[TIME_HOUR_COLUMN], self.timezone)

        return df

    def read_tables(
        self,
        flights_path: Optional[str] = None,
        weather_path: Optional[str] = None
    ) -> Tuple[pd.DataFrame, pd.DataFrame]:
        """Read ``(flights, weather)`` from CSV paths or the packaged data."""
        flights = self.read(flights_path or "flights")
        weather = self.read(weather_path or "weather")
        return flights, weather

    def _read_packaged(self, table: str) -> pd.DataFrame:
        try:
            import nycflights13
        except ImportError as e:
            raise DataReaderError(
                "The nycflights13 package is required for packaged flight data",
                source=table,
                cause=e,
            )

        df = getattr(nycflights13, table).copy()
        self._log_loaded(f"nycflights13.{table}", df)
        return df
