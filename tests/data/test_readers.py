"""
Tests for Data Readers

Tests CSV reading, column renaming, failure wrapping and the flights reader.
"""

import sys
from types import SimpleNamespace

import pandas as pd
import pytest

from tidyflow.core.exceptions import DataReaderError
from tidyflow.data.readers import CsvReader, NycFlightsReader, parse_time_hour


@pytest.fixture
def urchin_csv(tmp_path):
    path = tmp_path / "urchins.csv"
    path.write_text("TREAT,IV,SUTW\nInitial,3.5,0.01\nLow,5.0,0.02\n")
    return path


class TestCsvReader:
    def test_read(self, urchin_csv):
        df = CsvReader().read(str(urchin_csv))

        assert list(df.columns) == ["TREAT", "IV", "SUTW"]
        assert len(df) == 2

    def test_rename_columns(self, urchin_csv):
        reader = CsvReader(config={"column_names": ["food_regime", "initial_volume", "width"]})

        df = reader.read(str(urchin_csv))

        assert list(df.columns) == ["food_regime", "initial_volume", "width"]

    def test_wrong_column_count(self, urchin_csv):
        reader = CsvReader(config={"column_names": ["a", "b"]})

        with pytest.raises(DataReaderError, match="Expected 2 columns"):
            reader.read(str(urchin_csv))

    def test_missing_file_wrapped(self, tmp_path):
        with pytest.raises(DataReaderError) as exc_info:
            CsvReader().read(str(tmp_path / "nope.csv"))

        assert exc_info.value.source.endswith("nope.csv")
        assert isinstance(exc_info.value.cause, OSError)

    def test_run_is_read(self, urchin_csv):
        assert len(CsvReader().run(str(urchin_csv))) == 2


class TestParseTimeHour:
    def test_utc_strings_to_local(self):
        parsed = parse_time_hour(pd.Series(["2013-01-01T11:00:00Z"]), "America/New_York")

        assert parsed.iloc[0].hour == 6
        assert str(parsed.dt.tz) == "America/New_York"


class TestNycFlightsReader:
    def test_csv_tables(self, tmp_path):
        flights = tmp_path / "flights.csv"
        weather = tmp_path / "weather.csv"
        flights.write_text("flight,origin,time_hour\n1,JFK,2013-01-01T11:00:00Z\n")
        weather.write_text("origin,time_hour,temp\nJFK,2013-01-01T11:00:00Z,39.0\n")

        f, w = NycFlightsReader().read_tables(str(flights), str(weather))

        assert f["time_hour"].iloc[0] == w["time_hour"].iloc[0]
        assert f["time_hour"].dt.tz is not None

    def test_packaged_tables(self, monkeypatch):
        table = pd.DataFrame({"origin": ["EWR"], "time_hour": ["2013-06-01T16:00:00Z"]})
        monkeypatch.setitem(
            sys.modules, "nycflights13", SimpleNamespace(flights=table, weather=table)
        )

        flights, weather = NycFlightsReader().read_tables()

        assert flights["time_hour"].iloc[0].hour == 12
        assert len(weather) == 1
