"""
Integration Tests for the Command-Line Scripts

Runs each script's ``main`` on local CSV inputs.
"""

import importlib.util
import logging
from pathlib import Path

import pytest


SCRIPTS_DIR = Path(__file__).resolve().parent.parent.parent / "scripts"


def _load_script(name):
    spec = importlib.util.spec_from_file_location(name, SCRIPTS_DIR / f"{name}.py")
    module = importlib.util.module_from_spec(spec)
    spec.loader.exec_module(module)
    return module


@pytest.fixture(autouse=True)
def restore_logging():
    """Scripts reconfigure the root logger; put it back afterwards."""
    root = logging.getLogger()
    handlers, level = list(root.handlers), root.level
    yield
    for handler in root.handlers:
        if handler not in handlers:
            handler.close()
    root.handlers = handlers
    root.setLevel(level)


def _utc_strings(stamps):
    return stamps.dt.tz_convert("UTC").dt.strftime("%Y-%m-%dT%H:%M:%SZ")


@pytest.mark.integration
class TestUrchinScript:
    def test_cli_overrides(self):
        script = _load_script("run_urchin_growth")
        args = script.parse_args(["--iter", "600", "--warmup", "300", "--output-dir", "out"])

        overrides = script._build_cli_overrides(args)

        assert overrides == {
            "bayes.iter": 600,
            "bayes.warmup": 300,
            "output.enabled": True,
            "output.base_dir": "out",
        }

    def test_main(self, tmp_path, urchins_raw, capsys):
        path = tmp_path / "urchins.csv"
        urchins_raw.to_csv(path, index=False)
        config_path = tmp_path / "urchins.yaml"
        config_path.write_text("bayes:\n  max_rhat: null\n")
        script = _load_script("run_urchin_growth")

        code = script.main([
            "--config", str(config_path), "--input", str(path), "--iter", "600", "--warmup", "300",
            "--output-dir", str(tmp_path / "outputs"),
        ])

        assert code == 0
        out = capsys.readouterr().out
        assert "Pipeline completed: success" in out
        assert "MAD_SD" in out
        run_dirs = list((tmp_path / "outputs").iterdir())
        assert len(run_dirs) == 1
        assert (run_dirs[0] / "logs" / "urchin_growth.log").exists()

    def test_missing_input(self, tmp_path):
        script = _load_script("run_urchin_growth")

        assert script.main(["--input", str(tmp_path / "nope.csv")]) == 1

    def test_bad_config(self, tmp_path):
        script = _load_script("run_urchin_growth")

        assert script.main(["--config", str(tmp_path / "nope.yaml")]) == 1


@pytest.mark.integration
class TestFlightScript:
    def test_main_with_csv_tables(self, tmp_path, flights, weather, capsys):
        flights_path = tmp_path / "flights.csv"
        weather_path = tmp_path / "weather.csv"
        flights.assign(time_hour=_utc_strings(flights["time_hour"])).to_csv(flights_path, index=False)
        weather.assign(time_hour=_utc_strings(weather["time_hour"])).to_csv(weather_path, index=False)
        script = _load_script("run_flight_delays")

        code = script.main(["--flights", str(flights_path), "--weather", str(weather_path), "--seed", "555"])

        assert code == 0
        out = capsys.readouterr().out
        assert "Test ROC AUC:" in out
        assert "<Training/Testing/Total>" in out

    def test_csv_override_needs_both_tables(self):
        script = _load_script("run_flight_delays")

        overrides = script._build_cli_overrides(script.parse_args(["--flights", "f.csv"]))

        assert "data.source" not in overrides
