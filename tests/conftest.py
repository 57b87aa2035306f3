"""
Pytest Configuration and Shared Fixtures

Provides common fixtures for all test modules including:
- Sample configurations (Pydantic-based)
- Synthetic flights/weather and urchin data with known properties
- Prepared, split and fitted flight delay objects
- Temporary directories for output testing
"""

import sys
from pathlib import Path
from typing import Any, Dict, Tuple

import matplotlib

matplotlib.use("Agg")

import numpy as np
import pandas as pd
import pytest

# Add project root to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))


TIMEZONE = "America/New_York"

# Days of the month with flights; 1, 4, 11 and 25 hit New Year's Day,
# Independence Day, Veterans Day and Christmas.
FLIGHT_DAYS = (1, 4, 11, 19, 25)
FLIGHTS_PER_DAY = 25

DESTINATIONS = {
    "ATL": (762, 112),
    "BOS": (187, 39),
    "LAX": (2475, 330),
    "MIA": (1089, 152),
    "ORD": (719, 116),
}
CARRIERS = ("AA", "B6", "UA")
ORIGINS = ("EWR", "JFK", "LGA")

# (intercept, slope) of width on initial volume per feeding regime
URCHIN_EFFECTS = {
    "Initial": (0.0331, 0.00155),
    "Low": (0.0529, 0.00029),
    "High": (0.0545, 0.00100),
}


# ===================================================================
# DATA BUILDERS
# ===================================================================

def make_flights_weather(seed: int = 2013) -> Tuple[pd.DataFrame, pd.DataFrame]:
    """Synthetic flights and weather tables shaped like nycflights13.

    Properties:
    - 60 flight days (5 per month, 2013), 25 flights per day, 1,500 rows
    - ~3% cancelled flights (missing arr_delay and air_time)
    - Late probability rises with the departure hour and for carrier B6
    - Weather is unique per (origin, time_hour); ~2% of keys are absent
    """
    rng = np.random.default_rng(seed)
    days = [pd.Timestamp(2013, m, d) for m in range(1, 13) for d in FLIGHT_DAYS]
    n = len(days) * FLIGHTS_PER_DAY

    day = pd.DatetimeIndex(np.repeat(days, FLIGHTS_PER_DAY))
    hour = rng.integers(6, 22, n)
    minute = rng.integers(0, 60, n)
    origin = rng.choice(ORIGINS, n)
    dest = rng.choice(list(DESTINATIONS), n)
    carrier = rng.choice(CARRIERS, n)

    # jitter: distance must not be a linear function of the dest dummies
    distance = np.array([DESTINATIONS[d][0] for d in dest], dtype=float) + rng.integers(-15, 16, n)
    air_time = np.array([DESTINATIONS[d][1] for d in dest], dtype=float) + rng.normal(0, 8, n).round()
    latent = -10 + 3.0 * (hour - 6) + 12.0 * (carrier == "B6") + rng.normal(0, 25, n)
    arr_delay = latent.round()

    cancelled = rng.random(n) < 0.03
    arr_delay[cancelled] = np.nan
    air_time[cancelled] = np.nan

    time_hour = (day + pd.to_timedelta(hour, unit="h")).tz_localize(TIMEZONE)

    flights = pd.DataFrame({
        "year": day.year,
        "month": day.month,
        "day": day.day,
        "dep_time": hour * 100 + minute,
        "arr_delay": arr_delay,
        "carrier": carrier,
        "flight": rng.integers(1, 2000, n),
        "origin": origin,
        "dest": dest,
        "air_time": air_time,
        "distance": distance,
        "hour": hour,
        "time_hour": time_hour,
    })

    keys = flights[["origin", "time_hour"]].drop_duplicates().reset_index(drop=True)
    keep = rng.random(len(keys)) >= 0.02
    weather = keys[keep].reset_index(drop=True)
    weather["temp"] = rng.normal(55, 18, len(weather)).round(1)
    weather["humid"] = rng.uniform(20, 100, len(weather)).round(1)
    weather["wind_speed"] = rng.gamma(2.0, 5.0, len(weather)).round(1)
    weather["hour"] = weather["time_hour"].dt.hour
    return flights, weather


def make_urchins_raw(seed: int = 42, per_regime: int = 24) -> pd.DataFrame:
    """Urchin experiment with the published column names (TREAT, IV, SUTW)."""
    rng = np.random.default_rng(seed)
    frames = []
    for regime, (intercept, slope) in URCHIN_EFFECTS.items():
        volume = rng.uniform(3.5, 47.0, per_regime).round(1)
        width = intercept + slope * volume + rng.normal(0, 0.009, per_regime)
        frames.append(pd.DataFrame({"TREAT": regime, "IV": volume, "SUTW": width.round(4)}))
    return pd.concat(frames, ignore_index=True)


# ===================================================================
# CONFIGURATION FIXTURES
# ===================================================================

@pytest.fixture
def flight_config_dict() -> Dict[str, Any]:
    """Flight delay config dict with output disabled."""
    return {
        "splitting": {"prop": 0.75, "seed": 555},
        "recipe": {"date_features": ["dow", "month"]},
        "evaluation": {"event_level": "first"},
        "output": {"enabled": False},
    }


@pytest.fixture
def flight_config(flight_config_dict):
    from tidyflow.config.schema import FlightDelayConfig

    return FlightDelayConfig(**flight_config_dict)


@pytest.fixture
def urchin_config():
    from tidyflow.config.schema import UrchinGrowthConfig

    return UrchinGrowthConfig()


@pytest.fixture
def tmp_config_yaml(tmp_path, flight_config_dict):
    """Write the flight config dict to a temp YAML file and return its path."""
    import yaml

    config_path = tmp_path / "flight_delays.yaml"
    with open(config_path, "w") as f:
        yaml.dump(flight_config_dict, f, default_flow_style=False)
    return config_path


# ===================================================================
# DATA FIXTURES
# ===================================================================

@pytest.fixture(scope="session")
def flights_weather() -> Tuple[pd.DataFrame, pd.DataFrame]:
    return make_flights_weather()


@pytest.fixture
def flights(flights_weather) -> pd.DataFrame:
    return flights_weather[0].copy()


@pytest.fixture
def weather(flights_weather) -> pd.DataFrame:
    return flights_weather[1].copy()


@pytest.fixture(scope="session")
def flight_data(flights_weather) -> pd.DataFrame:
    """Prepared flight records (outcome, date, weather join, cleaned)."""
    from tidyflow.data.flight_data import prepare_flight_data

    flights, weather = flights_weather
    return prepare_flight_data(flights, weather)


@pytest.fixture(scope="session")
def flight_split(flight_data):
    from tidyflow.data.data_splitter import initial_split

    return initial_split(flight_data, prop=0.75, seed=555)


@pytest.fixture(scope="session")
def flight_train(flight_split) -> pd.DataFrame:
    return flight_split.training()


@pytest.fixture(scope="session")
def flight_test(flight_split) -> pd.DataFrame:
    return flight_split.testing()


@pytest.fixture(scope="session")
def flight_workflow_fit(flight_train):
    """Logistic regression workflow fitted on the training partition."""
    from tidyflow.models.model_factory import logistic_reg
    from tidyflow.pipelines.flight_delays import build_flight_recipe
    from tidyflow.workflows.workflow import Workflow

    recipe = build_flight_recipe(flight_train)
    return Workflow().add_model(logistic_reg()).add_recipe(recipe).fit(flight_train)


@pytest.fixture
def urchins_raw() -> pd.DataFrame:
    return make_urchins_raw()


@pytest.fixture(scope="session")
def urchins() -> pd.DataFrame:
    from tidyflow.data.urchins import tidy_urchins

    return tidy_urchins(make_urchins_raw())


@pytest.fixture(scope="session")
def urchin_lm_fit(urchins):
    from tidyflow.models.model_factory import linear_reg

    return linear_reg().fit("width ~ initial_volume * food_regime", urchins)


@pytest.fixture(scope="session")
def urchin_bayes_fit(urchins):
    """Bayesian fit with the default t(1) priors and sampler settings."""
    from tidyflow.config.schema import BayesConfig
    from tidyflow.models.model_factory import linear_reg

    return linear_reg("stan", BayesConfig()).fit("width ~ initial_volume * food_regime", urchins)


@pytest.fixture
def small_classification_data() -> pd.DataFrame:
    """200 rows, one informative numeric and one nominal predictor."""
    rng = np.random.default_rng(7)
    n = 200
    x = rng.normal(0, 1, n)
    group = rng.choice(["a", "b", "c"], n)
    logit = -0.3 + 1.5 * x + 0.8 * (group == "b")
    p = 1.0 / (1.0 + np.exp(-logit))
    outcome = np.where(rng.random(n) < p, "yes", "no")
    return pd.DataFrame({
        "x": x,
        "group": pd.Categorical(group, categories=["a", "b", "c"]),
        "outcome": pd.Categorical(outcome, categories=["no", "yes"]),
    })


# ===================================================================
# OUTPUT FIXTURES
# ===================================================================

@pytest.fixture
def tmp_output_dir(tmp_path):
    """Temporary directory for output testing."""
    output_dir = tmp_path / "test_outputs"
    output_dir.mkdir()
    return output_dir


@pytest.fixture(autouse=True)
def close_figures():
    """Close every matplotlib figure a test leaves open."""
    yield
    import matplotlib.pyplot as plt

    plt.close("all")
