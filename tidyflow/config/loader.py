"""
Config Loader

Loads pipeline configuration from YAML files, with CLI and programmatic overrides.
"""

from pathlib import Path
from typing import Any, Dict, Optional, Type, TypeVar
import json
import logging

import yaml
from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError

from tidyflow.core.exceptions import ConfigurationError


logger = logging.getLogger(__name__)

ConfigT = TypeVar("ConfigT", bound=BaseModel)


def _set_nested(d: Dict[str, Any], dotted_key: str, value: Any) -> None:
    """Set a value in a nested dict using dot-notation key.

    Args:
        d: The dictionary to modify.
        dotted_key: Key in dot notation, e.g. "splitting.prop".
        value: Value to set.
    """
    keys = dotted_key.split(".")
    current = d
    for key in keys[:-1]:
        current = current.setdefault(key, {})
    current[keys[-1]] = value


def _deep_merge(base: Dict[str, Any], override: Dict[str, Any]) -> None:
    """Recursively merge override dict into base dict (in-place)."""
    for key, value in override.items():
        if key in base and isinstance(base[key], dict) and isinstance(value, dict):
            _deep_merge(base[key], value)
        else:
            base[key] = value


def _resolve_paths(raw: Dict[str, Any], yaml_dir: Path) -> Dict[str, Any]:
    """Resolve relative data file paths against the YAML file's directory.

    Only existing files are rewritten; anything else is kept as given
    (it may be relative to the working directory).
    """
    data_cfg = raw.get("data", {})
    for key in ("flights_path", "weather_path"):
        path = data_cfg.get(key)
        if path and not Path(path).is_absolute():
            resolved = (yaml_dir / path).resolve()
            if resolved.exists():
                data_cfg[key] = str(resolved)
    return raw


def load_config(
    config_class: Type[ConfigT],
    yaml_path: Optional[str] = None,
    cli_overrides: Optional[Dict[str, Any]] = None,
    overrides: Optional[Dict[str, Any]] = None,
) -> ConfigT:
    """Load a pipeline configuration from YAML with optional overrides.

    Args:
        config_class: Top-level config model (FlightDelayConfig or UrchinGrowthConfig).
        yaml_path: Path to the YAML config file. If None, uses defaults.
        cli_overrides: Flat dict of dot-notation keys from CLI args.
            Example: {"splitting.seed": 123}
        overrides: Nested dict of programmatic overrides merged on top.

    Returns:
        Frozen config instance.

    Raises:
        ConfigurationError: If the file is missing, is not valid YAML, or
            fails schema validation.
    """
    raw: Dict[str, Any] = {}

    if yaml_path is not None:
        yaml_file = Path(yaml_path)
        if not yaml_file.exists():
            raise ConfigurationError(f"Config file not found: {yaml_path}")

        try:
            with open(yaml_file, "r", encoding="utf-8") as f:
                raw = yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            raise ConfigurationError(f"Invalid YAML in {yaml_path}", cause=e)

        logger.info("Loaded config from %s", yaml_path)
        raw = _resolve_paths(raw, yaml_file.parent)

    if cli_overrides:
        for key, value in cli_overrides.items():
            if value is not None:
                _set_nested(raw, key, value)

    if overrides:
        _deep_merge(raw, overrides)

    try:
        config = config_class(**raw)
    except PydanticValidationError as e:
        raise ConfigurationError(
            f"Invalid {config_class.__name__}",
            details={"errors": e.errors(include_url=False)},
            cause=e,
        )

    logger.debug("%s loaded successfully", config_class.__name__)
    return config


def save_config(config: BaseModel, path: str) -> None:
    """Save a config model to a YAML or JSON file.

    Args:
        config: The configuration to save.
        path: Output file path (.yaml/.yml, anything else is written as JSON).
    """
    out_path = Path(path)
    out_path.parent.mkdir(parents=True, exist_ok=True)

    config_dict = config.model_dump()

    if out_path.suffix in (".yaml", ".yml"):
        with open(out_path, "w", encoding="utf-8") as f:
            yaml.dump(config_dict, f, default_flow_style=False, sort_keys=False)
    else:
        with open(out_path, "w", encoding="utf-8") as f:
            json.dump(config_dict, f, indent=2, default=str)

    logger.info("Config saved to %s", path)
