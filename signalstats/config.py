"""
Configuration loading and validation for the signal-stats application.

This module uses standard library dataclasses for configuration objects.
Validation is done by explicit, pure functions on the raw YAML mapping
before any dataclass is built.
"""

import yaml
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List, Literal, Optional, Type, Union, cast, get_args, get_origin

__all__ = ["load_config", "Config", "DataConfig", "StatsConfig"]


# §1. Nested Configuration Dataclasses
# --------------------------------------------------------------------------------------


@dataclass(frozen=True)
class RunConfig:
    name: str
    output_dir: Path


@dataclass(frozen=True)
class DataConfig:
    history_dir: Path
    delimiter: str = ";"
    datetime_format: str = "%Y.%m.%d %H:%M:%S"
    decimal: Literal[".", ","] = "."


@dataclass(frozen=True)
class StatsConfig:
    mpdd_months: int = 3
    no_loss_sentinel: float = 99.99
    drawdown_window_months: int = 3
    history_file: Optional[Path] = None


@dataclass(frozen=True)
class ReportingConfig:
    output_formats: List[Literal["json", "markdown", "csv"]]


# §2. Top-Level Configuration
# --------------------------------------------------------------------------------------


@dataclass(frozen=True)
class Config:
    """The root configuration object, composing all nested sections."""
    run: RunConfig
    data: DataConfig
    stats: StatsConfig
    reporting: ReportingConfig


# §3. Validation and Loading
# --------------------------------------------------------------------------------------

_OUTPUT_FORMATS = {"json", "markdown", "csv"}


def _unwrap_optional(field_type: Any) -> Any:
    """Returns T for Optional[T], otherwise the type unchanged."""
    if get_origin(field_type) is Union:
        args = [a for a in get_args(field_type) if a is not type(None)]
        if len(args) == 1:
            return args[0]
    return field_type


def _from_dict(data_class: Type[Any], data: Any) -> Any:
    """Recursively creates nested dataclasses from a dictionary."""
    data_class = _unwrap_optional(data_class)
    if isinstance(data, dict) and hasattr(data_class, "__dataclass_fields__"):
        field_types = {f.name: f.type for f in data_class.__dataclass_fields__.values()}

        kwargs = {}
        for k, v in data.items():
            field_type = field_types.get(k)
            # Unknown keys are passed through so the dataclass constructor
            # raises a TypeError, which the caller turns into a ValueError.
            kwargs[k] = _from_dict(field_type, v) if field_type else v
        return data_class(**kwargs)

    # Convert path strings to Path objects
    if isinstance(data, str) and data_class is Path:
        return Path(data)
    if isinstance(data, int) and not isinstance(data, bool) and data_class is float:
        return float(data)
    return data


def _is_int(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def _validate_config(cfg: Dict[str, Any]) -> None:
    """
    Performs simple, explicit validation checks on the raw config dictionary.
    Fail fast on any logical inconsistencies.
    """
    if not isinstance(cfg, dict):
        raise ValueError("Configuration must be a YAML object.")

    for section in ("run", "data", "reporting"):
        if not isinstance(cfg.get(section), dict):
            raise ValueError(f"Missing configuration section: {section}")

    data_cfg = cfg["data"]
    delimiter = data_cfg.get("delimiter", ";")
    decimal = data_cfg.get("decimal", ".")
    if not isinstance(delimiter, str) or len(delimiter) != 1:
        raise ValueError("data.delimiter must be a single character")
    if decimal not in (".", ","):
        raise ValueError("data.decimal must be '.' or ','")
    if decimal == delimiter:
        raise ValueError("data.decimal must differ from data.delimiter")

    stats_cfg = cfg.get("stats") or {}
    if not isinstance(stats_cfg, dict):
        raise ValueError("stats must be a mapping")
    for key in ("mpdd_months", "drawdown_window_months"):
        value = stats_cfg.get(key, 3)
        if not _is_int(value) or value < 1:
            raise ValueError(f"stats.{key} must be an integer of at least 1")
    sentinel = stats_cfg.get("no_loss_sentinel", 99.99)
    if not (_is_int(sentinel) or isinstance(sentinel, float)) or sentinel <= 0:
        raise ValueError("stats.no_loss_sentinel must be a positive number")

    formats = cfg["reporting"].get("output_formats", [])
    unknown = set(formats) - _OUTPUT_FORMATS
    if unknown:
        raise ValueError(f"Unknown reporting.output_formats: {sorted(unknown)}")


# impure
def load_config(config_path: Path) -> Config:
    """
    Loads and validates a YAML configuration file into a Config object.
    #impure: Reads from the filesystem.
    """
    if not config_path.is_file():
        raise FileNotFoundError(f"Configuration file not found: {config_path}")

    try:
        with config_path.open("r", encoding="utf-8") as f:
            raw_config = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ValueError(f"Invalid YAML syntax in {config_path}: {e}") from e

    _validate_config(raw_config)
    raw_config.setdefault("stats", {})
    if raw_config["stats"] is None:
        raw_config["stats"] = {}

    try:
        # _from_dict is too dynamic for mypy to track types.
        return cast(Config, _from_dict(Config, raw_config))
    except (TypeError, KeyError) as e:
        raise ValueError(f"Configuration validation failed: missing or invalid key. Details: {e}") from e
