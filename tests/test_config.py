"""Tests for configuration loading and validation."""
import copy
from pathlib import Path
from typing import Any, Dict

import pytest
import yaml

from signalstats.config import Config, DataConfig, StatsConfig, _from_dict, load_config

# A complete and valid dictionary that can be used to construct a Config object.
FULL_CONFIG_DICT: Dict[str, Any] = {
    "run": {"name": "test_run", "output_dir": "test_output"},
    "data": {"history_dir": "test_history", "delimiter": ";", "datetime_format": "%Y.%m.%d %H:%M:%S", "decimal": "."},
    "stats": {"mpdd_months": 3, "no_loss_sentinel": 99.99, "drawdown_window_months": 3, "history_file": "stats.csv"},
    "reporting": {"output_formats": ["json"]},
}


def _write(tmp_path: Path, config_dict: Dict[str, Any]) -> Path:
    config_path = tmp_path / "config.yaml"
    with open(config_path, "w", encoding="utf-8") as f:
        yaml.dump(config_dict, f)
    return config_path


@pytest.fixture
def temp_config_file(tmp_path: Path) -> Path:
    """Pytest fixture to create a temporary, valid config file."""
    config_dict = copy.deepcopy(FULL_CONFIG_DICT)
    config_dict["data"]["history_dir"] = str(tmp_path)
    return _write(tmp_path, config_dict)


def test_load_valid_config(temp_config_file: Path) -> None:
    """Test loading a valid configuration file returns a Config object."""
    config = load_config(temp_config_file)
    assert isinstance(config, Config)
    assert config.run.name == "test_run"
    assert isinstance(config.data.history_dir, Path)
    assert config.stats.history_file == Path("stats.csv")


def test_load_example_config_file() -> None:
    """Test that the main example config file is valid."""
    config = load_config(Path("config/example.yaml"))
    assert isinstance(config, Config)
    assert config.stats.mpdd_months == 3


def test_missing_config_file() -> None:
    with pytest.raises(FileNotFoundError):
        load_config(Path("nonexistent.yaml"))


def test_invalid_yaml_syntax(tmp_path: Path) -> None:
    config_path = tmp_path / "invalid.yaml"
    config_path.write_text("run: { name: test")
    with pytest.raises(ValueError, match="Invalid YAML syntax"):
        load_config(config_path)


def test_stats_section_is_optional(tmp_path: Path) -> None:
    config_dict = copy.deepcopy(FULL_CONFIG_DICT)
    del config_dict["stats"]
    config = load_config(_write(tmp_path, config_dict))
    assert config.stats == StatsConfig()
    assert config.stats.history_file is None


def test_data_defaults(tmp_path: Path) -> None:
    config_dict = copy.deepcopy(FULL_CONFIG_DICT)
    config_dict["data"] = {"history_dir": "exports"}
    config = load_config(_write(tmp_path, config_dict))
    assert config.data == DataConfig(history_dir=Path("exports"))


def test_integer_sentinel_becomes_float(tmp_path: Path) -> None:
    config_dict = copy.deepcopy(FULL_CONFIG_DICT)
    config_dict["stats"]["no_loss_sentinel"] = 100
    config = load_config(_write(tmp_path, config_dict))
    assert isinstance(config.stats.no_loss_sentinel, float)


@pytest.mark.parametrize(
    "section, key, value, message",
    [
        ("data", "delimiter", ";;", "data.delimiter"),
        ("data", "decimal", "x", "data.decimal must be"),
        ("data", "decimal", ",", "must differ"),
        ("stats", "mpdd_months", 0, "stats.mpdd_months"),
        ("stats", "no_loss_sentinel", -1, "stats.no_loss_sentinel"),
        ("stats", "drawdown_window_months", 0, "stats.drawdown_window_months"),
        ("reporting", "output_formats", ["json", "pdf"], "Unknown reporting.output_formats"),
    ],
)
def test_validation_fails(tmp_path: Path, section, key, value, message) -> None:
    config_dict = copy.deepcopy(FULL_CONFIG_DICT)
    config_dict[section][key] = value
    if (section, key, value) == ("data", "decimal", ","):
        config_dict["data"]["delimiter"] = ","
    with pytest.raises(ValueError, match=message):
        load_config(_write(tmp_path, config_dict))


def test_missing_section_fails(tmp_path: Path) -> None:
    config_dict = copy.deepcopy(FULL_CONFIG_DICT)
    del config_dict["data"]
    with pytest.raises(ValueError, match="Missing configuration section: data"):
        load_config(_write(tmp_path, config_dict))


def test_unknown_key_fails(tmp_path: Path) -> None:
    config_dict = copy.deepcopy(FULL_CONFIG_DICT)
    config_dict["run"]["seed"] = 42
    with pytest.raises(ValueError, match="Configuration validation failed"):
        load_config(_write(tmp_path, config_dict))


def test_from_dict_builds_nested_dataclasses() -> None:
    config = _from_dict(Config, copy.deepcopy(FULL_CONFIG_DICT))
    assert config.reporting.output_formats == ["json"]
    assert config.run.output_dir == Path("test_output")


@pytest.mark.parametrize(
    "stats, message",
    [
        ({"mpdd_months": "three"}, "stats.mpdd_months must be an integer"),
        ({"mpdd_months": 2.5}, "stats.mpdd_months must be an integer"),
        ({"drawdown_window_months": True}, "stats.drawdown_window_months must be an integer"),
        ({"no_loss_sentinel": None}, "stats.no_loss_sentinel must be a positive number"),
        ({"no_loss_sentinel": "high"}, "stats.no_loss_sentinel must be a positive number"),
        (5, "stats must be a mapping"),
    ],
)
def test_mistyped_stats_section_fails(tmp_path: Path, stats, message) -> None:
    config_dict = copy.deepcopy(FULL_CONFIG_DICT)
    config_dict["stats"] = stats
    with pytest.raises(ValueError, match=message):
        load_config(_write(tmp_path, config_dict))
