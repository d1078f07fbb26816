"""
Tests for CLI interface.
"""
import copy
from pathlib import Path

import pandas as pd
import yaml
from typer.testing import CliRunner

from cli import app

# Default CliRunner mixes stderr and stdout into the .output attribute,
# which is what we want for testing console output.
runner = CliRunner()

FULL_CONFIG_DICT = {
    "run": {"name": "test_cli_run", "output_dir": ""},
    "data": {"history_dir": ""},
    "stats": {"mpdd_months": 3, "no_loss_sentinel": 99.99, "drawdown_window_months": 3},
    "reporting": {"output_formats": ["json"]},
}

HEADER = "Time;Type;Volume;Symbol;Price;S/L;T/P;Time;Price;Commission;Swap;Profit"


def _export(rows) -> str:
    lines = [HEADER, "2024.01.01 08:00:00;Balance;;;;;;;;;;1000.00"]
    for open_time, close_time, lots, profit in rows:
        lines.append(f"{open_time};Buy;{lots};EURUSD;1.1;0;0;{close_time};1.1;0;0;{profit}")
    return "\n".join(lines) + "\n"


def create_history_dir(tmp_path: Path) -> Path:
    history_dir = tmp_path / "history"
    history_dir.mkdir()
    (history_dir / "alpha.csv").write_text(
        _export(
            [
                ("2024.01.03 09:00:00", "2024.01.03 12:00:00", "0.10", "50.00"),
                ("2024.02.05 09:00:00", "2024.02.05 12:00:00", "0.20", "-30.00"),
                ("2024.03.04 09:00:00", "2024.03.04 12:00:00", "0.10", "40.00"),
                ("2024.04.08 09:00:00", "2024.04.08 12:00:00", "0.10", "10.00"),
            ]
        )
    )
    (history_dir / "beta.csv").write_text(
        _export([("2024.01.03 09:00:00", "2024.01.03 10:00:00", "1.00", "500.00")])
    )
    return history_dir


def create_temp_config(tmp_path: Path, **stats) -> Path:
    """Creates a temporary, valid YAML config file for testing."""
    config_path = tmp_path / "test_config.yaml"
    config_dict = copy.deepcopy(FULL_CONFIG_DICT)
    config_dict["data"]["history_dir"] = str(create_history_dir(tmp_path))
    config_dict["run"]["output_dir"] = str(tmp_path / "run")
    config_dict["stats"].update(stats)
    config_path.write_text(yaml.dump(config_dict))
    return config_path


def test_cli_help() -> None:
    result = runner.invoke(app, ["--help"])
    assert result.exit_code == 0
    assert "summary" in result.output
    assert "report" in result.output


def test_cli_summary_with_missing_config_file() -> None:
    result = runner.invoke(app, ["summary", "--config", "nonexistent.yaml"])
    assert result.exit_code == 2
    assert "does not exist" in result.output


def test_cli_summary_with_invalid_config(tmp_path: Path) -> None:
    config_path = tmp_path / "bad.yaml"
    config_path.write_text("run: {name: x}\n")
    result = runner.invoke(app, ["summary", "--config", str(config_path)])
    assert result.exit_code == 1
    assert "Configuration Error" in result.output


def test_cli_summary(tmp_path: Path) -> None:
    config_path = create_temp_config(tmp_path)
    result = runner.invoke(app, ["summary", "--config", str(config_path), "--sort", "provider"])
    assert result.exit_code == 0, result.output
    assert "Loaded 2 providers." in result.output
    assert "Signal Providers" in result.output


def test_cli_summary_unknown_sort_column(tmp_path: Path) -> None:
    config_path = create_temp_config(tmp_path)
    result = runner.invoke(app, ["summary", "--config", str(config_path), "--sort", "luck"])
    assert result.exit_code == 1
    assert "unknown sort column" in result.output


def test_cli_summary_without_providers(mocker, tmp_path: Path) -> None:
    mocker.patch("cli.load_providers", return_value={})
    config_path = create_temp_config(tmp_path)
    result = runner.invoke(app, ["summary", "--config", str(config_path)])
    assert result.exit_code == 1
    assert "No providers with trades found" in result.output


def test_cli_detail(tmp_path: Path) -> None:
    config_path = create_temp_config(tmp_path)
    history_file = tmp_path / "history" / "alpha.csv"
    result = runner.invoke(app, ["detail", str(history_file), "--config", str(config_path)])
    assert result.exit_code == 0, result.output
    assert "Weekly Efficiency" in result.output
    assert "Monthly Performance" in result.output
    assert "3-month MPDD" in result.output


def test_cli_detail_without_trades(tmp_path: Path) -> None:
    config_path = create_temp_config(tmp_path)
    empty = tmp_path / "empty.csv"
    empty.write_text(HEADER + "\n")
    result = runner.invoke(app, ["detail", str(empty), "--config", str(config_path)])
    assert result.exit_code == 1
    assert "contains no trades" in result.output


def test_cli_report_command_runs(mocker, tmp_path: Path) -> None:
    """Tests that the `report` command hands the loaded providers to the report writer."""
    m_reports = mocker.patch("cli.generate_all_reports")
    config_path = create_temp_config(tmp_path)

    result = runner.invoke(app, ["report", "--config", str(config_path)])

    assert result.exit_code == 0, f"CLI exited with error: {result.output}"
    assert "Report command finished" in result.output
    m_reports.assert_called_once()
    providers = m_reports.call_args.args[1]
    assert sorted(providers) == ["alpha", "beta"]


def test_cli_report_records_history(tmp_path: Path) -> None:
    history_file = tmp_path / "stat_history.csv"
    config_path = create_temp_config(tmp_path, history_file=str(history_file))

    result = runner.invoke(app, ["report", "--config", str(config_path)])

    assert result.exit_code == 0, result.output
    assert (tmp_path / "run" / "providers.csv").is_file()
    recorded = pd.read_csv(history_file)
    assert set(recorded["provider"]) == {"alpha", "beta"}
    assert set(recorded["stat"]) == {"mpdd_3m", "max_drawdown"}


def test_cli_report_handles_write_errors(mocker, tmp_path: Path) -> None:
    mocker.patch("cli.generate_all_reports", side_effect=OSError("disk full"))
    config_path = create_temp_config(tmp_path)
    result = runner.invoke(app, ["report", "--config", str(config_path)])
    assert result.exit_code == 1
    assert "disk full" in result.output


def test_cli_summary_with_mistyped_stats(tmp_path: Path) -> None:
    config_path = create_temp_config(tmp_path, mpdd_months="three")
    result = runner.invoke(app, ["summary", "--config", str(config_path)])
    assert result.exit_code == 1
    assert "Configuration Error" in result.output
