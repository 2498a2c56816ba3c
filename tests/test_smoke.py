"""End-to-end checks through the Typer CLI."""
from __future__ import annotations

from typer.testing import CliRunner

from wealthtrack.cli.commands import app
from wealthtrack.config import Config

runner = CliRunner()


def test_config_reads_environment(app_env):
    cfg = Config.from_env()
    assert cfg.database_path == app_env / "data" / "cli.db"
    assert cfg.output_dir.exists()
    assert cfg.poe_api_key is None


def test_config_falls_back_on_bad_numbers(app_env, monkeypatch):
    monkeypatch.setenv("CONCENTRATION_WARNING_PCT", "250")
    monkeypatch.setenv("POE_THINKING_BUDGET", "lots")
    cfg = Config.from_env()
    assert cfg.concentration_warning_pct == 40.0
    assert cfg.poe_thinking_budget is None

    monkeypatch.setenv("CONCENTRATION_WARNING_PCT", "25")
    monkeypatch.setenv("POE_THINKING_BUDGET", "512")
    cfg = Config.from_env()
    assert cfg.concentration_warning_pct == 25.0
    assert cfg.poe_thinking_budget == 512


def test_trade_lifecycle_through_cli(app_env):
    assert runner.invoke(app, ["add-trade", "2023-01-01", "x", "buy", "10", "100", "--fees", "5"]).exit_code == 0
    assert runner.invoke(app, ["add-trade", "2023-06-01", "X", "SELL", "4", "150", "--fees", "2"]).exit_code == 0
    assert runner.invoke(app, ["add-dividend", "2023-09-01", "X", "30"]).exit_code == 0
    assert runner.invoke(app, ["estimate", "x", "2"]).exit_code == 0

    result = runner.invoke(app, ["holdings"])
    assert result.exit_code == 0, result.output
    assert "Total cost (inventory): $603.00" in result.output
    assert "Estimated Annual Passive Income: $12.00" in result.output

    result = runner.invoke(app, ["dashboard", "--year", "2023"])
    assert result.exit_code == 0, result.output
    assert "196.00" in result.output

    report_path = app_env / "out.md"
    result = runner.invoke(app, ["report", "--output", str(report_path)])
    assert result.exit_code == 0, result.output
    assert "Portfolio Dashboard" in report_path.read_text(encoding="utf-8")


def test_invalid_trade_is_rejected(app_env):
    result = runner.invoke(app, ["add-trade", "2023-01-01", "X", "BUY", "0", "100"])
    assert result.exit_code == 1
    assert "Invalid trade" in result.output


def test_csv_export_import_and_reset(app_env):
    runner.invoke(app, ["add-trade", "2024-01-01", "AAA", "BUY", "1", "10"])
    export_path = app_env / "tx.csv"
    assert runner.invoke(app, ["export-csv", "transactions", str(export_path)]).exit_code == 0
    assert runner.invoke(app, ["reset", "--yes"]).exit_code == 0

    result = runner.invoke(app, ["import-csv", "transactions", str(export_path)])
    assert result.exit_code == 0, result.output
    assert "Imported 1 transactions" in result.output

    bad = app_env / "bad.csv"
    bad.write_text("id,date,ticker,name,amount\n1,2024-01-01,X,X,lots\n", encoding="utf-8")
    result = runner.invoke(app, ["import-csv", "dividends", str(bad)])
    assert result.exit_code == 1


def test_advise_reports_missing_key(app_env):
    result = runner.invoke(app, ["advise"])
    assert result.exit_code == 0
    assert "skipped" in result.output


def test_dashboard_rejects_non_numeric_year(app_env):
    result = runner.invoke(app, ["dashboard", "--year", "abc"])
    assert result.exit_code == 2
    assert not isinstance(result.exception, ValueError)

    result = runner.invoke(app, ["report", "--year", "20x4"])
    assert result.exit_code == 2
