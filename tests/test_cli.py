# tests/test_cli.py

"""
Tests for the command-line interface.
"""

import logging

import pytest
from click.testing import CliRunner

from bank_supplier_recon.cli import main
from bank_supplier_recon.utils.logging_config import LOGGER_NAME


@pytest.fixture(autouse=True)
def detach_log_handlers():
    yield
    logging.getLogger(LOGGER_NAME).handlers = []


@pytest.fixture
def runner():
    return CliRunner(env={"COLUMNS": "200"})


@pytest.fixture
def statement_file(tmp_path, caixabank_statement_pages):
    path = tmp_path / "caixa.txt"
    path.write_text("\f".join(caixabank_statement_pages), encoding="utf-8")
    return path


@pytest.fixture
def ledger_file(tmp_path, supplier_listing):
    path = tmp_path / "proveedores.txt"
    path.write_text(supplier_listing, encoding="utf-8")
    return path


class TestReconcileCommand:
    """reconcile command."""

    def test_reconcile(self, runner, statement_file, ledger_file):
        result = runner.invoke(
            main,
            ["reconcile", "-s", str(statement_file), "-l", str(ledger_file), "-b", "caixabank"],
        )

        assert result.exit_code == 0, result.output
        assert "Reconciliation Summary" in result.output
        assert "100.0%" in result.output
        assert "123/FC/2025" in result.output

    def test_show_unmatched(self, runner, statement_file, tmp_path):
        ledger = tmp_path / "ledger.txt"
        ledger.write_text("15/01/2025 4001 ACME SL 123/FC/2025 REF-01 1.234,56 Eur\n", encoding="utf-8")

        result = runner.invoke(
            main,
            [
                "reconcile",
                "-s", str(statement_file),
                "-l", str(ledger),
                "-b", "caixabank",
                "--max-days", "5",
                "--show-unmatched",
            ],
        )

        assert result.exit_code == 0, result.output
        assert "33.3%" in result.output
        assert "unmatched" in result.output

    def test_wrong_format_exits_with_error(self, runner, statement_file, ledger_file):
        result = runner.invoke(
            main,
            ["reconcile", "-s", str(statement_file), "-l", str(ledger_file), "-b", "sabadell"],
        )

        assert result.exit_code == 1
        assert "Error" in result.output

    def test_zero_tolerance_rejected(self, runner, statement_file, ledger_file):
        result = runner.invoke(
            main,
            [
                "reconcile",
                "-s", str(statement_file),
                "-l", str(ledger_file),
                "-b", "caixabank",
                "--amount-tolerance", "0",
            ],
        )

        assert result.exit_code == 1
        assert "Invalid matching options" in result.output

    def test_unknown_format_rejected(self, runner, statement_file, ledger_file):
        result = runner.invoke(
            main,
            ["reconcile", "-s", str(statement_file), "-l", str(ledger_file), "-b", "unknown"],
        )
        assert result.exit_code == 2


class TestInspectionCommands:
    """parse-statement, parse-ledger, list-formats and init-config."""

    def test_parse_statement(self, runner, statement_file):
        result = runner.invoke(main, ["parse-statement", str(statement_file), "-b", "caixabank"])

        assert result.exit_code == 0, result.output
        assert "Total movements: 3" in result.output

    def test_parse_ledger(self, runner, ledger_file):
        result = runner.invoke(main, ["parse-ledger", str(ledger_file)])

        assert result.exit_code == 0, result.output
        assert "Total entries: 3" in result.output

    def test_list_sheets_requires_spreadsheet(self, runner, ledger_file):
        result = runner.invoke(main, ["list-sheets", str(ledger_file)])
        assert result.exit_code == 1

    def test_list_formats(self, runner):
        result = runner.invoke(main, ["list-formats"])

        assert result.exit_code == 0
        assert "caixabank" in result.output
        assert "santander" in result.output

    def test_init_config(self, runner, tmp_path):
        output = tmp_path / "config.yaml"
        result = runner.invoke(main, ["init-config", "-o", str(output)])

        assert result.exit_code == 0
        assert output.exists()
        assert "max_date_distance_days" in output.read_text(encoding="utf-8")
