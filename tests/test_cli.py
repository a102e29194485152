import pytest
from click.testing import CliRunner

from statement_recon.cli import main

from conftest import workbook_bytes

LEDGER_CSV = """id,date,amount,description,type,account_id
tx-1,2026-01-16,45.00,Spesa,expense,acc-1
tx-2,2026-01-16,2100.50,Stipendio,income,acc-1
tx-3,2026-01-16,45.00,Altro conto,expense,acc-2
"""


@pytest.fixture
def runner():
    return CliRunner()


@pytest.fixture
def statement_file(tmp_path, statement_rows):
    path = tmp_path / "statement.xlsx"
    path.write_bytes(workbook_bytes(statement_rows))
    return path


@pytest.fixture
def ledger_file(tmp_path):
    path = tmp_path / "ledger.csv"
    path.write_text(LEDGER_CSV)
    return path


def test_extract_lists_transactions(runner, statement_file):
    result = runner.invoke(main, ["extract", str(statement_file)])
    assert result.exit_code == 0
    assert "PAGAMENTO POS SUPERMERCATO" in result.output
    assert "Total transactions: 2" in result.output


def test_extract_reports_bad_file(runner, tmp_path):
    path = tmp_path / "statement.xlsx"
    path.write_bytes(b"garbage")
    result = runner.invoke(main, ["extract", str(path)])
    assert result.exit_code == 1
    assert "Could not read this file" in result.output


def test_extract_reports_empty_file(runner, tmp_path):
    path = tmp_path / "statement.xlsx"
    path.write_bytes(workbook_bytes([["Nessun movimento"]]))
    result = runner.invoke(main, ["extract", str(path)])
    assert result.exit_code == 0
    assert "no recognizable transactions" in result.output


def test_reconcile_dry_run(runner, statement_file, ledger_file):
    result = runner.invoke(
        main, ["reconcile", str(statement_file), str(ledger_file), "-a", "acc-1", "--dry-run"]
    )
    assert result.exit_code == 0, result.output
    assert "Reconciliation Summary" in result.output
    assert "Dry run" in result.output


def test_reconcile_writes_report(runner, statement_file, ledger_file, tmp_path):
    output = tmp_path / "report.xlsx"
    result = runner.invoke(
        main,
        ["reconcile", str(statement_file), str(ledger_file), "-a", "acc-1", "-o", str(output)],
    )
    assert result.exit_code == 0, result.output
    assert output.exists()


def test_reconcile_empty_statement_exit_code(runner, tmp_path, ledger_file):
    path = tmp_path / "statement.xlsx"
    path.write_bytes(workbook_bytes([["Nessun movimento"]]))
    result = runner.invoke(main, ["reconcile", str(path), str(ledger_file), "--dry-run"])
    assert result.exit_code == 2
    assert "no recognizable transactions" in result.output


def test_reconcile_rejects_negative_tolerance(runner, statement_file, ledger_file):
    result = runner.invoke(
        main,
        [
            "reconcile",
            str(statement_file),
            str(ledger_file),
            "--amount-tolerance",
            "-1",
            "--dry-run",
        ],
    )
    assert result.exit_code == 1
    assert "amount_tolerance" in result.output


def test_init_config(runner, tmp_path):
    output = tmp_path / "config.yaml"
    result = runner.invoke(main, ["init-config", "-o", str(output)])
    assert result.exit_code == 0
    assert output.exists()
