"""End-to-end tests for bank reconciliation commands."""

import pytest

from charterdesk.cli.main import cli


@pytest.fixture
def invoke(cli_runner, temp_db):
    def _invoke(*args):
        return cli_runner.invoke(cli, ["--db-path", temp_db.database_path, *args])

    return _invoke


@pytest.fixture
def imported(invoke, fixtures_dir):
    assert invoke("account", "create", "Operating", "--bank", "Kasikorn").exit_code == 0
    result = invoke("bank", "import", str(fixtures_dir / "kbank_statement.csv"), "--account", "Operating")
    assert result.exit_code == 0
    return result


def test_import_reports_counts(imported, invoke, fixtures_dir):
    assert "Imported: 3 lines" in imported.output
    assert "Date format: DMY" in imported.output

    again = invoke("bank", "import", str(fixtures_dir / "kbank_statement.csv"), "--account", "Operating")
    assert "Imported: 0 lines" in again.output
    assert "Skipped: 3 duplicates" in again.output


def test_import_unknown_account(invoke, fixtures_dir):
    result = invoke("bank", "import", str(fixtures_dir / "kbank_statement.csv"), "--account", "Nope")

    assert result.exit_code == 1
    assert "not found" in result.output


def test_reconciliation_workflow(imported, invoke, tmp_path):
    result = invoke(
        "ledger", "add", "expense", "EXP-1",
        "--amount", "1000", "--date", "2025-05-31", "--counterparty", "Marina Supply",
    )
    assert result.exit_code == 0
    result = invoke(
        "ledger", "add", "income", "REC-2025-0001",
        "--amount", "5000", "--date", "2025-05-30", "--counterparty", "ABC Travel",
    )
    assert result.exit_code == 0

    result = invoke("bank", "suggest", "2")
    assert result.exit_code == 0
    assert "expense" in result.output
    assert "score  75 (medium)" in result.output

    result = invoke("bank", "accept", "2", "expense", "1")
    assert result.exit_code == 0
    assert "Matched expense 1 to line 2 for 1,000.00" in result.output

    result = invoke("bank", "auto-match", "--dry-run")
    assert "Would match line 1 to receipt 2" in result.output
    result = invoke("bank", "auto-match")
    assert "Matched 1 line(s)" in result.output

    result = invoke("bank", "ignore", "3", "--reason", "bank charge")
    assert result.exit_code == 0

    result = invoke("bank", "stats", "--account", "Operating")
    assert result.exit_code == 0
    assert "Matched:           2" in result.output
    assert "Ignored:           1" in result.output
    assert "Reconciled:        100.0%" in result.output

    out_file = tmp_path / "unmatched.csv"
    result = invoke("bank", "export", "--scope", "unmatched", "--output", str(out_file))
    assert "Exported 0 line(s)" in result.output
    assert out_file.read_text().startswith('"Date"')

    result = invoke("bank", "show", "2")
    assert "Status:      matched" in result.output
    assert "expense 1 for 1,000.00 (suggested, score 75)" in result.output


def test_manual_split_and_unmatch(imported, invoke):
    result = invoke("bank", "match", "2", "expense", "10", "--amount", "400")
    assert result.exit_code == 0
    assert "(match ID: 1)" in result.output

    result = invoke("bank", "lines", "--status", "partially_matched")
    assert "MARINA SUPPLY PAYMENT" in result.output

    result = invoke("bank", "match", "2", "expense", "11", "--amount", "700")
    assert result.exit_code == 1
    assert "Error:" in result.output

    result = invoke("bank", "new", "2", "expense")
    assert "Amount:      600.00" in result.output

    result = invoke("bank", "unmatch", "1")
    assert result.exit_code == 0
    assert "line 2 is unmatched with 1,000.00 remaining" in result.output


def test_ignore_matched_line_fails(imported, invoke):
    invoke("bank", "match", "2", "expense", "10")

    result = invoke("bank", "ignore", "2")

    assert result.exit_code == 1
    assert "remove them before ignoring" in result.output


def test_lines_with_period_and_dates_conflict(imported, invoke):
    result = invoke("bank", "lines", "--this-month", "--start-date", "2025-01-01")

    assert result.exit_code == 1
    assert "cannot be combined" in result.output


def test_lines_date_range(imported, invoke):
    result = invoke("bank", "lines", "--start-date", "2025-06-01", "--end-date", "2025-06-30")

    assert "Found 1 line(s)" in result.output
    assert "BANK FEE" in result.output


def test_export_to_stdout(imported, invoke):
    result = invoke("bank", "export")

    assert result.exit_code == 0
    assert result.output.count("\n") == 4
    assert "REC-2025-0001 ABC TRAVEL" in result.output


def test_invalid_threshold_in_environment(imported, invoke, monkeypatch):
    monkeypatch.setenv("CHARTERDESK_AUTO_MATCH_THRESHOLD", "lots")

    result = invoke("bank", "auto-match")

    assert result.exit_code == 1
    assert "must be an integer" in result.output


def test_rules_commands(imported, invoke):
    result = invoke("rule", "create", "Fees", "--contains", "FEE", "--sign", "debit", "--account", "Operating")
    assert result.exit_code == 0
    assert "Created rule 'Fees' (ID: 1)" in result.output

    result = invoke("rule", "list")
    assert "contains FEE" in result.output

    assert invoke("rule", "disable", "1").exit_code == 0
    assert "off" in invoke("rule", "list").output
    assert invoke("rule", "delete", "1").exit_code == 0
    assert "No rules found." in invoke("rule", "list").output


def test_revenue_commands(invoke):
    result = invoke("revenue", "add", "--amount", "1000", "--to", "2020-01-01", "--type", "day_charter")
    assert result.exit_code == 0
    assert "Recognized (account 4010)" in result.output

    result = invoke("revenue", "add", "--amount", "250")
    assert "Needs Review" in result.output

    result = invoke("revenue", "summary")
    assert "Deferred revenue: 250.00" in result.output
    assert "Needs review: 1" in result.output

    result = invoke("revenue", "notice", "--receipt-status", "draft")
    assert "No revenue is recognized" in result.output
