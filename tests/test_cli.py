from __future__ import annotations

import json
import textwrap
from pathlib import Path

import pytest
from typer.testing import CliRunner

import statement_ingest.cli as cli_mod
from tests.helpers.db import seed_account

runner = CliRunner()

BNZ_CSV = textwrap.dedent(
    """\
    Date,Amount,Payee,Particulars,Code,Reference
    15/03/2024,-4.50,Coffee Co,Flat white,,
    16/03/2024,-62.10,Grocer,,,
    bad,1.00,Nobody,,,
    """
)


@pytest.fixture(autouse=True)
def _quiet_cli(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    # Keep the handler off CliRunner's short-lived streams and away from any real .env.
    monkeypatch.setattr(cli_mod, "configure_logging", lambda: None)
    monkeypatch.chdir(tmp_path)


@pytest.fixture()
def statement(tmp_path: Path) -> Path:
    path = tmp_path / "bnz.csv"
    path.write_text(BNZ_CSV, encoding="utf-8")
    return path


def _invoke(database_url: str, *args: str, user: str | None = "user-1"):
    argv = ["--database-url", database_url]
    if user is not None:
        argv += ["--user", user]
    return runner.invoke(cli_mod.app, [*argv, *args])


def test_parse_is_a_dry_run_preview(statement: Path) -> None:
    result = runner.invoke(cli_mod.app, ["parse", str(statement)])

    assert result.exit_code == 0, result.output
    preview = json.loads(result.stdout)
    assert preview["bank"] == "BNZ"
    assert preview["rowCount"] == 3
    assert preview["delimiter"] == ","
    assert [t["payee"] for t in preview["transactions"]] == ["Coffee Co", "Grocer"]
    assert preview["transactions"][0]["date"] == "2024-03-15"
    assert preview["transactions"][0]["amount"] == "-4.50"
    assert preview["errors"] == ["Row 3: Could not parse transaction (invalid date or amount)"]


def test_parse_reports_missing_file_as_json_error(tmp_path: Path) -> None:
    result = runner.invoke(cli_mod.app, ["parse", str(tmp_path / "nope.csv")])

    assert result.exit_code == 1
    assert "invalid_request" in result.output
    assert "File not found" in result.output


def test_upload_review_import_flow(database_url: str, statement: Path) -> None:
    account_id = seed_account(database_url=database_url)

    uploaded = _invoke(database_url, "upload", str(statement), "--account", str(account_id))
    assert uploaded.exit_code == 0, uploaded.output
    staged = json.loads(uploaded.stdout)
    assert staged["stagedCount"] == 2
    assert staged["duplicateCount"] == 0
    upload_id = staged["uploadId"]

    reviewed = _invoke(database_url, "review", str(upload_id))
    assert reviewed.exit_code == 0, reviewed.output
    rows = json.loads(reviewed.stdout)
    assert [r["rowNumber"] for r in rows] == [1, 2]

    toggled = _invoke(database_url, "toggle", str(rows[0]["id"]), "--skip")
    assert toggled.exit_code == 0, toggled.output
    assert json.loads(toggled.stdout)["willImport"] is False

    imported = _invoke(database_url, "import", str(upload_id))
    assert imported.exit_code == 0, imported.output
    assert json.loads(imported.stdout) == {"success": True, "imported": 1}

    history = _invoke(database_url, "transactions", "--account", str(account_id))
    assert history.exit_code == 0, history.output
    assert [e["payee"] for e in json.loads(history.stdout)] == ["Grocer"]

    uploads = _invoke(database_url, "uploads", "--limit", "5")
    assert [u["status"] for u in json.loads(uploads.stdout)] == ["imported"]

    again = _invoke(database_url, "import", str(upload_id))
    assert again.exit_code == 1
    assert "already imported" in again.output


def test_delete_commands(database_url: str, statement: Path) -> None:
    account_id = seed_account(database_url=database_url)
    upload_id = json.loads(
        _invoke(database_url, "upload", str(statement), "--account", str(account_id)).stdout
    )["uploadId"]
    rows = json.loads(_invoke(database_url, "review", str(upload_id)).stdout)

    deleted_row = _invoke(database_url, "delete-row", str(rows[0]["id"]))
    assert deleted_row.exit_code == 0, deleted_row.output
    assert json.loads(deleted_row.stdout)["rowCount"] == 1

    deleted = _invoke(database_url, "delete-upload", str(upload_id))
    assert deleted.exit_code == 0, deleted.output
    assert json.loads(deleted.stdout) == {"success": True, "removed": 1}


def test_commands_need_a_user(database_url: str) -> None:
    result = _invoke(database_url, "uploads", user=None)

    assert result.exit_code == 1
    assert "No user provided" in result.output


def test_user_falls_back_to_environment(
    database_url: str, monkeypatch: pytest.MonkeyPatch
) -> None:
    monkeypatch.setenv("INGEST_USER_ID", "user-1")

    result = _invoke(database_url, "uploads", user=None)

    assert result.exit_code == 0, result.output
    assert json.loads(result.stdout) == []


def test_unknown_upload_is_a_not_found_error(database_url: str) -> None:
    result = _invoke(database_url, "review", "999")

    assert result.exit_code == 1
    assert "not_found" in result.output
