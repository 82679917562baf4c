"""CLI for the ``statement_ingest`` package.

A thin Typer front end over :mod:`statement_ingest.api`. Environment
variables (``DATABASE_URL``, ``INGEST_USER_ID``, batch sizes) are loaded from
a local ``.env`` using ``python-dotenv`` in the root callback. Every command
prints its result as JSON on stdout; request-fatal errors are printed as the
JSON error response on stderr with exit code 1.
"""

from __future__ import annotations

import json
import os
from collections.abc import Callable, Sequence
from dataclasses import asdict, dataclass
from pathlib import Path
from typing import Annotated

import typer
from dotenv import load_dotenv
from pydantic import BaseModel
from sqlalchemy.exc import SQLAlchemyError
from typer.models import ArgumentInfo

from . import api
from .errors import IngestError, ValidationError
from .ingest.utils import parse_statement
from .logging_setup import configure_logging, get_logger
from .models import ErrorResponse, ParsedTransaction, ParsePreview

logger = get_logger(__name__)


@dataclass(slots=True)
class _CliState:
    database_url: str | None
    user: str | None


# ---- Small module-level helpers used by CLI commands -------------------------


def _dump(payload: BaseModel | Sequence[BaseModel] | dict) -> str:
    if isinstance(payload, BaseModel):
        return payload.model_dump_json(by_alias=True, indent=2)
    if isinstance(payload, dict):
        return json.dumps(payload, indent=2)
    return json.dumps([m.model_dump(mode="json", by_alias=True) for m in payload], indent=2)


def _fail(response: ErrorResponse) -> int:
    typer.echo(response.model_dump_json(by_alias=True), err=True)
    return 1


def _run(action: Callable[[], BaseModel | Sequence[BaseModel] | dict]) -> int:
    """Run one command body, mapping failures to a JSON error and exit code 1."""

    try:
        result = action()
    except IngestError as e:
        return _fail(api.error_response(e))
    except SQLAlchemyError as e:
        logger.error("Database error: %s", e)
        return _fail(ErrorResponse(error=f"database error: {e}", code="storage_error"))
    except RuntimeError as e:
        # e.g. DATABASE_URL missing
        return _fail(ErrorResponse(error=str(e), code="configuration_error"))
    typer.echo(_dump(result))
    return 0


def _state(ctx: typer.Context) -> _CliState:
    state = ctx.find_root().obj
    if not isinstance(state, _CliState):
        state = _CliState(database_url=None, user=os.getenv("INGEST_USER_ID"))
    return state


def _owner(state: _CliState) -> str:
    if not state.user:
        raise ValidationError("No user provided; pass --user or set INGEST_USER_ID")
    return state.user


def _read_file(path: Path) -> bytes:
    try:
        return path.read_bytes()
    except FileNotFoundError as e:
        raise ValidationError(f"File not found: {path}") from e
    except (PermissionError, IsADirectoryError) as e:
        raise ValidationError(f"Cannot read {path}: {e}") from e


# ---- Command handlers --------------------------------------------------------


def cmd_parse(path: Path) -> int:
    """Parse a statement without touching the database and print the preview."""

    def action() -> ParsePreview:
        result = parse_statement(_read_file(path))
        return ParsePreview(
            bank=result.bank.value,
            row_count=result.row_count,
            delimiter=result.delimiter,
            transactions=[
                ParsedTransaction.model_validate(asdict(tx)) for tx in result.transactions
            ],
            errors=list(result.errors),
        )

    return _run(action)


def cmd_upload(state: _CliState, path: Path, *, account_id: int | None) -> int:
    def action():
        return api.upload_csv(
            _read_file(path),
            filename=path.name,
            owner_id=_owner(state),
            account_id=account_id,
            database_url=state.database_url,
        )

    return _run(action)


def cmd_review(state: _CliState, upload_id: int) -> int:
    return _run(
        lambda: api.review_upload(
            upload_id, owner_id=_owner(state), database_url=state.database_url
        )
    )


def cmd_toggle(state: _CliState, staging_id: int, *, will_import: bool) -> int:
    return _run(
        lambda: api.set_will_import(
            staging_id, will_import, owner_id=_owner(state), database_url=state.database_url
        )
    )


def cmd_delete_row(state: _CliState, staging_id: int) -> int:
    return _run(
        lambda: api.delete_staging_transaction(
            staging_id, owner_id=_owner(state), database_url=state.database_url
        )
    )


def cmd_delete_upload(state: _CliState, upload_id: int) -> int:
    def action() -> dict:
        removed = api.delete_upload(
            upload_id, owner_id=_owner(state), database_url=state.database_url
        )
        return {"success": True, "removed": removed}

    return _run(action)


def cmd_import(state: _CliState, upload_id: int) -> int:
    return _run(
        lambda: api.import_staging(
            upload_id, owner_id=_owner(state), database_url=state.database_url
        )
    )


def cmd_uploads(state: _CliState, *, account_id: int | None, limit: int | None) -> int:
    return _run(
        lambda: api.list_uploads(
            owner_id=_owner(state),
            account_id=account_id,
            limit=limit,
            database_url=state.database_url,
        )
    )


def cmd_transactions(state: _CliState, *, account_id: int, limit: int | None) -> int:
    return _run(
        lambda: api.list_transactions(
            account_id, owner_id=_owner(state), limit=limit, database_url=state.database_url
        )
    )


# ---- Typer-based console interface -------------------------------------------


app = typer.Typer(
    no_args_is_help=True,
    add_completion=False,
    help=(
        "Import CSV bank statements: parse, stage for review, then commit into "
        "the ledger. Loads DATABASE_URL and INGEST_USER_ID from a local .env."
    ),
)

# Module-level argument object to satisfy ruff B008 (no calls in parameter
# defaults).
FILE_ARGUMENT: ArgumentInfo = typer.Argument(
    ...,
    help="Path to a CSV or TSV bank statement export",
    dir_okay=False,
    file_okay=True,
    exists=False,  # the handler reports missing files as JSON errors
)


@app.command("parse")
def parse_cmd(path: Annotated[Path, FILE_ARGUMENT]) -> None:
    """Dry run: detect the bank and parse rows without a database."""

    raise typer.Exit(cmd_parse(path))


@app.command("upload")
def upload_cmd(
    ctx: typer.Context,
    path: Annotated[Path, FILE_ARGUMENT],
    account: int | None = typer.Option(None, "--account", help="Target account id."),
) -> None:
    """Parse a statement and stage it for review."""

    raise typer.Exit(cmd_upload(_state(ctx), path, account_id=account))


@app.command("review")
def review_cmd(ctx: typer.Context, upload_id: int) -> None:
    """List the staged rows of an upload in file order."""

    raise typer.Exit(cmd_review(_state(ctx), upload_id))


@app.command("toggle")
def toggle_cmd(
    ctx: typer.Context,
    staging_id: int,
    will_import: bool = typer.Option(
        ..., "--import/--skip", help="Include or exclude the row at import time."
    ),
) -> None:
    """Set whether one staged row will be imported."""

    raise typer.Exit(cmd_toggle(_state(ctx), staging_id, will_import=will_import))


@app.command("delete-row")
def delete_row_cmd(ctx: typer.Context, staging_id: int) -> None:
    """Remove one staged row and recompute the upload's counters."""

    raise typer.Exit(cmd_delete_row(_state(ctx), staging_id))


@app.command("delete-upload")
def delete_upload_cmd(ctx: typer.Context, upload_id: int) -> None:
    """Drop an upload together with all of its staged rows."""

    raise typer.Exit(cmd_delete_upload(_state(ctx), upload_id))


@app.command("import")
def import_cmd(ctx: typer.Context, upload_id: int) -> None:
    """Commit the reviewed rows of an upload into the ledger."""

    raise typer.Exit(cmd_import(_state(ctx), upload_id))


@app.command("uploads")
def uploads_cmd(
    ctx: typer.Context,
    account: int | None = typer.Option(None, "--account", help="Only this account."),
    limit: int | None = typer.Option(None, "--limit", min=1, help="Newest N uploads."),
) -> None:
    """Upload history, newest first."""

    raise typer.Exit(cmd_uploads(_state(ctx), account_id=account, limit=limit))


@app.command("transactions")
def transactions_cmd(
    ctx: typer.Context,
    account: int = typer.Option(..., "--account", help="Account id."),
    limit: int | None = typer.Option(None, "--limit", min=1, help="Newest N entries."),
) -> None:
    """Ledger entries for an account, newest first."""

    raise typer.Exit(cmd_transactions(_state(ctx), account_id=account, limit=limit))


@app.callback()
def _root(
    ctx: typer.Context,
    *,
    database_url: str | None = typer.Option(
        None, help="Override DATABASE_URL (falls back to env var)."
    ),
    user: str | None = typer.Option(
        None, "--user", help="Owner id for all operations (falls back to INGEST_USER_ID)."
    ),
) -> None:
    """Root command.

    Loads ``.env`` from the current working directory (without overriding any
    already-set environment variables) and configures package logging.
    """

    load_dotenv(dotenv_path=Path.cwd() / ".env", override=False)
    configure_logging()
    # Read after .env so a user id kept there is honored.
    ctx.obj = _CliState(database_url=database_url, user=user or os.getenv("INGEST_USER_ID"))


if __name__ == "__main__":  # pragma: no cover
    app()
