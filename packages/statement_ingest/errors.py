"""Exception taxonomy for request-fatal import failures.

Row-level parse problems are not exceptions: they are collected as strings on
:class:`~statement_ingest.ingest.utils.ParseResult` and never abort a file.
Everything here is fatal to the current request and carries a short,
human-readable ``message`` plus optional ``details`` (counts, batch index)
so callers can diagnose without reading logs.
"""

from __future__ import annotations

from typing import Any

from .models import ErrorResponse


class IngestError(Exception):
    """Base class for request-fatal errors raised by the import workflow."""

    code = "ingest_error"

    def __init__(self, message: str, *, details: Any = None) -> None:
        super().__init__(message)
        self.message = message
        self.details = details

    def to_response(self) -> ErrorResponse:
        return ErrorResponse(error=self.message, code=self.code, details=self.details)


class ValidationError(IngestError):
    """Request is missing required input or the file has nothing usable."""

    code = "invalid_request"


class NotFoundError(IngestError):
    code = "not_found"


class AuthorizationError(IngestError):
    """Caller does not own the referenced upload, staging row or account."""

    code = "unauthorized"

    def __init__(self, message: str = "unauthorized", *, details: Any = None) -> None:
        super().__init__(message, details=details)


class StateConflictError(IngestError):
    code = "state_conflict"


class AlreadyImportedError(StateConflictError):
    def __init__(self, upload_id: int) -> None:
        super().__init__("already imported", details={"upload_id": upload_id})


class NothingToImportError(StateConflictError):
    def __init__(self, upload_id: int) -> None:
        super().__init__("nothing to import", details={"upload_id": upload_id})


class StorageError(IngestError):
    """A bulk write failed; the upload is left in its prior state."""

    code = "storage_error"


class StagingError(StorageError):
    pass


class BatchInsertError(StorageError):
    def __init__(self, batch_number: int, *, batch_size: int, reason: str) -> None:
        super().__init__(
            f"batch {batch_number} insert failed",
            details={"batch": batch_number, "batch_size": batch_size, "reason": reason},
        )
        self.batch_number = batch_number


class ReconciliationError(IngestError):
    """Stored row count differs from the count selected for import."""

    code = "reconciliation_mismatch"

    def __init__(self, inserted: int, expected: int, *, details: Any = None) -> None:
        payload = {"inserted": inserted, "expected": expected}
        if details:
            payload.update(details)
        super().__init__(f"reconciliation mismatch {inserted}/{expected}", details=payload)
        self.inserted = inserted
        self.expected = expected


__all__ = [
    "AlreadyImportedError",
    "AuthorizationError",
    "BatchInsertError",
    "IngestError",
    "NotFoundError",
    "NothingToImportError",
    "ReconciliationError",
    "StagingError",
    "StateConflictError",
    "StorageError",
    "ValidationError",
]
