"""Public interface for the ``statement_ingest`` package.

This module exposes the package's API functions, the parsing entry points and
the public models/types as the stable import surface. There is no runtime
logic here, only symbol re-exports.
"""

from .api import (
    delete_staging_transaction,
    delete_upload,
    error_response,
    import_staging,
    list_transactions,
    list_uploads,
    review_upload,
    set_will_import,
    upload_csv,
)
from .ctv import CanonicalTransaction
from .detect import BankFormat, detect_bank
from .errors import (
    AlreadyImportedError,
    AuthorizationError,
    BatchInsertError,
    IngestError,
    NotFoundError,
    NothingToImportError,
    ReconciliationError,
    StagingError,
    StateConflictError,
    StorageError,
    ValidationError,
)
from .ingest import ParseResult, load_statement, parse_statement
from .models import (
    CommitResult,
    ErrorResponse,
    LedgerEntry,
    StageResult,
    StagingRow,
    UploadSummary,
)
from .parsers import parse_amount, parse_date
from .persistence import compute_transaction_hash

__all__ = [
    # API
    "delete_staging_transaction",
    "delete_upload",
    "error_response",
    "import_staging",
    "list_transactions",
    "list_uploads",
    "review_upload",
    "set_will_import",
    "upload_csv",
    # Parsing
    "BankFormat",
    "CanonicalTransaction",
    "ParseResult",
    "compute_transaction_hash",
    "detect_bank",
    "load_statement",
    "parse_amount",
    "parse_date",
    "parse_statement",
    # Models
    "CommitResult",
    "ErrorResponse",
    "LedgerEntry",
    "StageResult",
    "StagingRow",
    "UploadSummary",
    # Errors
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
