"""CSV parsing pipeline: raw statement bytes → canonical transactions.

Processing is row-independent. The header is read once, the bank format is
detected once, and the matching mapper runs per data row. A row that cannot
yield both a date and an amount is dropped and reported as
``"Row N: ..."`` (1-based, counting non-blank data rows only); it never
aborts the file. Blank lines are skipped silently and do not consume a row
number, so for a well-formed file::

    len(result.transactions) + len(result.errors) == result.row_count

Only a structurally broken file (no header, ``csv.Error`` from the reader)
yields the single file-level ``"Failed to parse CSV: ..."`` error.
"""

from __future__ import annotations

import csv
import io
from dataclasses import dataclass, field
from os import PathLike
from pathlib import Path

from ..ctv import CanonicalTransaction
from ..detect import BankFormat, detect_bank
from ..logging_setup import get_logger
from .adapters import mapper_for

logger = get_logger(__name__)


@dataclass(frozen=True, slots=True)
class ParseResult:
    transactions: list[CanonicalTransaction]
    bank: BankFormat
    errors: list[str] = field(default_factory=list)
    # Non-blank data rows seen below the header.
    row_count: int = 0
    delimiter: str = ","


def decode_statement(content: bytes | str) -> str:
    """Decode raw upload bytes (UTF-8, BOM tolerated; Latin-1 fallback)."""

    if isinstance(content, str):
        return content.removeprefix("\ufeff")
    try:
        return content.decode("utf-8-sig")
    except UnicodeDecodeError:
        logger.warning("Statement is not valid UTF-8; decoding as Latin-1")
        return content.decode("latin-1")


def _drop_leading_blank_lines(text: str) -> str:
    # Keep original newlines so quoted multi-line cells survive the rejoin.
    lines = text.splitlines(keepends=True)
    for idx, line in enumerate(lines):
        if line.strip():
            return "".join(lines[idx:])
    return ""


def sniff_delimiter(text: str) -> str:
    """Tab when the header line contains one (TSV export), else comma."""

    header_line = text.split("\n", 1)[0]
    return "\t" if "\t" in header_line else ","


def _failed(message: str, *, delimiter: str = ",") -> ParseResult:
    logger.warning("CSV parse failed: %s", message)
    return ParseResult(
        transactions=[],
        bank=BankFormat.UNKNOWN,
        errors=[f"Failed to parse CSV: {message}"],
        delimiter=delimiter,
    )


def parse_statement(content: bytes | str) -> ParseResult:
    """Parse a CSV/TSV bank statement into canonical transactions.

    Parameters
    ----------
    content:
        The uploaded file, as bytes or already-decoded text.

    Returns
    -------
    ParseResult
        Parsed transactions in file order, the detected bank format, and the
        per-row error strings for rows that were dropped.
    """

    text = _drop_leading_blank_lines(decode_statement(content))
    delimiter = sniff_delimiter(text)
    reader = csv.DictReader(io.StringIO(text, newline=""), delimiter=delimiter)

    try:
        raw_headers = reader.fieldnames
    except csv.Error as exc:
        return _failed(str(exc), delimiter=delimiter)
    headers = [h.strip() for h in (raw_headers or [])]
    if not any(headers):
        return _failed("no header row", delimiter=delimiter)
    reader.fieldnames = headers

    bank = detect_bank(headers)
    mapper = mapper_for(bank)

    transactions: list[CanonicalTransaction] = []
    errors: list[str] = []
    row_number = 0
    try:
        for record in reader:
            row = {k: (v or "") for k, v in record.items() if k is not None}
            if all(not v.strip() for v in row.values()):
                continue
            row_number += 1
            try:
                tx = mapper(row, row_number)
            except Exception as exc:  # one bad row must not sink the file
                logger.debug("Row %d raised during mapping", row_number, exc_info=True)
                errors.append(f"Row {row_number}: {exc}")
                continue
            if tx is None:
                errors.append(
                    f"Row {row_number}: Could not parse transaction (invalid date or amount)"
                )
                continue
            if not tx.amount:
                logger.debug("Row %d: zero amount parsed; check the source cell", row_number)
            transactions.append(tx)
    except csv.Error as exc:
        return _failed(f"line {reader.line_num}: {exc}", delimiter=delimiter)

    logger.info(
        "Parsed %d/%d rows as %s (%d errors)",
        len(transactions),
        row_number,
        bank.value,
        len(errors),
    )
    return ParseResult(
        transactions=transactions,
        bank=bank,
        errors=errors,
        row_count=row_number,
        delimiter=delimiter,
    )


def load_statement(path: str | PathLike[str]) -> ParseResult:
    """Read a statement file from disk and parse it."""

    return parse_statement(Path(path).read_bytes())


__all__ = [
    "ParseResult",
    "decode_statement",
    "load_statement",
    "parse_statement",
    "sniff_delimiter",
]
