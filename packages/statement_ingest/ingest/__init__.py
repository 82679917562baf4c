"""Statement ingestion: CSV parsing pipeline and bank row mappers."""

from .utils import ParseResult, load_statement, parse_statement

__all__ = ["ParseResult", "load_statement", "parse_statement"]
