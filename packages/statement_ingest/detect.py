"""Classify the source bank of a CSV export from its header row.

Detection is an ordered list of ``(predicate, tag)`` pairs evaluated
first-match-wins. Order is part of the contract: two banks' marker sets can
both match one header (e.g. a BNZ export that also carries ``Type`` and
``Details`` columns is reported as ANZ), so do not reorder entries or turn the
list into a mapping.
"""

from __future__ import annotations

from collections.abc import Callable, Sequence
from enum import StrEnum


class BankFormat(StrEnum):
    BNZ = "BNZ"
    ANZ = "ANZ"
    ASB = "ASB"
    WESTPAC = "Westpac"
    KIWIBANK = "Kiwibank"
    UNKNOWN = "Unknown"


type HeaderPredicate = Callable[[frozenset[str], str], bool]
"""Predicate over (lower-cased header set, lower-cased comma-joined headers)."""


def _has_all(*names: str) -> HeaderPredicate:
    return lambda headers, _joined: all(n in headers for n in names)


def _mentions(token: str) -> HeaderPredicate:
    return lambda _headers, joined: token in joined


def _any_of(*preds: HeaderPredicate) -> HeaderPredicate:
    return lambda headers, joined: any(p(headers, joined) for p in preds)


DETECTION_RULES: tuple[tuple[HeaderPredicate, BankFormat], ...] = (
    (_any_of(_mentions("anz"), _has_all("type", "details")), BankFormat.ANZ),
    (_any_of(_mentions("bnz"), _has_all("particulars")), BankFormat.BNZ),
    (_any_of(_mentions("asb"), _has_all("unique id", "tran date")), BankFormat.ASB),
    (_mentions("westpac"), BankFormat.WESTPAC),
    (_mentions("kiwibank"), BankFormat.KIWIBANK),
)


def detect_bank(headers: Sequence[str]) -> BankFormat:
    """Return the bank format for ``headers``; never raises.

    Matching is case-insensitive on trimmed header names. Anything that no
    rule claims is :attr:`BankFormat.UNKNOWN`, which routes to the generic
    mapper.
    """

    cleaned = [h.strip().lower() for h in headers if h is not None]
    header_set = frozenset(cleaned)
    joined = ",".join(cleaned)
    for predicate, tag in DETECTION_RULES:
        if predicate(header_set, joined):
            return tag
    return BankFormat.UNKNOWN


__all__ = ["DETECTION_RULES", "BankFormat", "detect_bank"]
