from __future__ import annotations

import pytest

from statement_ingest.detect import BankFormat, detect_bank


@pytest.mark.parametrize(
    ("header", "expected"),
    [
        ("Date,Amount,Payee,Particulars,Code,Reference,Tran Type", BankFormat.BNZ),
        ("Type,Details,Particulars,Code,Reference,Amount,Date", BankFormat.ANZ),
        ("Tran Date,Unique Id,Tran Type,Transaction Description,Amount", BankFormat.ASB),
        ("Date,Amount,Westpac Reference", BankFormat.WESTPAC),
        ("Kiwibank Account,Date,Amount,Description", BankFormat.KIWIBANK),
        ("Date,Description,Amount,Balance", BankFormat.UNKNOWN),
    ],
)
def test_detects_bank_from_header(header: str, expected: BankFormat) -> None:
    assert detect_bank(header.split(",")) is expected


def test_matching_is_case_insensitive_and_trimmed() -> None:
    assert detect_bank(["  TYPE ", "details", "AMOUNT", "date"]) is BankFormat.ANZ
    assert detect_bank([" unique ID", "TRAN DATE "]) is BankFormat.ASB


def test_first_rule_wins_when_markers_overlap() -> None:
    # Particulars alone would make this BNZ; Type + Details claims it for ANZ first.
    headers = ["Date", "Amount", "Particulars", "Type", "Details"]
    assert detect_bank(headers) is BankFormat.ANZ


def test_bank_name_in_any_header_is_enough() -> None:
    assert detect_bank(["BNZ Export Date", "Amount"]) is BankFormat.BNZ
    assert detect_bank(["ASB Statement", "Amount"]) is BankFormat.ASB


def test_empty_header_is_unknown() -> None:
    assert detect_bank([]) is BankFormat.UNKNOWN
    assert detect_bank(["", " "]) is BankFormat.UNKNOWN


def test_detection_is_repeatable_and_leaves_input_untouched() -> None:
    headers = ["Date", "Amount", "Payee", "Particulars"]

    first = detect_bank(headers)
    second = detect_bank(headers)

    assert first is second is BankFormat.BNZ
    assert headers == ["Date", "Amount", "Payee", "Particulars"]
