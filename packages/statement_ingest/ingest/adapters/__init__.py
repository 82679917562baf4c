"""Bank row mappers and the format → mapper table.

The table is consulted once per file, after
:func:`statement_ingest.detect.detect_bank` has classified the header.
Westpac, Kiwibank and unknown exports share the generic mapper.
"""

from __future__ import annotations

from collections.abc import Mapping
from types import MappingProxyType

from ...detect import BankFormat
from . import anz_csv, asb_csv, bnz_csv, generic_csv
from ._common import RawRow, RowMapper

MAPPERS: Mapping[BankFormat, RowMapper] = MappingProxyType(
    {
        BankFormat.BNZ: bnz_csv.to_ctv_row,
        BankFormat.ANZ: anz_csv.to_ctv_row,
        BankFormat.ASB: asb_csv.to_ctv_row,
        BankFormat.WESTPAC: generic_csv.to_ctv_row,
        BankFormat.KIWIBANK: generic_csv.to_ctv_row,
        BankFormat.UNKNOWN: generic_csv.to_ctv_row,
    }
)


def mapper_for(bank: BankFormat) -> RowMapper:
    return MAPPERS.get(bank, generic_csv.to_ctv_row)


__all__ = ["MAPPERS", "RawRow", "RowMapper", "mapper_for"]
