"""CSV export of fetched transactions and classified discrepancies."""

from __future__ import annotations

import csv
import os
from typing import Iterable, List, Optional

from .core import AuditTx, TxDiscrepancy, fmt_duration, fmt_optional_int, fmt_timestamp

AUDIT_TX_HEADER = [
    "Hash",
    "FromAddress",
    "ToAddress",
    "TargetAddress",
    "Amount",
    "Memo",
    "Timestamp",
]

DISCREPANCY_HEADER = [
    "XrplHash",
    "XrplAmount",
    "XrplTargetAddress",
    "XrplMemo",
    "XrplTimestamp",
    "CoreumHash",
    "CoreumAmount",
    "ExpectedAmount",
    "CoreumTargetAddress",
    "CoreumMemo",
    "CoreumTimestamp",
    "BridgingTime",
    "Discrepancy",
]


def _ensure_parent(path: str) -> None:
    out_dir = os.path.dirname(os.path.abspath(path))
    if out_dir:
        os.makedirs(out_dir, exist_ok=True)


def _side_cells(tx: Optional[AuditTx]) -> List[str]:
    if tx is None:
        return ["", "", "", "", ""]
    return [tx.hash, str(tx.amount), tx.target_address, tx.memo, fmt_timestamp(tx.timestamp)]


def discrepancy_row(record: TxDiscrepancy) -> List[str]:
    """One CSV row; an absent side renders as empty cells."""
    src = _side_cells(record.source_tx)
    dst = _side_cells(record.dest_tx)
    return [
        *src,
        dst[0],
        dst[1],
        fmt_optional_int(record.expected_amount),
        dst[2],
        dst[3],
        dst[4],
        fmt_duration(record.bridging_time),
        record.kind.value,
    ]


def write_audit_txs_to_csv(txs: Iterable[AuditTx], path: str) -> None:
    _ensure_parent(path)
    with open(path, "w", encoding="utf-8", newline="") as f:
        writer = csv.writer(f)
        writer.writerow(AUDIT_TX_HEADER)
        for tx in txs:
            writer.writerow([
                tx.hash,
                tx.from_address,
                tx.to_address,
                tx.target_address,
                str(tx.amount),
                tx.memo,
                fmt_timestamp(tx.timestamp),
            ])


def write_discrepancies_to_csv(records: Iterable[TxDiscrepancy], path: str) -> None:
    _ensure_parent(path)
    with open(path, "w", encoding="utf-8", newline="") as f:
        writer = csv.writer(f)
        writer.writerow(DISCREPANCY_HEADER)
        for record in records:
            writer.writerow(discrepancy_row(record))


__all__ = [
    "AUDIT_TX_HEADER",
    "DISCREPANCY_HEADER",
    "discrepancy_row",
    "write_audit_txs_to_csv",
    "write_discrepancies_to_csv",
]
