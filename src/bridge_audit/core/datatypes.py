"""
Core datatypes used by the audit, chain agnostic.

These datatypes are intentionally minimal and immutable so that matching and
ordering logic can remain deterministic and testable.

Notes:
- Amounts are ints of minor units; timestamps are timezone-aware datetimes.
- A discrepancy pairs an optional source-side and an optional destination-side
  transaction; an absent side is `None`, never a zero-valued placeholder.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta
from enum import Enum
from typing import Optional

from .amounts import require_amount
from .exc import InvalidTransactionError


# ---------------------------------------------------------------------------
# Transaction
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class AuditTx:
    """Unified bridge transaction, as produced by either ledger fetcher.

    Fields:
    - hash: ledger transaction hash.
    - from_address / to_address: ledger-level sender and receiver.
    - target_address: account the bridge must credit on the destination ledger.
      Decoded from the memo on the source side; the bank-send receiver on the
      destination side.
    - amount: non-negative int of minor units.
    - memo: raw memo text.
    - timestamp: timezone-aware close time of the transaction.
    """

    hash: str
    from_address: str
    to_address: str
    target_address: str
    amount: int
    memo: str
    timestamp: datetime

    def __post_init__(self):
        require_amount(self.amount, f"amount of tx {self.hash!r}")
        for name in ("hash", "from_address", "to_address", "target_address", "memo"):
            if not isinstance(getattr(self, name), str):
                raise InvalidTransactionError(f"AuditTx.{name} must be str")
        if not isinstance(self.timestamp, datetime):
            raise InvalidTransactionError(f"tx {self.hash!r}: timestamp must be a datetime")
        if self.timestamp.tzinfo is None:
            raise InvalidTransactionError(f"tx {self.hash!r}: timestamp must be timezone-aware")


# ---------------------------------------------------------------------------
# Discrepancy taxonomy
# ---------------------------------------------------------------------------

class DiscrepancyKind(str, Enum):
    """Outcome of classifying one transaction or transaction pair."""

    INVALID_MEMO_ON_DEST = "invalid memo on destination"
    DUPLICATED_CORRELATION_ID_ON_DEST = "duplicated source tx hash in memo on destination"
    ORPHAN_SOURCE = "orphan source tx"
    ORPHAN_DEST = "orphan destination tx"
    MISMATCHED_TARGET_ADDRESS = "different target addresses on source and destination"
    AMOUNT_MISMATCH = "different amount on source and destination"
    CLEAN_MATCH = ""
    AMOUNT_OUT_OF_RANGE = "not a discrepancy: amount out of range"

    @property
    def is_discrepancy(self) -> bool:
        return self not in (DiscrepancyKind.CLEAN_MATCH, DiscrepancyKind.AMOUNT_OUT_OF_RANGE)


@dataclass(frozen=True)
class TxDiscrepancy:
    """One classification decision over a source/destination pair.

    `expected_amount` is the fee-adjusted amount the destination should have
    received; it is set only when a fee schedule was applied to a pair.
    """

    source_tx: Optional[AuditTx]
    dest_tx: Optional[AuditTx]
    expected_amount: Optional[int]
    bridging_time: timedelta
    kind: DiscrepancyKind

    @property
    def sort_timestamp(self) -> datetime:
        """Source-side time, falling back to the destination side."""
        if self.source_tx is not None:
            return self.source_tx.timestamp
        if self.dest_tx is not None:
            return self.dest_tx.timestamp
        raise InvalidTransactionError("discrepancy carries no transaction")


def make_discrepancy(
    source_tx: Optional[AuditTx],
    dest_tx: Optional[AuditTx],
    kind: DiscrepancyKind,
    expected_amount: Optional[int] = None,
) -> TxDiscrepancy:
    """Build a record, deriving the bridging time when both sides exist."""
    bridging_time = timedelta(0)
    if source_tx is not None and dest_tx is not None:
        bridging_time = dest_tx.timestamp - source_tx.timestamp
    return TxDiscrepancy(
        source_tx=source_tx,
        dest_tx=dest_tx,
        expected_amount=expected_amount,
        bridging_time=bridging_time,
        kind=kind,
    )


__all__ = [
    "AuditTx",
    "DiscrepancyKind",
    "TxDiscrepancy",
    "make_discrepancy",
]
