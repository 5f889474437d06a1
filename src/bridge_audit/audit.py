"""
Cross-ledger reconciliation: correlate source and destination bridge transfers
and classify every anomaly.

Status:
  One pass over the destination set builds a correlation index (source tx hash
  decoded from each destination memo); one pass over the source set resolves
  the fee schedule, pairs, and classifies. Whatever remains in the destination
  index afterwards is orphaned. Indices are local to a call; nothing is cached
  between runs.

Classification (one kind per record, see DiscrepancyKind):
  - destination memo not `<chainIndex>:<hash>:<seq>`  -> INVALID_MEMO_ON_DEST
  - destination hash already claimed by an earlier tx -> DUPLICATED_CORRELATION_ID_ON_DEST
  - source amount outside the schedule's range        -> AMOUNT_OUT_OF_RANGE (include_all only)
  - no destination for a source tx                    -> ORPHAN_SOURCE
  - target addresses differ                           -> MISMATCHED_TARGET_ADDRESS
  - destination amount != amount after fee            -> AMOUNT_MISMATCH
  - everything reconciles                             -> CLEAN_MATCH (include_all only)
  - destination never claimed by a source tx          -> ORPHAN_DEST
"""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Dict, List, Optional, Sequence

from .core import (
    DEST_MEMO_FIELDS,
    MEMO_SEPARATOR,
    AuditTx,
    DiscrepancyKind,
    FeeSchedule,
    TxDiscrepancy,
    amount_after_fee,
    amount_in_range,
    check_window,
    make_discrepancy,
    order_and_filter,
    select_fee_schedule,
)

logger = logging.getLogger(__name__)


def decode_correlation_id(memo: str) -> Optional[str]:
    """Extract the source tx hash from a destination memo.

    `"1007961752909:0xabc123:0"` -> `"ABC123"`; anything without exactly three
    fields yields None.
    """
    fragments = memo.split(MEMO_SEPARATOR)
    if len(fragments) != DEST_MEMO_FIELDS:
        return None
    return fragments[1].replace("0x", "").upper()


def _index_dest_txs(dest_txs: Sequence[AuditTx], out: List[TxDiscrepancy]) -> Dict[str, AuditTx]:
    """Index destination txs by correlation id; first occurrence wins.

    Invalid memos and duplicate ids are appended to `out` as they are met, in
    input order.
    """
    index: Dict[str, AuditTx] = {}
    for tx in dest_txs:
        correlation_id = decode_correlation_id(tx.memo)
        if correlation_id is None:
            out.append(make_discrepancy(None, tx, DiscrepancyKind.INVALID_MEMO_ON_DEST))
            continue
        if correlation_id in index:
            out.append(make_discrepancy(None, tx, DiscrepancyKind.DUPLICATED_CORRELATION_ID_ON_DEST))
            continue
        index[correlation_id] = tx
    return index


def _index_source_txs(source_txs: Sequence[AuditTx]) -> Dict[str, AuditTx]:
    index: Dict[str, AuditTx] = {}
    for tx in source_txs:
        key = tx.hash.upper()
        if key in index:
            # TODO: confirm with the bridge operators whether a repeated source hash
            # should get its own discrepancy kind instead of replacing the earlier record.
            logger.warning("Duplicate source tx hash %s, keeping the last occurrence", key)
        index[key] = tx
    return index


def match_transactions(
    source_txs: Sequence[AuditTx],
    dest_txs: Sequence[AuditTx],
    fee_schedules: Sequence[FeeSchedule],
    *,
    include_all: bool = False,
) -> List[TxDiscrepancy]:
    """Pair and classify both transaction sets.

    Returns records in generation order (destination memo problems, then one
    record per source tx, then destination orphans). Callers normally go through
    `find_audit_tx_discrepancies`, which also orders and filters.

    Raises FeeScheduleNotFoundError if a source tx predates every schedule.
    """
    records: List[TxDiscrepancy] = []
    dest_by_correlation_id = _index_dest_txs(dest_txs, records)
    source_by_hash = _index_source_txs(source_txs)

    for source_hash, source_tx in source_by_hash.items():
        schedule = select_fee_schedule(fee_schedules, source_tx.timestamp, tx_hash=source_tx.hash)

        if not amount_in_range(source_tx.amount, schedule):
            if include_all:
                records.append(make_discrepancy(source_tx, None, DiscrepancyKind.AMOUNT_OUT_OF_RANGE))
            continue

        dest_tx = dest_by_correlation_id.pop(source_hash, None)
        if dest_tx is None:
            records.append(make_discrepancy(source_tx, None, DiscrepancyKind.ORPHAN_SOURCE))
            continue

        if source_tx.target_address != dest_tx.target_address:
            records.append(make_discrepancy(source_tx, dest_tx, DiscrepancyKind.MISMATCHED_TARGET_ADDRESS))
            continue

        expected = amount_after_fee(source_tx.amount, schedule)
        if expected != dest_tx.amount:
            records.append(make_discrepancy(source_tx, dest_tx, DiscrepancyKind.AMOUNT_MISMATCH, expected))
            continue

        if include_all:
            records.append(make_discrepancy(source_tx, dest_tx, DiscrepancyKind.CLEAN_MATCH, expected))

    for dest_tx in dest_by_correlation_id.values():
        records.append(make_discrepancy(None, dest_tx, DiscrepancyKind.ORPHAN_DEST))

    return records


def find_audit_tx_discrepancies(
    source_txs: Sequence[AuditTx],
    dest_txs: Sequence[AuditTx],
    fee_schedules: Sequence[FeeSchedule],
    *,
    include_all: bool = False,
    window_start: Optional[datetime] = None,
    window_end: Optional[datetime] = None,
) -> List[TxDiscrepancy]:
    """Reconcile both ledgers and return records newest first, within the window.

    The window is closed on both ends: a record is kept iff
    `window_start <= timestamp <= window_end`, where the timestamp is the source
    side's, or the destination side's when there is no source tx.
    """
    # Fail on a reversed window before doing any work.
    check_window(window_start, window_end)
    records = match_transactions(source_txs, dest_txs, fee_schedules, include_all=include_all)
    result = order_and_filter(records, window_start=window_start, window_end=window_end)
    logger.debug("Classified %d records, %d kept in window", len(records), len(result))
    return result


def discrepancy_counts(records: Sequence[TxDiscrepancy]) -> Dict[DiscrepancyKind, int]:
    """Count records per kind, in DiscrepancyKind declaration order."""
    counts = {kind: 0 for kind in DiscrepancyKind}
    for record in records:
        counts[record.kind] += 1
    return {kind: n for kind, n in counts.items() if n}


__all__ = [
    "decode_correlation_id",
    "match_transactions",
    "find_audit_tx_discrepancies",
    "discrepancy_counts",
]
