"""Summary accounting over a full (include_all) discrepancy list."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Sequence

from .core import AuditTx, DiscrepancyKind, TxDiscrepancy, fmt_token_amount


@dataclass(frozen=True)
class Summary:
    """Aggregate totals of one audit run, in minor units.

    `dest_balance` and `source_supply` are fetched separately and carried
    through unchanged so the report can put them next to the derived totals.
    """

    dest_income_amount: int
    dest_outcome_amount: int
    dest_balance: int
    source_burnt_amount: int
    source_supply: int
    source_orphan_tx_count: int
    source_orphan_tx_amount: int
    fees_amount: int
    non_orphan_discrepancy_count: int

    def __str__(self) -> str:
        return (
            f"Coreum [IncomeAmount:{fmt_token_amount(self.dest_income_amount)}, "
            f"OutcomeAmount:{fmt_token_amount(self.dest_outcome_amount)}, "
            f"Balance:{fmt_token_amount(self.dest_balance)}] \n"
            f"Xrpl   [Burnt:{fmt_token_amount(self.source_burnt_amount)}, "
            f"Supply:{fmt_token_amount(self.source_supply)}, "
            f"OrphanTxs:{self.source_orphan_tx_count}, "
            f"OrphanTxAmount:{fmt_token_amount(self.source_orphan_tx_amount)}] \n"
            f"Fees: {fmt_token_amount(self.fees_amount)} \n"
            f"NoneOrphanDiscrepancies: {self.non_orphan_discrepancy_count}"
        )


def build_summary(
    discrepancies: Sequence[TxDiscrepancy],
    dest_incoming_txs: Iterable[AuditTx],
    dest_balance: int,
    source_supply: int,
) -> Summary:
    """Fold classified records and funding credits into one Summary.

    Expects the unfiltered list produced with include_all=True; without the
    clean matches and out-of-range records the burnt and fee totals are partial.
    """
    income = sum(tx.amount for tx in dest_incoming_txs)

    outcome = 0
    burnt = 0
    fees = 0
    orphan_count = 0
    orphan_amount = 0
    non_orphan_count = 0
    for record in discrepancies:
        kind = record.kind
        if kind is DiscrepancyKind.CLEAN_MATCH:
            burnt += record.source_tx.amount
            outcome += record.dest_tx.amount
            fees += record.source_tx.amount - record.dest_tx.amount
        elif kind is DiscrepancyKind.AMOUNT_OUT_OF_RANGE:
            burnt += record.source_tx.amount
        elif kind is DiscrepancyKind.ORPHAN_SOURCE:
            burnt += record.source_tx.amount
            orphan_count += 1
            orphan_amount += record.source_tx.amount
        else:
            non_orphan_count += 1

    return Summary(
        dest_income_amount=income,
        dest_outcome_amount=outcome,
        dest_balance=dest_balance,
        source_burnt_amount=burnt,
        source_supply=source_supply,
        source_orphan_tx_count=orphan_count,
        source_orphan_tx_amount=orphan_amount,
        fees_amount=fees,
        non_orphan_discrepancy_count=non_orphan_count,
    )


__all__ = ["Summary", "build_summary"]
