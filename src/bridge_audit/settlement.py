"""Corrective settlement: what the relay still owes each target address.

Every source deposit credits its target with the fee-adjusted amount; every
destination payout debits it. Addresses left with a positive balance are paid
by one unsigned `MsgMultiSend`, written as JSON for an operator to review,
sign and broadcast with their own tooling. Nothing here signs or submits.
"""

from __future__ import annotations

import json
import os
from typing import Any, Dict, Optional, Sequence

from .core import AuditTx, FeeSchedule, amount_after_fee, select_fee_schedule

MSG_MULTI_SEND_TYPE = "/cosmos.bank.v1beta1.MsgMultiSend"


def compute_settlement_balances(
    source_txs: Sequence[AuditTx],
    dest_txs: Sequence[AuditTx],
    fee_schedules: Sequence[FeeSchedule],
) -> Dict[str, int]:
    """Net balance owed per target address (negative = overpaid)."""
    balances: Dict[str, int] = {}
    for tx in source_txs:
        schedule = select_fee_schedule(fee_schedules, tx.timestamp, tx_hash=tx.hash)
        balances[tx.target_address] = balances.get(tx.target_address, 0) + amount_after_fee(tx.amount, schedule)
    for tx in dest_txs:
        balances[tx.target_address] = balances.get(tx.target_address, 0) - tx.amount
    return balances


def positive_balances(balances: Dict[str, int]) -> Dict[str, int]:
    """Addresses still owed something, sorted by address."""
    return {addr: balances[addr] for addr in sorted(balances) if balances[addr] > 0}


def _coins(amount: int, denom: str) -> list:
    return [{"denom": denom, "amount": str(amount)}]


def build_multi_send(balances: Dict[str, int], sender: str, denom: str) -> Optional[Dict[str, Any]]:
    """Unsigned MsgMultiSend paying every positive balance; None if nothing is owed."""
    owed = positive_balances(balances)
    if not owed:
        return None
    return {
        "@type": MSG_MULTI_SEND_TYPE,
        "inputs": [{"address": sender, "coins": _coins(sum(owed.values()), denom)}],
        "outputs": [{"address": addr, "coins": _coins(amount, denom)} for addr, amount in owed.items()],
    }


def write_settlement(balances: Dict[str, int], sender: str, denom: str, out_dir: str) -> Optional[Dict[str, Any]]:
    """Write `diff.txt` and `tx.json` under `out_dir`; returns the message or None."""
    msg = build_multi_send(balances, sender, denom)
    if msg is None:
        return None
    os.makedirs(out_dir, exist_ok=True)
    with open(os.path.join(out_dir, "diff.txt"), "w", encoding="utf-8") as f:
        for addr, amount in positive_balances(balances).items():
            f.write(f"{addr}: {amount}\n")
    with open(os.path.join(out_dir, "tx.json"), "w", encoding="utf-8") as f:
        json.dump(msg, f, indent=2)
    return msg


__all__ = [
    "MSG_MULTI_SEND_TYPE",
    "compute_settlement_balances",
    "positive_balances",
    "build_multi_send",
    "write_settlement",
]
