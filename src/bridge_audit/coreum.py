"""Coreum side: fetch bank sends of the relay account through the Cosmos LCD REST API."""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Any, Dict, List, Optional

import requests

from .core import AuditTx, FetchError, apply_time_window
from .http_client import DEFAULT_TIMEOUT, do_json

logger = logging.getLogger(__name__)

MSG_SEND_TYPE = "/cosmos.bank.v1beta1.MsgSend"


def outgoing_event(account: str) -> str:
    return f"coin_spent.spender='{account}'"


def incoming_event(account: str) -> str:
    return f"coin_received.receiver='{account}'"


def parse_block_time(value: str) -> datetime:
    """Parse an RFC 3339 block time such as '2023-03-20T10:00:00Z'."""
    # fromisoformat() rejects 'Z' and more than 6 fractional digits before 3.11
    text = value.replace("Z", "+00:00")
    if "." in text:
        head, _, tail = text.partition(".")
        frac, sign, offset = tail.partition("+")
        text = f"{head}.{frac[:6]}{sign}{offset}"
    return datetime.fromisoformat(text)


def coin_amount(coins: List[Dict[str, Any]], denom: str) -> int:
    """Total of `denom` in a list of `{denom, amount}` coins."""
    return sum(int(c["amount"]) for c in coins or [] if c.get("denom") == denom)


def bank_send_to_audit_tx(send: Dict[str, Any], denom: str) -> AuditTx:
    """Convert a flattened bank send (see CoreumClient.find_bank_sends)."""
    return AuditTx(
        hash=send["hash"],
        from_address=send["from_address"],
        to_address=send["to_address"],
        target_address=send["to_address"],
        amount=coin_amount(send["amount"], denom),
        memo=send["memo"],
        timestamp=parse_block_time(send["timestamp"]),
    )


def response_total(body: Dict[str, Any]) -> Optional[int]:
    """Total match count of a tx search page, or None when the node omits it.

    Older nodes report `pagination.total`; SDK v0.47+ returns
    `pagination: null` and a top-level `total`.
    """
    raw = (body.get("pagination") or {}).get("total")
    if raw in (None, "", "0", 0):
        raw = body.get("total")
    if raw is None or raw == "":
        return None
    try:
        return int(raw)
    except (TypeError, ValueError):
        return None


class CoreumClient:
    """Queries txs by event and balances from a Coreum LCD endpoint."""

    def __init__(
        self,
        lcd_url: str,
        *,
        session: Optional[requests.Session] = None,
        page_limit: int = 30,
        timeout: float = DEFAULT_TIMEOUT,
    ):
        self.lcd_url = lcd_url.rstrip("/")
        self.session = session or requests.Session()
        self.page_limit = page_limit
        self.timeout = timeout

    def find_bank_sends(self, event: str) -> List[Dict[str, Any]]:
        """Return every tx matching `event`, each flattened to its single MsgSend.

        Assumes a matched tx holds exactly one bank send and fails otherwise,
        rather than guessing which message moved the bridged funds.
        """
        url = f"{self.lcd_url}/cosmos/tx/v1beta1/txs"
        sends: List[Dict[str, Any]] = []
        offset = 0
        page = 1
        while True:
            # `page`/`limit` for SDK v0.47+, `pagination.*` for older nodes.
            params = {
                "events": event,
                "page": page,
                "limit": self.page_limit,
                "pagination.offset": offset,
                "pagination.limit": self.page_limit,
                "pagination.count_total": "true",
                "order_by": "ORDER_BY_DESC",
            }
            body = do_json(self.session, "GET", url, params=params, timeout=self.timeout)
            txs = body.get("txs") or []
            responses = body.get("tx_responses") or []
            if len(txs) != len(responses):
                raise FetchError("txs and tx_responses differ in length", url=url)
            total = response_total(body)
            if page == 1:
                logger.info("Fetching txs.. total items: %s, per page: %d", total, self.page_limit)
            logger.info("Fetching page %d", page)

            for tx, resp in zip(txs, responses):
                messages = (tx.get("body") or {}).get("messages") or []
                if len(messages) != 1:
                    raise FetchError(f"tx {resp.get('txhash')}: there should be only 1 message in the transaction", url=url)
                msg = messages[0]
                if msg.get("@type") != MSG_SEND_TYPE:
                    raise FetchError(f"tx {resp.get('txhash')}: message is not bank MsgSend type", url=url)
                sends.append({
                    "hash": resp["txhash"],
                    "from_address": msg["from_address"],
                    "to_address": msg["to_address"],
                    "amount": msg.get("amount") or [],
                    "memo": tx["body"].get("memo", ""),
                    "timestamp": resp["timestamp"],
                })

            offset += len(txs)
            page += 1
            # An unknown (or zero) total keeps paging while pages come back full.
            if not txs or len(txs) < self.page_limit or (total and offset >= total):
                break
        return sends

    def get_audit_transactions(
        self,
        event: str,
        denom: str,
        window_start: Optional[datetime],
        window_end: Optional[datetime],
    ) -> List[AuditTx]:
        """Bank sends matching `event` within the window, newest first."""
        txs = [bank_send_to_audit_tx(s, denom) for s in self.find_bank_sends(event)]
        txs = apply_time_window(txs, window_start=window_start, window_end=window_end, get_time=lambda t: t.timestamp)
        txs.sort(key=lambda t: t.timestamp, reverse=True)
        logger.info("Found coreum txs total: %d", len(txs))
        return txs

    def get_account_balance(self, address: str, denom: str) -> int:
        url = f"{self.lcd_url}/cosmos/bank/v1beta1/balances/{address}/by_denom"
        body = do_json(self.session, "GET", url, params={"denom": denom}, timeout=self.timeout)
        balance = body.get("balance") or {}
        return int(balance.get("amount") or 0)


__all__ = [
    "MSG_SEND_TYPE",
    "outgoing_event",
    "incoming_event",
    "parse_block_time",
    "coin_amount",
    "response_total",
    "bank_send_to_audit_tx",
    "CoreumClient",
]
