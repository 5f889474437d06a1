"""XRPL side: fetch bridge deposits into the relay account and convert them to AuditTx.

Flow:
  1. Page through the historical data API for received payment hashes
     (newest first, `marker` continues a page).
  2. Fetch each tx in full from rippled JSON-RPC on a bounded thread pool;
     a page is joined before the next page is requested.
  3. Keep only bridge deposits: a memo `<coreumAddress>:<bridgeChainIndex>`
     and a positive delivered amount.
"""

from __future__ import annotations

import logging
import time
from concurrent.futures import ThreadPoolExecutor
from datetime import datetime, timedelta
from typing import Any, Callable, Dict, List, Optional, Sequence, Tuple

import requests

from .core import (
    MEMO_SEPARATOR,
    RIPPLE_EPOCH,
    SOURCE_MEMO_FIELDS,
    AuditTx,
    FetchError,
    minor_units_from_decimal,
)
from .http_client import DEFAULT_TIMEOUT, do_json, with_retries

logger = logging.getLogger(__name__)

HISTORICAL_PAGE_LIMIT = 1000  # maximum accepted by the historical API
RECEIVED_TX_TYPE = "received"
RESULT_SUCCESS = "success"


# ---------------------------------------------------------------------------
# Pure conversion helpers
# ---------------------------------------------------------------------------

def ripple_time_to_datetime(ripple_date: int) -> datetime:
    """Convert an XRPL `date` (seconds since 2000-01-01 UTC) to datetime."""
    return RIPPLE_EPOCH + timedelta(seconds=int(ripple_date))


def decode_bridge_memo(hex_memo: str, bridge_chain_index: str) -> Optional[Tuple[str, str]]:
    """Decode a hex `MemoData` into (target_address, memo_text).

    Returns None unless the text is exactly `<address>:<bridge_chain_index>`.
    """
    try:
        memo = bytes.fromhex(hex_memo).decode("utf-8")
    except (TypeError, ValueError):
        return None
    fragments = memo.split(MEMO_SEPARATOR)
    if len(fragments) != SOURCE_MEMO_FIELDS:
        return None
    if fragments[1] != bridge_chain_index:
        return None
    return fragments[0], memo


def delivered_amount(tx: Dict[str, Any]) -> int:
    """Delivered IOU amount in minor units; XRP or missing amounts count as 0."""
    delivered = (tx.get("meta") or {}).get("delivered_amount")
    if not isinstance(delivered, dict):
        return 0
    value = delivered.get("value")
    if value is None:
        return 0
    return minor_units_from_decimal(str(value))


def filter_bridge_transactions(raw_txs: Sequence[Dict[str, Any]], bridge_chain_index: str) -> List[AuditTx]:
    """Keep bridge deposits and convert them to AuditTx, newest first."""
    out: List[AuditTx] = []
    for tx in raw_txs:
        decoded = None
        for item in tx.get("Memos") or []:
            memo_data = (item.get("Memo") or {}).get("MemoData", "")
            decoded = decode_bridge_memo(memo_data, bridge_chain_index)
            if decoded is not None:
                break
        if decoded is None:
            continue

        amount = delivered_amount(tx)
        if amount <= 0:
            continue

        target_address, memo = decoded
        out.append(AuditTx(
            hash=tx["hash"],
            from_address=tx.get("Account", ""),
            to_address=tx.get("Destination", ""),
            target_address=target_address,
            amount=amount,
            memo=memo,
            timestamp=ripple_time_to_datetime(tx["date"]),
        ))

    out.sort(key=lambda t: t.timestamp, reverse=True)
    return out


# ---------------------------------------------------------------------------
# Client
# ---------------------------------------------------------------------------

class XrplClient:
    """Fetches XRPL payments through rippled JSON-RPC and the historical data API."""

    def __init__(
        self,
        rpc_api_url: str,
        historical_api_url: str,
        scan_api_url: str,
        *,
        session: Optional[requests.Session] = None,
        fetch_pool_size: int = 10,
        retries: int = 10,
        retry_delay: float = 0.5,
        backoff_max: Optional[float] = 10.0,
        sleep: Callable[[float], None] = time.sleep,
        timeout: float = DEFAULT_TIMEOUT,
    ):
        if fetch_pool_size < 1:
            raise ValueError("fetch_pool_size must be >= 1")
        self.rpc_api_url = rpc_api_url
        self.historical_api_url = historical_api_url.rstrip("/")
        self.scan_api_url = scan_api_url.rstrip("/")
        self.session = session or requests.Session()
        self.fetch_pool_size = fetch_pool_size
        self.retries = retries
        self.retry_delay = retry_delay
        self.backoff_max = backoff_max
        self.sleep = sleep
        self.timeout = timeout

    def fetch_payment_tx_hashes(
        self,
        account: str,
        currency: str,
        issuer: str,
        marker: str,
        window_start: datetime,
        window_end: datetime,
    ) -> Tuple[List[str], str]:
        """Return one page of received payment hashes and the next marker ('' = done)."""
        url = f"{self.historical_api_url}/v2/accounts/{account}/payments/"
        params = {
            "type": RECEIVED_TX_TYPE,
            "currency": currency,
            "issuer": issuer,
            "marker": marker,
            "limit": HISTORICAL_PAGE_LIMIT,
            "end": window_end.isoformat(),
            "start": window_start.isoformat(),
        }
        body = do_json(self.session, "GET", url, params=params, timeout=self.timeout)
        if body.get("result") != RESULT_SUCCESS:
            raise FetchError(f"receive unexpected result status: {body.get('result')}", url=url)
        hashes = [p["tx_hash"] for p in body.get("payments") or []]
        return hashes, body.get("marker") or ""

    def fetch_tx(self, tx_hash: str) -> Dict[str, Any]:
        """Fetch one transaction in JSON form, retrying transient failures."""
        payload = {"method": "tx", "params": [{"transaction": tx_hash, "binary": False}]}

        def call() -> Dict[str, Any]:
            body = do_json(self.session, "POST", self.rpc_api_url, body=payload, timeout=self.timeout)
            result = body.get("result")
            if not isinstance(result, dict) or result.get("status") not in (None, RESULT_SUCCESS):
                raise FetchError(f"bad tx response: {body}", url=self.rpc_api_url)
            return result

        return with_retries(
            call,
            retries=self.retries,
            delay=self.retry_delay,
            what=f"get xrpl tx {tx_hash} by hash",
            backoff_max=self.backoff_max,
            sleep=self.sleep,
        )

    def fetch_payment_transactions(
        self,
        account: str,
        currency: str,
        issuer: str,
        window_start: datetime,
        window_end: datetime,
    ) -> List[Dict[str, Any]]:
        """Fetch every received payment in the window, details included."""
        logger.info(
            "Fetching xrpl txs before: %s, after: %s ...",
            window_end.isoformat(), window_start.isoformat(),
        )
        txs: List[Dict[str, Any]] = []
        marker = ""  # empty marker fetches from the latest
        page = 1
        with ThreadPoolExecutor(max_workers=self.fetch_pool_size) as ex:
            while True:
                logger.info("Fetching page %d", page)
                hashes, marker = self.fetch_payment_tx_hashes(
                    account, currency, issuer, marker, window_start, window_end,
                )
                # map() re-raises the first worker failure once the page is joined.
                txs.extend(ex.map(self.fetch_tx, hashes))
                page += 1
                if not marker:
                    break
        logger.info("Found xrpl txs total: %d", len(txs))
        return txs

    def get_audit_transactions(
        self,
        account: str,
        currency: str,
        issuer: str,
        bridge_chain_index: str,
        window_start: datetime,
        window_end: datetime,
    ) -> List[AuditTx]:
        """Bridge deposits into `account` within the window, newest first."""
        raw = self.fetch_payment_transactions(account, currency, issuer, window_start, window_end)
        txs = filter_bridge_transactions(raw, bridge_chain_index)
        logger.info("Found xrpl txs total after bridge related filtration: %d", len(txs))
        return txs

    def get_currency_supply(self, issuer: str, currency: str) -> int:
        """Outstanding supply of `currency` issued by `issuer`, in minor units."""
        url = f"{self.scan_api_url}/api/v1/account/{issuer}/obligations"
        body = do_json(self.session, "GET", url, timeout=self.timeout)
        for obligation in body or []:
            if obligation.get("currency") == currency:
                return minor_units_from_decimal(str(obligation.get("value", "0")))
        raise FetchError(f"currency {currency} not found for {issuer}", url=url)


__all__ = [
    "ripple_time_to_datetime",
    "decode_bridge_memo",
    "delivered_amount",
    "filter_bridge_transactions",
    "XrplClient",
]
