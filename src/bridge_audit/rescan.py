"""Ask the multichain relay to rescan orphaned XRPL deposits."""

from __future__ import annotations

import logging
import time
from typing import Callable, Iterable, List, Optional

import requests

from .core import DiscrepancyKind, FetchError, TxDiscrepancy
from .http_client import do_json, with_retries

logger = logging.getLogger(__name__)

RESCAN_STATUS_SUCCESS = "Success"
RESCAN_REQUEST_TIMEOUT = 10.0


def orphan_source_hashes(records: Iterable[TxDiscrepancy]) -> List[str]:
    """Hashes of source txs the destination ledger never credited."""
    return [r.source_tx.hash for r in records if r.kind is DiscrepancyKind.ORPHAN_SOURCE]


def rescan_multichain_tx(
    session: requests.Session,
    base_url: str,
    tx_hash: str,
    *,
    retries: int = 10,
    retry_delay: float = 1.0,
    sleep: Callable[[float], None] = time.sleep,
) -> None:
    url = f"{base_url.rstrip('/')}/v2/reswaptxns"
    params = {"hash": tx_hash, "srcChainID": "XRP", "destChainID": "ATOM_DCORE"}

    def call() -> None:
        body = do_json(session, "GET", url, params=params, timeout=RESCAN_REQUEST_TIMEOUT)
        if body.get("msg") != RESCAN_STATUS_SUCCESS:
            raise FetchError(f"rescan not accepted, last response: {body}", url=url)

    with_retries(call, retries=retries, delay=retry_delay, what=f"send {tx_hash} tx to rescan", sleep=sleep)


def rescan_multichain_txs(
    base_url: str,
    tx_hashes: Iterable[str],
    *,
    session: Optional[requests.Session] = None,
    retries: int = 10,
    retry_delay: float = 1.0,
    sleep: Callable[[float], None] = time.sleep,
) -> int:
    """Submit every hash for rescan, stopping at the first that keeps failing.

    Returns the number of hashes submitted.
    """
    session = session or requests.Session()
    tx_hashes = list(tx_hashes)
    logger.info("Rescanning %d xrpl txs", len(tx_hashes))
    for tx_hash in tx_hashes:
        logger.info("Rescanning %r xrpl tx", tx_hash)
        rescan_multichain_tx(session, base_url, tx_hash, retries=retries, retry_delay=retry_delay, sleep=sleep)
    return len(tx_hashes)


__all__ = [
    "RESCAN_STATUS_SUCCESS",
    "orphan_source_hashes",
    "rescan_multichain_tx",
    "rescan_multichain_txs",
]
