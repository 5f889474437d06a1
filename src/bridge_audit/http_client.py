"""JSON-over-HTTP helpers shared by the ledger clients."""

from __future__ import annotations

import logging
import random
import time
from typing import Any, Callable, Dict, Optional, TypeVar

import requests

from .core import FetchError

logger = logging.getLogger(__name__)

T = TypeVar("T")

DEFAULT_TIMEOUT = 10.0


def do_json(
    session: requests.Session,
    method: str,
    url: str,
    *,
    body: Optional[Dict[str, Any]] = None,
    params: Optional[Dict[str, Any]] = None,
    timeout: float = DEFAULT_TIMEOUT,
) -> Any:
    """Perform one JSON request and return the decoded body.

    Non-2xx statuses, transport failures and undecodable bodies all raise
    FetchError carrying the URL.
    """
    try:
        r = session.request(method, url, json=body, params=params, timeout=timeout)
    except requests.RequestException as exc:
        raise FetchError(f"can't perform the request, err: {exc}", url=url)

    if r.status_code < 200 or r.status_code >= 300:
        raise FetchError(f"can't perform request, code: {r.status_code}, body: {r.text}", url=url)

    try:
        return r.json()
    except ValueError as exc:
        raise FetchError(f"can't unmarshal the response body, body: {r.text}, err: {exc}", url=url)


def with_retries(
    fn: Callable[[], T],
    *,
    retries: int,
    delay: float,
    what: str,
    backoff_max: Optional[float] = None,
    sleep: Callable[[float], None] = time.sleep,
) -> T:
    """Call `fn` up to `retries` times, sleeping between attempts.

    With `backoff_max` set the delay doubles per attempt (with jitter) up to
    that cap; otherwise it stays fixed. The last error is wrapped in FetchError.
    """
    last_exc: Optional[Exception] = None
    for attempt in range(retries):
        try:
            return fn()
        except (FetchError, requests.RequestException) as exc:
            last_exc = exc
            logger.debug("%s failed (attempt %d/%d): %s", what, attempt + 1, retries, exc)
            if attempt == retries - 1:
                break
            sleep_s = delay
            if backoff_max is not None:
                sleep_s = min(backoff_max, delay * (2 ** attempt)) * (0.5 + random.random())
            sleep(sleep_s)

    url = getattr(last_exc, "url", None)
    raise FetchError(
        f"can't {what} with {retries} retries and timeout {delay}s, last err: {last_exc}",
        url=url,
        attempts=retries,
    )


__all__ = ["DEFAULT_TIMEOUT", "do_json", "with_retries"]
