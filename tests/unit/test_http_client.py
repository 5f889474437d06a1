import pytest
import requests

from bridge_audit.core.exc import FetchError
from bridge_audit.http_client import do_json, with_retries

from conftest import make_response

URL = "https://api.example/x"


def test_do_json_returns_body(mock_session):
    mock_session.request.return_value = make_response(200, {"ok": True})
    assert do_json(mock_session, "POST", URL, body={"a": 1}, timeout=3) == {"ok": True}
    mock_session.request.assert_called_once_with("POST", URL, json={"a": 1}, params=None, timeout=3)


def test_do_json_transport_error(mock_session):
    mock_session.request.side_effect = requests.ConnectionError("refused")
    with pytest.raises(FetchError) as ei:
        do_json(mock_session, "GET", URL)
    assert ei.value.url == URL


def test_do_json_non_2xx_and_bad_body(mock_session):
    mock_session.request.return_value = make_response(404, None, text="nope")
    with pytest.raises(FetchError):
        do_json(mock_session, "GET", URL)
    mock_session.request.return_value = make_response(200, ValueError("no json"))
    with pytest.raises(FetchError):
        do_json(mock_session, "GET", URL)


def test_with_retries_fixed_delay():
    print("[retries] fail twice then succeed -> two fixed sleeps")
    sleeps = []
    outcomes = [FetchError("a", url=URL), requests.Timeout("t"), "done"]

    def fn():
        x = outcomes.pop(0)
        if isinstance(x, Exception):
            raise x
        return x

    assert with_retries(fn, retries=5, delay=0.25, what="call", sleep=sleeps.append) == "done"
    assert sleeps == [0.25, 0.25]


def test_with_retries_backoff_is_capped():
    sleeps = []

    def fn():
        raise FetchError("down", url=URL)

    with pytest.raises(FetchError) as ei:
        with_retries(fn, retries=6, delay=1.0, what="call", backoff_max=4.0, sleep=sleeps.append)
    assert ei.value.attempts == 6
    assert ei.value.url == URL
    assert len(sleeps) == 5
    # jitter scales each step by [0.5, 1.5)
    assert all(0.5 <= s < 6.0 for s in sleeps)
    assert sleeps[-1] >= 2.0


def test_with_retries_does_not_swallow_other_errors():
    def fn():
        raise KeyError("bug")

    with pytest.raises(KeyError):
        with_retries(fn, retries=3, delay=0, what="call", sleep=lambda s: None)
