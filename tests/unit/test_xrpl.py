import pytest
from datetime import datetime, timezone

from bridge_audit.core.exc import FetchError
from bridge_audit.xrpl import (
    XrplClient,
    decode_bridge_memo,
    delivered_amount,
    filter_bridge_transactions,
    ripple_time_to_datetime,
)

from conftest import CHAIN_INDEX, make_response

RPC = "https://rpc.example/"
HIST = "https://hist.example"
SCAN = "https://scan.example"
ACCOUNT = "rBridge"
CURRENCY = "434F524500000000000000000000000000000000"


def _hex(text: str) -> str:
    return text.encode("utf-8").hex().upper()


def _raw_tx(hash: str, target: str, value: str, date: int, chain_index: str = CHAIN_INDEX) -> dict:
    return {
        "hash": hash,
        "Account": "rSender",
        "Destination": ACCOUNT,
        "date": date,
        "Memos": [{"Memo": {"MemoData": _hex(f"{target}:{chain_index}")}}],
        "meta": {"delivered_amount": {"currency": CURRENCY, "issuer": ACCOUNT, "value": value}},
        "status": "success",
    }


# -----------------------------
# Pure helpers
# -----------------------------

def test_ripple_time_epoch():
    assert ripple_time_to_datetime(0) == datetime(2000, 1, 1, tzinfo=timezone.utc)
    assert ripple_time_to_datetime(86_400) == datetime(2000, 1, 2, tzinfo=timezone.utc)


def test_decode_bridge_memo():
    print("[memo] hex('core1abc:<idx>') -> ('core1abc', memo text)")
    assert decode_bridge_memo(_hex(f"core1abc:{CHAIN_INDEX}"), CHAIN_INDEX) == ("core1abc", f"core1abc:{CHAIN_INDEX}")
    assert decode_bridge_memo(_hex("core1abc:999"), CHAIN_INDEX) is None
    assert decode_bridge_memo(_hex("core1abc"), CHAIN_INDEX) is None
    assert decode_bridge_memo("zz-not-hex", CHAIN_INDEX) is None
    assert decode_bridge_memo("FFFE", CHAIN_INDEX) is None


def test_delivered_amount():
    assert delivered_amount({"meta": {"delivered_amount": {"value": "12.5"}}}) == 12_500_000
    assert delivered_amount({"meta": {"delivered_amount": "1000000"}}) == 0
    assert delivered_amount({"meta": {}}) == 0
    assert delivered_amount({}) == 0


def test_filter_bridge_transactions_keeps_deposits_newest_first():
    raw = [
        _raw_tx("A1", "core1a", "1", 700_000_000),
        _raw_tx("A2", "core1b", "2.5", 700_000_100),
        _raw_tx("X1", "core1c", "3", 700_000_200, chain_index="42"),
        _raw_tx("X2", "core1d", "0", 700_000_300),
        {"hash": "X3", "date": 700_000_400, "meta": {}},
    ]
    out = filter_bridge_transactions(raw, CHAIN_INDEX)
    print("kept ->", [t.hash for t in out])
    assert [t.hash for t in out] == ["A2", "A1"]
    assert out[0].target_address == "core1b"
    assert out[0].amount == 2_500_000
    assert out[0].from_address == "rSender" and out[0].to_address == ACCOUNT
    assert out[0].timestamp == ripple_time_to_datetime(700_000_100)


# -----------------------------
# Client
# -----------------------------

def _client(session, **kw) -> XrplClient:
    return XrplClient(RPC, HIST, SCAN, session=session, fetch_pool_size=2, retry_delay=0, **kw)


def test_get_audit_transactions_pages_and_fetches_details(mock_session):
    print("[xrpl-client] two history pages -> details fetched for every hash")
    txs = {
        "H1": _raw_tx("H1", "core1a", "1", 700_000_000),
        "H2": _raw_tx("H2", "core1b", "2", 700_000_100),
        "H3": _raw_tx("H3", "core1c", "3", 700_000_200, chain_index="42"),
    }
    pages = {
        "": {"result": "success", "payments": [{"tx_hash": "H1"}, {"tx_hash": "H2"}], "marker": "m1"},
        "m1": {"result": "success", "payments": [{"tx_hash": "H3"}]},
    }

    def fake_request(method, url, json=None, params=None, timeout=None):
        if method == "GET":
            assert url == f"{HIST}/v2/accounts/{ACCOUNT}/payments/"
            assert params["type"] == "received" and params["currency"] == CURRENCY
            return make_response(200, pages[params["marker"]])
        assert url == RPC and json["method"] == "tx"
        return make_response(200, {"result": txs[json["params"][0]["transaction"]]})

    mock_session.request.side_effect = fake_request
    start = datetime(2023, 3, 1, tzinfo=timezone.utc)
    end = datetime(2023, 4, 1, tzinfo=timezone.utc)
    out = _client(mock_session).get_audit_transactions(ACCOUNT, CURRENCY, ACCOUNT, CHAIN_INDEX, start, end)
    assert [t.hash for t in out] == ["H2", "H1"]
    assert mock_session.request.call_count == 5


def test_history_non_success_result_raises(mock_session):
    mock_session.request.return_value = make_response(200, {"result": "error"})
    with pytest.raises(FetchError):
        _client(mock_session).fetch_payment_tx_hashes(
            ACCOUNT, CURRENCY, ACCOUNT, "",
            datetime(2023, 3, 1, tzinfo=timezone.utc), datetime(2023, 4, 1, tzinfo=timezone.utc),
        )


def test_fetch_tx_retries_then_succeeds(mock_session):
    tx = _raw_tx("H1", "core1a", "1", 700_000_000)
    mock_session.request.side_effect = [
        make_response(503, None, text="busy"),
        make_response(200, ValueError("bad json")),
        make_response(200, {"result": tx}),
    ]
    assert _client(mock_session, retries=3).fetch_tx("H1") == tx
    assert mock_session.request.call_count == 3


def test_fetch_tx_gives_up_after_retries(mock_session):
    mock_session.request.return_value = make_response(500, None, text="down")
    with pytest.raises(FetchError) as ei:
        _client(mock_session, retries=2).fetch_tx("H1")
    assert ei.value.attempts == 2
    assert ei.value.url == RPC


def test_get_currency_supply(mock_session):
    mock_session.request.return_value = make_response(200, [
        {"currency": "USD", "value": "1"},
        {"currency": CURRENCY, "value": "100.1234567"},
    ])
    assert _client(mock_session).get_currency_supply(ACCOUNT, CURRENCY) == 100_123_456
    args, kwargs = mock_session.request.call_args
    assert args == ("GET", f"{SCAN}/api/v1/account/{ACCOUNT}/obligations")


def test_get_currency_supply_missing_currency_raises(mock_session):
    mock_session.request.return_value = make_response(200, [])
    with pytest.raises(FetchError):
        _client(mock_session).get_currency_supply(ACCOUNT, CURRENCY)


def test_pool_size_must_be_positive(mock_session):
    with pytest.raises(ValueError):
        XrplClient(RPC, HIST, SCAN, session=mock_session, fetch_pool_size=0)


def test_fetch_tx_backs_off_with_jitter_up_to_cap(mock_session):
    print("[xrpl-backoff] 4 failures, base 1s, cap 2s -> sleeps grow then stay capped")
    sleeps = []
    tx = _raw_tx("H1", "core1a", "1", 700_000_000)
    mock_session.request.side_effect = [make_response(503, None, text="busy")] * 4 + [make_response(200, {"result": tx})]
    client = XrplClient(
        RPC, HIST, SCAN, session=mock_session, retries=5, retry_delay=1.0, backoff_max=2.0, sleep=sleeps.append,
    )
    assert client.fetch_tx("H1") == tx
    assert len(sleeps) == 4
    # jitter scales each step by [0.5, 1.5)
    assert 0.5 <= sleeps[0] < 1.5
    assert all(1.0 <= s < 3.0 for s in sleeps[1:])


def test_fetch_tx_fixed_delay_without_backoff(mock_session):
    sleeps = []
    mock_session.request.return_value = make_response(500, None, text="down")
    client = XrplClient(
        RPC, HIST, SCAN, session=mock_session, retries=3, retry_delay=0.25, backoff_max=None, sleep=sleeps.append,
    )
    with pytest.raises(FetchError):
        client.fetch_tx("H1")
    assert sleeps == [0.25, 0.25]
