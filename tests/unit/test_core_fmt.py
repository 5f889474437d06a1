from datetime import datetime, timedelta, timezone

from bridge_audit.core.fmt import (
    fmt_token_amount,
    fmt_optional_int,
    fmt_timestamp,
    fmt_duration,
)


def test_fmt_token_amount_six_places():
    print("[fmt_token] minor units -> whole tokens with 6 decimals")
    assert fmt_token_amount(1_000_000) == "1.000000"
    assert fmt_token_amount(7) == "0.000007"
    assert fmt_token_amount(123_456_789) == "123.456789"
    assert fmt_token_amount(0) == "0.000000"
    assert fmt_token_amount(None) == "0.000000"


def test_fmt_token_amount_custom_places():
    assert fmt_token_amount(1_500_000, places=2) == "1.50"


def test_fmt_optional_int():
    assert fmt_optional_int(None) == ""
    assert fmt_optional_int(0) == "0"
    assert fmt_optional_int(993000) == "993000"


def test_fmt_timestamp_utc():
    ts = datetime(2023, 3, 20, 12, 0, 5, tzinfo=timezone.utc)
    assert fmt_timestamp(ts) == "2023-03-20 12:00:05 +0000 UTC"
    assert fmt_timestamp(None) == ""


def test_fmt_duration():
    print("[fmt_duration] compact h/m/s rendering")
    assert fmt_duration(timedelta(0)) == "0s"
    assert fmt_duration(timedelta(seconds=45)) == "45s"
    assert fmt_duration(timedelta(minutes=2)) == "2m0s"
    assert fmt_duration(timedelta(hours=1, minutes=2, seconds=3)) == "1h2m3s"
    assert fmt_duration(timedelta(hours=2)) == "2h0m0s"
    assert fmt_duration(timedelta(seconds=-5)) == "-5s"
