import csv
import json
from unittest.mock import Mock

import pytest

from bridge_audit import cli
from bridge_audit.core.exc import FetchError
from bridge_audit.coreum import incoming_event

from conftest import dest_tx, source_tx

WINDOW = ["--after-date-time", "2023-03-01 00:00:00", "--before-date-time", "2023-04-01 00:00:00"]
RELAY = "core1relay"


@pytest.fixture
def clients(monkeypatch):
    """Replace both ledger clients with mocks returning canned transactions."""
    xrpl = Mock()
    coreum = Mock()
    xrpl.get_audit_transactions.return_value = [
        source_tx("H1", "core1a", 1_000_000),
        source_tx("H2", "core1b", 2_000_000),
    ]
    outgoing = [dest_tx("D1", "core1a", 993_000, source_hash="H1"), dest_tx("D9", "core1z", 5, source_hash="H9")]
    incoming = [dest_tx("F1", RELAY, 300), dest_tx("F2", RELAY, 70)]

    def coreum_txs(event, denom, window_start, window_end):
        return incoming if event == incoming_event(RELAY) else outgoing

    coreum.get_audit_transactions.side_effect = coreum_txs
    xrpl.get_currency_supply.return_value = 5_000_000
    coreum.get_account_balance.return_value = 1_000_000

    monkeypatch.setattr(cli, "make_xrpl_client", lambda cfg: xrpl)
    monkeypatch.setattr(cli, "make_coreum_client", lambda cfg: coreum)
    for key in ("BRIDGE_AUDIT_CONFIG", "BRIDGE_AUDIT_INCLUDE_ALL", "BRIDGE_AUDIT_OUTPUT_DOCUMENT"):
        monkeypatch.delenv(key, raising=False)
    return xrpl, coreum


def _rows(path):
    with open(path, newline="", encoding="utf-8") as f:
        return list(csv.reader(f))


def test_discrepancy_export_writes_csv(clients, tmp_path):
    print("[cli-discrepancy] H2 orphan source, D9 orphan dest, H1/D1 clean")
    out = tmp_path / "discrepancies.csv"
    rc = cli.main(["discrepancy", "export", "--coreum-account", RELAY, "--output-document", str(out), *WINDOW])
    assert rc == 0
    rows = _rows(out)
    kinds = sorted(r[12] for r in rows[1:])
    assert kinds == ["orphan destination tx", "orphan source tx"]


def test_discrepancy_export_include_all(clients, tmp_path):
    out = tmp_path / "all.csv"
    rc = cli.main(["discrepancy", "export", "--include-all", "--coreum-account", RELAY,
                   "--output-document", str(out), *WINDOW])
    assert rc == 0
    assert len(_rows(out)) == 4


def test_discrepancy_fetches_full_history(clients, tmp_path):
    xrpl, coreum = clients
    cli.main(["discrepancy", "export", "--coreum-account", RELAY,
              "--output-document", str(tmp_path / "d.csv"), *WINDOW])
    args = xrpl.get_audit_transactions.call_args.args
    assert args[4] == cli.DEFAULT_AFTER_DATE_TIME
    assert coreum.get_audit_transactions.call_args.args[2:] == (None, None)


def test_summary_print(clients, capsys):
    rc = cli.main(["summary", "print", "--coreum-account", RELAY, "--coreum-foundation-account", "core1bridge", *WINDOW])
    assert rc == 0
    printed = capsys.readouterr().out
    print(printed)
    assert "IncomeAmount:0.000370" in printed
    assert "OutcomeAmount:0.993000" in printed
    assert "Burnt:3.000000" in printed
    assert "Supply:5.000000" in printed
    assert "OrphanTxs:1" in printed
    assert "NoneOrphanDiscrepancies: 1" in printed


def test_coreum_export_outgoing(clients, tmp_path):
    out = tmp_path / "outgoing.csv"
    assert cli.main(["coreum", "export-outgoing", "--coreum-account", RELAY, "--output-document", str(out), *WINDOW]) == 0
    assert [r[0] for r in _rows(out)[1:]] == ["D1", "D9"]


def test_xrpl_export_incoming_uses_window(clients, tmp_path):
    xrpl, _ = clients
    out = tmp_path / "incoming.csv"
    assert cli.main(["xrpl", "export-incoming", "--output-document", str(out), *WINDOW]) == 0
    args = xrpl.get_audit_transactions.call_args.args
    assert args[4].isoformat() == "2023-03-01T00:00:00+00:00"
    assert args[5].isoformat() == "2023-04-01T00:00:00+00:00"
    assert len(_rows(out)) == 3


def test_settlement_build(clients, tmp_path):
    out_dir = tmp_path / "settlement"
    rc = cli.main(["settlement", "build", "--coreum-account", RELAY, "--output-dir", str(out_dir), *WINDOW])
    assert rc == 0
    tx = json.loads((out_dir / "tx.json").read_text())
    assert tx["inputs"][0]["address"] == RELAY
    assert [o["address"] for o in tx["outputs"]] == ["core1b"]


def test_reversed_window_is_reported(clients, capsys):
    rc = cli.main(["xrpl", "export-incoming",
                   "--after-date-time", "2023-04-01 00:00:00", "--before-date-time", "2023-03-01 00:00:00"])
    assert rc == 1
    assert "Error: window start" in capsys.readouterr().err


def test_fetch_failure_is_reported(clients, capsys, tmp_path):
    xrpl, _ = clients
    xrpl.get_audit_transactions.side_effect = FetchError("can't reach rippled", url="https://rpc")
    rc = cli.main(["xrpl", "export-incoming", "--output-document", str(tmp_path / "x.csv"), *WINDOW])
    assert rc == 1
    assert "can't reach rippled" in capsys.readouterr().err


def test_subcommand_required():
    with pytest.raises(SystemExit):
        cli.main(["discrepancy"])
