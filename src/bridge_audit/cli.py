"""Command line entry point: `bridge-audit <group> <command> [flags]`."""

from __future__ import annotations

import argparse
import logging
import sys
from datetime import datetime, timezone
from typing import List, Optional, Sequence

from .audit import discrepancy_counts, find_audit_tx_discrepancies
from .config import DATE_TIME_FORMAT, DEFAULT_AFTER_DATE_TIME, AuditConfig, load_config
from .core import AuditError, AuditTx, TxDiscrepancy
from .coreum import CoreumClient, incoming_event, outgoing_event
from .export import write_audit_txs_to_csv, write_discrepancies_to_csv
from .rescan import orphan_source_hashes, rescan_multichain_txs
from .settlement import compute_settlement_balances, write_settlement
from .summary import build_summary
from .xrpl import XrplClient

logger = logging.getLogger("bridge_audit")


# ---------------------------------------------------------------------------
# Clients and shared fetch steps
# ---------------------------------------------------------------------------

def make_xrpl_client(cfg: AuditConfig) -> XrplClient:
    return XrplClient(
        cfg.xrpl_rpc_api_url,
        cfg.xrpl_historical_api_url,
        cfg.xrpl_scan_api_url,
        fetch_pool_size=cfg.xrpl_fetch_pool_size,
    )


def make_coreum_client(cfg: AuditConfig) -> CoreumClient:
    return CoreumClient(cfg.coreum_lcd_url)


def _full_history_end() -> datetime:
    return datetime.now(timezone.utc).replace(microsecond=0)


def fetch_source_history(cfg: AuditConfig, xrpl: XrplClient) -> List[AuditTx]:
    logger.info("Fetching incoming transactions for %s xrpl account", cfg.xrpl_account)
    # Full history; the report window is applied after matching.
    return xrpl.get_audit_transactions(
        cfg.xrpl_account,
        cfg.xrpl_currency,
        cfg.xrpl_issuer,
        cfg.bridge_chain_index,
        DEFAULT_AFTER_DATE_TIME,
        _full_history_end(),
    )


def fetch_dest_history(cfg: AuditConfig, coreum: CoreumClient) -> List[AuditTx]:
    logger.info("Fetching outgoing transactions from multichain coreum wallet")
    return coreum.get_audit_transactions(outgoing_event(cfg.coreum_account), cfg.denom, None, None)


def find_tx_discrepancies(
    cfg: AuditConfig,
    xrpl: XrplClient,
    coreum: CoreumClient,
    *,
    include_all: bool,
) -> List[TxDiscrepancy]:
    source_txs = fetch_source_history(cfg, xrpl)
    dest_txs = fetch_dest_history(cfg, coreum)
    records = find_audit_tx_discrepancies(
        source_txs,
        dest_txs,
        cfg.fee_schedules,
        include_all=include_all,
        window_start=cfg.window_start,
        window_end=cfg.window_end,
    )
    logger.info("Found %d discrepancies", len(records))
    for kind, n in discrepancy_counts(records).items():
        logger.info("  %s: %d", kind.value or "no discrepancy", n)
    return records


# ---------------------------------------------------------------------------
# Command handlers
# ---------------------------------------------------------------------------

def _output(cfg: AuditConfig, args: argparse.Namespace) -> str:
    return cfg.output_document or args.default_output


def cmd_coreum_export_outgoing(cfg: AuditConfig, args: argparse.Namespace) -> int:
    logger.info("Fetching outgoing transactions from multichain's coreum wallet")
    txs = make_coreum_client(cfg).get_audit_transactions(
        outgoing_event(cfg.coreum_account), cfg.denom, cfg.window_start, cfg.window_end,
    )
    write_audit_txs_to_csv(txs, _output(cfg, args))
    return 0


def cmd_coreum_export_incoming(cfg: AuditConfig, args: argparse.Namespace) -> int:
    logger.info("Fetching incoming transactions to multichain coreum wallet")
    txs = make_coreum_client(cfg).get_audit_transactions(
        incoming_event(cfg.coreum_account), cfg.denom, cfg.window_start, cfg.window_end,
    )
    write_audit_txs_to_csv(txs, _output(cfg, args))
    return 0


def cmd_xrpl_export_incoming(cfg: AuditConfig, args: argparse.Namespace) -> int:
    logger.info("Fetching incoming transactions for %s xrpl account", cfg.xrpl_account)
    txs = make_xrpl_client(cfg).get_audit_transactions(
        cfg.xrpl_account,
        cfg.xrpl_currency,
        cfg.xrpl_issuer,
        cfg.bridge_chain_index,
        cfg.window_start,
        cfg.window_end,
    )
    write_audit_txs_to_csv(txs, _output(cfg, args))
    return 0


def cmd_discrepancy_export(cfg: AuditConfig, args: argparse.Namespace) -> int:
    logger.info("Exporting discrepancies.")
    records = find_tx_discrepancies(
        cfg, make_xrpl_client(cfg), make_coreum_client(cfg), include_all=cfg.include_all,
    )
    write_discrepancies_to_csv(records, _output(cfg, args))
    return 0


def cmd_discrepancy_rescan(cfg: AuditConfig, args: argparse.Namespace) -> int:
    logger.info("Rescanning orphan discrepancies.")
    records = find_tx_discrepancies(cfg, make_xrpl_client(cfg), make_coreum_client(cfg), include_all=False)
    rescan_multichain_txs(cfg.multichain_rescan_api_url, orphan_source_hashes(records))
    return 0


def cmd_summary_print(cfg: AuditConfig, args: argparse.Namespace) -> int:
    logger.info("Fetching data for the report.")
    xrpl = make_xrpl_client(cfg)
    coreum = make_coreum_client(cfg)

    xrpl_supply = xrpl.get_currency_supply(cfg.xrpl_issuer, cfg.xrpl_currency)
    coreum_balance = coreum.get_account_balance(cfg.coreum_account, cfg.denom)
    records = find_tx_discrepancies(cfg, xrpl, coreum, include_all=True)

    incoming = coreum.get_audit_transactions(
        incoming_event(cfg.coreum_account), cfg.denom, cfg.window_start, cfg.window_end,
    )
    foundation_incoming = [tx for tx in incoming if tx.from_address == cfg.coreum_foundation_account]

    summary = build_summary(records, foundation_incoming, coreum_balance, xrpl_supply)
    logger.info("Summary report:")
    print(summary)
    return 0


def cmd_settlement_build(cfg: AuditConfig, args: argparse.Namespace) -> int:
    source_txs = fetch_source_history(cfg, make_xrpl_client(cfg))
    dest_txs = fetch_dest_history(cfg, make_coreum_client(cfg))
    balances = compute_settlement_balances(source_txs, dest_txs, cfg.fee_schedules)
    msg = write_settlement(balances, cfg.coreum_account, cfg.denom, args.output_dir)
    if msg is None:
        logger.info("nothing to send")
    else:
        logger.info("Wrote settlement for %d addresses to %s", len(msg["outputs"]), args.output_dir)
    return 0


# ---------------------------------------------------------------------------
# Parser
# ---------------------------------------------------------------------------

def _common_parser() -> argparse.ArgumentParser:
    # None means "not given" to load_config().
    p = argparse.ArgumentParser(add_help=False)
    p.add_argument("--config", default=None, help="JSON config file")
    p.add_argument("--log-level", default="INFO", help="Logging level (DEBUG, INFO, WARNING, ...)")
    p.add_argument("--before-date-time", default=None, help=f"UTC date and time to fetch from, format: {DATE_TIME_FORMAT} (default: now)")
    p.add_argument("--after-date-time", default=None, help=f"UTC date and time to fetch to, format: {DATE_TIME_FORMAT} (default: 2023-03-01 00:00:00)")
    p.add_argument("--coreum-lcd-url", default=None, help="coreum LCD (REST) address")
    p.add_argument("--coreum-account", default=None, help="multichain account on coreum")
    p.add_argument("--coreum-foundation-account", default=None, help="foundation account on coreum")
    p.add_argument("--denom", default=None, help="coreum denom")
    p.add_argument("--xrpl-rpc-api-url", default=None, help="xrpl RPC address")
    p.add_argument("--xrpl-fetch-pool-size", type=int, default=None, help="xrpl fetch pool size")
    p.add_argument("--xrpl-historical-api-url", default=None, help="xrpl historical API address")
    p.add_argument("--xrpl-scan-api-url", default=None, help="xrpl scan API address")
    p.add_argument("--xrpl-account", default=None, help="xrpl account")
    p.add_argument("--xrpl-currency", default=None, help="xrpl hex currency")
    p.add_argument("--xrpl-issuer", default=None, help="xrpl issuer")
    p.add_argument("--bridge-chain-index", default=None, help="xrpl chain index")
    return p


def build_parser() -> argparse.ArgumentParser:
    common = _common_parser()
    parser = argparse.ArgumentParser(prog="bridge-audit", description="Multichain XRPL -> Coreum bridge auditor.")
    groups = parser.add_subparsers(dest="group", required=True)

    def leaf(sub, name: str, help_text: str, handler, default_output: Optional[str] = None):
        p = sub.add_parser(name, parents=[common], help=help_text)
        p.set_defaults(handler=handler, default_output=default_output)
        if default_output is not None:
            p.add_argument("--output-document", default=None, help=f"output file (default: {default_output})")
        return p

    coreum = groups.add_parser("coreum", help="Fetch transactions from multichain's coreum account")
    coreum_sub = coreum.add_subparsers(dest="command", required=True)
    leaf(coreum_sub, "export-outgoing", "Write outgoing transactions from coreum wallet to csv file",
         cmd_coreum_export_outgoing, "datafiles/outgoing-on-coreum.csv")
    leaf(coreum_sub, "export-incoming", "Write incoming transactions from multichain's coreum wallet to csv file",
         cmd_coreum_export_incoming, "datafiles/incoming-on-coreum.csv")

    xrpl = groups.add_parser("xrpl", help="Fetch xrpl account transactions")
    xrpl_sub = xrpl.add_subparsers(dest="command", required=True)
    leaf(xrpl_sub, "export-incoming", "Write incoming transactions from xrpl address to csv file",
         cmd_xrpl_export_incoming, "datafiles/incoming-on-xrpl.csv")

    discrepancy = groups.add_parser("discrepancy", help="Fetch xrpl and coreum discrepancies")
    discrepancy_sub = discrepancy.add_subparsers(dest="command", required=True)
    export = leaf(discrepancy_sub, "export", "Write all transactions xrpl and coreum discrepancies to csv file",
                  cmd_discrepancy_export, "datafiles/discrepancies.csv")
    export.add_argument("--include-all", action="store_true", default=None,
                        help="add all tx to output file even if no discrepancies are found")
    rescan = leaf(discrepancy_sub, "rescan", "Rescans all orphan xrpl txs", cmd_discrepancy_rescan)
    rescan.add_argument("--multichain-rescan-api-url", default=None, help="multichain rescan API url")

    summary = groups.add_parser("summary", help="Get summary data.")
    summary_sub = summary.add_subparsers(dest="command", required=True)
    leaf(summary_sub, "print", "Get and print summary report.", cmd_summary_print)

    settlement = groups.add_parser("settlement", help="Compute what the relay still owes.")
    settlement_sub = settlement.add_subparsers(dest="command", required=True)
    build = leaf(settlement_sub, "build", "Write diff.txt and an unsigned multi-send tx.json", cmd_settlement_build)
    build.add_argument("--output-dir", default="datafiles/settlement", help="directory for diff.txt and tx.json")

    return parser


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=getattr(logging, str(args.log_level).upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    try:
        cfg = load_config(vars(args))
        return args.handler(cfg, args)
    except AuditError as exc:
        logger.error("%s", exc)
        print(f"Error: {exc}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    raise SystemExit(main())
