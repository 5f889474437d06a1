"""Run configuration: defaults, fee policy table, and layered resolution.

Each setting resolves as: CLI flag -> environment variable
`BRIDGE_AUDIT_<KEY>` -> JSON config file (`--config`) -> built-in default.
The fee schedule table is hand maintained here; a config file may replace it
with a `fee_schedules` list.
"""

from __future__ import annotations

import json
import os
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional

from .core import ConfigurationError, FeeSchedule, check_window

DATE_TIME_FORMAT = "%Y-%m-%d %H:%M:%S"
ENV_PREFIX = "BRIDGE_AUDIT_"

# Bridge fee policy over time; the latest effective schedule applies to a tx.
# Amounts are ucore (1 CORE = 1_000_000 ucore), ratios per mille.
DEFAULT_FEE_SCHEDULES: List[FeeSchedule] = [
    FeeSchedule(
        effective_from=datetime(2023, 3, 24, 17, 0, 0, tzinfo=timezone.utc),
        fee_ratio_per_mille=1,           # 0.1%
        min_fee=2_400_000,               # 2.4 CORE
        max_fee=477_000_000,             # 477 CORE
        min_amount=4_800_000,            # 4.8 CORE
        max_amount=2_400_000_000_000,    # 2,400,000 CORE
    ),
    FeeSchedule(
        effective_from=datetime(2023, 3, 17, 13, 0, 0, tzinfo=timezone.utc),
        fee_ratio_per_mille=1,           # 0.1%
        min_fee=7_000,                   # 0.007 CORE
        max_fee=50_000,                  # 0.05 CORE
        min_amount=8_000,                # 0.008 CORE
        max_amount=100_000_000,          # 100 CORE
    ),
    FeeSchedule(
        effective_from=datetime(2023, 1, 1, 0, 0, 0, tzinfo=timezone.utc),
        fee_ratio_per_mille=1,           # 0.1%
        min_fee=2_400_000,               # 2.4 CORE
        max_fee=477_000_000,             # 477 CORE
        min_amount=4_800_000,            # 4.8 CORE
        max_amount=2_400_000_000_000,    # 2,400,000 CORE
    ),
]

DEFAULT_AFTER_DATE_TIME = datetime(2023, 3, 1, 0, 0, 0, tzinfo=timezone.utc)

DEFAULTS: Dict[str, Any] = {
    "denom": "ucore",
    "coreum_lcd_url": "https://full-node.mainnet-1.coreum.dev:1317",
    "coreum_account": "core1ssh2d2ft6hzrgn9z6k7mmsamy2hfpxl9y8re5x",
    "coreum_foundation_account": "core13xmyzhvl02xpz0pu8v9mqalsvpyy7wvs9q5f90",
    "xrpl_fetch_pool_size": 10,
    "xrpl_rpc_api_url": "https://s2.ripple.com:51234/",
    "xrpl_historical_api_url": "https://data.ripple.com",
    "xrpl_scan_api_url": "https://api.xrpscan.com",
    "xrpl_account": "rcoreNywaoz2ZCQ8Lg2EbSLnGuRBmun6D",
    "xrpl_currency": "434F524500000000000000000000000000000000",
    "xrpl_issuer": "rcoreNywaoz2ZCQ8Lg2EbSLnGuRBmun6D",
    "bridge_chain_index": "1007961752909",
    "multichain_rescan_api_url": "https://scanapi.multichain.org",
    "output_document": "",
    "include_all": False,
}

_INT_KEYS = {"xrpl_fetch_pool_size"}
_BOOL_KEYS = {"include_all"}
_TRUE_STRINGS = {"1", "true", "yes", "on"}


def parse_date_time(value: str, *, name: str = "date-time") -> datetime:
    """Parse 'YYYY-MM-DD HH:MM:SS' as a UTC datetime."""
    try:
        return datetime.strptime(value, DATE_TIME_FORMAT).replace(tzinfo=timezone.utc)
    except (TypeError, ValueError):
        raise ConfigurationError(f"error parsing {name} {value!r}, the expected format is {DATE_TIME_FORMAT}")


def fee_schedule_from_dict(raw: Mapping[str, Any]) -> FeeSchedule:
    """Build a FeeSchedule from a JSON object (`effective_from` as a date-time string)."""
    try:
        return FeeSchedule(
            effective_from=parse_date_time(raw["effective_from"], name="fee_schedules.effective_from"),
            fee_ratio_per_mille=raw["fee_ratio_per_mille"],
            min_fee=raw["min_fee"],
            max_fee=raw["max_fee"],
            min_amount=raw["min_amount"],
            max_amount=raw["max_amount"],
        )
    except KeyError as exc:
        raise ConfigurationError(f"fee schedule is missing field {exc}")


@dataclass
class AuditConfig:
    """Resolved settings for one run of the audit tool."""

    window_start: datetime
    window_end: datetime
    denom: str = DEFAULTS["denom"]
    coreum_lcd_url: str = DEFAULTS["coreum_lcd_url"]
    coreum_account: str = DEFAULTS["coreum_account"]
    coreum_foundation_account: str = DEFAULTS["coreum_foundation_account"]
    xrpl_fetch_pool_size: int = DEFAULTS["xrpl_fetch_pool_size"]
    xrpl_rpc_api_url: str = DEFAULTS["xrpl_rpc_api_url"]
    xrpl_historical_api_url: str = DEFAULTS["xrpl_historical_api_url"]
    xrpl_scan_api_url: str = DEFAULTS["xrpl_scan_api_url"]
    xrpl_account: str = DEFAULTS["xrpl_account"]
    xrpl_currency: str = DEFAULTS["xrpl_currency"]
    xrpl_issuer: str = DEFAULTS["xrpl_issuer"]
    bridge_chain_index: str = DEFAULTS["bridge_chain_index"]
    multichain_rescan_api_url: str = DEFAULTS["multichain_rescan_api_url"]
    output_document: str = DEFAULTS["output_document"]
    include_all: bool = DEFAULTS["include_all"]
    fee_schedules: List[FeeSchedule] = field(default_factory=lambda: list(DEFAULT_FEE_SCHEDULES))

    def __post_init__(self):
        check_window(self.window_start, self.window_end)
        if self.xrpl_fetch_pool_size < 1:
            raise ConfigurationError("xrpl_fetch_pool_size must be >= 1")
        if not self.fee_schedules:
            raise ConfigurationError("at least one fee schedule is required")


def read_config_file(path: Optional[str]) -> Dict[str, Any]:
    """Load a JSON config file; a missing path or file yields {}."""
    if not path:
        return {}
    cfg_path = Path(path)
    if not cfg_path.exists():
        return {}
    try:
        data = json.loads(cfg_path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as exc:
        raise ConfigurationError(f"config file is not valid JSON: {cfg_path} ({exc})")
    if not isinstance(data, dict):
        raise ConfigurationError(f"config file must hold a JSON object: {cfg_path}")
    return data


def _coerce(key: str, value: Any) -> Any:
    if key in _INT_KEYS:
        try:
            return int(value)
        except (TypeError, ValueError):
            raise ConfigurationError(f"{key} must be an integer, got {value!r}")
    if key in _BOOL_KEYS:
        if isinstance(value, bool):
            return value
        return str(value).strip().lower() in _TRUE_STRINGS
    return value


def _resolve(key: str, cli_value: Any, file_data: Mapping[str, Any], environ: Mapping[str, str], default: Any) -> Any:
    if cli_value is not None:
        return _coerce(key, cli_value)
    env_value = environ.get(ENV_PREFIX + key.upper())
    if env_value is not None:
        return _coerce(key, env_value)
    if key in file_data:
        return _coerce(key, file_data[key])
    return default


def load_config(
    cli: Optional[Mapping[str, Any]] = None,
    *,
    environ: Optional[Mapping[str, str]] = None,
    now: Optional[datetime] = None,
) -> AuditConfig:
    """Resolve an AuditConfig from CLI values (None = not given), env, and file.

    `cli` is typically `vars(argparse_namespace)`; its `config` entry names the
    optional JSON file. `before_date_time` defaults to now, `after_date_time`
    to 2023-03-01 00:00:00 UTC.
    """
    cli = dict(cli or {})
    environ = os.environ if environ is None else environ
    now = now or datetime.now(timezone.utc).replace(microsecond=0)
    file_data = read_config_file(_resolve("config", cli.get("config"), {}, environ, None))

    values: Dict[str, Any] = {
        key: _resolve(key, cli.get(key), file_data, environ, default)
        for key, default in DEFAULTS.items()
    }

    before = _resolve("before_date_time", cli.get("before_date_time"), file_data, environ, None)
    after = _resolve("after_date_time", cli.get("after_date_time"), file_data, environ, None)
    values["window_end"] = parse_date_time(before, name="before-date-time") if before else now
    values["window_start"] = parse_date_time(after, name="after-date-time") if after else DEFAULT_AFTER_DATE_TIME

    raw_schedules = file_data.get("fee_schedules")
    if raw_schedules is not None:
        if not isinstance(raw_schedules, list):
            raise ConfigurationError("fee_schedules must be a list")
        values["fee_schedules"] = [fee_schedule_from_dict(raw) for raw in raw_schedules]

    return AuditConfig(**values)


__all__ = [
    "DATE_TIME_FORMAT",
    "DEFAULT_FEE_SCHEDULES",
    "DEFAULT_AFTER_DATE_TIME",
    "DEFAULTS",
    "AuditConfig",
    "parse_date_time",
    "fee_schedule_from_dict",
    "read_config_file",
    "load_config",
]
