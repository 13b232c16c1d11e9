from __future__ import annotations

import os
from dataclasses import dataclass

from dotenv import load_dotenv


DEFAULT_RPC_URL = "https://coston2-api.flare.network/ext/C/rpc"
DEFAULT_CONTRACT = "0x973Ca902b10Bb229cB8d90F79E451F1B16aa82B4"


def _env_bool(name: str, default: bool) -> bool:
    raw = os.environ.get(name)
    if raw is None:
        return default
    return str(raw).strip().lower() in {"1", "true", "yes", "y", "on"}


def _env_int(name: str, default: int, min_value: int | None = None) -> int:
    raw = os.environ.get(name)
    if raw is None:
        value = default
    else:
        value = int(raw)
    if min_value is not None:
        value = max(min_value, value)
    return value


def _env_float(name: str, default: float, min_value: float | None = None) -> float:
    raw = os.environ.get(name)
    if raw is None:
        value = default
    else:
        value = float(raw)
    if min_value is not None:
        value = max(min_value, value)
    return value


@dataclass(frozen=True)
class Settings:
    rpc_url: str
    contract_address: str
    account: str
    data_dir: str
    log_level: str
    poll_interval_ms: int = 5000
    lookback_blocks: int = 5000
    max_logs_per_cycle: int = 20
    feed_size: int = 50
    tick_retention: int = 2000
    quiescence_sec: int = 10
    tick_store_key: str = "ftso_ticks"
    timeframe: str = "1m"
    rpc_timeout_sec: float = 10.0
    dashboard_enabled: bool = True
    dashboard_port: int = 8080


def load_settings(env_file: str = "~/.gascap.env") -> Settings:
    load_dotenv(os.path.expanduser(env_file))
    return Settings(
        rpc_url=os.environ.get("GASCAP_RPC_URL", DEFAULT_RPC_URL).strip(),
        contract_address=os.environ.get("GASCAP_CONTRACT", DEFAULT_CONTRACT).strip(),
        account=os.environ.get("GASCAP_ACCOUNT", "").strip(),
        data_dir=os.environ.get("DATA_DIR", "./data"),
        log_level=os.environ.get("LOG_LEVEL", "INFO").strip().upper(),
        poll_interval_ms=_env_int("POLL_INTERVAL_MS", 5000, min_value=250),
        lookback_blocks=_env_int("LOOKBACK_BLOCKS", 5000, min_value=1),
        max_logs_per_cycle=_env_int("MAX_LOGS_PER_CYCLE", 20, min_value=1),
        feed_size=_env_int("FEED_SIZE", 50, min_value=1),
        tick_retention=_env_int("TICK_RETENTION", 2000, min_value=1),
        quiescence_sec=_env_int("QUIESCENCE_SEC", 10, min_value=0),
        tick_store_key=os.environ.get("TICK_STORE_KEY", "ftso_ticks").strip(),
        timeframe=os.environ.get("CANDLE_TIMEFRAME", "1m").strip().lower(),
        rpc_timeout_sec=_env_float("RPC_TIMEOUT_SEC", 10.0, min_value=1.0),
        dashboard_enabled=_env_bool("DASHBOARD_ENABLED", True),
        dashboard_port=_env_int("DASHBOARD_PORT", 8080, min_value=1),
    )
