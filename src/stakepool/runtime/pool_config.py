# src/stakepool/runtime/pool_config.py
from __future__ import annotations

import json
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Optional

Json = Dict[str, Any]


def _as_int(v: Any, default: int, *, field: str) -> int:
    """Exact integer or decimal string; absent keys take the default.

    Floats are rejected: JSON numbers like 1e24 lose precision on the way in.
    """
    if v is None:
        return int(default)
    if isinstance(v, bool):
        raise ValueError(f"{field} must be an integer; got: {v!r}")
    if isinstance(v, int):
        return v
    if isinstance(v, str):
        s = v.strip()
        digits = s[1:] if s.startswith("-") else s
        if digits.isascii() and digits.isdigit():
            return int(s)
    raise ValueError(f"{field} must be an integer; got: {v!r}")


def _as_str(v: Any, default: str) -> str:
    if v is None:
        return str(default)
    s = str(v)
    return s if s.strip() else str(default)


@dataclass(frozen=True)
class PoolConfig:
    pool_id: str
    mode: str  # "dev" | "testnet" | "prod"

    stake_asset: str
    reward_asset: str

    # Program window (unix seconds) and the reward pool size in base units.
    start: int
    end: int
    total_rewards: int

    custody_account: str

    api_host: str
    api_port: int

    log_level: str


_ALLOWED_MODES = {"dev", "testnet", "prod"}


def validate_pool_config(cfg: PoolConfig) -> None:
    """Fail-fast validation for operator config.

    Program arithmetic (rate truncating to zero etc.) is checked again by
    Program.create; this catches obviously broken files early.
    """
    for name in ("pool_id", "stake_asset", "reward_asset", "custody_account"):
        v = getattr(cfg, name)
        if not isinstance(v, str) or not v.strip():
            raise ValueError(f"{name} must be a non-empty string")

    mode = str(cfg.mode or "").strip().lower()
    if mode not in _ALLOWED_MODES:
        raise ValueError(f"mode must be one of {_ALLOWED_MODES}; got: {cfg.mode!r}")

    if cfg.stake_asset == cfg.reward_asset:
        raise ValueError("stake_asset and reward_asset must differ")

    if int(cfg.start) < 0:
        raise ValueError(f"start must be >= 0; got: {cfg.start}")

    if int(cfg.end) <= int(cfg.start):
        raise ValueError(f"end must be > start; got start={cfg.start} end={cfg.end}")

    if int(cfg.total_rewards) <= 0:
        raise ValueError(f"total_rewards must be > 0; got: {cfg.total_rewards}")

    if int(cfg.api_port) <= 0 or int(cfg.api_port) > 65535:
        raise ValueError(f"api_port must be 1..65535; got: {cfg.api_port}")


def default_pool_config() -> PoolConfig:
    return PoolConfig(
        pool_id="stakepool-dev",
        mode="prod",
        stake_asset="STAKE",
        reward_asset="REWARD",
        start=0,
        end=30 * 24 * 3600,
        total_rewards=10**24,
        custody_account="POOL",
        api_host="127.0.0.1",
        api_port=8080,
        log_level="INFO",
    )


def read_pool_config_file(path: str) -> PoolConfig:
    p = Path(path)
    raw = json.loads(p.read_text(encoding="utf-8"))
    if not isinstance(raw, dict):
        raise ValueError("pool config must be a JSON object")

    d = default_pool_config()

    cfg = PoolConfig(
        pool_id=_as_str(raw.get("pool_id"), d.pool_id),
        mode=_as_str(raw.get("mode"), d.mode),
        stake_asset=_as_str(raw.get("stake_asset"), d.stake_asset),
        reward_asset=_as_str(raw.get("reward_asset"), d.reward_asset),
        start=_as_int(raw.get("start"), d.start, field="start"),
        end=_as_int(raw.get("end"), d.end, field="end"),
        total_rewards=_as_int(raw.get("total_rewards"), d.total_rewards, field="total_rewards"),
        custody_account=_as_str(raw.get("custody_account"), d.custody_account),
        api_host=_as_str(raw.get("api_host"), d.api_host),
        api_port=_as_int(raw.get("api_port"), d.api_port, field="api_port"),
        log_level=_as_str(raw.get("log_level"), d.log_level),
    )

    validate_pool_config(cfg)
    return cfg


def load_pool_config(*, config_path: Optional[str] = None) -> PoolConfig:
    p = config_path or os.environ.get("STAKEPOOL_POOL_CONFIG_PATH")
    if p:
        return read_pool_config_file(p)

    cfg = default_pool_config()
    validate_pool_config(cfg)
    return cfg
