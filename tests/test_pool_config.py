from __future__ import annotations

import json

import pytest

from stakepool.runtime.pool_config import default_pool_config, load_pool_config, read_pool_config_file


def _write(tmp_path, data) -> str:
    p = tmp_path / "pool.json"
    p.write_text(json.dumps(data), encoding="utf-8")
    return str(p)


def test_defaults_are_valid_and_production_safe(monkeypatch) -> None:
    monkeypatch.delenv("STAKEPOOL_POOL_CONFIG_PATH", raising=False)
    cfg = load_pool_config()
    assert cfg == default_pool_config()
    assert cfg.mode == "prod"


def test_reads_file_from_env_path(tmp_path, monkeypatch) -> None:
    path = _write(
        tmp_path,
        {"pool_id": "p1", "mode": "dev", "start": 10, "end": 110, "total_rewards": 1000, "api_port": 9001},
    )
    monkeypatch.setenv("STAKEPOOL_POOL_CONFIG_PATH", path)
    cfg = load_pool_config()
    assert cfg.pool_id == "p1"
    assert cfg.mode == "dev"
    assert (cfg.start, cfg.end, cfg.total_rewards) == (10, 110, 1000)
    assert cfg.api_port == 9001
    # unspecified keys fall back to defaults
    assert cfg.stake_asset == "STAKE"


@pytest.mark.parametrize(
    "patch",
    [
        {"mode": "yolo"},
        {"start": 100, "end": 100},
        {"total_rewards": 0},
        {"api_port": 70000},
        {"stake_asset": "X", "reward_asset": "X"},
    ],
)
def test_invalid_files_fail_fast(tmp_path, patch) -> None:
    with pytest.raises(ValueError):
        read_pool_config_file(_write(tmp_path, patch))


def test_non_object_file_is_rejected(tmp_path) -> None:
    with pytest.raises(ValueError):
        read_pool_config_file(_write(tmp_path, [1, 2, 3]))


@pytest.mark.parametrize(
    "patch",
    [
        {"total_rewards": "abc"},
        {"total_rewards": 1e24},
        {"end": 110.5},
        {"start": True},
        {"api_port": "80a"},
    ],
)
def test_non_integer_numeric_fields_are_rejected(tmp_path, patch) -> None:
    with pytest.raises(ValueError):
        read_pool_config_file(_write(tmp_path, patch))


def test_decimal_string_amounts_are_read_exactly(tmp_path) -> None:
    big = "1000000000000000000000001"
    cfg = read_pool_config_file(_write(tmp_path, {"start": "10", "end": "110", "total_rewards": big}))
    assert (cfg.start, cfg.end) == (10, 110)
    assert cfg.total_rewards == int(big)
