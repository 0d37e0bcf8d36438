from __future__ import annotations

import sys
from pathlib import Path

import pytest

# Ensure local "src/" takes precedence over any globally-installed "stakepool" package.
ROOT = Path(__file__).resolve().parents[1]
SRC = ROOT / "src"

src_str = str(SRC)
if src_str not in sys.path:
    sys.path.insert(0, src_str)

from stakepool.runtime import metrics  # noqa: E402
from stakepool.runtime.pool import StakingPool  # noqa: E402
from stakepool.runtime.transfer import InMemoryCustody  # noqa: E402

START = 1000
DURATION = 1_000_000
END = START + DURATION
TOTAL_REWARDS = 10 * 10**18
UNIT = 10**18


class ManualClock:
    def __init__(self, now: int = 0) -> None:
        self.now = int(now)

    def __call__(self) -> int:
        return self.now

    def set(self, ts: int) -> None:
        self.now = int(ts)

    def advance(self, seconds: int) -> None:
        self.now += int(seconds)


@pytest.fixture(autouse=True)
def _reset_metrics():
    metrics.reset()
    yield
    metrics.reset()


@pytest.fixture
def clock() -> ManualClock:
    return ManualClock(START - 10)


@pytest.fixture
def custody() -> InMemoryCustody:
    c = InMemoryCustody(custody_account="POOL")
    c.mint("REWARD", "POOL", TOTAL_REWARDS)
    for who in ("alice", "bob", "carol", "other", "user"):
        c.mint("STAKE", who, 1_000 * UNIT)
    return c


@pytest.fixture
def pool(custody: InMemoryCustody, clock: ManualClock) -> StakingPool:
    return StakingPool.create(
        start=START,
        end=END,
        total_rewards=TOTAL_REWARDS,
        transfer=custody,
        clock=clock,
    )
