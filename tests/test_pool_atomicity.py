from __future__ import annotations

import pytest

from stakepool.runtime.errors import InsufficientStake, TransferFailure
from stakepool.runtime.pool import StakingPool
from stakepool.runtime.transfer import InMemoryCustody

UNIT = 10**18


class _BrokenTransfer:
    def __init__(self, inner: InMemoryCustody) -> None:
        self.inner = inner
        self.fail = False

    def pull(self, asset: str, account: str, amount: int) -> None:
        if self.fail:
            raise RuntimeError("ledger offline")
        self.inner.pull(asset, account, amount)

    def push(self, asset: str, account: str, amount: int) -> None:
        if self.fail:
            raise RuntimeError("ledger offline")
        self.inner.push(asset, account, amount)


def test_failed_pull_discards_advance_and_settlement(pool, custody, clock) -> None:
    p = pool.program
    clock.set(p.start)
    pool.stake("alice", UNIT)
    acc_before = pool.accumulator
    alice_before = pool.participant("alice")

    events = []
    pool.subscribe(events.append)

    clock.advance(1000)
    custody.mint("STAKE", "poor", 5)
    with pytest.raises(TransferFailure) as e:
        pool.stake("poor", 6)
    assert e.value.code == "transfer_failed"
    assert e.value.reason == "insufficient_balance"

    assert pool.accumulator == acc_before
    assert pool.total_staked == UNIT
    assert pool.participant("poor").staked_amount == 0
    assert pool.snapshot()["state"]["participant_count"] == 1
    assert pool.participant("alice") == alice_before
    assert custody.balance_of("STAKE", "poor") == 5
    assert events == []


def test_failed_reward_push_keeps_settled_reward_unclaimed(clock) -> None:
    custody = InMemoryCustody()
    custody.mint("STAKE", "alice", UNIT)
    # reward pool deliberately unfunded
    pool = StakingPool.create(start=1000, end=1_001_000, total_rewards=10 * UNIT, transfer=custody, clock=clock)

    clock.set(1000)
    pool.stake("alice", UNIT)
    clock.advance(100)
    with pytest.raises(TransferFailure):
        pool.claim_all("alice")

    rec = pool.participant("alice")
    assert rec.settled_reward == 0
    assert rec.claimed_total == 0
    assert pool.claimed_total == 0
    assert pool.claimable_reward("alice") == 100 * pool.program.rate_per_second


def test_collaborator_exceptions_surface_as_transfer_failure(custody, clock) -> None:
    broken = _BrokenTransfer(custody)
    pool = StakingPool.create(start=1000, end=1_001_000, total_rewards=10 * UNIT, transfer=broken, clock=clock)
    clock.set(1000)
    pool.stake("alice", UNIT)

    broken.fail = True
    clock.advance(10)
    with pytest.raises(TransferFailure) as e:
        pool.unstake("alice", UNIT)
    assert e.value.reason == "collaborator_error"
    assert isinstance(e.value.__cause__, RuntimeError)
    assert pool.staked_amount("alice") == UNIT

    broken.fail = False
    pool.unstake("alice", UNIT)
    assert pool.staked_amount("alice") == 0
    assert pool.claimable_reward("alice") == 10 * pool.program.rate_per_second


def test_rejected_unstake_leaves_ledger_untouched(pool, clock) -> None:
    clock.set(pool.program.start)
    pool.stake("alice", UNIT)
    acc_before = pool.accumulator
    clock.advance(300)
    with pytest.raises(InsufficientStake):
        pool.unstake("alice", 2 * UNIT)
    assert pool.accumulator == acc_before
    assert pool.participant("alice").settled_reward == 0
