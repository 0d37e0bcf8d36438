from __future__ import annotations

import logging

UNIT = 10**18


def test_events_follow_advance_settle_mutate_order(pool, clock) -> None:
    events = []
    pool.subscribe(events.append)

    clock.set(pool.program.start)
    pool.stake("alice", UNIT)
    assert [e.kind for e in events] == ["staked"]

    events.clear()
    clock.advance(10)
    pool.stake("alice", UNIT)
    assert [e.kind for e in events] == ["accumulator_updated", "participant_reward_updated", "staked"]

    acc_ev, reward_ev, staked_ev = events
    assert acc_ev.fields["accumulated_per_unit"] == pool.accumulator.accumulated_per_unit
    assert reward_ev.fields["participant"] == "alice"
    assert reward_ev.fields["accrued"] == 10 * pool.program.rate_per_second
    assert staked_ev.fields["staked_amount"] == 2 * UNIT
    assert staked_ev.fields["total_staked"] == 2 * UNIT


def test_claim_and_unstake_events_carry_post_state(pool, clock) -> None:
    clock.set(pool.program.start)
    pool.stake("alice", UNIT)
    clock.advance(5)

    events = []
    pool.subscribe(events.append)
    pool.claim_all("alice")
    pool.unstake("alice", UNIT)

    claimed = [e for e in events if e.kind == "claimed"][0]
    assert claimed.fields["amount"] == 5 * pool.program.rate_per_second
    assert claimed.fields["settled_reward"] == 0
    unstaked = [e for e in events if e.kind == "unstaked"][0]
    assert unstaked.to_json() == {
        "kind": "unstaked",
        "participant": "alice",
        "amount": UNIT,
        "staked_amount": 0,
        "total_staked": 0,
    }


def test_unsubscribe_stops_delivery(pool, clock) -> None:
    events = []
    unsubscribe = pool.subscribe(events.append)
    clock.set(pool.program.start)
    pool.stake("alice", 1)
    unsubscribe()
    pool.stake("alice", 1)
    assert len(events) == 1


def test_failing_observer_does_not_undo_commit(pool, clock, caplog) -> None:
    def boom(_ev) -> None:
        raise ValueError("observer broke")

    pool.subscribe(boom)
    clock.set(pool.program.start)
    with caplog.at_level(logging.ERROR, logger="stakepool.pool"):
        pool.stake("alice", UNIT)
    assert pool.staked_amount("alice") == UNIT
    assert any("observer failed" in r.getMessage() for r in caplog.records)


def test_committed_operations_are_logged(pool, clock, caplog) -> None:
    clock.set(pool.program.start)
    with caplog.at_level(logging.INFO, logger="stakepool.pool"):
        pool.stake("alice", UNIT)
    msgs = [r.getMessage() for r in caplog.records]
    assert any('"event":"pool_op"' in m and '"op":"stake"' in m for m in msgs)


def test_reentrant_observer_sees_events_in_commit_order(pool, clock) -> None:
    clock.set(pool.program.start)
    pool.stake("alice", UNIT)
    clock.advance(10)

    seen = []
    pool.subscribe(lambda ev: seen.append((ev.kind, ev.fields.get("participant"))))

    def stake_bob_once(ev) -> None:
        if ev.kind == "accumulator_updated" and pool.staked_amount("bob") == 0:
            pool.stake("bob", 1)

    pool.subscribe(stake_bob_once)
    pool.stake("alice", UNIT)

    assert seen == [
        ("accumulator_updated", None),
        ("participant_reward_updated", "alice"),
        ("staked", "alice"),
        ("staked", "bob"),
    ]
    assert pool.staked_amount("bob") == 1
