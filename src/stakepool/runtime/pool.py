# src/stakepool/runtime/pool.py
from __future__ import annotations

"""Staking pool: the single coordinating owner of the reward ledger.

Every mutating operation follows the same fixed sequence:

  1. advance the global accumulator with the current total stake
  2. settle the caller against the stake they held until now
  3. apply the operation's own mutation
  4. call the value transfer collaborator
  5. commit

Steps 1-4 run against working copies of the accumulator and of the one
participant record involved, so a rejection or a failed transfer leaves
the committed ledger exactly as it was. Work per call is constant in the
number of participants.

All mutations are serialised by one lock per pool. Committed events are
queued under that lock and delivered to observers after it is released,
strictly in commit order. An observer may call back into the pool; the
events of such a nested operation are delivered after the remaining events
of the operation that triggered it.
"""

import logging
import threading
import time
from collections import deque
from dataclasses import dataclass
from typing import Any, Callable, Deque, Dict, List, Optional

from stakepool.ledger import accumulator as acc_ops
from stakepool.ledger.accumulator import AccumulatorState
from stakepool.ledger.constants import AMOUNT_BITS
from stakepool.ledger.fixed_point import checked_uint
from stakepool.ledger.participants import ParticipantState, pending, settle
from stakepool.ledger.program import Program
from stakepool.ledger.state import PoolState
from stakepool.runtime.errors import (
    InsufficientClaimable,
    InsufficientStake,
    InvalidAmount,
    PoolError,
    TransferFailure,
)
from stakepool.runtime.events import (
    EVENT_ACCUMULATOR_UPDATED,
    EVENT_CLAIMED,
    EVENT_PARTICIPANT_REWARD_UPDATED,
    EVENT_STAKED,
    EVENT_UNSTAKED,
    EventBuffer,
    Observer,
    PoolEvent,
)
from stakepool.runtime.metrics import inc_counter, set_gauge
from stakepool.runtime.pool_logging import log_event
from stakepool.runtime.transfer import ValueTransfer

Json = Dict[str, Any]
Clock = Callable[[], int]

log = logging.getLogger("stakepool.pool")


def wall_clock() -> int:
    return int(time.time())


def normalize_participant(v: Any) -> str:
    s = v.strip() if isinstance(v, str) else ""
    if not s:
        raise PoolError("invalid_participant", "participant_must_be_non_empty_string", {"type": type(v).__name__})
    return s


def _amount(v: Any) -> int:
    if isinstance(v, bool) or not isinstance(v, int):
        raise InvalidAmount("amount_not_integer", {"type": type(v).__name__})
    if v < 0:
        raise InvalidAmount("negative_amount", {"amount": int(v)})
    return checked_uint(v, bits=AMOUNT_BITS, field="amount")


@dataclass(slots=True)
class _Working:
    participant: str
    now: int
    accumulator: AccumulatorState
    record: ParticipantState
    total_staked: int
    claimed_total: int
    events: EventBuffer


class StakingPool:
    def __init__(
        self,
        *,
        program: Program,
        transfer: ValueTransfer,
        clock: Optional[Clock] = None,
        pool_id: str = "pool",
    ) -> None:
        self.program = program
        self.pool_id = str(pool_id)
        self._transfer = transfer
        self._clock: Clock = clock or wall_clock
        self._state = PoolState.initial(program)
        self._lock = threading.Lock()
        self._observers: List[Observer] = []
        self._pending: Deque[PoolEvent] = deque()
        self._dispatching = threading.Lock()

    @classmethod
    def create(
        cls,
        *,
        start: int,
        end: int,
        total_rewards: int,
        transfer: ValueTransfer,
        stake_asset: str = "STAKE",
        reward_asset: str = "REWARD",
        clock: Optional[Clock] = None,
        pool_id: str = "pool",
    ) -> "StakingPool":
        program = Program.create(
            start=start,
            end=end,
            total_rewards=total_rewards,
            stake_asset=stake_asset,
            reward_asset=reward_asset,
        )
        return cls(program=program, transfer=transfer, clock=clock, pool_id=pool_id)

    # ---- observers ----

    def subscribe(self, observer: Observer) -> Callable[[], None]:
        """Register `observer`; returns a callable that unregisters it."""
        with self._lock:
            self._observers.append(observer)

        def _unsubscribe() -> None:
            with self._lock:
                if observer in self._observers:
                    self._observers.remove(observer)

        return _unsubscribe

    def _deliver(self, ev: PoolEvent, observers: List[Observer]) -> None:
        for obs in observers:
            try:
                obs(ev)
            except Exception:
                # already committed
                log.exception("pool observer failed for event %s", ev.kind)

    def _dispatch(self) -> None:
        """Deliver queued events. Must be called without holding the pool lock.

        Only one caller drains at a time; a nested or concurrent caller
        returns immediately and the active drainer picks up its events.
        """
        while True:
            if not self._dispatching.acquire(blocking=False):
                return
            try:
                while True:
                    with self._lock:
                        if not self._pending:
                            break
                        ev = self._pending.popleft()
                        observers = list(self._observers)
                    self._deliver(ev, observers)
            finally:
                self._dispatching.release()
            with self._lock:
                if not self._pending:
                    return

    # ---- operation plumbing ----

    def _now(self) -> int:
        return int(self._clock())

    def _begin(self, participant: str) -> _Working:
        now = self._now()
        w = _Working(
            participant=participant,
            now=now,
            accumulator=self._state.accumulator.copy(),
            record=self._state.participants.get(participant).copy(),
            total_staked=self._state.total_staked,
            claimed_total=self._state.claimed_total,
            events=EventBuffer(),
        )

        if acc_ops.advance(self.program, w.accumulator, now, w.total_staked):
            w.events.emit(
                EVENT_ACCUMULATOR_UPDATED,
                accumulated_per_unit=w.accumulator.accumulated_per_unit,
                last_updated=w.accumulator.last_updated,
            )

        newly = settle(w.record, w.accumulator.accumulated_per_unit)
        if newly:
            w.events.emit(
                EVENT_PARTICIPANT_REWARD_UPDATED,
                participant=participant,
                accrued=newly,
                settled_reward=w.record.settled_reward,
                checkpoint=w.record.checkpoint,
            )
        return w

    def _call_transfer(self, direction: str, asset: str, account: str, amount: int) -> None:
        if amount == 0:
            return
        fn = self._transfer.pull if direction == "pull" else self._transfer.push
        try:
            fn(asset, account, amount)
        except PoolError:
            raise
        except Exception as e:
            raise TransferFailure(
                "collaborator_error",
                {"direction": direction, "asset": asset, "account": account, "amount": amount, "error": str(e)},
            ) from e

    def _commit(self, w: _Working) -> None:
        st = self._state
        st.accumulator = w.accumulator
        st.participants.put(w.participant, w.record)
        st.total_staked = w.total_staked
        st.claimed_total = w.claimed_total
        set_gauge("pool_total_staked", st.total_staked)

    def _rejected(self, op: str, participant: Any, amount: Any, err: PoolError) -> None:
        inc_counter("pool_rejected_total")
        log_event(
            log,
            "pool_op_rejected",
            pool_id=self.pool_id,
            op=op,
            participant=str(participant),
            amount=amount if isinstance(amount, int) else None,
            code=err.code,
            reason=err.reason,
        )

    def _finish(self, op: str, w: _Working, receipt: Json) -> Json:
        self._commit(w)
        inc_counter(f"pool_{op}_total")
        log_event(log, "pool_op", pool_id=self.pool_id, op=op, now=w.now, **receipt)
        self._pending.extend(w.events.drain())
        return receipt

    # ---- operations ----

    def stake(self, participant: str, amount: int) -> Json:
        with self._lock:
            try:
                p = normalize_participant(participant)
                amt = _amount(amount)
                w = self._begin(p)

                if amt > 0 and not w.accumulator.started:
                    acc_ops.restart_at(self.program, w.accumulator, w.now)

                w.total_staked = checked_uint(w.total_staked + amt, bits=AMOUNT_BITS, field="total_staked")
                w.record.staked_amount = checked_uint(
                    w.record.staked_amount + amt, bits=AMOUNT_BITS, field="staked_amount"
                )
                self._call_transfer("pull", self.program.stake_asset, p, amt)
            except PoolError as e:
                self._rejected("stake", participant, amount, e)
                raise

            w.events.emit(
                EVENT_STAKED,
                participant=p,
                amount=amt,
                staked_amount=w.record.staked_amount,
                total_staked=w.total_staked,
            )
            receipt = self._finish(
                "stake",
                w,
                {
                    "applied": "STAKE",
                    "participant": p,
                    "amount": amt,
                    "staked_amount": w.record.staked_amount,
                    "total_staked": w.total_staked,
                    "settled_reward": w.record.settled_reward,
                },
            )
        self._dispatch()
        return receipt

    def unstake(self, participant: str, amount: int) -> Json:
        with self._lock:
            try:
                p = normalize_participant(participant)
                amt = _amount(amount)
                w = self._begin(p)

                if amt > w.record.staked_amount:
                    raise InsufficientStake(
                        details={"requested": amt, "staked_amount": w.record.staked_amount}
                    )

                w.record.staked_amount -= amt
                w.total_staked -= amt
                self._call_transfer("push", self.program.stake_asset, p, amt)
            except PoolError as e:
                self._rejected("unstake", participant, amount, e)
                raise

            w.events.emit(
                EVENT_UNSTAKED,
                participant=p,
                amount=amt,
                staked_amount=w.record.staked_amount,
                total_staked=w.total_staked,
            )
            receipt = self._finish(
                "unstake",
                w,
                {
                    "applied": "UNSTAKE",
                    "participant": p,
                    "amount": amt,
                    "staked_amount": w.record.staked_amount,
                    "total_staked": w.total_staked,
                    "settled_reward": w.record.settled_reward,
                },
            )
        self._dispatch()
        return receipt

    def claim(self, participant: str, amount: Optional[int] = None) -> Json:
        """Pay out settled reward.

        `amount=None` claims everything settled after a fresh settlement.
        Claiming exactly the settled amount succeeds; more is rejected.
        """
        with self._lock:
            try:
                p = normalize_participant(participant)
                amt = None if amount is None else _amount(amount)
                w = self._begin(p)

                available = w.record.settled_reward
                if amt is None:
                    amt = available
                if amt > available:
                    raise InsufficientClaimable(details={"requested": amt, "available": available})

                w.record.settled_reward = available - amt
                w.record.claimed_total += amt
                w.claimed_total += amt
                self._call_transfer("push", self.program.reward_asset, p, amt)
            except PoolError as e:
                self._rejected("claim", participant, amount, e)
                raise

            w.events.emit(
                EVENT_CLAIMED,
                participant=p,
                amount=amt,
                settled_reward=w.record.settled_reward,
                claimed_total=w.record.claimed_total,
            )
            receipt = self._finish(
                "claim",
                w,
                {
                    "applied": "CLAIM",
                    "participant": p,
                    "amount": amt,
                    "settled_reward": w.record.settled_reward,
                    "claimed_total": w.record.claimed_total,
                },
            )
        self._dispatch()
        return receipt

    def claim_all(self, participant: str) -> Json:
        return self.claim(participant, None)

    def settle(self, participant: str) -> int:
        """Advance the accumulator and settle `participant`.

        Returns the participant's total claimable reward.
        """
        with self._lock:
            try:
                p = normalize_participant(participant)
                w = self._begin(p)
            except PoolError as e:
                self._rejected("settle", participant, None, e)
                raise
            self._finish(
                "settle",
                w,
                {"applied": "SETTLE", "participant": p, "settled_reward": w.record.settled_reward},
            )
            settled = w.record.settled_reward
        self._dispatch()
        return settled

    # ---- read-only views ----
    # Views take the same participant ids as the operations and normalize
    # them the same way.

    @property
    def total_staked(self) -> int:
        with self._lock:
            return self._state.total_staked

    @property
    def claimed_total(self) -> int:
        with self._lock:
            return self._state.claimed_total

    @property
    def accumulator(self) -> AccumulatorState:
        with self._lock:
            return self._state.accumulator.copy()

    def _claimable(self, participant: str) -> int:
        st = self._state
        acc = acc_ops.preview(self.program, st.accumulator, self._now(), st.total_staked)
        return pending(st.participants.get(participant), acc)

    def staked_amount(self, participant: str) -> int:
        p = normalize_participant(participant)
        with self._lock:
            return self._state.participants.get(p).staked_amount

    def participant(self, participant: str) -> ParticipantState:
        p = normalize_participant(participant)
        with self._lock:
            return self._state.participants.get(p).copy()

    def participant_status(self, participant: str) -> str:
        return self.participant(participant).status

    def claimable_reward(self, participant: str) -> int:
        """Claimable reward as of now, computed without touching the ledger."""
        p = normalize_participant(participant)
        with self._lock:
            return self._claimable(p)

    def participant_view(self, participant: str) -> Json:
        p = normalize_participant(participant)
        with self._lock:
            out = self._state.participants.get(p).to_json()
            out["participant"] = p
            out["claimable_reward"] = self._claimable(p)
            return out

    def snapshot(self) -> Json:
        with self._lock:
            return {
                "pool_id": self.pool_id,
                "now": self._now(),
                "program": self.program.to_json(),
                "state": self._state.to_json(),
            }
