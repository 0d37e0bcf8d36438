# src/stakepool/ledger/accumulator.py
from __future__ import annotations

"""Global reward-per-unit accumulator.

accumulated_per_unit is the running integral of rate / total_staked,
scaled by PRECISION. It is advanced lazily by every mutating call and
never decreases.

Zero-stake policy: while total_staked == 0 the accumulator does not move
and last_updated is left where it was, so the emission of that gap is
credited to the next staker. The accumulator clock only starts with the
first stake of the program (see `restart_at`), which means emission
between start and that first stake is forfeited. A gap still open when
the program ends is forfeited too: last_updated jumps to end, so a
staker arriving after end earns nothing.
"""

from dataclasses import dataclass
from typing import Any, Dict

from stakepool.ledger.constants import ACCUMULATOR_BITS, PRECISION
from stakepool.ledger.fixed_point import checked_uint, mul_div
from stakepool.ledger.program import Program

Json = Dict[str, Any]


@dataclass(slots=True)
class AccumulatorState:
    accumulated_per_unit: int = 0
    last_updated: int = 0
    started: bool = False

    @classmethod
    def initial(cls, program: Program) -> "AccumulatorState":
        return cls(accumulated_per_unit=0, last_updated=program.start, started=False)

    def copy(self) -> "AccumulatorState":
        return AccumulatorState(
            accumulated_per_unit=self.accumulated_per_unit,
            last_updated=self.last_updated,
            started=self.started,
        )

    def to_json(self) -> Json:
        return {
            "accumulated_per_unit": int(self.accumulated_per_unit),
            "last_updated": int(self.last_updated),
            "started": bool(self.started),
        }


def _increment(program: Program, elapsed: int, total_staked: int) -> int:
    return mul_div(PRECISION * int(elapsed), program.rate_per_second, int(total_staked))


def preview(program: Program, state: AccumulatorState, now: int, total_staked: int) -> int:
    """Value `advance` would produce at `now`, without mutating `state`."""
    if int(total_staked) <= 0 or not state.started:
        return state.accumulated_per_unit
    elapsed = program.rewardable_elapsed(now, state.last_updated)
    if elapsed <= 0:
        return state.accumulated_per_unit
    return state.accumulated_per_unit + _increment(program, elapsed, total_staked)


def advance(program: Program, state: AccumulatorState, now: int, total_staked: int) -> bool:
    """Bring the accumulator up to `now`. Returns True if it moved."""
    if not state.started:
        return False
    n = int(now)
    if n < program.start:
        return False

    clamped_end = min(n, program.end)
    elapsed = clamped_end - state.last_updated
    if elapsed <= 0:
        return False

    if int(total_staked) <= 0:
        if n >= program.end:
            state.last_updated = program.end
        return False

    acc = state.accumulated_per_unit + _increment(program, elapsed, total_staked)
    state.accumulated_per_unit = checked_uint(acc, bits=ACCUMULATOR_BITS, field="accumulated_per_unit")
    state.last_updated = clamped_end
    return True


def restart_at(program: Program, state: AccumulatorState, now: int) -> None:
    """Start the accumulator clock at the program's first stake.

    Called once, before the first stake is applied; emission between
    program.start and this point is never credited to anyone.
    """
    if state.started:
        return
    state.last_updated = program.clamp(now)
    state.started = True
