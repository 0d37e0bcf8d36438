from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict

from stakepool.ledger.accumulator import AccumulatorState
from stakepool.ledger.participants import ParticipantLedger
from stakepool.ledger.program import Program

Json = Dict[str, Any]


@dataclass(slots=True)
class PoolState:
    """Mutable pool-wide ledger: accumulator, total stake, participants.

    Owned by a single StakingPool and only mutated through its operations.
    """

    accumulator: AccumulatorState
    total_staked: int = 0
    participants: ParticipantLedger = field(default_factory=ParticipantLedger)
    claimed_total: int = 0

    @classmethod
    def initial(cls, program: Program) -> "PoolState":
        return cls(accumulator=AccumulatorState.initial(program))

    def to_json(self) -> Json:
        return {
            "accumulator": self.accumulator.to_json(),
            "total_staked": int(self.total_staked),
            "claimed_total": int(self.claimed_total),
            "participant_count": len(self.participants),
        }
