# src/stakepool/ledger/participants.py
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict

from stakepool.ledger.constants import AMOUNT_BITS, STATUS_STAKED, STATUS_UNSTAKED
from stakepool.ledger.fixed_point import checked_uint, scale_down

Json = Dict[str, Any]


@dataclass(slots=True)
class ParticipantState:
    staked_amount: int = 0
    settled_reward: int = 0
    checkpoint: int = 0
    claimed_total: int = 0

    @property
    def status(self) -> str:
        return STATUS_STAKED if self.staked_amount > 0 else STATUS_UNSTAKED

    def copy(self) -> "ParticipantState":
        return ParticipantState(
            staked_amount=self.staked_amount,
            settled_reward=self.settled_reward,
            checkpoint=self.checkpoint,
            claimed_total=self.claimed_total,
        )

    def to_json(self) -> Json:
        return {
            "staked_amount": int(self.staked_amount),
            "settled_reward": int(self.settled_reward),
            "checkpoint": int(self.checkpoint),
            "claimed_total": int(self.claimed_total),
            "status": self.status,
        }


def pending(record: ParticipantState, accumulated_per_unit: int) -> int:
    """Claimable total at `accumulated_per_unit`, without mutating `record`."""
    delta = int(accumulated_per_unit) - record.checkpoint
    if delta <= 0:
        return record.settled_reward
    return record.settled_reward + scale_down(record.staked_amount, delta)


def settle(record: ParticipantState, accumulated_per_unit: int) -> int:
    """Credit reward accrued since the record's checkpoint.

    Must run before staked_amount changes: the accrual is computed against
    the stake held during the elapsed period. Returns the newly accrued
    amount; record.settled_reward carries the total.
    """
    delta = int(accumulated_per_unit) - record.checkpoint
    newly = scale_down(record.staked_amount, delta) if delta > 0 else 0
    if newly:
        record.settled_reward = checked_uint(
            record.settled_reward + newly, bits=AMOUNT_BITS, field="settled_reward"
        )
    record.checkpoint = int(accumulated_per_unit)
    return newly


class ParticipantLedger:
    """Keyed store of participant records.

    Unseen participants read as fresh zero records; only `put` inserts.
    """

    def __init__(self, records: Dict[str, ParticipantState] | None = None) -> None:
        self._records: Dict[str, ParticipantState] = dict(records or {})

    def __len__(self) -> int:
        return len(self._records)

    def get(self, participant: str) -> ParticipantState:
        rec = self._records.get(participant)
        return rec if rec is not None else ParticipantState()

    def put(self, participant: str, record: ParticipantState) -> None:
        self._records[participant] = record
