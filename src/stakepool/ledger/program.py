# src/stakepool/ledger/program.py
from __future__ import annotations

"""Reward program: the emission interval and its constant per-second rate.

A program is fixed at creation. The rate is derived as
total_rewards // (end - start), so emission can under-allocate by the
truncation remainder but never over-allocate.
"""

from dataclasses import dataclass
from typing import Any, Dict

from stakepool.ledger.constants import AMOUNT_BITS
from stakepool.ledger.fixed_point import checked_uint
from stakepool.runtime.errors import ArithmeticOverflow, InvalidConfiguration

Json = Dict[str, Any]


@dataclass(frozen=True, slots=True)
class Program:
    start: int
    end: int
    total_rewards: int
    rate_per_second: int
    stake_asset: str = "STAKE"
    reward_asset: str = "REWARD"

    @classmethod
    def create(
        cls,
        *,
        start: int,
        end: int,
        total_rewards: int,
        stake_asset: str = "STAKE",
        reward_asset: str = "REWARD",
    ) -> "Program":
        try:
            s = checked_uint(start, bits=64, field="start")
            e = checked_uint(end, bits=64, field="end")
            total = checked_uint(total_rewards, bits=AMOUNT_BITS, field="total_rewards")
        except ArithmeticOverflow as exc:
            raise InvalidConfiguration(exc.reason, exc.details) from exc

        if e <= s:
            raise InvalidConfiguration("end_not_after_start", {"start": s, "end": e})

        rate = total // (e - s)
        if rate <= 0:
            raise InvalidConfiguration(
                "rate_truncates_to_zero",
                {"total_rewards": total, "duration": e - s},
            )

        sa = str(stake_asset or "").strip()
        ra = str(reward_asset or "").strip()
        if not sa or not ra:
            raise InvalidConfiguration("missing_asset_id", {"stake_asset": sa, "reward_asset": ra})

        return cls(start=s, end=e, total_rewards=total, rate_per_second=rate, stake_asset=sa, reward_asset=ra)

    @property
    def duration(self) -> int:
        return self.end - self.start

    @property
    def emission_total(self) -> int:
        """Reward units actually emitted over the whole interval."""
        return self.rate_per_second * self.duration

    @property
    def undistributable(self) -> int:
        """Truncation remainder that no participant can ever earn."""
        return self.total_rewards - self.emission_total

    def clamp(self, ts: int) -> int:
        return min(max(int(ts), self.start), self.end)

    def rewardable_elapsed(self, now: int, last_checkpoint: int) -> int:
        """Seconds of emission between `last_checkpoint` and `now`.

        Nothing accrues before start, and nothing past end.
        """
        n = int(now)
        if n < self.start:
            return 0
        elapsed = min(n, self.end) - max(int(last_checkpoint), self.start)
        return max(elapsed, 0)

    def to_json(self) -> Json:
        return {
            "start": int(self.start),
            "end": int(self.end),
            "total_rewards": int(self.total_rewards),
            "rate_per_second": int(self.rate_per_second),
            "emission_total": int(self.emission_total),
            "undistributable": int(self.undistributable),
            "stake_asset": self.stake_asset,
            "reward_asset": self.reward_asset,
        }
