from __future__ import annotations

import pytest

from stakepool.ledger.program import Program
from stakepool.runtime.errors import InvalidConfiguration


def _program() -> Program:
    return Program.create(start=1000, end=1_001_000, total_rewards=10 * 10**18)


def test_rate_is_truncated_total_over_duration() -> None:
    p = _program()
    assert p.rate_per_second == 10**13
    assert p.emission_total == p.total_rewards
    assert p.undistributable == 0


def test_truncation_never_over_allocates() -> None:
    p = Program.create(start=0, end=7, total_rewards=100)
    assert p.rate_per_second == 14
    assert p.emission_total == 98
    assert p.undistributable == 2
    assert p.rate_per_second * p.duration <= p.total_rewards


@pytest.mark.parametrize(
    "start,end,total,reason",
    [
        (10, 10, 100, "end_not_after_start"),
        (10, 5, 100, "end_not_after_start"),
        (0, 1000, 999, "rate_truncates_to_zero"),
        (-1, 10, 100, "negative_value"),
    ],
)
def test_invalid_configuration_is_rejected(start: int, end: int, total: int, reason: str) -> None:
    with pytest.raises(InvalidConfiguration) as e:
        Program.create(start=start, end=end, total_rewards=total)
    assert e.value.code == "invalid_configuration"
    assert e.value.reason == reason


def test_rewardable_elapsed_is_clamped_to_the_interval() -> None:
    p = _program()
    # before start
    assert p.rewardable_elapsed(999, 0) == 0
    # checkpoint before start counts from start
    assert p.rewardable_elapsed(1100, 0) == 100
    assert p.rewardable_elapsed(1100, 1050) == 50
    # never beyond end
    assert p.rewardable_elapsed(p.end, p.start) == p.duration
    assert p.rewardable_elapsed(p.end + 500, p.start) == p.duration
    # clock behind the checkpoint yields nothing
    assert p.rewardable_elapsed(1100, 1200) == 0

