# src/stakepool/ledger/constants.py
from __future__ import annotations

"""Accounting constants.

- Accumulator precision: 1e18 (reward-per-unit values are scaled by this)
- Amounts (stake, rewards) fit in 128 bits
- Accumulator fits in 256 bits
- Time unit: whole seconds
"""

PRECISION_DECIMALS: int = 18
PRECISION: int = 10**PRECISION_DECIMALS

AMOUNT_BITS: int = 128
ACCUMULATOR_BITS: int = 256

MAX_AMOUNT: int = (1 << AMOUNT_BITS) - 1

# Participant lifecycle labels
STATUS_UNSTAKED: str = "unstaked"
STATUS_STAKED: str = "staked"
