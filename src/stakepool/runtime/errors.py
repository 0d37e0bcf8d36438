from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict

Json = Dict[str, Any]


@dataclass
class PoolError(Exception):
    """Canonical error type for rejected pool operations."""

    code: str
    reason: str
    details: Json = field(default_factory=dict)

    def __str__(self) -> str:
        if not self.details:
            return f"{self.code}:{self.reason}"
        return f"{self.code}:{self.reason}:{self.details}"

    def to_json(self) -> Json:
        return {"code": self.code, "reason": self.reason, "details": dict(self.details or {})}


class InvalidConfiguration(PoolError):
    def __init__(self, reason: str, details: Json | None = None) -> None:
        super().__init__("invalid_configuration", reason, details or {})


class InvalidAmount(PoolError):
    def __init__(self, reason: str, details: Json | None = None) -> None:
        super().__init__("invalid_amount", reason, details or {})


class InsufficientStake(PoolError):
    def __init__(self, reason: str = "insufficient_staked_balance", details: Json | None = None) -> None:
        super().__init__("insufficient_stake", reason, details or {})


class InsufficientClaimable(PoolError):
    def __init__(self, reason: str = "insufficient_claimable_reward", details: Json | None = None) -> None:
        super().__init__("insufficient_claimable", reason, details or {})


class TransferFailure(PoolError):
    def __init__(self, reason: str, details: Json | None = None) -> None:
        super().__init__("transfer_failed", reason, details or {})


class ArithmeticOverflow(PoolError):
    def __init__(self, reason: str, details: Json | None = None) -> None:
        super().__init__("arithmetic_overflow", reason, details or {})
