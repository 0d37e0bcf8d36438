from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List

Json = Dict[str, Any]

EVENT_STAKED = "staked"
EVENT_UNSTAKED = "unstaked"
EVENT_CLAIMED = "claimed"
EVENT_ACCUMULATOR_UPDATED = "accumulator_updated"
EVENT_PARTICIPANT_REWARD_UPDATED = "participant_reward_updated"


@dataclass(frozen=True, slots=True)
class PoolEvent:
    kind: str
    fields: Json = field(default_factory=dict)

    def to_json(self) -> Json:
        out: Json = {"kind": self.kind}
        out.update(self.fields)
        return out


Observer = Callable[[PoolEvent], None]


class EventBuffer:
    """Events produced by one operation, held until the operation commits."""

    def __init__(self) -> None:
        self._events: List[PoolEvent] = []

    def emit(self, kind: str, **fields: Any) -> None:
        self._events.append(PoolEvent(kind=kind, fields=dict(fields)))

    def drain(self) -> List[PoolEvent]:
        out, self._events = self._events, []
        return out
