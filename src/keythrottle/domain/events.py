from dataclasses import dataclass
from typing import Hashable

EventKey = Hashable


@dataclass(frozen=True)
class CommandEvent:
    key: EventKey
    source: str
    timestamp: float | None = None
