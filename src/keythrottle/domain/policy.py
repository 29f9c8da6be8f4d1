from dataclasses import dataclass, field
from enum import Enum

from keythrottle.domain.events import EventKey


class BlockMode(str, Enum):
    WHITELIST = "whitelist"
    BLACKLIST = "blacklist"


class Strategy(str, Enum):
    REPEAT = "repeat"
    CONSTANT = "constant"
    RANDOM = "random"


class RepeatShape(str, Enum):
    CONSTANT = "constant"
    LINEAR = "linear"
    QUADRATIC = "quadratic"


@dataclass(frozen=True)
class ThrottlePolicy:
    """Read-only throttling configuration.

    ``strategy`` and ``repeat_shape`` may carry a raw string when the configured
    value is not one of the known members; such values evaluate to a zero delay.
    """

    block_mode: BlockMode = BlockMode.WHITELIST
    block_list: frozenset = field(default_factory=frozenset)
    strategy: Strategy | str = Strategy.REPEAT
    repeat_delay: float = 0.05
    repeat_window: float = 0.1
    allowed_repetitions: int = 1
    repeat_shape: RepeatShape | str = RepeatShape.LINEAR
    constant_delay: float = 0.05
    random_delay: float = 0.05
    random_probability: float = 0.1
    random_amplification: int = 5


@dataclass
class RepetitionState:
    last_key: EventKey | None = None
    count: int = 0
    last_time: float = 0.0

    def reset(self) -> None:
        self.last_key = None
        self.count = 0
        self.last_time = 0.0


def should_throttle(event_key: EventKey, policy: ThrottlePolicy) -> bool:
    if policy.block_mode == BlockMode.WHITELIST:
        return event_key not in policy.block_list
    if policy.block_mode == BlockMode.BLACKLIST:
        return event_key in policy.block_list
    return False
