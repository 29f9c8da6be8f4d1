from .engine import ThrottleEngine, evaluate
from .events import CommandEvent, EventKey
from .policy import (
    BlockMode,
    RepeatShape,
    RepetitionState,
    Strategy,
    ThrottlePolicy,
    should_throttle,
)

__all__ = [
    "BlockMode",
    "CommandEvent",
    "EventKey",
    "RepeatShape",
    "RepetitionState",
    "Strategy",
    "ThrottleEngine",
    "ThrottlePolicy",
    "evaluate",
    "should_throttle",
]
