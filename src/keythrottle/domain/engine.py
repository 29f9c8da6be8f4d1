import random
from dataclasses import dataclass, field
from typing import Callable

from keythrottle.domain.events import EventKey
from keythrottle.domain.policy import (
    RepetitionState,
    Strategy,
    ThrottlePolicy,
    should_throttle,
)
from keythrottle.domain.strategies import (
    RandomSource,
    constant_delay,
    random_delay,
    repeat_delay,
)

_Dispatch = Callable[[EventKey, float, ThrottlePolicy, RepetitionState, RandomSource], float]

_STRATEGY_MAP: dict[Strategy, _Dispatch] = {
    Strategy.REPEAT: lambda key, now, policy, state, _rng: repeat_delay(key, now, policy, state),
    Strategy.CONSTANT: lambda _key, _now, policy, _state, _rng: constant_delay(policy),
    Strategy.RANDOM: lambda _key, _now, policy, _state, rng: random_delay(policy, rng),
}


def evaluate(
    event_key: EventKey,
    now: float,
    policy: ThrottlePolicy,
    state: RepetitionState,
    rng: RandomSource,
) -> float:
    """Return the delay in seconds to inject after ``event_key`` ran at ``now``.

    Exempt keys return ``0.0`` without touching ``state``. Unknown strategies
    also return ``0.0``.
    """
    if not should_throttle(event_key, policy):
        return 0.0
    try:
        strategy = Strategy(policy.strategy)
    except ValueError:
        return 0.0
    return _STRATEGY_MAP[strategy](event_key, now, policy, state, rng)


@dataclass
class ThrottleEngine:
    policy: ThrottlePolicy = field(default_factory=ThrottlePolicy)
    state: RepetitionState = field(default_factory=RepetitionState)
    rng: RandomSource = field(default_factory=random.Random)

    def delay_for(self, event_key: EventKey, now: float) -> float:
        return evaluate(event_key, now, self.policy, self.state, self.rng)
