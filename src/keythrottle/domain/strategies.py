import math
from typing import Protocol

from keythrottle.domain.events import EventKey
from keythrottle.domain.policy import RepeatShape, RepetitionState, ThrottlePolicy

_MIN_PROBABILITY = 0.01
_MAX_PROBABILITY = 1.0


class RandomSource(Protocol):
    def randrange(self, stop: int) -> int:
        ...

    def randint(self, a: int, b: int) -> int:
        ...


def _shaped_delay(shape: RepeatShape | str, excess: int, base: float) -> float:
    if shape == RepeatShape.CONSTANT:
        return base
    if shape == RepeatShape.LINEAR:
        return excess * base
    if shape == RepeatShape.QUADRATIC:
        return excess * excess * base
    return 0.0


def repeat_delay(
    event_key: EventKey,
    now: float,
    policy: ThrottlePolicy,
    state: RepetitionState,
) -> float:
    window = now - state.last_time
    if event_key != state.last_key or window > policy.repeat_window:
        state.count = 0
    else:
        state.count += 1

    # The streak counter is settled before the threshold check, so a call that
    # breaks a streak is judged on the fresh count.
    excess = state.count - policy.allowed_repetitions
    candidate = _shaped_delay(policy.repeat_shape, excess, policy.repeat_delay)
    applies = state.count >= policy.allowed_repetitions and window < policy.repeat_window

    state.last_key = event_key
    state.last_time = now
    return candidate if applies else 0.0


def constant_delay(policy: ThrottlePolicy) -> float:
    return policy.constant_delay


def clamp_probability(value: float) -> float:
    if math.isnan(value):
        return _MIN_PROBABILITY
    return max(_MIN_PROBABILITY, min(_MAX_PROBABILITY, float(value)))


def random_delay(policy: ThrottlePolicy, rng: RandomSource) -> float:
    """Fire roughly ``random_probability`` of the time.

    The trial draws from ``floor(1 / p)`` equally likely outcomes and fires on
    zero, which only approximates a Bernoulli trial for ``p`` values whose
    inverse is not integral.
    """
    probability = clamp_probability(policy.random_probability)
    outcomes = int(math.floor(1.0 / probability))
    if rng.randrange(outcomes) != 0:
        return 0.0
    amplification = max(0, int(policy.random_amplification))
    return rng.randint(0, amplification) * policy.random_delay
