import pytest

from keythrottle.domain.policy import RepeatShape, RepetitionState, ThrottlePolicy
from keythrottle.domain.strategies import repeat_delay


def _policy(shape, allowed=1, delay=0.05, window=0.1) -> ThrottlePolicy:
    return ThrottlePolicy(
        repeat_shape=shape,
        allowed_repetitions=allowed,
        repeat_delay=delay,
        repeat_window=window,
    )


def _run(policy: ThrottlePolicy, times, key="j") -> list[float]:
    state = RepetitionState()
    return [repeat_delay(key, t, policy, state) for t in times]


def test_constant_shape_applies_flat_delay_after_allowed_repetitions() -> None:
    delays = _run(_policy(RepeatShape.CONSTANT), [1.00, 1.01, 1.02])
    assert delays == pytest.approx([0.0, 0.05, 0.05])


def test_linear_shape_grows_with_excess() -> None:
    delays = _run(_policy(RepeatShape.LINEAR), [1.00, 1.01, 1.02, 1.03])
    assert delays == pytest.approx([0.0, 0.0, 0.05, 0.10])


def test_quadratic_shape_grows_with_square_of_excess() -> None:
    delays = _run(_policy(RepeatShape.QUADRATIC), [1.00, 1.01, 1.02, 1.03])
    assert delays == pytest.approx([0.0, 0.0, 0.05, 0.2])


def test_unknown_shape_yields_zero_but_still_counts() -> None:
    state = RepetitionState()
    policy = _policy("exponential")
    delays = [repeat_delay("j", t, policy, state) for t in (1.00, 1.01, 1.02)]
    assert delays == [0.0, 0.0, 0.0]
    assert state.count == 2


def test_gap_beyond_window_resets_streak() -> None:
    policy = _policy(RepeatShape.CONSTANT)
    state = RepetitionState()
    assert repeat_delay("j", 1.00, policy, state) == 0.0
    assert repeat_delay("j", 1.01, policy, state) == pytest.approx(0.05)
    assert repeat_delay("j", 1.50, policy, state) == 0.0
    assert state.count == 0
    assert state.last_time == 1.50


def test_key_change_resets_streak() -> None:
    policy = _policy(RepeatShape.CONSTANT)
    state = RepetitionState()
    repeat_delay("j", 1.00, policy, state)
    repeat_delay("j", 1.01, policy, state)
    assert repeat_delay("k", 1.02, policy, state) == 0.0
    assert state.count == 0
    assert state.last_key == "k"


def test_bookkeeping_updates_even_without_delay() -> None:
    state = RepetitionState()
    repeat_delay("j", 3.0, _policy(RepeatShape.LINEAR, allowed=5), state)
    assert state.last_key == "j"
    assert state.last_time == 3.0
    assert state.count == 0


def test_zero_allowed_repetitions_delays_first_press_after_other_key() -> None:
    policy = _policy(RepeatShape.CONSTANT, allowed=0)
    state = RepetitionState()
    assert repeat_delay("j", 1.00, policy, state) == 0.0
    # Fresh streak for "k" still counts as a repetition when it is within the window.
    assert repeat_delay("k", 1.01, policy, state) == pytest.approx(0.05)


def test_gap_equal_to_window_counts_but_does_not_delay() -> None:
    policy = _policy(RepeatShape.CONSTANT, window=0.5)
    state = RepetitionState()
    repeat_delay("j", 1.0, policy, state)
    assert repeat_delay("j", 1.5, policy, state) == 0.0
    assert state.count == 1


def test_linear_never_returns_negative_delay() -> None:
    policy = _policy(RepeatShape.LINEAR, allowed=3)
    delays = _run(policy, [1.00, 1.01, 1.02])
    assert all(d >= 0 for d in delays)
