import logging
import random
import time
from typing import Callable

from keythrottle.application.ports import Suspender
from keythrottle.domain.engine import ThrottleEngine
from keythrottle.domain.events import CommandEvent
from keythrottle.domain.policy import RepeatShape, Strategy, ThrottlePolicy
from keythrottle.domain.strategies import RandomSource

LOG = logging.getLogger(__name__)


def _unknown_settings(policy: ThrottlePolicy) -> list[str]:
    unknown: list[str] = []
    if policy.strategy not in set(Strategy):
        unknown.append(f"strategy={policy.strategy!r}")
    elif policy.strategy == Strategy.REPEAT and policy.repeat_shape not in set(RepeatShape):
        unknown.append(f"repeat_shape={policy.repeat_shape!r}")
    return unknown


class ThrottleSession:
    def __init__(
        self,
        policy: ThrottlePolicy,
        suspender: Suspender,
        rng: RandomSource | None = None,
        clock: Callable[[], float] = time.monotonic,
        enabled: bool = True,
    ) -> None:
        self.engine = ThrottleEngine(policy=policy, rng=rng or random.Random())
        self.suspender = suspender
        self.clock = clock
        self.enabled = enabled
        self._warn_unknown(policy)

    @property
    def policy(self) -> ThrottlePolicy:
        return self.engine.policy

    def enable(self) -> None:
        self.engine.state.reset()
        self.enabled = True
        LOG.info("throttling enabled")

    def disable(self) -> None:
        self.engine.state.reset()
        self.enabled = False
        LOG.info("throttling disabled")

    def toggle(self) -> bool:
        if self.enabled:
            self.disable()
        else:
            self.enable()
        return self.enabled

    def reset(self) -> None:
        self.engine.state.reset()

    def reload(self, policy: ThrottlePolicy) -> None:
        # Repetition state survives a reload; only the toggle clears it.
        self.engine.policy = policy
        self._warn_unknown(policy)
        LOG.debug("policy reloaded strategy=%s", policy.strategy)

    def handle(self, event: CommandEvent) -> float:
        if not self.enabled:
            return 0.0
        now = event.timestamp if event.timestamp is not None else self.clock()
        delay = self.engine.delay_for(event.key, now)
        if delay > 0:
            LOG.debug(
                "throttling key=%s source=%s delay=%.3f count=%d",
                event.key,
                event.source,
                delay,
                self.engine.state.count,
            )
            self.suspender.suspend(delay)
        else:
            LOG.debug("passed key=%s source=%s", event.key, event.source)
        return delay

    def _warn_unknown(self, policy: ThrottlePolicy) -> None:
        for setting in _unknown_settings(policy):
            LOG.warning("unrecognized %s; throttling degrades to no delay", setting)
