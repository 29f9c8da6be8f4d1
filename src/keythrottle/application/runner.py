import logging
import random
from typing import Iterable

from keythrottle.application.ports import NullSuspender, Suspender
from keythrottle.application.session import ThrottleSession
from keythrottle.domain.events import CommandEvent
from keythrottle.infrastructure.config import ThrottleConfig
from keythrottle.infrastructure.keyboard_adapter import KeyboardAdapter, TerminalSuspender

LOG = logging.getLogger(__name__)


class ThrottleRunner:
    def __init__(self, cfg: ThrottleConfig, suspender: Suspender | None = None) -> None:
        self.cfg = cfg
        self.session = ThrottleSession(
            policy=cfg.policy(),
            suspender=suspender or TerminalSuspender(),
            rng=random.Random(cfg.seed),
            enabled=cfg.enabled,
        )

    def run_keyboard(self) -> int:
        LOG.info(
            "keyboard input started strategy=%s enabled=%s (q quits)",
            getattr(self.cfg.strategy, "value", self.cfg.strategy),
            self.session.enabled,
        )
        adapter = KeyboardAdapter()
        throttled = 0
        for event in adapter.events():
            delay = self.session.handle(event)
            if delay > 0:
                throttled += 1
        LOG.info("keyboard input stopped throttled=%d", throttled)
        return throttled

    def simulate(self, events: Iterable[CommandEvent]) -> list[tuple[CommandEvent, float]]:
        # Timestamps come from the events; nothing actually sleeps.
        session = ThrottleSession(
            policy=self.session.policy,
            suspender=NullSuspender(),
            rng=random.Random(self.cfg.seed),
            enabled=self.session.enabled,
        )
        return [(event, session.handle(event)) for event in events]
