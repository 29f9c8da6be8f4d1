from typing import Iterator, Protocol

from keythrottle.domain.events import CommandEvent


class Suspender(Protocol):
    def suspend(self, seconds: float) -> None:
        ...


class InputAdapter(Protocol):
    def events(self) -> Iterator[CommandEvent]:
        ...


class NullSuspender:
    """Suspender that only remembers what it was asked to do."""

    def __init__(self) -> None:
        self.requested: list[float] = []

    def suspend(self, seconds: float) -> None:
        self.requested.append(seconds)
