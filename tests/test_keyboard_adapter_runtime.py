import contextlib

from keythrottle.infrastructure import keyboard_adapter


def test_keyboard_events_line_mode(monkeypatch) -> None:
    class FakeStdin:
        def isatty(self):
            return False

    values = iter(["", "j", "Down", "q"])
    monkeypatch.setattr(keyboard_adapter.sys, "stdin", FakeStdin())
    monkeypatch.setattr("builtins.input", lambda: next(values))
    adapter = keyboard_adapter.KeyboardAdapter()
    events = list(adapter.events())
    assert [e.key for e in events] == ["j", "down"]


def test_keyboard_events_line_mode_stops_on_eof(monkeypatch) -> None:
    class FakeStdin:
        def isatty(self):
            return False

    def _eof():
        raise EOFError

    monkeypatch.setattr(keyboard_adapter.sys, "stdin", FakeStdin())
    monkeypatch.setattr("builtins.input", _eof)
    assert list(keyboard_adapter.KeyboardAdapter().events()) == []


def test_keyboard_events_single_key_mode(monkeypatch) -> None:
    class FakeStdin:
        def __init__(self):
            self.keys = iter(["\n", "j", " ", "J", "q", "k"])

        def isatty(self):
            return True

        def read(self, _n):
            return next(self.keys)

    monkeypatch.setattr(keyboard_adapter.sys, "stdin", FakeStdin())
    monkeypatch.setattr(keyboard_adapter, "_stdin_cbreak", contextlib.nullcontext)
    adapter = keyboard_adapter.KeyboardAdapter()
    events = list(adapter.events())
    assert [e.key for e in events] == ["j", "space", "J"]


def test_terminal_suspender_sleeps_then_flushes_tty(monkeypatch) -> None:
    calls = []

    class FakeStdin:
        def isatty(self):
            return True

        def fileno(self):
            return 5

    monkeypatch.setattr(keyboard_adapter.sys, "stdin", FakeStdin())
    monkeypatch.setattr(
        keyboard_adapter.termios,
        "tcflush",
        lambda fd, queue: calls.append(("flush", fd, queue)),
    )
    suspender = keyboard_adapter.TerminalSuspender(sleep=lambda s: calls.append(("sleep", s)))
    suspender.suspend(0.25)
    assert calls == [("sleep", 0.25), ("flush", 5, keyboard_adapter.termios.TCIFLUSH)]


def test_terminal_suspender_skips_flush_without_tty(monkeypatch) -> None:
    calls = []

    class FakeStdin:
        def isatty(self):
            return False

    monkeypatch.setattr(keyboard_adapter.sys, "stdin", FakeStdin())
    monkeypatch.setattr(
        keyboard_adapter.termios, "tcflush", lambda fd, queue: calls.append("flush")
    )
    suspender = keyboard_adapter.TerminalSuspender(sleep=lambda s: calls.append(s))
    suspender.suspend(0.1)
    suspender.suspend(0.0)
    assert calls == [0.1]


def test_stdin_cbreak_context_calls_termios_and_tty(monkeypatch) -> None:
    called = {"tcgetattr": 0, "setcbreak": 0, "tcsetattr": 0}

    class FakeStdin:
        def fileno(self):
            return 7

    monkeypatch.setattr(keyboard_adapter.sys, "stdin", FakeStdin())
    monkeypatch.setattr(
        keyboard_adapter.termios,
        "tcgetattr",
        lambda fd: called.__setitem__("tcgetattr", fd) or ["old"],
    )
    monkeypatch.setattr(
        keyboard_adapter.tty, "setcbreak", lambda fd: called.__setitem__("setcbreak", fd)
    )
    monkeypatch.setattr(
        keyboard_adapter.termios,
        "tcsetattr",
        lambda fd, when, old: called.__setitem__("tcsetattr", (fd, when, old)),
    )

    with keyboard_adapter._stdin_cbreak():
        pass

    assert called["tcgetattr"] == 7
    assert called["setcbreak"] == 7
    assert called["tcsetattr"][0] == 7


def test_keyboard_single_key_mode_decodes_arrow_sequences(monkeypatch) -> None:
    class FakeStdin:
        def __init__(self):
            self.chars = iter("\x1b[B" * 4 + "\x0e" + "j" + "q")

        def isatty(self):
            return True

        def read(self, _n):
            return next(self.chars, "")

    monkeypatch.setattr(keyboard_adapter.sys, "stdin", FakeStdin())
    monkeypatch.setattr(keyboard_adapter, "_stdin_cbreak", contextlib.nullcontext)
    events = list(keyboard_adapter.KeyboardAdapter().events())
    assert [e.key for e in events] == ["down"] * 4 + ["c-n", "j"]
