import contextlib
import sys
import termios
import time
import tty
from dataclasses import dataclass
from typing import Iterator

from keythrottle.domain.events import CommandEvent

_ALIASES = {
    " ": "space",
    "\t": "tab",
    "\x1b": "escape",
    "\x7f": "backspace",
}
_QUIT_KEYS = {"q", "quit", "exit"}

# Final bytes of CSI (ESC [) and SS3 (ESC O) sequences sent by xterm-style terminals.
_CSI_FINALS = {
    "A": "up",
    "B": "down",
    "C": "right",
    "D": "left",
    "H": "home",
    "F": "end",
    "P": "f1",
    "Q": "f2",
    "R": "f3",
    "S": "f4",
}
_CSI_TILDE = {
    "1": "home",
    "2": "insert",
    "3": "delete",
    "4": "end",
    "5": "prior",
    "6": "next",
    "7": "home",
    "8": "end",
    "15": "f5",
    "17": "f6",
    "18": "f7",
    "19": "f8",
    "20": "f9",
    "21": "f10",
    "23": "f11",
    "24": "f12",
}
_CSI_MODIFIERS = {"2": "s-", "3": "m-", "4": "m-s-", "5": "c-", "6": "c-s-", "7": "c-m-"}


def _control_name(ch: str) -> str | None:
    code = ord(ch)
    if 1 <= code <= 26 and ch not in "\t\n\r":
        return f"c-{chr(code + 96)}"
    return None


def normalize_key(text: str) -> str:
    """Canonical key name for a single typed character or a named key.

    Single characters keep their case so ``j`` and ``J`` stay distinct; control
    bytes become ``c-<letter>``; named keys such as ``Down`` or ``C-n`` are
    stripped and lowercased.
    """
    if text in _ALIASES:
        return _ALIASES[text]
    if len(text) == 1:
        control = _control_name(text)
        if control is not None:
            return control
    key = text.strip()
    if len(key) <= 1:
        return key
    return key.lower()


def decode_escape_sequence(read) -> str:
    """Name the key whose escape sequence follows an already-read ESC byte.

    ``read`` returns one character per call. Unrecognised sequences are named
    ``escape`` so they still count as a single key press.
    """
    introducer = read()
    if introducer not in ("[", "O"):
        return "escape"
    params = ""
    while True:
        ch = read()
        if ch == "":
            return "escape"
        if "\x40" <= ch <= "\x7e":
            break
        params += ch
    if ch == "~":
        code, _, modifier = params.partition(";")
        name = _CSI_TILDE.get(code)
    else:
        _, _, modifier = params.partition(";")
        name = _CSI_FINALS.get(ch)
    if name is None:
        return "escape"
    return _CSI_MODIFIERS.get(modifier, "") + name


def parse_key_sequence(line: str, source: str = "keyboard") -> CommandEvent | None:
    key = normalize_key(line)
    if not key:
        return None
    return CommandEvent(key=key, source=source)


@dataclass
class KeyboardAdapter:
    source: str = "keyboard"

    def events(self) -> Iterator[CommandEvent]:
        if sys.stdin.isatty():
            yield from self._events_single_key_mode()
            return
        yield from self._events_line_mode()

    def _events_single_key_mode(self) -> Iterator[CommandEvent]:
        with _stdin_cbreak():
            while True:
                ch = sys.stdin.read(1)
                if ch == "":
                    return
                if ch == "q":
                    return
                if ch == "\x1b":
                    key = decode_escape_sequence(lambda: sys.stdin.read(1))
                    yield CommandEvent(key=key, source=self.source)
                    continue
                event = parse_key_sequence(ch, source=self.source)
                if event is not None:
                    yield event

    def _events_line_mode(self) -> Iterator[CommandEvent]:
        while True:
            try:
                line = input().strip()
            except EOFError:
                return
            if not line:
                continue
            if line.lower() in _QUIT_KEYS:
                return
            event = parse_key_sequence(line, source=self.source)
            if event is not None:
                yield event


class TerminalSuspender:
    """Block for the requested delay, then drop whatever was typed meanwhile."""

    def __init__(self, sleep=time.sleep) -> None:
        self._sleep = sleep

    def suspend(self, seconds: float) -> None:
        if seconds <= 0:
            return
        self._sleep(seconds)
        _discard_pending_input()


def _discard_pending_input() -> None:
    if not sys.stdin.isatty():
        return
    termios.tcflush(sys.stdin.fileno(), termios.TCIFLUSH)


@contextlib.contextmanager
def _stdin_cbreak():
    fd = sys.stdin.fileno()
    old = termios.tcgetattr(fd)
    try:
        tty.setcbreak(fd)
        yield
    finally:
        termios.tcsetattr(fd, termios.TCSADRAIN, old)
