from .config import ThrottleConfig, load_config
from .keyboard_adapter import KeyboardAdapter, TerminalSuspender, parse_key_sequence

__all__ = [
    "ThrottleConfig",
    "load_config",
    "KeyboardAdapter",
    "TerminalSuspender",
    "parse_key_sequence",
]
