import argparse
import dataclasses
import json
import logging
import os
import sys

from keythrottle.application.ports import NullSuspender
from keythrottle.application.runner import ThrottleRunner
from keythrottle.domain.events import CommandEvent
from keythrottle.domain.policy import Strategy
from keythrottle.infrastructure.config import ThrottleConfig, load_config
from keythrottle.infrastructure.keyboard_adapter import normalize_key

LOG = logging.getLogger(__name__)


def _parse_timed_event(text: str) -> CommandEvent:
    key, sep, ts = text.rpartition("@")
    if not sep or not key:
        raise ValueError(f"Invalid event {text!r}; expected KEY@SECONDS")
    try:
        timestamp = float(ts)
    except ValueError as exc:
        raise ValueError(f"Invalid timestamp in event {text!r}") from exc
    return CommandEvent(key=normalize_key(key), source="simulate", timestamp=timestamp)


def _enum_value(value):
    return getattr(value, "value", value)


def _config_as_dict(cfg: ThrottleConfig) -> dict:
    data = dataclasses.asdict(cfg)
    data["strategy"] = _enum_value(cfg.strategy)
    data["gate"]["mode"] = _enum_value(cfg.gate.mode)
    data["gate"]["keys"] = list(cfg.gate.keys)
    data["repeat"]["shape"] = _enum_value(cfg.repeat.shape)
    return data


def _apply_overrides(cfg: ThrottleConfig, args) -> ThrottleConfig:
    strategy = getattr(args, "strategy", None)
    seed = getattr(args, "seed", None)
    disabled = getattr(args, "disabled", False)
    return dataclasses.replace(
        cfg,
        strategy=Strategy(strategy) if strategy is not None else cfg.strategy,
        seed=seed if seed is not None else cfg.seed,
        enabled=False if disabled else cfg.enabled,
    )


def _render_simulation_lines(results: list[tuple[CommandEvent, float]]) -> list[str]:
    return [f"{event.key} {event.timestamp:.3f} {delay:.3f}" for event, delay in results]


def _configure_logging(level: str) -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s %(message)s",
        force=True,
    )


def main() -> None:
    p = argparse.ArgumentParser(
        prog="keythrottle", description="Delay repeated commands to break keyboard habits"
    )
    p.add_argument(
        "--log-level",
        type=str,
        default=None,
        help="Override log level (e.g. DEBUG, INFO, WARNING).",
    )
    p.add_argument("--config", type=str, default=None)

    sub = p.add_subparsers(dest="cmd", required=True)

    run = sub.add_parser("run")
    run.add_argument("--dry-run", action="store_true", help="Compute delays without sleeping")
    run.add_argument("--disabled", action="store_true", help="Start with throttling off")
    run.add_argument("--strategy", choices=[s.value for s in Strategy], default=None)

    simulate = sub.add_parser("simulate")
    simulate.add_argument("events", nargs="+", metavar="KEY@SECONDS")
    simulate.add_argument("--json", action="store_true", dest="sim_json")
    simulate.add_argument("--seed", type=int, default=None)
    simulate.add_argument("--strategy", choices=[s.value for s in Strategy], default=None)

    config = sub.add_parser("config")
    config.add_argument("--json", action="store_true", dest="config_json")

    args = p.parse_args()
    requested_log_level = args.log_level or os.getenv("KEYTHROTTLE_LOG_LEVEL")
    if requested_log_level is not None:
        _configure_logging(requested_log_level)

    try:
        cfg = _apply_overrides(load_config(args.config), args)
        if requested_log_level is None:
            _configure_logging(cfg.log_level)

        if args.cmd == "config":
            data = _config_as_dict(cfg)
            if args.config_json:
                print(json.dumps(data, indent=2))
                return
            for name, value in data.items():
                print(f"{name} = {value}")
            return

        if args.cmd == "simulate":
            events = [_parse_timed_event(text) for text in args.events]
            results = ThrottleRunner(cfg, suspender=NullSuspender()).simulate(events)
            if args.sim_json:
                payload = [
                    {"key": event.key, "time": event.timestamp, "delay": delay}
                    for event, delay in results
                ]
                print(json.dumps(payload, indent=2))
                return
            for line in _render_simulation_lines(results):
                print(line)
            return

        if args.cmd == "run":
            suspender = NullSuspender() if args.dry_run else None
            ThrottleRunner(cfg, suspender=suspender).run_keyboard()
            return
    except KeyboardInterrupt:
        return
    except Exception as exc:
        print(f"Error: {exc}", file=sys.stderr)
        raise SystemExit(2)
