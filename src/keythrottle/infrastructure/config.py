import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from pydantic import BaseModel, Field, ValidationError, field_validator

from keythrottle.domain.policy import BlockMode, RepeatShape, Strategy, ThrottlePolicy
from keythrottle.infrastructure.keyboard_adapter import normalize_key

try:
    import tomllib
except ModuleNotFoundError:  # pragma: no cover
    import tomli as tomllib


@dataclass(frozen=True)
class GateSettings:
    mode: BlockMode = BlockMode.WHITELIST
    keys: tuple[str, ...] = ()


@dataclass(frozen=True)
class RepeatSettings:
    delay: float = 0.05
    window: float = 0.1
    allowed_repetitions: int = 1
    shape: RepeatShape | str = RepeatShape.LINEAR


@dataclass(frozen=True)
class RandomSettings:
    delay: float = 0.05
    probability: float = 0.1
    amplification: int = 5


@dataclass(frozen=True)
class ThrottleConfig:
    enabled: bool = True
    log_level: str = "INFO"
    strategy: Strategy | str = Strategy.REPEAT
    seed: int | None = None
    gate: GateSettings = field(default_factory=GateSettings)
    repeat: RepeatSettings = field(default_factory=RepeatSettings)
    constant_delay: float = 0.05
    random: RandomSettings = field(default_factory=RandomSettings)

    def policy(self) -> ThrottlePolicy:
        return ThrottlePolicy(
            block_mode=self.gate.mode,
            block_list=frozenset(self.gate.keys),
            strategy=self.strategy,
            repeat_delay=self.repeat.delay,
            repeat_window=self.repeat.window,
            allowed_repetitions=self.repeat.allowed_repetitions,
            repeat_shape=self.repeat.shape,
            constant_delay=self.constant_delay,
            random_delay=self.random.delay,
            random_probability=self.random.probability,
            random_amplification=self.random.amplification,
        )


def _toml_error_type():
    return getattr(tomllib, "TOMLDecodeError", ValueError)


def _reject_bool(value):
    if isinstance(value, bool):
        raise ValueError("boolean values are not valid for numeric fields")
    return value


def _lenient_choice(value, choices: type[Strategy] | type[RepeatShape]):
    normalized = str(value).strip().lower()
    try:
        return choices(normalized)
    except ValueError:
        # Unknown choices are kept verbatim and evaluate to no delay.
        return normalized


class _GateConfigModel(BaseModel):
    mode: BlockMode = BlockMode.WHITELIST
    keys: list[str] = Field(default_factory=list)

    @field_validator("mode", mode="before")
    @classmethod
    def _normalize_mode(cls, value):
        normalized = str(value).strip().lower()
        if normalized not in {"whitelist", "blacklist"}:
            raise ValueError("gate.mode must be one of: whitelist, blacklist")
        return normalized

    @field_validator("keys", mode="after")
    @classmethod
    def _normalize_keys(cls, value):
        return [key for key in (normalize_key(item) for item in value) if key]


class _RepeatConfigModel(BaseModel):
    delay: float = Field(default=0.05, ge=0.0)
    window: float = Field(default=0.1, gt=0.0)
    allowed_repetitions: int = Field(default=1, ge=0)
    shape: RepeatShape | str = RepeatShape.LINEAR

    @field_validator("delay", "window", "allowed_repetitions", mode="before")
    @classmethod
    def _reject_bool_numbers(cls, value):
        return _reject_bool(value)

    @field_validator("shape", mode="before")
    @classmethod
    def _normalize_shape(cls, value):
        return _lenient_choice(value, RepeatShape)


class _ConstantConfigModel(BaseModel):
    delay: float = Field(default=0.05, ge=0.0)

    @field_validator("delay", mode="before")
    @classmethod
    def _reject_bool_numbers(cls, value):
        return _reject_bool(value)


class _RandomConfigModel(BaseModel):
    delay: float = Field(default=0.05, ge=0.0)
    probability: float = 0.1
    amplification: int = 5

    @field_validator("delay", "probability", "amplification", mode="before")
    @classmethod
    def _reject_bool_numbers(cls, value):
        return _reject_bool(value)


class _ThrottleConfigModel(BaseModel):
    enabled: bool = True
    log_level: str = "INFO"
    strategy: Strategy | str = Strategy.REPEAT
    seed: int | None = None
    gate: _GateConfigModel = Field(default_factory=_GateConfigModel)
    repeat: _RepeatConfigModel = Field(default_factory=_RepeatConfigModel)
    constant: _ConstantConfigModel = Field(default_factory=_ConstantConfigModel)
    random: _RandomConfigModel = Field(default_factory=_RandomConfigModel)

    @field_validator("log_level", mode="before")
    @classmethod
    def _uppercase_log_level(cls, value):
        return str(value).upper()

    @field_validator("strategy", mode="before")
    @classmethod
    def _normalize_strategy(cls, value):
        return _lenient_choice(value, Strategy)

    @field_validator("seed", mode="before")
    @classmethod
    def _reject_bool_seed(cls, value):
        return _reject_bool(value)


def _default_config_path() -> Path:
    xdg = os.getenv("XDG_CONFIG_HOME")
    if xdg:
        return Path(xdg) / "keythrottle" / "config.toml"
    return Path.home() / ".config" / "keythrottle" / "config.toml"


def _load_toml(path: Path) -> dict[str, Any]:
    if not path.exists():
        return {}
    if not path.is_file():
        raise ValueError(f"Config path is not a file: {path}")
    try:
        with path.open("rb") as f:
            data = tomllib.load(f)
    except OSError as exc:
        raise ValueError(f"Cannot read config file: {path}") from exc
    except _toml_error_type() as exc:
        raise ValueError(f"Invalid TOML in config file: {path}") from exc
    return data if isinstance(data, dict) else {}


def _merge_env_overrides(data: dict[str, Any]) -> dict[str, Any]:
    merged = dict(data)

    env_enabled = os.getenv("KEYTHROTTLE_ENABLED")
    env_log_level = os.getenv("KEYTHROTTLE_LOG_LEVEL")
    env_strategy = os.getenv("KEYTHROTTLE_STRATEGY")
    env_seed = os.getenv("KEYTHROTTLE_SEED")
    if env_enabled is not None:
        merged["enabled"] = env_enabled
    if env_log_level is not None:
        merged["log_level"] = env_log_level
    if env_strategy is not None:
        merged["strategy"] = env_strategy
    if env_seed is not None:
        merged["seed"] = env_seed
    return merged


def load_config(path: str | None = None) -> ThrottleConfig:
    cfg_path = Path(path) if path else _default_config_path()
    data = _merge_env_overrides(_load_toml(cfg_path))
    try:
        parsed = _ThrottleConfigModel.model_validate(data)
    except ValidationError as exc:
        raise ValueError(f"Invalid config values: {exc}") from exc

    return ThrottleConfig(
        enabled=parsed.enabled,
        log_level=parsed.log_level,
        strategy=parsed.strategy,
        seed=parsed.seed,
        gate=GateSettings(mode=parsed.gate.mode, keys=tuple(parsed.gate.keys)),
        repeat=RepeatSettings(
            delay=parsed.repeat.delay,
            window=parsed.repeat.window,
            allowed_repetitions=parsed.repeat.allowed_repetitions,
            shape=parsed.repeat.shape,
        ),
        constant_delay=parsed.constant.delay,
        random=RandomSettings(
            delay=parsed.random.delay,
            probability=parsed.random.probability,
            amplification=parsed.random.amplification,
        ),
    )
