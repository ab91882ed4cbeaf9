import logging
import os
from dataclasses import dataclass
from typing import Mapping, Optional

from .errors import ConfigError
from .validation import DEFAULT_DEVICE, ValidationMode

DEFAULT_HISTORY_CAPACITY = 10000
DEFAULT_RECENT_WINDOW = 300
DEFAULT_LOG_LEVEL = "INFO"

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


@dataclass(frozen=True)
class Settings:
    history_capacity: int = DEFAULT_HISTORY_CAPACITY
    recent_window: int = DEFAULT_RECENT_WINDOW
    validation_mode: ValidationMode = ValidationMode.RANGE
    default_device: str = DEFAULT_DEVICE
    log_level: str = DEFAULT_LOG_LEVEL

    def __post_init__(self) -> None:
        if self.history_capacity <= 0:
            raise ConfigError(f"history_capacity must be > 0, got {self.history_capacity}")
        if self.recent_window < 0:
            raise ConfigError(f"recent_window must be >= 0, got {self.recent_window}")


def _int_env(env: Mapping[str, str], name: str, default: int) -> int:
    raw = env.get(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return int(raw)
    except ValueError as exc:
        raise ConfigError(f"{name} must be an integer, got {raw!r}") from exc


def load_settings(env: Optional[Mapping[str, str]] = None) -> Settings:
    """Build :class:`Settings` from ``VITALS_*`` environment variables."""
    if env is None:
        env = os.environ

    raw_mode = env.get("VITALS_VALIDATION_MODE", ValidationMode.RANGE.value).strip().lower()
    try:
        mode = ValidationMode(raw_mode)
    except ValueError as exc:
        allowed = ", ".join(m.value for m in ValidationMode)
        raise ConfigError(f"VITALS_VALIDATION_MODE must be one of {allowed}, got {raw_mode!r}") from exc

    log_level = env.get("VITALS_LOG_LEVEL", DEFAULT_LOG_LEVEL).strip().upper()
    if not isinstance(logging.getLevelName(log_level), int):
        raise ConfigError(f"VITALS_LOG_LEVEL is not a logging level: {log_level!r}")

    return Settings(
        history_capacity=_int_env(env, "VITALS_HISTORY_CAPACITY", DEFAULT_HISTORY_CAPACITY),
        recent_window=_int_env(env, "VITALS_RECENT_WINDOW", DEFAULT_RECENT_WINDOW),
        validation_mode=mode,
        default_device=env.get("VITALS_DEFAULT_DEVICE", "").strip() or DEFAULT_DEVICE,
        log_level=log_level,
    )


def configure_logging(level: str = DEFAULT_LOG_LEVEL) -> None:
    logging.basicConfig(level=level, format=LOG_FORMAT)
