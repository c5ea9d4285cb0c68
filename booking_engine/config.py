"""
Centralized configuration with environment variable overrides.

Slot granularity, booking-window defaults, buffer policy, and retry
limits are configurable here. Nothing is hardcoded in scheduling logic.
"""

import logging
import os
from dataclasses import dataclass, field

from dotenv import load_dotenv

load_dotenv()

logger = logging.getLogger(__name__)

_TRUE_VALUES = {"1", "true", "yes", "on"}
_FALSE_VALUES = {"0", "false", "no", "off"}


def _safe_int(env_var: str, default: str) -> int:
    """Parse an integer from an env var with a clear error on bad values."""
    raw = os.getenv(env_var, default)
    try:
        return int(raw)
    except (ValueError, TypeError):
        raise ValueError(
            f"Invalid integer for {env_var}: {raw!r}"
        ) from None


def _safe_bool(env_var: str, default: str) -> bool:
    """Parse a boolean flag from an env var with a clear error on bad values."""
    raw = os.getenv(env_var, default).strip().lower()
    if raw in _TRUE_VALUES:
        return True
    if raw in _FALSE_VALUES:
        return False
    raise ValueError(f"Invalid boolean for {env_var}: {raw!r}")


@dataclass(frozen=True)
class SchedulingConfig:
    """Slot generation and booking-window defaults."""

    slot_step_minutes: int = _safe_int("SLOT_STEP_MINUTES", "15")
    default_advance_booking_days: int = _safe_int("DEFAULT_ADVANCE_BOOKING_DAYS", "30")
    default_min_advance_hours: int = _safe_int("DEFAULT_MIN_ADVANCE_HOURS", "2")
    symmetric_buffer: bool = _safe_bool("SYMMETRIC_BUFFER", "false")


@dataclass(frozen=True)
class BookingConfig:
    """Write-path settings for appointment creation."""

    max_booking_attempts: int = _safe_int("MAX_BOOKING_ATTEMPTS", "3")


@dataclass(frozen=True)
class AppConfig:
    """Root configuration aggregating all sub-configs."""

    scheduling: SchedulingConfig = field(default_factory=SchedulingConfig)
    booking: BookingConfig = field(default_factory=BookingConfig)
    log_level: str = os.getenv("LOG_LEVEL", "INFO")
    app_name: str = os.getenv("APP_NAME", "booking-engine")


def _validate_config(config: AppConfig) -> None:
    """Validate configuration values are within acceptable ranges."""
    if not 1 <= config.scheduling.slot_step_minutes <= 60:
        raise ValueError(
            "SLOT_STEP_MINUTES must be between 1 and 60, "
            f"got {config.scheduling.slot_step_minutes}"
        )
    if config.scheduling.default_advance_booking_days < 0:
        raise ValueError(
            "DEFAULT_ADVANCE_BOOKING_DAYS must be >= 0, "
            f"got {config.scheduling.default_advance_booking_days}"
        )
    if config.scheduling.default_min_advance_hours < 0:
        raise ValueError(
            "DEFAULT_MIN_ADVANCE_HOURS must be >= 0, "
            f"got {config.scheduling.default_min_advance_hours}"
        )
    if config.booking.max_booking_attempts < 1:
        raise ValueError(
            f"MAX_BOOKING_ATTEMPTS must be >= 1, got {config.booking.max_booking_attempts}"
        )


def load_config() -> AppConfig:
    """Load and validate application configuration."""
    config = AppConfig()
    _validate_config(config)
    logging.basicConfig(
        level=getattr(logging, config.log_level.upper(), logging.INFO),
        format="%(asctime)s [%(name)s] %(levelname)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )
    logger.info("Configuration loaded for '%s'", config.app_name)
    return config


# Singleton instance
settings = load_config()
