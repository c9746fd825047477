"""Configuration loading for FeeDesk."""

from __future__ import annotations

import os
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

DEFAULT_DB_PATH = "feedesk.db"
DEFAULT_FEE_AMOUNT = 5000
DEFAULT_PAYMENT_DELAY = 3.0
DEFAULT_HEARTBEAT_INTERVAL = 30.0
DEFAULT_BCRYPT_ROUNDS = 12

_TRUE_VALUES = {"1", "true", "yes", "on"}
_FALSE_VALUES = {"0", "false", "no", "off", ""}


class ConfigError(Exception):
    """Raised when configuration is invalid."""


@dataclass
class Settings:
    """Runtime settings for the FeeDesk service.

    Attributes:
        db_path: SQLite database path. Use ":memory:" for an in-memory store.
        default_fee: Fee amount offered by the payment form, smallest currency unit.
        payment_delay: Seconds the simulated payment processor takes.
        confirm_email: When true, signup does not open a session and the
            student record is provisioned on first sign-in instead.
        heartbeat_interval: Seconds between SSE heartbeats on idle streams.
        bcrypt_rounds: Cost factor for password hashing.
    """

    db_path: str = DEFAULT_DB_PATH
    default_fee: int = DEFAULT_FEE_AMOUNT
    payment_delay: float = DEFAULT_PAYMENT_DELAY
    confirm_email: bool = False
    heartbeat_interval: float = DEFAULT_HEARTBEAT_INTERVAL
    bcrypt_rounds: int = DEFAULT_BCRYPT_ROUNDS

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> Settings:
        """Build settings from FEEDESK_* environment variables.

        Args:
            environ: Mapping to read from. Defaults to os.environ.

        Returns:
            Parsed settings.

        Raises:
            ConfigError: If a variable cannot be parsed.
        """
        env = os.environ if environ is None else environ
        return cls(
            db_path=env.get("FEEDESK_DB_PATH", DEFAULT_DB_PATH),
            default_fee=_parse(env, "FEEDESK_DEFAULT_FEE", int, DEFAULT_FEE_AMOUNT),
            payment_delay=_parse(env, "FEEDESK_PAYMENT_DELAY", float, DEFAULT_PAYMENT_DELAY),
            confirm_email=_parse_bool(env, "FEEDESK_CONFIRM_EMAIL", default=False),
            heartbeat_interval=_parse(
                env, "FEEDESK_HEARTBEAT_INTERVAL", float, DEFAULT_HEARTBEAT_INTERVAL
            ),
            bcrypt_rounds=_parse(env, "FEEDESK_BCRYPT_ROUNDS", int, DEFAULT_BCRYPT_ROUNDS),
        )

    def __post_init__(self) -> None:
        if self.default_fee <= 0:
            raise ConfigError("default_fee must be a positive integer")
        if self.payment_delay < 0:
            raise ConfigError("payment_delay cannot be negative")
        if self.heartbeat_interval <= 0:
            raise ConfigError("heartbeat_interval must be positive")
        if not 4 <= self.bcrypt_rounds <= 31:
            raise ConfigError("bcrypt_rounds must be between 4 and 31")


def _parse(env: Mapping[str, str], name: str, kind: type, default: Any) -> Any:
    raw = env.get(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return kind(raw.strip())
    except ValueError as e:
        raise ConfigError(f"Invalid value for {name}: {raw!r}") from e


def _parse_bool(env: Mapping[str, str], name: str, default: bool) -> bool:
    raw = env.get(name)
    if raw is None:
        return default
    value = raw.strip().lower()
    if value in _TRUE_VALUES:
        return True
    if value in _FALSE_VALUES:
        return False
    raise ConfigError(f"Invalid value for {name}: {raw!r}")
