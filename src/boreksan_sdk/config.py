from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Iterable
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from dotenv import load_dotenv

DEFAULT_TIMEZONE = "Europe/Istanbul"


class ConfigError(ValueError):
    pass


@dataclass(frozen=True)
class ClientConfig:
    env_name: str
    api_base_url: str
    connect_timeout_seconds: float = 5.0
    read_timeout_seconds: float = 15.0
    retries: int = 2
    retry_backoff_seconds: float = 0.3
    max_connections: int = 10
    verify_ssl: bool = True
    timezone_name: str = DEFAULT_TIMEZONE
    max_parallel_upserts: int = 8

    @property
    def tz(self) -> ZoneInfo:
        return ZoneInfo(self.timezone_name)


def _require(values: dict[str, str | None], required: Iterable[str]) -> None:
    missing = [key for key in required if not values.get(key)]
    if missing:
        raise ConfigError(f"Missing required config values: {', '.join(missing)}")


def _coerce_bool(value: str | None, default: bool) -> bool:
    if value is None:
        return default
    return value.strip().lower() in {"1", "true", "yes", "on"}


def _read_float(name: str, default: str) -> float:
    raw = os.getenv(name, default)
    try:
        return float(raw)
    except (TypeError, ValueError) as exc:
        raise ConfigError(f"Invalid {name}: expected a number, got {raw!r}") from exc


def _read_int(name: str, default: str) -> int:
    raw = os.getenv(name, default)
    try:
        return int(raw)
    except (TypeError, ValueError) as exc:
        raise ConfigError(f"Invalid {name}: expected an integer, got {raw!r}") from exc


def _validate(condition: bool, message: str) -> None:
    if not condition:
        raise ConfigError(message)


def _read_timezone(name: str, default: str) -> str:
    raw = (os.getenv(name) or default).strip()
    try:
        ZoneInfo(raw)
    except (ZoneInfoNotFoundError, ValueError) as exc:
        raise ConfigError(f"Invalid {name}: unknown timezone {raw!r}") from exc
    return raw


def load_config(env_file: str | None = None) -> ClientConfig:
    """Load config from environment with optional .env override."""
    load_dotenv(env_file)

    env_name = (os.getenv("BOREKSAN_ENV") or "dev").strip().lower()
    env_key = env_name.upper()

    api_base_url = (
        (os.getenv(f"BOREKSAN_API_BASE_URL_{env_key}") or "").strip()
        or (os.getenv("BOREKSAN_API_BASE_URL") or "").strip()
    )

    timeout_seconds = _read_float("BOREKSAN_TIMEOUT_SECONDS", "10")
    _validate(
        timeout_seconds > 0,
        f"Invalid BOREKSAN_TIMEOUT_SECONDS: expected > 0, got {timeout_seconds}",
    )

    connect_timeout_seconds = _read_float(
        "BOREKSAN_CONNECT_TIMEOUT_SECONDS", str(min(timeout_seconds, 5.0))
    )
    _validate(
        connect_timeout_seconds > 0,
        f"Invalid BOREKSAN_CONNECT_TIMEOUT_SECONDS: expected > 0, got {connect_timeout_seconds}",
    )

    read_timeout_seconds = _read_float(
        "BOREKSAN_READ_TIMEOUT_SECONDS",
        str(max(timeout_seconds, connect_timeout_seconds)),
    )
    _validate(
        read_timeout_seconds > 0,
        f"Invalid BOREKSAN_READ_TIMEOUT_SECONDS: expected > 0, got {read_timeout_seconds}",
    )

    retries = _read_int("BOREKSAN_RETRIES", "2")
    _validate(retries >= 0, f"Invalid BOREKSAN_RETRIES: expected >= 0, got {retries}")

    retry_backoff_seconds = _read_float("BOREKSAN_RETRY_BACKOFF_SECONDS", "0.3")
    _validate(
        retry_backoff_seconds >= 0,
        f"Invalid BOREKSAN_RETRY_BACKOFF_SECONDS: expected >= 0, got {retry_backoff_seconds}",
    )

    max_connections = _read_int("BOREKSAN_MAX_CONNECTIONS", "10")
    _validate(
        max_connections >= 1,
        f"Invalid BOREKSAN_MAX_CONNECTIONS: expected >= 1, got {max_connections}",
    )

    max_parallel_upserts = _read_int("BOREKSAN_MAX_PARALLEL_UPSERTS", "8")
    _validate(
        max_parallel_upserts >= 1,
        f"Invalid BOREKSAN_MAX_PARALLEL_UPSERTS: expected >= 1, got {max_parallel_upserts}",
    )

    verify_ssl = _coerce_bool(os.getenv("BOREKSAN_VERIFY_SSL"), True)
    timezone_name = _read_timezone("BOREKSAN_TIMEZONE", DEFAULT_TIMEZONE)

    values = {"BOREKSAN_API_BASE_URL": api_base_url}
    _require(values, ["BOREKSAN_API_BASE_URL"])

    return ClientConfig(
        env_name=env_name,
        api_base_url=api_base_url.rstrip("/"),
        connect_timeout_seconds=connect_timeout_seconds,
        read_timeout_seconds=read_timeout_seconds,
        retries=retries,
        retry_backoff_seconds=retry_backoff_seconds,
        max_connections=max_connections,
        verify_ssl=verify_ssl,
        timezone_name=timezone_name,
        max_parallel_upserts=max_parallel_upserts,
    )
