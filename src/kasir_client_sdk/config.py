from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, TypeVar

from dotenv import load_dotenv

N = TypeVar("N", int, float)

_TRUTHY = {"1", "true", "yes", "on"}


class ConfigError(ValueError):
    pass


@dataclass(frozen=True)
class ClientConfig:
    env_name: str
    api_base_url: str
    api_key: str | None = None
    connect_timeout_seconds: float = 5.0
    read_timeout_seconds: float = 15.0
    retries: int = 3
    retry_backoff_seconds: float = 0.3
    max_connections: int = 10
    verify_ssl: bool = True
    data_dir: str | None = None
    store_name: str = "Kasir"
    receipt_prefix: str = "BYJ"
    photo_bucket: str = "stock-photos"
    telemetry_enabled: bool = False

    @property
    def data_path(self) -> Path | None:
        return Path(self.data_dir).expanduser() if self.data_dir else None


def _text(name: str, default: str | None = None) -> str | None:
    value = (os.getenv(name) or "").strip()
    return value or default


def _flag(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    return raw.strip().lower() in _TRUTHY


def _number(name: str, default: N, cast: Callable[[str], N], *, minimum: N, strict: bool = False) -> N:
    """Read ``name`` as a number no lower than ``minimum`` (above it when ``strict``)."""
    raw = _text(name)
    if raw is None:
        value = default
    else:
        try:
            value = cast(raw)
        except ValueError as exc:
            kind = "an integer" if cast is int else "a number"
            raise ConfigError(f"Invalid {name}: expected {kind}, got {raw!r}") from exc
    if value < minimum or (strict and value == minimum):
        bound = f"> {minimum}" if strict else f">= {minimum}"
        raise ConfigError(f"Invalid {name}: expected {bound}, got {value}")
    return value


def _base_url(env_key: str) -> str:
    url = _text(f"KASIR_API_BASE_URL_{env_key}") or _text("KASIR_API_BASE_URL")
    if not url:
        raise ConfigError(f"Missing required config values: KASIR_API_BASE_URL (or KASIR_API_BASE_URL_{env_key})")
    return url.rstrip("/")


def load_config(env_file: str | None = None) -> ClientConfig:
    """Load config from environment with optional .env override."""
    load_dotenv(env_file)

    env_name = _text("KASIR_ENV", "dev") or "dev"
    timeout = _number("KASIR_TIMEOUT_SECONDS", 10.0, float, minimum=0.0, strict=True)
    connect_timeout = _number(
        "KASIR_CONNECT_TIMEOUT_SECONDS", min(timeout, 5.0), float, minimum=0.0, strict=True
    )
    read_timeout = _number(
        "KASIR_READ_TIMEOUT_SECONDS", max(timeout, connect_timeout), float, minimum=0.0, strict=True
    )

    receipt_prefix = _text("KASIR_RECEIPT_PREFIX", "BYJ") or "BYJ"
    if not receipt_prefix.isalnum():
        raise ConfigError(f"Invalid KASIR_RECEIPT_PREFIX: expected letters/digits only, got {receipt_prefix!r}")

    return ClientConfig(
        env_name=env_name,
        api_base_url=_base_url(env_name.upper()),
        api_key=_text("KASIR_API_KEY"),
        connect_timeout_seconds=connect_timeout,
        read_timeout_seconds=read_timeout,
        retries=_number("KASIR_RETRIES", 3, int, minimum=0),
        retry_backoff_seconds=_number("KASIR_RETRY_BACKOFF_SECONDS", 0.3, float, minimum=0.0),
        max_connections=_number("KASIR_MAX_CONNECTIONS", 10, int, minimum=1),
        verify_ssl=_flag("KASIR_VERIFY_SSL", True),
        data_dir=_text("KASIR_DATA_DIR"),
        store_name=_text("KASIR_STORE_NAME", "Kasir") or "Kasir",
        receipt_prefix=receipt_prefix.upper(),
        photo_bucket=_text("KASIR_PHOTO_BUCKET", "stock-photos") or "stock-photos",
        telemetry_enabled=_flag("KASIR_TELEMETRY_ENABLED", False),
    )
