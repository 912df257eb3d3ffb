"""Outcome events for hydrate, sync, sale and stock operations.

Events are appended as JSON lines when telemetry is enabled. Context keys
that could carry credentials or free text typed by the cashier are refused
at build time.
"""

from __future__ import annotations

import json
import logging
import os
from dataclasses import asdict, dataclass
from datetime import datetime, timezone
from enum import Enum
from pathlib import Path
from typing import Any

from platformdirs import user_log_dir

logger = logging.getLogger(__name__)


class TelemetryCategory(str, Enum):
    SYNC = "sync"
    SALE = "sale"
    STOCK = "stock"
    ERROR = "error"


_REFUSED_CONTEXT_KEYS = frozenset(
    {"api_key", "apikey", "authorization", "token", "note", "reason", "photo_uri", "photo_url"}
)


@dataclass(frozen=True)
class TelemetryEvent:
    category: TelemetryCategory
    name: str
    module: str
    action: str
    timestamp_utc: str
    trace_id: str | None = None
    duration_ms: int | None = None
    success: bool | None = None
    error_code: str | None = None
    context: dict[str, Any] | None = None

    def to_line(self, app_name: str) -> str:
        payload = {key: value for key, value in asdict(self).items() if value is not None}
        payload["category"] = self.category.value
        payload["app_name"] = app_name
        return json.dumps(payload, sort_keys=True)


def build_event(
    *,
    category: TelemetryCategory | str,
    name: str,
    module: str,
    action: str,
    trace_id: str | None = None,
    duration_ms: int | None = None,
    success: bool | None = None,
    error_code: str | None = None,
    context: dict[str, Any] | None = None,
    now: datetime | None = None,
) -> TelemetryEvent:
    try:
        resolved = TelemetryCategory(category)
    except ValueError as exc:
        raise ValueError(f"Unsupported telemetry category: {category}") from exc
    refused = sorted(key for key in context or {} if key.lower() in _REFUSED_CONTEXT_KEYS)
    if refused:
        raise ValueError(f"Sensitive keys are forbidden in telemetry context: {refused}")
    return TelemetryEvent(
        category=resolved,
        name=name,
        module=module,
        action=action,
        timestamp_utc=(now or datetime.now(timezone.utc)).isoformat(),
        trace_id=trace_id,
        duration_ms=duration_ms,
        success=success,
        error_code=error_code,
        context=context,
    )


class TelemetryLogger:
    """Append-only JSONL sink.

    A failed write is logged and reported as ``False``; it never interrupts
    the sale or sync that produced the event.
    """

    def __init__(self, *, app_name: str, enabled: bool | None = None, log_file: str | Path | None = None) -> None:
        self.app_name = app_name
        self.enabled = enabled if enabled is not None else telemetry_enabled_from_env()
        self.log_file = Path(log_file) if log_file else Path(user_log_dir(app_name, "Kasir")) / f"{app_name}.jsonl"

    def emit(self, event: TelemetryEvent) -> bool:
        if not self.enabled:
            return False
        try:
            self.log_file.parent.mkdir(parents=True, exist_ok=True)
            with self.log_file.open("a", encoding="utf-8") as fp:
                fp.write(event.to_line(self.app_name) + "\n")
        except OSError:
            logger.warning("telemetry_write_failed", extra={"path": str(self.log_file), "event": event.name})
            return False
        logger.debug("telemetry_event", extra={"event": event.name, "category": event.category.value})
        return True


def telemetry_enabled_from_env() -> bool:
    return os.getenv("KASIR_TELEMETRY_ENABLED", "0").strip().lower() in {"1", "true", "yes", "on"}
