"""Identifier and number coercion shared by the local store and the gateway.

Locally a product id may carry a one-letter prefix (``"p12"``); the backend
only knows the plain integer (``12``). The canonical local form is the
numeric string (``"12"``).
"""

from __future__ import annotations

import math
import re
from typing import Any

_PREFIXED_ID_RE = re.compile(r"^p(\d+)$", re.IGNORECASE)
_DIGITS_RE = re.compile(r"(\d+)")


def normalize_product_id(value: Any) -> str:
    raw = "" if value is None else str(value)
    match = _PREFIXED_ID_RE.match(raw)
    return match.group(1) if match else raw


def to_number_id(value: Any) -> int | None:
    """Backend numeric id for ``value``, or None when there is none.

    Zero and negative ids are treated as untranslatable.
    """
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value if value > 0 else None
    if isinstance(value, float):
        if math.isfinite(value) and value.is_integer() and value > 0:
            return int(value)
        return None
    if not isinstance(value, str):
        return None
    trimmed = value.strip()
    if trimmed.isdigit():
        parsed = int(trimmed)
        return parsed if parsed > 0 else None
    match = _DIGITS_RE.search(trimmed)
    if match:
        parsed = int(match.group(1))
        return parsed if parsed > 0 else None
    return None


def to_number(value: Any, fallback: float = 0) -> float:
    if isinstance(value, bool):
        return fallback
    if isinstance(value, (int, float)):
        return value if math.isfinite(value) else fallback
    if isinstance(value, str):
        try:
            parsed = float(value.strip())
        except ValueError:
            return fallback
        return parsed if math.isfinite(parsed) else fallback
    return fallback


def to_int(value: Any, fallback: int = 0) -> int:
    number = to_number(value, fallback)
    return int(round(number))


def to_optional_string(value: Any) -> str | None:
    if not isinstance(value, str):
        return None
    trimmed = value.strip()
    return trimmed or None


def is_finite_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool) and math.isfinite(value)
