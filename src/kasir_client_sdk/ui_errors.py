from __future__ import annotations

from dataclasses import dataclass

from .exceptions import ApiError, HydrationError
from .validation import ClientValidationError

RECOVERY_CLEAR_CACHE = "clear_local_cache_and_retry"


@dataclass(frozen=True)
class UserFacingError:
    message: str
    details: str | None = None
    trace_id: str | None = None
    recovery_action: str | None = None
    blocking: bool = True

    @property
    def technical_details(self) -> str | None:
        if self.details:
            return self.details
        return None


def to_user_facing_error(exc: Exception) -> UserFacingError:
    if isinstance(exc, HydrationError):
        return UserFacingError(
            message=exc.message,
            details=f"failed: {', '.join(exc.collections)}" if exc.failures else None,
            recovery_action=RECOVERY_CLEAR_CACHE,
            blocking=False,
        )
    if isinstance(exc, ClientValidationError):
        return UserFacingError(message=exc.message)
    if isinstance(exc, ApiError):
        primary = exc.message.strip() or "Request failed"
        details = f"{exc.code} (HTTP {exc.status_code})"
        if exc.details:
            details = f"{details}: {exc.details}"
        return UserFacingError(message=primary, details=details, trace_id=exc.trace_id)
    return UserFacingError(message=str(exc) or type(exc).__name__)
