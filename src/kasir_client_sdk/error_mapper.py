from __future__ import annotations

from typing import Mapping

from .exceptions import (
    ApiError,
    AuthError,
    ConflictError,
    NotFoundError,
    PermissionError,
    RateLimitError,
    ServerError,
    ValidationError,
)

_BY_STATUS: dict[int, type[ApiError]] = {
    400: ValidationError,
    401: AuthError,
    403: PermissionError,
    404: NotFoundError,
    409: ConflictError,
    422: ValidationError,
    429: RateLimitError,
}

# Postgres and PostgREST codes that say more than the HTTP status does.
_BY_BACKEND_CODE: dict[str, type[ApiError]] = {
    "23505": ConflictError,  # unique_violation
    "23503": ValidationError,  # foreign_key_violation
    "23502": ValidationError,  # not_null_violation
    "22P02": ValidationError,  # invalid_text_representation
    "PGRST116": NotFoundError,  # single row requested, none returned
    "PGRST301": AuthError,  # JWT rejected
}


def _error_class(status_code: int, backend_code: str) -> type[ApiError]:
    if status_code < 500 and backend_code in _BY_BACKEND_CODE:
        return _BY_BACKEND_CODE[backend_code]
    if status_code >= 500:
        return ServerError
    return _BY_STATUS.get(status_code, ApiError)


def map_error(status_code: int, payload: Mapping[str, object] | None, trace_id: str | None) -> ApiError:
    """Typed error for a failed response.

    PostgREST bodies carry ``code``/``message``/``details``/``hint``; the
    storage API uses ``error``/``message`` instead.
    """
    body = dict(payload or {})
    backend_code = str(body.get("code") or "")
    details = body.get("details") or body.get("hint")
    body_trace_id = body.get("trace_id")
    error_class = _error_class(status_code, backend_code)
    return error_class(
        code=backend_code or "HTTP_ERROR",
        message=str(body.get("message") or body.get("error") or "Request failed"),
        details=details,
        trace_id=str(body_trace_id) if body_trace_id is not None else trace_id,
        status_code=status_code,
        raw_payload=body,
    )
