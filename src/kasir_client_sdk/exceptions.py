from __future__ import annotations

from dataclasses import dataclass, field


@dataclass
class ApiError(Exception):
    code: str
    message: str
    details: object | None
    trace_id: str | None
    status_code: int
    raw_payload: object | None = None

    def __str__(self) -> str:
        trace = f" trace_id={self.trace_id}" if self.trace_id else ""
        return f"[{self.status_code}] {self.code}: {self.message}{trace}"


class AuthError(ApiError):
    """API key rejected or missing."""


class PermissionError(ApiError):
    """Row level security or role denied the request."""


class NotFoundError(ApiError):
    pass


class ValidationError(ApiError):
    pass


class ConflictError(ApiError):
    """409 or unique-constraint style errors."""


class RateLimitError(ApiError):
    """429 throttling error."""


class ServerError(ApiError):
    """5xx server-side failures."""


class TransportError(ApiError):
    """Network/transport failure before an HTTP response was returned."""


@dataclass(frozen=True)
class CollectionFailure:
    collection: str
    message: str
    code: str | None = None


@dataclass
class HydrationError(RuntimeError):
    """One or more remote fetches failed during hydrate.

    Raised only after the merged view has been published, so the caller can
    treat it as advisory and keep operating on cached data.
    """

    failures: list[CollectionFailure] = field(default_factory=list)

    @property
    def message(self) -> str:
        if not self.failures:
            return "Sync with server failed. Using local data."
        return self.failures[0].message

    @property
    def collections(self) -> list[str]:
        return [failure.collection for failure in self.failures]

    def __str__(self) -> str:
        return self.message


class OperationInProgressError(RuntimeError):
    def __init__(self, operation: str) -> None:
        self.operation = operation
        super().__init__(f"{operation} is already running")


class PrinterNotConfiguredError(RuntimeError):
    def __init__(self) -> None:
        super().__init__("Default printer is not set")
