from __future__ import annotations

import json
import logging
import time
import uuid
from dataclasses import dataclass
from typing import Any, Callable, Mapping
from urllib.parse import urljoin

import requests
from requests.adapters import HTTPAdapter

from .config import ClientConfig
from .error_mapper import map_error
from .exceptions import TransportError

logger = logging.getLogger(__name__)

TRACE_HEADER = "X-Client-Trace-Id"
# Header names the backend and its gateway use to echo a request id.
RESPONSE_TRACE_HEADERS = (TRACE_HEADER, "X-Request-Id", "sb-request-id")
IDEMPOTENT_METHODS = frozenset({"GET", "HEAD", "OPTIONS"})

JsonPayload = dict[str, Any] | list[Any] | None
ResponseHook = Callable[[requests.Response], None]


@dataclass
class TraceContext:
    trace_id: str | None = None

    def ensure(self) -> str:
        if not self.trace_id:
            self.trace_id = str(uuid.uuid4())
        return self.trace_id

    def update_from_headers(self, headers: Mapping[str, str]) -> None:
        for name in RESPONSE_TRACE_HEADERS:
            if headers.get(name):
                self.trace_id = headers[name]
                return


@dataclass
class RequestRecord:
    module: str
    operation: str
    method: str
    status_code: int
    attempts: int
    duration_ms: int
    trace_id: str | None

    @property
    def ok(self) -> bool:
        return 200 <= self.status_code < 300


@dataclass
class HttpClient:
    """JSON over a pooled requests session.

    Idempotent methods are retried on transport errors and 5xx responses
    with exponential backoff; writes are sent once unless the caller marks
    them safe to repeat.
    """

    config: ClientConfig
    trace: TraceContext | None = None
    session: requests.Session | None = None
    sleep: Callable[[float], None] = time.sleep
    last_request: RequestRecord | None = None

    def __post_init__(self) -> None:
        if self.trace is None:
            self.trace = TraceContext()
        if self.session is None:
            self.session = requests.Session()
            adapter = HTTPAdapter(
                pool_connections=self.config.max_connections,
                pool_maxsize=self.config.max_connections,
            )
            self.session.mount("http://", adapter)
            self.session.mount("https://", adapter)

    def url_for(self, path: str) -> str:
        return urljoin(self.config.api_base_url.rstrip("/") + "/", path.lstrip("/"))

    def request(
        self,
        method: str,
        path: str,
        *,
        headers: dict[str, str] | None = None,
        json_body: Any = None,
        data: bytes | None = None,
        params: dict[str, Any] | None = None,
        response_hook: ResponseHook | None = None,
        retry_mutation: bool = False,
        module: str = "unknown",
        operation: str = "unknown",
    ) -> JsonPayload:
        verb = method.upper()
        request_headers = {"Accept": "application/json", **(headers or {}), TRACE_HEADER: self.trace.ensure()}
        max_attempts = self.config.retries + 1 if (verb in IDEMPOTENT_METHODS or retry_mutation) else 1
        started = time.monotonic()

        response, attempts = self._send(
            verb,
            self.url_for(path),
            max_attempts,
            headers=request_headers,
            json=json_body if data is None else None,
            data=data,
            params=params,
            record=(module, operation, started),
        )
        self.trace.update_from_headers(response.headers)
        self._record(module, operation, verb, response.status_code, attempts, started)
        if response_hook:
            response_hook(response)
        if response.ok:
            return response.json() if response.content else None
        raise map_error(response.status_code, _error_body(response), self.trace.trace_id)

    def _send(
        self,
        verb: str,
        url: str,
        max_attempts: int,
        *,
        record: tuple[str, str, float],
        **kwargs: Any,
    ) -> tuple[requests.Response, int]:
        timeout = (self.config.connect_timeout_seconds, self.config.read_timeout_seconds)
        attempt = 0
        while True:
            attempt += 1
            try:
                response = self.session.request(verb, url, timeout=timeout, verify=self.config.verify_ssl, **kwargs)
            except requests.RequestException as exc:
                if attempt >= max_attempts:
                    module, operation, started = record
                    self._record(module, operation, verb, 0, attempt, started)
                    raise TransportError(
                        code="TRANSPORT_ERROR",
                        message=str(exc) or type(exc).__name__,
                        details={"type": type(exc).__name__},
                        trace_id=self.trace.trace_id,
                        status_code=0,
                    ) from exc
                logger.debug("http_retry", extra={"url": url, "attempt": attempt, "error": type(exc).__name__})
            else:
                if response.status_code < 500 or attempt >= max_attempts:
                    return response, attempt
                logger.debug("http_retry", extra={"url": url, "attempt": attempt, "status": response.status_code})
            self.sleep(self.config.retry_backoff_seconds * (2 ** (attempt - 1)))

    def _record(self, module: str, operation: str, verb: str, status_code: int, attempts: int, started: float) -> None:
        self.last_request = RequestRecord(
            module=module,
            operation=operation,
            method=verb,
            status_code=status_code,
            attempts=attempts,
            duration_ms=int((time.monotonic() - started) * 1000),
            trace_id=self.trace.trace_id,
        )


def _error_body(response: requests.Response) -> dict[str, Any]:
    try:
        payload = response.json()
    except json.JSONDecodeError:
        return {"message": response.text or response.reason}
    return payload if isinstance(payload, dict) else {"message": str(payload)}
