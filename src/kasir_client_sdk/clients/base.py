from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from ..http_client import HttpClient

REST_PREFIX = "/rest/v1"


@dataclass
class BaseClient:
    http: HttpClient
    api_key: str | None = None
    access_token: str | None = None

    def _auth_headers(self) -> dict[str, str]:
        headers: dict[str, str] = {}
        if self.api_key:
            headers["apikey"] = self.api_key
        token = self.access_token or self.api_key
        if token:
            headers["Authorization"] = f"Bearer {token}"
        return headers

    def _request(self, method: str, path: str, **kwargs):
        headers = kwargs.pop("headers", {})
        merged = {**self._auth_headers(), **headers}
        return self.http.request(method, path, headers=merged, **kwargs)

    def _select(self, table: str, columns: str, *, order: str | None = "created_at.desc", operation: str = "list") -> list[dict[str, Any]]:
        params = {"select": columns}
        if order:
            params["order"] = order
        payload = self._request("GET", f"{REST_PREFIX}/{table}", params=params, module=table, operation=operation)
        if payload is None:
            return []
        if not isinstance(payload, list):
            raise ValueError(f"Expected {table} response to be a JSON array")
        return [row for row in payload if isinstance(row, dict)]
