from __future__ import annotations

import logging
import secrets
import time
from dataclasses import dataclass
from pathlib import Path
from urllib.parse import unquote, urlparse

from ..exceptions import ApiError
from .base import BaseClient

logger = logging.getLogger(__name__)

STORAGE_PREFIX = "/storage/v1/object"


def is_remote_url(reference: str | None) -> bool:
    return bool(reference) and str(reference).startswith(("http://", "https://"))


def local_path(reference: str) -> Path:
    if reference.startswith("file://"):
        return Path(unquote(urlparse(reference).path))
    return Path(reference)


@dataclass
class StorageClient(BaseClient):
    bucket: str = "stock-photos"

    def public_url(self, object_name: str) -> str:
        base = self.http.config.api_base_url.rstrip("/")
        return f"{base}{STORAGE_PREFIX}/public/{self.bucket}/{object_name}"

    def upload(self, reference: str | None) -> str | None:
        """Upload a local photo and return its public URL.

        Remote URLs are returned unchanged. Any failure returns None so the
        caller can keep the local reference.
        """
        if not reference:
            return None
        if is_remote_url(reference):
            return reference
        try:
            content = local_path(reference).read_bytes()
        except OSError:
            logger.warning("photo_upload_unreadable", extra={"reference": reference})
            return None
        object_name = f"stock_{int(time.time() * 1000)}_{secrets.token_hex(3)}.jpg"
        try:
            self._request(
                "POST",
                f"{STORAGE_PREFIX}/{self.bucket}/{object_name}",
                data=content,
                headers={"Content-Type": "image/jpeg", "x-upsert": "false"},
                module="storage",
                operation="upload",
            )
        except ApiError as exc:
            logger.warning("photo_upload_failed", extra={"code": exc.code, "trace_id": exc.trace_id})
            return None
        return self.public_url(object_name)
