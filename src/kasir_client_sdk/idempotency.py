from __future__ import annotations

import uuid
from dataclasses import dataclass

IDEMPOTENCY_HEADER = "Idempotency-Key"


@dataclass(frozen=True)
class TransactionKeys:
    local_id: str
    idempotency_key: str


def new_transaction_keys() -> TransactionKeys:
    return TransactionKeys(local_id=str(uuid.uuid4()), idempotency_key=str(uuid.uuid4()))


def idempotency_headers(idempotency_key: str | None) -> dict[str, str]:
    if not idempotency_key:
        return {}
    return {IDEMPOTENCY_HEADER: idempotency_key}
