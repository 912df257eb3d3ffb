from __future__ import annotations

from dataclasses import dataclass
from typing import Sequence

from ..idempotency import idempotency_headers
from ..models_remote import (
    RemoteTransactionCreated,
    TransactionInsert,
    TransactionItemInsert,
    TransactionRow,
)
from .base import REST_PREFIX, BaseClient

TRANSACTION_COLUMNS = "id,total,created_at,transaction_items(id,product_id,product_name,qty,price,created_at)"


@dataclass
class TransactionsClient(BaseClient):
    def list_transactions(self) -> list[TransactionRow]:
        rows = self._select("transactions", TRANSACTION_COLUMNS)
        return [TransactionRow.model_validate(row) for row in rows]

    def create_transaction(self, header: TransactionInsert, idempotency_key: str | None = None) -> RemoteTransactionCreated:
        data = self._request(
            "POST",
            f"{REST_PREFIX}/transactions",
            params={"select": "id,created_at,total"},
            json_body=header.model_dump(mode="json"),
            headers={"Prefer": "return=representation", **idempotency_headers(idempotency_key)},
            module="transactions",
            operation="create",
        )
        if isinstance(data, list):
            data = data[0] if data else None
        if not isinstance(data, dict) or data.get("id") is None:
            raise ValueError("Expected create transaction response to contain an id")
        return RemoteTransactionCreated(
            remote_id=str(data["id"]),
            created_at=data.get("created_at"),
            receipt_no=data.get("receipt_no"),
            total=data.get("total") if isinstance(data.get("total"), int) else None,
        )

    def create_transaction_items(
        self,
        items: Sequence[TransactionItemInsert],
        idempotency_key: str | None = None,
    ) -> None:
        if not items:
            return
        self._request(
            "POST",
            f"{REST_PREFIX}/transaction_items",
            json_body=[item.model_dump(mode="json") for item in items],
            headers={"Prefer": "return=minimal", **idempotency_headers(idempotency_key)},
            module="transaction_items",
            operation="create",
        )

    def delete_transaction(self, remote_id: str) -> None:
        self._request(
            "DELETE",
            f"{REST_PREFIX}/transactions",
            params={"id": f"eq.{remote_id}"},
            headers={"Prefer": "return=minimal"},
            retry_mutation=True,
            module="transactions",
            operation="delete",
        )
