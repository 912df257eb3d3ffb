from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Protocol, Sequence

from .clients import ProductsClient, StockHistoryClient, StorageClient, TransactionsClient
from .clients.storage_client import is_remote_url
from .exceptions import ApiError, ValidationError
from .http_client import HttpClient
from .ids import to_number_id
from .mappers import (
    product_from_row,
    product_upsert,
    stock_change_from_row,
    stock_history_insert,
    transaction_from_row,
    transaction_item_inserts,
)
from .models import LocalTransaction, Product, StockChange
from .models_remote import ProductUpsert, RemoteTransactionCreated, StockHistoryInsert, TransactionInsert

logger = logging.getLogger(__name__)


class Gateway(Protocol):
    def list_products(self) -> list[Product]: ...

    def upsert_products(self, products: Sequence[Product], *, stock_only: bool = False) -> int: ...

    def list_transactions(self) -> list[LocalTransaction]: ...

    def create_transaction(self, header: TransactionInsert, idempotency_key: str | None = None) -> RemoteTransactionCreated: ...

    def create_transaction_items(self, remote_id: str, transaction: LocalTransaction) -> int: ...

    def delete_transaction(self, remote_id: str) -> None: ...

    def list_stock_changes(self) -> list[StockChange]: ...

    def insert_stock_changes(self, changes: Sequence[StockChange]) -> int: ...

    def upload_photo(self, reference: str | None) -> str | None: ...


@dataclass
class RemoteGateway:
    """The backend seen as three collections of domain records.

    Rows whose identifiers have no numeric backend form are skipped for the
    write at hand; every transport or backend error propagates as ApiError.
    """

    http: HttpClient
    api_key: str | None = None
    photo_bucket: str = "stock-photos"

    def __post_init__(self) -> None:
        self.products = ProductsClient(http=self.http, api_key=self.api_key)
        self.transactions = TransactionsClient(http=self.http, api_key=self.api_key)
        self.stock_history = StockHistoryClient(http=self.http, api_key=self.api_key)
        self.storage = StorageClient(http=self.http, api_key=self.api_key, bucket=self.photo_bucket)
        self._uploaded: dict[str, str] = {}

    def list_products(self) -> list[Product]:
        try:
            return [product_from_row(row) for row in self.products.list_products()]
        except ValueError as exc:
            raise _invalid_response("products", exc) from exc

    def upsert_products(self, products: Sequence[Product], *, stock_only: bool = False) -> int:
        rows: list[ProductUpsert] = []
        for product in products:
            image_url = None
            if not stock_only:
                image_url = self.upload_photo(product.photo_uri) or (product.photo_uri or None)
            row = product_upsert(product, image_url=image_url, stock_only=stock_only)
            if row is None:
                logger.debug("product_upsert_skipped", extra={"product_id": product.id})
                continue
            rows.append(row)
        self.products.upsert_products(rows)
        return len(rows)

    def list_transactions(self) -> list[LocalTransaction]:
        try:
            return [transaction_from_row(row) for row in self.transactions.list_transactions()]
        except ValueError as exc:
            raise _invalid_response("transactions", exc) from exc

    def create_transaction(self, header: TransactionInsert, idempotency_key: str | None = None) -> RemoteTransactionCreated:
        return self.transactions.create_transaction(header, idempotency_key=idempotency_key)

    def create_transaction_items(self, remote_id: str, transaction: LocalTransaction) -> int:
        header_id = to_number_id(remote_id)
        if header_id is None:
            raise ValidationError(
                code="INVALID_REMOTE_ID",
                message=f"Remote transaction id {remote_id!r} is not numeric",
                details=None,
                trace_id=None,
                status_code=0,
            )
        rows = transaction_item_inserts(header_id, transaction)
        self.transactions.create_transaction_items(rows, idempotency_key=transaction.idempotency_key)
        return len(rows)

    def delete_transaction(self, remote_id: str) -> None:
        self.transactions.delete_transaction(remote_id)

    def list_stock_changes(self) -> list[StockChange]:
        try:
            return [stock_change_from_row(row) for row in self.stock_history.list_stock_history()]
        except ValueError as exc:
            raise _invalid_response("stock_history", exc) from exc

    def insert_stock_changes(self, changes: Sequence[StockChange]) -> int:
        rows: list[StockHistoryInsert] = []
        for change in changes:
            photo_url = self.upload_photo(change.photo_uri) or change.photo_uri
            row = stock_history_insert(change, photo_url=photo_url)
            if row is None:
                continue
            rows.append(row)
        self.stock_history.insert_stock_history(rows)
        return len(rows)

    def upload_photo(self, reference: str | None) -> str | None:
        if not reference or is_remote_url(reference):
            return reference or None
        if reference in self._uploaded:
            return self._uploaded[reference]
        url = self.storage.upload(reference)
        if url:
            self._uploaded[reference] = url
        return url


def _invalid_response(collection: str, exc: ValueError) -> ApiError:
    return ApiError(
        code="INVALID_RESPONSE",
        message=f"Unexpected {collection} payload from server",
        details=str(exc),
        trace_id=None,
        status_code=0,
    )
