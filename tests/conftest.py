from __future__ import annotations

import sys
from dataclasses import dataclass, field
from pathlib import Path
from typing import Sequence

import pytest

BASE_DIR = Path(__file__).resolve().parents[1]
SDK_SRC = BASE_DIR / "src"

sys.path.insert(0, str(SDK_SRC))

from kasir_client_sdk.config import ClientConfig  # noqa: E402
from kasir_client_sdk.data_context import DataContext  # noqa: E402
from kasir_client_sdk.exceptions import ApiError, ServerError  # noqa: E402
from kasir_client_sdk.local_store import LocalStore  # noqa: E402
from kasir_client_sdk.models import LocalTransaction, Product, StockChange  # noqa: E402
from kasir_client_sdk.models_remote import RemoteTransactionCreated, TransactionInsert  # noqa: E402


def server_error(message: str = "boom") -> ApiError:
    return ServerError(code="SERVER_ERROR", message=message, details=None, trace_id="trace-1", status_code=500)


@dataclass
class FakeGateway:
    """In-memory backend with switchable failures."""

    products: list[Product] = field(default_factory=list)
    transactions: list[LocalTransaction] = field(default_factory=list)
    stock_changes: list[StockChange] = field(default_factory=list)
    fail_lists: set[str] = field(default_factory=set)
    fail_header_totals: set[int] = field(default_factory=set)
    fail_items_for: set[str] = field(default_factory=set)
    fail_delete: bool = False
    fail_upserts: bool = False
    fail_stock_inserts: bool = False
    created: list[tuple[TransactionInsert, str | None]] = field(default_factory=list)
    items_pushed: list[str] = field(default_factory=list)
    deleted: list[str] = field(default_factory=list)
    upserts: list[tuple[list[Product], bool]] = field(default_factory=list)
    stock_inserts: list[list[StockChange]] = field(default_factory=list)
    next_id: int = 100

    def list_products(self) -> list[Product]:
        if "products" in self.fail_lists:
            raise server_error("products down")
        return list(self.products)

    def upsert_products(self, products: Sequence[Product], *, stock_only: bool = False) -> int:
        if self.fail_upserts:
            raise server_error("upsert down")
        self.upserts.append((list(products), stock_only))
        return len(products)

    def list_transactions(self) -> list[LocalTransaction]:
        if "transactions" in self.fail_lists:
            raise server_error("transactions down")
        return list(self.transactions)

    def create_transaction(self, header: TransactionInsert, idempotency_key: str | None = None) -> RemoteTransactionCreated:
        if header.total in self.fail_header_totals:
            raise server_error("header rejected")
        self.created.append((header, idempotency_key))
        self.next_id += 1
        return RemoteTransactionCreated(remote_id=str(self.next_id), created_at=header.created_at)

    def create_transaction_items(self, remote_id: str, transaction: LocalTransaction) -> int:
        if transaction.local_id in self.fail_items_for:
            raise server_error("items rejected")
        self.items_pushed.append(remote_id)
        return len(transaction.items)

    def delete_transaction(self, remote_id: str) -> None:
        if self.fail_delete:
            raise server_error("delete rejected")
        self.deleted.append(remote_id)

    def list_stock_changes(self) -> list[StockChange]:
        if "stock_changes" in self.fail_lists:
            raise server_error("stock history down")
        return list(self.stock_changes)

    def insert_stock_changes(self, changes: Sequence[StockChange]) -> int:
        if self.fail_stock_inserts:
            raise server_error("stock history insert down")
        self.stock_inserts.append(list(changes))
        return len(changes)

    def upload_photo(self, reference: str | None) -> str | None:
        return reference


@pytest.fixture
def store(tmp_path: Path) -> LocalStore:
    return LocalStore(base_dir=tmp_path / "data")


@pytest.fixture
def context(store: LocalStore) -> DataContext:
    return DataContext(store=store)


@pytest.fixture
def gateway() -> FakeGateway:
    return FakeGateway()


@pytest.fixture
def config(tmp_path: Path) -> ClientConfig:
    return ClientConfig(
        env_name="test",
        api_base_url="https://kasir.example.com",
        api_key="anon-key",
        retries=0,
        data_dir=str(tmp_path / "data"),
    )
