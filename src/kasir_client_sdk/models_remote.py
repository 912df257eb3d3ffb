from __future__ import annotations

from typing import Any, Literal

from pydantic import BaseModel, ConfigDict


class ProductRow(BaseModel):
    model_config = ConfigDict(extra="allow")

    id: Any = None
    name: str | None = None
    price: Any = None
    stock: Any = None
    image_url: str | None = None
    created_at: str | None = None


class TransactionItemRow(BaseModel):
    model_config = ConfigDict(extra="allow")

    id: Any = None
    transaction_id: Any = None
    product_id: Any = None
    product_name: str | None = None
    qty: Any = None
    price: Any = None
    created_at: str | None = None


class TransactionRow(BaseModel):
    model_config = ConfigDict(extra="allow")

    id: Any = None
    total: Any = None
    created_at: str | None = None
    receipt_no: str | None = None
    transaction_items: list[TransactionItemRow] | None = None


class JoinedProductName(BaseModel):
    model_config = ConfigDict(extra="allow")

    name: str | None = None


class StockHistoryRow(BaseModel):
    model_config = ConfigDict(extra="allow")

    id: Any = None
    product_id: Any = None
    adjustment_type: str | None = None
    quantity: Any = None
    previous_stock: Any = None
    new_stock: Any = None
    reason: str | None = None
    photo_url: str | None = None
    created_at: str | None = None
    products: JoinedProductName | None = None


class ProductUpsert(BaseModel):
    id: int
    name: str | None = None
    price: int | None = None
    stock: int
    image_url: str | None = None


class TransactionInsert(BaseModel):
    total: int
    created_at: str


class TransactionItemInsert(BaseModel):
    transaction_id: int
    product_id: int
    product_name: str
    qty: int
    price: int
    created_at: str


class StockHistoryInsert(BaseModel):
    product_id: int
    adjustment_type: Literal["ADD", "REDUCE"]
    quantity: int
    previous_stock: int
    new_stock: int
    reason: str | None = None
    photo_url: str | None = None
    created_at: str


class RemoteTransactionCreated(BaseModel):
    model_config = ConfigDict(extra="allow")

    remote_id: str
    created_at: str | None = None
    receipt_no: str | None = None
    total: int | None = None

