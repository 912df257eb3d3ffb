from __future__ import annotations

from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

from .ids import is_finite_number, normalize_product_id, to_int, to_optional_string


class PaymentMethod(str, Enum):
    CASH = "CASH"
    QRIS = "QRIS"


class TransactionStatus(str, Enum):
    PENDING = "pending"
    SYNCED = "synced"


class Product(BaseModel):
    model_config = ConfigDict(extra="ignore")

    id: str
    name: str = ""
    price: int = 0
    stock: int = 0
    category: str | None = None
    is_active: bool | None = None
    photo_uri: str = ""

    @field_validator("id", mode="before")
    @classmethod
    def _normalize_id(cls, value: Any) -> str:
        return normalize_product_id(value)

    @field_validator("name", mode="before")
    @classmethod
    def _name(cls, value: Any) -> str:
        return value if isinstance(value, str) else ""

    @field_validator("price", mode="before")
    @classmethod
    def _price(cls, value: Any) -> int:
        return to_int(value, 0)

    @field_validator("stock", mode="before")
    @classmethod
    def _stock(cls, value: Any) -> int:
        return max(0, to_int(value, 0))

    @field_validator("photo_uri", mode="before")
    @classmethod
    def _photo(cls, value: Any) -> str:
        return value if isinstance(value, str) else ""


class CartLine(BaseModel):
    model_config = ConfigDict(extra="ignore")

    product_id: str
    name: str = ""
    unit_price: int = 0
    qty: int = 1

    @field_validator("product_id", mode="before")
    @classmethod
    def _normalize_id(cls, value: Any) -> str:
        return normalize_product_id(value)

    @field_validator("name", mode="before")
    @classmethod
    def _name(cls, value: Any) -> str:
        return value if isinstance(value, str) else ""

    @field_validator("unit_price", "qty", mode="before")
    @classmethod
    def _numbers(cls, value: Any) -> int:
        return to_int(value, 0)

    @property
    def line_total(self) -> int:
        return self.unit_price * self.qty


def items_total(items: list[CartLine]) -> int:
    return sum(item.unit_price * item.qty for item in items)


class LocalTransaction(BaseModel):
    model_config = ConfigDict(extra="ignore", use_enum_values=False)

    local_id: str
    idempotency_key: str
    receipt_no: str = ""
    created_at: str
    # None marks a total that could not be read back; the sync engine
    # recomputes it from the items.
    total_amount: int | None = None
    paid_amount: int = 0
    change_amount: int = 0
    payment_method: PaymentMethod = PaymentMethod.CASH
    items: list[CartLine] = Field(default_factory=list)
    note: str | None = None
    status: TransactionStatus = TransactionStatus.PENDING
    remote_id: str | None = None

    @field_validator("total_amount", mode="before")
    @classmethod
    def _total(cls, value: Any) -> int | None:
        if is_finite_number(value):
            return int(round(value))
        if isinstance(value, str):
            try:
                parsed = float(value.strip())
            except ValueError:
                return None
            return int(round(parsed)) if is_finite_number(parsed) else None
        return None

    @field_validator("paid_amount", "change_amount", mode="before")
    @classmethod
    def _amounts(cls, value: Any) -> int:
        return to_int(value, 0)

    @field_validator("payment_method", mode="before")
    @classmethod
    def _method(cls, value: Any) -> Any:
        if value is None:
            return PaymentMethod.CASH
        if isinstance(value, str):
            return value.strip().upper()
        return value

    @field_validator("items", mode="before")
    @classmethod
    def _items(cls, value: Any) -> Any:
        if not isinstance(value, list):
            return []
        return [item for item in value if isinstance(item, (dict, CartLine))]

    @field_validator("note", "remote_id", mode="before")
    @classmethod
    def _optional(cls, value: Any) -> str | None:
        if isinstance(value, (int, float)) and not isinstance(value, bool):
            return str(value)
        return to_optional_string(value)

    @property
    def is_pending(self) -> bool:
        return self.status == TransactionStatus.PENDING

    @property
    def identity(self) -> str:
        if self.remote_id:
            return f"remote:{self.remote_id}"
        return f"local:{self.local_id}"

    def effective_total(self) -> int:
        if self.total_amount is not None:
            return self.total_amount
        return items_total(self.items)


class StockChange(BaseModel):
    model_config = ConfigDict(extra="ignore")

    id: str
    product_id: str
    product_name: str = ""
    from_stock: int = 0
    to_stock: int = 0
    delta: int = 0
    reason: str | None = None
    photo_uri: str | None = None
    created_at: str

    @field_validator("id", mode="before")
    @classmethod
    def _id(cls, value: Any) -> str:
        return "" if value is None else str(value)

    @field_validator("product_id", mode="before")
    @classmethod
    def _normalize_id(cls, value: Any) -> str:
        return normalize_product_id(value)

    @field_validator("from_stock", "to_stock", "delta", mode="before")
    @classmethod
    def _numbers(cls, value: Any) -> int:
        return to_int(value, 0)

    @field_validator("reason", "photo_uri", mode="before")
    @classmethod
    def _optional(cls, value: Any) -> str | None:
        return to_optional_string(value)


class PrinterDevice(BaseModel):
    name: str
    address: str
