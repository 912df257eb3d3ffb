from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from enum import Enum
from typing import Iterable

from .models import LocalTransaction
from .reconciler import parse_timestamp

LOW_STOCK_THRESHOLD = 10


class StockStatus(str, Enum):
    OUT = "OUT"
    LOW = "LOW"
    OK = "OK"


@dataclass
class ProductSalesRow:
    product_id: str
    name: str
    qty: int
    revenue: int


def stock_status(stock: int, threshold: int = LOW_STOCK_THRESHOLD) -> StockStatus:
    if stock <= 0:
        return StockStatus.OUT
    if stock <= threshold:
        return StockStatus.LOW
    return StockStatus.OK


def daily_product_sales(transactions: Iterable[LocalTransaction], day: date) -> list[ProductSalesRow]:
    """Quantity and revenue per product for sales made on ``day`` (device local date)."""
    rows: dict[str, ProductSalesRow] = {}
    for transaction in transactions:
        if parse_timestamp(transaction.created_at).astimezone().date() != day:
            continue
        for item in transaction.items:
            revenue = item.unit_price * item.qty
            row = rows.get(item.product_id)
            if row is None:
                rows[item.product_id] = ProductSalesRow(
                    product_id=item.product_id,
                    name=item.name,
                    qty=item.qty,
                    revenue=revenue,
                )
            else:
                row.qty += item.qty
                row.revenue += revenue
    return sorted(rows.values(), key=lambda row: row.revenue, reverse=True)


def sales_total(transactions: Iterable[LocalTransaction], day: date) -> int:
    return sum(
        transaction.effective_total()
        for transaction in transactions
        if parse_timestamp(transaction.created_at).astimezone().date() == day
    )
