from __future__ import annotations

from dataclasses import dataclass
from typing import Sequence

from ..models_remote import StockHistoryInsert, StockHistoryRow
from .base import REST_PREFIX, BaseClient

STOCK_HISTORY_COLUMNS = (
    "id,product_id,adjustment_type,quantity,previous_stock,new_stock,reason,photo_url,created_at,products(name)"
)


@dataclass
class StockHistoryClient(BaseClient):
    def list_stock_history(self) -> list[StockHistoryRow]:
        rows = self._select("stock_history", STOCK_HISTORY_COLUMNS)
        return [StockHistoryRow.model_validate(row) for row in rows]

    def insert_stock_history(self, rows: Sequence[StockHistoryInsert]) -> None:
        if not rows:
            return
        self._request(
            "POST",
            f"{REST_PREFIX}/stock_history",
            json_body=[row.model_dump(mode="json") for row in rows],
            headers={"Prefer": "return=minimal"},
            module="stock_history",
            operation="insert",
        )
