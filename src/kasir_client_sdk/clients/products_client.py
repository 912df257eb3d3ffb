from __future__ import annotations

from dataclasses import dataclass
from typing import Sequence

from ..models_remote import ProductRow, ProductUpsert
from .base import REST_PREFIX, BaseClient

PRODUCT_COLUMNS = "id,name,price,stock,image_url,created_at"


@dataclass
class ProductsClient(BaseClient):
    def list_products(self) -> list[ProductRow]:
        rows = self._select("products", PRODUCT_COLUMNS)
        return [ProductRow.model_validate(row) for row in rows]

    def upsert_products(self, rows: Sequence[ProductUpsert]) -> None:
        if not rows:
            return
        self._request(
            "POST",
            f"{REST_PREFIX}/products",
            params={"on_conflict": "id"},
            json_body=[row.model_dump(mode="json", exclude_none=True) for row in rows],
            headers={"Prefer": "resolution=merge-duplicates,return=minimal"},
            retry_mutation=True,
            module="products",
            operation="upsert",
        )
