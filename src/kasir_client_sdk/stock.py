from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from typing import Mapping, Sequence

from .data_context import DataContext
from .exceptions import ApiError
from .gateway import Gateway
from .ids import normalize_product_id
from .mappers import utc_now_iso
from .models import CartLine, Product, StockChange
from .stock_validation import changed_lines, validate_stock_edit

logger = logging.getLogger(__name__)


@dataclass
class StockService:
    context: DataContext
    gateway: Gateway

    def decrement_stock_by_items(self, items: Sequence[CartLine]) -> list[Product]:
        """Apply a sale to the local catalog, clamping stock at zero.

        The local result stands even when the remote push fails; the next
        successful hydrate replaces it with the server's numbers.
        """
        sold: dict[str, int] = {}
        for item in items:
            key = normalize_product_id(item.product_id)
            sold[key] = sold.get(key, 0) + item.qty
        touched: list[Product] = []
        next_products: list[Product] = []
        for product in self.context.products:
            qty = sold.get(product.id)
            if qty is None:
                next_products.append(product)
                continue
            updated = product.model_copy(update={"stock": max(0, product.stock - qty)})
            next_products.append(updated)
            touched.append(updated)
        self.context.set_products(next_products)

        if touched:
            try:
                self.gateway.upsert_products(touched, stock_only=True)
            except ApiError as exc:
                logger.warning("stock_push_failed", extra={"code": exc.code, "count": len(touched)})
        return touched

    def apply_manual_edit(
        self,
        draft: Sequence[Product],
        *,
        reasons: Mapping[str, str] | None = None,
        photos: Mapping[str, str] | None = None,
        photo_stock: Mapping[str, int] | None = None,
    ) -> list[StockChange]:
        """Replace the catalog with ``draft`` and log one change per edited product.

        Every changed product needs a photo taken at its final stock and
        every reduction a reason; the edit is rejected before anything is
        written otherwise.
        """
        lines = changed_lines(
            draft, self.context.products, reasons=reasons, photos=photos, photo_stock=photo_stock
        )
        validate_stock_edit(lines)

        photo_by_id = {line.product.id: line.photo_uri for line in lines}
        products = [
            product.model_copy(update={"photo_uri": photo_by_id[product.id]}) if product.id in photo_by_id else product
            for product in draft
        ]
        stamp = int(time.time() * 1000)
        created_at = utc_now_iso()
        changes = [
            StockChange(
                id=f"{line.product.id}-{stamp}-{index}",
                product_id=line.product.id,
                product_name=line.product.name,
                from_stock=line.from_stock,
                to_stock=line.to_stock,
                delta=line.delta,
                reason=line.reason,
                photo_uri=line.photo_uri,
                created_at=created_at,
            )
            for index, line in enumerate(lines)
        ]

        self.context.set_products(products)
        if changes:
            self.context.set_stock_changes([*changes, *self.context.stock_changes])

        try:
            self.gateway.upsert_products(products)
        except ApiError as exc:
            logger.warning("product_push_failed", extra={"code": exc.code})
        if changes:
            try:
                self.gateway.insert_stock_changes(changes)
            except ApiError as exc:
                logger.warning("stock_history_push_failed", extra={"code": exc.code})
        logger.info("stock_edit_applied", extra={"changed": len(changes)})
        return changes
