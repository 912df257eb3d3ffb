from __future__ import annotations

from datetime import datetime, timezone

from .ids import normalize_product_id, to_int, to_number, to_number_id, to_optional_string
from .models import CartLine, LocalTransaction, PaymentMethod, Product, StockChange, TransactionStatus
from .models_remote import (
    ProductRow,
    ProductUpsert,
    StockHistoryInsert,
    StockHistoryRow,
    TransactionItemInsert,
    TransactionRow,
)


def utc_now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def product_from_row(row: ProductRow) -> Product:
    return Product(
        id=normalize_product_id(row.id),
        name=row.name or "",
        price=to_int(row.price, 0),
        stock=to_int(row.stock, 0),
        photo_uri=to_optional_string(row.image_url) or "",
    )


def transaction_from_row(row: TransactionRow) -> LocalTransaction:
    remote_id = str(row.id)
    created_at = row.created_at or utc_now_iso()
    items = [
        CartLine(
            product_id=normalize_product_id(item.product_id),
            name=item.product_name or "",
            unit_price=to_int(item.price, 0),
            qty=to_int(item.qty, 0),
        )
        for item in row.transaction_items or []
    ]
    computed_total = sum(item.unit_price * item.qty for item in items)
    total_amount = int(round(to_number(row.total, computed_total)))
    return LocalTransaction(
        local_id=f"remote-{remote_id}",
        idempotency_key=f"remote-{remote_id}",
        receipt_no=to_optional_string(row.receipt_no) or f"TRX-{remote_id}",
        created_at=created_at,
        total_amount=total_amount,
        paid_amount=total_amount,
        change_amount=0,
        payment_method=PaymentMethod.CASH,
        items=items,
        status=TransactionStatus.SYNCED,
        remote_id=remote_id,
    )


def stock_change_from_row(row: StockHistoryRow) -> StockChange:
    qty = abs(to_int(row.quantity, 0))
    is_reduce = str(row.adjustment_type).upper() == "REDUCE"
    return StockChange(
        id=str(row.id),
        product_id=normalize_product_id(row.product_id),
        product_name=(row.products.name if row.products else None) or "",
        from_stock=to_int(row.previous_stock, 0),
        to_stock=to_int(row.new_stock, 0),
        delta=-qty if is_reduce else qty,
        reason=to_optional_string(row.reason),
        photo_uri=to_optional_string(row.photo_url),
        created_at=row.created_at or utc_now_iso(),
    )


def product_upsert(product: Product, *, image_url: str | None = None, stock_only: bool = False) -> ProductUpsert | None:
    remote_id = to_number_id(product.id)
    if remote_id is None:
        return None
    if stock_only:
        return ProductUpsert(id=remote_id, stock=product.stock)
    return ProductUpsert(
        id=remote_id,
        name=product.name,
        price=product.price,
        stock=product.stock,
        image_url=image_url,
    )


def transaction_item_inserts(remote_id: int, transaction: LocalTransaction) -> list[TransactionItemInsert]:
    """Item rows for ``transaction``; lines without a numeric product id are left out."""
    rows: list[TransactionItemInsert] = []
    for item in transaction.items:
        product_id = to_number_id(normalize_product_id(item.product_id))
        if product_id is None:
            continue
        rows.append(
            TransactionItemInsert(
                transaction_id=remote_id,
                product_id=product_id,
                product_name=item.name,
                qty=item.qty,
                price=item.unit_price,
                created_at=transaction.created_at,
            )
        )
    return rows


def stock_history_insert(change: StockChange, *, photo_url: str | None = None) -> StockHistoryInsert | None:
    product_id = to_number_id(change.product_id)
    if product_id is None:
        return None
    return StockHistoryInsert(
        product_id=product_id,
        adjustment_type="ADD" if change.delta >= 0 else "REDUCE",
        quantity=abs(change.delta),
        previous_stock=change.from_stock,
        new_stock=change.to_stock,
        reason=change.reason,
        photo_url=photo_url,
        created_at=change.created_at,
    )
