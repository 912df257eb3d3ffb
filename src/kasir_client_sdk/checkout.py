from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime

from .cart import Cart
from .idempotency import TransactionKeys, new_transaction_keys
from .models import CartLine, LocalTransaction, PaymentMethod, TransactionStatus, items_total
from .validation import ClientValidationError, ValidationIssue


@dataclass(frozen=True)
class PaymentTotals:
    total_due: int
    paid_amount: int
    missing_amount: int
    change_amount: int


@dataclass(frozen=True)
class CheckoutQuote:
    lines: list[CartLine]
    payment_method: PaymentMethod
    totals: PaymentTotals
    note: str | None = None


def compute_payment_totals(total_due: int, paid_amount: int) -> PaymentTotals:
    return PaymentTotals(
        total_due=total_due,
        paid_amount=paid_amount,
        missing_amount=max(total_due - paid_amount, 0),
        change_amount=max(paid_amount - total_due, 0),
    )


def effective_paid_amount(total_due: int, payment_method: PaymentMethod | str, paid_amount: int | None) -> int:
    """QRIS always settles the exact total; an unset cash amount means exact change."""
    if _payment_method(payment_method) == PaymentMethod.QRIS:
        return total_due
    if not paid_amount:
        return total_due
    return paid_amount


def validate_checkout(
    cart: Cart,
    *,
    payment_method: PaymentMethod | str = PaymentMethod.CASH,
    paid_amount: int | None = None,
) -> CheckoutQuote:
    if cart.is_empty():
        raise ClientValidationError(
            [ValidationIssue(field="lines", reason="Cart is empty. Add a product before paying.")]
        )
    try:
        method = _payment_method(payment_method)
    except ValueError as exc:
        raise ClientValidationError(
            [ValidationIssue(field="payment_method", reason=f"Unsupported payment method: {payment_method}")]
        ) from exc
    total_due = cart.subtotal()
    paid = effective_paid_amount(total_due, method, paid_amount)
    totals = compute_payment_totals(total_due, paid)
    if totals.missing_amount > 0:
        raise ClientValidationError(
            [
                ValidationIssue(
                    field="paid_amount",
                    reason="Paid amount must be greater than or equal to the total.",
                )
            ]
        )
    note = cart.note.strip() or None
    return CheckoutQuote(lines=list(cart.lines), payment_method=method, totals=totals, note=note)


def _payment_method(value: PaymentMethod | str) -> PaymentMethod:
    if isinstance(value, PaymentMethod):
        return value
    return PaymentMethod(str(value).strip().upper())


def make_receipt_no(created: datetime, local_id: str, prefix: str = "BYJ") -> str:
    return f"{prefix}{created:%Y%m%d}{local_id[:4].upper()}"


def build_transaction(
    quote: CheckoutQuote,
    *,
    receipt_prefix: str = "BYJ",
    keys: TransactionKeys | None = None,
    now: datetime | None = None,
) -> LocalTransaction:
    keys = keys or new_transaction_keys()
    created = now or datetime.now().astimezone()
    total = items_total(quote.lines)
    if total != quote.totals.total_due:
        raise ClientValidationError(
            [ValidationIssue(field="total_amount", reason="Total does not match the cart lines.")]
        )
    return LocalTransaction(
        local_id=keys.local_id,
        idempotency_key=keys.idempotency_key,
        receipt_no=make_receipt_no(created, keys.local_id, receipt_prefix),
        created_at=created.isoformat(),
        total_amount=total,
        paid_amount=quote.totals.paid_amount,
        change_amount=quote.totals.change_amount,
        payment_method=quote.payment_method,
        items=[line.model_copy() for line in quote.lines],
        note=quote.note,
        status=TransactionStatus.PENDING,
    )
