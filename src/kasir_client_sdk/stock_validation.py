from __future__ import annotations

from dataclasses import dataclass
from typing import Mapping, Sequence

from .models import Product
from .validation import ClientValidationError, ValidationIssue


@dataclass(frozen=True)
class StockEditLine:
    product: Product
    from_stock: int
    to_stock: int
    reason: str | None
    photo_uri: str | None
    photo_stock: int | None = None

    @property
    def delta(self) -> int:
        return self.to_stock - self.from_stock

    @property
    def label(self) -> str:
        return self.product.name or self.product.id


def changed_lines(
    draft: Sequence[Product],
    baseline: Sequence[Product],
    *,
    reasons: Mapping[str, str] | None = None,
    photos: Mapping[str, str] | None = None,
    photo_stock: Mapping[str, int] | None = None,
) -> list[StockEditLine]:
    """Draft products whose stock differs from the baseline snapshot.

    ``photo_stock`` holds the draft stock each photo was taken at. When it
    is given, a photo only counts if that value matches the final stock.
    """
    reasons = reasons or {}
    photos = photos or {}
    original = {product.id: product.stock for product in baseline}
    lines: list[StockEditLine] = []
    for product in draft:
        from_stock = original.get(product.id, 0)
        if product.stock == from_stock:
            continue
        reason = (reasons.get(product.id) or "").strip() or None
        photo = (photos.get(product.id) or "").strip() or None
        taken_at = product.stock if photo_stock is None else photo_stock.get(product.id)
        lines.append(
            StockEditLine(
                product=product,
                from_stock=from_stock,
                to_stock=product.stock,
                reason=reason,
                photo_uri=photo,
                photo_stock=taken_at,
            )
        )
    return lines


def validate_stock_edit(lines: Sequence[StockEditLine]) -> None:
    issues: list[ValidationIssue] = []
    missing_photo = [line.label for line in lines if not line.photo_uri]
    if missing_photo:
        issues.append(
            ValidationIssue(field="photo_uri", reason=f"Take a stock photo for: {', '.join(missing_photo)}.")
        )
    stale_photo = [line.label for line in lines if line.photo_uri and line.photo_stock != line.to_stock]
    if stale_photo:
        issues.append(
            ValidationIssue(
                field="photo_stock",
                reason=f"Stock changed after the photo was taken, retake it for: {', '.join(stale_photo)}.",
            )
        )
    missing_reason = [line.label for line in lines if line.delta < 0 and not line.reason]
    if missing_reason:
        issues.append(
            ValidationIssue(
                field="reason",
                reason=f"Enter a reason for reducing stock: {', '.join(missing_reason)}.",
            )
        )
    if issues:
        raise ClientValidationError(issues)
