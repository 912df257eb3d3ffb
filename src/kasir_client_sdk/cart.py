from __future__ import annotations

from dataclasses import dataclass, field

from .ids import normalize_product_id
from .models import CartLine, Product


@dataclass
class Cart:
    """Active cart session.

    A line's unit price is frozen when the product is first added; later
    catalog price changes do not touch lines already in the cart.
    """

    lines: list[CartLine] = field(default_factory=list)
    note: str = ""

    def add_item(self, product_id: str, name: str, unit_price: int) -> CartLine:
        key = normalize_product_id(product_id)
        for index, line in enumerate(self.lines):
            if line.product_id == key:
                self.lines[index] = line.model_copy(update={"qty": line.qty + 1})
                return self.lines[index]
        line = CartLine(product_id=key, name=name, unit_price=unit_price, qty=1)
        self.lines.append(line)
        return line

    def add_product(self, product: Product) -> CartLine:
        return self.add_item(product.id, product.name, product.price)

    def inc_qty(self, product_id: str) -> None:
        key = normalize_product_id(product_id)
        self.lines = [
            line.model_copy(update={"qty": line.qty + 1}) if line.product_id == key else line for line in self.lines
        ]

    def dec_qty(self, product_id: str) -> None:
        key = normalize_product_id(product_id)
        next_lines: list[CartLine] = []
        for line in self.lines:
            if line.product_id == key:
                line = line.model_copy(update={"qty": line.qty - 1})
            if line.qty > 0:
                next_lines.append(line)
        self.lines = next_lines

    def remove(self, product_id: str) -> None:
        key = normalize_product_id(product_id)
        self.lines = [line for line in self.lines if line.product_id != key]

    def clear(self) -> None:
        self.lines = []
        self.note = ""

    def set_note(self, note: str) -> None:
        self.note = note

    def subtotal(self) -> int:
        return sum(line.unit_price * line.qty for line in self.lines)

    def is_empty(self) -> bool:
        return not self.lines
