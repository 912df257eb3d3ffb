from __future__ import annotations

from dataclasses import dataclass, field

from .local_store import (
    LocalStore,
    save_products,
    save_stock_changes,
    save_transactions,
)
from .models import LocalTransaction, Product, StockChange


@dataclass
class DataContext:
    """In-memory snapshot of the three local collections.

    Every component that reads or writes products, transactions or stock
    changes receives the same instance. ``revision`` increases on every
    published change so observers can tell snapshots apart.
    """

    store: LocalStore
    products: list[Product] = field(default_factory=list)
    transactions: list[LocalTransaction] = field(default_factory=list)
    stock_changes: list[StockChange] = field(default_factory=list)
    hydrated: bool = False
    revision: int = 0

    def publish(
        self,
        *,
        products: list[Product] | None = None,
        transactions: list[LocalTransaction] | None = None,
        stock_changes: list[StockChange] | None = None,
        hydrated: bool | None = None,
    ) -> int:
        if products is not None:
            self.products = list(products)
        if transactions is not None:
            self.transactions = list(transactions)
        if stock_changes is not None:
            self.stock_changes = list(stock_changes)
        if hydrated is not None:
            self.hydrated = hydrated
        self.revision += 1
        return self.revision

    def set_products(self, products: list[Product]) -> None:
        self.publish(products=products)
        save_products(self.store, self.products)

    def set_transactions(self, transactions: list[LocalTransaction]) -> None:
        self.publish(transactions=transactions)
        save_transactions(self.store, self.transactions)

    def set_stock_changes(self, changes: list[StockChange]) -> None:
        self.publish(stock_changes=changes)
        save_stock_changes(self.store, self.stock_changes)

    def add_transaction(self, transaction: LocalTransaction) -> None:
        self.set_transactions([transaction, *self.transactions])

    def update_transaction(self, local_id: str, **changes: object) -> LocalTransaction | None:
        updated: LocalTransaction | None = None
        next_transactions: list[LocalTransaction] = []
        for transaction in self.transactions:
            if transaction.local_id == local_id:
                transaction = transaction.model_copy(update=changes)
                updated = transaction
            next_transactions.append(transaction)
        if updated is not None:
            self.set_transactions(next_transactions)
        return updated

    def pending_transactions(self) -> list[LocalTransaction]:
        return [transaction for transaction in self.transactions if transaction.is_pending]

    def find_product(self, product_id: str) -> Product | None:
        for product in self.products:
            if product.id == product_id:
                return product
        return None

    def reset(self) -> None:
        self.publish(products=[], transactions=[], stock_changes=[], hydrated=False)
