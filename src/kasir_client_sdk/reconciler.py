"""Reconcile the local cache with the remote system of record.

Products and stock history are remote-authoritative: a successful fetch
replaces the local copy outright, even when the server returns nothing.
Transactions are merged instead, because sales recorded offline exist
only on this device until the sync engine has pushed them.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Callable, Iterable, TypeVar

from pydantic import TypeAdapter
from pydantic import ValidationError as PydanticValidationError

from .data_context import DataContext
from .exceptions import ApiError, CollectionFailure, HydrationError
from .gateway import Gateway
from .local_store import (
    clear_collections,
    load_products,
    load_stock_changes,
    load_transactions,
    save_products,
    save_stock_changes,
    save_transactions,
)
from .models import LocalTransaction
from .telemetry import TelemetryLogger, build_event

logger = logging.getLogger(__name__)

T = TypeVar("T")

_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)
_DATETIME = TypeAdapter(datetime)

_FALLBACK_MESSAGES = {
    "products": "Failed to fetch products from server",
    "transactions": "Failed to fetch transactions from server",
    "stock_changes": "Failed to fetch stock history from server",
}


def parse_timestamp(value: str | None) -> datetime:
    if not value:
        return _EPOCH
    try:
        parsed = _DATETIME.validate_python(value)
    except PydanticValidationError:
        return _EPOCH
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def newest_first(records: Iterable[T], created_at: Callable[[T], str | None]) -> list[T]:
    return sorted(records, key=lambda record: parse_timestamp(created_at(record)), reverse=True)


def merge_transactions(
    local: Iterable[LocalTransaction],
    remote: Iterable[LocalTransaction],
) -> list[LocalTransaction]:
    """Merge by identity (remote id, else local id); local entries win."""
    merged: dict[str, LocalTransaction] = {}
    for transaction in remote:
        merged[transaction.identity] = transaction
    for transaction in local:
        merged[transaction.identity] = transaction
    return newest_first(merged.values(), lambda transaction: transaction.created_at)


@dataclass
class Reconciler:
    context: DataContext
    gateway: Gateway
    telemetry: TelemetryLogger | None = None

    def hydrate(self) -> None:
        started = time.monotonic()
        store = self.context.store
        products = load_products(store)
        transactions = load_transactions(store)
        stock_changes = load_stock_changes(store)
        failures: list[CollectionFailure] = []

        try:
            remote_products = self.gateway.list_products()
        except ApiError as exc:
            failures.append(self._failure("products", exc))
        else:
            logger.info("hydrate_products_fetched", extra={"count": len(remote_products)})
            products = remote_products
            save_products(store, products)

        try:
            remote_transactions = self.gateway.list_transactions()
        except ApiError as exc:
            failures.append(self._failure("transactions", exc))
        else:
            logger.info("hydrate_transactions_fetched", extra={"count": len(remote_transactions)})
            pending_local = [transaction for transaction in transactions if transaction.is_pending]
            transactions = merge_transactions(pending_local, remote_transactions)
            save_transactions(store, transactions)

        try:
            remote_changes = self.gateway.list_stock_changes()
        except ApiError as exc:
            failures.append(self._failure("stock_changes", exc))
        else:
            logger.info("hydrate_stock_changes_fetched", extra={"count": len(remote_changes)})
            stock_changes = newest_first(remote_changes, lambda change: change.created_at)
            save_stock_changes(store, stock_changes)

        revision = self.context.publish(
            products=products,
            transactions=transactions,
            stock_changes=stock_changes,
            hydrated=True,
        )
        self._emit(
            success=not failures,
            revision=revision,
            failures=failures,
            duration_ms=int((time.monotonic() - started) * 1000),
        )

        if failures:
            raise HydrationError(failures=failures)

    def clear_local_cache(self) -> None:
        logger.info("local_cache_clear")
        clear_collections(self.context.store)
        self.context.reset()

    def _failure(self, collection: str, exc: ApiError) -> CollectionFailure:
        logger.warning(
            "hydrate_fetch_failed",
            extra={"collection": collection, "code": exc.code, "trace_id": exc.trace_id},
        )
        message = (exc.message or "").strip() or _FALLBACK_MESSAGES[collection]
        return CollectionFailure(collection=collection, message=message, code=exc.code)

    def _emit(self, *, success: bool, revision: int, failures: list[CollectionFailure], duration_ms: int) -> None:
        if self.telemetry is None:
            return
        self.telemetry.emit(
            build_event(
                category="sync",
                name="hydrate",
                module="reconciler",
                action="hydrate",
                success=success,
                duration_ms=duration_ms,
                error_code=failures[0].code if failures else None,
                context={"revision": revision, "failed_collections": [failure.collection for failure in failures]},
            )
        )
