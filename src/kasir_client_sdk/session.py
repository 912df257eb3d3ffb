from __future__ import annotations

import logging
import threading
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Iterator, Mapping, Sequence

from .cart import Cart
from .checkout import build_transaction, validate_checkout
from .config import ClientConfig
from .data_context import DataContext
from .exceptions import OperationInProgressError
from .gateway import Gateway, RemoteGateway
from .http_client import HttpClient, TraceContext
from .local_store import LocalStore
from .models import LocalTransaction, PaymentMethod, Product, StockChange
from .printing import PrinterDriver, print_receipt_for
from .reconciler import Reconciler
from .settings_store import SettingsStore
from .stock import StockService
from .sync_engine import PendingTransactionSyncEngine, SyncReport
from .telemetry import TelemetryLogger, build_event

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SaleResult:
    transaction: LocalTransaction
    sync_report: SyncReport | None = None


@dataclass
class PosSession:
    """Everything one cashier device needs, wired around a single DataContext."""

    config: ClientConfig
    store: LocalStore | None = None
    gateway: Gateway | None = None
    trace: TraceContext | None = None
    telemetry: TelemetryLogger | None = None
    cart: Cart = field(default_factory=Cart)

    def __post_init__(self) -> None:
        self.store = self.store or LocalStore(base_dir=self.config.data_path)
        self.trace = self.trace or TraceContext()
        if self.gateway is None:
            self.gateway = RemoteGateway(
                http=HttpClient(config=self.config, trace=self.trace),
                api_key=self.config.api_key,
                photo_bucket=self.config.photo_bucket,
            )
        if self.telemetry is None:
            data_path = self.config.data_path
            log_file = data_path / "telemetry" / "kasir.jsonl" if data_path else None
            self.telemetry = TelemetryLogger(app_name="kasir", enabled=self.config.telemetry_enabled, log_file=log_file)
        self.context = DataContext(store=self.store)
        self.settings = SettingsStore(store=self.store)
        self.settings.hydrate()
        self.reconciler = Reconciler(context=self.context, gateway=self.gateway, telemetry=self.telemetry)
        self.sync_engine = PendingTransactionSyncEngine(
            context=self.context,
            gateway=self.gateway,
            telemetry=self.telemetry,
        )
        self.stock = StockService(context=self.context, gateway=self.gateway)
        self._hydrate_lock = threading.Lock()
        self._sync_lock = threading.Lock()

    @contextmanager
    def _single_flight(self, lock: threading.Lock, operation: str) -> Iterator[None]:
        if not lock.acquire(blocking=False):
            raise OperationInProgressError(operation)
        try:
            yield
        finally:
            lock.release()

    def hydrate(self) -> None:
        with self._single_flight(self._hydrate_lock, "hydrate"):
            self.reconciler.hydrate()

    def clear_local_cache(self) -> None:
        with self._single_flight(self._hydrate_lock, "hydrate"):
            self.reconciler.clear_local_cache()

    def sync_pending_transactions(self) -> SyncReport:
        with self._single_flight(self._sync_lock, "sync"):
            return self.sync_engine.sync_pending_transactions()

    def finalize_sale(
        self,
        *,
        payment_method: PaymentMethod | str = PaymentMethod.CASH,
        paid_amount: int | None = None,
        sync: bool = True,
    ) -> SaleResult:
        quote = validate_checkout(self.cart, payment_method=payment_method, paid_amount=paid_amount)
        transaction = build_transaction(quote, receipt_prefix=self.config.receipt_prefix)
        self.context.add_transaction(transaction)
        self.stock.decrement_stock_by_items(transaction.items)
        self.cart.clear()
        logger.info(
            "sale_recorded",
            extra={"local_id": transaction.local_id, "total": transaction.total_amount},
        )
        self._emit_sale(transaction)

        report: SyncReport | None = None
        if sync:
            try:
                report = self.sync_pending_transactions()
            except OperationInProgressError:
                logger.info("sale_sync_deferred", extra={"local_id": transaction.local_id})
        recorded = next(
            (candidate for candidate in self.context.transactions if candidate.local_id == transaction.local_id),
            transaction,
        )
        return SaleResult(transaction=recorded, sync_report=report)

    def apply_stock_edit(
        self,
        draft: Sequence[Product],
        *,
        reasons: Mapping[str, str] | None = None,
        photos: Mapping[str, str] | None = None,
        photo_stock: Mapping[str, int] | None = None,
    ) -> list[StockChange]:
        changes = self.stock.apply_manual_edit(draft, reasons=reasons, photos=photos, photo_stock=photo_stock)
        if changes and self.telemetry is not None:
            self.telemetry.emit(
                build_event(
                    category="stock",
                    name="stock_edit_applied",
                    module="session",
                    action="manual_edit",
                    success=True,
                    context={"changed": len(changes)},
                )
            )
        return changes

    def print_receipt(self, driver: PrinterDriver, transaction: LocalTransaction) -> None:
        print_receipt_for(driver, self.settings, transaction, store_name=self.config.store_name)

    def _emit_sale(self, transaction: LocalTransaction) -> None:
        if self.telemetry is None:
            return
        self.telemetry.emit(
            build_event(
                category="sale",
                name="sale_recorded",
                module="session",
                action="finalize",
                success=True,
                context={"payment_method": transaction.payment_method.value, "lines": len(transaction.items)},
            )
        )
