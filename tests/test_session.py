from __future__ import annotations

import pytest

from kasir_client_sdk.config import ClientConfig
from kasir_client_sdk.exceptions import OperationInProgressError, PrinterNotConfiguredError
from kasir_client_sdk.models import PaymentMethod, PrinterDevice, Product, TransactionStatus
from kasir_client_sdk.session import PosSession
from kasir_client_sdk.telemetry import TelemetryLogger
from kasir_client_sdk.validation import ClientValidationError


class RecordingPrinter:
    def __init__(self) -> None:
        self.connected: list[str] = []
        self.printed: list[tuple[str, str, int, str | None]] = []

    def list_devices(self) -> list[PrinterDevice]:
        return [PrinterDevice(name="RPP02N", address="00:11:22")]

    def connect(self, address: str) -> None:
        self.connected.append(address)

    def print_receipt(self, store_name, transaction, lines, note) -> None:
        self.printed.append((store_name, transaction.receipt_no, len(lines), note))


@pytest.fixture
def session(config: ClientConfig, gateway, tmp_path) -> PosSession:
    telemetry = TelemetryLogger(app_name="kasir", enabled=True, log_file=tmp_path / "telemetry.jsonl")
    pos = PosSession(config=config, gateway=gateway, telemetry=telemetry)
    pos.context.set_products([Product(id="p1", name="Kopi", price=20000, stock=5)])
    return pos


def test_finalize_sale_records_decrements_and_syncs(session: PosSession, gateway) -> None:
    session.cart.add_item("p1", "Kopi", 20000)
    session.cart.inc_qty("p1")

    result = session.finalize_sale(payment_method=PaymentMethod.CASH, paid_amount=40000)

    assert result.transaction.total_amount == 40000
    assert result.transaction.change_amount == 0
    assert result.transaction.status == TransactionStatus.SYNCED
    assert result.sync_report is not None and result.sync_report.synced == [result.transaction.local_id]
    assert session.context.find_product("1").stock == 3
    assert session.cart.is_empty()
    assert result.transaction.receipt_no.startswith("BYJ")


def test_finalize_sale_offline_keeps_pending(session: PosSession, gateway) -> None:
    gateway.fail_header_totals = {20000}
    session.cart.add_item("1", "Kopi", 20000)

    result = session.finalize_sale(payment_method="QRIS")

    assert result.transaction.status == TransactionStatus.PENDING
    assert result.transaction.paid_amount == 20000
    assert session.context.pending_transactions() == [result.transaction]
    assert session.context.find_product("1").stock == 4


def test_finalize_sale_rejects_before_writing(session: PosSession) -> None:
    session.cart.add_item("1", "Kopi", 20000)
    with pytest.raises(ClientValidationError):
        session.finalize_sale(paid_amount=1000)
    assert session.context.transactions == []
    assert session.context.find_product("1").stock == 5
    assert not session.cart.is_empty()


def test_overlapping_passes_are_rejected(session: PosSession, gateway) -> None:
    session._hydrate_lock.acquire()
    try:
        with pytest.raises(OperationInProgressError):
            session.hydrate()
        with pytest.raises(OperationInProgressError):
            session.clear_local_cache()
    finally:
        session._hydrate_lock.release()

    session._sync_lock.acquire()
    try:
        with pytest.raises(OperationInProgressError):
            session.sync_pending_transactions()
        session.cart.add_item("1", "Kopi", 20000)
        result = session.finalize_sale()
    finally:
        session._sync_lock.release()
    assert result.sync_report is None
    assert result.transaction.is_pending
    assert gateway.created == []


def test_print_receipt_requires_default_printer(session: PosSession) -> None:
    printer = RecordingPrinter()
    session.cart.add_item("1", "Kopi", 20000)
    result = session.finalize_sale(sync=False)

    with pytest.raises(PrinterNotConfiguredError):
        session.print_receipt(printer, result.transaction)

    session.settings.set_default_printer(printer.list_devices()[0])
    session.print_receipt(printer, result.transaction)
    assert printer.connected == ["00:11:22"]
    assert printer.printed == [("Kasir", result.transaction.receipt_no, 1, None)]


def test_default_printer_survives_restart(session: PosSession, config: ClientConfig, gateway) -> None:
    session.settings.set_default_printer(PrinterDevice(name="RPP02N", address="00:11:22"))
    restarted = PosSession(config=config, gateway=gateway, telemetry=TelemetryLogger(app_name="kasir", enabled=False))
    assert restarted.settings.default_printer == PrinterDevice(name="RPP02N", address="00:11:22")

    restarted.settings.set_default_printer(None)
    assert PosSession(config=config, gateway=gateway).settings.default_printer is None


def test_sale_telemetry_is_written(session: PosSession, tmp_path) -> None:
    session.cart.add_item("1", "Kopi", 20000)
    session.finalize_sale(sync=False)
    lines = (tmp_path / "telemetry.jsonl").read_text(encoding="utf-8").splitlines()
    assert any('"category": "sale"' in line for line in lines)


def test_stock_edit_through_session(session: PosSession, gateway, tmp_path) -> None:
    draft = [session.context.find_product("1").model_copy(update={"stock": 9})]

    changes = session.apply_stock_edit(draft, photos={"1": "/tmp/kopi.jpg"})

    assert [change.delta for change in changes] == [4]
    assert gateway.stock_inserts == [changes]
    lines = (tmp_path / "telemetry.jsonl").read_text(encoding="utf-8").splitlines()
    assert any('"name": "stock_edit_applied"' in line for line in lines)


def test_hydrate_then_sync_round_trip(session: PosSession, gateway) -> None:
    gateway.products = [Product(id="1", name="Kopi", price=20000, stock=7)]
    session.hydrate()
    assert session.context.find_product("1").stock == 7

    session.cart.add_product(session.context.find_product("1"))
    result = session.finalize_sale(sync=False)
    report = session.sync_pending_transactions()

    assert report.synced == [result.transaction.local_id]
    assert session.context.pending_transactions() == []
