from __future__ import annotations

import logging
from typing import Protocol, Sequence

from .exceptions import PrinterNotConfiguredError
from .models import CartLine, LocalTransaction, PrinterDevice
from .settings_store import SettingsStore

logger = logging.getLogger(__name__)


class PrinterDriver(Protocol):
    """Thermal printer collaborator; layout and transport live behind it."""

    def list_devices(self) -> list[PrinterDevice]: ...

    def connect(self, address: str) -> None: ...

    def print_receipt(
        self,
        store_name: str,
        transaction: LocalTransaction,
        lines: Sequence[CartLine],
        note: str | None,
    ) -> None: ...


def print_receipt_for(
    driver: PrinterDriver,
    settings: SettingsStore,
    transaction: LocalTransaction,
    *,
    store_name: str,
) -> None:
    printer = settings.default_printer
    if printer is None or not printer.address:
        raise PrinterNotConfiguredError()
    driver.connect(printer.address)
    driver.print_receipt(store_name, transaction, transaction.items, transaction.note)
    logger.info("receipt_printed", extra={"receipt_no": transaction.receipt_no, "printer": printer.name})
