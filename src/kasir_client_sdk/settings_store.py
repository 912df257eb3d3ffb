from __future__ import annotations

from dataclasses import dataclass, field

from pydantic import ValidationError as PydanticValidationError

from .local_store import DEFAULT_PRINTER_KEY, LocalStore
from .models import PrinterDevice


@dataclass
class SettingsStore:
    store: LocalStore
    default_printer: PrinterDevice | None = field(default=None, init=False)

    def hydrate(self) -> PrinterDevice | None:
        raw = self.store.load(DEFAULT_PRINTER_KEY, None)
        if not isinstance(raw, dict):
            self.default_printer = None
            return None
        try:
            self.default_printer = PrinterDevice.model_validate(raw)
        except PydanticValidationError:
            self.default_printer = None
        return self.default_printer

    def set_default_printer(self, printer: PrinterDevice | None) -> None:
        self.default_printer = printer
        if printer is None:
            self.store.remove(DEFAULT_PRINTER_KEY)
        else:
            self.store.save(DEFAULT_PRINTER_KEY, printer.model_dump(mode="json"))
