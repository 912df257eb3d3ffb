from __future__ import annotations

import json
import logging
import os
import tempfile
from dataclasses import dataclass
from pathlib import Path
from typing import Any, TypeVar

from platformdirs import user_data_dir
from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError

from .models import LocalTransaction, Product, StockChange

logger = logging.getLogger(__name__)

PRODUCTS_KEY = "local.products.v1"
TRANSACTIONS_KEY = "local.transactions.v1"
STOCK_CHANGES_KEY = "local.stockChanges.v1"
DEFAULT_PRINTER_KEY = "settings.defaultPrinter.v1"

COLLECTION_KEYS = (PRODUCTS_KEY, TRANSACTIONS_KEY, STOCK_CHANGES_KEY)

T = TypeVar("T")
M = TypeVar("M", bound=BaseModel)


@dataclass
class LocalStore:
    """Durable key/value storage, one JSON file per key.

    Reads never raise: a missing, unreadable or malformed blob yields the
    caller's default so a corrupt cache cannot break hydration.
    """

    app_name: str = "kasir"
    base_dir: str | Path | None = None

    def _dir(self) -> Path:
        base = Path(self.base_dir) if self.base_dir else Path(user_data_dir(self.app_name, "Kasir"))
        base.mkdir(parents=True, exist_ok=True)
        return base

    def _path(self, key: str) -> Path:
        return self._dir() / f"{key}.json"

    def load(self, key: str, default: T) -> Any | T:
        path = self._path(key)
        if not path.exists():
            return default
        try:
            raw = path.read_text(encoding="utf-8")
        except OSError:
            logger.warning("local_store_unreadable", extra={"key": key})
            return default
        except UnicodeDecodeError:
            logger.warning("local_store_malformed", extra={"key": key})
            return default
        if not raw.strip():
            return default
        try:
            return json.loads(raw)
        except json.JSONDecodeError:
            logger.warning("local_store_malformed", extra={"key": key})
            return default

    def save(self, key: str, value: Any) -> None:
        path = self._path(key)
        payload = json.dumps(value, ensure_ascii=False)
        fd, tmp_name = tempfile.mkstemp(dir=path.parent, prefix=f".{key}.", suffix=".tmp")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as fp:
                fp.write(payload)
            os.replace(tmp_name, path)
        except BaseException:
            Path(tmp_name).unlink(missing_ok=True)
            raise

    def remove(self, key: str) -> None:
        self._path(key).unlink(missing_ok=True)


def _load_models(store: LocalStore, key: str, model: type[M]) -> list[M]:
    raw = store.load(key, [])
    if not isinstance(raw, list):
        logger.warning("local_store_not_a_list", extra={"key": key})
        return []
    records: list[M] = []
    for entry in raw:
        if not isinstance(entry, dict):
            continue
        try:
            records.append(model.model_validate(entry))
        except PydanticValidationError:
            logger.warning("local_store_record_dropped", extra={"key": key})
    return records


def _dump_models(records: list[M]) -> list[dict[str, Any]]:
    return [record.model_dump(mode="json") for record in records]


def load_products(store: LocalStore) -> list[Product]:
    return _load_models(store, PRODUCTS_KEY, Product)


def save_products(store: LocalStore, products: list[Product]) -> None:
    store.save(PRODUCTS_KEY, _dump_models(products))


def load_transactions(store: LocalStore) -> list[LocalTransaction]:
    return _load_models(store, TRANSACTIONS_KEY, LocalTransaction)


def save_transactions(store: LocalStore, transactions: list[LocalTransaction]) -> None:
    store.save(TRANSACTIONS_KEY, _dump_models(transactions))


def load_stock_changes(store: LocalStore) -> list[StockChange]:
    return _load_models(store, STOCK_CHANGES_KEY, StockChange)


def save_stock_changes(store: LocalStore, changes: list[StockChange]) -> None:
    store.save(STOCK_CHANGES_KEY, _dump_models(changes))


def clear_collections(store: LocalStore) -> None:
    for key in COLLECTION_KEYS:
        store.remove(key)
