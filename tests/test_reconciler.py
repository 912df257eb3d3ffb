from __future__ import annotations

import pytest

from kasir_client_sdk.data_context import DataContext
from kasir_client_sdk.exceptions import HydrationError
from kasir_client_sdk.local_store import load_products, load_stock_changes, load_transactions, save_products, save_transactions
from kasir_client_sdk.models import CartLine, LocalTransaction, Product, StockChange, TransactionStatus
from kasir_client_sdk.reconciler import Reconciler, merge_transactions, parse_timestamp
from kasir_client_sdk.ui_errors import RECOVERY_CLEAR_CACHE, to_user_facing_error


def _tx(local_id: str, created_at: str, *, status=TransactionStatus.PENDING, remote_id=None) -> LocalTransaction:
    return LocalTransaction(
        local_id=local_id,
        idempotency_key=f"idem-{local_id}",
        created_at=created_at,
        total_amount=1000,
        items=[CartLine(product_id="1", name="Kopi", unit_price=1000, qty=1)],
        status=status,
        remote_id=remote_id,
    )


def _remote(remote_id: str, created_at: str) -> LocalTransaction:
    return _tx(f"remote-{remote_id}", created_at, status=TransactionStatus.SYNCED, remote_id=remote_id)


def test_parse_timestamp_fallbacks() -> None:
    assert parse_timestamp("2024-05-01T00:00:00Z").utcoffset().total_seconds() == 0
    assert parse_timestamp("garbage").year == 1970
    assert parse_timestamp(None).year == 1970


def test_parse_timestamp_accepts_trimmed_fractions() -> None:
    parsed = parse_timestamp("2024-05-01T10:11:12.12345+00:00")
    assert (parsed.year, parsed.second, parsed.microsecond) == (2024, 12, 123450)
    assert parse_timestamp("2024-05-01T10:11:12.1+00:00").microsecond == 100000
    newer = _remote("2", "2024-05-01T10:11:12.5+00:00")
    older = _remote("1", "2024-05-01T10:11:12.12345+00:00")
    assert [transaction.remote_id for transaction in merge_transactions([], [older, newer])] == ["2", "1"]


def test_merge_prefers_local_and_sorts_newest_first() -> None:
    local = [_tx("a", "2024-05-01T10:00:00+00:00", status=TransactionStatus.SYNCED, remote_id="5")]
    remote = [_remote("5", "2024-05-01T09:00:00+00:00"), _remote("6", "2024-05-02T09:00:00+00:00")]
    merged = merge_transactions(local, remote)
    assert [transaction.identity for transaction in merged] == ["remote:6", "remote:5"]
    assert merged[1].local_id == "a"


def test_hydrate_keeps_pending_and_replaces_synced(context: DataContext, gateway) -> None:
    pending = _tx("p-1", "2024-05-03T08:00:00+00:00")
    stale_synced = _tx("s-1", "2024-04-01T08:00:00+00:00", status=TransactionStatus.SYNCED, remote_id="1")
    save_transactions(context.store, [pending, stale_synced])
    gateway.transactions = [_remote("2", "2024-05-02T08:00:00+00:00")]

    Reconciler(context=context, gateway=gateway).hydrate()

    assert [transaction.identity for transaction in context.transactions] == ["local:p-1", "remote:2"]
    assert context.hydrated is True
    assert [transaction.identity for transaction in load_transactions(context.store)] == ["local:p-1", "remote:2"]


def test_empty_remote_replaces_products_and_history(context: DataContext, gateway) -> None:
    save_products(context.store, [Product(id="1", name="Kopi", stock=3)])
    context.store.save(
        "local.stockChanges.v1",
        [StockChange(id="x", product_id="1", created_at="2024-01-01T00:00:00+00:00").model_dump(mode="json")],
    )

    Reconciler(context=context, gateway=gateway).hydrate()

    assert context.products == []
    assert context.stock_changes == []
    assert load_products(context.store) == []
    assert load_stock_changes(context.store) == []


def test_partial_failure_publishes_then_raises(context: DataContext, gateway) -> None:
    cached = [Product(id="1", name="Kopi", stock=3)]
    save_products(context.store, cached)
    gateway.fail_lists = {"products"}
    gateway.stock_changes = [
        StockChange(id="9", product_id="1", delta=1, created_at="2024-05-01T00:00:00+00:00"),
    ]

    with pytest.raises(HydrationError) as excinfo:
        Reconciler(context=context, gateway=gateway).hydrate()

    assert excinfo.value.collections == ["products"]
    assert excinfo.value.message == "products down"
    assert context.products == cached
    assert [change.id for change in context.stock_changes] == ["9"]
    assert context.hydrated is True

    error = to_user_facing_error(excinfo.value)
    assert error.blocking is False
    assert error.recovery_action == RECOVERY_CLEAR_CACHE


def test_failed_transaction_fetch_leaves_local_untouched(context: DataContext, gateway) -> None:
    local = [
        _tx("p-1", "2024-05-03T08:00:00+00:00"),
        _tx("s-1", "2024-04-01T08:00:00+00:00", status=TransactionStatus.SYNCED, remote_id="1"),
    ]
    save_transactions(context.store, local)
    gateway.fail_lists = {"transactions"}

    with pytest.raises(HydrationError):
        Reconciler(context=context, gateway=gateway).hydrate()

    assert context.transactions == local


def test_hydrate_twice_is_stable(context: DataContext, gateway) -> None:
    gateway.products = [Product(id="1", name="Kopi", price=20000, stock=4)]
    gateway.transactions = [_remote("2", "2024-05-02T08:00:00+00:00"), _remote("3", "2024-05-03T08:00:00+00:00")]
    reconciler = Reconciler(context=context, gateway=gateway)

    reconciler.hydrate()
    first = (list(context.products), list(context.transactions), list(context.stock_changes))
    reconciler.hydrate()

    assert (context.products, context.transactions, context.stock_changes) == first


def test_clear_local_cache(context: DataContext, gateway) -> None:
    gateway.products = [Product(id="1")]
    reconciler = Reconciler(context=context, gateway=gateway)
    reconciler.hydrate()

    reconciler.clear_local_cache()

    assert context.products == []
    assert context.hydrated is False
    assert context.store.load("local.products.v1", None) is None


def test_undecodable_cache_does_not_break_hydrate(context: DataContext, gateway) -> None:
    path = context.store.base_dir / "local.products.v1.json"
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_bytes(b"\xff\xfe[garbage")
    gateway.fail_lists = {"products"}

    with pytest.raises(HydrationError):
        Reconciler(context=context, gateway=gateway).hydrate()

    assert context.products == []
    assert context.hydrated is True
