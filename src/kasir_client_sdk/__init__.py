from .cart import Cart
from .checkout import build_transaction, compute_payment_totals, make_receipt_no, validate_checkout
from .config import ClientConfig, ConfigError, load_config
from .data_context import DataContext
from .exceptions import (
    ApiError,
    AuthError,
    CollectionFailure,
    ConflictError,
    HydrationError,
    NotFoundError,
    OperationInProgressError,
    PrinterNotConfiguredError,
    ServerError,
    TransportError,
    ValidationError,
)
from .gateway import Gateway, RemoteGateway
from .http_client import HttpClient, TraceContext
from .idempotency import TransactionKeys, new_transaction_keys
from .local_store import LocalStore
from .models import (
    CartLine,
    LocalTransaction,
    PaymentMethod,
    PrinterDevice,
    Product,
    StockChange,
    TransactionStatus,
)
from .reconciler import Reconciler, merge_transactions
from .reports import daily_product_sales, stock_status
from .session import PosSession, SaleResult
from .settings_store import SettingsStore
from .stock import StockService
from .sync_engine import PendingTransactionSyncEngine, SyncReport
from .ui_errors import UserFacingError, to_user_facing_error
from .validation import ClientValidationError, ValidationIssue

__all__ = [
    "ApiError",
    "AuthError",
    "Cart",
    "CartLine",
    "ClientConfig",
    "ClientValidationError",
    "CollectionFailure",
    "ConfigError",
    "ConflictError",
    "DataContext",
    "Gateway",
    "HttpClient",
    "HydrationError",
    "LocalStore",
    "LocalTransaction",
    "NotFoundError",
    "OperationInProgressError",
    "PaymentMethod",
    "PendingTransactionSyncEngine",
    "PosSession",
    "PrinterDevice",
    "PrinterNotConfiguredError",
    "Product",
    "Reconciler",
    "RemoteGateway",
    "SaleResult",
    "ServerError",
    "SettingsStore",
    "StockChange",
    "StockService",
    "SyncReport",
    "TraceContext",
    "TransactionKeys",
    "TransactionStatus",
    "TransportError",
    "UserFacingError",
    "ValidationError",
    "ValidationIssue",
    "build_transaction",
    "compute_payment_totals",
    "daily_product_sales",
    "load_config",
    "make_receipt_no",
    "merge_transactions",
    "new_transaction_keys",
    "stock_status",
    "to_user_facing_error",
    "validate_checkout",
]
