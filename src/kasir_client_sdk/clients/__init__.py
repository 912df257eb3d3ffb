from .products_client import ProductsClient
from .stock_history_client import StockHistoryClient
from .storage_client import StorageClient
from .transactions_client import TransactionsClient

__all__ = [
    "ProductsClient",
    "StockHistoryClient",
    "StorageClient",
    "TransactionsClient",
]
