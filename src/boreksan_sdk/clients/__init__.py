from .auth import AuthClient
from .orders_client import OrdersClient
from .products_client import ProductsClient

__all__ = [
    "AuthClient",
    "OrdersClient",
    "ProductsClient",
]
