from .auth_service import AuthService
from .orders_service import OrderBoardService, OrdersServiceError, SaveOutcome, SaveStatus

__all__ = [
    "AuthService",
    "OrderBoardService",
    "OrdersServiceError",
    "SaveOutcome",
    "SaveStatus",
]
