from .aggregation import (
    aggregate_day_orders,
    build_daily_matrix,
    build_monthly_report,
    effective_quantity,
    group_daily_history,
    tray_count,
)
from .auth_store import AuthStore
from .config import ClientConfig, ConfigError, load_config
from .exceptions import (
    ApiError,
    AuthError,
    ForbiddenError,
    NotFoundError,
    OrderTransitionError,
    SessionExpiredError,
    TransportError,
    UnauthorizedError,
    ValidationError,
)
from .http_client import HttpClient
from .models import LoginRequest, RegisterRequest, SessionData, TokenResponse
from .models_orders import (
    CompositeOrder,
    DailyOrderUpdateRequest,
    Order,
    OrderCreateRequest,
    OrderItem,
    OrderItemRequest,
    OrderStatus,
)
from .models_products import Product, ProductCreateRequest, ProductUpdateRequest
from .models_reports import DailyMatrix, DailyMatrixRow, MonthlyReport, MonthlyReportRow, MonthlyReportTotals
from .order_lifecycle import OrderLifecycle, OrderStatusActions, TransitionOutcome, approval_target, status_actions
from .order_validation import (
    ClientValidationError,
    ValidationIssue,
    parse_target_quantity,
    validate_order_create_payload,
)
from .reconciliation import (
    BatchResult,
    PendingEdits,
    ReconciliationPlan,
    ReconciliationPlanner,
    UpsertResult,
    execute_plan,
    plan_reconciliation,
)
from .sequencing import FetchSequencer, FetchTicket
from .session import ApiSession, SessionContext
from .session_guard import GuardedRequest, SessionGuard
from .ui_errors import UserFacingError, to_user_facing_error

__all__ = [
    "ApiError",
    "ApiSession",
    "AuthError",
    "AuthStore",
    "BatchResult",
    "ClientConfig",
    "ClientValidationError",
    "CompositeOrder",
    "ConfigError",
    "DailyMatrix",
    "DailyMatrixRow",
    "DailyOrderUpdateRequest",
    "FetchSequencer",
    "FetchTicket",
    "ForbiddenError",
    "GuardedRequest",
    "HttpClient",
    "LoginRequest",
    "MonthlyReport",
    "MonthlyReportRow",
    "MonthlyReportTotals",
    "NotFoundError",
    "Order",
    "OrderCreateRequest",
    "OrderItem",
    "OrderItemRequest",
    "OrderLifecycle",
    "OrderStatus",
    "OrderStatusActions",
    "OrderTransitionError",
    "PendingEdits",
    "Product",
    "ProductCreateRequest",
    "ProductUpdateRequest",
    "ReconciliationPlan",
    "ReconciliationPlanner",
    "RegisterRequest",
    "SessionContext",
    "SessionData",
    "SessionExpiredError",
    "SessionGuard",
    "TokenResponse",
    "TransitionOutcome",
    "TransportError",
    "UnauthorizedError",
    "UpsertResult",
    "UserFacingError",
    "ValidationError",
    "ValidationIssue",
    "aggregate_day_orders",
    "approval_target",
    "build_daily_matrix",
    "build_monthly_report",
    "effective_quantity",
    "execute_plan",
    "group_daily_history",
    "load_config",
    "parse_target_quantity",
    "plan_reconciliation",
    "status_actions",
    "to_user_facing_error",
    "tray_count",
    "validate_order_create_payload",
]
