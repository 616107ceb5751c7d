from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date, datetime
from enum import Enum
from typing import Any, Callable, Mapping, Sequence

from ..aggregation import (
    aggregate_day_orders,
    build_daily_matrix,
    build_monthly_report,
    group_daily_history,
    orders_on_day,
)
from ..exceptions import ApiError
from ..models_orders import CompositeOrder, Order, OrderStatus
from ..models_products import Product
from ..models_reports import DailyMatrix, MonthlyReport
from ..order_lifecycle import OrderLifecycle, TransitionOutcome
from ..order_validation import ClientValidationError, validate_order_create_payload
from ..reconciliation import PairKey, PendingEdits, ReconciliationPlanner
from ..sequencing import FetchSequencer, FetchTicket
from ..session import ApiSession
from ..ui_errors import to_user_facing_error

logger = logging.getLogger(__name__)

ORDERS_FETCH_KEY = "orders"
CATALOG_FETCH_KEY = "catalog"


@dataclass
class OrdersServiceError(RuntimeError):
    message: str
    details: str | None = None

    def __str__(self) -> str:
        return self.message


class SaveStatus(str, Enum):
    NO_CHANGES = "no_changes"
    SAVED = "saved"
    FAILED = "failed"


@dataclass(frozen=True)
class SaveOutcome:
    status: SaveStatus
    message: str
    saved: int = 0
    failed: tuple[PairKey, ...] = ()
    refreshed: bool = False


class OrderBoardService:
    """The operator's board: one order snapshot and every view derived from it.

    Writes never touch the snapshot directly. Each successful write is
    followed by a full refetch, and a fetch that resolves after a newer one
    was issued is dropped.
    """

    def __init__(self, session: ApiSession, *, clock: Callable[[], datetime] | None = None) -> None:
        self.session = session
        self.tz = session.config.tz
        self._clock = clock or (lambda: datetime.now(self.tz))
        self.orders: tuple[Order, ...] = ()
        self.catalog: tuple[Product, ...] = ()
        self.pending = PendingEdits()
        self.sequencer = FetchSequencer()
        self.last_error: str | None = None
        orders_client = session.orders_client()
        self.lifecycle = OrderLifecycle(orders_client)
        self.planner = ReconciliationPlanner(
            orders_client,
            self.tz,
            max_workers=session.config.max_parallel_upserts,
        )

    def today(self) -> date:
        now = self._clock()
        return now.astimezone(self.tz).date() if now.tzinfo else now.date()

    def refresh_orders(self) -> bool:
        """Refetch the order list. Returns False when a newer fetch superseded this one."""
        ticket = self.sequencer.issue(ORDERS_FETCH_KEY)
        try:
            orders = self.session.orders_client().list_orders()
        except Exception as exc:
            logger.warning("orders_fetch_failed", extra={"version": ticket.version})
            raise self._fail(exc) from exc
        return self._apply_orders(ticket, orders)

    def load_catalog(self) -> tuple[Product, ...]:
        ticket = self.sequencer.issue(CATALOG_FETCH_KEY)
        try:
            products = self.session.products_client().list_products()
        except Exception as exc:
            logger.warning("catalog_fetch_failed")
            raise self._fail(exc) from exc
        if self.sequencer.is_current(ticket):
            self.catalog = tuple(products)
        return self.catalog

    def daily_matrix(self, business_date: date | None = None) -> DailyMatrix:
        return build_daily_matrix(self.orders, self.catalog, business_date or self.today(), self.tz)

    def monthly_report(self, shop: str, year: int | None = None, month: int | None = None) -> MonthlyReport:
        today = self.today()
        return build_monthly_report(
            self.orders,
            self.catalog,
            shop,
            year or today.year,
            month or today.month,
            today=today,
            tz=self.tz,
        )

    def day_detail(self, shop: str, business_date: date) -> CompositeOrder | None:
        return aggregate_day_orders(self.orders, shop, business_date, self.tz)

    def history(self) -> list[CompositeOrder]:
        return group_daily_history(self.orders, self.tz)

    def orders_for_day(self, business_date: date | None = None) -> list[Order]:
        return orders_on_day(self.orders, business_date or self.today(), self.tz, include_cancelled=True)

    def approve(self, order_id: int) -> TransitionOutcome:
        order = self._find_order(order_id)
        ticket = self.sequencer.issue(ORDERS_FETCH_KEY)
        try:
            outcome = self.lifecycle.approve(order, self.orders)
        except Exception as exc:
            raise self._fail(exc) from exc
        if outcome.changed:
            self._apply_orders(ticket, outcome.orders)
        return outcome

    def set_status(self, order_id: int, status: OrderStatus | str) -> TransitionOutcome:
        order = self._find_order(order_id)
        ticket = self.sequencer.issue(ORDERS_FETCH_KEY)
        try:
            outcome = self.lifecycle.set_status(order, status, self.orders)
        except Exception as exc:
            raise self._fail(exc) from exc
        self._apply_orders(ticket, outcome.orders)
        return outcome

    def place_order(self, items: Sequence[Mapping[str, Any]]) -> Order:
        try:
            request = validate_order_create_payload({"items": list(items)}, now=self._clock())
            order = self.session.orders_client().create_order(request)
        except Exception as exc:
            raise self._fail(exc) from exc
        logger.info("order_created", extra={"order_id": order.id, "items": len(order.items)})
        self._refresh_after_write()
        return order

    def edit_target(self, shop: str, product_id: int, raw: int | str | None) -> int:
        try:
            return self.pending.set(shop, product_id, raw)
        except ClientValidationError as exc:
            raise self._fail(exc) from exc

    def save_targets(self) -> SaveOutcome:
        try:
            plan = self.planner.plan(self.orders, self.catalog, self.pending.as_dict(), self.today())
        except ClientValidationError as exc:
            raise self._fail(exc) from exc
        if plan.is_empty:
            self.pending.clear()
            logger.info("daily_targets_no_changes")
            return SaveOutcome(status=SaveStatus.NO_CHANGES, message="No changes to save")

        logger.info("daily_targets_save_attempt", extra={"upserts": len(plan.upserts)})
        result = self.planner.execute(plan)
        if result.ok:
            self.pending.clear()
            refreshed = self._refresh_after_write()
            logger.info("daily_targets_saved", extra={"upserts": len(result.results)})
            return SaveOutcome(
                status=SaveStatus.SAVED,
                message=f"Saved {len(result.results)} change(s)",
                saved=len(result.results),
                refreshed=refreshed,
            )

        failed = tuple(result.failed_keys)
        self.pending.retain(failed)
        refreshed = self._refresh_after_write()
        first_error = result.failed[0].error
        self.last_error = to_user_facing_error(first_error).message if first_error else "Save failed"
        logger.warning("daily_targets_save_failed", extra={"failed": len(failed), "upserts": len(result.results)})
        return SaveOutcome(
            status=SaveStatus.FAILED,
            message=f"{len(failed)} of {len(result.results)} change(s) could not be saved",
            saved=len(result.results) - len(failed),
            failed=failed,
            refreshed=refreshed,
        )

    def _refresh_after_write(self) -> bool:
        try:
            return self.refresh_orders()
        except OrdersServiceError:
            # The write went through; the stale snapshot stays until the next refetch.
            logger.warning("orders_refetch_after_write_failed")
            return False

    def _apply_orders(self, ticket: FetchTicket, orders: Sequence[Order]) -> bool:
        if not self.sequencer.is_current(ticket):
            logger.info("orders_fetch_superseded", extra={"version": ticket.version})
            return False
        self.orders = tuple(orders)
        self.last_error = None
        return True

    def _find_order(self, order_id: int) -> Order:
        for order in self.orders:
            if order.id == order_id:
                return order
        raise self._fail(OrdersServiceError(message=f"Order {order_id} not found"))

    def _fail(self, exc: Exception) -> OrdersServiceError:
        error = self._normalize_error(exc)
        self.last_error = error.message
        return error

    @staticmethod
    def _normalize_error(exc: Exception) -> OrdersServiceError:
        if isinstance(exc, OrdersServiceError):
            return exc
        if isinstance(exc, ApiError):
            facing = to_user_facing_error(exc)
            return OrdersServiceError(message=facing.message, details=facing.details)
        if isinstance(exc, ClientValidationError):
            return OrdersServiceError(message=str(exc), details="; ".join(
                f"{issue.field}: {issue.reason}" for issue in exc.issues
            ))
        return OrdersServiceError(message=str(exc) or "Order service error")
