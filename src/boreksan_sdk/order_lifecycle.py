from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable, Sequence

from .clients.orders_client import OrdersClient
from .exceptions import OrderTransitionError
from .models_orders import Order, OrderStatus

logger = logging.getLogger(__name__)

STATUS_LABELS: dict[OrderStatus, str] = {
    OrderStatus.WAITING: "BEKLİYOR",
    OrderStatus.PREPARING: "HAZIRLANIYOR",
    OrderStatus.ON_WAY: "YOLDA",
    OrderStatus.DELIVERED: "TESLİM EDİLDİ",
    OrderStatus.CANCELLED: "İPTAL",
}
TERMINAL_STATUSES = frozenset({OrderStatus.DELIVERED, OrderStatus.CANCELLED})


@dataclass(frozen=True)
class OrderStatusActions:
    can_approve: bool
    is_terminal: bool
    status_options: tuple[OrderStatus, ...]


def status_actions(status: OrderStatus | str) -> OrderStatusActions:
    # Operators may move any order to any status, terminal ones included.
    value = OrderStatus(status)
    return OrderStatusActions(
        can_approve=value == OrderStatus.WAITING,
        is_terminal=value in TERMINAL_STATUSES,
        status_options=tuple(OrderStatus),
    )


def approval_target(status: OrderStatus | str, order_id: int | None = None) -> OrderStatus | None:
    """Status an approval moves to, or ``None`` when the order is already approved."""
    value = OrderStatus(status)
    if value == OrderStatus.WAITING:
        return OrderStatus.PREPARING
    if value == OrderStatus.PREPARING:
        return None
    raise OrderTransitionError(order_id, value.value, "approve")


@dataclass(frozen=True)
class TransitionOutcome:
    order_id: int
    previous_status: OrderStatus
    status: OrderStatus
    changed: bool
    orders: tuple[Order, ...]


class OrderLifecycle:
    """Applies status changes through the order store, then refetches the full list.

    Nothing is updated optimistically: a failed write or refetch raises and
    the caller keeps whatever snapshot it already had.
    """

    def __init__(
        self,
        orders_client: OrdersClient,
        fetch_orders: Callable[[], Sequence[Order]] | None = None,
    ) -> None:
        self.orders_client = orders_client
        self._fetch_orders = fetch_orders or orders_client.list_orders

    def approve(self, order: Order, snapshot: Sequence[Order] = ()) -> TransitionOutcome:
        current = _current_status(order, snapshot)
        target = approval_target(current, order.id)
        if target is None:
            logger.info("order_approve_noop", extra={"order_id": order.id})
            return TransitionOutcome(
                order_id=order.id,
                previous_status=current,
                status=current,
                changed=False,
                orders=tuple(snapshot),
            )
        return self._apply(order.id, current, target)

    def set_status(
        self,
        order: Order,
        target: OrderStatus | str,
        snapshot: Sequence[Order] = (),
    ) -> TransitionOutcome:
        return self._apply(order.id, _current_status(order, snapshot), OrderStatus(target))

    def _apply(self, order_id: int, current: OrderStatus, target: OrderStatus) -> TransitionOutcome:
        logger.info(
            "order_status_update_attempt",
            extra={"order_id": order_id, "from_status": current.value, "to_status": target.value},
        )
        self.orders_client.update_status(order_id, target)
        refreshed = tuple(self._fetch_orders())
        logger.info("order_status_updated", extra={"order_id": order_id, "status": target.value})
        return TransitionOutcome(
            order_id=order_id,
            previous_status=current,
            status=target,
            changed=current != target,
            orders=refreshed,
        )


def _current_status(order: Order, snapshot: Sequence[Order]) -> OrderStatus:
    # A newer snapshot wins over a stale order object held by the caller.
    for candidate in snapshot:
        if candidate.id == order.id:
            return candidate.status
    return order.status
