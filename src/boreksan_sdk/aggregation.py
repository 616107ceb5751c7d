"""Pure folds from a flat order list into the operator's matrix and report views.

Every function here takes a snapshot of orders and returns new derived values;
nothing mutates its inputs or talks to the network.

Line items are matched to catalog products by exact product name. Items whose
name matches no catalog product are counted in the ``unmatched_*`` buckets and
in the money totals, never in a product column.
"""

from __future__ import annotations

import calendar
from collections import defaultdict
from datetime import date, datetime, time, timedelta, tzinfo
from decimal import Decimal
from typing import Iterable, Sequence

from .models_orders import CompositeOrder, Order, OrderItem, OrderStatus
from .models_products import Product
from .models_reports import (
    DailyMatrix,
    DailyMatrixRow,
    MonthlyReport,
    MonthlyReportRow,
    MonthlyReportTotals,
)

ADMIN_IDENTITY = "admin"
COMPOSITE_TIME = time(12, 0)
_ZERO = Decimal("0")
_CENT = Decimal("0.01")


def business_day(moment: datetime, tz: tzinfo) -> date:
    # Naive timestamps are already business-local wall time.
    if moment.tzinfo is None:
        return moment.date()
    return moment.astimezone(tz).date()


def iter_dates(start: date, end: date) -> Iterable[date]:
    current = start
    while current <= end:
        yield current
        current += timedelta(days=1)


def is_admin_identity(identity: str) -> bool:
    return identity.strip().lower() == ADMIN_IDENTITY


def is_effective(order: Order) -> bool:
    return order.status != OrderStatus.CANCELLED


def tray_count(order: Order | CompositeOrder) -> int:
    return sum(item.quantity for item in order.items)


def catalog_names(catalog: Sequence[Product]) -> tuple[str, ...]:
    seen: dict[str, None] = {}
    for product in catalog:
        seen.setdefault(product.name, None)
    return tuple(seen)


def known_shops(orders: Iterable[Order]) -> list[str]:
    """Every shop identity that ever ordered, cancelled orders included."""
    shops = {order.shop_identity for order in orders}
    return sorted(
        (shop for shop in shops if shop and not is_admin_identity(shop)),
        key=lambda shop: (shop.casefold(), shop),
    )


def orders_on_day(
    orders: Iterable[Order],
    business_date: date,
    tz: tzinfo,
    *,
    shop: str | None = None,
    include_cancelled: bool = False,
) -> list[Order]:
    selected = [
        order
        for order in orders
        if business_day(order.created_at, tz) == business_date
        and (include_cancelled or is_effective(order))
        and (shop is None or order.shop_identity == shop)
    ]
    return sorted(selected, key=lambda order: (order.created_at.replace(tzinfo=None), order.id))


class _Fold:
    __slots__ = ("quantities", "unmatched_quantity", "unmatched_amount", "total_amount", "order_count")

    def __init__(self) -> None:
        self.quantities: dict[str, int] = {}
        self.unmatched_quantity = 0
        self.unmatched_amount = _ZERO
        self.total_amount = _ZERO
        self.order_count = 0

    def add(self, order: Order, product_names: frozenset[str]) -> None:
        self.order_count += 1
        self.total_amount += order.total_price
        for item in order.items:
            if item.product_name in product_names:
                self.quantities[item.product_name] = self.quantities.get(item.product_name, 0) + item.quantity
            else:
                self.unmatched_quantity += item.quantity
                self.unmatched_amount += item.sub_total

    def full_quantities(self, names: Sequence[str]) -> dict[str, int]:
        return {name: self.quantities.get(name, 0) for name in names}


def build_daily_matrix(
    orders: Sequence[Order],
    catalog: Sequence[Product],
    business_date: date,
    tz: tzinfo,
) -> DailyMatrix:
    """Shop x product grid for one business day.

    Rows cover every shop found anywhere in ``orders`` (not just the ones that
    ordered on ``business_date``) so a quiet shop can still receive a first
    order. Cancelled orders never contribute quantities or amounts.
    """
    names = catalog_names(catalog)
    name_set = frozenset(names)
    folds: dict[str, _Fold] = defaultdict(_Fold)
    for order in orders_on_day(orders, business_date, tz):
        folds[order.shop_identity].add(order, name_set)

    rows = []
    for shop in known_shops(orders):
        fold = folds.get(shop) or _Fold()
        rows.append(
            DailyMatrixRow(
                shop=shop,
                quantities=fold.full_quantities(names),
                unmatched_quantity=fold.unmatched_quantity,
                total_amount=fold.total_amount,
                unmatched_amount=fold.unmatched_amount,
                order_count=fold.order_count,
            )
        )
    return DailyMatrix(business_date=business_date, product_names=names, rows=tuple(rows))


def effective_quantity(
    orders: Iterable[Order],
    shop: str,
    product_name: str,
    business_date: date,
    tz: tzinfo,
) -> int:
    return sum(
        item.quantity
        for order in orders_on_day(orders, business_date, tz, shop=shop)
        for item in order.items
        if item.product_name == product_name
    )


def build_monthly_report(
    orders: Sequence[Order],
    catalog: Sequence[Product],
    shop: str,
    year: int,
    month: int,
    *,
    today: date,
    tz: tzinfo,
) -> MonthlyReport:
    """Day x product report of one shop for one calendar month.

    Every day of the month gets a row. Days after ``today`` carry ``None``
    cells and are left out of the totals, even if orders exist for them.
    """
    names = catalog_names(catalog)
    name_set = frozenset(names)
    first = date(year, month, 1)
    last = date(year, month, calendar.monthrange(year, month)[1])

    folds: dict[date, _Fold] = defaultdict(_Fold)
    for order in orders:
        if order.shop_identity != shop or not is_effective(order):
            continue
        day = business_day(order.created_at, tz)
        if first <= day <= last:
            folds[day].add(order, name_set)

    rows: list[MonthlyReportRow] = []
    total_quantities = {name: 0 for name in names}
    unmatched_quantity = 0
    total_amount = _ZERO
    unmatched_amount = _ZERO
    for day in iter_dates(first, last):
        if day > today:
            rows.append(
                MonthlyReportRow(
                    business_date=day,
                    is_future=True,
                    quantities=None,
                    unmatched_quantity=None,
                    total_amount=None,
                    unmatched_amount=None,
                )
            )
            continue
        fold = folds.get(day) or _Fold()
        quantities = fold.full_quantities(names)
        for name, quantity in quantities.items():
            total_quantities[name] += quantity
        unmatched_quantity += fold.unmatched_quantity
        total_amount += fold.total_amount
        unmatched_amount += fold.unmatched_amount
        rows.append(
            MonthlyReportRow(
                business_date=day,
                is_future=False,
                quantities=quantities,
                unmatched_quantity=fold.unmatched_quantity,
                total_amount=fold.total_amount,
                unmatched_amount=fold.unmatched_amount,
            )
        )

    return MonthlyReport(
        shop=shop,
        year=year,
        month=month,
        product_names=names,
        rows=tuple(rows),
        totals=MonthlyReportTotals(
            quantities=total_quantities,
            unmatched_quantity=unmatched_quantity,
            total_amount=total_amount,
            unmatched_amount=unmatched_amount,
        ),
    )


def aggregate_day_orders(
    orders: Sequence[Order],
    shop: str,
    business_date: date,
    tz: tzinfo,
) -> CompositeOrder | None:
    """Merge one shop's non-cancelled orders of a day into a single display record.

    The composite is DELIVERED only when every merged order is DELIVERED,
    otherwise WAITING. Its timestamp is midday of the business day.
    """
    day_orders = orders_on_day(orders, business_date, tz, shop=shop)
    if not day_orders:
        return None

    quantities: dict[str, int] = {}
    sub_totals: dict[str, Decimal] = {}
    unit_prices: dict[str, set[Decimal]] = {}
    for order in day_orders:
        for item in order.items:
            quantities[item.product_name] = quantities.get(item.product_name, 0) + item.quantity
            sub_totals[item.product_name] = sub_totals.get(item.product_name, _ZERO) + item.sub_total
            unit_prices.setdefault(item.product_name, set()).add(item.unit_price)

    items = [
        OrderItem(
            product_name=name,
            quantity=quantity,
            unit_price=_merged_unit_price(unit_prices[name], sub_totals[name], quantity),
            sub_total=sub_totals[name],
        )
        for name, quantity in quantities.items()
    ]
    delivered = all(order.status == OrderStatus.DELIVERED for order in day_orders)
    return CompositeOrder(
        shop_identity=shop,
        business_date=business_date,
        created_at=datetime.combine(business_date, COMPOSITE_TIME, tzinfo=tz),
        status=OrderStatus.DELIVERED if delivered else OrderStatus.WAITING,
        total_price=sum((order.total_price for order in day_orders), _ZERO),
        items=items,
        source_order_ids=[order.id for order in day_orders],
    )


def group_daily_history(orders: Sequence[Order], tz: tzinfo) -> list[CompositeOrder]:
    """One composite per (shop, business day), newest day first."""
    keys = {
        (business_day(order.created_at, tz), order.shop_identity)
        for order in orders
        if is_effective(order)
    }
    history = []
    for day, shop in keys:
        composite = aggregate_day_orders(orders, shop, day, tz)
        if composite is not None:
            history.append(composite)
    history.sort(key=lambda composite: (-composite.business_date.toordinal(), composite.shop_identity.casefold()))
    return history


def _merged_unit_price(prices: set[Decimal], sub_total: Decimal, quantity: int) -> Decimal:
    if len(prices) == 1:
        return next(iter(prices))
    if quantity <= 0:
        return _ZERO
    return (sub_total / quantity).quantize(_CENT)
