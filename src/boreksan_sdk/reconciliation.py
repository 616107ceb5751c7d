"""Turn operator-typed target quantities into daily-update upserts.

The planner diffs each target against the effective quantity derived from the
very snapshot that produced the displayed matrix, so a concurrent external
change can never be mistaken for an operator edit. Unchanged pairs produce no
write at all.
"""

from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import dataclass
from datetime import date, tzinfo
from typing import Iterable, Mapping, Sequence

from .aggregation import build_daily_matrix, effective_quantity
from .clients.orders_client import OrdersClient
from .exceptions import ApiError
from .models_orders import DailyOrderUpdateRequest, Order
from .models_products import Product
from .order_validation import ClientValidationError, ValidationIssue, parse_target_quantity, validate_daily_update

logger = logging.getLogger(__name__)

PairKey = tuple[str, int]


class PendingEdits:
    """Target quantities typed by the operator and not yet saved, keyed by (shop, product id)."""

    def __init__(self) -> None:
        self._targets: dict[PairKey, int] = {}

    def set(self, shop: str, product_id: int, raw: int | str | None) -> int:
        value = parse_target_quantity(raw)
        self._targets[(shop, product_id)] = value
        return value

    def get(self, shop: str, product_id: int) -> int | None:
        return self._targets.get((shop, product_id))

    def discard(self, shop: str, product_id: int) -> None:
        self._targets.pop((shop, product_id), None)

    def retain(self, keys: Iterable[PairKey]) -> None:
        keep = set(keys)
        self._targets = {key: value for key, value in self._targets.items() if key in keep}

    def clear(self) -> None:
        self._targets.clear()

    def as_dict(self) -> dict[PairKey, int]:
        return dict(self._targets)

    def __len__(self) -> int:
        return len(self._targets)

    def __contains__(self, key: object) -> bool:
        return key in self._targets


@dataclass(frozen=True)
class PlannedUpsert:
    request: DailyOrderUpdateRequest
    product_name: str
    current_quantity: int

    @property
    def key(self) -> PairKey:
        return (self.request.shop_name, self.request.product_id)


@dataclass(frozen=True)
class ReconciliationPlan:
    business_date: date
    upserts: tuple[PlannedUpsert, ...]
    unchanged: tuple[PairKey, ...]

    @property
    def is_empty(self) -> bool:
        return not self.upserts


@dataclass(frozen=True)
class UpsertResult:
    upsert: PlannedUpsert
    ok: bool
    error: ApiError | None = None


@dataclass(frozen=True)
class BatchResult:
    results: tuple[UpsertResult, ...]

    @property
    def ok(self) -> bool:
        return all(result.ok for result in self.results)

    @property
    def failed(self) -> list[UpsertResult]:
        return [result for result in self.results if not result.ok]

    @property
    def failed_keys(self) -> list[PairKey]:
        return [result.upsert.key for result in self.failed]


def plan_reconciliation(
    snapshot: Sequence[Order],
    catalog: Sequence[Product],
    targets: Mapping[PairKey, int],
    business_date: date,
    tz: tzinfo,
) -> ReconciliationPlan:
    products = {product.id: product for product in catalog}
    matrix = build_daily_matrix(snapshot, catalog, business_date, tz)
    upserts: list[PlannedUpsert] = []
    unchanged: list[PairKey] = []
    for (shop, product_id), target in sorted(targets.items()):
        product = products.get(product_id)
        if product is None:
            raise ClientValidationError(
                [ValidationIssue(row_index=None, field="product_id", reason=f"unknown product {product_id}")]
            )
        request = validate_daily_update(
            {"shop_name": shop, "product_id": product_id, "target_quantity": target}
        )
        row = matrix.row(shop)
        if row is not None:
            current = row.quantity(product.name)
        else:
            current = effective_quantity(snapshot, shop, product.name, business_date, tz)
        if current == request.target_quantity:
            unchanged.append((shop, product_id))
            continue
        upserts.append(PlannedUpsert(request=request, product_name=product.name, current_quantity=current))
    return ReconciliationPlan(business_date=business_date, upserts=tuple(upserts), unchanged=tuple(unchanged))


def execute_plan(orders_client: OrdersClient, plan: ReconciliationPlan, *, max_workers: int = 8) -> BatchResult:
    """Send every planned upsert concurrently and wait for all of them to settle."""
    if plan.is_empty:
        return BatchResult(results=())
    settled: dict[PairKey, UpsertResult] = {}
    with ThreadPoolExecutor(max_workers=max(1, min(max_workers, len(plan.upserts)))) as executor:
        futures = {executor.submit(orders_client.daily_update, upsert.request): upsert for upsert in plan.upserts}
        for future in as_completed(futures):
            upsert = futures[future]
            try:
                future.result()
            except Exception as exc:
                error = _as_api_error(exc)
                logger.warning(
                    "daily_update_failed",
                    extra={
                        "shop": upsert.request.shop_name,
                        "product_id": upsert.request.product_id,
                        "code": error.code,
                    },
                )
                settled[upsert.key] = UpsertResult(upsert=upsert, ok=False, error=error)
            else:
                settled[upsert.key] = UpsertResult(upsert=upsert, ok=True)
    return BatchResult(results=tuple(settled[upsert.key] for upsert in plan.upserts))


def _as_api_error(exc: Exception) -> ApiError:
    if isinstance(exc, ApiError):
        return exc
    # Malformed success bodies and client-side parse failures still fail only their own pair.
    return ApiError(
        code="UNEXPECTED_RESPONSE",
        message=str(exc) or "Unexpected response",
        details={"type": type(exc).__name__},
        status_code=0,
    )


class ReconciliationPlanner:
    def __init__(self, orders_client: OrdersClient, tz: tzinfo, *, max_workers: int = 8) -> None:
        self.orders_client = orders_client
        self.tz = tz
        self.max_workers = max_workers

    def plan(
        self,
        snapshot: Sequence[Order],
        catalog: Sequence[Product],
        targets: Mapping[PairKey, int],
        business_date: date,
    ) -> ReconciliationPlan:
        return plan_reconciliation(snapshot, catalog, targets, business_date, self.tz)

    def execute(self, plan: ReconciliationPlan) -> BatchResult:
        return execute_plan(self.orders_client, plan, max_workers=self.max_workers)
