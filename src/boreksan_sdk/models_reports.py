from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from typing import Mapping


@dataclass(frozen=True)
class DailyMatrixRow:
    shop: str
    quantities: Mapping[str, int]
    unmatched_quantity: int = 0
    total_amount: Decimal = Decimal("0")
    unmatched_amount: Decimal = Decimal("0")
    order_count: int = 0

    def quantity(self, product_name: str) -> int:
        return self.quantities.get(product_name, 0)

    @property
    def matched_amount(self) -> Decimal:
        return self.total_amount - self.unmatched_amount


@dataclass(frozen=True)
class DailyMatrix:
    business_date: date
    product_names: tuple[str, ...]
    rows: tuple[DailyMatrixRow, ...]

    def row(self, shop: str) -> DailyMatrixRow | None:
        for row in self.rows:
            if row.shop == shop:
                return row
        return None

    @property
    def shops(self) -> list[str]:
        return [row.shop for row in self.rows]


@dataclass(frozen=True)
class MonthlyReportRow:
    """One calendar day. ``None`` cells mean the day has not happened yet."""

    business_date: date
    is_future: bool
    quantities: Mapping[str, int] | None
    unmatched_quantity: int | None
    total_amount: Decimal | None
    unmatched_amount: Decimal | None

    def cell(self, product_name: str) -> int | None:
        if self.quantities is None:
            return None
        return self.quantities.get(product_name, 0)


@dataclass(frozen=True)
class MonthlyReportTotals:
    quantities: Mapping[str, int] = field(default_factory=dict)
    unmatched_quantity: int = 0
    total_amount: Decimal = Decimal("0")
    unmatched_amount: Decimal = Decimal("0")


@dataclass(frozen=True)
class MonthlyReport:
    shop: str
    year: int
    month: int
    product_names: tuple[str, ...]
    rows: tuple[MonthlyReportRow, ...]
    totals: MonthlyReportTotals

    def row(self, business_date: date) -> MonthlyReportRow | None:
        for row in self.rows:
            if row.business_date == business_date:
                return row
        return None
