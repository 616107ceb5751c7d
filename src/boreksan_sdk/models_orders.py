from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import Annotated, List

from pydantic import ConfigDict, Field, PlainSerializer

from .models import CamelModel

Money = Annotated[Decimal, PlainSerializer(float, return_type=float, when_used="json")]


class OrderStatus(str, Enum):
    WAITING = "WAITING"
    PREPARING = "PREPARING"
    ON_WAY = "ON_WAY"
    DELIVERED = "DELIVERED"
    CANCELLED = "CANCELLED"


class OrderItem(CamelModel):
    model_config = ConfigDict(frozen=True)

    product_name: str
    quantity: int
    unit_price: Money
    sub_total: Money


class Order(CamelModel):
    model_config = ConfigDict(frozen=True)

    id: int
    customer_name: str | None = None
    shop_name: str | None = None
    address: str | None = None
    phone: str | None = None
    total_price: Money
    status: OrderStatus
    created_at: datetime
    items: List[OrderItem] = Field(min_length=1)

    @property
    def shop_identity(self) -> str:
        if self.shop_name and self.shop_name.strip():
            return self.shop_name.strip()
        return (self.customer_name or "").strip()


class OrderItemRequest(CamelModel):
    product_id: int
    quantity: int = Field(ge=1)


class OrderCreateRequest(CamelModel):
    items: List[OrderItemRequest] = Field(min_length=1)


class DailyOrderUpdateRequest(CamelModel):
    model_config = ConfigDict(frozen=True)

    shop_name: str = Field(min_length=1)
    product_id: int
    target_quantity: int = Field(ge=0)


class CompositeOrder(CamelModel):
    """All non-cancelled orders of one shop on one business day, merged for display.

    Never persisted and never sent to the backend.
    """

    model_config = ConfigDict(frozen=True)

    shop_identity: str
    business_date: date
    created_at: datetime
    status: OrderStatus
    total_price: Money
    items: List[OrderItem]
    source_order_ids: List[int]
