from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Mapping

from ..models_orders import DailyOrderUpdateRequest, Order, OrderCreateRequest, OrderStatus
from .base import BaseClient, _coerce_model

ORDERS_PATH = "/orders"
DAILY_UPDATE_PATH = "/orders/daily-update"


@dataclass
class OrdersClient(BaseClient):
    def list_orders(self) -> list[Order]:
        data = self._request("GET", ORDERS_PATH)
        if not isinstance(data, list):
            raise ValueError("Expected order list response to be a JSON array")
        return [Order.model_validate(item) for item in data]

    def create_order(self, payload: OrderCreateRequest | Mapping[str, Any]) -> Order:
        request = _coerce_model(payload, OrderCreateRequest)
        data = self._request("POST", ORDERS_PATH, json_body=request.model_dump(by_alias=True, mode="json"))
        if not isinstance(data, dict):
            raise ValueError("Expected create order response to be a JSON object")
        return Order.model_validate(data)

    def update_status(self, order_id: int, status: OrderStatus | str) -> Order:
        new_status = OrderStatus(status)
        data = self._request("PUT", f"{ORDERS_PATH}/{order_id}/status", params={"newStatus": new_status.value})
        if not isinstance(data, dict):
            raise ValueError("Expected status update response to be a JSON object")
        return Order.model_validate(data)

    def daily_update(self, payload: DailyOrderUpdateRequest | Mapping[str, Any]) -> None:
        request = _coerce_model(payload, DailyOrderUpdateRequest)
        self._request("POST", DAILY_UPDATE_PATH, json_body=request.model_dump(by_alias=True, mode="json"))
