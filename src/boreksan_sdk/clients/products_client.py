from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Mapping

from ..models_products import Product, ProductCreateRequest, ProductUpdateRequest
from .base import BaseClient, _coerce_model

PRODUCTS_PATH = "/products"


@dataclass
class ProductsClient(BaseClient):
    def list_products(self) -> list[Product]:
        data = self._request("GET", PRODUCTS_PATH)
        if not isinstance(data, list):
            raise ValueError("Expected product list response to be a JSON array")
        return [Product.model_validate(item) for item in data]

    def get_product(self, product_id: int) -> Product:
        data = self._request("GET", f"{PRODUCTS_PATH}/{product_id}")
        if not isinstance(data, dict):
            raise ValueError("Expected product response to be a JSON object")
        return Product.model_validate(data)

    def create_product(self, payload: ProductCreateRequest | Mapping[str, Any]) -> Product:
        request = _coerce_model(payload, ProductCreateRequest)
        data = self._request("POST", PRODUCTS_PATH, json_body=request.model_dump(by_alias=True, mode="json"))
        if not isinstance(data, dict):
            raise ValueError("Expected create product response to be a JSON object")
        return Product.model_validate(data)

    def update_product(self, product_id: int, payload: ProductUpdateRequest | Mapping[str, Any]) -> Product:
        request = _coerce_model(payload, ProductUpdateRequest)
        data = self._request(
            "PUT",
            f"{PRODUCTS_PATH}/{product_id}",
            json_body=request.model_dump(by_alias=True, mode="json", exclude_none=True),
        )
        if not isinstance(data, dict):
            raise ValueError("Expected update product response to be a JSON object")
        return Product.model_validate(data)

    def delete_product(self, product_id: int) -> None:
        self._request("DELETE", f"{PRODUCTS_PATH}/{product_id}")
