from __future__ import annotations

import sys
from datetime import date, datetime
from decimal import Decimal
from pathlib import Path

import pytest

BASE_DIR = Path(__file__).resolve().parents[1]
SDK_SRC = BASE_DIR / "src"

sys.path.insert(0, str(SDK_SRC))

from boreksan_sdk.config import ClientConfig  # noqa: E402
from boreksan_sdk.http_client import HttpClient  # noqa: E402
from boreksan_sdk.models_orders import Order  # noqa: E402
from boreksan_sdk.models_products import Product  # noqa: E402
from boreksan_sdk.session import ApiSession, SessionContext  # noqa: E402

BASE_URL = "https://api.example.com"
TODAY = date(2025, 3, 12)
SU_BOREGI = "Su Böreği"
KIYMALI = "Kıymalı Börek"


@pytest.fixture
def config() -> ClientConfig:
    return ClientConfig(
        env_name="test",
        api_base_url=BASE_URL,
        retries=0,
        retry_backoff_seconds=0,
    )


@pytest.fixture
def session(config: ClientConfig) -> ApiSession:
    return ApiSession(config=config, context=SessionContext(), http=HttpClient(config=config))


@pytest.fixture
def catalog() -> list[Product]:
    return [
        Product(id=1, name=SU_BOREGI, description=None, price_tray=Decimal("100"), price_portion=Decimal("20")),
        Product(id=2, name=KIYMALI, description=None, price_tray=Decimal("150"), price_portion=Decimal("30")),
    ]


def order_payload(
    order_id: int,
    shop: str,
    created_at: datetime | str,
    items: list[tuple[str, int, str]],
    *,
    status: str = "WAITING",
    customer: str | None = None,
) -> dict:
    lines = [
        {
            "productName": name,
            "quantity": quantity,
            "unitPrice": unit_price,
            "subTotal": str(Decimal(unit_price) * quantity),
        }
        for name, quantity, unit_price in items
    ]
    return {
        "id": order_id,
        "customerName": customer if customer is not None else shop,
        "shopName": shop,
        "address": "Kadıköy",
        "phone": "05551112233",
        "totalPrice": str(sum(Decimal(line["subTotal"]) for line in lines)),
        "status": status,
        "createdAt": created_at.isoformat() if isinstance(created_at, datetime) else created_at,
        "items": lines,
    }


def make_order(*args, **kwargs) -> Order:
    return Order.model_validate(order_payload(*args, **kwargs))


@pytest.fixture
def order_factory():
    return make_order
