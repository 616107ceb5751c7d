from __future__ import annotations

from pydantic import ConfigDict, Field

from .models import CamelModel
from .models_orders import Money


class Product(CamelModel):
    model_config = ConfigDict(frozen=True)

    id: int
    name: str
    description: str | None = None
    price_tray: Money
    price_portion: Money


class ProductCreateRequest(CamelModel):
    name: str = Field(min_length=1)
    description: str | None = Field(default=None, max_length=500)
    price_portion: Money = Field(ge=0)
    price_tray: Money = Field(ge=0)


class ProductUpdateRequest(CamelModel):
    name: str | None = None
    description: str | None = Field(default=None, max_length=500)
    price_portion: Money | None = Field(default=None, ge=0)
    price_tray: Money | None = Field(default=None, ge=0)
