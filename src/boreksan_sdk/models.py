from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class TokenResponse(CamelModel):
    access_token: str


class LoginRequest(CamelModel):
    username: str
    password: str


class RegisterRequest(CamelModel):
    username: str = Field(min_length=2)
    password: str = Field(min_length=8)
    shop_name: str = Field(min_length=1)
    phone: str = Field(pattern=r"^\+?[0-9]{10,15}$")
    address: str = Field(min_length=1)


class SessionData(BaseModel):
    access_token: str
    username: str | None = None
    env_name: str | None = None
