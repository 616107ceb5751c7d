from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Mapping

from ..models import LoginRequest, RegisterRequest, TokenResponse
from ..session_guard import LOGIN_PATH, LOGOUT_PATH, REGISTER_PATH
from .base import BaseClient, _coerce_model


@dataclass
class AuthClient(BaseClient):
    def login(self, username: str, password: str) -> TokenResponse:
        payload = LoginRequest(username=username, password=password)
        data = self._request("POST", LOGIN_PATH, json_body=payload.model_dump(by_alias=True))
        return TokenResponse.model_validate(data)

    def register(self, payload: RegisterRequest | Mapping[str, Any]) -> TokenResponse:
        request = _coerce_model(payload, RegisterRequest)
        data = self._request("POST", REGISTER_PATH, json_body=request.model_dump(by_alias=True))
        return TokenResponse.model_validate(data)

    def refresh(self) -> TokenResponse:
        return self.guard.refresh()

    def logout(self) -> None:
        self._request("POST", LOGOUT_PATH, json_body={})
