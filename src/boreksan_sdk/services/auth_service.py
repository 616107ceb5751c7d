from __future__ import annotations

import logging
from typing import Any, Mapping

from ..exceptions import ApiError
from ..models import RegisterRequest, TokenResponse
from ..session import ApiSession

logger = logging.getLogger(__name__)


class AuthService:
    def __init__(self, session: ApiSession) -> None:
        self.session = session

    def has_active_session(self) -> bool:
        return bool(self.session.token)

    def login(self, username: str, password: str) -> TokenResponse:
        logger.info("login_attempt", extra={"username": username})
        try:
            token = self.session.auth_client().login(username, password)
        except Exception:
            logger.exception("login_failure", extra={"username": username})
            raise
        self.session.establish(token.access_token, username=username)
        logger.info("login_success", extra={"username": username})
        return token

    def register(self, payload: RegisterRequest | Mapping[str, Any]) -> TokenResponse:
        request = payload if isinstance(payload, RegisterRequest) else RegisterRequest.model_validate(payload)
        logger.info("register_attempt", extra={"username": request.username})
        token = self.session.auth_client().register(request)
        self.session.establish(token.access_token, username=request.username)
        logger.info("register_success", extra={"username": request.username})
        return token

    def logout(self) -> None:
        logger.info("logout")
        try:
            self.session.auth_client().logout()
        except ApiError as exc:
            logger.warning("logout_remote_failed", extra={"code": exc.code})
        finally:
            self.session.clear()
