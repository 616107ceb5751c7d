"""Bearer-token stamping with a single silent renewal per request.

A request that comes back 401 is renewed at most once: the guard calls the
refresh endpoint (authenticated by the cookie jar of the shared
``requests.Session``, never by the guard), stores the new access token and
replays the request. The retry budget lives on the ``GuardedRequest``, so
concurrent requests never share it and a retried request is never renewed
again. Login and register calls are never renewed: a 401 there means bad
credentials.
"""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Callable

from pydantic import ValidationError as PydanticValidationError

from .exceptions import ApiError, SessionExpiredError, UnauthorizedError
from .http_client import HttpClient, Payload
from .models import TokenResponse

if TYPE_CHECKING:
    from .session import SessionContext

logger = logging.getLogger(__name__)

LOGIN_PATH = "/auth/login"
REGISTER_PATH = "/auth/register"
REFRESH_PATH = "/auth/refresh"
LOGOUT_PATH = "/auth/logout"
RENEWAL_EXEMPT_PATHS = (LOGIN_PATH, REGISTER_PATH)


@dataclass
class GuardedRequest:
    method: str
    path: str
    headers: dict[str, str] = field(default_factory=dict)
    json_body: dict[str, Any] | list[Any] | None = None
    params: dict[str, Any] | None = None
    retried: bool = False
    token_used: str | None = None

    @property
    def renewal_exempt(self) -> bool:
        return _normalize_path(self.path) in RENEWAL_EXEMPT_PATHS


def _normalize_path(path: str) -> str:
    bare = path.split("?", 1)[0].strip()
    return "/" + bare.strip("/")


class SessionGuard:
    def __init__(
        self,
        http: HttpClient,
        context: SessionContext,
        on_session_expired: Callable[[], None] | None = None,
    ) -> None:
        self.http = http
        self.context = context
        self._on_session_expired = on_session_expired
        self._refresh_lock = threading.Lock()

    def request(
        self,
        method: str,
        path: str,
        *,
        headers: dict[str, str] | None = None,
        json_body: dict[str, Any] | list[Any] | None = None,
        params: dict[str, Any] | None = None,
    ) -> Payload:
        attempt = GuardedRequest(
            method=method,
            path=path,
            headers=dict(headers or {}),
            json_body=json_body,
            params=params,
        )
        return self.send(attempt)

    def send(self, attempt: GuardedRequest) -> Payload:
        try:
            return self._dispatch(attempt)
        except UnauthorizedError as exc:
            if attempt.renewal_exempt or attempt.retried:
                raise
            attempt.retried = True
            self._renew(attempt, exc)
            return self._dispatch(attempt)

    def refresh(self) -> TokenResponse:
        """Exchange the refresh cookie for a new access token and store it."""
        data = self.http.request("POST", REFRESH_PATH, json_body={})
        token = TokenResponse.model_validate(data)
        self.context.set_access_token(token.access_token)
        return token

    def _dispatch(self, attempt: GuardedRequest) -> Payload:
        headers = dict(attempt.headers)
        token = self.context.access_token
        attempt.token_used = token
        if token:
            headers["Authorization"] = f"Bearer {token}"
        return self.http.request(
            attempt.method,
            attempt.path,
            headers=headers,
            json_body=attempt.json_body,
            params=attempt.params,
        )

    def _renew(self, attempt: GuardedRequest, original: UnauthorizedError) -> None:
        with self._refresh_lock:
            current = self.context.access_token
            if current and current != attempt.token_used:
                # Another request already renewed while this one was in flight.
                logger.info("session_refresh_reused", extra={"path": attempt.path})
                return
            logger.info("session_refresh_attempt", extra={"path": attempt.path})
            try:
                self.refresh()
            except (ApiError, PydanticValidationError) as refresh_exc:
                logger.warning(
                    "session_refresh_failed",
                    extra={"path": attempt.path, "status_code": getattr(refresh_exc, "status_code", None)},
                )
                self.context.clear()
                if self._on_session_expired:
                    self._on_session_expired()
                raise SessionExpiredError(
                    code=original.code,
                    message=original.message,
                    details=original.details,
                    status_code=original.status_code,
                    raw_payload=original.raw_payload,
                ) from refresh_exc
            logger.info("session_refresh_success", extra={"path": attempt.path})
