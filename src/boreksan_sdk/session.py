from __future__ import annotations

import threading
from dataclasses import dataclass, field
from typing import Callable

from .auth_store import AuthStore
from .clients.auth import AuthClient
from .clients.orders_client import OrdersClient
from .clients.products_client import ProductsClient
from .config import ClientConfig
from .http_client import HttpClient
from .models import SessionData
from .session_guard import SessionGuard


@dataclass
class SessionContext:
    """The one logical session: its access token and who it belongs to.

    With a store the token survives restarts; without one it lives only in
    this object, which keeps parallel sessions (and tests) independent.
    """

    store: AuthStore | None = None
    env_name: str | None = None
    username: str | None = None
    _access_token: str | None = field(default=None, repr=False)
    _lock: threading.Lock = field(default_factory=threading.Lock, repr=False, compare=False)

    def __post_init__(self) -> None:
        if self.store and not self._access_token:
            stored = self.store.load()
            if stored:
                self._access_token = stored.access_token
                self.username = stored.username

    @property
    def access_token(self) -> str | None:
        return self._access_token

    @property
    def is_authenticated(self) -> bool:
        return bool(self._access_token)

    def set_access_token(self, token: str, username: str | None = None) -> None:
        with self._lock:
            self._access_token = token
            if username is not None:
                self.username = username
            if self.store:
                self.store.save(SessionData(access_token=token, username=self.username, env_name=self.env_name))

    def clear(self) -> None:
        with self._lock:
            self._access_token = None
            self.username = None
            if self.store:
                self.store.clear()


@dataclass
class ApiSession:
    config: ClientConfig
    context: SessionContext | None = None
    http: HttpClient | None = None
    on_session_expired: Callable[[], None] | None = None
    guard: SessionGuard | None = field(default=None, init=False)

    def __post_init__(self) -> None:
        self.context = self.context or SessionContext(store=AuthStore(), env_name=self.config.env_name)
        # One HttpClient per session so the refresh cookie jar is shared.
        self.http = self.http or HttpClient(config=self.config)
        self.guard = SessionGuard(self.http, self.context, on_session_expired=self.on_session_expired)

    @property
    def token(self) -> str | None:
        return self.context.access_token if self.context else None

    def auth_client(self) -> AuthClient:
        return AuthClient(guard=self.guard)

    def orders_client(self) -> OrdersClient:
        return OrdersClient(guard=self.guard)

    def products_client(self) -> ProductsClient:
        return ProductsClient(guard=self.guard)

    def establish(self, access_token: str, username: str | None = None) -> None:
        self.context.set_access_token(access_token, username=username)

    def clear(self) -> None:
        self.context.clear()
