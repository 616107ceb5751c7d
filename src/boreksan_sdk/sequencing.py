from __future__ import annotations

import threading
from dataclasses import dataclass, field


@dataclass(frozen=True)
class FetchTicket:
    key: str
    version: int


@dataclass
class FetchSequencer:
    """Generation counter per fetch key.

    Each fetch takes a ticket before it is dispatched; when it resolves, its
    result is applied only if no newer ticket was issued for the same key.
    """

    _versions: dict[str, int] = field(default_factory=dict)
    _lock: threading.Lock = field(default_factory=threading.Lock, repr=False, compare=False)

    def issue(self, key: str) -> FetchTicket:
        with self._lock:
            version = self._versions.get(key, 0) + 1
            self._versions[key] = version
        return FetchTicket(key=key, version=version)

    def latest(self, key: str) -> int:
        return self._versions.get(key, 0)

    def is_current(self, ticket: FetchTicket) -> bool:
        return self.latest(ticket.key) == ticket.version
