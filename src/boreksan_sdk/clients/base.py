from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from ..session_guard import SessionGuard


@dataclass
class BaseClient:
    guard: SessionGuard

    def _request(self, method: str, path: str, **kwargs):
        return self.guard.request(method, path, **kwargs)


def _coerce_model(value: Any, model_type: type[Any]):
    if isinstance(value, model_type):
        return value
    return model_type.model_validate(value)
