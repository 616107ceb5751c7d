from __future__ import annotations

from typing import Mapping

from .exceptions import (
    ApiError,
    AuthError,
    ConflictError,
    NotFoundError,
    PermissionDeniedError,
    RateLimitError,
    ServerError,
    ValidationError,
)

_ENVELOPE_KEYS = {"message", "error_code", "code", "details"}


def map_error(status_code: int, payload: Mapping[str, object] | None) -> ApiError:
    payload = payload or {}
    code = str(payload.get("error_code") or payload.get("code") or "HTTP_ERROR")
    message = str(payload.get("message") or "Request failed")
    details = payload.get("details")
    if status_code in {400, 422} and payload and not (set(payload) & _ENVELOPE_KEYS):
        # Bean validation failures come back as a flat {field: message} map.
        code = "VALIDATION_ERROR"
        message = "; ".join(f"{field}: {reason}" for field, reason in sorted(payload.items()))
        details = dict(payload)
    mapped: type[ApiError]
    if status_code == 401:
        mapped = AuthError
    elif status_code == 403:
        mapped = PermissionDeniedError
    elif status_code == 404:
        mapped = NotFoundError
    elif status_code in {400, 422}:
        mapped = ValidationError
    elif status_code == 409:
        mapped = ConflictError
    elif status_code == 429:
        mapped = RateLimitError
    elif status_code >= 500:
        mapped = ServerError
    else:
        mapped = ApiError
    return mapped(
        code=code,
        message=message,
        details=details,
        status_code=status_code,
        raw_payload=dict(payload),
    )
