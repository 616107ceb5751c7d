from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, time
from typing import Any, Mapping, Sequence

from pydantic import ValidationError as PydanticValidationError

from .models_orders import DailyOrderUpdateRequest, OrderCreateRequest, OrderItemRequest

ORDER_CUTOFF = time(22, 0)


@dataclass(frozen=True)
class ValidationIssue:
    row_index: int | None
    field: str
    reason: str


class ClientValidationError(ValueError):
    def __init__(self, issues: list[ValidationIssue]) -> None:
        self.issues = issues
        super().__init__(self._format_message())

    def _format_message(self) -> str:
        if not self.issues:
            return "Validation failed"
        issue = self.issues[0]
        location = f"row {issue.row_index}" if issue.row_index is not None else "payload"
        return f"{location} {issue.field}: {issue.reason}"


def parse_target_quantity(raw: int | str | None) -> int:
    """Turn an operator-typed cell value into a target quantity.

    Blank input means zero. Negative, fractional or non-numeric input is
    rejected here so it can never reach the planner.
    """
    if raw is None:
        return 0
    if isinstance(raw, bool):
        _raise_issue(None, "target_quantity", "must be a whole number")
    if isinstance(raw, int):
        value = raw
    else:
        text = str(raw).strip()
        if not text:
            return 0
        try:
            value = int(text)
        except ValueError:
            _raise_issue(None, "target_quantity", "must be a whole number")
    if value < 0:
        _raise_issue(None, "target_quantity", "must be >= 0")
    return value


def validate_daily_update(payload: DailyOrderUpdateRequest | Mapping[str, Any]) -> DailyOrderUpdateRequest:
    if isinstance(payload, DailyOrderUpdateRequest):
        return payload
    try:
        return DailyOrderUpdateRequest.model_validate(payload)
    except PydanticValidationError as exc:
        raise ClientValidationError(_issues_from_pydantic(exc, None)) from exc


def validate_order_create_payload(
    payload: OrderCreateRequest | Mapping[str, Any] | Sequence[Mapping[str, Any]],
    *,
    now: datetime | None = None,
    cutoff: time = ORDER_CUTOFF,
) -> OrderCreateRequest:
    if now is not None and now.time() > cutoff:
        _raise_issue(None, "created_at", f"daily order cutoff {cutoff.strftime('%H:%M')} has passed")
    if isinstance(payload, OrderCreateRequest):
        return payload
    raw_items = payload.get("items") if isinstance(payload, Mapping) else payload
    if not raw_items:
        _raise_issue(None, "items", "at least one item is required")
    items: list[OrderItemRequest] = []
    issues: list[ValidationIssue] = []
    for index, line in enumerate(raw_items):
        if isinstance(line, OrderItemRequest):
            items.append(line)
            continue
        try:
            items.append(OrderItemRequest.model_validate(line))
        except PydanticValidationError as exc:
            issues.extend(_issues_from_pydantic(exc, index))
    if issues:
        raise ClientValidationError(issues)
    return OrderCreateRequest(items=items)


def _issues_from_pydantic(exc: PydanticValidationError, row_index: int | None) -> list[ValidationIssue]:
    issues = []
    for error in exc.errors():
        field = ".".join(str(part) for part in error.get("loc", ())) or "payload"
        issues.append(ValidationIssue(row_index=row_index, field=field, reason=error.get("msg", "invalid")))
    return issues


def _raise_issue(row_index: int | None, field: str, reason: str) -> None:
    raise ClientValidationError([ValidationIssue(row_index=row_index, field=field, reason=reason)])
