"""
Error taxonomy for backend calls and console-side guards.

Everything raised here is caught at the view boundary and turned into either a
field annotation or a flash notification.
"""
from __future__ import annotations

from enum import Enum
from typing import Any


class ErrorKind(str, Enum):
    VALIDATION = "validation"
    NOT_FOUND = "not_found"
    UNAUTHORIZED = "unauthorized"
    FORBIDDEN = "forbidden"
    NEGATIVE_BALANCE = "negative_balance"
    NETWORK = "network"
    CANCELLED = "cancelled"
    UNKNOWN = "unknown"


# Backend error codes that mark a business-rule rejection.
BUSINESS_RULE_CODES = {
    "NEGATIVE_BALANCE": ErrorKind.NEGATIVE_BALANCE,
}


class ApiError(RuntimeError):
    kind = ErrorKind.UNKNOWN

    def __init__(
        self,
        message: str = "Request failed",
        *,
        status: int | None = None,
        errors: Any = None,
        code: str | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.status = status
        self.errors = errors
        self.code = code


class ValidationFailed(ApiError):
    kind = ErrorKind.VALIDATION


class NotFound(ApiError):
    kind = ErrorKind.NOT_FOUND


class Unauthorized(ApiError):
    kind = ErrorKind.UNAUTHORIZED


class Forbidden(ApiError):
    kind = ErrorKind.FORBIDDEN


class BusinessRuleError(ApiError):
    def __init__(self, message: str, *, kind: ErrorKind, **kwargs: Any) -> None:
        super().__init__(message, **kwargs)
        self.kind = kind


class NetworkError(ApiError):
    kind = ErrorKind.NETWORK


class RequestCancelled(ApiError):
    kind = ErrorKind.CANCELLED


class ConfirmationRequired(RuntimeError):
    """Raised when a delete is attempted without an acknowledged confirmation."""


class StatusChangeForbidden(RuntimeError):
    """Raised when the session member may not change a record's status."""


class SubmissionInProgress(RuntimeError):
    """Raised when a form instance already has a mutation in flight (or finished)."""


def _reports_negative_balance(errors: Any) -> bool:
    if not isinstance(errors, dict):
        return False
    msg = errors.get("message")
    return isinstance(msg, str) and "negative" in msg.lower()


def error_from_response(status: int, body: Any) -> ApiError:
    """Build the matching ApiError subclass from an HTTP status and decoded body."""
    errors = body.get("errors") if isinstance(body, dict) else None
    message = "Request failed"
    code = None
    if isinstance(errors, dict):
        if isinstance(errors.get("message"), str) and errors["message"]:
            message = errors["message"]
        code = errors.get("code") or None
    elif isinstance(body, dict) and isinstance(body.get("message"), str) and body["message"]:
        message = body["message"]
    if code is None and isinstance(body, dict):
        code = body.get("code") or None

    kwargs: dict[str, Any] = {"status": status, "errors": errors, "code": code}
    if code and str(code).upper() in BUSINESS_RULE_CODES:
        return BusinessRuleError(message, kind=BUSINESS_RULE_CODES[str(code).upper()], **kwargs)
    if status in (400, 422) and _reports_negative_balance(errors):
        # The transaction routes send no code, only the message.
        return BusinessRuleError(message, kind=ErrorKind.NEGATIVE_BALANCE, **kwargs)
    if status in (400, 422):
        return ValidationFailed(message, **kwargs)
    if status == 401:
        return Unauthorized(message, **kwargs)
    if status == 403:
        return Forbidden(message, **kwargs)
    if status == 404:
        return NotFound(message, **kwargs)
    return ApiError(message, **kwargs)


def map_field_errors(err: ApiError, fields: set[str] | None = None) -> tuple[dict[str, str], str | None]:
    """
    Split a backend error into per-field messages and a general message.

    Accepts both shapes the backend produces:
      {"errors": {"name": {"message": "..."}, "message": "..."}}
      {"errors": [{"path": ["name"], "message": "..."}]}
    Fields outside `fields` (when given) are folded into the general message.
    """
    field_errors: dict[str, str] = {}
    leftovers: list[str] = []
    raw = err.errors

    if isinstance(raw, dict):
        for key, value in raw.items():
            if key in ("message", "code"):
                continue
            msg = value.get("message") if isinstance(value, dict) else value
            if not isinstance(msg, str) or not msg:
                continue
            if fields is None or key in fields:
                field_errors[key] = msg
            else:
                leftovers.append(msg)
    elif isinstance(raw, list):
        for item in raw:
            if not isinstance(item, dict):
                continue
            path = item.get("path")
            msg = item.get("message")
            if not isinstance(msg, str) or not msg:
                continue
            name = None
            if isinstance(path, list) and path:
                name = path[-1] if isinstance(path[-1], str) else path[0]
            elif isinstance(path, str):
                name = path
            if name and (fields is None or name in fields):
                field_errors[str(name)] = msg
            else:
                leftovers.append(msg)

    general = None
    if not field_errors:
        general = leftovers[0] if leftovers and err.message == "Request failed" else err.message
    return field_errors, general
