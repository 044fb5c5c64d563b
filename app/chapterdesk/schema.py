"""
Declarative field rules for entity forms.

A Schema validates raw form input (a Flask MultiDict or a plain dict) into a
cleaned payload plus a {field: message} error map. Nothing here talks to the
network: a non-empty error map means no request is sent.
"""
from __future__ import annotations

import re
from collections.abc import Callable, Mapping
from dataclasses import dataclass
from datetime import date
from decimal import Decimal, InvalidOperation
from typing import Any
from urllib.parse import urlparse

MOBILE_RE = r"^\d{10}$"
PINCODE_RE = r"^\d{6}$"
GSTIN_RE = r"^[0-9]{2}[A-Z]{5}[0-9]{4}[A-Z]{1}[0-9A-Z]{1}Z[0-9A-Z]{1}$"
TIME_RE = r"^([01]\d|2[0-3]):[0-5]\d$"
_EMAIL_RE = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")

FIELD_TYPES = ("str", "text", "password", "int", "decimal", "date", "time", "bool", "email", "url", "select", "multi", "file")
_TRUTHY = ("1", "true", "on", "yes")


@dataclass(frozen=True)
class Field:
    name: str
    label: str
    type: str = "str"
    required: bool = False
    required_message: str | None = None

    min_length: int | None = None
    max_length: int | None = None
    length_message: str | None = None

    min_value: Decimal | int | None = None
    max_value: Decimal | int | None = None
    exclusive_min: bool = False
    range_message: str | None = None

    pattern: str | None = None
    pattern_message: str | None = None

    choices: tuple[tuple[str, str], ...] = ()
    min_items: int | None = None

    # create-only fields (e.g. passwords) are neither rendered nor sent on edit
    create_only: bool = False
    # form-only fields (e.g. verify password) are validated but never sent
    send: bool = True
    placeholder: str = ""

    def __post_init__(self) -> None:
        if self.type not in FIELD_TYPES:
            raise ValueError(f"Unknown field type {self.type!r} for {self.name}")

    def applies_to(self, mode: str) -> bool:
        return mode == "create" or not self.create_only


Check = Callable[[dict[str, Any], str], dict[str, str]]


@dataclass(frozen=True)
class Schema:
    fields: tuple[Field, ...]
    checks: tuple[Check, ...] = ()

    def fields_for(self, mode: str) -> tuple[Field, ...]:
        return tuple(f for f in self.fields if f.applies_to(mode))

    @property
    def names(self) -> set[str]:
        return {f.name for f in self.fields}

    def validate(self, raw: Mapping[str, Any], mode: str = "create") -> tuple[dict[str, Any], dict[str, str]]:
        cleaned: dict[str, Any] = {}
        errors: dict[str, str] = {}
        for f in self.fields_for(mode):
            if f.type == "file":
                continue
            value, err = _clean_field(f, raw)
            if err:
                errors[f.name] = err
            else:
                cleaned[f.name] = value
        if not errors:
            for check in self.checks:
                errors.update(check(cleaned, mode))
        return cleaned, errors

    def payload(self, cleaned: dict[str, Any], mode: str = "create") -> dict[str, Any]:
        """JSON-ready request body: form-only fields dropped, dates/decimals serialised."""
        body: dict[str, Any] = {}
        for f in self.fields_for(mode):
            if not f.send or f.type == "file" or f.name not in cleaned:
                continue
            body[f.name] = to_json_value(cleaned[f.name])
        return body


def to_json_value(value: Any) -> Any:
    if isinstance(value, date):
        return value.isoformat()
    if isinstance(value, Decimal):
        return int(value) if value == value.to_integral_value() else float(value)
    return value


def _raw_value(f: Field, raw: Mapping[str, Any]) -> Any:
    if f.type == "multi":
        getlist = getattr(raw, "getlist", None)
        if getlist is not None:
            return getlist(f.name)
        v = raw.get(f.name)
        if v is None:
            return []
        return list(v) if isinstance(v, (list, tuple)) else [v]
    v = raw.get(f.name)
    if isinstance(v, str):
        v = v.strip()
        if v == "":
            return None
    return v


def _required_msg(f: Field) -> str:
    return f.required_message or f"{f.label} is required"


def _clean_field(f: Field, raw: Mapping[str, Any]) -> tuple[Any, str | None]:
    v = _raw_value(f, raw)

    if f.type == "bool":
        if isinstance(v, bool):
            return v, None
        return (str(v).lower() in _TRUTHY) if v is not None else False, None

    if f.type == "multi":
        items: list[int] = []
        for item in v:
            if item in (None, ""):
                continue
            try:
                items.append(int(item))
            except (TypeError, ValueError):
                return None, f"{f.label} contains an invalid selection"
        if f.required and not items:
            return None, _required_msg(f)
        if f.min_items is not None and len(items) < f.min_items:
            return None, f.required_message or f"Select at least {f.min_items} {f.label.lower()}"
        return items, None

    if v is None:
        if f.required:
            return None, _required_msg(f)
        return None, None

    if f.type in ("int", "decimal"):
        return _clean_number(f, v)

    if f.type == "date":
        if isinstance(v, date):
            return v, None
        try:
            return date.fromisoformat(str(v)[:10]), None
        except ValueError:
            return None, f"Invalid date format for {f.label}"

    if f.type == "select":
        s = str(v)
        if f.choices and s not in {k for k, _ in f.choices}:
            return None, f"Invalid {f.label.lower()}. Must be one of: {', '.join(k for k, _ in f.choices)}"
        return s, None

    s = str(v)
    err = _check_length(f, s)
    if err:
        return None, err

    if f.type == "time" and not re.match(f.pattern or TIME_RE, s):
        return None, f.pattern_message or f"{f.label} must be in HH:MM format"
    if f.type == "email" and not _EMAIL_RE.match(s):
        return None, f.pattern_message or "Invalid email format"
    if f.type == "url":
        parsed = urlparse(s)
        if parsed.scheme not in ("http", "https") or not parsed.netloc:
            return None, f.pattern_message or "Invalid URL"
    if f.pattern and f.type != "time" and not re.match(f.pattern, s):
        return None, f.pattern_message or f"Invalid {f.label.lower()} format"
    return s, None


def _check_length(f: Field, s: str) -> str | None:
    n = len(s)
    if f.min_length is not None and n < f.min_length:
        return f.length_message or f"{f.label} must be at least {f.min_length} characters"
    if f.max_length is not None and n > f.max_length:
        return f.length_message or f"{f.label} must not exceed {f.max_length} characters"
    return None


def _clean_number(f: Field, v: Any) -> tuple[Any, str | None]:
    try:
        num = Decimal(str(v))
    except InvalidOperation:
        return None, f"{f.label} must be a number"
    if not num.is_finite():
        return None, f"{f.label} must be a number"
    if f.type == "int":
        if num != num.to_integral_value():
            return None, f"{f.label} must be a whole number"
        num = int(num)
    if f.min_value is not None:
        low = Decimal(str(f.min_value))
        if (f.exclusive_min and num <= low) or (not f.exclusive_min and num < low):
            return None, f.range_message or f"{f.label} must be at least {f.min_value}"
    if f.max_value is not None and num > Decimal(str(f.max_value)):
        return None, f.range_message or f"{f.label} must not exceed {f.max_value}"
    return num, None


def passwords_match(password_field: str = "password", verify_field: str = "verifyPassword") -> Check:
    def check(cleaned: dict[str, Any], mode: str) -> dict[str, str]:
        if mode != "create":
            return {}
        if cleaned.get(password_field) != cleaned.get(verify_field):
            return {verify_field: "Passwords must match"}
        return {}

    return check


def minimum_age(field_name: str, years: int, today: Callable[[], date] = date.today) -> Check:
    def check(cleaned: dict[str, Any], mode: str) -> dict[str, str]:
        dob = cleaned.get(field_name)
        if dob is None:
            return {}
        t = today()
        try:
            cutoff = t.replace(year=t.year - years)
        except ValueError:  # Feb 29
            cutoff = t.replace(year=t.year - years, day=28)
        if dob > cutoff:
            return {field_name: f"Must be at least {years} years old"}
        return {}

    return check
