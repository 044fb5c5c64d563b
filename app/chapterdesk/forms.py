from __future__ import annotations

import logging
import secrets
from collections import OrderedDict
from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from threading import Lock
from typing import TYPE_CHECKING, Any

from app.chapterdesk.errors import (
    ApiError,
    BusinessRuleError,
    ErrorKind,
    SubmissionInProgress,
    ValidationFailed,
    map_field_errors,
)

if TYPE_CHECKING:
    from app.chapterdesk.resource import Gateway, Resource

logger = logging.getLogger(__name__)

MODES = ("create", "edit")


class SubmissionGuard:
    """
    One in-flight (or completed) mutation per rendered form instance.

    Each rendered form carries a nonce; the first submit claims it, repeats are
    refused until the claim is released by a failed attempt.
    """

    def __init__(self, max_entries: int = 4096) -> None:
        self._lock = Lock()
        self._claims: OrderedDict[str, str] = OrderedDict()
        self._max = max_entries

    @staticmethod
    def new_nonce() -> str:
        return secrets.token_urlsafe(16)

    def begin(self, nonce: str) -> None:
        with self._lock:
            state = self._claims.get(nonce)
            if state is not None:
                raise SubmissionInProgress(
                    "This form is already being saved." if state == "pending" else "This form was already submitted."
                )
            self._claims[nonce] = "pending"
            while len(self._claims) > self._max:
                self._claims.popitem(last=False)

    def finish(self, nonce: str, ok: bool) -> None:
        with self._lock:
            if ok:
                self._claims[nonce] = "done"
            else:
                self._claims.pop(nonce, None)

    def state(self, nonce: str) -> str | None:
        with self._lock:
            return self._claims.get(nonce)


@dataclass
class SubmitResult:
    ok: bool
    entity: Any = None
    field_errors: dict[str, str] = field(default_factory=dict)
    message: str | None = None
    error_kind: ErrorKind | None = None
    sent: bool = False


class FormController:
    """
    Validates and submits one entity form in create or edit mode.

    Client-side validation short-circuits before any request. Backend errors are
    mapped onto fields where possible; everything else becomes a message.
    """

    def __init__(
        self,
        gateway: "Gateway",
        resource: "Resource",
        mode: str,
        entity_id: int | None = None,
        *,
        guard: SubmissionGuard | None = None,
        on_success: Callable[[Any], None] | None = None,
    ) -> None:
        if mode not in MODES:
            raise ValueError(f"mode must be one of {MODES}")
        if mode == "edit" and entity_id is None:
            raise ValueError("edit mode needs an entity id")
        self.gateway = gateway
        self.resource = resource
        self.mode = mode
        self.entity_id = entity_id
        self.guard = guard
        self.on_success = on_success

    @property
    def fields(self):
        return self.resource.schema.fields_for(self.mode)

    def load(self) -> dict[str, Any]:
        """Edit mode: fetch the current record (raises NotFound/ApiError)."""
        if self.mode != "edit":
            return {}
        return self.gateway.get(self.resource, self.entity_id)

    def submit(
        self,
        raw: Mapping[str, Any],
        *,
        files: dict[str, Any] | None = None,
        extra: dict[str, Any] | None = None,
        nonce: str | None = None,
        send: Callable[[dict[str, Any]], Any] | None = None,
    ) -> SubmitResult:
        schema = self.resource.schema
        cleaned, errors = schema.validate(raw, self.mode)
        if errors:
            return SubmitResult(ok=False, field_errors=errors, error_kind=ErrorKind.VALIDATION)

        payload = schema.payload(cleaned, self.mode)
        if extra:
            payload.update(extra)

        if self.guard is not None and nonce:
            self.guard.begin(nonce)

        ok = False
        try:
            if send is not None:
                entity = send(payload)
            elif self.mode == "create":
                entity = self.gateway.create(self.resource, payload, files=files or None)
            else:
                entity = self.gateway.update(self.resource, self.entity_id, payload, files=files or None)
            ok = True
        except ValidationFailed as e:
            field_errors, general = map_field_errors(e, schema.names)
            return SubmitResult(
                ok=False, field_errors=field_errors, message=general, error_kind=ErrorKind.VALIDATION, sent=True
            )
        except BusinessRuleError as e:
            return SubmitResult(ok=False, message=e.message, error_kind=e.kind, sent=True)
        except ApiError as e:
            logger.warning("%s %s failed: %s", self.resource.name, self.mode, e.message)
            verb = "create" if self.mode == "create" else "update"
            message = e.message if e.message and e.message != "Request failed" else None
            return SubmitResult(
                ok=False,
                message=message or f"Failed to {verb} {self.resource.label.lower()}",
                error_kind=e.kind,
                sent=True,
            )
        finally:
            if self.guard is not None and nonce:
                self.guard.finish(nonce, ok)

        if self.on_success is not None:
            self.on_success(entity)
        return SubmitResult(ok=True, entity=entity, sent=True)
