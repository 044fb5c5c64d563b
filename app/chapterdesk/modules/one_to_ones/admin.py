from __future__ import annotations

from dataclasses import replace
from datetime import date

from flask import Blueprint, current_app, flash, g, redirect, request, url_for

from app.chapterdesk.crud import CrudViews
from app.chapterdesk.errors import ApiError, Unauthorized
from app.chapterdesk.modules.one_to_ones.service import (
    ONE_TO_ONE_RESOURCE,
    RESPONSES,
    STATUSES,
    can_respond,
    with_display_fields,
)
from app.chapterdesk.options import chapter_options, member_options
from app.chapterdesk.rbac import require_login
from app.chapterdesk.resource import gateway
from app.chapterdesk.session import current_session

bp = Blueprint("one_to_ones", __name__)

SCOPES = {
    "requested": ("/one-to-ones/requested", "Requested One-to-ones"),
    "received": ("/one-to-ones/received", "Received One-to-ones"),
}


class OneToOneViews(CrudViews):
    form_template = "one_to_ones/form.html"
    actions = ("list", "new", "delete")

    def __init__(self, scope: str = "requested") -> None:
        path, title = SCOPES[scope]
        super().__init__(ONE_TO_ONE_RESOURCE, role=None, list_path=path)
        self.scope = scope
        self.title = title

    def list_params(self):
        params = super().list_params()
        ctx = getattr(g, "session_ctx", None)
        if ctx is None or ctx.member_id is None:
            return params
        return replace(params, filters=tuple(sorted(params.filters + (("memberId", str(ctx.member_id)),))))

    def list_context(self, params):
        ctx = {
            "title": self.title,
            "filter_choices": {"status": STATUSES},
            "tabs": [("Requested", url_for("one_to_ones.list")), ("Received", url_for("one_to_ones.received"))],
        }
        if self.scope == "received":
            ctx.update(row_actions="one_to_one_respond", can_respond=can_respond)
        return ctx

    def display_rows(self, page, ctx):
        return with_display_fields(page.items, self.scope)

    def _chapter_id(self) -> int | None:
        raw = request.values.get("chapterId") or ""
        if raw.isdigit():
            return int(raw)
        ctx = getattr(g, "session_ctx", None)
        return ctx.chapter_id if ctx is not None else None

    def default_values(self):
        return {"date": date.today().isoformat(), "chapterId": self._chapter_id() or ""}

    def form_context(self, mode, entity):
        gw = gateway()
        ctx = getattr(g, "session_ctx", None)
        return {
            "options": {
                "chapterId": chapter_options(gw),
                "requestedId": member_options(
                    gw, exclude=ctx.member_id if ctx else None, chapter_id=self._chapter_id()
                ),
            },
        }


views = OneToOneViews()
views.register(bp)
received_views = OneToOneViews("received")


@bp.get("/received")
@require_login
def received():
    return received_views.list_view()


@bp.post("/<int:entity_id>/respond")
@require_login
def respond(entity_id: int):
    ctx = current_session()
    status = (request.form.get("status") or "").strip().lower()
    if status not in RESPONSES:
        flash("Invalid status", "danger")
        return redirect(url_for("one_to_ones.received"))
    try:
        gateway().patch(ONE_TO_ONE_RESOURCE, entity_id, "status", {"status": status})
    except Unauthorized:
        raise
    except ApiError as e:
        current_app.logger.warning(
            "One-to-one %s response by member_id=%s failed: %s", entity_id, ctx.member_id, e.message
        )
        flash("Failed to update meeting status", "danger")
    else:
        flash(f"Meeting status updated to {status}", "success")
    return redirect(url_for("one_to_ones.received"))
