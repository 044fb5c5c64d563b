from __future__ import annotations

from datetime import date

from flask import Blueprint, current_app, flash, g, redirect, render_template, request, url_for

from app.chapterdesk.auth import safe_next
from app.chapterdesk.crud import CrudViews
from app.chapterdesk.errors import ApiError, NotFound, StatusChangeForbidden, Unauthorized
from app.chapterdesk.modules.references.service import (
    REFERENCE_RESOURCE,
    STATUS_LABELS,
    STATUS_SCHEMA,
    STATUSES,
    URGENCIES,
    ReferenceStatusController,
    can_change_status,
    can_create_slip,
    is_terminal,
    member_referral_values,
    normalize_status,
    self_referral_values,
    status_history,
    with_display_fields,
)
from app.chapterdesk.options import chapter_options, member_options
from app.chapterdesk.rbac import require_login
from app.chapterdesk.resource import gateway
from app.chapterdesk.session import current_session

bp = Blueprint("references", __name__)

SCOPES = {
    "all": ("/references", "References"),
    "given": ("/references/given", "Given References"),
    "received": ("/references/received", "Received References"),
}


class ReferenceViews(CrudViews):
    list_template = "references/list.html"
    form_template = "references/form.html"

    def __init__(self, scope: str = "all") -> None:
        path, title = SCOPES[scope]
        super().__init__(REFERENCE_RESOURCE, role=None, list_path=path)
        self.scope = scope
        self.title = title

    def list_context(self, params):
        return {
            "scope": self.scope,
            "title": self.title,
            "status_choices": [(s, STATUS_LABELS[s]) for s in STATUSES],
            "can_change_status": can_change_status,
            "can_create_slip": can_create_slip,
            "is_terminal": is_terminal,
            "today": date.today().isoformat(),
        }

    def display_rows(self, page, ctx):
        return with_display_fields(page.items)

    def default_values(self):
        ctx = getattr(g, "session_ctx", None)
        values = {"date": date.today().isoformat(), "self": False, "urgency": ""}
        if ctx is not None and ctx.chapter_id is not None:
            values["chapterId"] = ctx.chapter_id
        if request.args.get("self") == "1":
            values.update(self_referral_values(ctx))
        elif (request.args.get("autofill") or "").isdigit():
            try:
                values.update(member_referral_values(gateway(), int(request.args["autofill"])))
                values["memberId"] = int(request.args["autofill"])
            except Unauthorized:
                raise
            except ApiError:
                flash("Failed to fetch member details for autofill", "danger")
        return values

    def form_context(self, mode, entity):
        gw = gateway()
        ctx = getattr(g, "session_ctx", None)
        return {
            "options": {
                "chapterId": chapter_options(gw),
                # members don't refer business to themselves
                "memberId": member_options(gw, exclude=ctx.member_id if ctx else None),
                "urgency": list(URGENCIES),
            },
        }

    def success_redirect(self, mode, entity, scope):
        return url_for("references.given")


views = ReferenceViews()
views.register(bp)
given_views = ReferenceViews("given")
received_views = ReferenceViews("received")


@bp.get("/given")
@require_login
def given():
    return given_views.list_view()


@bp.get("/received")
@require_login
def received():
    return received_views.list_view()


@bp.get("/<int:reference_id>")
@require_login
def detail(reference_id: int):
    ctx = current_session()
    try:
        reference = ReferenceStatusController(gateway(), ctx).load(reference_id)
    except Unauthorized:
        raise
    except NotFound:
        flash("Reference not found.", "danger")
        return redirect(url_for("references.received"))
    except ApiError as e:
        current_app.logger.warning("Reference %s load failed: %s", reference_id, e.message)
        flash("Failed to load reference data", "danger")
        return redirect(url_for("references.received"))
    status = normalize_status(reference.get("status"))
    return render_template(
        "references/detail.html",
        reference={**reference, "status": status},
        history=status_history(reference),
        status_label=STATUS_LABELS.get(status, status.title()),
        status_choices=[(s, STATUS_LABELS[s]) for s in STATUSES],
        can_change=can_change_status(reference, ctx) and not is_terminal(reference),
        can_slip=can_create_slip(reference, ctx),
        today=date.today().isoformat(),
    )


@bp.post("/<int:reference_id>/status")
@require_login
def change_status(reference_id: int):
    back = request.form.get("back") or ""
    target = safe_next(back) or url_for("references.detail", reference_id=reference_id)

    cleaned, errors = STATUS_SCHEMA.validate(request.form)
    if errors:
        for msg in errors.values():
            flash(msg, "danger")
        return redirect(target)

    ctx = current_session()
    controller = ReferenceStatusController(gateway(), ctx)
    try:
        reference = controller.load(reference_id)
        controller.change(reference, cleaned["status"], cleaned["date"], cleaned.get("comment") or "")
    except StatusChangeForbidden as e:
        current_app.logger.warning(
            "Reference %s status change refused for member_id=%s", reference_id, ctx.member_id
        )
        flash(str(e), "warning")
        return redirect(target)
    except Unauthorized:
        raise
    except ApiError as e:
        current_app.logger.warning("Reference %s status change failed: %s", reference_id, e.message)
        flash(e.message if e.message != "Request failed" else "Failed to update reference status", "danger")
        return redirect(target)
    flash(f"Reference status updated to {cleaned['status']}", "success")
    return redirect(target)
