from __future__ import annotations

from flask import Blueprint, current_app, flash, redirect, render_template, request, url_for

from app.chapterdesk.crud import CrudViews, submitted_values
from app.chapterdesk.errors import ApiError, NotFound, SubmissionInProgress, Unauthorized
from app.chapterdesk.forms import FormController
from app.chapterdesk.modules.references.service import REFERENCE_RESOURCE, can_create_slip
from app.chapterdesk.modules.thank_you_slips.service import (
    SCOPES,
    SLIP_RESOURCE,
    prefill_from_reference,
    previous_slips,
    with_display_fields,
)
from app.chapterdesk.rbac import require_login
from app.chapterdesk.resource import gateway
from app.chapterdesk.security import form_nonce
from app.chapterdesk.session import current_session

bp = Blueprint("thank_you_slips", __name__)


class SlipListViews(CrudViews):
    list_template = "thank_you_slips/list.html"
    actions = ()

    def __init__(self, scope: str) -> None:
        path, title = SCOPES[scope]
        super().__init__(SLIP_RESOURCE, role=None, list_path=path)
        self.scope = scope
        self.title = title

    def list_context(self, params):
        return {"scope": self.scope, "title": self.title}

    def display_rows(self, page, ctx):
        return with_display_fields(page.items, self.scope)


given_views = SlipListViews("given")
received_views = SlipListViews("received")


@bp.get("")
@require_login
def index():
    return redirect(url_for("thank_you_slips.given"))


@bp.get("/given")
@require_login
def given():
    return given_views.list_view()


@bp.get("/received")
@require_login
def received():
    return received_views.list_view()


@bp.get("/<int:slip_id>")
@require_login
def detail(slip_id: int):
    try:
        slip = gateway().get(SLIP_RESOURCE, slip_id)
    except Unauthorized:
        raise
    except ApiError as e:
        flash("Thank you slip not found." if isinstance(e, NotFound) else "Failed to load thank you slip", "danger")
        return redirect(url_for("thank_you_slips.given"))
    return render_template("thank_you_slips/detail.html", slip=slip)


def _load_reference(reference_id: int):
    """The reference a slip is being written for, or a redirect when that isn't allowed."""
    try:
        reference = gateway().get(REFERENCE_RESOURCE, reference_id)
    except Unauthorized:
        raise
    except ApiError as e:
        current_app.logger.warning("Slip: reference %s load failed: %s", reference_id, e.message)
        flash("Failed to load reference data", "danger")
        return None, redirect(url_for("references.received"))
    if not can_create_slip(reference, current_session()):
        flash("Thank you slips can only be created by the receiver of a business done reference.", "warning")
        return None, redirect(url_for("references.detail", reference_id=reference_id))
    return reference, None


def _render_slip_form(reference, values, errors, status=200):
    try:
        previous = previous_slips(gateway(), reference["id"])
    except Unauthorized:
        raise
    except ApiError:
        # history is informational only
        previous = []
    return render_template(
        "thank_you_slips/form.html",
        resource=SLIP_RESOURCE,
        mode="create",
        fields=SLIP_RESOURCE.schema.fields_for("create"),
        reference=reference,
        previous=previous,
        values=values,
        errors=errors,
        options={},
        nonce=form_nonce(),
        action=url_for("thank_you_slips.from_reference_post", reference_id=reference["id"]),
        cancel_url=url_for("references.received"),
        multipart=False,
    ), status


@bp.get("/from-reference/<int:reference_id>")
@require_login
def from_reference_get(reference_id: int):
    reference, bail = _load_reference(reference_id)
    if bail is not None:
        return bail
    return _render_slip_form(reference, prefill_from_reference(reference), {})


@bp.post("/from-reference/<int:reference_id>")
@require_login
def from_reference_post(reference_id: int):
    reference, bail = _load_reference(reference_id)
    if bail is not None:
        return bail

    controller = FormController(gateway(), SLIP_RESOURCE, "create", guard=current_app.extensions["submission_guard"])
    try:
        result = controller.submit(
            request.form,
            extra={"referenceId": reference_id},
            nonce=request.form.get("_nonce"),
        )
    except SubmissionInProgress as e:
        flash(str(e), "warning")
        return redirect(url_for("references.received"))

    if result.ok:
        flash("Thank you slip created successfully", "success")
        return redirect(url_for("references.received"))
    if result.message:
        flash(result.message, "danger")
    values = submitted_values(SLIP_RESOURCE, "create")
    values["referenceId"] = reference_id
    return _render_slip_form(reference, values, result.field_errors, 400)
