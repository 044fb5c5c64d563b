import io
from datetime import date

from flask import Blueprint, current_app, flash, redirect, request, send_file, url_for

from app.chapterdesk.crud import CrudViews, backend_message
from app.chapterdesk.errors import ApiError, Unauthorized
from app.chapterdesk.modules.memberships.service import (
    MEMBERSHIP_RESOURCE,
    PAYMENT_MODES,
    available_packages,
    complementary_kind,
    fee_preview,
    has_all_primary,
    invoice_path,
    load_member,
    load_packages,
    member_memberships_path,
    membership_payload,
    package_kind,
    tax_rates_for,
    with_display_fields,
)
from app.chapterdesk.options import member_options
from app.chapterdesk.rbac import require_role
from app.chapterdesk.resource import gateway

bp = Blueprint("memberships", __name__)


def _member_arg(*sources) -> int | None:
    for source in sources:
        raw = str((source or {}).get("memberId") or "")
        if raw.isdigit():
            return int(raw)
    return None


def _try_member(member_id: int | None):
    if member_id is None:
        return None
    try:
        return load_member(gateway(), member_id)
    except Unauthorized:
        raise
    except ApiError as e:
        current_app.logger.warning("Membership form: member %s load failed: %s", member_id, e.message)
        return None


class MembershipViews(CrudViews):
    form_template = "memberships/form.html"

    def resolve_list_path(self, scope):
        member_id = _member_arg(request.args)
        return member_memberships_path(member_id) if member_id is not None else None

    def list_context(self, params):
        return {"filter_choices": {"memberId": member_options(gateway())}, "row_actions": "membership_invoice"}

    def display_rows(self, page, ctx):
        return with_display_fields(page.items)

    def default_values(self):
        today = date.today().isoformat()
        values = {"invoiceDate": today, "paymentDate": today, "paymentMode": "cash", "active": True}
        member_id = _member_arg(request.args)
        if member_id is not None:
            values["memberId"] = member_id
            values.update({k: v if v is not None else "" for k, v in tax_rates_for(_try_member(member_id)).items()})
        return values

    def form_context(self, mode, entity):
        gw = gateway()
        source = request.form if request.method == "POST" else (entity or self.default_values())
        member = _try_member(_member_arg(source, request.args))
        try:
            packages = load_packages(gw)
        except Unauthorized:
            raise
        except ApiError:
            packages = []
        if mode == "create":
            packages = available_packages(member, packages)
        wanted = (request.args.get("kind") or "").upper()
        return {
            "options": {
                "memberId": member_options(gw),
                "packageId": [
                    (str(p["id"]), f'{p.get("packageName") or p["id"]} ({package_kind(p)})')
                    for p in packages
                    if not wanted or package_kind(p) == wanted
                ],
                "paymentMode": list(PAYMENT_MODES),
            },
            "fees": fee_preview(source),
            "all_primary": mode == "create" and has_all_primary(member),
        }

    def extra_payload(self, mode):
        return membership_payload(request.form)

    def success_redirect(self, mode, entity, scope):
        member_id = _member_arg(request.form)
        if mode == "create":
            missing = complementary_kind(_try_member(member_id))
            if missing:
                flash(f"This member has no active {missing} membership yet.", "info")
                return url_for("memberships.new_get", memberId=member_id, kind=missing)
        return self.list_url(scope)


MembershipViews(MEMBERSHIP_RESOURCE, role="admin").register(bp)


@bp.get("/fees")
@require_role("admin")
def fees_preview():
    """Live tax/total preview while the form is being filled in."""
    return fee_preview(request.args).as_dict()


@bp.get("/invoice/<invoice_number>.pdf")
@require_role("admin")
def invoice(invoice_number: str):
    try:
        content, content_type = gateway().download(invoice_path(invoice_number))
    except Unauthorized:
        raise
    except ApiError as e:
        current_app.logger.warning("Invoice %s download failed: %s", invoice_number, e.message)
        flash(backend_message(e, "Failed to download invoice"), "danger")
        return redirect(url_for("memberships.list"))
    return send_file(
        io.BytesIO(content),
        mimetype=content_type or "application/pdf",
        as_attachment=True,
        download_name=f"{invoice_number}.pdf",
    )
