from flask import Blueprint, request

from app.chapterdesk.crud import CrudViews
from app.chapterdesk.modules.packages.service import (
    DEFAULT_GST_RATE,
    PACKAGE_RESOURCE,
    fee_preview,
    package_payload,
    with_fees,
)
from app.chapterdesk.options import chapter_options
from app.chapterdesk.rbac import require_role
from app.chapterdesk.resource import gateway

bp = Blueprint("packages", __name__)


class PackageViews(CrudViews):
    form_template = "packages/form.html"

    def default_values(self):
        return {"gstRate": DEFAULT_GST_RATE, "active": True, "isVenueFee": False}

    def display_rows(self, page, ctx):
        return with_fees(page.items)

    def form_context(self, mode, entity):
        source = request.form if request.method == "POST" else (entity or self.default_values())
        return {
            "options": {"chapterId": chapter_options(gateway())},
            "fees": fee_preview(source.get("basicFees"), source.get("gstRate")),
        }

    def extra_payload(self, mode):
        return package_payload(request.form)


PackageViews(PACKAGE_RESOURCE, role="admin").register(bp)


@bp.get("/fees")
@require_role("admin")
def fees_preview():
    """Live GST/total preview while the form is being filled in."""
    fees = fee_preview(request.args.get("basicFees"), request.args.get("gstRate"))
    return fees.as_dict()
