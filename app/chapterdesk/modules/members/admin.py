from dataclasses import replace

from flask import Blueprint, current_app, flash, redirect, request

from app.chapterdesk.crud import CrudViews, submitted_values, uploaded_files
from app.chapterdesk.errors import ApiError, Unauthorized
from app.chapterdesk.listing import ListController
from app.chapterdesk.modules.members.service import (
    ACTIVE_FILTERS,
    GENDERS,
    MEMBER_RESOURCE,
    PHOTO_FIELDS,
    oversized_photos,
    status_message,
)
from app.chapterdesk.options import category_options, chapter_options, state_options
from app.chapterdesk.rbac import require_role
from app.chapterdesk.resource import gateway

bp = Blueprint("members", __name__)


class MemberViews(CrudViews):
    def list_params(self):
        params = super().list_params()
        if not params.filter_value("active"):
            params = replace(params, filters=tuple(sorted(params.filters + (("active", "all"),))))
        return params

    def list_context(self, params):
        return {"filter_choices": {"active": ACTIVE_FILTERS}, "row_actions": "member_status"}

    def form_context(self, mode, entity):
        gw = gateway()
        categories = [(label, label) for _, label in category_options(gw)]
        return {
            "options": {
                "chapterId": chapter_options(gw),
                "category": categories,
                "gender": list(GENDERS),
                "stateId": state_options(gw),
            },
            "entity": entity,
        }

    def _save(self, mode, entity_id, scope):
        too_big = oversized_photos(uploaded_files(PHOTO_FIELDS))
        if too_big:
            values = submitted_values(self.resource, mode)
            return self._render_form(mode, entity_id, values, too_big, scope=scope), 400
        return super()._save(mode, entity_id, scope)


views = MemberViews(MEMBER_RESOURCE, role="admin")
views.register(bp)


@bp.post("/<int:entity_id>/toggle-status")
@require_role("admin")
def toggle_status(entity_id: int):
    try:
        result = ListController(gateway(), MEMBER_RESOURCE).change_status(entity_id, "user-status", {})
    except Unauthorized:
        raise
    except ApiError as e:
        current_app.logger.warning("Member %s status toggle failed: %s", entity_id, e.message)
        flash(e.message if e.message != "Request failed" else "Failed to update user status", "danger")
    else:
        flash(status_message(result), "success")
    return redirect(request.referrer if (request.referrer or "").startswith(request.host_url) else views.list_url())
