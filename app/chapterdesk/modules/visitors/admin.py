from dataclasses import replace

from flask import Blueprint, current_app, request

from app.chapterdesk.crud import CrudViews
from app.chapterdesk.errors import ApiError, Unauthorized
from app.chapterdesk.modules.visitors.service import (
    GENDERS,
    VISITOR_RESOURCE,
    VISITOR_STATUSES,
    meeting_defaults,
    with_display_fields,
)
from app.chapterdesk.options import category_options, chapter_options, member_options
from app.chapterdesk.resource import gateway

bp = Blueprint("visitors", __name__)


def _meeting_id() -> int:
    return int(request.view_args["meeting_id"])


class VisitorViews(CrudViews):

    def list_params(self):
        params = super().list_params()
        kept = tuple(f for f in params.filters if f[0] != "meetingId")
        return replace(params, filters=tuple(sorted(kept + (("meetingId", str(_meeting_id())),))))

    def list_context(self, params):
        return {"filter_choices": {"status": VISITOR_STATUSES}, "title": "Meeting visitors"}

    def display_rows(self, page, ctx):
        return with_display_fields(page.items)

    def default_values(self):
        values = {"status": "Invited", "isCrossChapter": False}
        try:
            values.update(meeting_defaults(gateway(), _meeting_id()))
        except Unauthorized:
            raise
        except ApiError as e:
            current_app.logger.warning("Visitor form: meeting %s load failed: %s", _meeting_id(), e.message)
        return values

    def form_context(self, mode, entity):
        gw = gateway()
        return {
            "options": {
                "chapterId": chapter_options(gw),
                "invitedById": member_options(gw),
                "category": [(label, label) for _, label in category_options(gw)],
                "gender": list(GENDERS),
                "status": list(VISITOR_STATUSES),
            },
        }

    def extra_payload(self, mode):
        return {"meetingId": _meeting_id()}


VisitorViews(VISITOR_RESOURCE, role=None).register(bp, prefix="/meetings/<int:meeting_id>")
