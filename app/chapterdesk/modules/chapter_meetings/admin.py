from flask import Blueprint, g

from app.chapterdesk.crud import CrudViews
from app.chapterdesk.modules.chapter_meetings.service import MEETING_RESOURCE, meeting_chapter
from app.chapterdesk.timeslots import TIME_OPTIONS

bp = Blueprint("chapter_meetings", __name__)


class MeetingViews(CrudViews):
    def list_context(self, params):
        return {"row_actions": "meeting_visitors"}

    def form_context(self, mode, entity):
        return {"time_options": TIME_OPTIONS}

    def extra_payload(self, mode):
        return meeting_chapter(getattr(g, "session_ctx", None))


MeetingViews(MEETING_RESOURCE, role=None).register(bp)
