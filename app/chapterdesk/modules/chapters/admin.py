from flask import Blueprint, request

from app.chapterdesk.crud import CrudViews
from app.chapterdesk.modules.chapters.service import (
    CHAPTER_RESOURCE,
    DAYS_OF_WEEK,
    locations_in_zone,
    with_place_names,
)
from app.chapterdesk.options import location_records, zone_options
from app.chapterdesk.resource import gateway

bp = Blueprint("chapters", __name__)


class ChapterViews(CrudViews):
    def default_values(self):
        return {"status": True}

    def display_rows(self, page, ctx):
        return with_place_names(page.items)

    def list_context(self, params):
        return {"row_actions": "chapter_transactions"}

    def form_context(self, mode, entity):
        gw = gateway()
        source = request.form if request.method == "POST" else (entity or {})
        return {
            "options": {
                "zoneId": zone_options(gw),
                "locationId": locations_in_zone(location_records(gw), source.get("zoneId")),
                "meetingday": list(DAYS_OF_WEEK),
            },
        }


ChapterViews(CHAPTER_RESOURCE, role="admin").register(bp)
