from __future__ import annotations

from typing import Any

from app.chapterdesk.resource import Column, Resource
from app.chapterdesk.schema import Field, Schema
from app.chapterdesk.session import SessionContext

MEETING_SCHEMA = Schema(
    fields=(
        Field("date", "Meeting date", type="date", required=True, required_message="Meeting date is required"),
        Field("meetingTime", "Meeting time", type="time", required=True, required_message="Meeting time is required"),
        Field("meetingTitle", "Meeting title", required=True, required_message="Meeting title is required"),
        Field("meetingVenue", "Meeting venue", required=True, required_message="Meeting venue is required"),
    )
)

MEETING_RESOURCE = Resource(
    name="chaptermeetings",
    label="Chapter meeting",
    base_path="/chapter-meetings",
    schema=MEETING_SCHEMA,
    items_key="meetings",
    total_key="totalMeetings",
    columns=(
        Column("date", "Date", kind="date"),
        Column("meetingTitle", "Title"),
        Column("meetingTime", "Time"),
        Column("meetingVenue", "Venue"),
    ),
    default_sort="date",
    default_order="desc",
    endpoint="chapter_meetings",
    title_field="meetingTitle",
)


def meeting_chapter(ctx: SessionContext | None) -> dict[str, Any]:
    """The chapter a new/edited meeting belongs to, from the session member."""
    if ctx is None or ctx.chapter_id is None:
        return {}
    return {"chapterId": ctx.chapter_id}
