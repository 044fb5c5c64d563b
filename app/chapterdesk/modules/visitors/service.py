from __future__ import annotations

from typing import Any

from app.chapterdesk.resource import Column, Gateway, Resource
from app.chapterdesk.schema import Field, Schema

VISITOR_STATUSES = (("Invited", "Invited"), ("Confirmed", "Confirmed"), ("Attended", "Attended"), ("No-Show", "No-Show"))
GENDERS = (("Male", "Male"), ("Female", "Female"), ("Other", "Other"))

_GUEST_REQUIRED = (
    ("name", "Name is required"),
    ("gender", "Gender is required"),
    ("mobile1", "Primary mobile number is required"),
    ("chapter", "Chapter name is required"),
    ("category", "Category is required"),
    ("addressLine1", "Address line 1 is required"),
    ("city", "City is required"),
    ("pincode", "Pincode is required"),
    ("status", "Status is required"),
)


def _visitor_details(cleaned: dict[str, Any], mode: str) -> dict[str, str]:
    if cleaned.get("isCrossChapter"):
        errors = {}
        if not cleaned.get("chapterId"):
            errors["chapterId"] = "Home Chapter is required for cross-chapter visitors"
        if not cleaned.get("invitedById"):
            errors["invitedById"] = "Invited By is required for cross-chapter visitors"
        return errors
    return {name: msg for name, msg in _GUEST_REQUIRED if not cleaned.get(name)}


VISITOR_SCHEMA = Schema(
    fields=(
        Field("isCrossChapter", "Cross-chapter visitor", type="bool"),
        Field("chapterId", "Home chapter", type="int", min_value=1),
        Field("invitedById", "Invited by", type="int", min_value=1),
        Field("name", "Name"),
        Field("email", "Email"),
        Field("gender", "Gender", type="select", choices=GENDERS),
        Field("dateOfBirth", "Date of birth", type="date"),
        Field("mobile1", "Mobile 1"),
        Field("mobile2", "Mobile 2"),
        Field("chapter", "Chapter"),
        Field("category", "Business category"),
        Field("businessDetails", "Business details", type="text"),
        Field("addressLine1", "Address line 1"),
        Field("addressLine2", "Address line 2"),
        Field("city", "City"),
        Field("pincode", "Pincode"),
        Field("status", "Status", type="select", choices=VISITOR_STATUSES),
    ),
    checks=(_visitor_details,),
)

VISITOR_RESOURCE = Resource(
    name="visitors",
    label="Visitor",
    base_path="/visitors",
    schema=VISITOR_SCHEMA,
    items_key="visitors",
    total_key="totalVisitors",
    columns=(
        Column("name", "Name"),
        Column("mobile1", "Contact", sortable=False),
        Column("category", "Business category", sortable=False),
        Column("chapter", "Chapter", sortable=False),
        Column("invitedByName", "Invited by", sortable=False),
        Column("status", "Status", sortable=False, kind="status"),
    ),
    default_sort="createdAt",
    default_order="desc",
    filters=("meetingId", "status"),
    endpoint="visitors",
)


def meeting_defaults(gw: Gateway, meeting_id: int) -> dict[str, Any]:
    """New visitors start in the meeting's own chapter."""
    meeting = gw.fetch("chaptermeetings", f"/chapter-meetings/{meeting_id}")
    if not isinstance(meeting, dict):
        return {}
    chapter = meeting.get("chapter") if isinstance(meeting.get("chapter"), dict) else {}
    values: dict[str, Any] = {}
    if chapter.get("name"):
        values["chapter"] = chapter["name"]
    if meeting.get("chapterId") is not None:
        values["chapterId"] = meeting["chapterId"]
    return values


def with_display_fields(items: list[dict[str, Any]]) -> list[dict[str, Any]]:
    rows = []
    for v in items:
        invited_by = v.get("invitedByMember") if isinstance(v.get("invitedByMember"), dict) else {}
        label = v.get("status") or "-"
        rows.append({
            **v,
            "invitedByName": invited_by.get("memberName") or "-",
            "statusLabel": f"{label} (cross-chapter)" if v.get("isCrossChapter") else label,
        })
    return rows
