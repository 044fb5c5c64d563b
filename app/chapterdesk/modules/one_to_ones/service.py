from __future__ import annotations

from typing import Any

from app.chapterdesk.resource import Column, Resource
from app.chapterdesk.schema import Field, Schema
from app.chapterdesk.session import SessionContext

STATUSES = (("pending", "Pending"), ("accepted", "Accepted"), ("cancelled", "Cancelled"))
RESPONSES = ("accepted", "cancelled")

ONE_TO_ONE_SCHEMA = Schema(
    fields=(
        Field("date", "Date", type="date", required=True),
        Field("chapterId", "Chapter", type="int", required=True, min_value=1,
              required_message="Chapter is required", range_message="Chapter is required"),
        Field("requestedId", "Meet with", type="int", required=True, min_value=1,
              required_message="Member is required", range_message="Member is required"),
        Field("remarks", "Remarks", type="text"),
    ),
)

ONE_TO_ONE_RESOURCE = Resource(
    name="onetoones",
    label="One-to-one",
    base_path="/one-to-ones",
    schema=ONE_TO_ONE_SCHEMA,
    items_key="oneToOnes",
    total_key="total",
    columns=(
        Column("date", "Date", kind="date"),
        Column("otherMemberName", "Member", sortable=False),
        Column("chapterName", "Chapter", sortable=False),
        Column("status", "Status", sortable=False, kind="status"),
        Column("remarks", "Remarks", sortable=False),
    ),
    default_sort="date",
    default_order="desc",
    filters=("status",),
    endpoint="one_to_ones",
    title_field="date",
    plural_label="One-to-ones",
)


def _member_id(value: Any) -> int | None:
    if isinstance(value, dict) and value.get("id") is not None:
        return int(value["id"])
    return None


def requested_member_id(one: dict[str, Any]) -> int | None:
    if one.get("requestedId") is not None:
        return int(one["requestedId"])
    return _member_id(one.get("requested"))


def can_respond(one: dict[str, Any], ctx: SessionContext | None) -> bool:
    """Only the requested member answers, and only while the request is pending."""
    return (
        ctx is not None
        and ctx.is_member
        and str(one.get("status") or "").lower() == "pending"
        and requested_member_id(one) == ctx.member_id
    )


def with_display_fields(items: list[dict[str, Any]], scope: str) -> list[dict[str, Any]]:
    # on the received tab the other party is whoever asked
    other_key = "requester" if scope == "received" else "requested"
    rows = []
    for one in items:
        other = one.get(other_key) if isinstance(one.get(other_key), dict) else {}
        chapter = one.get("chapter") if isinstance(one.get("chapter"), dict) else {}
        rows.append({
            **one,
            "otherMemberName": other.get("memberName") or "-",
            "chapterName": chapter.get("name") or "-",
            "statusLabel": str(one.get("status") or "-").title(),
        })
    return rows
