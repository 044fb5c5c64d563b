from __future__ import annotations

import math
from typing import Any

from app.chapterdesk.listing import ListParams
from app.chapterdesk.resource import Column, ListPage, Resource
from app.chapterdesk.schema import Field, Schema
from app.chapterdesk.session import SessionContext

# the list endpoint has no search; everything is fetched once and filtered here
FETCH_LIMIT = 1000

REQUIREMENT_RESOURCE = Resource(
    name="requirements",
    label="Requirement",
    base_path="/requirements",
    schema=Schema(
        fields=(
            Field("heading", "Heading", required=True, max_length=100,
                  length_message="Heading must be 100 characters or less"),
            Field("requirement", "Requirement", type="text", required=True, max_length=513,
                  length_message="Requirement must be 513 characters or less"),
        )
    ),
    items_key="requirements",
    columns=(
        Column("heading", "Heading", sortable=False),
        Column("requirement", "Requirement", sortable=False),
        Column("memberName", "Member", sortable=False),
    ),
    endpoint="requirements",
    title_field="heading",
)


def requirement_owner(ctx: SessionContext | None) -> dict[str, Any]:
    """Requirements are always posted for the logged-in member."""
    if ctx is None or not ctx.is_member:
        raise PermissionError("Only members can post requirements")
    return {"memberId": ctx.member_id}


def matches(item: dict[str, Any], search: str) -> bool:
    if not search:
        return True
    needle = search.lower()
    member = item.get("member") or {}
    haystack = (item.get("heading") or "", item.get("requirement") or "", member.get("memberName") or "")
    return any(needle in str(field).lower() for field in haystack)


def local_page(items: list[dict[str, Any]], params: ListParams) -> ListPage:
    """Filter by heading/requirement/member name, then slice out the requested page."""
    hits = [
        {**item, "memberName": (item.get("member") or {}).get("memberName") or ""}
        for item in items
        if matches(item, params.search)
    ]
    total_pages = max(math.ceil(len(hits) / params.limit), 1)
    page = min(params.page, total_pages)
    offset = (page - 1) * params.limit
    return ListPage(
        items=hits[offset:offset + params.limit],
        page=page,
        total_pages=total_pages,
        total_items=len(hits),
        offset=offset,
    )
