from __future__ import annotations

from typing import Any

from app.chapterdesk.resource import Column, Resource
from app.chapterdesk.schema import Field, Schema

DAYS_OF_WEEK = tuple((d, d) for d in ("Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday", "Sunday"))
BALANCE_FIELDS = ("bankopeningbalance", "bankclosingbalance", "cashopeningbalance", "cashclosingbalance")


def _location_for_zone(cleaned: dict[str, Any], mode: str) -> dict[str, str]:
    if cleaned.get("zoneId") and not cleaned.get("locationId"):
        return {"locationId": "Location is required when a zone is selected"}
    return {}


CHAPTER_SCHEMA = Schema(
    fields=(
        Field("name", "Name", required=True, max_length=255),
        Field("zoneId", "Zone", type="int", required=True, min_value=1,
              required_message="Zone is required", range_message="Zone is required"),
        Field("locationId", "Location", type="int", min_value=1),
        Field("date", "Formation date", type="date", required=True, required_message="Formation Date is required"),
        Field("meetingday", "Meeting day", type="select", required=True, choices=DAYS_OF_WEEK,
              required_message="Meeting day is required"),
        Field("status", "Active", type="bool"),
        Field("venue", "Venue", required=True),
        Field("bankopeningbalance", "Bank opening balance", type="decimal"),
        Field("bankclosingbalance", "Bank closing balance", type="decimal"),
        Field("cashopeningbalance", "Cash opening balance", type="decimal"),
        Field("cashclosingbalance", "Cash closing balance", type="decimal"),
    ),
    checks=(_location_for_zone,),
)

CHAPTER_RESOURCE = Resource(
    name="chapters",
    label="Chapter",
    base_path="/chapters",
    schema=CHAPTER_SCHEMA,
    items_key="chapters",
    total_key="totalChapters",
    columns=(
        Column("name", "Name"),
        Column("meetingday", "Meeting day", sortable=False),
        Column("locationName", "Location", sortable=False),
        Column("zoneName", "Zone", sortable=False),
    ),
    default_sort="name",
    # transaction lists are per chapter and show its balances
    invalidates=("transactions",),
    endpoint="chapters",
)


def _nested(value: Any, key: str) -> Any:
    return value.get(key) if isinstance(value, dict) else None


def with_place_names(items: list[dict[str, Any]]) -> list[dict[str, Any]]:
    return [
        {**c, "locationName": _nested(c.get("location"), "location"), "zoneName": _nested(c.get("zones"), "name")}
        for c in items
    ]


def locations_in_zone(locations: list[dict[str, Any]], zone_id: Any) -> list[tuple[str, str]]:
    """Location choices for the selected zone; all of them until a zone is picked."""
    zone = str(zone_id or "")
    return [
        (str(loc["id"]), str(loc.get("location") or loc["id"]))
        for loc in locations
        if "id" in loc and (not zone or str(loc.get("zoneId")) == zone)
    ]
