from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from app.chapterdesk.fees import FeeBreakdown, compute_fees
from app.chapterdesk.resource import Column, Resource
from app.chapterdesk.schema import Field, Schema

DEFAULT_GST_RATE = 18


def _venue_fee_chapter(cleaned: dict[str, Any], mode: str) -> dict[str, str]:
    if cleaned.get("isVenueFee") and not cleaned.get("chapterId"):
        return {"chapterId": "Chapter is required for venue fee packages"}
    return {}


PACKAGE_SCHEMA = Schema(
    fields=(
        Field("packageName", "Package name", required=True),
        Field("periodMonths", "Period (months)", type="int", required=True, min_value=1,
              range_message="Period must be at least 1 month"),
        Field("isVenueFee", "Venue fee", type="bool"),
        Field("chapterId", "Chapter", type="int"),
        Field("basicFees", "Basic fees", type="decimal", required=True, min_value=0, exclusive_min=True,
              range_message="Basic fees must be positive"),
        Field("gstRate", "GST rate (%)", type="decimal", required=True, min_value=0,
              range_message="GST rate cannot be negative"),
        Field("active", "Active", type="bool"),
    ),
    checks=(_venue_fee_chapter,),
)

PACKAGE_RESOURCE = Resource(
    name="packages",
    label="Package",
    base_path="/packages",
    schema=PACKAGE_SCHEMA,
    items_key="packages",
    total_key="totalPackages",
    columns=(
        Column("packageName", "Name"),
        Column("periodMonths", "Period (months)"),
        Column("basicFees", "Basic fees", kind="money"),
        Column("gstRate", "GST %"),
        Column("totalFees", "Total", sortable=False, kind="money"),
        Column("active", "Status", sortable=False, kind="bool"),
    ),
    default_sort="packageName",
    endpoint="packages",
    title_field="packageName",
)


def package_payload(raw: Mapping[str, Any]) -> dict[str, Any]:
    """Only venue-fee packages carry a chapter."""
    venue_fee = str(raw.get("isVenueFee") or "").lower() in ("1", "true", "on", "yes")
    return {} if venue_fee else {"chapterId": None}


def fee_preview(basic_fees: Any, gst_rate: Any) -> FeeBreakdown:
    return compute_fees(basic_fees, gst_rate)


def with_fees(items: list[dict[str, Any]]) -> list[dict[str, Any]]:
    """List rows with gstAmount/totalFees filled in when the backend omits them."""
    rows = []
    for item in items:
        fees = compute_fees(item.get("basicFees"), item.get("gstRate"))
        rows.append({"gstAmount": fees.gst_amount, "totalFees": fees.total_fees, **item})
    return rows
