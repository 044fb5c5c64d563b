from __future__ import annotations

from datetime import date
from typing import Any

from app.chapterdesk.resource import Column, Gateway, Resource
from app.chapterdesk.schema import Field, Schema

SLIP_SCHEMA = Schema(
    fields=(
        Field("referenceId", "Reference", type="int"),
        Field("date", "Date", type="date", required=True),
        Field("chapterId", "Chapter", type="int", required=True),
        Field("toWhom", "To whom", required=True, required_message="Recipient is required"),
        Field("amount", "Amount", type="decimal", required=True, min_value=0,
              required_message="Amount is required", range_message="Amount cannot be negative"),
        Field("narration", "Narration", type="text", required=True),
        Field("testimony", "Testimony", type="text", required=True),
    )
)

SLIP_RESOURCE = Resource(
    name="thankyouslips",
    label="Thank you slip",
    base_path="/thankyou-slips",
    schema=SLIP_SCHEMA,
    items_key="thankYouSlips",
    columns=(
        Column("date", "Date", sortable=False, kind="date"),
        Column("party", "To / From", sortable=False),
        Column("amount", "Amount", sortable=False, kind="money"),
        Column("kind", "Type", sortable=False),
    ),
    invalidates=("references",),
    endpoint="thank_you_slips",
    title_field="toWhom",
)

SCOPES = {
    "given": ("/thankyou-slips/given", "Thank you slips given"),
    "received": ("/thankyou-slips/received", "Thank you slips received"),
}


def slip_kind(slip: dict[str, Any]) -> str:
    return "Reference" if slip.get("reference") or slip.get("referenceId") else "Direct"


def with_display_fields(items: list[dict[str, Any]], scope: str) -> list[dict[str, Any]]:
    rows = []
    for slip in items:
        if scope == "given":
            party = slip.get("toWhom") or ""
        else:
            party = (slip.get("fromMember") or {}).get("memberName") or (slip.get("chapter") or {}).get("name") or ""
        rows.append({**slip, "party": party, "kind": slip_kind(slip)})
    return rows


def reference_chapter_id(reference: dict[str, Any]) -> int | None:
    chapter = reference.get("chapter") or {}
    cid = chapter.get("id") or reference.get("chapterId")
    return int(cid) if cid else None


def prefill_from_reference(reference: dict[str, Any]) -> dict[str, Any]:
    return {
        "referenceId": reference.get("id"),
        "date": date.today().isoformat(),
        "chapterId": reference_chapter_id(reference) or "",
        "toWhom": reference.get("nameOfReferral") or "",
        "amount": "",
        "narration": "",
        "testimony": "",
    }


def previous_slips(gw: Gateway, reference_id: int) -> list[dict[str, Any]]:
    body = gw.fetch("thankyouslips", f"/thankyou-slips/reference/{reference_id}")
    slips = body.get("thankYouSlips") if isinstance(body, dict) else body
    return [s for s in slips or [] if isinstance(s, dict)]
