from __future__ import annotations

from datetime import date
from typing import Any

from app.chapterdesk.errors import StatusChangeForbidden
from app.chapterdesk.resource import Column, Gateway, Resource
from app.chapterdesk.schema import Field, Schema
from app.chapterdesk.session import SessionContext

PENDING = "pending"
CONTACTED = "contacted"
BUSINESS_DONE = "business done"
REJECTED = "rejected"

STATUSES = (PENDING, CONTACTED, BUSINESS_DONE, REJECTED)
STATUS_LABELS = {PENDING: "Pending", CONTACTED: "Contacted", BUSINESS_DONE: "Business Done", REJECTED: "Rejected"}
# Older records and some screens spell "business done" differently.
STATUS_ALIASES = {"converted": BUSINESS_DONE, "business-done": BUSINESS_DONE, "businessdone": BUSINESS_DONE}
# Terminal for the console: the status control is replaced (or dropped).
TERMINAL_STATUSES = frozenset({BUSINESS_DONE, REJECTED})

URGENCIES = (("low", "Low"), ("medium", "Medium"), ("high", "High"))

REFERENCE_SCHEMA = Schema(
    fields=(
        Field("date", "Date", type="date", required=True, required_message="Date is required"),
        Field("noOfReferences", "No. of references", type="int", min_value=0),
        Field("chapterId", "Chapter", type="int", required=True, min_value=1,
              required_message="Chapter is required", range_message="Please select a chapter"),
        Field("memberId", "Member", type="int", required=True, min_value=1,
              required_message="Member is required", range_message="Please select a member"),
        Field("urgency", "Urgency", type="select", choices=URGENCIES),
        Field("self", "Self referral", type="bool"),
        Field("nameOfReferral", "Name of referral", required=True, required_message="Name of referral is required"),
        Field("mobile1", "Mobile 1", required=True, min_length=10,
              required_message="Primary mobile number is required",
              length_message="Mobile number must be at least 10 digits"),
        Field("mobile2", "Mobile 2"),
        Field("email", "Email", type="email", pattern_message="Invalid email format"),
        Field("remarks", "Remarks", type="text"),
        Field("addressLine1", "Address line 1"),
        Field("addressLine2", "Address line 2"),
        Field("location", "Location"),
        Field("pincode", "Pincode"),
    )
)

REFERENCE_RESOURCE = Resource(
    name="references",
    label="Reference",
    base_path="/references",
    schema=REFERENCE_SCHEMA,
    items_key="references",
    columns=(
        Column("date", "Date", kind="date"),
        Column("nameOfReferral", "Referral"),
        Column("urgency", "Urgency"),
        Column("status", "Status", kind="status"),
    ),
    default_sort="date",
    default_order="desc",
    filters=("status", "fromDate", "toDate"),
    # slips are listed per reference
    invalidates=("thankyouslips",),
    endpoint="references",
    title_field="nameOfReferral",
)

STATUS_SCHEMA = Schema(
    fields=(
        Field("status", "Status", type="select", required=True,
              choices=tuple((s, STATUS_LABELS[s]) for s in STATUSES)),
        Field("date", "Date", type="date", required=True),
        Field("comment", "Comment", type="text"),
    )
)

AUTOFILL_FIELDS = ("nameOfReferral", "email", "mobile1", "mobile2", "addressLine1", "addressLine2", "location", "pincode")


def normalize_status(status: str | None) -> str:
    s = (status or "").strip().lower()
    return STATUS_ALIASES.get(s, s)


def is_terminal(reference: dict[str, Any]) -> bool:
    return normalize_status(reference.get("status")) in TERMINAL_STATUSES


def receiver_id(reference: dict[str, Any]) -> int | None:
    """The member a reference was given to (older payloads only carry memberId)."""
    rid = reference.get("receiverId")
    if rid is None:
        rid = reference.get("memberId")
    try:
        return int(rid) if rid is not None else None
    except (TypeError, ValueError):
        return None


def can_change_status(reference: dict[str, Any], ctx: SessionContext | None) -> bool:
    return ctx is not None and ctx.is_member and receiver_id(reference) == ctx.member_id


def can_create_slip(reference: dict[str, Any], ctx: SessionContext | None) -> bool:
    return normalize_status(reference.get("status")) == BUSINESS_DONE and can_change_status(reference, ctx)


def status_history(reference: dict[str, Any]) -> list[dict[str, Any]]:
    """History entries, newest first."""
    entries = [e for e in reference.get("statusHistory") or [] if isinstance(e, dict)]
    return sorted(entries, key=lambda e: (str(e.get("createdAt") or ""), str(e.get("date") or "")), reverse=True)


def party_name(reference: dict[str, Any], role: str) -> str:
    """Display name of the giver or receiver, falling back to the embedded member."""
    party = reference.get(role) or (reference.get("member") if role == "receiver" else None) or {}
    return party.get("memberName") or f"Unknown {role.capitalize()}"


def with_display_fields(items: list[dict[str, Any]]) -> list[dict[str, Any]]:
    rows = []
    for ref in items:
        history = status_history(ref)
        rows.append({
            **ref,
            "status": normalize_status(ref.get("status")),
            "giverName": party_name(ref, "giver"),
            "receiverName": party_name(ref, "receiver"),
            "lastUpdate": history[0] if history else None,
        })
    return rows


def self_referral_values(ctx: SessionContext | None) -> dict[str, Any]:
    """Referral contact details prefilled from the logged-in member."""
    if ctx is None or not ctx.is_member:
        return {}
    return {
        "self": True,
        "nameOfReferral": ctx.member_name,
        "email": ctx.member_email,
        "mobile1": ctx.mobile1,
        "mobile2": ctx.mobile2,
    }


def member_referral_values(gw: Gateway, member_id: int) -> dict[str, Any]:
    """Referral contact details for another member (GET /api/members/:id/reference-details)."""
    body = gw.fetch("members", f"/api/members/{member_id}/reference-details")
    member = body.get("member") if isinstance(body, dict) else None
    member = member or {}
    values = {name: member.get(name) or "" for name in AUTOFILL_FIELDS if name != "nameOfReferral"}
    values["nameOfReferral"] = member.get("memberName") or ""
    return values


class ReferenceStatusController:
    """
    Status transitions for one reference.

    Only the receiving member may move a reference; anyone else is refused
    before a request goes out. The backend still decides whether the move is
    allowed and owns the history.
    """

    def __init__(self, gateway: Gateway, session: SessionContext | None) -> None:
        self.gateway = gateway
        self.session = session

    def load(self, reference_id: int) -> dict[str, Any]:
        return self.gateway.get(REFERENCE_RESOURCE, reference_id)

    def change(self, reference: dict[str, Any], status: str, on: date | str | None = None, comment: str = "") -> Any:
        if not can_change_status(reference, self.session):
            raise StatusChangeForbidden("Only the reference receiver can update the status")
        status = normalize_status(status)
        if status not in STATUSES:
            raise ValueError(f"Unknown reference status {status!r}")
        when = on or date.today()
        body = {
            "status": status,
            "date": when.isoformat() if isinstance(when, date) else str(when),
            "comment": comment or "",
        }
        return self.gateway.patch(REFERENCE_RESOURCE, reference["id"], "status", body)
