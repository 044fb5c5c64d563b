from __future__ import annotations

import re
from collections.abc import Mapping
from datetime import date
from typing import Any

from app.chapterdesk.fees import SplitGstBreakdown, compute_split_gst
from app.chapterdesk.options import OPTION_LIMIT
from app.chapterdesk.resource import Column, Gateway, Resource
from app.chapterdesk.schema import Field, Schema, to_json_value

PAYMENT_MODES = (("cash", "Cash"), ("cheque", "Cheque"), ("netbanking", "Net banking"), ("upi", "UPI"))
PRIMARY_KINDS = ("VENUE", "HO")
PAYMENT_DETAIL_FIELDS = ("chequeNumber", "chequeDate", "bankName", "neftNumber", "utrNumber")

# GST state code 27
HOME_STATE_CODE = "27"
HOME_STATE_KEYWORDS = (
    "maharashtra", "mumbai", "pune", "nagpur", "thane", "nashik", "aurangabad", "solapur", "navi mumbai",
)
INTRA_STATE_RATES = {"cgstRate": 9, "sgstRate": 9, "igstRate": None}
INTER_STATE_RATES = {"cgstRate": None, "sgstRate": None, "igstRate": 18}

_CHEQUE_RE = re.compile(r"^\d{6,12}$")
_BANK_RE = re.compile(r"^[A-Za-z\s\-&.]+$")
_NEFT_RE = re.compile(r"^[A-Za-z0-9]{11,18}$")
_UTR_RE = re.compile(r"^[A-Za-z0-9]{16,22}$")


def _letters_and_digits(s: str) -> bool:
    return any(c.isalpha() for c in s) and any(c.isdigit() for c in s)


def _payment_details(cleaned: dict[str, Any], mode: str) -> dict[str, str]:
    errors: dict[str, str] = {}
    pay = cleaned.get("paymentMode")
    if pay == "cheque":
        number, bank = cleaned.get("chequeNumber"), cleaned.get("bankName")
        if not number or not cleaned.get("chequeDate") or not bank:
            errors["chequeNumber"] = "Cheque number, date, and bank name are required for cheque payments"
        elif not _CHEQUE_RE.match(number):
            errors["chequeNumber"] = "Cheque number must be 6-12 digits"
        if bank:
            if len(bank) < 3:
                errors["bankName"] = "Bank name must be at least 3 characters"
            elif not _BANK_RE.match(bank):
                errors["bankName"] = "Bank name should only contain letters, spaces, hyphens, ampersands and periods"
            elif re.search(r"\s{2,}", bank):
                errors["bankName"] = "Bank name should not contain consecutive spaces"
    elif pay == "netbanking":
        neft = cleaned.get("neftNumber")
        if not neft:
            errors["neftNumber"] = "NEFT/IMPS number is required for netbanking payments"
        elif not _NEFT_RE.match(neft):
            errors["neftNumber"] = "NEFT/IMPS number must be 11-18 alphanumeric characters"
        elif not _letters_and_digits(neft):
            errors["neftNumber"] = "NEFT/IMPS number should contain both letters and numbers"
    elif pay == "upi":
        utr = cleaned.get("utrNumber")
        if not utr:
            errors["utrNumber"] = "UTR number is required for UPI payments"
        elif not _UTR_RE.match(utr):
            errors["utrNumber"] = "UTR number must be 16-22 characters long"
        elif not _letters_and_digits(utr):
            errors["utrNumber"] = "UTR number should contain both letters and numbers"
    return errors


MEMBERSHIP_SCHEMA = Schema(
    fields=(
        Field("memberId", "Member", type="int", required=True, min_value=1,
              required_message="Member is required", range_message="Member is required"),
        Field("invoiceDate", "Invoice date", type="date", required=True),
        Field("packageId", "Package", type="int", required=True, min_value=1,
              required_message="Package is required", range_message="Package is required"),
        Field("basicFees", "Basic fees", type="decimal", required=True, min_value=0, exclusive_min=True,
              range_message="Basic fees must be positive"),
        Field("cgstRate", "CGST rate (%)", type="decimal", min_value=0, range_message="CGST rate cannot be negative"),
        Field("sgstRate", "SGST rate (%)", type="decimal", min_value=0, range_message="SGST rate cannot be negative"),
        Field("igstRate", "IGST rate (%)", type="decimal", min_value=0, range_message="IGST rate cannot be negative"),
        Field("paymentDate", "Payment date", type="date", required=True),
        Field("paymentMode", "Payment mode", type="select", required=True, choices=PAYMENT_MODES),
        Field("chequeNumber", "Cheque number"),
        Field("chequeDate", "Cheque date", type="date"),
        Field("bankName", "Bank name"),
        Field("neftNumber", "NEFT/IMPS number"),
        Field("utrNumber", "UTR number"),
        Field("active", "Active", type="bool"),
    ),
    checks=(_payment_details,),
)

MEMBERSHIP_RESOURCE = Resource(
    name="memberships",
    label="Membership",
    base_path="/memberships",
    schema=MEMBERSHIP_SCHEMA,
    items_key="memberships",
    total_key="totalMemberships",
    columns=(
        Column("invoiceNumber", "Invoice no."),
        Column("invoiceDate", "Invoice date", kind="date"),
        Column("memberName", "Member", sortable=False),
        Column("packageName", "Package", sortable=False),
        Column("packageKind", "Type", sortable=False),
        Column("period", "Period", sortable=False),
        Column("totalFees", "Amount", sortable=False, kind="money"),
        Column("status", "Status", sortable=False),
    ),
    default_sort="invoiceDate",
    default_order="desc",
    filters=("memberId",),
    # member lists show membership expiry dates
    invalidates=("members",),
    endpoint="memberships",
    title_field="invoiceNumber",
)


def member_memberships_path(member_id: int) -> str:
    return f"/memberships/member/{member_id}"


def invoice_path(invoice_number: str) -> str:
    return f"/memberships/invoice/{invoice_number}.pdf"


def package_kind(package: Mapping[str, Any] | None) -> str:
    """VENUE/HO (or another package type name); bare packages fall back on the venue-fee flag."""
    if not package:
        return ""
    ptype = package.get("packageType")
    if isinstance(ptype, dict) and ptype.get("name"):
        return str(ptype["name"]).upper()
    return "VENUE" if package.get("isVenueFee") else "HO"


def active_kinds(member: Mapping[str, Any] | None) -> set[str]:
    kinds = set()
    for m in (member or {}).get("memberships") or []:
        if isinstance(m, dict) and m.get("active"):
            kinds.add(package_kind(m.get("package")))
    return kinds


def has_all_primary(member: Mapping[str, Any] | None) -> bool:
    return set(PRIMARY_KINDS) <= active_kinds(member)


def available_packages(member: Mapping[str, Any] | None, packages: list[dict[str, Any]]) -> list[dict[str, Any]]:
    """Packages the member may still buy: no second active VENUE or HO membership."""
    if not member or not packages:
        return packages
    held = active_kinds(member) & set(PRIMARY_KINDS)
    if held == set(PRIMARY_KINDS):
        return []
    return [p for p in packages if package_kind(p) not in held]


def complementary_kind(member: Mapping[str, Any] | None) -> str | None:
    """The primary kind still missing when the member holds exactly one of VENUE/HO."""
    held = active_kinds(member) & set(PRIMARY_KINDS)
    if len(held) != 1:
        return None
    return next(k for k in PRIMARY_KINDS if k not in held)


def is_home_state(member: Mapping[str, Any] | None) -> bool:
    """GST number prefix first, then the state name, then the address locations."""
    if not member:
        return False
    gst_no = str(member.get("gstNo") or "").strip()
    if len(gst_no) >= 2:
        return gst_no[:2] == HOME_STATE_CODE
    state = str(member.get("stateName") or "").lower()
    if state:
        return any(k in state for k in HOME_STATE_KEYWORDS)
    places = [str(member.get(k) or "").lower() for k in ("location", "orgLocation")]
    return any(k in place for place in places for k in HOME_STATE_KEYWORDS)


def tax_rates_for(member: Mapping[str, Any] | None) -> dict[str, Any]:
    return dict(INTRA_STATE_RATES if is_home_state(member) else INTER_STATE_RATES)


def fee_preview(raw: Mapping[str, Any]) -> SplitGstBreakdown:
    return compute_split_gst(raw.get("basicFees"), raw.get("cgstRate"), raw.get("sgstRate"), raw.get("igstRate"))


def membership_payload(raw: Mapping[str, Any]) -> dict[str, Any]:
    """Derived tax amounts, and payment details cleared for the modes they don't belong to."""
    fees = fee_preview(raw)
    body: dict[str, Any] = {
        "cgstAmount": to_json_value(fees.cgst_amount),
        "sgstAmount": to_json_value(fees.sgst_amount),
        "igstAmount": to_json_value(fees.igst_amount),
        "totalTax": to_json_value(fees.total_tax),
        "totalAmount": to_json_value(fees.total_amount),
    }
    keep = {
        "cheque": ("chequeNumber", "chequeDate", "bankName"),
        "netbanking": ("neftNumber",),
        "upi": ("utrNumber",),
    }.get(str(raw.get("paymentMode") or ""), ())
    for name in PAYMENT_DETAIL_FIELDS:
        if name not in keep:
            body[name] = None
    return body


def load_member(gw: Gateway, member_id: int) -> dict[str, Any]:
    return gw.fetch("members", f"/api/members/{member_id}")


def load_packages(gw: Gateway) -> list[dict[str, Any]]:
    body = gw.fetch("packages", "/packages", {"limit": OPTION_LIMIT, "active": "true"})
    items = body.get("packages") if isinstance(body, dict) else body
    return [p for p in items or [] if isinstance(p, dict) and "id" in p]


def _membership_status(m: Mapping[str, Any], today: date) -> str:
    end = str(m.get("packageEndDate") or "")[:10]
    if not end:
        return "Active" if m.get("active") else "Inactive"
    try:
        return "Active" if date.fromisoformat(end) >= today else "Expired"
    except ValueError:
        return "-"


def with_display_fields(items: list[dict[str, Any]], today: date | None = None) -> list[dict[str, Any]]:
    today = today or date.today()
    rows = []
    for m in items:
        package = m.get("package") or {}
        start = str(m.get("packageStartDate") or "")[:10]
        end = str(m.get("packageEndDate") or "")[:10]
        rows.append({
            **m,
            "memberName": (m.get("member") or {}).get("memberName") or "-",
            "packageName": package.get("packageName") or "-",
            "packageKind": package_kind(package) or "-",
            "period": f"{start} to {end}" if start and end else "-",
            "totalFees": m.get("totalFees") if m.get("totalFees") is not None else m.get("totalAmount"),
            "status": _membership_status(m, today),
        })
    return rows
