from __future__ import annotations

from typing import Any

from app.chapterdesk.resource import Column, Resource
from app.chapterdesk.schema import (
    GSTIN_RE,
    MOBILE_RE,
    PINCODE_RE,
    Field,
    Schema,
    minimum_age,
    passwords_match,
)

MAX_PHOTO_BYTES = 5 * 1024 * 1024
PHOTO_FIELDS = ("profilePicture", "coverPhoto", "logo")
GENDERS = (("Male", "Male"), ("Female", "Female"), ("Other", "Other"))
ACTIVE_FILTERS = (("all", "All Members"), ("true", "Active Members"), ("false", "Inactive Members"))

_MOBILE_MSG = "Mobile number must be 10 digits"
_PINCODE_MSG = "Invalid pincode format"


def _mobile(name: str, label: str, required: bool = False) -> Field:
    return Field(name, label, required=required, pattern=MOBILE_RE, pattern_message=_MOBILE_MSG,
                 required_message=_MOBILE_MSG if required else None)


def _dob_required_on_create(cleaned: dict[str, Any], mode: str) -> dict[str, str]:
    if mode == "create" and cleaned.get("dateOfBirth") is None:
        return {"dateOfBirth": "Date of birth is required"}
    return {}


MEMBER_SCHEMA = Schema(
    fields=(
        Field("memberName", "Name", required=True, required_message="Name is required"),
        Field("chapterId", "Chapter", type="int", required=True, min_value=1,
              required_message="Chapter is required", range_message="Chapter is required"),
        Field("category", "Business category", type="select", required=True,
              required_message="Business category is required"),
        Field("gender", "Gender", type="select", required=True, choices=GENDERS),
        Field("dateOfBirth", "Date of birth", type="date"),
        _mobile("mobile1", "Mobile 1", required=True),
        _mobile("mobile2", "Mobile 2"),
        Field("gstNo", "GST number", pattern=GSTIN_RE,
              pattern_message="Invalid GST number format. Example: 27AAPFU0939F1ZV"),
        Field("organizationName", "Organization name", required=True),
        Field("businessTagline", "Business tagline"),
        _mobile("organizationMobileNo", "Organization mobile", required=True),
        Field("organizationLandlineNo", "Organization landline"),
        Field("organizationEmail", "Organization email", type="email", pattern_message="Invalid email address"),
        Field("orgAddressLine1", "Organization address line 1", required=True, required_message="Address is required"),
        Field("orgAddressLine2", "Organization address line 2"),
        Field("orgLocation", "Organization location", required=True, required_message="Location is required"),
        Field("orgPincode", "Organization pincode", required=True, pattern=PINCODE_RE, pattern_message=_PINCODE_MSG),
        Field("organizationWebsite", "Organization website", type="url"),
        Field("organizationDescription", "Organization description", type="text"),
        Field("addressLine1", "Address line 1", required=True, required_message="Address is required"),
        Field("addressLine2", "Address line 2"),
        Field("location", "Location", required=True, required_message="Location is required"),
        Field("pincode", "Pincode", required=True, pattern=PINCODE_RE, pattern_message=_PINCODE_MSG),
        Field("stateId", "State", type="int", min_value=1),
        Field("specificAsk", "Specific ask", type="text"),
        Field("specificGive", "Specific give", type="text"),
        Field("clients", "Clients", type="text"),
        Field("email", "Email", type="email", required=True, pattern_message="Invalid email format"),
        Field("profilePicture", "Profile picture", type="file"),
        Field("coverPhoto", "Cover photo", type="file"),
        Field("logo", "Logo", type="file"),
        Field("password", "Password", type="password", required=True, min_length=6,
              length_message="Password must be at least 6 characters", create_only=True),
        Field("verifyPassword", "Verify password", type="password", required=True, min_length=6,
              length_message="Password must be at least 6 characters", create_only=True, send=False),
    ),
    checks=(_dob_required_on_create, minimum_age("dateOfBirth", 18), passwords_match()),
)

MEMBER_RESOURCE = Resource(
    name="members",
    label="Member",
    base_path="/api/members",
    schema=MEMBER_SCHEMA,
    items_key="members",
    total_key="totalMembers",
    columns=(
        Column("memberName", "Name"),
        Column("email", "Email"),
        Column("mobile1", "Mobile"),
        Column("organizationName", "Organization"),
        Column("active", "Status", kind="bool"),
        Column("hoExpiryDate", "HO expiry", kind="date"),
    ),
    default_sort="memberName",
    filters=("active",),
    file_fields=PHOTO_FIELDS,
    # reference/slip lists show member names
    invalidates=("references", "thankyouslips"),
    endpoint="members",
    title_field="memberName",
)


def oversized_photos(files: dict[str, Any], limit: int = MAX_PHOTO_BYTES) -> dict[str, str]:
    """Per-file size errors for uploaded photos (the stream is rewound afterwards)."""
    errors: dict[str, str] = {}
    for name, (_, stream, _) in files.items():
        stream.seek(0, 2)
        size = stream.tell()
        stream.seek(0)
        if size > limit:
            errors[name] = "File size exceeds 5MB."
    return errors


def status_message(result: Any) -> str:
    active = bool(result.get("active")) if isinstance(result, dict) else False
    return f"User {'activated' if active else 'deactivated'} successfully"
