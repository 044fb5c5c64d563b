"""Tests for membership rules: package eligibility, GST split, payment details."""
from datetime import date
from decimal import Decimal

from app.chapterdesk.fees import compute_split_gst
from app.chapterdesk.modules.chapters.service import CHAPTER_SCHEMA, locations_in_zone, with_place_names
from app.chapterdesk.modules.memberships.service import (
    MEMBERSHIP_SCHEMA,
    available_packages,
    complementary_kind,
    has_all_primary,
    is_home_state,
    membership_payload,
    package_kind,
    tax_rates_for,
    with_display_fields,
)

VENUE = {"id": 1, "packageName": "Venue Annual", "packageType": {"name": "VENUE"}}
HO = {"id": 2, "packageName": "HO Yearly", "packageType": {"name": "HO"}}
EVENT = {"id": 3, "packageName": "Gala", "packageType": {"name": "EVENT"}}
PACKAGES = [VENUE, HO, EVENT]


def _member(*kinds, active=True):
    return {"id": 4, "memberships": [{"active": active, "package": {"packageType": {"name": k}}} for k in kinds]}


def _form(**overrides):
    data = {
        "memberId": "4", "invoiceDate": "2024-06-01", "packageId": "2", "basicFees": "10000",
        "cgstRate": "9", "sgstRate": "9", "paymentDate": "2024-06-01", "paymentMode": "cash",
    }
    data.update(overrides)
    return data


class TestPackageEligibility:
    def test_no_member_sees_everything(self):
        assert available_packages(None, PACKAGES) == PACKAGES

    def test_held_primary_kind_is_hidden(self):
        assert available_packages(_member("VENUE"), PACKAGES) == [HO, EVENT]
        assert available_packages(_member("HO"), PACKAGES) == [VENUE, EVENT]

    def test_both_primary_kinds_leave_nothing(self):
        member = _member("VENUE", "HO")
        assert has_all_primary(member)
        assert available_packages(member, PACKAGES) == []

    def test_inactive_memberships_do_not_count(self):
        assert available_packages(_member("VENUE", active=False), PACKAGES) == PACKAGES

    def test_complementary_kind(self):
        assert complementary_kind(_member("VENUE")) == "HO"
        assert complementary_kind(_member("HO")) == "VENUE"
        assert complementary_kind(_member("VENUE", "HO")) is None
        assert complementary_kind(_member()) is None

    def test_kind_falls_back_on_venue_flag(self):
        assert package_kind({"isVenueFee": True}) == "VENUE"
        assert package_kind({"isVenueFee": False}) == "HO"
        assert package_kind(None) == ""


class TestTaxRates:
    def test_gst_prefix_decides_first(self):
        assert is_home_state({"gstNo": "27AAPFU0939F1ZV", "stateName": "Gujarat"})
        assert not is_home_state({"gstNo": "24AAPFU0939F1ZV", "stateName": "Maharashtra"})

    def test_state_then_location(self):
        assert is_home_state({"stateName": "Maharashtra"})
        assert is_home_state({"location": "Navi Mumbai"})
        assert not is_home_state({"location": "Bengaluru"})
        assert not is_home_state(None)

    def test_rates(self):
        assert tax_rates_for({"gstNo": "27AAPFU0939F1ZV"}) == {"cgstRate": 9, "sgstRate": 9, "igstRate": None}
        assert tax_rates_for({"stateName": "Karnataka"}) == {"cgstRate": None, "sgstRate": None, "igstRate": 18}


class TestSplitGst:
    def test_intra_state(self):
        fees = compute_split_gst(10000, 9, 9, None)
        assert fees.cgst_amount == Decimal("900.00")
        assert fees.sgst_amount == Decimal("900.00")
        assert fees.igst_amount == Decimal("0.00")
        assert fees.total_amount == Decimal("11800.00")

    def test_rounds_each_share_half_up(self):
        fees = compute_split_gst("0.25", None, None, "10")
        assert fees.igst_amount == Decimal("0.03")
        assert fees.total_amount == Decimal("0.28")


class TestMembershipForm:
    def test_valid_cash_payment(self):
        cleaned, errors = MEMBERSHIP_SCHEMA.validate(_form())
        assert errors == {}
        assert cleaned["basicFees"] == Decimal("10000")

    def test_cheque_needs_details(self):
        _, errors = MEMBERSHIP_SCHEMA.validate(_form(paymentMode="cheque"))
        assert errors == {"chequeNumber": "Cheque number, date, and bank name are required for cheque payments"}

    def test_cheque_formats(self):
        _, errors = MEMBERSHIP_SCHEMA.validate(
            _form(paymentMode="cheque", chequeNumber="12ab", chequeDate="2024-06-01", bankName="HDFC  Bank")
        )
        assert errors["chequeNumber"] == "Cheque number must be 6-12 digits"
        assert errors["bankName"] == "Bank name should not contain consecutive spaces"

    def test_netbanking_reference_needs_letters_and_digits(self):
        _, errors = MEMBERSHIP_SCHEMA.validate(_form(paymentMode="netbanking", neftNumber="12345678901"))
        assert errors == {"neftNumber": "NEFT/IMPS number should contain both letters and numbers"}

    def test_upi_reference_length(self):
        _, errors = MEMBERSHIP_SCHEMA.validate(_form(paymentMode="upi", utrNumber="UTR123"))
        assert errors == {"utrNumber": "UTR number must be 16-22 characters long"}

    def test_payload_adds_tax_and_clears_other_payment_details(self):
        body = membership_payload(_form(paymentMode="upi", utrNumber="UTR1234567890ABCD", chequeNumber="123456"))
        assert body["cgstAmount"] == 900
        assert body["totalTax"] == 1800
        assert body["totalAmount"] == 11800
        assert body["chequeNumber"] is None
        assert "utrNumber" not in body


def test_membership_rows_show_expiry_status():
    rows = with_display_fields(
        [
            {"id": 1, "packageEndDate": "2020-01-01T00:00:00Z", "packageStartDate": "2019-01-01",
             "member": {"memberName": "Ravi"}, "package": {"packageName": "HO Yearly", "isVenueFee": False},
             "totalAmount": 11800},
            {"id": 2, "packageEndDate": "2030-01-01", "package": {}},
        ],
        today=date(2024, 6, 1),
    )
    assert rows[0]["status"] == "Expired"
    assert rows[0]["period"] == "2019-01-01 to 2020-01-01"
    assert rows[0]["memberName"] == "Ravi"
    assert rows[0]["packageKind"] == "HO"
    assert rows[0]["totalFees"] == 11800
    assert rows[1]["status"] == "Active"


class TestChapters:
    def test_zone_needs_location(self):
        _, errors = CHAPTER_SCHEMA.validate(
            {"name": "Andheri", "zoneId": "2", "date": "2024-01-01", "meetingday": "Tuesday", "venue": "Hall"}
        )
        assert errors == {"locationId": "Location is required when a zone is selected"}

    def test_meeting_day_must_be_a_weekday_name(self):
        _, errors = CHAPTER_SCHEMA.validate(
            {"name": "Andheri", "zoneId": "2", "locationId": "5", "date": "2024-01-01", "meetingday": "Funday",
             "venue": "Hall"}
        )
        assert "meetingday" in errors

    def test_locations_follow_zone(self):
        locations = [{"id": 5, "location": "Mumbai West", "zoneId": 2}, {"id": 6, "location": "Pune", "zoneId": 3}]
        assert locations_in_zone(locations, "2") == [("5", "Mumbai West")]
        assert len(locations_in_zone(locations, None)) == 2

    def test_place_names(self):
        rows = with_place_names([{"id": 1, "location": {"location": "Mumbai West"}, "zones": {"name": "West"}}, {"id": 2}])
        assert rows[0]["locationName"] == "Mumbai West"
        assert rows[0]["zoneName"] == "West"
        assert rows[1]["zoneName"] is None
