from __future__ import annotations

from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation

CENTS = Decimal("0.01")


@dataclass(frozen=True)
class FeeBreakdown:
    basic_fees: Decimal
    gst_rate: Decimal
    gst_amount: Decimal
    total_fees: Decimal

    def as_dict(self) -> dict[str, str]:
        return {
            "basicFees": str(self.basic_fees),
            "gstRate": str(self.gst_rate),
            "gstAmount": str(self.gst_amount),
            "totalFees": str(self.total_fees),
        }


def _to_decimal(value) -> Decimal:
    if value is None or value == "":
        return Decimal("0")
    try:
        d = Decimal(str(value))
    except InvalidOperation:
        return Decimal("0")
    return d if d.is_finite() else Decimal("0")


def compute_fees(basic_fees, gst_rate) -> FeeBreakdown:
    """
    gstAmount = basicFees * gstRate / 100, totalFees = basicFees + gstAmount.

    Both derived values are rounded half-up to 2 decimals; the total is the sum of
    the rounded GST amount so the displayed figures always add up.
    """
    basic = _to_decimal(basic_fees)
    rate = _to_decimal(gst_rate)
    gst_amount = (basic * rate / Decimal(100)).quantize(CENTS, rounding=ROUND_HALF_UP)
    total = (basic + gst_amount).quantize(CENTS, rounding=ROUND_HALF_UP)
    return FeeBreakdown(basic_fees=basic, gst_rate=rate, gst_amount=gst_amount, total_fees=total)


@dataclass(frozen=True)
class SplitGstBreakdown:
    basic_fees: Decimal
    cgst_amount: Decimal
    sgst_amount: Decimal
    igst_amount: Decimal
    total_tax: Decimal
    total_amount: Decimal

    def as_dict(self) -> dict[str, str]:
        return {
            "basicFees": str(self.basic_fees),
            "cgstAmount": str(self.cgst_amount),
            "sgstAmount": str(self.sgst_amount),
            "igstAmount": str(self.igst_amount),
            "totalTax": str(self.total_tax),
            "totalAmount": str(self.total_amount),
        }


def _share(basic: Decimal, rate) -> Decimal:
    return (basic * _to_decimal(rate) / Decimal(100)).quantize(CENTS, rounding=ROUND_HALF_UP)


def compute_split_gst(basic_fees, cgst_rate=None, sgst_rate=None, igst_rate=None) -> SplitGstBreakdown:
    """Intra-state sales carry CGST + SGST, inter-state ones IGST; a missing rate counts as 0."""
    basic = _to_decimal(basic_fees)
    cgst = _share(basic, cgst_rate)
    sgst = _share(basic, sgst_rate)
    igst = _share(basic, igst_rate)
    total_tax = cgst + sgst + igst
    return SplitGstBreakdown(
        basic_fees=basic,
        cgst_amount=cgst,
        sgst_amount=sgst,
        igst_amount=igst,
        total_tax=total_tax,
        total_amount=basic + total_tax,
    )
