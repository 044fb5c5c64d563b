from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from typing import Any

from app.chapterdesk.resource import Gateway

XLSX_MIMETYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"


@dataclass(frozen=True)
class Report:
    key: str
    title: str
    path: str
    filename: str


REPORTS = {
    "members": Report("members", "Member report", "/memberreports", "members.xlsx"),
    "transactions": Report("transactions", "Transaction report", "/transactionreports", "transactions.xlsx"),
}


def parse_range(from_raw: str | None, to_raw: str | None) -> tuple[dict[str, str], str | None]:
    """fromDate/toDate query params (both optional). Returns (params, error)."""
    params: dict[str, str] = {}
    parsed: dict[str, date] = {}
    for name, raw in (("fromDate", from_raw), ("toDate", to_raw)):
        raw = (raw or "").strip()
        if not raw:
            continue
        try:
            parsed[name] = date.fromisoformat(raw)
        except ValueError:
            return {}, f"Invalid date: {raw}"
        params[name] = raw
    if "fromDate" in parsed and "toDate" in parsed and parsed["fromDate"] > parsed["toDate"]:
        return {}, "From date must be on or before to date"
    return params, None


def download_report(gw: Gateway, report: Report, params: dict[str, Any]) -> tuple[bytes, str]:
    content, content_type = gw.download(report.path, params)
    if not content_type or content_type.startswith("application/json"):
        content_type = XLSX_MIMETYPE
    return content, content_type
