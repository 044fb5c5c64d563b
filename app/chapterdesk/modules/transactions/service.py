from __future__ import annotations

from typing import Any

from app.chapterdesk.resource import Column, Gateway, Resource
from app.chapterdesk.schema import Field, Schema

ACCOUNT_TYPES = (("cash", "Cash"), ("bank", "Bank"))
TRANSACTION_TYPES = (("credit", "Credit"), ("debit", "Debit"))
INVOICE_FIELDS = ("gstRate", "gstAmount", "invoiceNumber", "partyName", "partyGSTNo", "partyAddress")

TRANSACTION_SCHEMA = Schema(
    fields=(
        Field("date", "Date", type="date", required=True, required_message="Date is required"),
        Field("accountType", "Account type", type="select", required=True, choices=ACCOUNT_TYPES,
              required_message="Account type is required"),
        Field("transactionType", "Transaction type", type="select", required=True, choices=TRANSACTION_TYPES,
              required_message="Transaction type is required"),
        Field("amount", "Amount", type="decimal", required=True, min_value=0, exclusive_min=True,
              required_message="Amount is required", range_message="Amount must be positive"),
        Field("transactionHead", "Transaction head"),
        Field("narration", "Narration"),
        Field("transactionDetails", "Transaction details", type="text"),
        Field("description", "Description", type="text"),
        Field("reference", "Reference"),
        Field("hasInvoice", "Has invoice", type="bool"),
        Field("gstRate", "GST rate", type="decimal", min_value=0),
        Field("gstAmount", "GST amount", type="decimal", min_value=0),
        Field("invoiceNumber", "Invoice number"),
        Field("partyName", "Party name"),
        Field("partyGSTNo", "Party GST no."),
        Field("partyAddress", "Party address", type="text"),
    )
)

TRANSACTION_RESOURCE = Resource(
    name="transactions",
    label="Transaction",
    base_path="/transactionRoutes/transactions",
    schema=TRANSACTION_SCHEMA,
    items_key="transactions",
    total_key="totalTransactions",
    columns=(
        Column("date", "Date", kind="date"),
        Column("accountType", "Account"),
        Column("transactionType", "Type"),
        Column("amount", "Amount", kind="money"),
        Column("transactionHead", "Head"),
        Column("narration", "Narration", sortable=False),
    ),
    default_sort="date",
    default_order="desc",
    filters=("accountType", "transactionType"),
    endpoint="transactions",
    title_field="transactionHead",
)


def chapter_transactions_path(chapter_id: int) -> str:
    return f"/transactionRoutes/chapters/{chapter_id}/transactions"


def invoice_payload(raw: dict[str, Any] | Any) -> dict[str, Any]:
    """Invoice details only go with invoiced credits; anything else clears them."""
    has_invoice = str(raw.get("hasInvoice") or "").lower() in ("1", "true", "on", "yes")
    if raw.get("transactionType") == "credit" and has_invoice:
        return {}
    return {"hasInvoice": False, **{name: None for name in INVOICE_FIELDS}}


def create_in_chapter(gw: Gateway, chapter_id: int):
    """Sender for new transactions: they are created under their chapter."""

    def send(payload: dict[str, Any]) -> Any:
        return gw.post_to(TRANSACTION_RESOURCE, chapter_transactions_path(chapter_id), payload)

    return send
