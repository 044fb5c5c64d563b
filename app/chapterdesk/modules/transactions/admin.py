from flask import Blueprint, render_template, request

from app.chapterdesk.crud import CrudViews
from app.chapterdesk.modules.transactions.service import (
    ACCOUNT_TYPES,
    TRANSACTION_RESOURCE,
    TRANSACTION_TYPES,
    chapter_transactions_path,
    create_in_chapter,
    invoice_payload,
)
from app.chapterdesk.options import chapter_options
from app.chapterdesk.rbac import require_role
from app.chapterdesk.resource import gateway

bp = Blueprint("transactions", __name__)


class TransactionViews(CrudViews):

    def resolve_list_path(self, scope):
        return chapter_transactions_path(scope["chapter_id"])

    def list_context(self, params):
        return {"filter_choices": {"accountType": ACCOUNT_TYPES, "transactionType": TRANSACTION_TYPES}}

    def form_context(self, mode, entity):
        return {"options": {"accountType": list(ACCOUNT_TYPES), "transactionType": list(TRANSACTION_TYPES)}}

    def default_values(self):
        return {"accountType": "cash", "transactionType": "credit", "hasInvoice": False}

    def extra_payload(self, mode):
        return invoice_payload(request.form)

    def send(self, mode, entity_id, scope):
        if mode == "create":
            return create_in_chapter(gateway(), scope["chapter_id"])
        return None


TransactionViews(TRANSACTION_RESOURCE, role="admin").register(bp, prefix="/chapters/<int:chapter_id>")


@bp.get("")
@require_role("admin")
def index():
    """Transactions are kept per chapter; pick one."""
    return render_template("transactions/chapters.html", chapters=chapter_options(gateway()))
