"""Tests for form submission: validation short-circuit, error mapping, double-submit guard."""
import pytest

from app.chapterdesk.errors import ErrorKind, NotFound, SubmissionInProgress, error_from_response
from app.chapterdesk.forms import FormController, SubmissionGuard
from app.chapterdesk.modules.categories.service import CATEGORY_RESOURCE
from app.chapterdesk.modules.transactions.service import TRANSACTION_RESOURCE


class StubGateway:
    def __init__(self, fail=None, entity=None):
        self.fail = fail
        self.entity = entity or {}
        self.sent = []

    def create(self, resource, payload, files=None):
        self.sent.append(("create", payload))
        if self.fail:
            raise self.fail
        return {"id": 10, **payload}

    def update(self, resource, entity_id, payload, files=None):
        self.sent.append(("update", entity_id, payload))
        if self.fail:
            raise self.fail
        return {"id": entity_id, **payload}

    def get(self, resource, entity_id):
        if entity_id not in self.entity:
            raise NotFound("Category not found", status=404)
        return self.entity[entity_id]


def test_invalid_form_sends_nothing():
    gw = StubGateway()
    result = FormController(gw, CATEGORY_RESOURCE, "create").submit({"name": "", "description": "x"})
    assert not result.ok
    assert not result.sent
    assert result.field_errors == {"name": "Category name is required"}
    assert gw.sent == []


def test_create_sends_cleaned_payload():
    gw = StubGateway()
    result = FormController(gw, CATEGORY_RESOURCE, "create").submit({"name": " Legal ", "description": "Lawyers"})
    assert result.ok
    assert gw.sent == [("create", {"name": "Legal", "description": "Lawyers"})]
    assert result.entity["id"] == 10


def test_edit_needs_id_and_updates():
    with pytest.raises(ValueError):
        FormController(StubGateway(), CATEGORY_RESOURCE, "edit")
    gw = StubGateway()
    FormController(gw, CATEGORY_RESOURCE, "edit", 4).submit({"name": "Legal", "description": "d"})
    assert gw.sent[0][:2] == ("update", 4)


def test_load_in_edit_mode():
    gw = StubGateway(entity={4: {"id": 4, "name": "Legal"}})
    assert FormController(gw, CATEGORY_RESOURCE, "edit", 4).load()["name"] == "Legal"
    with pytest.raises(NotFound):
        FormController(gw, CATEGORY_RESOURCE, "edit", 5).load()


def test_backend_field_errors_are_mapped():
    fail = error_from_response(400, {"errors": {"name": {"message": "Category already exists"}}})
    result = FormController(StubGateway(fail=fail), CATEGORY_RESOURCE, "create").submit(
        {"name": "Legal", "description": "d"}
    )
    assert not result.ok
    assert result.sent
    assert result.field_errors == {"name": "Category already exists"}


def test_negative_balance_is_reported_by_kind():
    fail = error_from_response(400, {"errors": {"message": "Balance would go negative", "code": "NEGATIVE_BALANCE"}})
    form = {"date": "2024-05-01", "accountType": "cash", "transactionType": "debit", "amount": "500"}
    result = FormController(StubGateway(fail=fail), TRANSACTION_RESOURCE, "create").submit(form)
    assert result.error_kind == ErrorKind.NEGATIVE_BALANCE
    assert result.message == "Balance would go negative"


def test_generic_failure_message():
    fail = error_from_response(500, {})
    result = FormController(StubGateway(fail=fail), CATEGORY_RESOURCE, "create").submit(
        {"name": "Legal", "description": "d"}
    )
    assert result.message == "Failed to create category"


class TestSubmissionGuard:
    def test_repeat_submit_of_same_form_is_refused(self):
        guard = SubmissionGuard()
        gw = StubGateway()
        controller = FormController(gw, CATEGORY_RESOURCE, "create", guard=guard)
        form = {"name": "Legal", "description": "d"}
        assert controller.submit(form, nonce="n1").ok
        with pytest.raises(SubmissionInProgress):
            controller.submit(form, nonce="n1")
        assert len(gw.sent) == 1

    def test_failed_submit_can_be_retried(self):
        guard = SubmissionGuard()
        fail = error_from_response(500, {})
        FormController(StubGateway(fail=fail), CATEGORY_RESOURCE, "create", guard=guard).submit(
            {"name": "Legal", "description": "d"}, nonce="n2"
        )
        assert guard.state("n2") is None
        result = FormController(StubGateway(), CATEGORY_RESOURCE, "create", guard=guard).submit(
            {"name": "Legal", "description": "d"}, nonce="n2"
        )
        assert result.ok
        assert guard.state("n2") == "done"

    def test_pending_claim_blocks(self):
        guard = SubmissionGuard()
        guard.begin("n3")
        with pytest.raises(SubmissionInProgress, match="already being saved"):
            guard.begin("n3")
