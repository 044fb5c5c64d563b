"""Tests for mapping backend error responses onto the error taxonomy."""
from app.chapterdesk.errors import (
    BusinessRuleError,
    ErrorKind,
    Forbidden,
    NotFound,
    Unauthorized,
    ValidationFailed,
    error_from_response,
    map_field_errors,
)


def test_status_codes_map_to_error_types():
    assert isinstance(error_from_response(400, {}), ValidationFailed)
    assert isinstance(error_from_response(401, {}), Unauthorized)
    assert isinstance(error_from_response(403, {}), Forbidden)
    assert isinstance(error_from_response(404, {}), NotFound)
    assert error_from_response(502, {}).kind == ErrorKind.UNKNOWN


def test_message_is_taken_from_errors_or_top_level():
    assert error_from_response(400, {"errors": {"message": "Name taken"}}).message == "Name taken"
    assert error_from_response(404, {"message": "Category not found"}).message == "Category not found"
    assert error_from_response(500, "oops").message == "Request failed"


def test_negative_balance_code_is_a_business_rule():
    err = error_from_response(
        400, {"errors": {"message": "This transaction would make the balance negative", "code": "NEGATIVE_BALANCE"}}
    )
    assert isinstance(err, BusinessRuleError)
    assert err.kind == ErrorKind.NEGATIVE_BALANCE
    assert err.code == "NEGATIVE_BALANCE"


def test_field_errors_from_keyed_shape():
    err = error_from_response(400, {"errors": {"name": {"message": "Already exists"}, "message": "Validation failed"}})
    fields, general = map_field_errors(err, {"name", "description"})
    assert fields == {"name": "Already exists"}
    assert general is None


def test_field_errors_from_list_shape():
    err = error_from_response(
        422, {"errors": [{"path": ["body", "mobile1"], "message": "Mobile taken"}, {"path": ["x"], "message": "Odd"}]}
    )
    fields, general = map_field_errors(err, {"mobile1"})
    assert fields == {"mobile1": "Mobile taken"}


def test_unknown_fields_become_general_message():
    err = error_from_response(400, {"errors": [{"path": ["secret"], "message": "Nope"}]})
    fields, general = map_field_errors(err, {"name"})
    assert fields == {}
    assert general == "Nope"


def test_negative_balance_message_without_code_is_a_business_rule():
    err = error_from_response(400, {"errors": {"message": "Transaction would result in negative cash balance"}})
    assert isinstance(err, BusinessRuleError)
    assert err.kind == ErrorKind.NEGATIVE_BALANCE
    assert err.message == "Transaction would result in negative cash balance"


def test_negative_wording_outside_validation_statuses_is_not_a_business_rule():
    err = error_from_response(500, {"errors": {"message": "negative balance check crashed"}})
    assert err.kind == ErrorKind.UNKNOWN
