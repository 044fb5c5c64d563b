"""End-to-end tests of the entity screens against the fake backend."""
import re

CATEGORIES = {
    "categories": [
        {"id": 1, "name": "Legal", "description": "Lawyers"},
        {"id": 2, "name": "Medical", "description": "Doctors"},
    ],
    "totalCategories": 2,
    "page": 1,
    "totalPages": 1,
}


def _nonce(html):
    return re.search(rb'name="_nonce" value="([^"]+)"', html).group(1).decode()


def test_category_list_queries_backend_with_sort_and_paging(client, backend, login):
    backend.on("GET", "/categories", CATEGORIES)
    login(client)
    r = client.get("/categories?sort=name&order=desc&page=1&limit=25&q=le")
    assert r.status_code == 200
    assert b"Legal" in r.data and b"Medical" in r.data
    _, _, query, _ = backend.calls_to("GET", "/categories")[-1]
    assert query == {"page": "1", "limit": "25", "sortBy": "name", "sortOrder": "desc", "search": "le"}


def test_list_load_failure_is_shown(client, backend, login):
    backend.on("GET", "/categories", {"message": "Database down"}, status=500)
    login(client)
    r = client.get("/categories")
    assert r.status_code == 200
    assert b"Database down" in r.data


def test_create_then_list_refetches(client, backend, login):
    backend.on("GET", "/categories", CATEGORIES)
    backend.on("POST", "/categories", {"id": 3, "name": "Finance", "description": "CAs"}, status=201)
    csrf = login(client)

    client.get("/categories")
    form = client.get("/categories/new")
    r = client.post(
        "/categories/new",
        data={"csrf_token": csrf, "_nonce": _nonce(form.data), "name": "Finance", "description": "CAs"},
        follow_redirects=True,
    )
    assert b"Category created successfully" in r.data
    assert backend.calls_to("POST", "/categories")[0][3] == {"name": "Finance", "description": "CAs"}
    # the list was fetched again after the create instead of served from cache
    assert len(backend.calls_to("GET", "/categories")) == 2


def test_resubmitting_the_same_form_is_refused(client, backend, login):
    backend.on("GET", "/categories", CATEGORIES)
    backend.on("POST", "/categories", {"id": 3}, status=201)
    csrf = login(client)
    nonce = _nonce(client.get("/categories/new").data)
    data = {"csrf_token": csrf, "_nonce": nonce, "name": "Finance", "description": "CAs"}
    client.post("/categories/new", data=data)
    r = client.post("/categories/new", data=data, follow_redirects=True)
    assert b"already submitted" in r.data
    assert len(backend.calls_to("POST", "/categories")) == 1


def test_backend_field_error_is_shown_on_the_form(client, backend, login):
    backend.on("POST", "/categories", {"errors": {"name": {"message": "Category already exists"}}}, status=400)
    csrf = login(client)
    r = client.post("/categories/new", data={"csrf_token": csrf, "name": "Legal", "description": "x"})
    assert r.status_code == 400
    assert b"Category already exists" in r.data


def test_edit_loads_record_and_updates(client, backend, login):
    backend.on("GET", "/categories/1", {"id": 1, "name": "Legal", "description": "Lawyers"})
    backend.on("PUT", "/categories/1", {"id": 1, "name": "Law", "description": "Lawyers"})
    backend.on("GET", "/categories", CATEGORIES)
    csrf = login(client)
    r = client.get("/categories/1/edit")
    assert b'value="Legal"' in r.data
    r = client.post(
        "/categories/1/edit",
        data={"csrf_token": csrf, "name": "Law", "description": "Lawyers"},
        follow_redirects=True,
    )
    assert b"Category updated successfully" in r.data
    assert backend.calls_to("PUT", "/categories/1")[0][3] == {"name": "Law", "description": "Lawyers"}


def test_edit_of_missing_record_goes_back_to_list(client, backend, login):
    backend.on("GET", "/categories", CATEGORIES)
    login(client)
    r = client.get("/categories/99/edit", follow_redirects=True)
    assert b"Category not found." in r.data


def test_delete_requires_confirmation(client, backend, login):
    backend.on("GET", "/categories/1", {"id": 1, "name": "Legal", "description": "Lawyers"})
    backend.on("DELETE", "/categories/1", {"message": "Category deleted"})
    backend.on("GET", "/categories", CATEGORIES)
    csrf = login(client)

    r = client.post("/categories/1/delete", data={"csrf_token": csrf})
    assert r.status_code == 302
    assert r.headers["Location"].endswith("/categories/1/delete")
    assert backend.calls_to("DELETE", "/categories/1") == []

    r = client.get("/categories/1/delete")
    assert b"Are you sure" in r.data and b"Legal" in r.data

    r = client.post("/categories/1/delete", data={"csrf_token": csrf, "confirm": "yes"}, follow_redirects=True)
    assert b"Category deleted successfully" in r.data
    assert len(backend.calls_to("DELETE", "/categories/1")) == 1


def test_failed_delete_keeps_row_and_cached_list(client, backend, login):
    backend.on("DELETE", "/categories/1", {"message": "Category is in use by subcategories"}, status=409)
    backend.on("GET", "/categories", CATEGORIES)
    csrf = login(client)

    client.get("/categories")
    r = client.post("/categories/1/delete", data={"csrf_token": csrf, "confirm": "yes"}, follow_redirects=True)
    assert b"Category is in use by subcategories" in r.data
    assert b"deleted successfully" not in r.data
    assert b"Legal" in r.data
    assert len(backend.calls_to("DELETE", "/categories/1")) == 1
    # nothing was invalidated, so the list came back from the cache
    assert len(backend.calls_to("GET", "/categories")) == 1


def test_failed_delete_without_message_uses_fallback(client, backend, login):
    backend.on("DELETE", "/categories/1", {}, status=500)
    backend.on("GET", "/categories", CATEGORIES)
    csrf = login(client)
    r = client.post("/categories/1/delete", data={"csrf_token": csrf, "confirm": "yes"}, follow_redirects=True)
    assert b"Failed to delete category" in r.data


def test_invalid_member_is_not_sent(client, backend, login):
    csrf = login(client)
    r = client.post(
        "/members/new",
        data={"csrf_token": csrf, "memberName": "Ravi", "mobile1": "12345", "gstNo": "BADGST"},
    )
    assert r.status_code == 400
    assert b"Mobile number must be 10 digits" in r.data
    assert b"Invalid GST number format" in r.data
    assert backend.calls_to("POST", "/api/members") == []


def test_member_list_defaults_to_all_and_toggles_status(client, backend, login):
    backend.on("GET", "/api/members", {"members": [{"id": 4, "memberName": "Ravi", "active": True}], "totalMembers": 1})
    backend.on("PATCH", "/api/members/4/user-status", {"id": 4, "active": False})
    csrf = login(client)
    r = client.get("/members")
    assert b"Ravi" in r.data
    assert backend.calls_to("GET", "/api/members")[0][2]["active"] == "all"

    r = client.post("/members/4/toggle-status", data={"csrf_token": csrf}, follow_redirects=True)
    assert b"User deactivated successfully" in r.data


def test_negative_balance_shows_banner_on_list(client, backend, login):
    backend.on(
        "POST",
        "/transactionRoutes/chapters/3/transactions",
        {"errors": {"message": "Transaction would result in a negative cash balance", "code": "NEGATIVE_BALANCE"}},
        status=400,
    )
    backend.on("GET", "/transactionRoutes/chapters/3/transactions", {"transactions": [], "totalTransactions": 0})
    csrf = login(client)
    r = client.post(
        "/transactions/chapters/3/new",
        data={"csrf_token": csrf, "date": "2024-05-01", "accountType": "cash", "transactionType": "debit",
              "amount": "5000"},
        follow_redirects=True,
    )
    assert r.status_code == 200
    assert b"flash-banner" in r.data
    assert b"negative cash balance" in r.data
    body = backend.calls_to("POST", "/transactionRoutes/chapters/3/transactions")[0][3]
    assert body["amount"] == 5000
    assert body["hasInvoice"] is False


def test_negative_balance_message_on_update_shows_banner(client, backend, login):
    backend.on(
        "PUT",
        "/transactionRoutes/transactions/5",
        {"errors": {"message": "Transaction would result in negative bank balance"}},
        status=400,
    )
    backend.on("GET", "/transactionRoutes/chapters/3/transactions", {"transactions": [], "totalTransactions": 0})
    csrf = login(client)
    r = client.post(
        "/transactions/chapters/3/5/edit",
        data={"csrf_token": csrf, "date": "2024-05-01", "accountType": "bank", "transactionType": "debit",
              "amount": "9000"},
        follow_redirects=True,
    )
    assert r.status_code == 200
    assert b"flash-banner" in r.data
    assert b"negative bank balance" in r.data


def test_package_fee_preview(client, login):
    login(client)
    r = client.get("/packages/fees?basicFees=1000&gstRate=18")
    assert r.json["gstAmount"] == "180.00"
    assert r.json["totalFees"] == "1180.00"


def test_requirements_are_searched_locally(client, backend, login):
    backend.on("GET", "/requirements", {"requirements": [
        {"id": 1, "heading": "Plumber needed", "requirement": "For office", "member": {"memberName": "Ravi"}},
        {"id": 2, "heading": "Accountant", "requirement": "GST filing", "member": {"memberName": "Meera"}},
    ]})
    login(client)
    r = client.get("/requirements?q=plumb")
    assert b"Plumber needed" in r.data
    assert b"Accountant" not in r.data
    r = client.get("/requirements?q=meera")
    assert b"Accountant" in r.data
    # one backend fetch, no search parameter sent
    calls = backend.calls_to("GET", "/requirements")
    assert len(calls) == 1
    assert "search" not in calls[0][2]


def test_report_download(client, backend, login):
    xlsx = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"
    backend.on("GET", "/memberreports", b"PK\x03\x04fake", content_type=xlsx)
    login(client)
    r = client.get("/reports/members.xlsx?fromDate=2024-01-01&toDate=2024-03-31")
    assert r.status_code == 200
    assert r.data == b"PK\x03\x04fake"
    assert "members.xlsx" in r.headers["Content-Disposition"]
    assert backend.calls_to("GET", "/memberreports")[0][2] == {"fromDate": "2024-01-01", "toDate": "2024-03-31"}


def test_report_with_reversed_range_is_not_requested(client, backend, login):
    login(client)
    r = client.get("/reports/members.xlsx?fromDate=2024-03-31&toDate=2024-01-01", follow_redirects=True)
    assert b"From date must be on or before to date" in r.data
    assert backend.calls_to("GET", "/memberreports") == []
