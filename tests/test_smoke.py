from tests.fake_backend import login_payload


def test_health_ok(client):
    r = client.get("/health")
    assert r.status_code == 200
    assert r.json["ok"] is True
    assert client.get("/healthz").data == b"ok"


def test_login_and_admin_access(client, backend, login):
    # Anonymous is sent to the login page
    r = client.get("/categories")
    assert r.status_code == 302
    assert "/auth/login" in r.headers["Location"]

    backend.on("GET", "/categories", {"categories": [], "totalCategories": 0})
    login(client)
    r = client.get("/categories")
    assert r.status_code == 200
    assert b"Categories" in r.data


def test_login_sends_credentials_and_keeps_token(client, backend):
    r = client.post("/auth/login", data={"email": "Admin@Example.com", "password": "pw"})
    assert r.status_code == 302
    assert r.headers["Location"].endswith("/dashboard")
    method, path, _, body = backend.calls_to("POST", "/auth/login")[0]
    assert body == {"email": "admin@example.com", "password": "pw"}
    with client.session_transaction() as s:
        assert s["ctx"]["token"] == "tok-123"
        assert s["ctx"]["member_id"] == 7


def test_login_validation_sends_nothing(client, backend):
    r = client.post("/auth/login", data={"email": "", "password": ""})
    assert r.status_code == 400
    assert b"Email is required" in r.data
    assert backend.calls == []


def test_rejected_login(client, backend):
    backend.on("POST", "/auth/login", {"message": "Invalid credentials"}, status=401)
    r = client.post("/auth/login", data={"email": "a@example.com", "password": "nope"}, follow_redirects=True)
    assert b"Invalid credentials" in r.data
    with client.session_transaction() as s:
        assert "ctx" not in s


def test_member_without_admin_role_is_forbidden(client, backend, login):
    backend.on("POST", "/auth/login", login_payload(role="member"))
    login(client)
    assert client.get("/categories").status_code == 403
    assert client.get("/dashboard").status_code == 200


def test_expired_backend_session_logs_out(client, backend, login):
    login(client)
    backend.on("GET", "/categories", {"message": "jwt expired"}, status=401)
    r = client.get("/categories")
    assert r.status_code == 302
    assert "/auth/login" in r.headers["Location"]
    with client.session_transaction() as s:
        assert "ctx" not in s


def test_post_without_csrf_token_is_rejected(client, backend, login):
    login(client)
    r = client.post("/categories/new", data={"name": "Legal", "description": "Lawyers"})
    assert r.status_code == 400
    assert backend.calls_to("POST", "/categories") == []


def test_logout(client, login):
    login(client)
    client.get("/auth/logout")
    assert client.get("/dashboard").status_code == 302
