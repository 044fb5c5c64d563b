import pytest

from app.chapterdesk import auth, create_app
from tests.fake_backend import BACKEND_URL, FakeBackend, login_payload


@pytest.fixture()
def backend():
    fake = FakeBackend()
    fake.on("POST", "/auth/login", login_payload())
    return fake


@pytest.fixture()
def app(backend, monkeypatch):
    monkeypatch.setenv("SECRET_KEY", "test-secret")
    monkeypatch.setenv("ENV", "test")
    monkeypatch.setenv("API_BASE_URL", BACKEND_URL)
    monkeypatch.setenv("API_READ_RETRIES", "0")
    auth._login_attempts.clear()

    app = create_app()
    app.config["TESTING"] = True
    app.extensions["api_client"].session.mount(BACKEND_URL, backend)
    return app


@pytest.fixture()
def client(app):
    return app.test_client()


def _login(client):
    """Log in through the real form and seed a known CSRF token for later POSTs."""
    client.post("/auth/login", data={"email": "admin@example.com", "password": "pw"}, follow_redirects=True)
    with client.session_transaction() as s:
        s["csrf_token"] = "test-csrf"
    return "test-csrf"


@pytest.fixture()
def login():
    return _login
