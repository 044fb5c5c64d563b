from __future__ import annotations

import uuid
from collections import defaultdict
from datetime import datetime, timedelta

from flask import Blueprint, current_app, flash, g, redirect, render_template, request, url_for

from app.chapterdesk.errors import ApiError, ValidationFailed, map_field_errors
from app.chapterdesk.schema import Field, Schema
from app.chapterdesk.session import (
    SessionContext,
    clear_session_context,
    load_session_context,
    store_session_context,
)

bp = Blueprint("auth", __name__)
_login_attempts: dict[str, list[datetime]] = defaultdict(list)
_LOGIN_RATE_LIMIT = 5
_LOGIN_RATE_WINDOW = 300  # seconds

LOGIN_SCHEMA = Schema(
    fields=(
        Field("email", "Email", type="email", required=True, required_message="Email is required",
              pattern_message="Invalid email address"),
        Field("password", "Password", type="password", required=True, required_message="Password is required"),
    )
)


def _check_rate_limit(ip: str) -> bool:
    now = datetime.utcnow()
    cutoff = now - timedelta(seconds=_LOGIN_RATE_WINDOW)
    _login_attempts[ip] = [t for t in _login_attempts[ip] if t > cutoff]
    return len(_login_attempts[ip]) >= _LOGIN_RATE_LIMIT


def _record_attempt(ip: str) -> None:
    _login_attempts[ip].append(datetime.utcnow())


def load_current_user() -> None:
    """
    Loads g.session_ctx from the signed session cookie.
    Also assigns a simple per-request request_id (for log correlation).
    """
    if not getattr(g, "request_id", None):
        g.request_id = uuid.uuid4().hex
    if request.path.startswith(("/static/", "/health", "/healthz")):
        g.session_ctx = None
        return
    load_session_context()


def safe_next(nxt: str) -> str | None:
    # Only allow local paths to avoid open redirects.
    if nxt.startswith("/") and not nxt.startswith("//"):
        return nxt
    return None


@bp.get("/login")
def login_get():
    nxt = (request.args.get("next") or "").strip()
    return render_template("auth/login.html", next=nxt, values={}, errors={})


@bp.post("/login")
def login_post():
    nxt = (request.form.get("next") or "").strip()
    ip = request.remote_addr or "unknown"

    if _check_rate_limit(ip):
        flash("Too many login attempts. Please wait 5 minutes.", "danger")
        return redirect(url_for("auth.login_get"))

    cleaned, errors = LOGIN_SCHEMA.validate(request.form)
    values = {"email": request.form.get("email") or ""}
    if errors:
        return render_template("auth/login.html", next=nxt, values=values, errors=errors), 400

    _record_attempt(ip)
    client = current_app.extensions["api_client"]
    email = cleaned["email"].lower()
    try:
        payload = client.post("/auth/login", {"email": email, "password": cleaned["password"]})
        ctx = SessionContext.from_login_payload(payload)
    except ValidationFailed as e:
        field_errors, general = map_field_errors(e, LOGIN_SCHEMA.names)
        if general:
            flash(general, "danger")
        return render_template("auth/login.html", next=nxt, values=values, errors=field_errors), 400
    except ApiError as e:
        current_app.logger.info("Login failed (email=%s request_id=%s): %s", email, getattr(g, "request_id", None), e.message)
        flash(e.message if e.status == 401 and e.message != "Request failed" else "Invalid credentials.", "danger")
        return redirect(url_for("auth.login_get", next=nxt or None))
    except (KeyError, TypeError, ValueError):
        current_app.logger.exception("Login response malformed (email=%s request_id=%s)", email, getattr(g, "request_id", None))
        flash("Login failed. Please try again.", "danger")
        return redirect(url_for("auth.login_get"))

    store_session_context(ctx)
    _login_attempts[ip].clear()
    current_app.logger.info("auth.login user_id=%s member_id=%s", ctx.user_id, ctx.member_id)
    flash("Login successful!", "success")
    return redirect(safe_next(nxt) or url_for("routes.dashboard"))


@bp.get("/logout")
def logout():
    ctx = getattr(g, "session_ctx", None)
    if ctx:
        current_app.logger.info("auth.logout user_id=%s", ctx.user_id)
    clear_session_context()
    return redirect(url_for("auth.login_get"))
