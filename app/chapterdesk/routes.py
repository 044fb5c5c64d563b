from flask import Blueprint, redirect, render_template, url_for

from app.chapterdesk.rbac import require_login

bp = Blueprint("routes", __name__)


@bp.get("/")
def index():
    return redirect(url_for("routes.dashboard"))


@bp.get("/dashboard")
@require_login
def dashboard():
    return render_template("dashboard.html")


@bp.get("/health")
def health():
    """Health check endpoint. Returns JSON."""
    return {"ok": True}


@bp.get("/healthz")
def healthz():
    """
    Fast health check for container probes. No backend access, minimal overhead.
    """
    return "ok", 200
