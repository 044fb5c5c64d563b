import logging
from datetime import timedelta
from decimal import Decimal, InvalidOperation

from dotenv import load_dotenv
from flask import Flask, flash, g, redirect, render_template, request, session, url_for

from app.chapterdesk.api_client import client_from_config
from app.chapterdesk.auth import bp as auth_bp, load_current_user
from app.chapterdesk.cache import QueryCache
from app.chapterdesk.cancellation import CancellationToken
from app.chapterdesk.config import load_config
from app.chapterdesk.errors import RequestCancelled, Unauthorized
from app.chapterdesk.forms import SubmissionGuard
from app.chapterdesk.routes import bp as routes_bp
from app.chapterdesk.session import clear_session_context
from app.chapterdesk.modules.categories.admin import bp as categories_bp
from app.chapterdesk.modules.subcategories.admin import bp as subcategories_bp
from app.chapterdesk.modules.trainings.admin import bp as trainings_bp
from app.chapterdesk.modules.chapter_meetings.admin import bp as chapter_meetings_bp
from app.chapterdesk.modules.members.admin import bp as members_bp
from app.chapterdesk.modules.packages.admin import bp as packages_bp
from app.chapterdesk.modules.power_teams.admin import bp as power_teams_bp
from app.chapterdesk.modules.references.admin import bp as references_bp
from app.chapterdesk.modules.requirements.admin import bp as requirements_bp
from app.chapterdesk.modules.thank_you_slips.admin import bp as thank_you_slips_bp
from app.chapterdesk.modules.states.admin import bp as states_bp
from app.chapterdesk.modules.transactions.admin import bp as transactions_bp
from app.chapterdesk.modules.reports.admin import bp as reports_bp
from app.chapterdesk.modules.chapters.admin import bp as chapters_bp
from app.chapterdesk.modules.memberships.admin import bp as memberships_bp
from app.chapterdesk.modules.visitors.admin import bp as visitors_bp
from app.chapterdesk.modules.one_to_ones.admin import bp as one_to_ones_bp


def create_app() -> Flask:
    load_dotenv()
    app = Flask(__name__, template_folder="templates", static_folder="static")
    app.config.from_mapping(load_config())
    app.config["PERMANENT_SESSION_LIFETIME"] = timedelta(hours=8)
    app.config["SESSION_REFRESH_EACH_REQUEST"] = True

    # CSRF protection (minimal)
    from app.chapterdesk.security import ensure_csrf_token, validate_csrf

    @app.context_processor
    def _inject_csrf() -> dict:
        return {"csrf_token": ensure_csrf_token()}

    @app.context_processor
    def _inject_session() -> dict:
        from app.chapterdesk.rbac import user_has_role

        ctx = getattr(g, "session_ctx", None)

        def has_role(role: str) -> bool:
            return user_has_role(ctx, role)

        return {
            "has_role": has_role,
            "session_ctx": ctx,
            "banner_seconds": app.config.get("BANNER_SECONDS", 5),
        }

    @app.template_filter("dateformat")
    def _dateformat_filter(value, format: str = "%Y-%m-%d") -> str:
        if value is None or value == "":
            return "-"
        if hasattr(value, "strftime"):
            return value.strftime(format)
        # backend dates arrive as ISO strings
        return str(value)[:10]

    @app.template_filter("money")
    def _money_filter(value) -> str:
        try:
            return f"{Decimal(str(value)):,.2f}"
        except (InvalidOperation, TypeError, ValueError):
            return "-"

    @app.template_global()
    def page_url(params, **overrides) -> str:
        """Same list view with different query state (sort, page, filters)."""
        args = dict(request.view_args or {})
        args.update(params.to_args(**overrides))
        return url_for(request.endpoint, **args)

    @app.before_request
    def _csrf_guard():
        if request.path.startswith(("/static/", "/health", "/healthz")):
            return None
        ensure_csrf_token()
        session.permanent = True
        if request.method in ("POST", "PUT", "PATCH", "DELETE"):
            # Allow safe auth endpoints to pass through (login/logout)
            if (request.endpoint or "").startswith("auth."):
                return None
            if not validate_csrf(request):
                return render_template("errors/400.html", message="CSRF token missing or invalid."), 400

    # Production guardrails (fail fast with clear logs)
    env = (app.config.get("ENV") or "").strip().lower()
    if env in ("prod", "production"):
        if not app.config.get("API_BASE_URL_EXPLICIT"):
            raise RuntimeError("API_BASE_URL is required in production.")
        if not app.config.get("SECRET_KEY") or str(app.config["SECRET_KEY"]) in ("", "change-me"):
            raise RuntimeError("SECRET_KEY must be set to a strong value in production (not default).")

    app.extensions["api_client"] = client_from_config(app.config)
    app.extensions["query_cache"] = QueryCache(
        ttl_seconds=int(app.config.get("CACHE_TTL_SECONDS") or 60),
        max_entries=int(app.config.get("CACHE_MAX_ENTRIES") or 2048),
    )
    app.extensions["submission_guard"] = SubmissionGuard()

    app.register_blueprint(routes_bp)
    app.register_blueprint(auth_bp, url_prefix="/auth")
    app.register_blueprint(categories_bp, url_prefix="/categories")
    app.register_blueprint(subcategories_bp, url_prefix="/subcategories")
    app.register_blueprint(trainings_bp, url_prefix="/trainings")
    app.register_blueprint(chapter_meetings_bp, url_prefix="/chapter-meetings")
    app.register_blueprint(members_bp, url_prefix="/members")
    app.register_blueprint(packages_bp, url_prefix="/packages")
    app.register_blueprint(power_teams_bp, url_prefix="/power-teams")
    app.register_blueprint(references_bp, url_prefix="/references")
    app.register_blueprint(requirements_bp, url_prefix="/requirements")
    app.register_blueprint(thank_you_slips_bp, url_prefix="/thankyou-slips")
    app.register_blueprint(states_bp, url_prefix="/states")
    app.register_blueprint(transactions_bp, url_prefix="/transactions")
    app.register_blueprint(reports_bp, url_prefix="/reports")
    app.register_blueprint(chapters_bp, url_prefix="/chapters")
    app.register_blueprint(memberships_bp, url_prefix="/memberships")
    app.register_blueprint(visitors_bp, url_prefix="/visitors")
    app.register_blueprint(one_to_ones_bp, url_prefix="/one-to-ones")

    @app.before_request
    def _bind_request_state():
        # One cancellation token per browser request; cancelled at teardown so
        # anything still in flight for it is discarded.
        g.cancel_token = CancellationToken()
        return load_current_user()

    @app.teardown_request
    def _cancel_in_flight(exc):
        token = getattr(g, "cancel_token", None)
        if token is not None:
            token.cancel("request finished")

    @app.errorhandler(Unauthorized)
    def _backend_unauthorized(e):
        app.logger.info("Backend rejected session (request_id=%s): %s", getattr(g, "request_id", None), e.message)
        clear_session_context()
        flash("Your session has expired. Please log in again.", "warning")
        return redirect(url_for("auth.login_get", next=request.path))

    @app.errorhandler(RequestCancelled)
    def _request_cancelled(e):
        app.logger.info("Request cancelled (request_id=%s): %s", getattr(g, "request_id", None), e.message)
        return "", 204

    @app.errorhandler(500)
    def _err_500(e):  # type: ignore[no-redef]
        # Ensure stack trace shows in logs.
        app.logger.exception("Unhandled 500 (request_id=%s)", getattr(g, "request_id", None))
        return render_template("errors/500.html"), 500

    @app.errorhandler(403)
    def _err_403(e):  # type: ignore[no-redef]
        missing = getattr(g, "missing_role", None)
        if missing:
            app.logger.warning("Forbidden: missing_role=%s request_id=%s", missing, getattr(g, "request_id", None))
        return render_template("errors/403.html", missing_role=missing), 403

    @app.errorhandler(404)
    def _err_404(e):  # type: ignore[no-redef]
        return render_template("errors/404.html"), 404

    @app.errorhandler(413)
    def _err_413(e):  # type: ignore[no-redef]
        flash("File too large. Maximum upload size is 15MB.", "danger")
        referrer = request.referrer
        if referrer and referrer.startswith(request.host_url):
            return redirect(referrer), 302
        return redirect(url_for("routes.dashboard")), 302

    logging.getLogger(__name__).info("create_app() complete; api_base_url=%s", app.config.get("API_BASE_URL"))

    return app
