from collections.abc import Callable
from functools import wraps
from typing import Any

from flask import abort, g, redirect, request, url_for

from app.chapterdesk.session import SessionContext

# super_admin sees everything admin does
ROLE_IMPLIES = {
    "super_admin": ("admin",),
}


def user_has_role(ctx: SessionContext | None, role: str) -> bool:
    if ctx is None:
        return False
    for held in ctx.roles:
        held = held.lower()
        if held == role or role in ROLE_IMPLIES.get(held, ()):
            return True
    return False


def _login_redirect():
    nxt = request.full_path or request.path
    # Avoid trailing '?' from full_path when there is no query string.
    if nxt.endswith("?"):
        nxt = nxt[:-1]
    return redirect(url_for("auth.login_get", next=nxt))


def require_login(fn: Callable[..., Any]) -> Callable[..., Any]:
    @wraps(fn)
    def wrapped(*args: Any, **kwargs: Any):
        if getattr(g, "session_ctx", None) is None:
            return _login_redirect()
        return fn(*args, **kwargs)

    return wrapped


def require_role(role: str) -> Callable[[Callable[..., Any]], Callable[..., Any]]:
    def decorator(fn: Callable[..., Any]) -> Callable[..., Any]:
        @wraps(fn)
        def wrapped(*args: Any, **kwargs: Any):
            ctx: SessionContext | None = getattr(g, "session_ctx", None)
            # Anonymous → login; logged in without the role → 403
            if ctx is None:
                return _login_redirect()
            if not user_has_role(ctx, role):
                g.missing_role = role
                abort(403)
            return fn(*args, **kwargs)

        return wrapped

    return decorator
