from __future__ import annotations

from dataclasses import asdict, dataclass, field
from typing import Any

from flask import g, session

_SESSION_KEY = "ctx"


@dataclass(frozen=True)
class SessionContext:
    """
    Read-only view of the logged-in user, captured at login.

    Controllers receive this explicitly instead of reaching into the cookie.
    """

    token: str
    user_id: int
    email: str
    name: str = ""
    roles: tuple[str, ...] = ()
    member_id: int | None = None
    member_name: str = ""
    member_email: str = ""
    mobile1: str = ""
    mobile2: str = ""
    chapter_id: int | None = None
    accessible_chapters: tuple[int, ...] = field(default_factory=tuple)

    @property
    def is_member(self) -> bool:
        return self.member_id is not None

    def has_role(self, role: str) -> bool:
        return role.lower() in (r.lower() for r in self.roles)

    def to_dict(self) -> dict[str, Any]:
        d = asdict(self)
        d["roles"] = list(self.roles)
        d["accessible_chapters"] = list(self.accessible_chapters)
        return d

    @classmethod
    def from_dict(cls, d: dict[str, Any]) -> "SessionContext":
        return cls(
            token=d["token"],
            user_id=int(d["user_id"]),
            email=d.get("email") or "",
            name=d.get("name") or "",
            roles=tuple(d.get("roles") or ()),
            member_id=d.get("member_id"),
            member_name=d.get("member_name") or "",
            member_email=d.get("member_email") or "",
            mobile1=d.get("mobile1") or "",
            mobile2=d.get("mobile2") or "",
            chapter_id=d.get("chapter_id"),
            accessible_chapters=tuple(d.get("accessible_chapters") or ()),
        )

    @classmethod
    def from_login_payload(cls, payload: dict[str, Any]) -> "SessionContext":
        """Build from the backend's /auth/login response ({token, user: {..., member}})."""
        user = payload.get("user") or {}
        member = user.get("member") or {}
        roles: list[str] = []
        if user.get("role"):
            roles.append(str(user["role"]))
        # accessibleChapters: [{"role": "OB", "chapters": [1, 2]}, ...]
        chapters: list[int] = []
        for entry in user.get("accessibleChapters") or []:
            if not isinstance(entry, dict):
                continue
            if entry.get("role") and entry["role"] not in roles:
                roles.append(str(entry["role"]))
            for cid in entry.get("chapters") or []:
                try:
                    if int(cid) not in chapters:
                        chapters.append(int(cid))
                except (TypeError, ValueError):
                    continue
        return cls(
            token=payload["token"],
            user_id=int(user["id"]),
            email=user.get("email") or "",
            name=user.get("name") or "",
            roles=tuple(roles),
            member_id=int(member["id"]) if member.get("id") is not None else None,
            member_name=member.get("memberName") or "",
            member_email=member.get("email") or "",
            mobile1=member.get("mobile1") or "",
            mobile2=member.get("mobile2") or "",
            chapter_id=member.get("chapterId"),
            accessible_chapters=tuple(chapters),
        )


def store_session_context(ctx: SessionContext) -> None:
    session[_SESSION_KEY] = ctx.to_dict()


def clear_session_context() -> None:
    session.pop(_SESSION_KEY, None)


def load_session_context() -> None:
    """before_request hook: expose the session context on `g`."""
    raw = session.get(_SESSION_KEY)
    ctx = None
    if raw:
        try:
            ctx = SessionContext.from_dict(raw)
        except (KeyError, TypeError, ValueError):
            session.pop(_SESSION_KEY, None)
    g.session_ctx = ctx


def current_session() -> SessionContext:
    ctx = getattr(g, "session_ctx", None)
    if ctx is None:
        raise RuntimeError("No logged-in session")
    return ctx
