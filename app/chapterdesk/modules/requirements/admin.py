from dataclasses import replace

from flask import Blueprint, flash, g, redirect, render_template, url_for

from app.chapterdesk.crud import CrudViews
from app.chapterdesk.errors import ApiError, Unauthorized
from app.chapterdesk.listing import PAGE_SIZES, ListController
from app.chapterdesk.modules.requirements.service import (
    FETCH_LIMIT,
    REQUIREMENT_RESOURCE,
    local_page,
    requirement_owner,
)
from app.chapterdesk.resource import gateway

bp = Blueprint("requirements", __name__)


class RequirementViews(CrudViews):
    actions = ("list", "new")

    def list_view(self, **scope):
        params = self.list_params()
        page = None
        load_error = None
        try:
            everything = ListController(gateway(), self.resource).load(replace(params, page=1, limit=FETCH_LIMIT, search=""))
            page = local_page(everything.items, params)
        except Unauthorized:
            raise
        except ApiError as e:
            load_error = e.message if e.message != "Request failed" else "Failed to load requirements"
        return render_template(
            self.list_template,
            resource=self.resource,
            params=params,
            page=page,
            rows=page.items if page is not None else [],
            load_error=load_error,
            page_sizes=PAGE_SIZES,
            actions=self.actions,
            url_args=scope,
        )

    def _not_a_member(self):
        ctx = getattr(g, "session_ctx", None)
        if ctx is None or ctx.member_id is None:
            flash("Only members can post requirements.", "warning")
            return redirect(url_for("requirements.list"))
        return None

    def new_get(self):
        return self._not_a_member() or super().new_get()

    def new_post(self):
        return self._not_a_member() or super().new_post()

    def extra_payload(self, mode):
        return requirement_owner(getattr(g, "session_ctx", None))


RequirementViews(REQUIREMENT_RESOURCE, role=None).register(bp)
