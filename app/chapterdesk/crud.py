"""
Form/list views shared by every entity module.

A module builds a Resource, wraps it in CrudViews (subclassing to add option
lists, payload extras or custom redirects) and registers it on its blueprint.
All backend failures are caught here and become flashes or field errors.

Blueprints mounted under a parent (e.g. /transactions/chapters/<chapter_id>)
get the parent's URL values passed through as `scope`.
"""
from __future__ import annotations

from typing import Any

from flask import Blueprint, current_app, flash, redirect, render_template, request, url_for

from app.chapterdesk.errors import (
    ApiError,
    ConfirmationRequired,
    ErrorKind,
    NotFound,
    SubmissionInProgress,
    Unauthorized,
)
from app.chapterdesk.forms import FormController
from app.chapterdesk.listing import PAGE_SIZES, ListController, ListParams
from app.chapterdesk.rbac import require_login, require_role
from app.chapterdesk.resource import ListPage, Resource, gateway
from app.chapterdesk.security import form_nonce


def uploaded_files(names: tuple[str, ...]) -> dict[str, Any]:
    """Files from the current request, shaped for requests' `files=`."""
    files: dict[str, Any] = {}
    for name in names:
        f = request.files.get(name)
        if f and f.filename:
            files[name] = (f.filename, f.stream, f.mimetype or "application/octet-stream")
    return files


def submitted_values(resource: Resource, mode: str) -> dict[str, Any]:
    """Echo the raw submission back into the form after a failed save."""
    values: dict[str, Any] = {}
    for f in resource.schema.fields_for(mode):
        if f.type in ("password", "file"):
            continue
        if f.type == "multi":
            values[f.name] = request.form.getlist(f.name)
        elif f.type == "bool":
            values[f.name] = (request.form.get(f.name) or "").lower() in ("1", "true", "on", "yes")
        else:
            values[f.name] = request.form.get(f.name) or ""
    return values


def backend_message(e: ApiError, fallback: str) -> str:
    return e.message if e.message and e.message != "Request failed" else fallback


class CrudViews:
    list_template = "crud/list.html"
    form_template = "crud/form.html"
    confirm_template = "crud/confirm_delete.html"
    actions = ("list", "new", "edit", "delete")

    def __init__(self, resource: Resource, *, role: str | None = "admin", list_path: str | None = None) -> None:
        self.resource = resource
        self.role = role
        self.list_path = list_path

    # ---------- hooks ----------
    def list_params(self) -> ListParams:
        r = self.resource
        return ListParams.from_args(
            request.args,
            sortable=r.sortable,
            default_sort=r.default_sort,
            default_order=r.default_order,
            default_limit=current_app.config.get("DEFAULT_PAGE_SIZE", 10),
            filter_names=r.filters,
        )

    def resolve_list_path(self, scope: dict[str, Any]) -> str | None:
        return self.list_path

    def list_context(self, params: ListParams) -> dict[str, Any]:
        return {}

    def display_rows(self, page: ListPage, ctx: dict[str, Any]) -> list[dict[str, Any]]:
        return page.items

    def form_context(self, mode: str, entity: dict[str, Any] | None) -> dict[str, Any]:
        return {}

    def initial_values(self, entity: dict[str, Any]) -> dict[str, Any]:
        values: dict[str, Any] = {}
        for f in self.resource.schema.fields_for("edit"):
            v = entity.get(f.name)
            if f.type == "date" and isinstance(v, str):
                v = v[:10]
            if f.type == "multi" and v is None:
                v = []
            values[f.name] = v if v is not None else ("" if f.type != "bool" else False)
        return values

    def default_values(self) -> dict[str, Any]:
        return {}

    def extra_payload(self, mode: str) -> dict[str, Any]:
        return {}

    def send(self, mode: str, entity_id: int | None, scope: dict[str, Any]):
        """Override to post somewhere other than the resource's base path."""
        return None

    def list_url(self, scope: dict[str, Any] | None = None) -> str:
        return url_for(f"{self.resource.endpoint}.list", **(scope or {}))

    def success_redirect(self, mode: str, entity: Any, scope: dict[str, Any]) -> str:
        return self.list_url(scope)

    def verb(self, mode: str) -> str:
        return "created" if mode == "create" else "updated"

    # ---------- helpers ----------
    def _guard(self):
        return current_app.extensions["submission_guard"]

    def _url(self, action: str, scope: dict[str, Any], **args: Any) -> str:
        return url_for(f"{self.resource.endpoint}.{action}", **scope, **args)

    def _render_form(
        self,
        mode: str,
        entity_id: int | None,
        values: dict,
        errors: dict,
        entity: dict | None = None,
        scope: dict[str, Any] | None = None,
    ):
        scope = scope or {}
        ctx = {"options": {}, **self.form_context(mode, entity)}
        if mode == "create":
            action = self._url("new_post", scope)
        else:
            action = self._url("edit_post", scope, entity_id=entity_id)
        return render_template(
            self.form_template,
            resource=self.resource,
            mode=mode,
            entity_id=entity_id,
            fields=self.resource.schema.fields_for(mode),
            values=values,
            errors=errors,
            nonce=form_nonce(),
            action=action,
            cancel_url=self.list_url(scope),
            multipart=bool(self.resource.file_fields),
            url_args=scope,
            **ctx,
        )

    # ---------- views ----------
    def list_view(self, **scope: Any):
        params = self.list_params()
        page = None
        load_error = None
        try:
            page = ListController(gateway(), self.resource, path=self.resolve_list_path(scope)).load(params)
        except Unauthorized:
            raise
        except ApiError as e:
            current_app.logger.warning("List %s failed: %s", self.resource.name, e.message)
            load_error = backend_message(e, f"Failed to load {self.resource.plural.lower()}")
        ctx = self.list_context(params)
        return render_template(
            self.list_template,
            resource=self.resource,
            params=params,
            page=page,
            rows=self.display_rows(page, ctx) if page is not None else [],
            load_error=load_error,
            page_sizes=PAGE_SIZES,
            actions=self.actions,
            url_args=scope,
            **ctx,
        )

    def new_get(self, **scope: Any):
        return self._render_form("create", None, self.default_values(), {}, scope=scope)

    def new_post(self, **scope: Any):
        return self._save("create", None, scope)

    def edit_get(self, entity_id: int, **scope: Any):
        controller = FormController(gateway(), self.resource, "edit", entity_id)
        try:
            entity = controller.load()
        except Unauthorized:
            raise
        except NotFound:
            flash(f"{self.resource.label} not found.", "danger")
            return redirect(self.list_url(scope))
        except ApiError as e:
            flash(backend_message(e, f"Failed to fetch {self.resource.label.lower()} details"), "danger")
            return redirect(self.list_url(scope))
        return self._render_form("edit", entity_id, self.initial_values(entity), {}, entity, scope=scope)

    def edit_post(self, entity_id: int, **scope: Any):
        return self._save("edit", entity_id, scope)

    def _save(self, mode: str, entity_id: int | None, scope: dict[str, Any]):
        controller = FormController(gateway(), self.resource, mode, entity_id, guard=self._guard())
        try:
            result = controller.submit(
                request.form,
                files=uploaded_files(self.resource.file_fields),
                extra=self.extra_payload(mode),
                nonce=request.form.get("_nonce"),
                send=self.send(mode, entity_id, scope),
            )
        except SubmissionInProgress as e:
            flash(str(e), "warning")
            return redirect(self.list_url(scope))

        if result.ok:
            flash(f"{self.resource.label} {self.verb(mode)} successfully", "success")
            return redirect(self.success_redirect(mode, result.entity, scope))

        if result.error_kind == ErrorKind.NEGATIVE_BALANCE:
            # carried to the list and shown there as a dismissible banner
            flash(result.message or "This would result in a negative balance", "banner")
            return redirect(self.list_url(scope))
        if result.error_kind == ErrorKind.UNAUTHORIZED:
            raise Unauthorized(result.message or "Session expired")
        if result.message:
            flash(result.message, "danger")
        values = submitted_values(self.resource, mode)
        return self._render_form(mode, entity_id, values, result.field_errors, scope=scope), 400

    def delete_get(self, entity_id: int, **scope: Any):
        try:
            entity = gateway().get(self.resource, entity_id)
        except Unauthorized:
            raise
        except ApiError:
            entity = {"id": entity_id}
        return render_template(
            self.confirm_template,
            resource=self.resource,
            entity=entity,
            entity_id=entity_id,
            action=self._url("delete_post", scope, entity_id=entity_id),
            cancel_url=self.list_url(scope),
        )

    def delete_post(self, entity_id: int, **scope: Any):
        confirmed = (request.form.get("confirm") or "").strip().lower() == "yes"
        controller = ListController(gateway(), self.resource, path=self.resolve_list_path(scope))
        try:
            controller.delete(entity_id, confirmed=confirmed)
        except ConfirmationRequired:
            return redirect(self._url("delete_get", scope, entity_id=entity_id))
        except Unauthorized:
            raise
        except ApiError as e:
            flash(backend_message(e, f"Failed to delete {self.resource.label.lower()}"), "danger")
            return redirect(self.list_url(scope))
        flash(f"{self.resource.label} deleted successfully", "success")
        return redirect(self.list_url(scope))

    def register(self, bp: Blueprint, prefix: str = "") -> None:
        guard = require_role(self.role) if self.role else require_login
        rules = (
            ("", "list", self.list_view, ["GET"]),
            ("/new", "new_get", self.new_get, ["GET"]),
            ("/new", "new_post", self.new_post, ["POST"]),
            ("/<int:entity_id>/edit", "edit_get", self.edit_get, ["GET"]),
            ("/<int:entity_id>/edit", "edit_post", self.edit_post, ["POST"]),
            ("/<int:entity_id>/delete", "delete_get", self.delete_get, ["GET"]),
            ("/<int:entity_id>/delete", "delete_post", self.delete_post, ["POST"]),
        )
        for rule, endpoint, fn, methods in rules:
            if endpoint.split("_")[0] not in self.actions:
                continue
            bp.add_url_rule(prefix + rule, endpoint, guard(fn), methods=methods)
