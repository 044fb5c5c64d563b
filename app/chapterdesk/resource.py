"""
Generic backend resource: one configuration object per entity type, one gateway
that knows how to list/get/create/update/delete/patch any of them and keeps the
query cache honest (invalidate after every successful mutation, never patch).
"""
from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from flask import current_app, g, has_app_context

from app.chapterdesk.schema import Schema

if TYPE_CHECKING:
    from app.chapterdesk.api_client import ApiClient
    from app.chapterdesk.cache import QueryCache
    from app.chapterdesk.cancellation import CancellationToken
    from app.chapterdesk.listing import ListParams
    from app.chapterdesk.session import SessionContext

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Column:
    key: str
    label: str
    sortable: bool = True
    kind: str = "text"  # text, date, money, bool, status


@dataclass(frozen=True)
class Resource:
    name: str  # cache namespace, e.g. "categories"
    label: str  # singular display name
    base_path: str
    schema: Schema
    items_key: str
    total_key: str | None = None
    columns: tuple[Column, ...] = ()
    default_sort: str | None = None
    default_order: str = "asc"
    filters: tuple[str, ...] = ()
    file_fields: tuple[str, ...] = ()
    # other cache namespaces whose lists embed this entity
    invalidates: tuple[str, ...] = ()
    endpoint: str = ""  # blueprint name for url_for
    title_field: str = "name"
    plural_label: str = ""

    @property
    def plural(self) -> str:
        return self.plural_label or self.label + "s"

    @property
    def sortable(self) -> tuple[str, ...]:
        return tuple(c.key for c in self.columns if c.sortable)

    def item_path(self, entity_id: int | str) -> str:
        return f"{self.base_path}/{entity_id}"


@dataclass
class ListPage:
    items: list[dict[str, Any]]
    page: int
    total_pages: int
    total_items: int
    offset: int = 0
    raw: dict[str, Any] = field(default_factory=dict, repr=False)

    @property
    def first_index(self) -> int:
        return 0 if not self.items else self.offset + 1

    @property
    def last_index(self) -> int:
        return self.offset + len(self.items)


def parse_list_response(body: Any, resource: Resource, params: "ListParams") -> ListPage:
    """
    Normalise the backend's list shapes:
      bare array, {<items_key>, page, totalPages, <total_key>},
      or {<items_key>, pagination: {currentPage, totalPages, totalCount}}.
    """
    if isinstance(body, list):
        items = body
        return ListPage(items=items, page=1, total_pages=1, total_items=len(items), raw={})

    body = body if isinstance(body, dict) else {}
    items = body.get(resource.items_key)
    if not isinstance(items, list):
        items = body.get("items") if isinstance(body.get("items"), list) else []

    pagination = body.get("pagination") if isinstance(body.get("pagination"), dict) else {}
    total_items = (
        body.get(resource.total_key or "")
        or pagination.get("totalCount")
        or body.get("totalItems")
        or body.get("total")
        or len(items)
    )
    total_items = int(total_items)
    total_pages = body.get("totalPages") or pagination.get("totalPages")
    if not total_pages:
        total_pages = max(math.ceil(total_items / params.limit), 1) if params.limit else 1
    page = int(body.get("page") or pagination.get("currentPage") or params.page)
    return ListPage(
        items=items,
        page=page,
        total_pages=max(int(total_pages), 1),
        total_items=total_items,
        raw=body,
        offset=(page - 1) * params.limit,
    )


@dataclass
class Gateway:
    """Per-request binding of client, cache, session token and cancellation token."""

    client: "ApiClient"
    cache: "QueryCache"
    session: "SessionContext | None" = None
    cancel: "CancellationToken | None" = None

    @property
    def _token(self) -> str | None:
        return self.session.token if self.session else None

    @property
    def _user_key(self) -> int | None:
        return self.session.user_id if self.session else None

    def _kw(self) -> dict[str, Any]:
        return {"token": self._token, "cancel": self.cancel}

    # ---------- reads ----------
    def list(self, resource: Resource, params: "ListParams", *, path: str | None = None) -> ListPage:
        path = path or resource.base_path
        key = (resource.name, self._user_key, "list", path, params.cache_key())

        def fetch() -> ListPage:
            body = self.client.get(path, params=params.to_query(), **self._kw())
            return parse_list_response(body, resource, params)

        return self.cache.fetch(key, fetch, self.cancel)

    def get(self, resource: Resource, entity_id: int | str) -> dict[str, Any]:
        key = (resource.name, self._user_key, "detail", str(entity_id))
        return self.cache.fetch(key, lambda: self.client.get(resource.item_path(entity_id), **self._kw()), self.cancel)

    def fetch(self, namespace: str, path: str, params: dict[str, Any] | None = None) -> Any:
        """Cached read of an auxiliary endpoint (option lists, history)."""
        key = (namespace, self._user_key, "raw", path, tuple(sorted((params or {}).items())))
        return self.cache.fetch(key, lambda: self.client.get(path, params=params, **self._kw()), self.cancel)

    def download(self, path: str, params: dict[str, Any] | None = None) -> tuple[bytes, str]:
        """Uncached binary read (spreadsheets)."""
        return self.client.download(path, params=params, **self._kw())

    # ---------- mutations ----------
    def create(self, resource: Resource, payload: dict[str, Any], files: dict[str, Any] | None = None) -> Any:
        if files:
            result = self.client.post_multipart(resource.base_path, payload, files, **self._kw())
        else:
            result = self.client.post(resource.base_path, payload, **self._kw())
        self._after_mutation(resource, "create", _result_id(result))
        return result

    def update(
        self, resource: Resource, entity_id: int | str, payload: dict[str, Any], files: dict[str, Any] | None = None
    ) -> Any:
        path = resource.item_path(entity_id)
        if files:
            result = self.client.put_multipart(path, payload, files, **self._kw())
        else:
            result = self.client.put(path, payload, **self._kw())
        self._after_mutation(resource, "update", entity_id)
        return result

    def delete(self, resource: Resource, entity_id: int | str) -> Any:
        result = self.client.delete(resource.item_path(entity_id), **self._kw())
        self._after_mutation(resource, "delete", entity_id)
        return result

    def patch(self, resource: Resource, entity_id: int | str, suffix: str, body: dict[str, Any]) -> Any:
        path = resource.item_path(entity_id) + ("/" + suffix.strip("/") if suffix else "")
        result = self.client.patch(path, body, **self._kw())
        self._after_mutation(resource, f"patch:{suffix or 'item'}", entity_id)
        return result

    def post_to(self, resource: Resource, path: str, payload: dict[str, Any]) -> Any:
        """Create through a non-standard path (e.g. nested under a chapter)."""
        result = self.client.post(path, payload, **self._kw())
        self._after_mutation(resource, "create", _result_id(result))
        return result

    def _after_mutation(self, resource: Resource, action: str, entity_id: Any) -> None:
        self.cache.invalidate(resource.name)
        for other in resource.invalidates:
            self.cache.invalidate(other)
        logger.info(
            "mutation action=%s.%s entity_id=%s user_id=%s request_id=%s",
            resource.name,
            action,
            entity_id,
            self._user_key,
            getattr(g, "request_id", None) if has_app_context() else None,
        )


def _result_id(result: Any) -> Any:
    if isinstance(result, dict):
        if "id" in result:
            return result["id"]
        for v in result.values():
            if isinstance(v, dict) and "id" in v:
                return v["id"]
    return None


def gateway() -> Gateway:
    """Gateway for the current request (client/cache from the app, session/cancel from `g`)."""
    return Gateway(
        client=current_app.extensions["api_client"],
        cache=current_app.extensions["query_cache"],
        session=getattr(g, "session_ctx", None),
        cancel=getattr(g, "cancel_token", None),
    )
