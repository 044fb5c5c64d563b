"""
Option lists for select/multi-select widgets (chapters, categories, members...).

Fetched through the gateway so they share the query cache and are invalidated
with their entity type.
"""
from __future__ import annotations

from typing import Any

from app.chapterdesk.errors import ApiError
from app.chapterdesk.resource import Gateway

OPTION_LIMIT = 1000


def _items(body: Any, key: str) -> list[dict[str, Any]]:
    if isinstance(body, list):
        return [x for x in body if isinstance(x, dict)]
    if isinstance(body, dict) and isinstance(body.get(key), list):
        return [x for x in body[key] if isinstance(x, dict)]
    return []


def _options(gw: Gateway, namespace: str, path: str, key: str, label: str, params: dict | None = None) -> list[tuple[str, str]]:
    try:
        body = gw.fetch(namespace, path, {"limit": OPTION_LIMIT, **(params or {})})
    except ApiError:
        # a missing picker list must not take the form down with it
        return []
    return [(str(x["id"]), str(x.get(label) or x["id"])) for x in _items(body, key) if "id" in x]


def chapter_options(gw: Gateway) -> list[tuple[str, str]]:
    return _options(gw, "chapters", "/chapters", "chapters", "name")


def category_options(gw: Gateway) -> list[tuple[str, str]]:
    return _options(gw, "categories", "/categories", "categories", "name")


def subcategory_options(gw: Gateway) -> list[tuple[str, str]]:
    return _options(gw, "subcategories", "/subcategories", "categories", "name")


def state_options(gw: Gateway) -> list[tuple[str, str]]:
    return _options(gw, "states", "/states", "states", "name")


def member_options(gw: Gateway, *, exclude: int | None = None, chapter_id: int | None = None) -> list[tuple[str, str]]:
    params: dict[str, Any] = {"active": "true"}
    if chapter_id is not None:
        params["chapterId"] = chapter_id
    opts = _options(gw, "members", "/api/members", "members", "memberName", params)
    if exclude is not None:
        opts = [o for o in opts if o[0] != str(exclude)]
    return opts


def label_map(options: list[tuple[str, str]]) -> dict[str, str]:
    return dict(options)


def zone_options(gw: Gateway) -> list[tuple[str, str]]:
    return _options(gw, "zones", "/zones", "zones", "name")


def location_records(gw: Gateway) -> list[dict[str, Any]]:
    try:
        body = gw.fetch("locations", "/locations", {"limit": OPTION_LIMIT})
    except ApiError:
        return []
    return _items(body, "locations")
