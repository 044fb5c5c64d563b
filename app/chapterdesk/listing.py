from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass, replace
from typing import TYPE_CHECKING, Any

from app.chapterdesk.errors import ConfirmationRequired

if TYPE_CHECKING:
    from app.chapterdesk.resource import Gateway, ListPage, Resource

SORT_ORDERS = ("asc", "desc")
PAGE_SIZES = (10, 25, 50, 100)


@dataclass(frozen=True)
class ListParams:
    """
    Query state for one list view. Every transition returns a new instance;
    anything other than explicit page navigation lands back on page 1.
    """

    page: int = 1
    limit: int = 10
    sort_by: str | None = None
    sort_order: str = "asc"
    search: str = ""
    filters: tuple[tuple[str, str], ...] = ()

    def toggle_sort(self, column: str) -> "ListParams":
        if self.sort_by == column:
            order = "desc" if self.sort_order == "asc" else "asc"
        else:
            order = "asc"
        return replace(self, sort_by=column, sort_order=order, page=1)

    def with_search(self, text: str) -> "ListParams":
        return replace(self, search=(text or "").strip(), page=1)

    def with_filter(self, name: str, value: str | None) -> "ListParams":
        kept = tuple((k, v) for k, v in self.filters if k != name)
        if value not in (None, ""):
            kept = tuple(sorted(kept + ((name, str(value)),)))
        return replace(self, filters=kept, page=1)

    def with_limit(self, limit: int) -> "ListParams":
        return replace(self, limit=max(int(limit), 1), page=1)

    def goto_page(self, page: int, total_pages: int | None = None) -> "ListParams":
        if page < 1 or (total_pages is not None and page > max(total_pages, 1)):
            return self
        return replace(self, page=page)

    def filter_value(self, name: str, default: str = "") -> str:
        for k, v in self.filters:
            if k == name:
                return v
        return default

    def to_query(self) -> dict[str, Any]:
        """Backend query string for GET <base>."""
        q: dict[str, Any] = {"page": self.page, "limit": self.limit}
        if self.sort_by:
            q["sortBy"] = self.sort_by
            q["sortOrder"] = self.sort_order
        if self.search:
            q["search"] = self.search
        for k, v in self.filters:
            q[k] = v
        return q

    def to_args(self, **overrides: Any) -> dict[str, Any]:
        """Console URL args (what url_for gets) for this state, with overrides."""
        args: dict[str, Any] = {"page": self.page, "limit": self.limit}
        if self.sort_by:
            args["sort"] = self.sort_by
            args["order"] = self.sort_order
        if self.search:
            args["q"] = self.search
        args.update(dict(self.filters))
        args.update(overrides)
        return {k: v for k, v in args.items() if v not in (None, "")}

    def cache_key(self) -> tuple:
        return (self.page, self.limit, self.sort_by, self.sort_order, self.search, self.filters)

    @classmethod
    def from_args(
        cls,
        args: Mapping[str, str],
        *,
        sortable: Iterable[str] = (),
        default_sort: str | None = None,
        default_order: str = "asc",
        default_limit: int = 10,
        filter_names: Iterable[str] = (),
    ) -> "ListParams":
        sortable = set(sortable)
        sort_by = (args.get("sort") or "").strip() or default_sort
        if sort_by and sortable and sort_by not in sortable:
            sort_by = default_sort
        order = (args.get("order") or default_order).strip().lower()
        if order not in SORT_ORDERS:
            order = default_order
        filters = []
        for name in filter_names:
            v = (args.get(name) or "").strip()
            if v:
                filters.append((name, v))
        return cls(
            page=max(_to_int(args.get("page"), 1), 1),
            limit=_clamp_limit(_to_int(args.get("limit"), default_limit)),
            sort_by=sort_by,
            sort_order=order,
            search=(args.get("q") or "").strip(),
            filters=tuple(sorted(filters)),
        )


def _to_int(value: str | None, default: int) -> int:
    try:
        return int(str(value).strip())
    except (TypeError, ValueError):
        return default


def _clamp_limit(limit: int) -> int:
    return min(max(limit, 1), max(PAGE_SIZES))


class ListController:
    """Fetches pages and issues row-level mutations for one resource."""

    def __init__(self, gateway: "Gateway", resource: "Resource", *, path: str | None = None) -> None:
        self.gateway = gateway
        self.resource = resource
        self.path = path

    def load(self, params: ListParams) -> "ListPage":
        return self.gateway.list(self.resource, params, path=self.path)

    def delete(self, entity_id: int, *, confirmed: bool) -> Any:
        if not confirmed:
            raise ConfirmationRequired(f"Deleting {self.resource.label.lower()} {entity_id} requires confirmation")
        return self.gateway.delete(self.resource, entity_id)

    def change_status(self, entity_id: int, suffix: str, body: dict[str, Any] | None = None) -> Any:
        return self.gateway.patch(self.resource, entity_id, suffix, body or {})
