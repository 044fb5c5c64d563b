from __future__ import annotations

from typing import Any

from app.chapterdesk.resource import Column, Resource
from app.chapterdesk.schema import Field, Schema

POWER_TEAM_SCHEMA = Schema(
    fields=(
        Field("name", "PowerTeam name", required=True, max_length=255,
              required_message="PowerTeam name is required"),
        Field("categoryIds", "Categories", type="multi", min_items=1,
              required_message="At least one category must be selected"),
        Field("subCategoryIds", "Sub-Categories", type="multi"),
    )
)

POWER_TEAM_RESOURCE = Resource(
    name="powerteams",
    label="PowerTeam",
    base_path="/powerteams",
    schema=POWER_TEAM_SCHEMA,
    items_key="powerTeams",
    columns=(
        Column("id", "ID", sortable=False),
        Column("name", "Name", sortable=False),
        Column("categoryNames", "Categories", sortable=False),
    ),
    endpoint="power_teams",
)


def _ids(entity: dict[str, Any], ids_key: str, objects_key: str) -> list[str]:
    ids = entity.get(ids_key)
    if not ids:
        ids = [o.get("id") for o in entity.get(objects_key) or [] if isinstance(o, dict)]
    return [str(i) for i in ids if i is not None]


def form_values(entity: dict[str, Any]) -> dict[str, Any]:
    """Edit form values; the backend returns nested categories rather than id lists."""
    return {
        "name": entity.get("name") or "",
        "categoryIds": _ids(entity, "categoryIds", "categories"),
        "subCategoryIds": _ids(entity, "subCategoryIds", "subCategories"),
    }


def format_categories(categories: list[dict[str, Any]] | None) -> str:
    names = [c.get("name") for c in categories or [] if isinstance(c, dict) and c.get("name")]
    return ", ".join(names) if names else "N/A"


def with_category_names(items: list[dict[str, Any]]) -> list[dict[str, Any]]:
    return [{**pt, "categoryNames": format_categories(pt.get("categories"))} for pt in items]
