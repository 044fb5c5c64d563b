from __future__ import annotations

from typing import Any

from app.chapterdesk.resource import Column, ListPage, Resource
from app.chapterdesk.schema import Field, Schema

SUBCATEGORY_SCHEMA = Schema(
    fields=(
        Field("name", "Sub-Category name", required=True, max_length=255,
              length_message="Category name must not exceed 255 characters"),
        Field("categoryId", "Category", type="int", required=True, min_value=0, exclusive_min=True,
              required_message="Category is required", range_message="Category is required"),
    )
)

SUBCATEGORY_RESOURCE = Resource(
    name="subcategories",
    label="Sub-Category",
    plural_label="Sub-Categories",
    base_path="/subcategories",
    schema=SUBCATEGORY_SCHEMA,
    items_key="categories",
    total_key="totalCategories",
    columns=(
        Column("id", "ID"),
        Column("name", "Name"),
        Column("categoryName", "Category", sortable=False),
    ),
    default_sort="name",
    invalidates=("powerteams",),
    endpoint="subcategories",
)


def with_category_names(page: ListPage, categories: dict[str, str]) -> list[dict[str, Any]]:
    """Rows for display, each carrying its parent category's name."""
    rows = []
    for item in page.items:
        cid = item.get("categoryId")
        rows.append({**item, "categoryName": categories.get(str(cid)) or f"Unknown (ID: {cid})"})
    return rows
