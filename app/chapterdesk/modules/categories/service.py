from __future__ import annotations

from app.chapterdesk.resource import Column, Resource
from app.chapterdesk.schema import Field, Schema

CATEGORY_SCHEMA = Schema(
    fields=(
        Field("name", "Category name", required=True, max_length=255,
              length_message="Category name must not exceed 255 characters"),
        Field("description", "Description", type="text", required=True, max_length=1000,
              length_message="Description must not exceed 1000 characters"),
    )
)

CATEGORY_RESOURCE = Resource(
    name="categories",
    label="Category",
    plural_label="Categories",
    base_path="/categories",
    schema=CATEGORY_SCHEMA,
    items_key="categories",
    total_key="totalCategories",
    columns=(
        Column("id", "ID"),
        Column("name", "Name"),
        Column("description", "Description"),
    ),
    default_sort="name",
    # power teams list category names
    invalidates=("powerteams",),
    endpoint="categories",
)
