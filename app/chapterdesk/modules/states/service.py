from __future__ import annotations

from app.chapterdesk.resource import Column, Resource
from app.chapterdesk.schema import Field, Schema

STATE_RESOURCE = Resource(
    name="states",
    label="State",
    base_path="/states",
    schema=Schema(
        fields=(
            Field("name", "State name", required=True, max_length=255,
                  length_message="State name must not exceed 255 characters"),
        )
    ),
    items_key="states",
    total_key="totalStates",
    columns=(Column("id", "ID"), Column("name", "Name")),
    default_sort="name",
    invalidates=("members",),
    endpoint="states",
)
