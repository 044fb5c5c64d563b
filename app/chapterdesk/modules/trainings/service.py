from __future__ import annotations

from app.chapterdesk.resource import Column, Resource
from app.chapterdesk.schema import Field, Schema

TRAINING_SCHEMA = Schema(
    fields=(
        Field("date", "Date", type="date", required=True),
        Field("time", "Time", type="time", required=True),
        Field("title", "Title", required=True, max_length=255,
              length_message="Title must not exceed 255 characters"),
        Field("venue", "Venue", required=True, max_length=255,
              length_message="Venue must not exceed 255 characters"),
    )
)

TRAINING_RESOURCE = Resource(
    name="trainings",
    label="Training",
    base_path="/trainings",
    schema=TRAINING_SCHEMA,
    items_key="trainings",
    total_key="totalTrainings",
    columns=(
        Column("date", "Date", kind="date"),
        Column("title", "Title"),
        Column("time", "Time"),
        Column("venue", "Venue"),
    ),
    default_sort="date",
    default_order="desc",
    endpoint="trainings",
    title_field="title",
)
