"""Mapping between remote rows and domain records.

Rows arrive with camelCase or snake_case keys depending on who wrote them;
the domain models accept both. A few columns use different names remotely
and are renamed here first. Writes always use snake_case, with a photo's
parent flattened to ``parent_type``/``parent_id``.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from pydantic import BaseModel, ValidationError

from projectmaster.common.logging import get_logger
from projectmaster.config import settings
from projectmaster.domain.models import (
    ChatGroup,
    ChatMessage,
    Photo,
    Project,
    Subcategory,
    Task,
    TaskComment,
    User,
)

logger = get_logger("sync.normalize")


@dataclass(frozen=True)
class Collection:
    field: str  # AppState attribute
    model: type[BaseModel]
    remote: str
    renames: tuple[tuple[str, str], ...] = ()


def _collections() -> dict[str, Collection]:
    return {
        "users": Collection(
            "users", User, "users", renames=(("full_name", "name"), ("fullName", "name"))
        ),
        "projects": Collection("projects", Project, "projects"),
        "subcategories": Collection(
            "subcategories", Subcategory, settings.SUBCATEGORY_COLLECTION
        ),
        "tasks": Collection("tasks", Task, "tasks"),
        "photos": Collection("photos", Photo, "photos"),
        "task_comments": Collection("task_comments", TaskComment, "task_comments"),
        "messages": Collection("messages", ChatMessage, "messages"),
        "chat_groups": Collection("chat_groups", ChatGroup, "chat_groups"),
    }


COLLECTIONS: dict[str, Collection] = _collections()


def remote_name(field: str) -> str:
    return COLLECTIONS[field].remote


def _apply_renames(coll: Collection, row: dict[str, Any]) -> dict[str, Any]:
    if not coll.renames:
        return row
    out = dict(row)
    for source, target in coll.renames:
        if source in out:
            value = out.pop(source)
            if out.get(target) in (None, ""):
                out[target] = value
    return out


def normalize_row(field: str, row: dict[str, Any]) -> BaseModel:
    """Validate one remote row into its domain model. Raises ``ValidationError``."""
    coll = COLLECTIONS[field]
    return coll.model.model_validate(_apply_renames(coll, row))


def normalize_rows(field: str, rows: list[dict[str, Any]]) -> list[BaseModel]:
    """Validate a batch, skipping (and logging) rows that cannot be read."""
    records = []
    for row in rows:
        try:
            records.append(normalize_row(field, row))
        except ValidationError as e:
            logger.warning(
                "Skipping malformed %s row %s: %d validation errors",
                field,
                row.get("id", "?") if isinstance(row, dict) else "?",
                e.error_count(),
            )
    return records


def to_row(record: BaseModel) -> dict[str, Any]:
    """Canonical remote form of a domain record."""
    row = record.model_dump(mode="json", by_alias=False)
    if isinstance(record, Photo):
        row.pop("parent", None)
        row["parent_type"] = record.parent_type.value
        row["parent_id"] = record.parent_id
    return row
