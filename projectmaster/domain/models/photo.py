"""Photo records and their owning-entity reference.

A photo belongs to exactly one parent: a project, a subcategory, a task or a
chat. The parent is a tagged union keyed by ``type`` so every reference names
the kind of entity it points at. Flat ``parentType``/``parentId`` rows (the
shape stored remotely) are folded into the union on input.
"""

from __future__ import annotations

from typing import Annotated, Any, Literal, Union

from pydantic import Field, model_validator

from projectmaster.common.enums import PhotoParentType
from projectmaster.domain.models.base import DomainModel, Identifier, Timestamp, now_ms


class ProjectParent(DomainModel):
    type: Literal["project"] = "project"
    project_id: Identifier

    @property
    def ref_id(self) -> str:
        return self.project_id


class SubcategoryParent(DomainModel):
    type: Literal["subcategory"] = "subcategory"
    subcategory_id: Identifier

    @property
    def ref_id(self) -> str:
        return self.subcategory_id


class TaskParent(DomainModel):
    type: Literal["task"] = "task"
    task_id: Identifier

    @property
    def ref_id(self) -> str:
        return self.task_id


class ChatParent(DomainModel):
    type: Literal["chat"] = "chat"
    chat_id: Identifier

    @property
    def ref_id(self) -> str:
        return self.chat_id


PhotoParent = Annotated[
    Union[ProjectParent, SubcategoryParent, TaskParent, ChatParent],
    Field(discriminator="type"),
]

_REF_FIELDS = {
    PhotoParentType.PROJECT.value: "project_id",
    PhotoParentType.SUBCATEGORY.value: "subcategory_id",
    PhotoParentType.TASK.value: "task_id",
    PhotoParentType.CHAT.value: "chat_id",
}


def make_parent(parent_type: PhotoParentType | str, parent_id: str) -> PhotoParent:
    kind = PhotoParentType(parent_type)
    return {
        PhotoParentType.PROJECT: ProjectParent,
        PhotoParentType.SUBCATEGORY: SubcategoryParent,
        PhotoParentType.TASK: TaskParent,
        PhotoParentType.CHAT: ChatParent,
    }[kind](**{_REF_FIELDS[kind.value]: parent_id})


class Photo(DomainModel):
    id: Identifier
    parent: PhotoParent
    image_url: str
    uploaded_by: Identifier
    uploaded_by_name: str = "Unknown"
    created_at: Timestamp = Field(default_factory=now_ms)
    comment: str | None = None

    @model_validator(mode="before")
    @classmethod
    def _fold_flat_parent(cls, data: Any) -> Any:
        if not isinstance(data, dict) or "parent" in data:
            return data
        parent_type = data.get("parentType", data.get("parent_type"))
        parent_id = data.get("parentId", data.get("parent_id"))
        if parent_type is None or parent_id is None:
            return data
        ref_field = _REF_FIELDS.get(str(parent_type))
        if ref_field is None:
            return data
        folded = {
            k: v
            for k, v in data.items()
            if k not in ("parentType", "parent_type", "parentId", "parent_id")
        }
        folded["parent"] = {"type": str(parent_type), ref_field: parent_id}
        return folded

    @property
    def parent_type(self) -> PhotoParentType:
        return PhotoParentType(self.parent.type)

    @property
    def parent_id(self) -> str:
        return self.parent.ref_id
