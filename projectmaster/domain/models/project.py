from pydantic import Field

from projectmaster.domain.models.base import (
    DomainModel,
    IdSet,
    Identifier,
    OptionalTimestamp,
    Timestamp,
    now_ms,
)


class Project(DomainModel):
    id: Identifier
    name: str
    description: str = ""
    owner_id: Identifier
    project_manager_ids: IdSet = ()
    contractor_ids: IdSet = ()
    created_at: Timestamp = Field(default_factory=now_ms)
    updated_at: Timestamp = Field(default_factory=now_ms)
    due_date: OptionalTimestamp = None

    def has_member(self, user_id: str) -> bool:
        return user_id in self.project_manager_ids or user_id in self.contractor_ids


class Subcategory(DomainModel):
    """A department: organizational grouping of tasks under a project."""

    id: Identifier
    project_id: Identifier
    name: str
    description: str = ""
    created_by: Identifier
    created_at: Timestamp = Field(default_factory=now_ms)
    due_date: OptionalTimestamp = None
