from pydantic import Field

from projectmaster.common.enums import TaskStatus
from projectmaster.domain.models.base import (
    DomainModel,
    Identifier,
    OptionalTimestamp,
    Timestamp,
    now_ms,
)


class Task(DomainModel):
    id: Identifier
    subcategory_id: Identifier
    name: str
    description: str = ""
    status: TaskStatus = TaskStatus.PENDING
    created_by: Identifier
    created_at: Timestamp = Field(default_factory=now_ms)
    due_date: OptionalTimestamp = None


class TaskComment(DomainModel):
    id: Identifier
    task_id: Identifier
    user_id: Identifier
    user_name: str = "Unknown"
    content: str
    created_at: Timestamp = Field(default_factory=now_ms)
