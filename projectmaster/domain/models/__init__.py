from projectmaster.domain.models.base import DomainModel, new_id, now_ms
from projectmaster.domain.models.chat import GENERAL_CHANNEL, ChatGroup, ChatMessage
from projectmaster.domain.models.notification import Notification, RelatedTo
from projectmaster.domain.models.photo import (
    ChatParent,
    Photo,
    ProjectParent,
    SubcategoryParent,
    TaskParent,
    make_parent,
)
from projectmaster.domain.models.project import Project, Subcategory
from projectmaster.domain.models.task import Task, TaskComment
from projectmaster.domain.models.user import User

__all__ = [
    "GENERAL_CHANNEL",
    "ChatGroup",
    "ChatMessage",
    "ChatParent",
    "DomainModel",
    "Notification",
    "Photo",
    "Project",
    "ProjectParent",
    "RelatedTo",
    "Subcategory",
    "SubcategoryParent",
    "Task",
    "TaskComment",
    "TaskParent",
    "User",
    "make_parent",
    "new_id",
    "now_ms",
]
