"""The application state snapshot held by the client store."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

from projectmaster.domain.models import (
    ChatGroup,
    ChatMessage,
    Notification,
    Photo,
    Project,
    Subcategory,
    Task,
    TaskComment,
    User,
)

# Collections written to durable local storage. The current user and the UI
# flags are session-only.
PERSISTENT_FIELDS = frozenset(
    {
        "users",
        "projects",
        "subcategories",
        "tasks",
        "photos",
        "task_comments",
        "messages",
        "chat_groups",
        "notifications",
    }
)

TRANSIENT_FIELDS = frozenset({"current_user", "ui_create_group_modal_open", "flash_message"})


class AppState(BaseModel):
    model_config = ConfigDict(frozen=True, alias_generator=to_camel, populate_by_name=True)

    current_user: User | None = None
    users: tuple[User, ...] = ()
    projects: tuple[Project, ...] = ()
    subcategories: tuple[Subcategory, ...] = ()
    tasks: tuple[Task, ...] = ()
    photos: tuple[Photo, ...] = ()
    task_comments: tuple[TaskComment, ...] = ()
    messages: tuple[ChatMessage, ...] = ()
    chat_groups: tuple[ChatGroup, ...] = ()
    notifications: tuple[Notification, ...] = ()
    ui_create_group_modal_open: bool = False
    flash_message: str | None = None

    def find_user(self, user_id: str) -> User | None:
        return next((u for u in self.users if u.id == user_id), None)

    def find_project(self, project_id: str) -> Project | None:
        return next((p for p in self.projects if p.id == project_id), None)

    def find_subcategory(self, subcategory_id: str) -> Subcategory | None:
        return next((s for s in self.subcategories if s.id == subcategory_id), None)

    def find_task(self, task_id: str) -> Task | None:
        return next((t for t in self.tasks if t.id == task_id), None)

    def find_photo(self, photo_id: str) -> Photo | None:
        return next((p for p in self.photos if p.id == photo_id), None)

    def find_chat_group(self, group_id: str) -> ChatGroup | None:
        return next((g for g in self.chat_groups if g.id == group_id), None)

    def project_for_subcategory(self, subcategory_id: str) -> Project | None:
        sub = self.find_subcategory(subcategory_id)
        return self.find_project(sub.project_id) if sub else None

    def project_for_task(self, task_id: str) -> Project | None:
        task = self.find_task(task_id)
        return self.project_for_subcategory(task.subcategory_id) if task else None

    def messages_in(self, group_id: str | None) -> list[ChatMessage]:
        return [m for m in self.messages if m.group_id == group_id]

    def unread_notifications(self, user_id: str | None = None) -> list[Notification]:
        return [
            n
            for n in self.notifications
            if not n.is_read and (user_id is None or n.user_id == user_id)
        ]


class PersistedState(BaseModel):
    """Shape of the durable local-storage blob. Missing collections default to empty."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="ignore")

    users: tuple[User, ...] = ()
    projects: tuple[Project, ...] = ()
    subcategories: tuple[Subcategory, ...] = ()
    tasks: tuple[Task, ...] = ()
    photos: tuple[Photo, ...] = ()
    task_comments: tuple[TaskComment, ...] = ()
    messages: tuple[ChatMessage, ...] = ()
    chat_groups: tuple[ChatGroup, ...] = ()
    notifications: tuple[Notification, ...] = ()
