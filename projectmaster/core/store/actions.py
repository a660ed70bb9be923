"""The closed set of actions the store reducer understands."""

from __future__ import annotations

from typing import Annotated, Any, Literal, Union

from pydantic import BaseModel, ConfigDict, Field

from projectmaster.common.enums import TaskStatus
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


class _Action(BaseModel):
    model_config = ConfigDict(frozen=True)


# ---------- Users ----------

class SetUser(_Action):
    type: Literal["set_user"] = "set_user"
    user: User | None


class RegisterUser(_Action):
    type: Literal["register_user"] = "register_user"
    user: User


class DeleteUser(_Action):
    type: Literal["delete_user"] = "delete_user"
    user_id: str


# ---------- Projects ----------

class AddProject(_Action):
    type: Literal["add_project"] = "add_project"
    project: Project


class DeleteProject(_Action):
    type: Literal["delete_project"] = "delete_project"
    project_id: str


class UpdateProjectMembers(_Action):
    type: Literal["update_project_members"] = "update_project_members"
    project_id: str
    project_manager_ids: tuple[str, ...]
    contractor_ids: tuple[str, ...]
    updated_at: int


# ---------- Subcategories / tasks ----------

class AddSubcategory(_Action):
    type: Literal["add_subcategory"] = "add_subcategory"
    subcategory: Subcategory


class DeleteSubcategory(_Action):
    type: Literal["delete_subcategory"] = "delete_subcategory"
    subcategory_id: str


class AddTask(_Action):
    type: Literal["add_task"] = "add_task"
    task: Task


class UpdateTaskStatus(_Action):
    type: Literal["update_task_status"] = "update_task_status"
    task_id: str
    status: TaskStatus


class DeleteTask(_Action):
    type: Literal["delete_task"] = "delete_task"
    task_id: str


class AddTaskComment(_Action):
    type: Literal["add_task_comment"] = "add_task_comment"
    comment: TaskComment


# ---------- Photos ----------

class AddPhoto(_Action):
    type: Literal["add_photo"] = "add_photo"
    photo: Photo


class UpdatePhotoComment(_Action):
    type: Literal["update_photo_comment"] = "update_photo_comment"
    photo_id: str
    comment: str


class DeletePhoto(_Action):
    type: Literal["delete_photo"] = "delete_photo"
    photo_id: str


# ---------- Chat ----------

class AddMessage(_Action):
    type: Literal["add_message"] = "add_message"
    message: ChatMessage


class SetMessages(_Action):
    type: Literal["set_messages"] = "set_messages"
    messages: tuple[ChatMessage, ...]


class DeleteMessage(_Action):
    type: Literal["delete_message"] = "delete_message"
    message_id: str


class CreateChatGroup(_Action):
    type: Literal["create_chat_group"] = "create_chat_group"
    group: ChatGroup


class SetChatGroups(_Action):
    type: Literal["set_chat_groups"] = "set_chat_groups"
    groups: tuple[ChatGroup, ...]


class RenameChatGroup(_Action):
    type: Literal["rename_chat_group"] = "rename_chat_group"
    group_id: str
    name: str


class RemoveGroupMember(_Action):
    type: Literal["remove_group_member"] = "remove_group_member"
    group_id: str
    user_id: str


class TransferGroupAdmin(_Action):
    type: Literal["transfer_group_admin"] = "transfer_group_admin"
    group_id: str
    new_admin_id: str


class DeleteChatGroup(_Action):
    type: Literal["delete_chat_group"] = "delete_chat_group"
    group_id: str


# ---------- Notifications ----------

class AddNotification(_Action):
    type: Literal["add_notification"] = "add_notification"
    notification: Notification


class MarkNotificationsRead(_Action):
    type: Literal["mark_notifications_read"] = "mark_notifications_read"
    user_id: str | None = None  # None marks every notification


# ---------- Bulk / UI ----------

class LoadData(_Action):
    """Replace whole collections, e.g. from local storage or a remote snapshot.

    ``payload`` maps persistent field names (``projects``, ``tasks``, ...) to
    sequences of records; fields not present are left untouched.
    """

    type: Literal["load_data"] = "load_data"
    payload: dict[str, Any]


class ToggleCreateGroupModal(_Action):
    type: Literal["toggle_create_group_modal"] = "toggle_create_group_modal"
    open: bool


class ShowFlash(_Action):
    type: Literal["show_flash"] = "show_flash"
    message: str | None


Action = Annotated[
    Union[
        SetUser,
        RegisterUser,
        DeleteUser,
        AddProject,
        DeleteProject,
        UpdateProjectMembers,
        AddSubcategory,
        DeleteSubcategory,
        AddTask,
        UpdateTaskStatus,
        DeleteTask,
        AddTaskComment,
        AddPhoto,
        UpdatePhotoComment,
        DeletePhoto,
        AddMessage,
        SetMessages,
        DeleteMessage,
        CreateChatGroup,
        SetChatGroups,
        RenameChatGroup,
        RemoveGroupMember,
        TransferGroupAdmin,
        DeleteChatGroup,
        AddNotification,
        MarkNotificationsRead,
        LoadData,
        ToggleCreateGroupModal,
        ShowFlash,
    ],
    Field(discriminator="type"),
]
