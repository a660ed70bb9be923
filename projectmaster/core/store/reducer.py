"""Pure reducer: ``reduce(state, action) -> state``.

Every handler computes the next snapshot from the previous one and the action
alone. Collections are tuples of frozen records, so a snapshot that has been
handed out is never modified afterwards. ``add`` style actions replace a
record with the same id in place, which keeps optimistic writes and their
remote echoes idempotent.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable
from typing import Any, TypeVar

from pydantic import TypeAdapter

from projectmaster.core.store import actions as a
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
from projectmaster.domain.models.base import unique_ids
from projectmaster.domain.state import PERSISTENT_FIELDS, AppState

R = TypeVar("R")

_COLLECTION_ADAPTERS: dict[str, TypeAdapter] = {
    "users": TypeAdapter(tuple[User, ...]),
    "projects": TypeAdapter(tuple[Project, ...]),
    "subcategories": TypeAdapter(tuple[Subcategory, ...]),
    "tasks": TypeAdapter(tuple[Task, ...]),
    "photos": TypeAdapter(tuple[Photo, ...]),
    "task_comments": TypeAdapter(tuple[TaskComment, ...]),
    "messages": TypeAdapter(tuple[ChatMessage, ...]),
    "chat_groups": TypeAdapter(tuple[ChatGroup, ...]),
    "notifications": TypeAdapter(tuple[Notification, ...]),
}


def _upsert(items: tuple[R, ...], record: R) -> tuple[R, ...]:
    replaced = False
    out = []
    for item in items:
        if item.id == record.id:
            out.append(record)
            replaced = True
        else:
            out.append(item)
    if not replaced:
        out.append(record)
    return tuple(out)


def _without(items: Iterable[R], predicate: Callable[[R], bool]) -> tuple[R, ...]:
    return tuple(item for item in items if not predicate(item))


def _replace_where(items: Iterable[R], item_id: str, **changes: Any) -> tuple[R, ...]:
    return tuple(item.model_copy(update=changes) if item.id == item_id else item for item in items)


# ---------- Users ----------

def _set_user(state: AppState, action: a.SetUser) -> AppState:
    return state.model_copy(update={"current_user": action.user})


def _register_user(state: AppState, action: a.RegisterUser) -> AppState:
    return state.model_copy(update={"users": _upsert(state.users, action.user)})


def _delete_user(state: AppState, action: a.DeleteUser) -> AppState:
    uid = action.user_id

    def strip_project(p: Project) -> Project:
        if not p.has_member(uid):
            return p
        return p.model_copy(
            update={
                "project_manager_ids": tuple(i for i in p.project_manager_ids if i != uid),
                "contractor_ids": tuple(i for i in p.contractor_ids if i != uid),
            }
        )

    def strip_group(g: ChatGroup) -> ChatGroup:
        if uid not in g.member_ids:
            return g
        return g.model_copy(update={"member_ids": tuple(i for i in g.member_ids if i != uid)})

    return state.model_copy(
        update={
            "users": _without(state.users, lambda u: u.id == uid),
            "projects": tuple(strip_project(p) for p in state.projects),
            "chat_groups": tuple(strip_group(g) for g in state.chat_groups),
        }
    )


# ---------- Projects ----------

def _add_project(state: AppState, action: a.AddProject) -> AppState:
    return state.model_copy(update={"projects": _upsert(state.projects, action.project)})


def _delete_project(state: AppState, action: a.DeleteProject) -> AppState:
    # Every id set is taken from the pre-deletion snapshot.
    pid = action.project_id
    sub_ids = {s.id for s in state.subcategories if s.project_id == pid}
    task_ids = {t.id for t in state.tasks if t.subcategory_id in sub_ids}

    def owned(photo: Photo) -> bool:
        if photo.parent.type == "project":
            return photo.parent_id == pid
        return photo.parent.type == "subcategory" and photo.parent_id in sub_ids

    return state.model_copy(
        update={
            "projects": _without(state.projects, lambda p: p.id == pid),
            "subcategories": _without(state.subcategories, lambda s: s.id in sub_ids),
            "tasks": _without(state.tasks, lambda t: t.id in task_ids),
            "photos": _without(state.photos, owned),
            "task_comments": _without(state.task_comments, lambda c: c.task_id in task_ids),
        }
    )


def _update_project_members(state: AppState, action: a.UpdateProjectMembers) -> AppState:
    return state.model_copy(
        update={
            "projects": _replace_where(
                state.projects,
                action.project_id,
                project_manager_ids=unique_ids(action.project_manager_ids),
                contractor_ids=unique_ids(action.contractor_ids),
                updated_at=action.updated_at,
            )
        }
    )


# ---------- Subcategories / tasks ----------

def _add_subcategory(state: AppState, action: a.AddSubcategory) -> AppState:
    return state.model_copy(update={"subcategories": _upsert(state.subcategories, action.subcategory)})


def _delete_subcategory(state: AppState, action: a.DeleteSubcategory) -> AppState:
    sid = action.subcategory_id
    task_ids = {t.id for t in state.tasks if t.subcategory_id == sid}
    return state.model_copy(
        update={
            "subcategories": _without(state.subcategories, lambda s: s.id == sid),
            "tasks": _without(state.tasks, lambda t: t.id in task_ids),
            "photos": _without(
                state.photos,
                lambda p: p.parent.type == "subcategory" and p.parent_id == sid,
            ),
            "task_comments": _without(state.task_comments, lambda c: c.task_id in task_ids),
        }
    )


def _add_task(state: AppState, action: a.AddTask) -> AppState:
    return state.model_copy(update={"tasks": _upsert(state.tasks, action.task)})


def _update_task_status(state: AppState, action: a.UpdateTaskStatus) -> AppState:
    return state.model_copy(
        update={"tasks": _replace_where(state.tasks, action.task_id, status=action.status)}
    )


def _delete_task(state: AppState, action: a.DeleteTask) -> AppState:
    tid = action.task_id
    return state.model_copy(
        update={
            "tasks": _without(state.tasks, lambda t: t.id == tid),
            "photos": _without(state.photos, lambda p: p.parent.type == "task" and p.parent_id == tid),
            "task_comments": _without(state.task_comments, lambda c: c.task_id == tid),
        }
    )


def _add_task_comment(state: AppState, action: a.AddTaskComment) -> AppState:
    return state.model_copy(update={"task_comments": _upsert(state.task_comments, action.comment)})


# ---------- Photos ----------

def _add_photo(state: AppState, action: a.AddPhoto) -> AppState:
    return state.model_copy(update={"photos": _upsert(state.photos, action.photo)})


def _update_photo_comment(state: AppState, action: a.UpdatePhotoComment) -> AppState:
    return state.model_copy(
        update={"photos": _replace_where(state.photos, action.photo_id, comment=action.comment)}
    )


def _delete_photo(state: AppState, action: a.DeletePhoto) -> AppState:
    return state.model_copy(update={"photos": _without(state.photos, lambda p: p.id == action.photo_id)})


# ---------- Chat ----------

def _add_message(state: AppState, action: a.AddMessage) -> AppState:
    return state.model_copy(update={"messages": _upsert(state.messages, action.message)})


def _set_messages(state: AppState, action: a.SetMessages) -> AppState:
    return state.model_copy(update={"messages": tuple(action.messages)})


def _delete_message(state: AppState, action: a.DeleteMessage) -> AppState:
    return state.model_copy(
        update={"messages": _without(state.messages, lambda m: m.id == action.message_id)}
    )


def _create_chat_group(state: AppState, action: a.CreateChatGroup) -> AppState:
    return state.model_copy(update={"chat_groups": _upsert(state.chat_groups, action.group)})


def _set_chat_groups(state: AppState, action: a.SetChatGroups) -> AppState:
    return state.model_copy(update={"chat_groups": tuple(action.groups)})


def _rename_chat_group(state: AppState, action: a.RenameChatGroup) -> AppState:
    return state.model_copy(
        update={"chat_groups": _replace_where(state.chat_groups, action.group_id, name=action.name)}
    )


def _remove_group_member(state: AppState, action: a.RemoveGroupMember) -> AppState:
    group = state.find_chat_group(action.group_id)
    if group is None:
        return state
    members = tuple(m for m in group.member_ids if m != action.user_id)
    return state.model_copy(
        update={"chat_groups": _replace_where(state.chat_groups, action.group_id, member_ids=members)}
    )


def _transfer_group_admin(state: AppState, action: a.TransferGroupAdmin) -> AppState:
    group = state.find_chat_group(action.group_id)
    if group is None or action.new_admin_id not in group.member_ids:
        return state
    return state.model_copy(
        update={
            "chat_groups": _replace_where(
                state.chat_groups, action.group_id, created_by=action.new_admin_id
            )
        }
    )


def _delete_chat_group(state: AppState, action: a.DeleteChatGroup) -> AppState:
    gid = action.group_id
    return state.model_copy(
        update={
            "chat_groups": _without(state.chat_groups, lambda g: g.id == gid),
            "messages": _without(state.messages, lambda m: m.group_id == gid),
        }
    )


# ---------- Notifications ----------

def _add_notification(state: AppState, action: a.AddNotification) -> AppState:
    rest = _without(state.notifications, lambda n: n.id == action.notification.id)
    return state.model_copy(update={"notifications": (action.notification, *rest)})


def _mark_notifications_read(state: AppState, action: a.MarkNotificationsRead) -> AppState:
    def mark(n: Notification) -> Notification:
        if n.is_read or (action.user_id is not None and n.user_id != action.user_id):
            return n
        return n.model_copy(update={"is_read": True})

    return state.model_copy(update={"notifications": tuple(mark(n) for n in state.notifications)})


# ---------- Bulk / UI ----------

def validate_collections(payload: dict[str, Any]) -> dict[str, tuple]:
    """Validate every persistent collection in ``payload``; unknown keys are dropped.

    Raises ``pydantic.ValidationError`` before anything is applied.
    """
    return {
        field: _COLLECTION_ADAPTERS[field].validate_python(value or ())
        for field, value in payload.items()
        if field in PERSISTENT_FIELDS
    }


def _load_data(state: AppState, action: a.LoadData) -> AppState:
    updates = validate_collections(action.payload)
    if not updates:
        return state
    return state.model_copy(update=updates)


def _toggle_create_group_modal(state: AppState, action: a.ToggleCreateGroupModal) -> AppState:
    return state.model_copy(update={"ui_create_group_modal_open": action.open})


def _show_flash(state: AppState, action: a.ShowFlash) -> AppState:
    return state.model_copy(update={"flash_message": action.message})


HANDLERS: dict[type, Callable[[AppState, Any], AppState]] = {
    a.SetUser: _set_user,
    a.RegisterUser: _register_user,
    a.DeleteUser: _delete_user,
    a.AddProject: _add_project,
    a.DeleteProject: _delete_project,
    a.UpdateProjectMembers: _update_project_members,
    a.AddSubcategory: _add_subcategory,
    a.DeleteSubcategory: _delete_subcategory,
    a.AddTask: _add_task,
    a.UpdateTaskStatus: _update_task_status,
    a.DeleteTask: _delete_task,
    a.AddTaskComment: _add_task_comment,
    a.AddPhoto: _add_photo,
    a.UpdatePhotoComment: _update_photo_comment,
    a.DeletePhoto: _delete_photo,
    a.AddMessage: _add_message,
    a.SetMessages: _set_messages,
    a.DeleteMessage: _delete_message,
    a.CreateChatGroup: _create_chat_group,
    a.SetChatGroups: _set_chat_groups,
    a.RenameChatGroup: _rename_chat_group,
    a.RemoveGroupMember: _remove_group_member,
    a.TransferGroupAdmin: _transfer_group_admin,
    a.DeleteChatGroup: _delete_chat_group,
    a.AddNotification: _add_notification,
    a.MarkNotificationsRead: _mark_notifications_read,
    a.LoadData: _load_data,
    a.ToggleCreateGroupModal: _toggle_create_group_modal,
    a.ShowFlash: _show_flash,
}


def reduce(state: AppState, action: a.Action) -> AppState:
    handler = HANDLERS.get(type(action))
    if handler is None:
        raise TypeError(f"Unknown action: {type(action).__name__}")
    return handler(state, action)
