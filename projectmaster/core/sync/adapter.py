"""Bridge between the client ``Store`` and a ``SyncBackend``.

Inbound, one subscription per collection turns change events into store
actions. Outbound, every mutation is applied to the store first and then
written through to the backend; the backend echoes the write back, and the
echo is either suppressed (already-seen id) or lands as an idempotent upsert.
A failed write is logged and reported with a flash message. The optimistic
state stays as it is.
"""

from __future__ import annotations

import contextlib
from collections import defaultdict
from collections.abc import Callable
from functools import partial
from typing import Any

from pydantic import BaseModel

from projectmaster.common.enums import ChangeKind, PhotoParentType, TaskStatus
from projectmaster.common.exceptions import ProjectMasterException
from projectmaster.common.logging import get_logger
from projectmaster.core.authz import policy
from projectmaster.core.notifications import service as notifications
from projectmaster.core.store import actions as a
from projectmaster.core.store.store import Store
from projectmaster.core.sync.normalize import COLLECTIONS, normalize_rows, remote_name, to_row
from projectmaster.core.tasks import workflow
from projectmaster.domain.models import (
    ChatGroup,
    ChatMessage,
    Photo,
    Project,
    Subcategory,
    Task,
    TaskComment,
    User,
    new_id,
    now_ms,
)
from projectmaster.domain.models.base import unique_ids
from projectmaster.domain.state import AppState
from projectmaster.integrations.backend import ChangeEvent, Subscription, SyncBackend

logger = get_logger("sync.adapter")

# Action used when a row arrives (insert or update) for each collection.
UPSERT_ACTIONS: dict[str, Callable[[Any], a.Action]] = {
    "users": lambda r: a.RegisterUser(user=r),
    "projects": lambda r: a.AddProject(project=r),
    "subcategories": lambda r: a.AddSubcategory(subcategory=r),
    "tasks": lambda r: a.AddTask(task=r),
    "photos": lambda r: a.AddPhoto(photo=r),
    "task_comments": lambda r: a.AddTaskComment(comment=r),
    "messages": lambda r: a.AddMessage(message=r),
    "chat_groups": lambda r: a.CreateChatGroup(group=r),
}


def _drop_comment(state: AppState, comment_id: str) -> a.Action:
    return a.LoadData(
        payload={"task_comments": [c for c in state.task_comments if c.id != comment_id]}
    )


# Action used when a row is deleted remotely. Parent deletions cascade locally.
DELETE_ACTIONS: dict[str, Callable[[AppState, str], a.Action]] = {
    "users": lambda s, i: a.DeleteUser(user_id=i),
    "projects": lambda s, i: a.DeleteProject(project_id=i),
    "subcategories": lambda s, i: a.DeleteSubcategory(subcategory_id=i),
    "tasks": lambda s, i: a.DeleteTask(task_id=i),
    "photos": lambda s, i: a.DeletePhoto(photo_id=i),
    "task_comments": _drop_comment,
    "messages": lambda s, i: a.DeleteMessage(message_id=i),
    "chat_groups": lambda s, i: a.DeleteChatGroup(group_id=i),
}


class RemoteSyncAdapter:
    def __init__(self, store: Store, backend: SyncBackend) -> None:
        self.store = store
        self.backend = backend
        self._subscriptions: list[Subscription] = []
        self._seen: dict[str, set[str]] = defaultdict(set)

    @property
    def active(self) -> bool:
        return bool(self._subscriptions)

    @property
    def state(self) -> AppState:
        return self.store.state

    # ------------------------------------------------------------------
    # Subscriptions
    # ------------------------------------------------------------------

    async def activate(self) -> None:
        if self._subscriptions:
            logger.warning("Adapter already active, ignoring second activation")
            return
        for field, coll in COLLECTIONS.items():
            try:
                sub = await self.backend.subscribe(coll.remote, partial(self._on_event, field))
            except Exception as e:
                logger.warning("Subscription to %s failed, keeping local state: %s", coll.remote, e)
                continue
            self._subscriptions.append(sub)
        logger.info("Sync adapter active (%d subscriptions)", len(self._subscriptions))

    async def deactivate(self) -> None:
        subs, self._subscriptions = self._subscriptions, []
        for sub in subs:
            await sub.close()
        self._seen.clear()
        if subs:
            logger.info("Released %d subscriptions", len(subs))

    def seen(self, field: str, record_id: str) -> bool:
        return record_id in self._seen[field]

    def _remember(self, field: str, record_id: str) -> None:
        self._seen[field].add(record_id)

    def _on_event(self, field: str, event: ChangeEvent) -> None:
        if event.kind == ChangeKind.DELETE:
            for record_id in event.ids:
                self._seen[field].discard(record_id)
                self.store.dispatch(DELETE_ACTIONS[field](self.state, record_id))
            return

        records = normalize_rows(field, event.rows)
        if event.kind == ChangeKind.SNAPSHOT:
            self._seen[field] = {r.id for r in records}
            self.store.dispatch(a.LoadData(payload={field: records}))
            self._refresh_current_user(field, records)
            return

        for record in records:
            if event.kind == ChangeKind.INSERT and self.seen(field, record.id):
                logger.debug("Suppressed duplicate %s %s", field, record.id)
                continue
            self._remember(field, record.id)
            self.store.dispatch(UPSERT_ACTIONS[field](record))
        self._refresh_current_user(field, records)

    def _refresh_current_user(self, field: str, records: list[BaseModel]) -> None:
        current = self.state.current_user
        if field != "users" or current is None:
            return
        fresh = next((r for r in records if r.id == current.id), None)
        if fresh is not None and fresh != current:
            self.store.dispatch(a.SetUser(user=fresh))

    # ------------------------------------------------------------------
    # Write-through helpers
    # ------------------------------------------------------------------

    def _flash(self, message: str) -> None:
        self.store.dispatch(a.ShowFlash(message=message))

    @contextlib.asynccontextmanager
    async def _writing(self, what: str):
        try:
            yield
        except ProjectMasterException as e:
            logger.warning("Remote write failed (%s): %s", what, e.detail)
            self._flash(f"Could not save {what}. Please try again.")
        except Exception:
            logger.exception("Unexpected error writing %s", what)
            self._flash(f"Could not save {what}. Please try again.")

    async def _put(self, field: str, record: BaseModel) -> None:
        await self.backend.upsert(remote_name(field), to_row(record))

    def _apply(self, field: str, record: BaseModel) -> None:
        self._remember(field, record.id)
        self.store.dispatch(UPSERT_ACTIONS[field](record))

    def _notify(self, items) -> None:
        for notification in items:
            self.store.dispatch(a.AddNotification(notification=notification))

    # ------------------------------------------------------------------
    # Projects
    # ------------------------------------------------------------------

    async def add_project(self, project: Project) -> Project | None:
        if not policy.can_create_project(self.state.current_user):
            self._flash("Only owners and operations managers can create projects.")
            return None
        self._apply("projects", project)
        self._notify(
            notifications.project_assigned(
                project, [*project.project_manager_ids, *project.contractor_ids]
            )
        )
        async with self._writing("project"):
            await self._put("projects", project)
        return project

    async def delete_project(self, project_id: str) -> None:
        before = self.state
        sub_ids = [s.id for s in before.subcategories if s.project_id == project_id]
        task_ids = [t.id for t in before.tasks if t.subcategory_id in sub_ids]
        photo_ids = [
            p.id
            for p in before.photos
            if (p.parent_type == PhotoParentType.PROJECT and p.parent_id == project_id)
            or (p.parent_type == PhotoParentType.SUBCATEGORY and p.parent_id in sub_ids)
        ]
        comment_ids = [c.id for c in before.task_comments if c.task_id in task_ids]

        self.store.dispatch(a.DeleteProject(project_id=project_id))
        async with self._writing("project deletion"):
            await self._delete_many("task_comments", comment_ids)
            await self._delete_many("photos", photo_ids)
            await self._delete_many("tasks", task_ids)
            await self._delete_many("subcategories", sub_ids)
            await self.backend.delete(remote_name("projects"), project_id)

    async def _delete_many(self, field: str, ids: list[str]) -> None:
        for record_id in ids:
            await self.backend.delete(remote_name(field), record_id)

    async def update_project_team(
        self, project_id: str, project_manager_ids: list[str], contractor_ids: list[str]
    ) -> Project | None:
        before = self.state.find_project(project_id)
        if before is None:
            logger.warning("Team update for unknown project %s", project_id)
            return None
        managers = unique_ids(project_manager_ids)
        contractors = unique_ids(contractor_ids)
        updated_at = now_ms()
        self.store.dispatch(
            a.UpdateProjectMembers(
                project_id=project_id,
                project_manager_ids=managers,
                contractor_ids=contractors,
                updated_at=updated_at,
            )
        )
        project = self.state.find_project(project_id)
        self._notify(
            notifications.project_assigned(
                project, notifications.newly_added(before, managers, contractors)
            )
        )
        async with self._writing("team"):
            await self.backend.update(
                remote_name("projects"),
                project_id,
                {
                    "project_manager_ids": list(managers),
                    "contractor_ids": list(contractors),
                    "updated_at": updated_at,
                },
            )
        return project

    # ------------------------------------------------------------------
    # Subcategories and tasks
    # ------------------------------------------------------------------

    async def add_subcategory(self, subcategory: Subcategory) -> Subcategory:
        self._apply("subcategories", subcategory)
        async with self._writing("department"):
            await self._put("subcategories", subcategory)
        return subcategory

    async def delete_subcategory(self, subcategory_id: str) -> None:
        before = self.state
        task_ids = [t.id for t in before.tasks if t.subcategory_id == subcategory_id]
        photo_ids = [
            p.id
            for p in before.photos
            if p.parent_type == PhotoParentType.SUBCATEGORY and p.parent_id == subcategory_id
        ]
        comment_ids = [c.id for c in before.task_comments if c.task_id in task_ids]

        self.store.dispatch(a.DeleteSubcategory(subcategory_id=subcategory_id))
        async with self._writing("department deletion"):
            await self._delete_many("task_comments", comment_ids)
            await self._delete_many("photos", photo_ids)
            await self._delete_many("tasks", task_ids)
            await self.backend.delete(remote_name("subcategories"), subcategory_id)

    async def add_task(self, task: Task) -> Task:
        self._apply("tasks", task)
        async with self._writing("task"):
            await self._put("tasks", task)
        return task

    async def update_task(self, task: Task) -> Task:
        self.store.dispatch(a.AddTask(task=task))
        async with self._writing("task"):
            await self._put("tasks", task)
        return task

    async def set_task_status(self, task_id: str, status: TaskStatus) -> None:
        self.store.dispatch(a.UpdateTaskStatus(task_id=task_id, status=status))
        async with self._writing("task status"):
            await self.backend.update(remote_name("tasks"), task_id, {"status": status.value})

    async def advance_task(self, task_id: str) -> TaskStatus | None:
        """Apply the status button for the current user. Returns the new status, or None for a no-op."""
        task = self.state.find_task(task_id)
        if task is None:
            return None
        target = workflow.next_status(
            task, self.state.current_user, self.state.project_for_task(task_id)
        )
        if target is None:
            return None
        await self.set_task_status(task_id, target)
        return target

    async def delete_task(self, task_id: str) -> None:
        before = self.state
        photo_ids = [
            p.id
            for p in before.photos
            if p.parent_type == PhotoParentType.TASK and p.parent_id == task_id
        ]
        comment_ids = [c.id for c in before.task_comments if c.task_id == task_id]

        self.store.dispatch(a.DeleteTask(task_id=task_id))
        async with self._writing("task deletion"):
            await self._delete_many("task_comments", comment_ids)
            await self._delete_many("photos", photo_ids)
            await self.backend.delete(remote_name("tasks"), task_id)

    async def add_task_comment(self, task_id: str, content: str) -> TaskComment | None:
        user = self.state.current_user
        if user is None:
            logger.warning("Comment on %s without a signed-in user", task_id)
            return None
        comment = TaskComment(
            id=new_id(), task_id=task_id, user_id=user.id, user_name=user.name, content=content
        )
        self._apply("task_comments", comment)
        async with self._writing("comment"):
            await self._put("task_comments", comment)
        return comment

    # ------------------------------------------------------------------
    # Photos
    # ------------------------------------------------------------------

    async def add_photo(self, photo: Photo) -> Photo:
        self._apply("photos", photo)

        state = self.state
        uploader = state.find_user(photo.uploaded_by)
        if uploader is None and state.current_user and state.current_user.id == photo.uploaded_by:
            uploader = state.current_user

        started: TaskStatus | None = None
        if photo.parent_type == PhotoParentType.TASK:
            task = state.find_task(photo.parent_id)
            project = state.project_for_task(photo.parent_id)
            if task is not None and project is not None:
                started = workflow.status_after_photo(task, uploader, project)
                if started is not None:
                    self.store.dispatch(a.UpdateTaskStatus(task_id=task.id, status=started))
                self._notify(notifications.photo_uploaded(photo, project, task))
        elif photo.parent_type == PhotoParentType.SUBCATEGORY:
            sub = state.find_subcategory(photo.parent_id)
            project = state.project_for_subcategory(photo.parent_id)
            if sub is not None and project is not None:
                self._notify(notifications.photo_uploaded(photo, project, sub))

        async with self._writing("photo"):
            await self._put("photos", photo)
            if started is not None:
                await self.backend.update(
                    remote_name("tasks"), photo.parent_id, {"status": started.value}
                )
        return photo

    async def update_photo_comment(self, photo_id: str, comment: str) -> None:
        self.store.dispatch(a.UpdatePhotoComment(photo_id=photo_id, comment=comment))
        async with self._writing("photo comment"):
            await self.backend.update(remote_name("photos"), photo_id, {"comment": comment})

    async def delete_photo(self, photo_id: str) -> None:
        self.store.dispatch(a.DeletePhoto(photo_id=photo_id))
        async with self._writing("photo deletion"):
            await self.backend.delete(remote_name("photos"), photo_id)

    # ------------------------------------------------------------------
    # Users
    # ------------------------------------------------------------------

    async def register_user(self, user: User) -> User:
        self._apply("users", user)
        async with self._writing("user"):
            await self._put("users", user)
        return user

    async def delete_user(self, user_id: str) -> None:
        before = self.state
        projects = [p for p in before.projects if p.has_member(user_id)]
        groups = [g for g in before.chat_groups if user_id in g.member_ids]

        self.store.dispatch(a.DeleteUser(user_id=user_id))
        after = self.state
        async with self._writing("user deletion"):
            await self.backend.delete(remote_name("users"), user_id)
            for p in projects:
                current = after.find_project(p.id)
                await self.backend.update(
                    remote_name("projects"),
                    p.id,
                    {
                        "project_manager_ids": list(current.project_manager_ids),
                        "contractor_ids": list(current.contractor_ids),
                    },
                )
            for g in groups:
                current = after.find_chat_group(g.id)
                await self.backend.update(
                    remote_name("chat_groups"), g.id, {"member_ids": list(current.member_ids)}
                )

    # ------------------------------------------------------------------
    # Chat
    # ------------------------------------------------------------------

    async def send_message(
        self, content: str, group_id: str | None = None, photo_url: str | None = None
    ) -> ChatMessage | None:
        user = self.state.current_user
        if user is None:
            logger.warning("Message send without a signed-in user")
            return None
        message = ChatMessage(
            id=new_id(),
            group_id=group_id,
            sender_id=user.id,
            sender_name=user.name,
            content=content,
            photo_url=photo_url,
        )
        self._apply("messages", message)
        if group_id is not None:
            self._notify(notifications.new_message(message, self.state.find_chat_group(group_id)))
        async with self._writing("message"):
            await self._put("messages", message)
        return message

    async def create_chat_group(self, member_ids: list[str], name: str = "") -> ChatGroup | None:
        user = self.state.current_user
        if not policy.can_create_chat_group(user):
            return None
        members = unique_ids([user.id, *member_ids])
        if not name.strip():
            first_names = []
            for uid in members:
                member = self.state.find_user(uid) or (user if uid == user.id else None)
                if member is not None:
                    first_names.append(member.name.split(" ")[0])
            name = ", ".join(first_names) or "New group"
        group = ChatGroup(id=new_id(), name=name.strip(), member_ids=members, created_by=user.id)
        self._apply("chat_groups", group)
        self.store.dispatch(a.ToggleCreateGroupModal(open=False))
        async with self._writing("group"):
            await self._put("chat_groups", group)
        return group

    async def rename_chat_group(self, group_id: str, name: str) -> bool:
        if not policy.can_rename_group(self.state.current_user, self.state.find_chat_group(group_id)):
            return False
        self.store.dispatch(a.RenameChatGroup(group_id=group_id, name=name))
        async with self._writing("group"):
            await self.backend.update(remote_name("chat_groups"), group_id, {"name": name})
        return True

    async def _write_members(self, group_id: str) -> None:
        group = self.state.find_chat_group(group_id)
        async with self._writing("group"):
            await self.backend.update(
                remote_name("chat_groups"), group_id, {"member_ids": list(group.member_ids)}
            )

    async def remove_group_member(self, group_id: str, member_id: str) -> bool:
        group = self.state.find_chat_group(group_id)
        if not policy.can_remove_group_member(self.state.current_user, group, member_id):
            return False
        self.store.dispatch(a.RemoveGroupMember(group_id=group_id, user_id=member_id))
        await self._write_members(group_id)
        return True

    async def leave_chat_group(self, group_id: str) -> bool:
        user = self.state.current_user
        group = self.state.find_chat_group(group_id)
        if policy.is_group_admin(user, group):
            self._flash("Transfer admin rights or delete the group before leaving.")
            return False
        if not policy.can_leave_group(user, group):
            return False
        self.store.dispatch(a.RemoveGroupMember(group_id=group_id, user_id=user.id))
        await self._write_members(group_id)
        return True

    async def transfer_group_admin(self, group_id: str, new_admin_id: str) -> bool:
        group = self.state.find_chat_group(group_id)
        if not policy.can_transfer_group(self.state.current_user, group, new_admin_id):
            return False
        self.store.dispatch(a.TransferGroupAdmin(group_id=group_id, new_admin_id=new_admin_id))
        async with self._writing("group"):
            await self.backend.update(
                remote_name("chat_groups"), group_id, {"created_by": new_admin_id}
            )
        return True

    async def delete_chat_group(self, group_id: str) -> bool:
        group = self.state.find_chat_group(group_id)
        if not policy.can_delete_group(self.state.current_user, group):
            return False
        message_ids = [m.id for m in self.state.messages_in(group_id)]
        self.store.dispatch(a.DeleteChatGroup(group_id=group_id))
        async with self._writing("group deletion"):
            await self._delete_many("messages", message_ids)
            await self.backend.delete(remote_name("chat_groups"), group_id)
        return True
