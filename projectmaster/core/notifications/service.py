"""Builders for the notifications fanned out after user actions.

Each builder returns the records to dispatch; nothing here touches the store.
"""

from __future__ import annotations

from collections.abc import Iterable

from projectmaster.common.enums import NotificationType, RelatedType
from projectmaster.domain.models import (
    ChatGroup,
    ChatMessage,
    Notification,
    Photo,
    Project,
    RelatedTo,
    Subcategory,
    Task,
    new_id,
)


def _recipients(ids: Iterable[str], exclude: str | None = None) -> list[str]:
    seen: set[str] = set()
    out = []
    for uid in ids:
        if uid and uid != exclude and uid not in seen:
            seen.add(uid)
            out.append(uid)
    return out


def photo_uploaded(
    photo: Photo,
    project: Project,
    target: Task | Subcategory,
) -> list[Notification]:
    """Owner and assigned project managers hear about a new photo; the uploader never does."""
    related_type = RelatedType.TASK if isinstance(target, Task) else RelatedType.SUBCATEGORY
    recipients = _recipients(
        [project.owner_id, *project.project_manager_ids], exclude=photo.uploaded_by
    )
    message = f"{photo.uploaded_by_name} uploaded a photo to {target.name}"
    return [
        Notification(
            id=new_id(),
            user_id=uid,
            type=NotificationType.PHOTO_UPLOADED,
            message=message,
            related_to=RelatedTo(type=related_type, id=target.id, name=target.name),
            created_at=photo.created_at,
        )
        for uid in recipients
    ]


def project_assigned(project: Project, user_ids: Iterable[str]) -> list[Notification]:
    return [
        Notification(
            id=new_id(),
            user_id=uid,
            type=NotificationType.PROJECT_ASSIGNED,
            message=f"You have been assigned to project: {project.name}",
            related_to=RelatedTo(type=RelatedType.PROJECT, id=project.id, name=project.name),
        )
        for uid in _recipients(user_ids)
    ]


def new_message(message: ChatMessage, group: ChatGroup | None) -> list[Notification]:
    # The general channel has no member list and does not notify.
    if group is None:
        return []
    return [
        Notification(
            id=new_id(),
            user_id=uid,
            type=NotificationType.NEW_MESSAGE,
            message=f"{message.sender_name} in {group.name}: {message.content[:80]}",
            created_at=message.created_at,
        )
        for uid in _recipients(group.member_ids, exclude=message.sender_id)
    ]


def newly_added(before: Project, manager_ids: Iterable[str], contractor_ids: Iterable[str]) -> list[str]:
    """Ids present in the new membership but not in ``before``."""
    return _recipients(
        uid for uid in [*manager_ids, *contractor_ids] if not before.has_member(uid)
    )
