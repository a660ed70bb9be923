"""Role-based authorization predicates.

Pure functions over the acting user and the resource. The client uses them to
decide which actions to offer; the API re-checks the privileged ones.
"""

from __future__ import annotations

from collections.abc import Iterable

from projectmaster.common.enums import Role
from projectmaster.domain.models import ChatGroup, Project, User

# Who may create (invite/provision) whom
CREATABLE_ROLES: dict[Role, frozenset[Role]] = {
    Role.OWNER: frozenset({Role.OPS_MANAGER, Role.PROJECT_MANAGER, Role.CONTRACTOR}),
    Role.OPS_MANAGER: frozenset({Role.PROJECT_MANAGER, Role.CONTRACTOR}),
    Role.PROJECT_MANAGER: frozenset({Role.CONTRACTOR}),
    Role.CONTRACTOR: frozenset(),
}

# Who may delete whom
DELETABLE_ROLES: dict[Role, frozenset[Role]] = {
    Role.OWNER: frozenset(Role),
    Role.OPS_MANAGER: frozenset({Role.PROJECT_MANAGER, Role.CONTRACTOR}),
    Role.PROJECT_MANAGER: frozenset(),
    Role.CONTRACTOR: frozenset(),
}

GLOBAL_ROLES = frozenset({Role.OWNER, Role.OPS_MANAGER})


def is_global_manager(user: User | None) -> bool:
    return user is not None and user.role in GLOBAL_ROLES


def can_manage_project(user: User | None, project: Project | None) -> bool:
    if user is None or project is None:
        return False
    return user.role in GLOBAL_ROLES or user.id in project.project_manager_ids


def can_view_project(user: User | None, project: Project | None) -> bool:
    if user is None or project is None:
        return False
    return can_manage_project(user, project) or user.id in project.contractor_ids


def visible_projects(user: User | None, projects: Iterable[Project]) -> list[Project]:
    return [p for p in projects if can_view_project(user, p)]


def creatable_roles(creator_role: Role) -> frozenset[Role]:
    return CREATABLE_ROLES.get(Role(creator_role), frozenset())


def can_create_subordinate_role(creator_role: Role, target_role: Role) -> bool:
    return Role(target_role) in creatable_roles(creator_role)


def can_delete_user(actor_role: Role, target_role: Role) -> bool:
    return Role(target_role) in DELETABLE_ROLES.get(Role(actor_role), frozenset())


def can_manage_members(user: User | None) -> bool:
    """Access to the member directory (listing and deleting users)."""
    return is_global_manager(user)


def can_create_project(user: User | None) -> bool:
    return is_global_manager(user)


# ---------------------------------------------------------------------------
# Chat groups
# ---------------------------------------------------------------------------


def can_create_chat_group(user: User | None) -> bool:
    return user is not None and user.role != Role.CONTRACTOR


def is_group_admin(user: User | None, group: ChatGroup | None) -> bool:
    return user is not None and group is not None and group.created_by == user.id


def is_group_member(user: User | None, group: ChatGroup | None) -> bool:
    return user is not None and group is not None and user.id in group.member_ids


def can_rename_group(user: User | None, group: ChatGroup | None) -> bool:
    return is_group_admin(user, group)


def can_remove_group_member(user: User | None, group: ChatGroup | None, member_id: str) -> bool:
    if not is_group_admin(user, group):
        return False
    return member_id != user.id and member_id in group.member_ids


def can_leave_group(user: User | None, group: ChatGroup | None) -> bool:
    # The admin has to delete the group or hand it over first.
    return is_group_member(user, group) and not is_group_admin(user, group)


def can_delete_group(user: User | None, group: ChatGroup | None) -> bool:
    return is_group_admin(user, group)


def can_transfer_group(user: User | None, group: ChatGroup | None, new_admin_id: str) -> bool:
    if not is_group_admin(user, group):
        return False
    return new_admin_id != user.id and new_admin_id in group.member_ids
