import pytest

from projectmaster.common.enums import Role
from projectmaster.core.authz import policy
from projectmaster.domain.models import ChatGroup, Project


def test_manage_and_view_project(owner, ops_manager, project_manager, contractor, other_contractor, project):
    assert policy.can_manage_project(owner, project)
    assert policy.can_manage_project(ops_manager, project)
    assert policy.can_manage_project(project_manager, project)
    assert not policy.can_manage_project(contractor, project)

    assert policy.can_view_project(contractor, project)
    assert not policy.can_view_project(other_contractor, project)
    assert not policy.can_view_project(None, project)


def test_unassigned_project_manager_cannot_manage(project_manager, owner):
    project = Project(id="p-9", name="Elsewhere", owner_id=owner.id)
    assert not policy.can_manage_project(project_manager, project)
    assert not policy.can_view_project(project_manager, project)


def test_visible_projects_filters_by_assignment(contractor, owner, project):
    other = Project(id="p-2", name="Other", owner_id=owner.id)
    assert policy.visible_projects(contractor, [project, other]) == [project]
    assert policy.visible_projects(owner, [project, other]) == [project, other]


def test_only_global_roles_create_projects_and_manage_members(owner, ops_manager, project_manager, contractor):
    for user in (owner, ops_manager):
        assert policy.can_create_project(user)
        assert policy.can_manage_members(user)
    for user in (project_manager, contractor, None):
        assert not policy.can_create_project(user)
        assert not policy.can_manage_members(user)


@pytest.mark.parametrize(
    "creator,allowed",
    [
        (Role.OWNER, {Role.OPS_MANAGER, Role.PROJECT_MANAGER, Role.CONTRACTOR}),
        (Role.OPS_MANAGER, {Role.PROJECT_MANAGER, Role.CONTRACTOR}),
        (Role.PROJECT_MANAGER, {Role.CONTRACTOR}),
        (Role.CONTRACTOR, set()),
    ],
)
def test_role_creation_hierarchy(creator, allowed):
    assert policy.creatable_roles(creator) == allowed
    for target in Role:
        assert policy.can_create_subordinate_role(creator, target) == (target in allowed)


def test_nobody_creates_owners():
    assert all(not policy.can_create_subordinate_role(role, Role.OWNER) for role in Role)


def test_delete_user_rules():
    assert all(policy.can_delete_user(Role.OWNER, target) for target in Role)
    assert policy.can_delete_user(Role.OPS_MANAGER, Role.CONTRACTOR)
    assert policy.can_delete_user(Role.OPS_MANAGER, Role.PROJECT_MANAGER)
    assert not policy.can_delete_user(Role.OPS_MANAGER, Role.OPS_MANAGER)
    assert not policy.can_delete_user(Role.OPS_MANAGER, Role.OWNER)
    assert not policy.can_delete_user(Role.PROJECT_MANAGER, Role.CONTRACTOR)
    assert not policy.can_delete_user(Role.CONTRACTOR, Role.CONTRACTOR)


def test_role_strings_are_accepted():
    assert policy.can_create_subordinate_role("project_manager", "contractor")
    assert policy.can_delete_user("owner", "operations_manager")


def test_chat_group_creation_by_role(owner, ops_manager, project_manager, contractor):
    assert policy.can_create_chat_group(owner)
    assert policy.can_create_chat_group(ops_manager)
    assert policy.can_create_chat_group(project_manager)
    assert not policy.can_create_chat_group(contractor)
    assert not policy.can_create_chat_group(None)


def test_group_admin_predicates(project_manager, contractor, other_contractor):
    group = ChatGroup(
        id="g-1",
        name="Crew",
        member_ids=(project_manager.id, contractor.id),
        created_by=project_manager.id,
    )

    assert policy.is_group_admin(project_manager, group)
    assert policy.can_rename_group(project_manager, group)
    assert not policy.can_rename_group(contractor, group)

    assert policy.can_remove_group_member(project_manager, group, contractor.id)
    assert not policy.can_remove_group_member(project_manager, group, project_manager.id)
    assert not policy.can_remove_group_member(contractor, group, project_manager.id)

    # Admin is locked in until the group is handed over or deleted.
    assert not policy.can_leave_group(project_manager, group)
    assert policy.can_leave_group(contractor, group)
    assert not policy.can_leave_group(other_contractor, group)

    assert policy.can_delete_group(project_manager, group)
    assert not policy.can_delete_group(contractor, group)

    assert policy.can_transfer_group(project_manager, group, contractor.id)
    assert not policy.can_transfer_group(project_manager, group, other_contractor.id)

    handed_over = group.model_copy(update={"created_by": contractor.id})
    assert policy.can_leave_group(project_manager, handed_over)
