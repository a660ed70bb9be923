import pytest

from projectmaster.common.enums import Role
from projectmaster.common.exceptions import ExternalServiceError, PermissionDeniedError
from projectmaster.core.provisioning.service import ProvisionRequest, provision_user, remove_user
from projectmaster.integrations.memory_backend import MemoryBackend


def _request(role: Role, email: str = "new@test.com") -> ProvisionRequest:
    return ProvisionRequest(email=email, password="secret123", role=role, full_name="New Person")


@pytest.mark.asyncio
async def test_owner_creates_ops_manager(owner, auth_provider, backend):
    user = await provision_user(owner, _request(Role.OPS_MANAGER), auth_provider, backend)

    assert user.role == Role.OPS_MANAGER
    assert user.username == "new"
    row = await backend.get_row("users", user.id)
    assert row["name"] == "New Person"
    assert row["role"] == "operations_manager"
    assert (await auth_provider.sign_in("new@test.com", "secret123")).user_id == user.id


@pytest.mark.asyncio
async def test_project_manager_cannot_create_project_manager(project_manager, auth_provider, backend):
    with pytest.raises(PermissionDeniedError) as exc:
        await provision_user(project_manager, _request(Role.PROJECT_MANAGER), auth_provider, backend)
    assert exc.value.detail == "Role 'project_manager' does not have permission to create 'project_manager'"
    assert await backend.list_rows("users") == []


@pytest.mark.asyncio
async def test_contractor_cannot_create_anyone(contractor, auth_provider, backend):
    with pytest.raises(PermissionDeniedError):
        await provision_user(contractor, _request(Role.CONTRACTOR), auth_provider, backend)


@pytest.mark.asyncio
async def test_failed_profile_insert_rolls_back_credential(owner, auth_provider):
    class BrokenBackend(MemoryBackend):
        async def _write(self, collection, row):
            raise ExternalServiceError("memory", "insert failed")

    with pytest.raises(ExternalServiceError) as exc:
        await provision_user(owner, _request(Role.CONTRACTOR), auth_provider, BrokenBackend())
    assert exc.value.service == "database"
    assert exc.value.status_code == 502
    assert exc.value.detail == "database unavailable: Failed to create profile"

    # The credential is gone, so the same email can be provisioned again.
    user = await provision_user(owner, _request(Role.CONTRACTOR), auth_provider, MemoryBackend())
    assert user.role == Role.CONTRACTOR


@pytest.mark.asyncio
async def test_remove_user_respects_hierarchy(seeded_backend, ops_manager, owner, contractor, project, auth_provider):
    with pytest.raises(PermissionDeniedError):
        await remove_user(ops_manager, owner, auth_provider, seeded_backend)

    await remove_user(ops_manager, contractor, auth_provider, seeded_backend)
    assert await seeded_backend.get_row("users", contractor.id) is None
    assert (await seeded_backend.get_row("projects", project.id))["contractor_ids"] == []
