from fastapi import APIRouter, Depends, Response

from projectmaster.api.deps import get_auth_provider, get_backend, get_current_user
from projectmaster.common.exceptions import NotFoundError, PermissionDeniedError
from projectmaster.core.authz.policy import can_manage_members
from projectmaster.core.provisioning.service import ProvisionRequest, provision_user, remove_user
from projectmaster.core.sync.normalize import normalize_row, remote_name
from projectmaster.domain.models import User
from projectmaster.integrations.auth_provider import AuthProvider
from projectmaster.integrations.backend import SyncBackend

router = APIRouter(prefix="/users", tags=["Users"])


@router.get("/me", response_model=User)
async def read_me(current_user: User = Depends(get_current_user)):
    return current_user


@router.post("", response_model=User, status_code=201)
async def create_user(
    body: ProvisionRequest,
    current_user: User = Depends(get_current_user),
    auth: AuthProvider = Depends(get_auth_provider),
    backend: SyncBackend = Depends(get_backend),
):
    return await provision_user(current_user, body, auth, backend)


@router.delete("/{user_id}", status_code=204)
async def delete_user(
    user_id: str,
    current_user: User = Depends(get_current_user),
    auth: AuthProvider = Depends(get_auth_provider),
    backend: SyncBackend = Depends(get_backend),
):
    if not can_manage_members(current_user):
        raise PermissionDeniedError("Only owners and operations managers can remove users")
    row = await backend.get_row(remote_name("users"), user_id)
    if row is None:
        raise NotFoundError("User", user_id)
    await remove_user(current_user, normalize_row("users", row), auth, backend)
    return Response(status_code=204)
