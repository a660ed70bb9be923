"""Privileged user provisioning.

Creates an auth credential plus the matching profile row. The role-creation
hierarchy is checked here against the caller's stored profile, never against
anything the client sends.
"""

from __future__ import annotations

from pydantic import BaseModel, Field

from projectmaster.common.enums import Role
from projectmaster.common.exceptions import (
    ExternalServiceError,
    PermissionDeniedError,
    ProjectMasterException,
)
from projectmaster.common.logging import get_logger
from projectmaster.core.authz.policy import can_create_subordinate_role, can_delete_user
from projectmaster.core.sync.normalize import remote_name, to_row
from projectmaster.domain.models import User
from projectmaster.integrations.auth_provider import AuthProvider
from projectmaster.integrations.backend import SyncBackend

logger = get_logger("provisioning")


class ProvisionRequest(BaseModel):
    email: str = Field(min_length=3)
    password: str = Field(min_length=6)
    role: Role
    full_name: str = Field(min_length=1)
    username: str = ""


async def provision_user(
    caller: User,
    body: ProvisionRequest,
    auth: AuthProvider,
    backend: SyncBackend,
) -> User:
    if not can_create_subordinate_role(caller.role, body.role):
        logger.warning(
            "Denied provisioning: %s (%s) tried to create a %s",
            caller.id,
            caller.role.value,
            body.role.value,
        )
        raise PermissionDeniedError(
            f"Role '{caller.role.value}' does not have permission to create '{body.role.value}'"
        )

    username = body.username or body.email.split("@")[0]
    credential = await auth.create_user(
        body.email,
        body.password,
        {"full_name": body.full_name, "username": username, "role": body.role.value},
    )

    user = User(
        id=credential.user_id,
        name=body.full_name,
        username=username,
        role=body.role,
        email=credential.email,
    )
    try:
        await backend.upsert(remote_name("users"), to_row(user))
    except ProjectMasterException as e:
        logger.error("Profile insert failed for %s, removing credential: %s", user.id, e.detail)
        await auth.delete_user(credential.user_id)
        raise ExternalServiceError("database", "Failed to create profile") from e

    logger.info("Provisioned %s as %s by %s", user.id, user.role.value, caller.id)
    return user


async def remove_user(caller: User, target: User, auth: AuthProvider, backend: SyncBackend) -> None:
    if not can_delete_user(caller.role, target.role):
        raise PermissionDeniedError(
            f"Role '{caller.role.value}' does not have permission to delete '{target.role.value}'"
        )
    await backend.delete(remote_name("users"), target.id)

    for row in await backend.list_rows(remote_name("projects")):
        managers = list(row.get("project_manager_ids") or [])
        contractors = list(row.get("contractor_ids") or [])
        if target.id in managers or target.id in contractors:
            await backend.update(
                remote_name("projects"),
                str(row["id"]),
                {
                    "project_manager_ids": [i for i in managers if i != target.id],
                    "contractor_ids": [i for i in contractors if i != target.id],
                },
            )
    for row in await backend.list_rows(remote_name("chat_groups")):
        members = list(row.get("member_ids") or [])
        if target.id in members:
            await backend.update(
                remote_name("chat_groups"),
                str(row["id"]),
                {"member_ids": [i for i in members if i != target.id]},
            )

    await auth.delete_user(target.id)
    logger.info("User %s deleted by %s", target.id, caller.id)
