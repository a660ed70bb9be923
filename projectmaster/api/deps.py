from fastapi import Depends, Header, Request

from projectmaster.common.exceptions import NotFoundError, PermissionDeniedError
from projectmaster.common.security import decode_token
from projectmaster.core.sync.normalize import normalize_row, remote_name
from projectmaster.domain.models import User
from projectmaster.integrations.ai_client import AIClient
from projectmaster.integrations.auth_provider import AuthProvider
from projectmaster.integrations.backend import SyncBackend


def get_backend(request: Request) -> SyncBackend:
    return request.app.state.backend


def get_auth_provider(request: Request) -> AuthProvider:
    return request.app.state.auth_provider


def get_ai_client(request: Request) -> AIClient:
    return request.app.state.ai_client


async def get_current_user(
    authorization: str = Header(..., description="Bearer <token>"),
    backend: SyncBackend = Depends(get_backend),
) -> User:
    if not authorization.startswith("Bearer "):
        raise PermissionDeniedError("Invalid authorization header format")

    token = authorization[len("Bearer "):]
    try:
        payload = decode_token(token)
    except ValueError:
        raise PermissionDeniedError("Invalid or expired token")

    if payload.get("type") != "access":
        raise PermissionDeniedError("Invalid token type")

    user_id = payload.get("sub")
    if not user_id:
        raise PermissionDeniedError("Invalid token payload")

    row = await backend.get_row(remote_name("users"), str(user_id))
    if row is None:
        raise NotFoundError("User")
    return normalize_row("users", row)
