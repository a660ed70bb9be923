from fastapi import APIRouter, Depends

from projectmaster.api.deps import get_auth_provider, get_backend
from projectmaster.common.security import create_access_token
from projectmaster.core.auth.schemas import LoginRequest, TokenResponse
from projectmaster.core.auth.service import ensure_profile
from projectmaster.integrations.auth_provider import AuthProvider
from projectmaster.integrations.backend import SyncBackend

router = APIRouter(prefix="/auth", tags=["Authentication"])


@router.post("/login", response_model=TokenResponse)
async def login(
    body: LoginRequest,
    auth: AuthProvider = Depends(get_auth_provider),
    backend: SyncBackend = Depends(get_backend),
):
    session = await auth.sign_in(body.email, body.password)
    user = await ensure_profile(backend, session)
    token = create_access_token({"sub": user.id, "role": user.role.value})
    return TokenResponse(access_token=token, user_id=user.id)
