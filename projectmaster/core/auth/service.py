"""Session lifecycle: profile lookup on sign-in, adapter activation, sign-out."""

from __future__ import annotations

from projectmaster.common.enums import Role
from projectmaster.common.logging import get_logger
from projectmaster.config import settings
from projectmaster.core.auth.schemas import AuthSession
from projectmaster.core.store import actions as a
from projectmaster.core.store.store import Store
from projectmaster.core.sync.adapter import RemoteSyncAdapter
from projectmaster.core.sync.normalize import normalize_row, remote_name, to_row
from projectmaster.domain.models import User
from projectmaster.integrations.backend import SyncBackend

logger = get_logger("auth")


async def ensure_profile(
    backend: SyncBackend, session: AuthSession, default_role: Role | None = None
) -> User:
    """Return the profile for ``session``, creating it when none exists yet.

    A credential without a profile row gets one with the least-privileged
    configured role. That path is logged at WARNING so it shows up in audits.
    """
    row = await backend.get_row(remote_name("users"), session.user_id)
    if row is not None:
        return normalize_row("users", row)

    role = Role(default_role or settings.DEFAULT_PROFILE_ROLE)
    meta = session.metadata or {}
    local_part = session.email.split("@")[0] if session.email else ""
    user = User(
        id=session.user_id,
        name=meta.get("full_name") or meta.get("name") or local_part or "Unknown",
        username=meta.get("username") or local_part,
        role=role,
        email=session.email,
    )
    logger.warning(
        "No profile for %s (%s); created one with role '%s'",
        session.user_id,
        session.email,
        role.value,
    )
    await backend.upsert(remote_name("users"), to_row(user))
    return user


async def start_session(
    store: Store, adapter: RemoteSyncAdapter, backend: SyncBackend, session: AuthSession
) -> User:
    user = await ensure_profile(backend, session)
    store.dispatch(a.SetUser(user=user))
    await adapter.activate()
    logger.info("Session started for %s (%s)", user.id, user.role.value)
    return user


async def end_session(store: Store, adapter: RemoteSyncAdapter) -> None:
    await adapter.deactivate()
    store.dispatch(a.SetUser(user=None))
    logger.info("Session ended")
