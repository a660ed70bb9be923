"""ProjectMaster integration clients.

Backing stores implement ``SyncBackend``; credential stores implement
``AuthProvider``. Both are chosen once at startup from settings.
"""

from projectmaster.common.exceptions import BadRequestError
from projectmaster.config import settings
from projectmaster.integrations.ai_client import AIClient
from projectmaster.integrations.auth_provider import (
    AuthProvider,
    LocalAuthProvider,
    SupabaseAuthProvider,
)
from projectmaster.integrations.backend import ChangeEvent, Subscription, SyncBackend
from projectmaster.integrations.base import BaseIntegration
from projectmaster.integrations.memory_backend import MemoryBackend
from projectmaster.integrations.sql_backend import SqlBackend
from projectmaster.integrations.supabase_backend import SupabaseBackend


def build_backend(kind: str | None = None) -> SyncBackend:
    kind = (kind or settings.SYNC_BACKEND).lower()
    if kind == "memory":
        return MemoryBackend()
    if kind == "sql":
        return SqlBackend()
    if kind == "supabase":
        return SupabaseBackend()
    raise BadRequestError(f"Unknown sync backend '{kind}'")


def build_auth_provider(kind: str | None = None) -> AuthProvider:
    kind = (kind or settings.AUTH_BACKEND).lower()
    if kind == "local":
        return LocalAuthProvider()
    if kind == "supabase":
        return SupabaseAuthProvider()
    raise BadRequestError(f"Unknown auth backend '{kind}'")


__all__ = [
    "AIClient",
    "AuthProvider",
    "BaseIntegration",
    "ChangeEvent",
    "LocalAuthProvider",
    "MemoryBackend",
    "SqlBackend",
    "Subscription",
    "SupabaseAuthProvider",
    "SupabaseBackend",
    "SyncBackend",
    "build_auth_provider",
    "build_backend",
]
