"""Credential stores: a local one for development and the hosted auth admin API."""

from __future__ import annotations

from abc import abstractmethod
from typing import Any

import httpx

from projectmaster.common.exceptions import (
    BadRequestError,
    ConflictError,
    ExternalServiceError,
    UnauthorizedError,
)
from projectmaster.common.security import create_access_token, get_password_hash, verify_password
from projectmaster.config import settings
from projectmaster.core.auth.schemas import AuthCredential, AuthSession
from projectmaster.domain.models import new_id
from projectmaster.integrations.base import BaseIntegration


class AuthProvider(BaseIntegration):
    @abstractmethod
    async def create_user(self, email: str, password: str, metadata: dict[str, Any]) -> AuthCredential:
        ...

    @abstractmethod
    async def delete_user(self, user_id: str) -> None:
        ...

    @abstractmethod
    async def sign_in(self, email: str, password: str) -> AuthSession:
        ...


class LocalAuthProvider(AuthProvider):
    """Keeps hashed credentials in memory and issues the app's own JWTs."""

    def __init__(self) -> None:
        super().__init__("auth.local")
        self._by_email: dict[str, dict[str, Any]] = {}

    async def health_check(self) -> bool:
        return True

    async def create_user(self, email: str, password: str, metadata: dict[str, Any]) -> AuthCredential:
        key = email.strip().lower()
        if key in self._by_email:
            raise ConflictError("A user with this email address has already been registered")
        user_id = new_id()
        self._by_email[key] = {
            "user_id": user_id,
            "email": key,
            "hashed_password": get_password_hash(password),
            "metadata": dict(metadata),
        }
        self.logger.info("Created credential for %s", key)
        return AuthCredential(user_id=user_id, email=key, metadata=dict(metadata))

    async def delete_user(self, user_id: str) -> None:
        for key, entry in list(self._by_email.items()):
            if entry["user_id"] == user_id:
                del self._by_email[key]
                self.logger.info("Deleted credential %s", user_id)

    async def sign_in(self, email: str, password: str) -> AuthSession:
        entry = self._by_email.get(email.strip().lower())
        if entry is None or not verify_password(password, entry["hashed_password"]):
            raise UnauthorizedError("Invalid credentials. Please contact your manager.")
        token = create_access_token({"sub": entry["user_id"], "email": entry["email"]})
        return AuthSession(
            user_id=entry["user_id"],
            email=entry["email"],
            access_token=token,
            metadata=dict(entry["metadata"]),
        )


class SupabaseAuthProvider(AuthProvider):
    """Hosted auth: admin user management with the service key, password grant for sign-in."""

    def __init__(
        self,
        url: str | None = None,
        service_key: str | None = None,
        anon_key: str | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        super().__init__("auth.supabase")
        self._url = (url or settings.SUPABASE_URL).rstrip("/")
        self._service_key = service_key or settings.SUPABASE_SERVICE_KEY
        self._anon_key = anon_key or settings.SUPABASE_KEY
        self._transport = transport

    def _client(self, key: str) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            base_url=f"{self._url}/auth/v1",
            headers={"apikey": key, "Authorization": f"Bearer {key}"},
            timeout=15,
            transport=self._transport,
        )

    async def health_check(self) -> bool:
        try:
            async with self._client(self._anon_key) as client:
                resp = await client.get("/health")
                return resp.status_code == 200
        except httpx.HTTPError as e:
            self.logger.error("Auth health check failed: %s", e)
            return False

    async def create_user(self, email: str, password: str, metadata: dict[str, Any]) -> AuthCredential:
        try:
            async with self._client(self._service_key) as client:
                resp = await client.post(
                    "/admin/users",
                    json={
                        "email": email,
                        "password": password,
                        "email_confirm": True,
                        "user_metadata": metadata,
                    },
                )
        except httpx.HTTPError as e:
            raise ExternalServiceError("auth", str(e)) from e
        data = resp.json() if resp.content else {}
        if resp.status_code >= 400:
            message = data.get("msg") or data.get("message") or data.get("error") or resp.text
            raise BadRequestError(str(message))
        user = data.get("user", data)
        if not user.get("id"):
            raise ExternalServiceError("auth", "Failed to create user object")
        return AuthCredential(user_id=str(user["id"]), email=user.get("email", email), metadata=metadata)

    async def delete_user(self, user_id: str) -> None:
        try:
            async with self._client(self._service_key) as client:
                resp = await client.delete(f"/admin/users/{user_id}")
                resp.raise_for_status()
        except httpx.HTTPError as e:
            raise ExternalServiceError("auth", str(e)) from e

    async def sign_in(self, email: str, password: str) -> AuthSession:
        try:
            async with self._client(self._anon_key) as client:
                resp = await client.post(
                    "/token",
                    params={"grant_type": "password"},
                    json={"email": email, "password": password},
                )
        except httpx.HTTPError as e:
            raise ExternalServiceError("auth", str(e)) from e
        if resp.status_code >= 400:
            raise UnauthorizedError("Invalid credentials. Please contact your manager.")
        data = resp.json()
        user = data.get("user") or {}
        return AuthSession(
            user_id=str(user.get("id", "")),
            email=user.get("email", email),
            access_token=data.get("access_token"),
            metadata=user.get("user_metadata") or {},
        )
