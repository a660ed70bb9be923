"""Hosted backing store reached through its PostgREST endpoint.

Rows are read and written over HTTP with httpx; the change feed is snapshot
polling plus the local echo of writes made through this client.
"""

from __future__ import annotations

from typing import Any

import httpx

from projectmaster.common.exceptions import ExternalServiceError, NotFoundError
from projectmaster.config import settings
from projectmaster.integrations.backend import PollingBackend


class SupabaseBackend(PollingBackend):
    def __init__(
        self,
        url: str | None = None,
        api_key: str | None = None,
        poll_interval: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        super().__init__(
            "supabase",
            settings.SYNC_POLL_INTERVAL_SECONDS if poll_interval is None else poll_interval,
        )
        self._url = (url or settings.SUPABASE_URL).rstrip("/")
        self._key = api_key or settings.SUPABASE_KEY
        self._client = httpx.AsyncClient(
            base_url=f"{self._url}/rest/v1",
            headers={
                "apikey": self._key,
                "Authorization": f"Bearer {self._key}",
                "Content-Type": "application/json",
            },
            timeout=15,
            transport=transport,
        )

    async def close(self) -> None:
        await super().close()
        await self._client.aclose()

    async def health_check(self) -> bool:
        try:
            resp = await self._client.get("/")
            return resp.status_code < 500
        except httpx.HTTPError as e:
            self.logger.error("Supabase health check failed: %s", e)
            return False

    async def _request(self, method: str, path: str, **kwargs: Any) -> httpx.Response:
        try:
            resp = await self._client.request(method, path, **kwargs)
            resp.raise_for_status()
            return resp
        except httpx.HTTPStatusError as e:
            raise ExternalServiceError("supabase", f"{e.response.status_code} {e.response.text[:200]}") from e
        except httpx.HTTPError as e:
            raise ExternalServiceError("supabase", str(e)) from e

    async def list_rows(self, collection: str) -> list[dict[str, Any]]:
        resp = await self._request("GET", f"/{collection}", params={"select": "*"})
        return resp.json()

    async def get_row(self, collection: str, row_id: str) -> dict[str, Any] | None:
        resp = await self._request(
            "GET", f"/{collection}", params={"select": "*", "id": f"eq.{row_id}"}
        )
        rows = resp.json()
        return rows[0] if rows else None

    async def _write(self, collection: str, row: dict[str, Any]) -> tuple[dict[str, Any], bool]:
        existing = await self.get_row(collection, str(row["id"]))
        resp = await self._request(
            "POST",
            f"/{collection}",
            json=row,
            headers={"Prefer": "resolution=merge-duplicates,return=representation"},
        )
        rows = resp.json()
        return (rows[0] if rows else row), existing is None

    async def _patch(self, collection: str, row_id: str, fields: dict[str, Any]) -> dict[str, Any]:
        resp = await self._request(
            "PATCH",
            f"/{collection}",
            params={"id": f"eq.{row_id}"},
            json=fields,
            headers={"Prefer": "return=representation"},
        )
        rows = resp.json()
        if not rows:
            raise NotFoundError(collection, row_id)
        return rows[0]

    async def _remove(self, collection: str, row_id: str) -> None:
        await self._request("DELETE", f"/{collection}", params={"id": f"eq.{row_id}"})
