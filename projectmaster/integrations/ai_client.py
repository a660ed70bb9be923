"""AI / LLM integration client.

Uses an OpenAI-compatible API when a real key is configured, otherwise
returns a templated summary. Callers always get a string back: any failure
degrades to ``FALLBACK_SUMMARY``.
"""

from __future__ import annotations

import httpx

from projectmaster.config import settings
from projectmaster.integrations.base import BaseIntegration

FALLBACK_SUMMARY = "AI Analysis currently unavailable."


def _is_mock() -> bool:
    return settings.AI_API_KEY.startswith("mock_")


class AIClient(BaseIntegration):
    """AI client that calls OpenAI (or compatible) API, with mock fallback."""

    def __init__(self, transport: httpx.AsyncBaseTransport | None = None) -> None:
        super().__init__("ai")
        self._base_url = settings.AI_BASE_URL
        self._model = settings.AI_MODEL
        self._transport = transport

    async def health_check(self) -> bool:
        if _is_mock():
            self.logger.info("AI client health check: OK (mock)")
            return True
        try:
            async with httpx.AsyncClient(timeout=10, transport=self._transport) as client:
                resp = await client.get(
                    f"{self._base_url}/models",
                    headers={"Authorization": f"Bearer {settings.AI_API_KEY}"},
                )
                return resp.status_code == 200
        except httpx.HTTPError as e:
            self.logger.error("AI health check failed: %s", e)
            return False

    async def _chat(self, system: str, user: str, temperature: float = 0.4) -> str:
        async with httpx.AsyncClient(timeout=60, transport=self._transport) as client:
            resp = await client.post(
                f"{self._base_url}/chat/completions",
                headers={
                    "Authorization": f"Bearer {settings.AI_API_KEY}",
                    "Content-Type": "application/json",
                },
                json={
                    "model": self._model,
                    "messages": [
                        {"role": "system", "content": system},
                        {"role": "user", "content": user},
                    ],
                    "temperature": temperature,
                },
            )
            resp.raise_for_status()
            data = resp.json()
            return data["choices"][0]["message"]["content"]

    # ------------------------------------------------------------------
    # Task progress summary
    # ------------------------------------------------------------------

    async def summarize_task(
        self, name: str, description: str, status: str, photo_count: int
    ) -> str:
        self.logger.info("Summarizing task '%s' (%s, %d photos)", name, status, photo_count)
        prompt = (
            f"Task: {name}. Description: {description}. Status: {status}. "
            f"Documentation: {photo_count} photos. "
            "Provide a concise, professional progress summary."
        )

        if _is_mock():
            readable = status.replace("_", " ")
            evidence = f"{photo_count} photo{'s' if photo_count != 1 else ''}"
            return f"'{name}' is {readable} with {evidence} on record."

        try:
            result = await self._chat(
                "You are a construction project assistant. Answer in two or three sentences.",
                prompt,
            )
        except (httpx.HTTPError, KeyError, IndexError, ValueError) as e:
            self.logger.warning("Task summary failed, using fallback: %s", e)
            return FALLBACK_SUMMARY
        return result.strip() or FALLBACK_SUMMARY
