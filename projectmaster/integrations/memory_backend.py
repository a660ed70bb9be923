"""In-process backing store.

Used for local development and tests. Rows live in dictionaries and every
write is pushed to subscribers immediately, like a hosted realtime feed.
"""

from __future__ import annotations

import copy
from collections import defaultdict
from typing import Any

from projectmaster.common.exceptions import NotFoundError
from projectmaster.integrations.backend import SyncBackend


class MemoryBackend(SyncBackend):
    def __init__(self) -> None:
        super().__init__("memory")
        self._rows: dict[str, dict[str, dict[str, Any]]] = defaultdict(dict)

    async def health_check(self) -> bool:
        self.logger.info("Memory backend health check: OK (%d collections)", len(self._rows))
        return True

    async def list_rows(self, collection: str) -> list[dict[str, Any]]:
        return [copy.deepcopy(row) for row in self._rows[collection].values()]

    async def get_row(self, collection: str, row_id: str) -> dict[str, Any] | None:
        row = self._rows[collection].get(str(row_id))
        return copy.deepcopy(row) if row is not None else None

    async def _write(self, collection: str, row: dict[str, Any]) -> tuple[dict[str, Any], bool]:
        row_id = str(row["id"])
        created = row_id not in self._rows[collection]
        self._rows[collection][row_id] = copy.deepcopy(row)
        return copy.deepcopy(row), created

    async def _patch(self, collection: str, row_id: str, fields: dict[str, Any]) -> dict[str, Any]:
        existing = self._rows[collection].get(str(row_id))
        if existing is None:
            raise NotFoundError(collection, row_id)
        existing.update(copy.deepcopy(fields))
        return copy.deepcopy(existing)

    async def _remove(self, collection: str, row_id: str) -> None:
        self._rows[collection].pop(str(row_id), None)
