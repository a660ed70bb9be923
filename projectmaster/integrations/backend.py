"""Backing-store interface used by the remote sync adapter.

A backend stores plain JSON rows per collection and publishes a change feed.
``subscribe`` delivers a full snapshot right away, then incremental events for
writes made through this backend. Polling backends additionally re-read the
collection periodically and deliver a new snapshot whenever it changed.
"""

from __future__ import annotations

import asyncio
import contextlib
import hashlib
import json
from abc import abstractmethod
from collections import defaultdict
from collections.abc import Callable
from typing import Any

from pydantic import BaseModel, Field

from projectmaster.common.enums import ChangeKind
from projectmaster.integrations.base import BaseIntegration


class ChangeEvent(BaseModel):
    collection: str
    kind: ChangeKind
    rows: list[dict[str, Any]] = Field(default_factory=list)
    ids: list[str] = Field(default_factory=list)


Callback = Callable[[ChangeEvent], None]


class Subscription:
    """Handle for one collection subscription; ``close`` is idempotent."""

    def __init__(self, backend: "SyncBackend", collection: str, callback: Callback) -> None:
        self.backend = backend
        self.collection = collection
        self.callback = callback
        self.task: asyncio.Task | None = None
        self.last_fingerprint: str | None = None
        self.closed = False

    async def close(self) -> None:
        if self.closed:
            return
        self.closed = True
        self.backend._remove_subscriber(self)
        if self.task is not None:
            self.task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await self.task


class SyncBackend(BaseIntegration):
    def __init__(self, name: str) -> None:
        super().__init__(name)
        self._subscribers: dict[str, list[Subscription]] = defaultdict(list)

    # ------------------------------------------------------------------
    # Storage primitives
    # ------------------------------------------------------------------

    @abstractmethod
    async def list_rows(self, collection: str) -> list[dict[str, Any]]:
        ...

    @abstractmethod
    async def get_row(self, collection: str, row_id: str) -> dict[str, Any] | None:
        ...

    @abstractmethod
    async def _write(self, collection: str, row: dict[str, Any]) -> tuple[dict[str, Any], bool]:
        """Create or replace a row. Returns the stored row and whether it was new."""
        ...

    @abstractmethod
    async def _patch(self, collection: str, row_id: str, fields: dict[str, Any]) -> dict[str, Any]:
        ...

    @abstractmethod
    async def _remove(self, collection: str, row_id: str) -> None:
        ...

    async def close(self) -> None:
        for subs in list(self._subscribers.values()):
            for sub in list(subs):
                await sub.close()

    # ------------------------------------------------------------------
    # Writes (publish to subscribers of this process)
    # ------------------------------------------------------------------

    async def upsert(self, collection: str, row: dict[str, Any]) -> dict[str, Any]:
        stored, created = await self._write(collection, row)
        kind = ChangeKind.INSERT if created else ChangeKind.UPDATE
        self._publish(ChangeEvent(collection=collection, kind=kind, rows=[stored]))
        return stored

    async def update(self, collection: str, row_id: str, fields: dict[str, Any]) -> dict[str, Any]:
        stored = await self._patch(collection, row_id, fields)
        self._publish(ChangeEvent(collection=collection, kind=ChangeKind.UPDATE, rows=[stored]))
        return stored

    async def delete(self, collection: str, row_id: str) -> None:
        await self._remove(collection, row_id)
        self._publish(ChangeEvent(collection=collection, kind=ChangeKind.DELETE, ids=[row_id]))

    # ------------------------------------------------------------------
    # Change feed
    # ------------------------------------------------------------------

    async def subscribe(self, collection: str, callback: Callback) -> Subscription:
        rows = await self.list_rows(collection)
        sub = Subscription(self, collection, callback)
        sub.last_fingerprint = fingerprint(rows)
        self._subscribers[collection].append(sub)
        self._deliver(sub, ChangeEvent(collection=collection, kind=ChangeKind.SNAPSHOT, rows=rows))
        self.logger.info("Subscribed to %s (%d rows)", collection, len(rows))
        return sub

    def subscriber_count(self, collection: str | None = None) -> int:
        if collection is not None:
            return len(self._subscribers.get(collection, []))
        return sum(len(subs) for subs in self._subscribers.values())

    def _remove_subscriber(self, sub: Subscription) -> None:
        subs = self._subscribers.get(sub.collection, [])
        if sub in subs:
            subs.remove(sub)
        self.logger.debug("Unsubscribed from %s", sub.collection)

    def _publish(self, event: ChangeEvent) -> None:
        for sub in list(self._subscribers.get(event.collection, [])):
            self._deliver(sub, event)

    def _deliver(self, sub: Subscription, event: ChangeEvent) -> None:
        if sub.closed:
            return
        try:
            sub.callback(event)
        except Exception:
            self.logger.exception("Subscriber for %s failed on %s event", event.collection, event.kind.value)


def fingerprint(rows: list[dict[str, Any]]) -> str:
    ordered = sorted(rows, key=lambda r: str(r.get("id", "")))
    return hashlib.sha256(json.dumps(ordered, sort_keys=True, default=str).encode()).hexdigest()


class PollingBackend(SyncBackend):
    """Backend whose change feed also re-reads the collection on an interval."""

    def __init__(self, name: str, poll_interval: float) -> None:
        super().__init__(name)
        self.poll_interval = poll_interval

    async def subscribe(self, collection: str, callback: Callback) -> Subscription:
        sub = await super().subscribe(collection, callback)
        if self.poll_interval > 0:
            sub.task = asyncio.create_task(self._poll(sub))
        return sub

    async def _poll(self, sub: Subscription) -> None:
        while not sub.closed:
            await asyncio.sleep(self.poll_interval)
            try:
                rows = await self.list_rows(sub.collection)
            except Exception as e:
                self.logger.warning("Polling %s failed, keeping last snapshot: %s", sub.collection, e)
                continue
            current = fingerprint(rows)
            if current != sub.last_fingerprint:
                sub.last_fingerprint = current
                self._deliver(
                    sub, ChangeEvent(collection=sub.collection, kind=ChangeKind.SNAPSHOT, rows=rows)
                )
