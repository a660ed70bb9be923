"""SQL backing store.

Each synced record is a JSON document in the ``sync_records`` table keyed by
(collection, id). Other processes see changes through snapshot polling.
"""

from __future__ import annotations

from typing import Any

from sqlalchemy import delete, select
from sqlalchemy.exc import SQLAlchemyError

from projectmaster.common.exceptions import ExternalServiceError, NotFoundError
from projectmaster.config import settings
from projectmaster.db.base import Base
from projectmaster.db.models.record import SyncRecord
from projectmaster.db.session import create_engine, create_session_factory
from projectmaster.integrations.backend import PollingBackend


class SqlBackend(PollingBackend):
    def __init__(self, database_url: str | None = None, poll_interval: float | None = None) -> None:
        super().__init__(
            "sql",
            settings.SYNC_POLL_INTERVAL_SECONDS if poll_interval is None else poll_interval,
        )
        self._engine = create_engine(database_url or settings.DATABASE_URL)
        self._sessions = create_session_factory(self._engine)

    async def init_schema(self) -> None:
        async with self._engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)

    async def drop_schema(self) -> None:
        async with self._engine.begin() as conn:
            await conn.run_sync(Base.metadata.drop_all)

    async def close(self) -> None:
        await super().close()
        await self._engine.dispose()

    async def health_check(self) -> bool:
        try:
            async with self._sessions() as session:
                await session.execute(select(1))
            return True
        except SQLAlchemyError as e:
            self.logger.error("SQL backend health check failed: %s", e)
            return False

    async def list_rows(self, collection: str) -> list[dict[str, Any]]:
        try:
            async with self._sessions() as session:
                result = await session.execute(
                    select(SyncRecord.data)
                    .where(SyncRecord.collection == collection)
                    .order_by(SyncRecord.created_at, SyncRecord.id)
                )
                return [dict(data) for data in result.scalars().all()]
        except SQLAlchemyError as e:
            raise ExternalServiceError("database", str(e)) from e

    async def get_row(self, collection: str, row_id: str) -> dict[str, Any] | None:
        try:
            async with self._sessions() as session:
                record = await session.get(SyncRecord, (collection, str(row_id)))
                return dict(record.data) if record else None
        except SQLAlchemyError as e:
            raise ExternalServiceError("database", str(e)) from e

    async def _write(self, collection: str, row: dict[str, Any]) -> tuple[dict[str, Any], bool]:
        row_id = str(row["id"])
        try:
            async with self._sessions() as session:
                record = await session.get(SyncRecord, (collection, row_id))
                created = record is None
                if created:
                    session.add(SyncRecord(collection=collection, id=row_id, data=dict(row)))
                else:
                    record.data = dict(row)
                await session.commit()
        except SQLAlchemyError as e:
            raise ExternalServiceError("database", str(e)) from e
        self.logger.debug("%s %s/%s", "Inserted" if created else "Replaced", collection, row_id)
        return dict(row), created

    async def _patch(self, collection: str, row_id: str, fields: dict[str, Any]) -> dict[str, Any]:
        try:
            async with self._sessions() as session:
                record = await session.get(SyncRecord, (collection, str(row_id)))
                if record is None:
                    raise NotFoundError(collection, row_id)
                merged = {**record.data, **fields}
                record.data = merged
                await session.commit()
                return dict(merged)
        except SQLAlchemyError as e:
            raise ExternalServiceError("database", str(e)) from e

    async def _remove(self, collection: str, row_id: str) -> None:
        try:
            async with self._sessions() as session:
                await session.execute(
                    delete(SyncRecord).where(
                        SyncRecord.collection == collection, SyncRecord.id == str(row_id)
                    )
                )
                await session.commit()
        except SQLAlchemyError as e:
            raise ExternalServiceError("database", str(e)) from e
