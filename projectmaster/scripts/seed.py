"""
Seed script for ProjectMaster.

Writes a demo team, one staffed project with two departments and a few
tasks into the configured backing store (``SYNC_BACKEND``).

Usage:
    python -m projectmaster.scripts.seed
"""

import asyncio

from projectmaster.common.enums import Role, TaskStatus
from projectmaster.common.logging import get_logger, setup_logging
from projectmaster.core.sync.normalize import remote_name, to_row
from projectmaster.domain.models import Project, Subcategory, Task, User, now_ms
from projectmaster.integrations import SqlBackend, SyncBackend, build_backend

logger = get_logger("scripts.seed")

DAY_MS = 86_400_000


def demo_records(now: int) -> dict[str, list]:
    users = [
        User(id="owner-1", name="Rosa Alvarez", username="owner", email="rosa@example.com", role=Role.OWNER),
        User(id="ops-1", name="Tomas Berg", username="ops", email="tomas@example.com", role=Role.OPS_MANAGER),
        User(id="pm-1", name="Priya Nair", username="pm", email="priya@example.com", role=Role.PROJECT_MANAGER),
        User(id="contractor-1", name="Luis Ortega", username="contractor", email="luis@example.com", role=Role.CONTRACTOR),
    ]
    projects = [
        Project(
            id="proj-1",
            name="Riverside Office Renovation",
            description="Full refit of floors two and three, including access control and power.",
            owner_id="owner-1",
            project_manager_ids=("pm-1",),
            contractor_ids=("contractor-1",),
            created_at=now,
            updated_at=now,
            due_date=now + DAY_MS * 30,
        )
    ]
    subcategories = [
        Subcategory(
            id="sub-1",
            project_id="proj-1",
            name="Access Control",
            description="Badge readers and door hardware.",
            created_by="pm-1",
            created_at=now,
            due_date=now + DAY_MS * 7,
        ),
        Subcategory(
            id="sub-2",
            project_id="proj-1",
            name="Electrical",
            description="Server room circuits and backup power.",
            created_by="pm-1",
            created_at=now,
            due_date=now + DAY_MS * 14,
        ),
    ]
    tasks = [
        Task(id="task-1", subcategory_id="sub-1", name="Mount badge readers", created_by="pm-1", created_at=now),
        Task(
            id="task-2",
            subcategory_id="sub-1",
            name="Wire door strikes",
            status=TaskStatus.IN_PROGRESS,
            created_by="pm-1",
            created_at=now,
        ),
        Task(id="task-3", subcategory_id="sub-2", name="Install UPS", created_by="pm-1", created_at=now),
    ]
    return {"users": users, "projects": projects, "subcategories": subcategories, "tasks": tasks}


async def seed(backend: SyncBackend) -> int:
    # Guard: skip if already seeded (check for the owner profile)
    if await backend.get_row(remote_name("users"), "owner-1") is not None:
        logger.info("Backing store already seeded, skipping")
        return 0

    written = 0
    for field, records in demo_records(now_ms()).items():
        for record in records:
            await backend.upsert(remote_name(field), to_row(record))
            written += 1
    logger.info("Seeded %d records into %s", written, backend.name)
    return written


async def main() -> None:
    setup_logging()
    backend = build_backend()
    try:
        if isinstance(backend, SqlBackend):
            await backend.init_schema()
        await seed(backend)
    finally:
        await backend.close()


if __name__ == "__main__":
    asyncio.run(main())
