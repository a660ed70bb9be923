from fastapi import APIRouter, Depends
from pydantic import BaseModel

from projectmaster.api.deps import get_ai_client, get_backend, get_current_user
from projectmaster.common.enums import PhotoParentType, Role
from projectmaster.common.exceptions import BadRequestError, NotFoundError, PermissionDeniedError
from projectmaster.core.authz.policy import (
    can_manage_project,
    can_view_project,
    is_global_manager,
    visible_projects,
)
from projectmaster.core.sync.normalize import normalize_row, normalize_rows, remote_name
from projectmaster.domain.models import Project, Subcategory, Task, User, now_ms
from projectmaster.domain.models.base import unique_ids
from projectmaster.integrations.ai_client import AIClient
from projectmaster.integrations.backend import SyncBackend

router = APIRouter(prefix="/projects", tags=["Projects"])


# ---------- Schemas ----------


class SubcategoryDetail(Subcategory):
    tasks: tuple[Task, ...] = ()


class ProjectDetail(Project):
    subcategories: tuple[SubcategoryDetail, ...] = ()


class TeamUpdateRequest(BaseModel):
    project_manager_ids: list[str] = []
    contractor_ids: list[str] = []


class TaskSummary(BaseModel):
    task_id: str
    status: str
    photo_count: int
    summary: str


# ---------- Endpoints ----------


@router.get("", response_model=list[ProjectDetail])
async def list_projects(
    current_user: User = Depends(get_current_user),
    backend: SyncBackend = Depends(get_backend),
):
    projects = normalize_rows("projects", await backend.list_rows(remote_name("projects")))
    subcategories = normalize_rows(
        "subcategories", await backend.list_rows(remote_name("subcategories"))
    )
    tasks = normalize_rows("tasks", await backend.list_rows(remote_name("tasks")))

    tasks_by_sub: dict[str, list[Task]] = {}
    for task in tasks:
        tasks_by_sub.setdefault(task.subcategory_id, []).append(task)
    subs_by_project: dict[str, list[SubcategoryDetail]] = {}
    for sub in subcategories:
        subs_by_project.setdefault(sub.project_id, []).append(
            SubcategoryDetail(**sub.model_dump(), tasks=tuple(tasks_by_sub.get(sub.id, [])))
        )

    return [
        ProjectDetail(**p.model_dump(), subcategories=tuple(subs_by_project.get(p.id, [])))
        for p in visible_projects(current_user, projects)
    ]


async def _require_role(backend: SyncBackend, user_ids: tuple[str, ...], role: Role) -> None:
    for uid in user_ids:
        row = await backend.get_row(remote_name("users"), uid)
        if row is None:
            raise BadRequestError(f"Unknown user '{uid}'")
        if normalize_row("users", row).role != role:
            raise BadRequestError(f"User '{uid}' is not a {role.value}")


@router.put("/{project_id}/team", response_model=Project)
async def update_team(
    project_id: str,
    body: TeamUpdateRequest,
    current_user: User = Depends(get_current_user),
    backend: SyncBackend = Depends(get_backend),
):
    row = await backend.get_row(remote_name("projects"), project_id)
    if row is None:
        raise NotFoundError("Project", project_id)
    project = normalize_row("projects", row)

    if not can_manage_project(current_user, project):
        raise PermissionDeniedError("You cannot manage this project's team")

    managers = unique_ids(body.project_manager_ids)
    contractors = unique_ids(body.contractor_ids)
    if set(managers) != set(project.project_manager_ids) and not is_global_manager(current_user):
        raise PermissionDeniedError("Only owners and operations managers can assign project managers")

    await _require_role(backend, managers, Role.PROJECT_MANAGER)
    await _require_role(backend, contractors, Role.CONTRACTOR)

    stored = await backend.update(
        remote_name("projects"),
        project_id,
        {
            "project_manager_ids": list(managers),
            "contractor_ids": list(contractors),
            "updated_at": now_ms(),
        },
    )
    return normalize_row("projects", stored)


@router.get("/{project_id}/tasks/{task_id}/summary", response_model=TaskSummary)
async def summarize_task(
    project_id: str,
    task_id: str,
    current_user: User = Depends(get_current_user),
    backend: SyncBackend = Depends(get_backend),
    ai: AIClient = Depends(get_ai_client),
):
    """Short progress summary of a task; degrades to a fixed text when the AI is down."""
    row = await backend.get_row(remote_name("projects"), project_id)
    if row is None:
        raise NotFoundError("Project", project_id)
    if not can_view_project(current_user, normalize_row("projects", row)):
        raise PermissionDeniedError("You cannot view this project")

    task_row = await backend.get_row(remote_name("tasks"), task_id)
    task = normalize_row("tasks", task_row) if task_row is not None else None
    sub_row = await backend.get_row(remote_name("subcategories"), task.subcategory_id) if task else None
    if task is None or sub_row is None or normalize_row("subcategories", sub_row).project_id != project_id:
        raise NotFoundError("Task", task_id)

    photos = normalize_rows("photos", await backend.list_rows(remote_name("photos")))
    photo_count = sum(
        1 for p in photos if p.parent_type == PhotoParentType.TASK and p.parent_id == task.id
    )
    summary = await ai.summarize_task(task.name, task.description, task.status.value, photo_count)
    return TaskSummary(
        task_id=task.id, status=task.status.value, photo_count=photo_count, summary=summary
    )
