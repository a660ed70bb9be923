from projectmaster.common.enums import Role, TaskStatus
from projectmaster.common.logging import get_logger
from projectmaster.core.authz.policy import can_manage_project
from projectmaster.core.tasks.schemas import Actor, TransitionRule
from projectmaster.domain.models import Project, Task, User

logger = get_logger("tasks.workflow")

# Contractors move a task forward one step at a time. Management toggles
# between completed and in progress regardless of where the task is.
TRANSITION_RULES = [
    TransitionRule(
        from_status=TaskStatus.PENDING,
        actor=Actor.CONTRACTOR,
        to_status=TaskStatus.IN_PROGRESS,
        description="Start work",
    ),
    TransitionRule(
        from_status=TaskStatus.IN_PROGRESS,
        actor=Actor.CONTRACTOR,
        to_status=TaskStatus.PENDING_REVIEW,
        description="Submit for review",
    ),
    TransitionRule(
        from_status=TaskStatus.PENDING,
        actor=Actor.MANAGEMENT,
        to_status=TaskStatus.COMPLETED,
        description="Mark completed",
    ),
    TransitionRule(
        from_status=TaskStatus.IN_PROGRESS,
        actor=Actor.MANAGEMENT,
        to_status=TaskStatus.COMPLETED,
        description="Mark completed",
    ),
    TransitionRule(
        from_status=TaskStatus.PENDING_REVIEW,
        actor=Actor.MANAGEMENT,
        to_status=TaskStatus.COMPLETED,
        description="Approve",
    ),
    TransitionRule(
        from_status=TaskStatus.COMPLETED,
        actor=Actor.MANAGEMENT,
        to_status=TaskStatus.IN_PROGRESS,
        description="Reopen",
    ),
]

TRANSITIONS: dict[tuple[TaskStatus, Actor], TransitionRule] = {
    (rule.from_status, rule.actor): rule for rule in TRANSITION_RULES
}


def actor_for(user: User | None, project: Project | None) -> Actor | None:
    if can_manage_project(user, project):
        return Actor.MANAGEMENT
    if user is not None and project is not None:
        if user.role == Role.CONTRACTOR and user.id in project.contractor_ids:
            return Actor.CONTRACTOR
    return None


def next_status(task: Task, user: User | None, project: Project | None) -> TaskStatus | None:
    """Status reached by the status button for this user, or None when it is a no-op."""
    actor = actor_for(user, project)
    if actor is None:
        return None
    rule = TRANSITIONS.get((TaskStatus(task.status), actor))
    return rule.to_status if rule else None


def action_label(task: Task, user: User | None, project: Project | None) -> str | None:
    actor = actor_for(user, project)
    if actor is None:
        return None
    rule = TRANSITIONS.get((TaskStatus(task.status), actor))
    return rule.description if rule else None


def status_after_photo(task: Task, uploader: User | None, project: Project | None) -> TaskStatus | None:
    """A contractor's photo on a pending task starts the work."""
    if task.status != TaskStatus.PENDING:
        return None
    if actor_for(uploader, project) != Actor.CONTRACTOR:
        return None
    logger.info("Photo upload by %s starts task %s", uploader.id, task.id)
    return TaskStatus.IN_PROGRESS
