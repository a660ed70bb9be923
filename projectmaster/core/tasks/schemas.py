import enum

from pydantic import BaseModel

from projectmaster.common.enums import TaskStatus


class Actor(str, enum.Enum):
    MANAGEMENT = "management"  # owner, ops manager or the project's assigned PM
    CONTRACTOR = "contractor"  # contractor assigned to the project


class TransitionRule(BaseModel):
    from_status: TaskStatus
    actor: Actor
    to_status: TaskStatus
    description: str
