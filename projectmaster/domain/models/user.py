from pydantic import Field

from projectmaster.common.enums import Role
from projectmaster.domain.models.base import DomainModel, Identifier, Timestamp, now_ms


class User(DomainModel):
    id: Identifier
    name: str = "Unknown"
    username: str = ""
    role: Role = Role.CONTRACTOR
    email: str = ""
    created_at: Timestamp = Field(default_factory=now_ms)
