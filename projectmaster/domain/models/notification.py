from pydantic import Field

from projectmaster.common.enums import NotificationType, RelatedType
from projectmaster.domain.models.base import DomainModel, Identifier, Timestamp, now_ms


class RelatedTo(DomainModel):
    type: RelatedType
    id: Identifier
    name: str


class Notification(DomainModel):
    id: Identifier
    user_id: Identifier
    type: NotificationType
    message: str
    related_to: RelatedTo | None = None
    is_read: bool = False
    created_at: Timestamp = Field(default_factory=now_ms)
