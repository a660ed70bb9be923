from pydantic import Field

from projectmaster.domain.models.base import (
    DomainModel,
    IdSet,
    Identifier,
    OptionalIdentifier,
    Timestamp,
    now_ms,
)

GENERAL_CHANNEL = "general"


class ChatGroup(DomainModel):
    """A named chat channel. ``created_by`` is the group admin."""

    id: Identifier
    name: str
    member_ids: IdSet = ()
    created_by: Identifier
    created_at: Timestamp = Field(default_factory=now_ms)


class ChatMessage(DomainModel):
    id: Identifier
    group_id: OptionalIdentifier = None  # None is the general channel
    sender_id: Identifier
    sender_name: str = "Unknown"
    content: str = ""
    photo_url: str | None = None
    created_at: Timestamp = Field(default_factory=now_ms)
    is_read: bool = False

    @property
    def channel(self) -> str:
        return self.group_id or GENERAL_CHANNEL
