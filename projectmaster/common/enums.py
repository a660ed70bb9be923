import enum


class Role(str, enum.Enum):
    OWNER = "owner"
    OPS_MANAGER = "operations_manager"
    PROJECT_MANAGER = "project_manager"
    CONTRACTOR = "contractor"


class TaskStatus(str, enum.Enum):
    PENDING = "pending"
    IN_PROGRESS = "in_progress"
    PENDING_REVIEW = "pending_review"
    COMPLETED = "completed"


class PhotoParentType(str, enum.Enum):
    PROJECT = "project"
    SUBCATEGORY = "subcategory"
    TASK = "task"
    CHAT = "chat"


class NotificationType(str, enum.Enum):
    PHOTO_UPLOADED = "photo_uploaded"
    NEW_MESSAGE = "new_message"
    PROJECT_ASSIGNED = "project_assigned"


class RelatedType(str, enum.Enum):
    TASK = "task"
    SUBCATEGORY = "subcategory"
    PROJECT = "project"


class ChangeKind(str, enum.Enum):
    SNAPSHOT = "snapshot"
    INSERT = "insert"
    UPDATE = "update"
    DELETE = "delete"
