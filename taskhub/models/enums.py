import enum


class Role(str, enum.Enum):
    USER = "USER"
    ADMIN = "ADMIN"


class ProjectStatus(str, enum.Enum):
    ACTIVE = "ACTIVE"
    ARCHIVED = "ARCHIVED"
    COMPLETED = "COMPLETED"
    ON_HOLD = "ON_HOLD"


class TaskStatus(str, enum.Enum):
    TODO = "TODO"
    IN_PROGRESS = "IN_PROGRESS"
    IN_REVIEW = "IN_REVIEW"
    COMPLETED = "COMPLETED"


class Priority(str, enum.Enum):
    LOW = "LOW"
    MEDIUM = "MEDIUM"
    HIGH = "HIGH"
    URGENT = "URGENT"


# Sort ranks; the columns are plain strings so alphabetical order would be wrong
STATUS_RANK = {s.value: i for i, s in enumerate(TaskStatus)}
PRIORITY_RANK = {p.value: i for i, p in enumerate(Priority)}
