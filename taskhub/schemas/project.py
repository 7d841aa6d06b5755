from typing import List, Optional
from uuid import UUID
from pydantic import Field, field_validator
from taskhub.models.enums import Priority, ProjectStatus, TaskStatus
from taskhub.schemas.common import CamelModel, HEX_COLOR, UtcDatetime, strip_text
from taskhub.schemas.user import UserBrief, UserContact
from taskhub.schemas.tag import TagResponse


class ProjectCreate(CamelModel):
    name: str = Field(..., min_length=2, max_length=100)
    description: Optional[str] = Field(None, max_length=500)
    color: Optional[str] = Field(None, pattern=HEX_COLOR)
    icon: Optional[str] = Field(None, max_length=50)

    @field_validator("name", "description", "icon", mode="before")
    @classmethod
    def strip_fields(cls, value):
        return strip_text(value)


class ProjectUpdate(ProjectCreate):
    name: Optional[str] = Field(None, min_length=2, max_length=100)
    status: Optional[ProjectStatus] = None


class ProjectBrief(CamelModel):
    id: UUID
    name: str
    color: str


class ProjectResponse(CamelModel):
    id: UUID
    name: str
    description: Optional[str] = None
    color: str
    icon: Optional[str] = None
    status: ProjectStatus
    owner_id: UUID
    task_count: int = 0
    created_at: UtcDatetime
    updated_at: UtcDatetime


class ProjectTaskStats(CamelModel):
    total: int = 0
    completed: int = 0
    in_progress: int = 0
    todo: int = 0


class ProjectListItem(ProjectResponse):
    task_stats: ProjectTaskStats


class ProjectTaskItem(CamelModel):
    id: UUID
    title: str
    description: Optional[str] = None
    status: TaskStatus
    priority: Priority
    due_date: Optional[UtcDatetime] = None
    completed_at: Optional[UtcDatetime] = None
    order: int
    assignee: Optional[UserBrief] = None
    tags: List[TagResponse] = []
    created_at: UtcDatetime
    updated_at: UtcDatetime


class ProjectDetail(ProjectResponse):
    owner: UserContact
    tasks: List[ProjectTaskItem] = []


class StatusBreakdown(CamelModel):
    todo: int = 0
    in_progress: int = 0
    in_review: int = 0
    completed: int = 0


class PriorityBreakdown(CamelModel):
    low: int = 0
    medium: int = 0
    high: int = 0
    urgent: int = 0


class ProjectStats(CamelModel):
    total: int
    by_status: StatusBreakdown
    by_priority: PriorityBreakdown
    completion_rate: int
