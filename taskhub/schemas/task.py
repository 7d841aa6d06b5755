from typing import List, Optional
from uuid import UUID
from pydantic import Field, field_validator
from taskhub.models.enums import Priority, TaskStatus
from taskhub.schemas.common import CamelModel, UtcDatetime, strip_text
from taskhub.schemas.user import UserBrief, UserContact
from taskhub.schemas.project import ProjectBrief
from taskhub.schemas.tag import TagResponse


class TaskCreate(CamelModel):
    title: str = Field(..., min_length=2, max_length=200)
    description: Optional[str] = Field(None, max_length=2000)
    project_id: UUID
    priority: Optional[Priority] = None
    status: Optional[TaskStatus] = None
    due_date: Optional[UtcDatetime] = None
    assignee_id: Optional[UUID] = None
    tag_ids: Optional[List[UUID]] = None

    @field_validator("title", "description", mode="before")
    @classmethod
    def strip_fields(cls, value):
        return strip_text(value)


class TaskUpdate(CamelModel):
    """Partial update: only fields present in the request body are applied."""

    title: Optional[str] = Field(None, min_length=2, max_length=200)
    description: Optional[str] = Field(None, max_length=2000)
    priority: Optional[Priority] = None
    status: Optional[TaskStatus] = None
    due_date: Optional[UtcDatetime] = None
    assignee_id: Optional[UUID] = None
    order: Optional[int] = None
    tag_ids: Optional[List[UUID]] = None

    @field_validator("title", "description", mode="before")
    @classmethod
    def strip_fields(cls, value):
        return strip_text(value)


class CommentCreate(CamelModel):
    content: str = Field(..., min_length=1, max_length=1000)

    @field_validator("content", mode="before")
    @classmethod
    def strip_content(cls, value):
        return strip_text(value)


class ReorderItem(CamelModel):
    id: UUID
    order: int
    status: Optional[TaskStatus] = None


class ReorderRequest(CamelModel):
    project_id: UUID
    tasks: List[ReorderItem]


class TaskBase(CamelModel):
    id: UUID
    title: str
    description: Optional[str] = None
    status: TaskStatus
    priority: Priority
    due_date: Optional[UtcDatetime] = None
    completed_at: Optional[UtcDatetime] = None
    order: int
    project_id: UUID
    creator_id: UUID
    assignee_id: Optional[UUID] = None
    created_at: UtcDatetime
    updated_at: UtcDatetime


class TaskResponse(TaskBase):
    project: ProjectBrief
    creator: UserBrief
    assignee: Optional[UserBrief] = None
    tags: List[TagResponse] = []
    comment_count: int = 0


class CommentResponse(CamelModel):
    id: UUID
    content: str
    task_id: UUID
    author_id: UUID
    author: UserBrief
    created_at: UtcDatetime
    updated_at: UtcDatetime


class TaskProject(ProjectBrief):
    owner_id: UUID


class TaskDetail(TaskResponse):
    project: TaskProject
    creator: UserContact
    assignee: Optional[UserContact] = None
    comments: List[CommentResponse] = []
