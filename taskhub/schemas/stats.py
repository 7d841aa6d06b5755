from typing import List, Optional
from uuid import UUID
from taskhub.schemas.common import CamelModel, UtcDatetime
from taskhub.schemas.project import PriorityBreakdown, ProjectBrief, StatusBreakdown
from taskhub.schemas.task import TaskBase
from taskhub.schemas.user import UserBrief


class DashboardStats(CamelModel):
    tasks_by_status: StatusBreakdown
    tasks_by_priority: PriorityBreakdown
    total_tasks: int
    completed_tasks: int
    total_projects: int
    overdue: int
    due_today: int
    due_this_week: int
    completion_rate: int
    completed_this_week: int


class ProductivityPoint(CamelModel):
    date: str
    count: int


class ProductivityStats(CamelModel):
    productivity: List[ProductivityPoint]
    total_completed: int
    average_per_day: float


class ActivityTask(TaskBase):
    project: ProjectBrief
    assignee: Optional[UserBrief] = None


class TaskRef(CamelModel):
    id: UUID
    title: str


class ActivityComment(CamelModel):
    id: UUID
    content: str
    created_at: UtcDatetime
    author: UserBrief
    task: TaskRef


class RecentActivity(CamelModel):
    recent_tasks: List[ActivityTask]
    recent_comments: List[ActivityComment]
