"""
Task rules shared by the routers: sort ranks, per-project ordering and
the completedAt bookkeeping that follows status changes.
"""
from datetime import datetime

from sqlalchemy import case, func, select

from taskhub.models import Task
from taskhub.models.enums import PRIORITY_RANK, STATUS_RANK, TaskStatus
from taskhub.utils.time import utcnow

COMPLETED = TaskStatus.COMPLETED.value


def status_rank():
    return case(STATUS_RANK, value=Task.status, else_=len(STATUS_RANK))


def priority_rank():
    return case(PRIORITY_RANK, value=Task.priority, else_=-1)


def next_order(project_id):
    """max(order) + 1 within the project, evaluated inside the INSERT itself."""
    return (
        select(func.coalesce(func.max(Task.order), 0) + 1)
        .where(Task.project_id == project_id)
        .correlate(None)
        .scalar_subquery()
    )


def apply_status(task: Task, new_status: str, now: datetime | None = None) -> None:
    """Set status; completedAt is stamped on entering COMPLETED and cleared on any other status."""
    if new_status == COMPLETED:
        if task.status != COMPLETED or task.completed_at is None:
            task.completed_at = now or utcnow()
    else:
        task.completed_at = None
    task.status = new_status


def completed_at_value(new_status: str, now: datetime | None = None):
    """SQL-side counterpart of apply_status, for bulk UPDATE statements."""
    if new_status == COMPLETED:
        return func.coalesce(Task.completed_at, now or utcnow())
    return None
