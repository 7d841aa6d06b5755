"""
Authorization rules shared by the project, task and stats routers.
"""
from sqlalchemy import or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from taskhub.core.errors import ForbiddenError, NotFoundError
from taskhub.models import Comment, Project, Task, User


def visible_tasks_clause(user: User):
    """Tasks a user may see: created by, assigned to, or in a project owned by them."""
    return or_(
        Task.creator_id == user.id,
        Task.assignee_id == user.id,
        Task.project_id.in_(select(Project.id).where(Project.owner_id == user.id)),
    )


def can_access_task(task: Task, owner_id, user: User) -> bool:
    return (
        user.is_admin
        or task.creator_id == user.id
        or task.assignee_id == user.id
        or owner_id == user.id
    )


def can_delete_comment(comment: Comment, task: Task, owner_id, user: User) -> bool:
    return comment.author_id == user.id or (
        user.is_admin or task.creator_id == user.id or owner_id == user.id
    )


async def get_owned_project(
    db: AsyncSession,
    project_id,
    user: User,
    forbidden_message: str = "You do not have access to this project",
    lock: bool = False,
) -> Project:
    stmt = select(Project).where(Project.id == project_id)
    if lock:
        stmt = stmt.with_for_update()
    result = await db.execute(stmt)
    project = result.scalar_one_or_none()
    if project is None:
        raise NotFoundError("Project not found")
    if project.owner_id != user.id and not user.is_admin:
        raise ForbiddenError(forbidden_message)
    return project


async def check_task_access(db: AsyncSession, task_id, user: User) -> Task:
    result = await db.execute(
        select(Task, Project.owner_id).join(Project, Project.id == Task.project_id).where(Task.id == task_id)
    )
    row = result.first()
    if row is None:
        raise NotFoundError("Task not found")
    task, owner_id = row
    if not can_access_task(task, owner_id, user):
        raise ForbiddenError("You do not have access to this task")
    return task
