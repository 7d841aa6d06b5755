# taskhub/routers/tasks.py
import logging
from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query, Response, status
from sqlalchemy import func, or_, select, update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from taskhub.core.auth import get_current_user
from taskhub.core.errors import BadRequestError, ForbiddenError, NotFoundError
from taskhub.core.pagination import PageParams
from taskhub.database import get_db
from taskhub.models import Comment, Project, Tag, Task, User
from taskhub.models.enums import Priority, TaskStatus
from taskhub.schemas.common import Envelope
from taskhub.schemas.task import (
    CommentCreate, CommentResponse, ReorderRequest, TaskCreate, TaskDetail, TaskResponse, TaskUpdate,
)
from taskhub.services.access import can_delete_comment, check_task_access, get_owned_project, visible_tasks_clause
from taskhub.services.tasks import apply_status, completed_at_value, next_order, priority_rank
from taskhub.utils.response import created_response, paginated_response, success_response
from taskhub.utils.time import utcnow

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/tasks", tags=["tasks"])

TASK_STATUSES = {s.value for s in TaskStatus}
PRIORITIES = {p.value for p in Priority}

SORT_COLUMNS = {
    "createdAt": lambda: Task.created_at,
    "updatedAt": lambda: Task.updated_at,
    "dueDate": lambda: Task.due_date,
    "priority": priority_rank,
    "title": lambda: Task.title,
}


def task_options(detail: bool = False):
    options = [
        selectinload(Task.project),
        selectinload(Task.creator),
        selectinload(Task.assignee),
        selectinload(Task.tags),
    ]
    if detail:
        options.append(selectinload(Task.comments).selectinload(Comment.author))
    return options


async def reload_task(db: AsyncSession, task_id, detail: bool = False) -> Task:
    result = await db.execute(
        select(Task)
        .options(*task_options(detail))
        .where(Task.id == task_id)
        .execution_options(populate_existing=True)
    )
    return result.scalar_one()


async def resolve_tags(db: AsyncSession, tag_ids: Optional[List[UUID]]) -> List[Tag]:
    if not tag_ids:
        return []
    wanted = set(tag_ids)
    result = await db.execute(select(Tag).where(Tag.id.in_(wanted)))
    tags = result.scalars().all()
    if len(tags) != len(wanted):
        raise NotFoundError("One or more tags not found")
    return list(tags)


async def ensure_assignee(db: AsyncSession, assignee_id) -> None:
    if assignee_id is None:
        return
    found = await db.execute(select(User.id).where(User.id == assignee_id))
    if found.scalar_one_or_none() is None:
        raise BadRequestError("Assignee not found")


@router.get("", response_model=Envelope[List[TaskResponse]])
async def list_tasks(
    paging: PageParams = Depends(),
    project_id: Optional[UUID] = Query(None, alias="projectId"),
    status_filter: Optional[str] = Query(None, alias="status"),
    priority: Optional[str] = None,
    assignee_id: Optional[UUID] = Query(None, alias="assigneeId"),
    search: Optional[str] = None,
    sort_by: str = Query("createdAt", alias="sortBy"),
    sort_order: str = Query("desc", alias="sortOrder"),
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    filters = []
    if not current_user.is_admin:
        filters.append(visible_tasks_clause(current_user))
    if project_id:
        filters.append(Task.project_id == project_id)
    # unknown enum values are ignored rather than rejected
    if status_filter in TASK_STATUSES:
        filters.append(Task.status == status_filter)
    if priority in PRIORITIES:
        filters.append(Task.priority == priority)
    if assignee_id:
        filters.append(Task.assignee_id == assignee_id)
    if search:
        filters.append(or_(
            Task.title.icontains(search, autoescape=True),
            Task.description.icontains(search, autoescape=True),
        ))

    if sort_by in SORT_COLUMNS:
        column = SORT_COLUMNS[sort_by]()
        ordering = column.asc() if sort_order == "asc" else column.desc()
    else:
        ordering = Task.created_at.desc()

    total = (await db.execute(select(func.count(Task.id)).where(*filters))).scalar_one()
    result = await db.execute(
        select(Task)
        .options(*task_options())
        .where(*filters)
        .order_by(ordering, Task.id)
        .offset(paging.offset)
        .limit(paging.limit)
    )
    return paginated_response(result.scalars().all(), paging.page, paging.limit, total)


@router.post("", response_model=Envelope[TaskResponse], status_code=status.HTTP_201_CREATED)
async def create_task(
    task_in: TaskCreate,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    # Row lock serialises concurrent creates in the same project so `order` stays unique
    project = await get_owned_project(
        db, task_in.project_id, current_user,
        "You do not have permission to add tasks to this project",
        lock=True,
    )
    await ensure_assignee(db, task_in.assignee_id)
    tags = await resolve_tags(db, task_in.tag_ids)

    task = Task(
        title=task_in.title,
        description=task_in.description,
        priority=(task_in.priority or Priority.MEDIUM).value,
        due_date=task_in.due_date,
        order=next_order(project.id),
        project_id=project.id,
        creator_id=current_user.id,
        assignee_id=task_in.assignee_id,
        tags=tags,
    )
    apply_status(task, (task_in.status or TaskStatus.TODO).value)
    db.add(task)
    await db.commit()
    logger.info("User %s created task %s in project %s", current_user.id, task.id, project.id)

    return created_response(await reload_task(db, task.id), "Task created successfully")


@router.patch("/reorder", response_model=Envelope)
async def reorder_tasks(
    body: ReorderRequest,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """Apply every (order, status) pair atomically; one unknown id rolls the whole batch back."""
    await get_owned_project(
        db, body.project_id, current_user, "You do not have permission to reorder tasks in this project"
    )
    now = utcnow()
    try:
        for item in body.tasks:
            values = {"order": item.order}
            if item.status is not None:
                values["status"] = item.status.value
                values["completed_at"] = completed_at_value(item.status.value, now)
            result = await db.execute(
                update(Task)
                .where(Task.id == item.id, Task.project_id == body.project_id)
                .values(**values)
                .execution_options(synchronize_session=False)
            )
            if result.rowcount == 0:
                raise NotFoundError(f"Task {item.id} not found in this project")
        await db.commit()
    except Exception:
        await db.rollback()
        raise

    return success_response(None, "Tasks reordered successfully")


@router.get("/{task_id}", response_model=Envelope[TaskDetail])
async def get_task(
    task_id: UUID,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    task = await check_task_access(db, task_id, current_user)
    return success_response(await reload_task(db, task.id, detail=True))


@router.put("/{task_id}", response_model=Envelope[TaskResponse])
async def update_task(
    task_id: UUID,
    task_in: TaskUpdate,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    task = await check_task_access(db, task_id, current_user)
    changes = task_in.model_dump(exclude_unset=True)

    if changes.get("tag_ids") is not None:
        tags = await resolve_tags(db, changes["tag_ids"])
        # the old collection must be loaded before it can be replaced
        await db.refresh(task, attribute_names=["tags"])
        task.tags = tags
    for field in ("title", "priority", "order"):
        if changes.get(field) is not None:
            value = changes[field]
            setattr(task, field, value.value if field == "priority" else value)
    # these may be cleared with an explicit null
    if "description" in changes:
        task.description = changes["description"]
    if "due_date" in changes:
        task.due_date = changes["due_date"]
    if "assignee_id" in changes:
        await ensure_assignee(db, changes["assignee_id"])
        task.assignee_id = changes["assignee_id"]
    if changes.get("status") is not None:
        apply_status(task, changes["status"].value)

    await db.commit()
    return success_response(await reload_task(db, task.id), "Task updated successfully")


@router.delete("/{task_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_task(
    task_id: UUID,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    task = await check_task_access(db, task_id, current_user)
    await db.delete(task)
    await db.commit()
    logger.info("User %s deleted task %s", current_user.id, task_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post("/{task_id}/comments", response_model=Envelope[CommentResponse], status_code=status.HTTP_201_CREATED)
async def add_comment(
    task_id: UUID,
    comment_in: CommentCreate,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    task = await check_task_access(db, task_id, current_user)
    comment = Comment(content=comment_in.content, task_id=task.id, author_id=current_user.id)
    db.add(comment)
    await db.commit()

    result = await db.execute(
        select(Comment)
        .options(selectinload(Comment.author))
        .where(Comment.id == comment.id)
        .execution_options(populate_existing=True)
    )
    return created_response(result.scalar_one(), "Comment added successfully")


@router.delete("/{task_id}/comments/{comment_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_comment(
    task_id: UUID,
    comment_id: UUID,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    result = await db.execute(
        select(Comment, Task, Project.owner_id)
        .join(Task, Task.id == Comment.task_id)
        .join(Project, Project.id == Task.project_id)
        .where(Comment.id == comment_id)
    )
    row = result.first()
    if row is None:
        raise NotFoundError("Comment not found")
    comment, task, owner_id = row
    if comment.task_id != task_id:
        raise BadRequestError("Comment does not belong to this task")
    if not can_delete_comment(comment, task, owner_id, current_user):
        raise ForbiddenError("You do not have permission to delete this comment")

    await db.delete(comment)
    await db.commit()
    return Response(status_code=status.HTTP_204_NO_CONTENT)
