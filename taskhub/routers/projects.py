# taskhub/routers/projects.py
import logging
from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query, Response, status
from sqlalchemy import func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from taskhub.core.auth import get_current_user
from taskhub.core.pagination import PageParams
from taskhub.database import get_db
from taskhub.models import Project, Task, User
from taskhub.models.enums import ProjectStatus, TaskStatus
from taskhub.schemas.common import Envelope
from taskhub.schemas.project import (
    ProjectCreate, ProjectDetail, ProjectListItem, ProjectResponse, ProjectStats, ProjectTaskItem, ProjectTaskStats,
    ProjectUpdate,
)
from taskhub.schemas.user import UserContact
from taskhub.services import stats as stats_service
from taskhub.services.access import get_owned_project
from taskhub.services.tasks import priority_rank, status_rank
from taskhub.utils.response import created_response, paginated_response, success_response

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/projects", tags=["projects"])

PROJECT_STATUSES = {s.value for s in ProjectStatus}


async def reload_project(db: AsyncSession, project_id) -> Project:
    result = await db.execute(
        select(Project).where(Project.id == project_id).execution_options(populate_existing=True)
    )
    return result.scalar_one()


async def task_stats_for(db: AsyncSession, project_ids: List[UUID]) -> dict:
    """{project_id: {status: count}} for the given projects, in one grouped query."""
    if not project_ids:
        return {}
    result = await db.execute(
        select(Task.project_id, Task.status, func.count(Task.id))
        .where(Task.project_id.in_(project_ids))
        .group_by(Task.project_id, Task.status)
    )
    grouped: dict = {}
    for project_id, task_status, count in result.all():
        grouped.setdefault(project_id, {})[task_status] = count
    return grouped


@router.get("", response_model=Envelope[List[ProjectListItem]])
async def list_projects(
    paging: PageParams = Depends(),
    status_filter: Optional[str] = Query(None, alias="status"),
    search: Optional[str] = None,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    # Owned projects only
    filters = [Project.owner_id == current_user.id]
    if status_filter in PROJECT_STATUSES:
        filters.append(Project.status == status_filter)
    if search:
        filters.append(or_(
            Project.name.icontains(search, autoescape=True),
            Project.description.icontains(search, autoescape=True),
        ))

    total = (await db.execute(select(func.count(Project.id)).where(*filters))).scalar_one()
    result = await db.execute(
        select(Project)
        .where(*filters)
        .order_by(Project.updated_at.desc())
        .offset(paging.offset)
        .limit(paging.limit)
    )
    projects = result.scalars().all()

    grouped = await task_stats_for(db, [p.id for p in projects])
    items = []
    for project in projects:
        counts = grouped.get(project.id, {})
        items.append(ProjectListItem(
            **ProjectResponse.model_validate(project).model_dump(),
            task_stats=ProjectTaskStats(
                total=sum(counts.values()),
                completed=counts.get(TaskStatus.COMPLETED.value, 0),
                in_progress=counts.get(TaskStatus.IN_PROGRESS.value, 0),
                todo=counts.get(TaskStatus.TODO.value, 0),
            ),
        ))

    return paginated_response(items, paging.page, paging.limit, total)


@router.post("", response_model=Envelope[ProjectResponse], status_code=status.HTTP_201_CREATED)
async def create_project(
    project_in: ProjectCreate,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    project = Project(
        name=project_in.name,
        description=project_in.description,
        icon=project_in.icon,
        owner_id=current_user.id,
    )
    if project_in.color:
        project.color = project_in.color
    db.add(project)
    await db.commit()
    logger.info("User %s created project %s", current_user.id, project.id)

    return created_response(await reload_project(db, project.id), "Project created successfully")


@router.get("/{project_id}", response_model=Envelope[ProjectDetail])
async def get_project(
    project_id: UUID,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    project = await get_owned_project(db, project_id, current_user)
    project = (await db.execute(
        select(Project)
        .options(selectinload(Project.owner))
        .where(Project.id == project.id)
        .execution_options(populate_existing=True)
    )).scalar_one()

    tasks = await db.execute(
        select(Task)
        .options(selectinload(Task.assignee), selectinload(Task.tags))
        .where(Task.project_id == project.id)
        .order_by(status_rank(), priority_rank().desc(), Task.order.asc())
    )

    return success_response(ProjectDetail(
        **ProjectResponse.model_validate(project).model_dump(),
        owner=UserContact.model_validate(project.owner),
        tasks=[ProjectTaskItem.model_validate(t) for t in tasks.scalars().all()],
    ))


@router.put("/{project_id}", response_model=Envelope[ProjectResponse])
async def update_project(
    project_id: UUID,
    project_in: ProjectUpdate,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    project = await get_owned_project(
        db, project_id, current_user, "You do not have permission to update this project"
    )

    changes = project_in.model_dump(exclude_unset=True)
    for field, value in changes.items():
        # name, color and status cannot be cleared
        if value is None and field in ("name", "color", "status"):
            continue
        if field == "status":
            value = ProjectStatus(value).value
        setattr(project, field, value)

    await db.commit()
    return success_response(await reload_project(db, project.id), "Project updated successfully")


@router.delete("/{project_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_project(
    project_id: UUID,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    project = await get_owned_project(
        db, project_id, current_user, "You do not have permission to delete this project"
    )
    # Tasks, their comments and tag links go with it (ON DELETE CASCADE)
    await db.delete(project)
    await db.commit()
    logger.info("User %s deleted project %s", current_user.id, project_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get("/{project_id}/stats", response_model=Envelope[ProjectStats])
async def get_project_stats(
    project_id: UUID,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    project = await get_owned_project(db, project_id, current_user)
    return success_response(await stats_service.project_stats(db, project.id))
