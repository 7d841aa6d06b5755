# taskhub/routers/tags.py
from typing import List
from uuid import UUID

from fastapi import APIRouter, Depends, Response, status
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from taskhub.core.auth import get_current_user
from taskhub.core.errors import ConflictError, NotFoundError
from taskhub.database import get_db
from taskhub.models import Tag, Task, User, task_tags
from taskhub.schemas.common import Envelope
from taskhub.schemas.tag import TagCreate, TagDetail, TagTaskItem, TagUpdate, TagWithCount
from taskhub.utils.response import created_response, success_response

router = APIRouter(prefix="/tags", tags=["tags"])

TAG_TASK_PREVIEW = 10


async def get_tag_or_404(db: AsyncSession, tag_id) -> Tag:
    result = await db.execute(select(Tag).where(Tag.id == tag_id).execution_options(populate_existing=True))
    tag = result.scalar_one_or_none()
    if tag is None:
        raise NotFoundError("Tag not found")
    return tag


async def ensure_name_free(db: AsyncSession, name: str) -> None:
    existing = await db.execute(select(Tag.id).where(Tag.name == name))
    if existing.scalar_one_or_none() is not None:
        raise ConflictError("Tag with this name already exists")


@router.get("", response_model=Envelope[List[TagWithCount]])
async def list_tags(
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    result = await db.execute(select(Tag).order_by(Tag.name.asc()))
    return success_response(result.scalars().all())


@router.get("/{tag_id}", response_model=Envelope[TagDetail])
async def get_tag(
    tag_id: UUID,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    tag = await get_tag_or_404(db, tag_id)
    tasks = await db.execute(
        select(Task)
        .join(task_tags, task_tags.c.task_id == Task.id)
        .where(task_tags.c.tag_id == tag.id)
        .order_by(Task.created_at.desc())
        .limit(TAG_TASK_PREVIEW)
    )
    return success_response(TagDetail(
        **TagWithCount.model_validate(tag).model_dump(),
        tasks=[TagTaskItem.model_validate(t) for t in tasks.scalars().all()],
    ))


@router.post("", response_model=Envelope[TagWithCount], status_code=status.HTTP_201_CREATED)
async def create_tag(
    tag_in: TagCreate,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    await ensure_name_free(db, tag_in.name)
    tag = Tag(name=tag_in.name)
    if tag_in.color:
        tag.color = tag_in.color
    db.add(tag)
    await db.commit()
    return created_response(await get_tag_or_404(db, tag.id), "Tag created successfully")


@router.put("/{tag_id}", response_model=Envelope[TagWithCount])
async def update_tag(
    tag_id: UUID,
    tag_in: TagUpdate,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    tag = await get_tag_or_404(db, tag_id)
    if tag_in.name and tag_in.name != tag.name:
        await ensure_name_free(db, tag_in.name)
        tag.name = tag_in.name
    if tag_in.color:
        tag.color = tag_in.color
    await db.commit()
    return success_response(await get_tag_or_404(db, tag.id), "Tag updated successfully")


@router.delete("/{tag_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_tag(
    tag_id: UUID,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    tag = await get_tag_or_404(db, tag_id)
    # join rows go with it; the tasks stay
    await db.delete(tag)
    await db.commit()
    return Response(status_code=status.HTTP_204_NO_CONTENT)
