# taskhub/routers/users.py
from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query
from sqlalchemy import func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from taskhub.core.auth import get_current_user
from taskhub.core.errors import NotFoundError
from taskhub.core.pagination import PageParams
from taskhub.database import get_db
from taskhub.models import User
from taskhub.schemas.common import Envelope
from taskhub.schemas.user import UserContact, UserWithCounts
from taskhub.utils.response import paginated_response, success_response

router = APIRouter(prefix="/users", tags=["users"])

MIN_SEARCH_LENGTH = 2


def matches(term: str):
    # literal substring match; % and _ in the term are escaped
    return or_(*(column.icontains(term, autoescape=True) for column in (User.email, User.first_name, User.last_name)))


@router.get("", response_model=Envelope[List[UserWithCounts]])
async def list_users(
    paging: PageParams = Depends(),
    search: Optional[str] = None,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    filters = [matches(search)] if search else []
    total = (await db.execute(select(func.count(User.id)).where(*filters))).scalar_one()
    result = await db.execute(
        select(User)
        .where(*filters)
        .order_by(User.first_name.asc(), User.id)
        .offset(paging.offset)
        .limit(paging.limit)
    )
    return paginated_response(result.scalars().all(), paging.page, paging.limit, total)


# declared before /{user_id} so "search" is not parsed as an id
@router.get("/search", response_model=Envelope[List[UserContact]])
async def search_users(
    q: Optional[str] = None,
    limit: int = Query(10, ge=1, le=50),
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    if not q or len(q) < MIN_SEARCH_LENGTH:
        return success_response([])
    result = await db.execute(
        select(User).where(matches(q)).order_by(User.first_name.asc()).limit(limit)
    )
    return success_response(result.scalars().all())


@router.get("/{user_id}", response_model=Envelope[UserWithCounts])
async def get_user(
    user_id: UUID,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    result = await db.execute(select(User).where(User.id == user_id))
    user = result.scalar_one_or_none()
    if user is None:
        raise NotFoundError("User not found")
    return success_response(user)
