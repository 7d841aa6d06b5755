# taskhub/routers/stats.py
from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from taskhub.core.auth import get_current_user
from taskhub.database import get_db
from taskhub.models import User
from taskhub.schemas.common import Envelope
from taskhub.schemas.stats import DashboardStats, ProductivityStats, RecentActivity
from taskhub.services import stats as stats_service
from taskhub.utils.response import success_response

router = APIRouter(prefix="/stats", tags=["stats"])


@router.get("/dashboard", response_model=Envelope[DashboardStats])
async def get_dashboard_stats(
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return success_response(await stats_service.dashboard_stats(db, current_user))


@router.get("/activity", response_model=Envelope[RecentActivity])
async def get_recent_activity(
    limit: int = Query(10, ge=1, le=50),
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return success_response(await stats_service.recent_activity(db, current_user, limit))


@router.get("/productivity", response_model=Envelope[ProductivityStats])
async def get_productivity_stats(
    days: int = Query(30, ge=1, le=365),
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return success_response(await stats_service.productivity_stats(db, current_user, days))
