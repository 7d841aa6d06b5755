"""
Statistics for the dashboard, productivity chart, activity feed and per-project stats.

Dashboard figures are reduced in Python from a single fetch of the visible
task rows. Per-project figures are counted by the database.
"""
import math
from datetime import datetime, timedelta
from typing import Iterable, Sequence

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from taskhub.models import Comment, Project, Task, User
from taskhub.models.enums import Priority, TaskStatus
from taskhub.services.access import visible_tasks_clause
from taskhub.utils.time import as_utc, start_of_day, start_of_week, utcnow

STATUS_KEYS = {
    TaskStatus.TODO.value: "todo",
    TaskStatus.IN_PROGRESS.value: "in_progress",
    TaskStatus.IN_REVIEW.value: "in_review",
    TaskStatus.COMPLETED.value: "completed",
}
PRIORITY_KEYS = {p.value: p.value.lower() for p in Priority}


def round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def completion_rate(completed: int, total: int) -> int:
    if total <= 0:
        return 0
    return round_half_up(completed / total * 100)


def status_breakdown(statuses: Iterable[str]) -> dict:
    counts = {key: 0 for key in STATUS_KEYS.values()}
    for value in statuses:
        key = STATUS_KEYS.get(value)
        if key:
            counts[key] += 1
    return counts


def priority_breakdown(priorities: Iterable[str]) -> dict:
    counts = {key: 0 for key in PRIORITY_KEYS.values()}
    for value in priorities:
        key = PRIORITY_KEYS.get(value)
        if key:
            counts[key] += 1
    return counts


def summarize_dashboard(tasks: Sequence, total_projects: int, now: datetime) -> dict:
    """
    Reduce task rows (anything with status, priority, due_date, completed_at)
    to the dashboard figures. Day and week boundaries are taken from `now`.
    """
    today = start_of_day(now)
    tomorrow = today + timedelta(days=1)
    week_start = start_of_week(now)
    week_end = week_start + timedelta(days=7)

    completed = overdue = due_today = due_this_week = completed_this_week = 0
    for task in tasks:
        is_completed = task.status == TaskStatus.COMPLETED.value
        due = as_utc(task.due_date)
        done_at = as_utc(task.completed_at)

        if is_completed:
            completed += 1
        else:
            if due is not None and due < today:
                overdue += 1
            if due is not None and today <= due < tomorrow:
                due_today += 1
            if due is not None and today <= due < week_end:
                due_this_week += 1

        if done_at is not None and done_at >= week_start:
            completed_this_week += 1

    return {
        "tasks_by_status": status_breakdown(t.status for t in tasks),
        "tasks_by_priority": priority_breakdown(t.priority for t in tasks),
        "total_tasks": len(tasks),
        "completed_tasks": completed,
        "total_projects": total_projects,
        "overdue": overdue,
        "due_today": due_today,
        "due_this_week": due_this_week,
        "completion_rate": completion_rate(completed, len(tasks)),
        "completed_this_week": completed_this_week,
    }


def productivity_window_start(days: int, now: datetime) -> datetime:
    return start_of_day(now) - timedelta(days=days - 1)


def productivity_series(completed_ats: Iterable[datetime], days: int, now: datetime) -> list:
    """Dense, ascending date -> count series for the trailing `days` days ending today."""
    start = productivity_window_start(days, now)
    buckets = {(start + timedelta(days=i)).date().isoformat(): 0 for i in range(days)}
    for value in completed_ats:
        value = as_utc(value)
        if value is None:
            continue
        key = value.date().isoformat()
        if key in buckets:
            buckets[key] += 1
    return [{"date": day, "count": count} for day, count in sorted(buckets.items())]


async def dashboard_stats(db: AsyncSession, user: User, now: datetime | None = None) -> dict:
    now = now or utcnow()
    projects = await db.execute(select(func.count(Project.id)).where(Project.owner_id == user.id))
    total_projects = projects.scalar_one() or 0

    rows = await db.execute(
        select(Task.status, Task.priority, Task.due_date, Task.completed_at).where(visible_tasks_clause(user))
    )
    return summarize_dashboard(rows.all(), total_projects, now)


async def productivity_stats(db: AsyncSession, user: User, days: int, now: datetime | None = None) -> dict:
    now = now or utcnow()
    start = productivity_window_start(days, now)
    result = await db.execute(
        select(Task.completed_at)
        .where(visible_tasks_clause(user))
        .where(Task.completed_at.isnot(None))
        .where(Task.completed_at >= start)
        .order_by(Task.completed_at)
    )
    series = productivity_series(result.scalars().all(), days, now)
    total = sum(point["count"] for point in series)
    return {
        "productivity": series,
        "total_completed": total,
        "average_per_day": total / days,
    }


async def recent_activity(db: AsyncSession, user: User, limit: int) -> dict:
    tasks = await db.execute(
        select(Task)
        .options(selectinload(Task.project), selectinload(Task.assignee))
        .where(visible_tasks_clause(user))
        .order_by(Task.updated_at.desc())
        .limit(limit)
    )
    comments = await db.execute(
        select(Comment)
        .options(selectinload(Comment.author), selectinload(Comment.task))
        .join(Task, Task.id == Comment.task_id)
        .where(visible_tasks_clause(user))
        .order_by(Comment.created_at.desc())
        .limit(limit)
    )
    return {
        "recent_tasks": tasks.scalars().all(),
        "recent_comments": comments.scalars().all(),
    }


async def project_stats(db: AsyncSession, project_id) -> dict:
    by_status = await db.execute(
        select(Task.status, func.count(Task.id)).where(Task.project_id == project_id).group_by(Task.status)
    )
    by_priority = await db.execute(
        select(Task.priority, func.count(Task.id)).where(Task.project_id == project_id).group_by(Task.priority)
    )

    statuses = {key: 0 for key in STATUS_KEYS.values()}
    for value, count in by_status.all():
        if value in STATUS_KEYS:
            statuses[STATUS_KEYS[value]] = count
    priorities = {key: 0 for key in PRIORITY_KEYS.values()}
    for value, count in by_priority.all():
        if value in PRIORITY_KEYS:
            priorities[PRIORITY_KEYS[value]] = count

    total = sum(statuses.values())
    return {
        "total": total,
        "by_status": statuses,
        "by_priority": priorities,
        "completion_rate": completion_rate(statuses["completed"], total),
    }
