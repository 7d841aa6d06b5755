from datetime import datetime, timezone
from types import SimpleNamespace

from taskhub.services.stats import (
    completion_rate, productivity_series, round_half_up, summarize_dashboard,
)
from taskhub.utils.time import start_of_week
from tests.conftest import create_project, create_task

# A Wednesday
NOW = datetime(2024, 5, 15, 12, 0, tzinfo=timezone.utc)


def row(status="TODO", priority="MEDIUM", due=None, completed=None):
    return SimpleNamespace(status=status, priority=priority, due_date=due, completed_at=completed)


def utc(*args):
    return datetime(*args, tzinfo=timezone.utc)


class TestRounding:

    def test_half_rounds_up(self):
        assert round_half_up(2.5) == 3
        assert round_half_up(0.5) == 1
        assert round_half_up(33.3) == 33

    def test_completion_rate(self):
        assert completion_rate(0, 0) == 0
        assert completion_rate(1, 3) == 33
        assert completion_rate(2, 3) == 67
        assert completion_rate(1, 8) == 13


class TestWeekBoundaries:

    def test_week_starts_on_sunday(self):
        assert start_of_week(NOW) == utc(2024, 5, 12)

    def test_sunday_is_its_own_week_start(self):
        assert start_of_week(utc(2024, 5, 12, 23, 59)) == utc(2024, 5, 12)


class TestDashboardReduction:

    def test_figures(self):
        rows = [
            row(due=utc(2024, 5, 14)),                                     # overdue
            row(due=utc(2024, 5, 15, 18), priority="HIGH"),                # due today
            row(status="IN_PROGRESS", due=utc(2024, 5, 17)),               # due this week
            row(status="COMPLETED", due=utc(2024, 5, 1), completed=utc(2024, 5, 13)),
            row(status="COMPLETED", priority="LOW", completed=utc(2024, 5, 10)),
        ]
        stats = summarize_dashboard(rows, total_projects=2, now=NOW)

        assert stats["total_tasks"] == 5
        assert stats["completed_tasks"] == 2
        assert stats["total_projects"] == 2
        assert stats["overdue"] == 1
        assert stats["due_today"] == 1
        assert stats["due_this_week"] == 2
        assert stats["completed_this_week"] == 1
        assert stats["completion_rate"] == 40
        assert stats["tasks_by_status"] == {"todo": 2, "in_progress": 1, "in_review": 0, "completed": 2}
        assert stats["tasks_by_priority"] == {"low": 1, "medium": 3, "high": 1, "urgent": 0}

    def test_naive_datetimes_are_treated_as_utc(self):
        stats = summarize_dashboard([row(due=datetime(2024, 5, 14))], total_projects=0, now=NOW)
        assert stats["overdue"] == 1

    def test_empty(self):
        stats = summarize_dashboard([], total_projects=0, now=NOW)
        assert stats["completion_rate"] == 0
        assert stats["total_tasks"] == 0


class TestProductivitySeries:

    def test_dense_and_ascending(self):
        series = productivity_series(
            [utc(2024, 5, 14, 10), utc(2024, 5, 15, 1), utc(2024, 5, 15, 11), utc(2024, 5, 12)],
            days=3,
            now=NOW,
        )
        assert series == [
            {"date": "2024-05-13", "count": 0},
            {"date": "2024-05-14", "count": 1},
            {"date": "2024-05-15", "count": 2},
        ]

    def test_single_day(self):
        assert productivity_series([], days=1, now=NOW) == [{"date": "2024-05-15", "count": 0}]


class TestStatsEndpoints:

    async def test_dashboard_scope(self, client, alice, bob):
        mine = await create_project(client, alice)
        theirs = await create_project(client, bob, "Bob's")
        await create_task(client, alice, mine["id"], "Mine", status="COMPLETED")
        await create_task(client, alice, mine["id"], "Also mine", priority="URGENT")
        await create_task(client, bob, theirs["id"], "Assigned to alice", assigneeId=alice["user"]["id"])
        await create_task(client, bob, theirs["id"], "Not visible")

        response = await client.get("/api/stats/dashboard", headers=alice["headers"])
        stats = response.json()["data"]
        assert response.status_code == 200
        assert stats["totalTasks"] == 3
        assert stats["completedTasks"] == 1
        assert stats["totalProjects"] == 1
        assert stats["completionRate"] == 33
        assert stats["completedThisWeek"] == 1
        assert stats["tasksByPriority"]["urgent"] == 1
        assert stats["tasksByStatus"]["todo"] == 2

    async def test_productivity(self, client, alice):
        project = await create_project(client, alice)
        await create_task(client, alice, project["id"], "Done today", status="COMPLETED")

        response = await client.get("/api/stats/productivity", params={"days": 7}, headers=alice["headers"])
        stats = response.json()["data"]
        assert len(stats["productivity"]) == 7
        assert stats["productivity"][-1]["count"] == 1
        assert stats["totalCompleted"] == 1
        assert stats["averagePerDay"] == 1 / 7

    async def test_productivity_bounds(self, client, alice):
        response = await client.get("/api/stats/productivity", params={"days": 366}, headers=alice["headers"])
        assert response.status_code == 422

    async def test_activity(self, client, alice):
        project = await create_project(client, alice)
        older = await create_task(client, alice, project["id"], "Older")
        newer = await create_task(client, alice, project["id"], "Newer")
        await client.post(f"/api/tasks/{older['id']}/comments", json={"content": "note"}, headers=alice["headers"])

        response = await client.get("/api/stats/activity", params={"limit": 5}, headers=alice["headers"])
        activity = response.json()["data"]
        assert [t["id"] for t in activity["recentTasks"]] == [newer["id"], older["id"]]
        assert activity["recentTasks"][0]["project"]["name"] == project["name"]
        assert activity["recentComments"][0]["task"] == {"id": older["id"], "title": "Older"}
        assert activity["recentComments"][0]["author"]["firstName"] == "Alice"

    async def test_activity_limit_bounds(self, client, alice):
        assert (await client.get("/api/stats/activity", params={"limit": 0}, headers=alice["headers"])).status_code == 422
        assert (await client.get("/api/stats/activity", params={"limit": 51}, headers=alice["headers"])).status_code == 422
