"""
Cached reads and invalidating writes over an :class:`ApiClient`.

Key layout: ``("projects", filters)``, ``("project", id)``,
``("tasks", filters)``, ``("task", id)``, ``("tags",)``,
``("stats", "dashboard")`` and ``("stats", "productivity", days)``.
"""
from typing import Optional

from taskhub.client.api import ApiClient
from taskhub.client.cache import QueryCache

TASK_KEYS = (("tasks",), ("stats",))
PROJECT_KEYS = (("projects",), ("stats",))


class Queries:
    def __init__(self, api: ApiClient, cache: Optional[QueryCache] = None):
        self.api = api
        self.cache = cache or QueryCache()

    # reads

    async def projects(self, **filters):
        return await self.cache.fetch(("projects", filters), lambda: self.api.projects.list(**filters))

    async def project(self, project_id: str):
        return await self.cache.fetch(("project", project_id), lambda: self.api.projects.get(project_id))

    async def tasks(self, **filters):
        return await self.cache.fetch(("tasks", filters), lambda: self.api.tasks.list(**filters))

    async def task(self, task_id: str):
        return await self.cache.fetch(("task", task_id), lambda: self.api.tasks.get(task_id))

    async def tags(self):
        return await self.cache.fetch(("tags",), self.api.tags.list)

    async def dashboard(self):
        return await self.cache.fetch(("stats", "dashboard"), self.api.stats.dashboard)

    async def productivity(self, days: int = 30):
        return await self.cache.fetch(("stats", "productivity", days), lambda: self.api.stats.productivity(days))

    # writes

    async def create_task(self, title: str, project_id: str, **fields):
        return await self.cache.mutate(
            lambda: self.api.tasks.create(title, project_id, **fields),
            invalidates=TASK_KEYS + (("project", project_id),),
        )

    async def update_task(self, task_id: str, **fields):
        return await self.cache.mutate(
            lambda: self.api.tasks.update(task_id, **fields),
            invalidates=TASK_KEYS + (("task", task_id), ("project",)),
        )

    async def delete_task(self, task_id: str):
        return await self.cache.mutate(
            lambda: self.api.tasks.delete(task_id),
            invalidates=TASK_KEYS + (("task", task_id), ("project",)),
        )

    async def reorder_tasks(self, project_id: str, tasks):
        return await self.cache.mutate(
            lambda: self.api.tasks.reorder(project_id, tasks),
            invalidates=TASK_KEYS + (("project", project_id),),
        )

    async def create_project(self, name: str, **fields):
        return await self.cache.mutate(lambda: self.api.projects.create(name, **fields), invalidates=PROJECT_KEYS)

    async def update_project(self, project_id: str, **fields):
        return await self.cache.mutate(
            lambda: self.api.projects.update(project_id, **fields),
            invalidates=PROJECT_KEYS + (("project", project_id),),
        )

    async def delete_project(self, project_id: str):
        return await self.cache.mutate(
            lambda: self.api.projects.delete(project_id),
            invalidates=PROJECT_KEYS + (("project", project_id), ("tasks",)),
        )

    async def create_tag(self, name: str, color: Optional[str] = None):
        return await self.cache.mutate(lambda: self.api.tags.create(name, color), invalidates=(("tags",),))
