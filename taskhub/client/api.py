"""
Async HTTP client for the TaskHub API.

Every response is unwrapped from the ``{success, data, meta, error}``
envelope. Failures raise :class:`ApiError`; a 401 also clears the
session in the :class:`AuthStore`.
"""
import logging
from typing import Any, List, Optional

import httpx
from pydantic.alias_generators import to_camel

from taskhub.client.stores import AuthStore

logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = "http://localhost:8000/api"


class ApiError(Exception):
    def __init__(self, status_code: int, code: str, message: str, errors: Optional[list] = None):
        super().__init__(message)
        self.status_code = status_code
        self.code = code
        self.message = message
        self.errors = errors or []

    def __repr__(self):
        return f"ApiError({self.status_code}, {self.code!r}, {self.message!r})"


def camelize(fields: dict) -> dict:
    return {to_camel(key): value for key, value in fields.items()}


def clean_params(params: dict) -> dict:
    return {key: value for key, value in camelize(params).items() if value is not None}


class ApiClient:
    def __init__(
        self,
        base_url: str = DEFAULT_BASE_URL,
        auth_store: Optional[AuthStore] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        timeout: float = 10.0,
    ):
        self.auth_store = auth_store or AuthStore()
        self._http = httpx.AsyncClient(
            base_url=base_url,
            transport=transport,
            timeout=timeout,
            headers={"Content-Type": "application/json"},
        )
        self.auth = AuthService(self)
        self.projects = ProjectService(self)
        self.tasks = TaskService(self)
        self.tags = TagService(self)
        self.users = UserService(self)
        self.stats = StatsService(self)

    async def __aenter__(self):
        return self

    async def __aexit__(self, *exc_info):
        await self.aclose()

    async def aclose(self) -> None:
        await self._http.aclose()

    async def request(
        self,
        method: str,
        path: str,
        params: Optional[dict] = None,
        json: Any = None,
        paginated: bool = False,
    ) -> Any:
        headers = {}
        if self.auth_store.token:
            headers["Authorization"] = f"Bearer {self.auth_store.token}"

        response = await self._http.request(
            method, path, params=clean_params(params or {}), json=json, headers=headers
        )

        if response.status_code == 401:
            self.auth_store.logout()
        if response.status_code == 204 or not response.content:
            body = {}
        else:
            try:
                body = response.json()
            except ValueError:
                body = {}

        if response.is_error:
            error = body.get("error") or {}
            logger.debug("%s %s failed with %s", method, path, response.status_code)
            raise ApiError(
                response.status_code,
                error.get("code", "HTTP_ERROR"),
                error.get("message", response.reason_phrase),
                error.get("errors"),
            )

        if paginated:
            return {"data": body.get("data") or [], "meta": body.get("meta")}
        return body.get("data")


class _Service:
    def __init__(self, client: ApiClient):
        self.client = client


class AuthService(_Service):
    async def register(self, email: str, password: str, first_name: str, last_name: str) -> dict:
        payload = camelize(dict(email=email, password=password, first_name=first_name, last_name=last_name))
        try:
            data = await self.client.request("POST", "/auth/register", json=payload)
        except ApiError as exc:
            self.client.auth_store.set_error(exc.message)
            raise
        self.client.auth_store.set_session(data["user"], data["token"])
        return data

    async def login(self, email: str, password: str) -> dict:
        try:
            data = await self.client.request("POST", "/auth/login", json={"email": email, "password": password})
        except ApiError as exc:
            self.client.auth_store.set_error(exc.message)
            raise
        self.client.auth_store.set_session(data["user"], data["token"])
        return data

    async def me(self) -> dict:
        return await self.client.request("GET", "/auth/me")

    async def check_auth(self) -> bool:
        """Validate a persisted token against the API; any failure signs out."""
        store = self.client.auth_store
        if not store.token:
            return False
        try:
            user = await self.me()
        except ApiError:
            store.logout()
            return False
        store.set_session(user, store.token)
        return True

    async def update_me(self, **fields) -> dict:
        user = await self.client.request("PUT", "/auth/me", json=camelize(fields))
        self.client.auth_store.update_user(**user)
        return user

    async def change_password(self, current_password: str, new_password: str) -> None:
        await self.client.request(
            "PUT", "/auth/password", json={"currentPassword": current_password, "newPassword": new_password}
        )

    def logout(self) -> None:
        self.client.auth_store.logout()


class ProjectService(_Service):
    async def list(self, page: int = 1, limit: int = 10, status: Optional[str] = None, search: Optional[str] = None):
        return await self.client.request(
            "GET", "/projects", params=dict(page=page, limit=limit, status=status, search=search), paginated=True
        )

    async def get(self, project_id: str) -> dict:
        return await self.client.request("GET", f"/projects/{project_id}")

    async def create(self, name: str, **fields) -> dict:
        return await self.client.request("POST", "/projects", json=camelize(dict(name=name, **fields)))

    async def update(self, project_id: str, **fields) -> dict:
        return await self.client.request("PUT", f"/projects/{project_id}", json=camelize(fields))

    async def delete(self, project_id: str) -> None:
        await self.client.request("DELETE", f"/projects/{project_id}")

    async def stats(self, project_id: str) -> dict:
        return await self.client.request("GET", f"/projects/{project_id}/stats")


class TaskService(_Service):
    async def list(self, **filters):
        """Filters: page, limit, project_id, status, priority, assignee_id, search, sort_by, sort_order."""
        return await self.client.request("GET", "/tasks", params=filters, paginated=True)

    async def get(self, task_id: str) -> dict:
        return await self.client.request("GET", f"/tasks/{task_id}")

    async def create(self, title: str, project_id: str, **fields) -> dict:
        payload = camelize(dict(title=title, project_id=project_id, **fields))
        return await self.client.request("POST", "/tasks", json=payload)

    async def update(self, task_id: str, **fields) -> dict:
        return await self.client.request("PUT", f"/tasks/{task_id}", json=camelize(fields))

    async def delete(self, task_id: str) -> None:
        await self.client.request("DELETE", f"/tasks/{task_id}")

    async def add_comment(self, task_id: str, content: str) -> dict:
        return await self.client.request("POST", f"/tasks/{task_id}/comments", json={"content": content})

    async def delete_comment(self, task_id: str, comment_id: str) -> None:
        await self.client.request("DELETE", f"/tasks/{task_id}/comments/{comment_id}")

    async def reorder(self, project_id: str, tasks: List[dict]) -> None:
        """`tasks` is a list of {"id", "order", "status"?} dicts."""
        await self.client.request("PATCH", "/tasks/reorder", json={"projectId": project_id, "tasks": tasks})


class TagService(_Service):
    async def list(self) -> List[dict]:
        return await self.client.request("GET", "/tags")

    async def get(self, tag_id: str) -> dict:
        return await self.client.request("GET", f"/tags/{tag_id}")

    async def create(self, name: str, color: Optional[str] = None) -> dict:
        return await self.client.request("POST", "/tags", json=clean_params(dict(name=name, color=color)))

    async def update(self, tag_id: str, **fields) -> dict:
        return await self.client.request("PUT", f"/tags/{tag_id}", json=camelize(fields))

    async def delete(self, tag_id: str) -> None:
        await self.client.request("DELETE", f"/tags/{tag_id}")


class UserService(_Service):
    async def list(self, page: int = 1, limit: int = 10, search: Optional[str] = None):
        return await self.client.request(
            "GET", "/users", params=dict(page=page, limit=limit, search=search), paginated=True
        )

    async def search(self, q: str, limit: int = 10) -> List[dict]:
        return await self.client.request("GET", "/users/search", params=dict(q=q, limit=limit))

    async def get(self, user_id: str) -> dict:
        return await self.client.request("GET", f"/users/{user_id}")


class StatsService(_Service):
    async def dashboard(self) -> dict:
        return await self.client.request("GET", "/stats/dashboard")

    async def activity(self, limit: int = 10) -> dict:
        return await self.client.request("GET", "/stats/activity", params=dict(limit=limit))

    async def productivity(self, days: int = 30) -> dict:
        return await self.client.request("GET", "/stats/productivity", params=dict(days=days))
