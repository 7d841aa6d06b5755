import asyncio

import pytest
import pytest_asyncio
from httpx import ASGITransport

from taskhub.client import ApiClient, ApiError, AuthStore, JsonFileStorage, QueryCache, ThemeStore, UIStore
from taskhub.client.cache import normalize_key
from taskhub.client.charts import moving_average, productivity_chart
from taskhub.client.queries import Queries
from taskhub.main import app


class FakeClock:
    def __init__(self):
        self.now = 0.0

    def __call__(self):
        return self.now


class Counter:
    """Async fetcher that returns how many times it has been called."""

    def __init__(self, delay: float = 0):
        self.calls = 0
        self.delay = delay

    async def __call__(self):
        self.calls += 1
        if self.delay:
            await asyncio.sleep(self.delay)
        return self.calls


class TestKeyNormalisation:

    def test_dict_order_does_not_matter(self):
        assert normalize_key(("tasks", {"a": 1, "b": 2})) == normalize_key(("tasks", {"b": 2, "a": 1}))

    def test_none_filters_are_dropped(self):
        assert normalize_key(("tasks", {"status": None, "page": 1})) == normalize_key(("tasks", {"page": 1}))

    def test_lists_become_tuples(self):
        key = normalize_key(["tasks", {"ids": [1, 2]}])
        assert key == ("tasks", (("ids", (1, 2)),))
        hash(key)

    def test_scalar_key(self):
        assert normalize_key("tags") == ("tags",)


class TestQueryCache:

    async def test_concurrent_fetches_share_one_request(self):
        cache = QueryCache()
        fetcher = Counter(delay=0.01)
        results = await asyncio.gather(*(cache.fetch(("tasks",), fetcher) for _ in range(5)))
        assert results == [1] * 5
        assert fetcher.calls == 1

    async def test_fresh_entries_come_from_cache(self):
        clock = FakeClock()
        cache = QueryCache(stale_time=10, clock=clock)
        fetcher = Counter()
        assert await cache.fetch(("tags",), fetcher) == 1
        clock.now = 5
        assert await cache.fetch(("tags",), fetcher) == 1
        assert fetcher.calls == 1

    async def test_stale_while_revalidate(self):
        clock = FakeClock()
        cache = QueryCache(stale_time=10, clock=clock)
        fetcher = Counter()
        await cache.fetch(("tags",), fetcher)

        clock.now = 11
        assert await cache.fetch(("tags",), fetcher) == 1
        await cache.wait_idle()
        assert cache.get(("tags",)) == 2
        assert not cache.is_stale(("tags",))

    async def test_invalidate_by_prefix(self):
        cache = QueryCache()
        cache.set(("tasks", {"page": 1}), "page one")
        cache.set(("tasks", {"page": 2}), "page two")
        cache.set(("projects",), "projects")

        assert cache.invalidate(("tasks",)) == 2
        assert cache.is_stale(("tasks", {"page": 1}))
        assert cache.is_stale(("tasks", {"page": 2}))
        assert not cache.is_stale(("projects",))

    async def test_mutate_invalidates_after_success(self):
        cache = QueryCache()
        cache.set(("tasks",), [])
        cache.set(("stats", "dashboard"), {})

        async def mutation():
            assert not cache.is_stale(("tasks",))
            return "created"

        assert await cache.mutate(mutation, invalidates=[("tasks",), ("stats",)]) == "created"
        assert cache.is_stale(("tasks",))
        assert cache.is_stale(("stats", "dashboard"))

    async def test_invalidate_during_refresh_keeps_entry_stale(self):
        clock = FakeClock()
        cache = QueryCache(stale_time=10, clock=clock)
        server = {"value": "v1"}
        gate = asyncio.Event()

        async def read():
            value = server["value"]
            await gate.wait()
            return value

        async def write():
            server["value"] = "v2"

        cache.set(("tasks",), "v0")
        clock.now = 11
        assert await cache.fetch(("tasks",), read) == "v0"
        await asyncio.sleep(0)

        await cache.mutate(write, invalidates=[("tasks",)])
        gate.set()
        await cache.wait_idle()
        assert cache.get(("tasks",)) == "v1"
        assert cache.is_stale(("tasks",))

        await cache.fetch(("tasks",), read)
        await cache.wait_idle()
        assert cache.get(("tasks",)) == "v2"
        assert not cache.is_stale(("tasks",))

    async def test_failed_mutation_leaves_cache_alone(self):
        cache = QueryCache()
        cache.set(("tasks",), [])

        async def mutation():
            raise RuntimeError("boom")

        with pytest.raises(RuntimeError):
            await cache.mutate(mutation, invalidates=[("tasks",)])
        assert not cache.is_stale(("tasks",))

    async def test_failed_fetch_is_not_cached(self):
        cache = QueryCache()

        async def failing():
            raise ApiError(500, "INTERNAL_ERROR", "nope")

        with pytest.raises(ApiError):
            await cache.fetch(("tasks",), failing)
        assert cache.get(("tasks",)) is None


class TestStores:

    def test_auth_store_persists_user_and_token(self, tmp_path):
        storage = JsonFileStorage(tmp_path / "state.json")
        store = AuthStore(storage)
        store.set_session({"id": "u1", "firstName": "Alice"}, "tok")
        store.set_error("ignored on reload")

        reloaded = AuthStore(JsonFileStorage(tmp_path / "state.json"))
        assert reloaded.token == "tok"
        assert reloaded.user == {"id": "u1", "firstName": "Alice"}
        assert reloaded.is_authenticated
        assert reloaded.error is None

    def test_logout_clears_persisted_session(self, tmp_path):
        storage = JsonFileStorage(tmp_path / "state.json")
        store = AuthStore(storage)
        store.set_session({"id": "u1"}, "tok")
        store.logout()
        assert not store.is_authenticated
        assert AuthStore(storage).token is None

    def test_update_user_merges(self):
        store = AuthStore()
        store.set_session({"id": "u1", "firstName": "Alice"}, "tok")
        store.update_user(firstName="Alicia")
        assert store.user == {"id": "u1", "firstName": "Alicia"}

    def test_theme_store(self, tmp_path):
        storage = JsonFileStorage(tmp_path / "state.json")
        theme = ThemeStore(storage)
        assert theme.preference == "system"
        assert theme.resolved(system_prefers_dark=True) == "dark"

        theme.set_preference("light")
        assert ThemeStore(storage).preference == "light"
        with pytest.raises(ValueError):
            theme.set_preference("sepia")

    def test_stores_share_one_file(self, tmp_path):
        storage = JsonFileStorage(tmp_path / "state.json")
        AuthStore(storage).set_session({"id": "u1"}, "tok")
        ThemeStore(storage).set_preference("dark")
        assert AuthStore(storage).token == "tok"
        assert ThemeStore(storage).preference == "dark"

    def test_corrupt_file_is_ignored(self, tmp_path):
        path = tmp_path / "state.json"
        path.write_text("{not json", encoding="utf-8")
        assert AuthStore(JsonFileStorage(path)).token is None

    def test_ui_store_toggles(self):
        ui = UIStore()
        ui.toggle_sidebar()
        ui.toggle_sidebar_collapsed()
        assert ui.sidebar_open and ui.sidebar_collapsed
        ui.set_sidebar_open(False)
        assert not ui.sidebar_open


class TestCharts:

    def test_moving_average_warms_up(self):
        assert moving_average([1, 2, 3, 4], window=2) == [1.0, 1.5, 2.5, 3.5]

    def test_moving_average_rounds(self):
        assert moving_average([1, 0, 0], window=3) == [1.0, 0.5, 0.33]

    def test_chart_series(self):
        chart = productivity_chart([{"date": "2024-05-14", "count": 2}, {"date": "2024-05-15", "count": 0}])
        assert chart == {"labels": ["2024-05-14", "2024-05-15"], "completed": [2, 0], "average": [2.0, 1.0]}


@pytest_asyncio.fixture
async def api(client):
    # `client` installs the test database override
    async with ApiClient(base_url="http://test/api", transport=ASGITransport(app=app)) as api:
        yield api


class TestApiClient:

    async def test_session_round_trip(self, api):
        data = await api.auth.register("zoe@example.com", "secret123", "Zoe", "Zimmer")
        assert api.auth_store.is_authenticated
        assert api.auth_store.user["id"] == data["user"]["id"]

        me = await api.auth.me()
        assert me["email"] == "zoe@example.com"

        updated = await api.auth.update_me(first_name="Zoey")
        assert updated["firstName"] == "Zoey"
        assert api.auth_store.user["firstName"] == "Zoey"

    async def test_resources(self, api):
        await api.auth.register("zoe@example.com", "secret123", "Zoe", "Zimmer")
        project = await api.projects.create("Client project", color="#123456")
        tag = await api.tags.create("Client")
        task = await api.tasks.create("From the client", project["id"], tag_ids=[tag["id"]], priority="HIGH")
        assert task["tags"][0]["name"] == "Client"

        page = await api.tasks.list(project_id=project["id"], status=None, sort_by="priority")
        assert [t["id"] for t in page["data"]] == [task["id"]]
        assert page["meta"]["totalPages"] == 1

        await api.tasks.reorder(project["id"], [{"id": task["id"], "order": 4, "status": "COMPLETED"}])
        assert (await api.tasks.get(task["id"]))["completedAt"] is not None

        assert (await api.stats.dashboard())["completedTasks"] == 1
        assert (await api.projects.stats(project["id"]))["completionRate"] == 100
        assert await api.users.search("z") == []

        await api.projects.delete(project["id"])
        with pytest.raises(ApiError) as excinfo:
            await api.tasks.get(task["id"])
        assert excinfo.value.status_code == 404
        assert excinfo.value.code == "NOT_FOUND"

    async def test_validation_error_details(self, api):
        await api.auth.register("zoe@example.com", "secret123", "Zoe", "Zimmer")
        with pytest.raises(ApiError) as excinfo:
            await api.projects.create("x")
        assert excinfo.value.status_code == 422
        assert excinfo.value.errors[0]["field"] == "name"

    async def test_login_failure_records_error(self, api):
        with pytest.raises(ApiError):
            await api.auth.login("ghost@example.com", "secret123")
        assert api.auth_store.error == "Invalid email or password"
        assert not api.auth_store.is_authenticated

    async def test_unauthorized_logs_out(self, api):
        api.auth_store.set_session({"id": "stale"}, "expired-token")
        with pytest.raises(ApiError) as excinfo:
            await api.projects.list()
        assert excinfo.value.status_code == 401
        assert api.auth_store.token is None

    async def test_check_auth(self, api):
        assert await api.auth.check_auth() is False
        await api.auth.register("zoe@example.com", "secret123", "Zoe", "Zimmer")
        assert await api.auth.check_auth() is True


class TestQueries:

    async def test_task_mutation_invalidates_lists_and_stats(self, api):
        await api.auth.register("zoe@example.com", "secret123", "Zoe", "Zimmer")
        queries = Queries(api, QueryCache(stale_time=60))
        project = await queries.create_project("Cached")

        assert (await queries.tasks(project_id=project["id"]))["data"] == []
        assert (await queries.dashboard())["totalTasks"] == 0

        await queries.create_task("New task", project["id"])
        assert queries.cache.is_stale(("tasks", {"project_id": project["id"]}))
        assert queries.cache.is_stale(("stats", "dashboard"))

        # stale data first, fresh data once the background refresh lands
        assert (await queries.dashboard())["totalTasks"] == 0
        await queries.cache.wait_idle()
        assert (await queries.dashboard())["totalTasks"] == 1
