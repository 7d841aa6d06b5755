import os
import tempfile
import uuid

# Settings are read at import time, so these must be in place first
os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///" + os.path.join(tempfile.gettempdir(), "taskhub-test.db")
os.environ["BCRYPT_ROUNDS"] = "4"
os.environ["ENVIRONMENT"] = "test"
os.environ["SECRET_KEY"] = "test-secret"

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy import update
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from taskhub.database import Base, enable_sqlite_foreign_keys, get_db
from taskhub.main import app
from taskhub.models import User
from taskhub.models.enums import Role

PASSWORD = "secret123"


@pytest_asyncio.fixture
async def engine(tmp_path):
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'taskhub.db'}")
    enable_sqlite_foreign_keys(engine)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine):
    return async_sessionmaker(bind=engine, expire_on_commit=False, class_=AsyncSession)


@pytest_asyncio.fixture
async def client(session_factory):
    async def override_get_db():
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac
    app.dependency_overrides.clear()


def auth_headers(token: str) -> dict:
    return {"Authorization": f"Bearer {token}"}


async def register(client, email: str, first_name: str = "Test", last_name: str = "User") -> dict:
    response = await client.post("/api/auth/register", json={
        "email": email,
        "password": PASSWORD,
        "firstName": first_name,
        "lastName": last_name,
    })
    assert response.status_code == 201, response.text
    data = response.json()["data"]
    return {"user": data["user"], "token": data["token"], "headers": auth_headers(data["token"])}


@pytest_asyncio.fixture
async def alice(client):
    return await register(client, "alice@example.com", "Alice", "Anders")


@pytest_asyncio.fixture
async def bob(client):
    return await register(client, "bob@example.com", "Bob", "Brown")


@pytest_asyncio.fixture
async def carol(client):
    return await register(client, "carol@example.com", "Carol", "Chen")


@pytest_asyncio.fixture
async def admin(client, session_factory):
    account = await register(client, "root@example.com", "Root", "Admin")
    async with session_factory() as session:
        await session.execute(
            update(User).where(User.id == uuid.UUID(account["user"]["id"])).values(role=Role.ADMIN.value)
        )
        await session.commit()
    return account


async def create_project(client, owner: dict, name: str = "Website", **fields) -> dict:
    response = await client.post("/api/projects", json={"name": name, **fields}, headers=owner["headers"])
    assert response.status_code == 201, response.text
    return response.json()["data"]


async def create_task(client, owner: dict, project_id: str, title: str = "Write copy", **fields) -> dict:
    response = await client.post(
        "/api/tasks", json={"title": title, "projectId": project_id, **fields}, headers=owner["headers"]
    )
    assert response.status_code == 201, response.text
    return response.json()["data"]
