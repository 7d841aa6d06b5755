import uuid
from datetime import timedelta

from jose import jwt
from sqlalchemy import delete

from taskhub.config import settings
from taskhub.core.security import create_access_token, decode_access_token
from taskhub.models import User
from taskhub.utils.time import utcnow
from tests.conftest import PASSWORD, auth_headers, register


class TestRegisterAndLogin:

    async def test_register_then_login_token_carries_user_id(self, client):
        account = await register(client, "dana@example.com", "Dana", "Diaz")
        assert decode_access_token(account["token"])["userId"] == account["user"]["id"]

        response = await client.post("/api/auth/login", json={"email": "dana@example.com", "password": PASSWORD})
        assert response.status_code == 200
        data = response.json()["data"]
        assert decode_access_token(data["token"])["userId"] == account["user"]["id"]
        assert data["user"]["email"] == "dana@example.com"

    async def test_register_sanitizes_user(self, client):
        account = await register(client, "Erin@Example.com", "Erin", "Evans")
        user = account["user"]
        assert "password" not in user
        assert user["email"] == "erin@example.com"
        assert user["role"] == "USER"
        assert user["firstName"] == "Erin"
        assert user["avatar"].startswith("https://api.dicebear.com/")

    async def test_duplicate_email_conflicts(self, client, alice):
        response = await client.post("/api/auth/register", json={
            "email": "alice@example.com", "password": PASSWORD, "firstName": "Al", "lastName": "Ice",
        })
        assert response.status_code == 409
        assert response.json()["error"]["code"] == "CONFLICT"

    async def test_weak_password_is_rejected(self, client):
        response = await client.post("/api/auth/register", json={
            "email": "weak@example.com", "password": "abcdefg", "firstName": "Weak", "lastName": "Pass",
        })
        assert response.status_code == 422
        body = response.json()
        assert body["error"]["code"] == "VALIDATION_ERROR"
        assert body["error"]["errors"][0]["field"] == "password"

    async def test_bad_credentials_share_one_message(self, client, alice):
        wrong_password = await client.post(
            "/api/auth/login", json={"email": "alice@example.com", "password": "nope12345"}
        )
        unknown_email = await client.post(
            "/api/auth/login", json={"email": "nobody@example.com", "password": PASSWORD}
        )
        assert wrong_password.status_code == unknown_email.status_code == 401
        assert wrong_password.json()["error"]["message"] == "Invalid email or password"
        assert unknown_email.json()["error"]["message"] == "Invalid email or password"


class TestBearerAuth:

    async def test_missing_token(self, client):
        response = await client.get("/api/auth/me")
        assert response.status_code == 401
        assert response.json()["error"] == {"code": "UNAUTHORIZED", "message": "No token provided"}

    async def test_garbage_token(self, client):
        response = await client.get("/api/auth/me", headers=auth_headers("not-a-jwt"))
        assert response.status_code == 401
        assert response.json()["error"]["code"] == "INVALID_TOKEN"

    async def test_signed_token_with_malformed_user_id(self, client):
        token = jwt.encode(
            {"userId": 123, "exp": utcnow() + timedelta(minutes=5)}, settings.SECRET_KEY, algorithm=settings.ALGORITHM
        )
        response = await client.get("/api/auth/me", headers=auth_headers(token))
        assert response.status_code == 401
        assert response.json()["error"]["code"] == "INVALID_TOKEN"

    async def test_expired_token(self, client, alice):
        token = create_access_token(
            alice["user"]["id"], "alice@example.com", "USER", expires_delta=timedelta(seconds=-5)
        )
        response = await client.get("/api/auth/me", headers=auth_headers(token))
        assert response.status_code == 401
        assert response.json()["error"]["code"] == "TOKEN_EXPIRED"

    async def test_token_of_deleted_user(self, client, alice, session_factory):
        async with session_factory() as session:
            await session.execute(delete(User).where(User.id == uuid.UUID(alice["user"]["id"])))
            await session.commit()

        response = await client.get("/api/auth/me", headers=alice["headers"])
        assert response.status_code == 401
        assert response.json()["error"]["message"] == "User no longer exists"


class TestProfile:

    async def test_me_includes_counts(self, client, alice):
        response = await client.get("/api/auth/me", headers=alice["headers"])
        assert response.status_code == 200
        me = response.json()["data"]
        assert me["id"] == alice["user"]["id"]
        assert me["projectCount"] == 0
        assert me["createdTaskCount"] == 0
        assert me["assignedTaskCount"] == 0

    async def test_update_me(self, client, alice):
        response = await client.put(
            "/api/auth/me",
            json={"firstName": "  Alicia ", "avatar": "https://example.com/a.png"},
            headers=alice["headers"],
        )
        assert response.status_code == 200
        me = response.json()["data"]
        assert me["firstName"] == "Alicia"
        assert me["lastName"] == "Anders"
        assert me["avatar"] == "https://example.com/a.png"

    async def test_change_password(self, client, alice):
        response = await client.put(
            "/api/auth/password",
            json={"currentPassword": PASSWORD, "newPassword": "better456"},
            headers=alice["headers"],
        )
        assert response.status_code == 200

        old = await client.post("/api/auth/login", json={"email": "alice@example.com", "password": PASSWORD})
        new = await client.post("/api/auth/login", json={"email": "alice@example.com", "password": "better456"})
        assert old.status_code == 401
        assert new.status_code == 200

    async def test_change_password_requires_current(self, client, alice):
        response = await client.put(
            "/api/auth/password",
            json={"currentPassword": "wrong999", "newPassword": "better456"},
            headers=alice["headers"],
        )
        assert response.status_code == 401
        assert response.json()["error"]["message"] == "Current password is incorrect"

    async def test_change_password_must_differ(self, client, alice):
        response = await client.put(
            "/api/auth/password",
            json={"currentPassword": PASSWORD, "newPassword": PASSWORD},
            headers=alice["headers"],
        )
        assert response.status_code == 400
