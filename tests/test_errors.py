from types import SimpleNamespace

from sqlalchemy.exc import IntegrityError

from taskhub.core.errors import format_validation_errors, translate_integrity_error


def integrity_error(message):
    return IntegrityError("INSERT ...", {}, Exception(message))


class TestIntegrityTranslation:

    def test_unique(self):
        error = translate_integrity_error(integrity_error("UNIQUE constraint failed: tags.name"))
        assert (error.status_code, error.code) == (409, "UNIQUE_CONSTRAINT")

    def test_postgres_unique(self):
        error = translate_integrity_error(
            integrity_error('duplicate key value violates unique constraint "users_email_key"')
        )
        assert error.code == "UNIQUE_CONSTRAINT"

    def test_foreign_key(self):
        error = translate_integrity_error(integrity_error("FOREIGN KEY constraint failed"))
        assert (error.status_code, error.code) == (400, "FOREIGN_KEY_CONSTRAINT")

    def test_other(self):
        error = translate_integrity_error(integrity_error("NOT NULL constraint failed: tasks.title"))
        assert (error.status_code, error.code) == (400, "DATABASE_ERROR")


class TestValidationFormatting:

    def test_uses_last_location_segment(self):
        errors = format_validation_errors([
            {"loc": ("body", "tasks", 0, "order"), "msg": "Field required"},
            {"loc": ("query", "limit"), "msg": "Input should be less than or equal to 100"},
            {"loc": ("body",), "msg": "Invalid JSON"},
        ])
        assert errors == [
            {"field": "order", "message": "Field required"},
            {"field": "limit", "message": "Input should be less than or equal to 100"},
            {"field": "body", "message": "Invalid JSON"},
        ]


class TestErrorResponses:

    async def test_unknown_route(self, client):
        response = await client.get("/api/nope")
        assert response.status_code == 404
        body = response.json()
        assert body["success"] is False
        assert body["error"]["code"] == "ROUTE_NOT_FOUND"

    async def test_method_not_allowed_uses_envelope(self, client):
        response = await client.patch("/api/projects")
        assert response.status_code == 405
        assert response.json()["success"] is False

    async def test_body_field_names_are_camel_case(self, client):
        response = await client.post("/api/auth/register", json={
            "email": "new@example.com", "password": "secret123", "lastName": "Person",
        })
        assert response.status_code == 422
        assert response.json()["error"]["errors"] == [{"field": "firstName", "message": "Field required"}]

    async def test_malformed_id(self, client, alice):
        response = await client.get("/api/tasks/not-a-uuid", headers=alice["headers"])
        assert response.status_code == 422
        assert response.json()["error"]["errors"][0]["field"] == "task_id"


class TestMiscRoutes:

    async def test_request_headers(self, client):
        response = await client.get("/", headers={"X-Request-ID": "abc123"})
        assert response.headers["X-Request-ID"] == "abc123"
        assert response.headers["X-Response-Time"].endswith("s")

    async def test_welcome_anonymous(self, client):
        response = await client.get("/")
        assert response.json() == {"message": "Welcome to TaskHub API"}

    async def test_welcome_signed_in(self, client, alice):
        response = await client.get("/", headers=alice["headers"])
        assert response.json() == {"message": "Welcome back to TaskHub, Alice"}

    async def test_welcome_ignores_bad_token(self, client):
        response = await client.get("/", headers={"Authorization": "Bearer junk"})
        assert response.status_code == 200

    async def test_health(self, client):
        response = await client.get("/api/health")
        data = response.json()["data"]
        assert response.status_code == 200
        assert data["environment"] == "test"
        assert data["database"] == "connected"
