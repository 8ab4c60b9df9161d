"""
Todo Service — HTTP Route Tests
================================

What:  End-to-end tests through the ASGI app (middleware, routes, handlers).
How:   HTTPX AsyncClient against the FastAPI app with a SQLite database.

What we test:
    ✅ JSON and HTML form writes both answer 303 → /todos
    ✅ POST /todos/{uid}?_method=PATCH|DELETE reaches the right handler
    ✅ error bodies and status codes (400, 404, 405, 500)
    ✅ userid cookie issuance and X-Request-ID propagation
    ✅ /health
"""

from datetime import datetime, timedelta
from unittest.mock import AsyncMock, MagicMock

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.exc import OperationalError

from todoapp.database import get_db_session


@pytest_asyncio.fixture
async def broken_db_client():
    """
    Client whose requests get a mock session instead of the real one.

    App exceptions are not re-raised into the test, so the 500 response the
    app renders for them can be inspected.
    """
    from todoapp.main import app

    session = AsyncMock()

    async def mock_session():
        yield session

    app.dependency_overrides[get_db_session] = mock_session
    transport = ASGITransport(app=app, raise_app_exceptions=False)
    try:
        async with AsyncClient(transport=transport, base_url="http://test") as client:
            yield client, session
    finally:
        app.dependency_overrides.pop(get_db_session, None)


def _allow(response) -> set:
    return {m.strip() for m in response.headers["allow"].split(",")}


async def _create(client, text: str = "Buy milk") -> dict:
    response = await client.post("/todos", json={"text": text})
    assert response.status_code == 303
    listing = (await client.get("/todos")).json()
    return next(t for t in listing if t["text"] == text)


class TestTodoRoutes:

    @pytest.mark.asyncio
    async def test_list_empty(self, test_client):
        response = await test_client.get("/todos")

        assert response.status_code == 200
        assert response.json() == []

    @pytest.mark.asyncio
    async def test_create_json_redirects(self, test_client):
        response = await test_client.post("/todos", json={"text": "Buy milk"})

        assert response.status_code == 303
        assert response.headers["location"] == "/todos"

        listing = (await test_client.get("/todos")).json()
        assert len(listing) == 1
        assert listing[0]["text"] == "Buy milk"
        assert listing[0]["done"] is False
        assert set(listing[0]) == {"uid", "created_at", "text", "done"}

    @pytest.mark.asyncio
    async def test_created_at_is_utc(self, test_client):
        todo = await _create(test_client)

        created_at = datetime.fromisoformat(todo["created_at"].replace("Z", "+00:00"))
        assert created_at.utcoffset() == timedelta(0)

    @pytest.mark.asyncio
    async def test_create_from_form(self, test_client):
        response = await test_client.post("/todos", data={"text": "From a form"})

        assert response.status_code == 303
        assert response.headers["location"] == "/todos"
        listing = (await test_client.get("/todos")).json()
        assert [t["text"] for t in listing] == ["From a form"]

    @pytest.mark.asyncio
    async def test_patch_json(self, test_client):
        todo = await _create(test_client)

        response = await test_client.patch(f"/todos/{todo['uid']}", json={"done": True})

        assert response.status_code == 303
        assert response.headers["location"] == "/todos"
        updated = (await test_client.get("/todos")).json()[0]
        assert updated["done"] is True
        assert updated["text"] == "Buy milk"

    @pytest.mark.asyncio
    async def test_delete(self, test_client):
        todo = await _create(test_client)

        response = await test_client.delete(f"/todos/{todo['uid']}")

        assert response.status_code == 303
        assert (await test_client.get("/todos")).json() == []


class TestMethodOverride:

    @pytest.mark.asyncio
    async def test_form_delete(self, test_client):
        todo = await _create(test_client)

        response = await test_client.post(f"/todos/{todo['uid']}?_method=DELETE")

        assert response.status_code == 303
        assert (await test_client.get("/todos")).json() == []

    @pytest.mark.asyncio
    async def test_form_patch(self, test_client):
        todo = await _create(test_client)

        response = await test_client.post(
            f"/todos/{todo['uid']}?_method=patch",
            data={"done": "true"},
        )

        assert response.status_code == 303
        assert (await test_client.get("/todos")).json()[0]["done"] is True

    @pytest.mark.asyncio
    async def test_form_patch_unchecked(self, test_client):
        todo = await _create(test_client)
        await test_client.patch(f"/todos/{todo['uid']}", json={"done": True})

        response = await test_client.post(
            f"/todos/{todo['uid']}?_method=PATCH",
            data={"done": ""},
        )

        assert response.status_code == 303
        assert (await test_client.get("/todos")).json()[0]["done"] is False

    @pytest.mark.asyncio
    async def test_override_to_unsupported_method(self, test_client):
        todo = await _create(test_client)

        response = await test_client.post(f"/todos/{todo['uid']}?_method=PUT")

        assert response.status_code == 405
        assert response.json()["error"] == "method_not_allowed"
        assert _allow(response) == {"PATCH", "DELETE"}
        assert len((await test_client.get("/todos")).json()) == 1


class TestErrorResponses:

    @pytest.mark.asyncio
    async def test_patch_unknown_uid(self, test_client):
        response = await test_client.patch("/todos/does-not-exist", json={"done": True})

        assert response.status_code == 404
        body = response.json()
        assert body["error"] == "not_found"
        assert "does-not-exist" in body["message"]
        assert body["request_id"]

    @pytest.mark.asyncio
    async def test_delete_unknown_uid(self, test_client):
        response = await test_client.delete("/todos/does-not-exist")

        assert response.status_code == 404
        assert response.json()["error"] == "not_found"

    @pytest.mark.asyncio
    async def test_create_without_text(self, test_client):
        response = await test_client.post("/todos", json={})

        assert response.status_code == 400
        assert response.json()["error"] == "validation_error"
        assert (await test_client.get("/todos")).json() == []

    @pytest.mark.asyncio
    async def test_create_with_json_array(self, test_client):
        response = await test_client.post("/todos", json=["Buy milk"])

        assert response.status_code == 400
        assert response.json()["error"] == "validation_error"

    @pytest.mark.asyncio
    async def test_create_with_malformed_json(self, test_client):
        response = await test_client.post(
            "/todos",
            content=b"{not json",
            headers={"content-type": "application/json"},
        )

        assert response.status_code == 400
        assert response.json()["message"] == "Request body is not valid JSON"

    @pytest.mark.asyncio
    async def test_put_collection(self, test_client):
        response = await test_client.put("/todos", json={"text": "a"})

        assert response.status_code == 405
        body = response.json()
        assert body["error"] == "method_not_allowed"
        assert body["message"] == "Method 'PUT' is not supported on /todos"
        assert body["request_id"] == response.headers["x-request-id"]
        assert _allow(response) == {"GET", "POST"}
        assert (await test_client.get("/todos")).json() == []

    @pytest.mark.asyncio
    async def test_put_item(self, test_client):
        response = await test_client.put("/todos/some-uid", json={"text": "a"})

        assert response.status_code == 405
        assert response.json()["error"] == "method_not_allowed"
        assert _allow(response) == {"PATCH", "DELETE"}

    @pytest.mark.asyncio
    async def test_unknown_path_keeps_default_404(self, test_client):
        response = await test_client.get("/nowhere")

        assert response.status_code == 404
        assert response.json() == {"detail": "Not Found"}


class TestServerErrors:
    """Failures below the dispatcher are rendered without internal details."""

    @pytest.mark.asyncio
    async def test_database_error_is_generic(self, broken_db_client):
        client, session = broken_db_client
        session.execute.side_effect = OperationalError(
            "SELECT secret_column FROM todo", {}, Exception("connection refused")
        )

        response = await client.get("/todos")

        assert response.status_code == 500
        body = response.json()
        assert body["error"] == "server_error"
        assert body["message"] == "An internal error occurred. Please try again later."
        assert "secret_column" not in response.text
        assert "connection refused" not in response.text

    @pytest.mark.asyncio
    async def test_database_error_on_write(self, broken_db_client):
        client, session = broken_db_client
        session.add = MagicMock()
        session.flush.side_effect = OperationalError("INSERT INTO todo", {}, Exception("disk full"))

        response = await client.post("/todos", json={"text": "a"})

        assert response.status_code == 500
        assert response.json()["error"] == "server_error"
        assert "disk full" not in response.text

    @pytest.mark.asyncio
    async def test_unexpected_error_is_generic(self, broken_db_client):
        client, session = broken_db_client
        session.execute.side_effect = RuntimeError("driver exploded")

        response = await client.get("/todos")

        assert response.status_code == 500
        body = response.json()
        assert body["error"] == "internal_server_error"
        assert body["message"] == "An unexpected error occurred. Please try again or contact support."
        assert "driver exploded" not in response.text


class TestUserIdentity:

    @pytest.mark.asyncio
    async def test_cookie_issued_when_absent(self, test_client):
        response = await test_client.get("/todos")

        set_cookie = response.headers.get("set-cookie", "")
        assert set_cookie.startswith("userid=")
        assert "HttpOnly" in set_cookie
        assert "Path=/" in set_cookie

    @pytest.mark.asyncio
    async def test_cookie_not_reissued(self, test_client):
        response = await test_client.get("/todos", headers={"Cookie": "userid=known-user"})

        assert response.status_code == 200
        assert "set-cookie" not in response.headers


class TestRequestId:

    @pytest.mark.asyncio
    async def test_request_id_generated(self, test_client):
        response = await test_client.get("/todos")

        assert len(response.headers["x-request-id"]) == 8

    @pytest.mark.asyncio
    async def test_request_id_echoed(self, test_client):
        response = await test_client.get("/todos", headers={"X-Request-ID": "trace-42"})

        assert response.headers["x-request-id"] == "trace-42"


class TestHealth:

    @pytest.mark.asyncio
    async def test_health(self, test_client):
        response = await test_client.get("/health")

        assert response.status_code == 200
        body = response.json()
        assert body["status"] == "healthy"
        assert body["database"] == "connected"
        assert body["version"] == "1.0.0"
