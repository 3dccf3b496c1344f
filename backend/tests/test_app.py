"""
Blog API — Application and Database Handle Tests
=================================================

What:  Database lifecycle, health endpoint, request IDs in headers and
       log lines, lifespan.
"""

import io
import logging

import pytest
from httpx import ASGITransport, AsyncClient

from blog_api.config import settings
from blog_api.database import Database
from blog_api.main import create_app, setup_logging
from blog_api.middleware.request_id import (
    NO_REQUEST_ID,
    RequestIDLogFilter,
    request_id_var,
    resolve_request_id,
)


class TestDatabaseHandle:

    @pytest.mark.asyncio
    async def test_unconnected_handle_refuses_sessions(self):
        db = Database(settings.test_database_url)

        assert db.is_connected is False
        assert await db.ping() is False
        with pytest.raises(RuntimeError, match="not connected"):
            async with db.session():
                pass

    @pytest.mark.asyncio
    async def test_connect_is_idempotent_and_dispose_closes(self, tmp_path):
        db = Database(f"sqlite+aiosqlite:///{tmp_path}/handle.db")

        await db.connect()
        engine = db.engine
        await db.connect()

        assert db.engine is engine
        assert await db.ping() is True

        await db.dispose()
        assert db.is_connected is False
        assert await db.ping() is False

    @pytest.mark.asyncio
    async def test_session_rolls_back_on_error(self, database):
        from blog_api.models.post import Post
        from sqlalchemy import func, select

        with pytest.raises(ValueError):
            async with database.session() as session:
                session.add(Post(title="never stored"))
                await session.flush()
                raise ValueError("abort")

        async with database.session() as session:
            count = (await session.execute(select(func.count(Post.id)))).scalar_one()
        assert count == 0


class TestHealthAndMiddleware:

    @pytest.mark.asyncio
    async def test_health_reports_connected_database(self, test_client):
        response = await test_client.get("/health")

        assert response.status_code == 200
        body = response.json()
        assert body["status"] == "healthy"
        assert body["database"] == "connected"

    @pytest.mark.asyncio
    async def test_health_reports_unreachable_database(self):
        app = create_app(database=Database(settings.test_database_url))
        transport = ASGITransport(app=app)
        async with AsyncClient(transport=transport, base_url="http://test") as client:
            response = await client.get("/health")

        assert response.status_code == 503
        assert response.json()["status"] == "unhealthy"

    @pytest.mark.asyncio
    async def test_request_id_generated(self, test_client):
        response = await test_client.get("/posts")

        assert response.headers.get("X-Request-ID")

    @pytest.mark.asyncio
    async def test_request_id_echoed_in_error_body(self, test_client):
        response = await test_client.post(
            "/posts", json={"content": "no title"}, headers={"X-Request-ID": "trace-123"}
        )

        assert response.status_code == 400
        assert response.headers["X-Request-ID"] == "trace-123"
        assert response.json()["request_id"] == "trace-123"

    @pytest.mark.asyncio
    async def test_unsafe_client_request_id_is_replaced(self, test_client):
        response = await test_client.get("/posts", headers={"X-Request-ID": "x" * 100})

        assert response.headers["X-Request-ID"] != "x" * 100
        assert len(response.headers["X-Request-ID"]) == 8


@pytest.fixture
def log_stream():
    """Application logging routed into a buffer, removed after the test."""
    root = logging.getLogger()
    level = root.level
    stream = io.StringIO()
    setup_logging(stream)
    yield stream
    for handler in list(root.handlers):
        if getattr(handler, "stream", None) is stream:
            root.removeHandler(handler)
    root.setLevel(level)


class TestRequestIdLogging:

    @pytest.mark.parametrize(
        "header, expected",
        [("trace-123", "trace-123"), ("abc.DEF:42_x", "abc.DEF:42_x")],
    )
    def test_resolve_keeps_safe_client_ids(self, header, expected):
        assert resolve_request_id(header) == expected

    @pytest.mark.parametrize("header", [None, "", "has space", "x" * 65])
    def test_resolve_generates_for_missing_or_unsafe_ids(self, header):
        assert len(resolve_request_id(header)) == 8

    def test_filter_stamps_current_request_id(self):
        record = logging.LogRecord("blog_api", logging.INFO, __file__, 1, "msg", None, None)
        token = request_id_var.set("abc123")
        try:
            assert RequestIDLogFilter().filter(record) is True
        finally:
            request_id_var.reset(token)

        assert record.request_id == "abc123"

    def test_filter_outside_request_uses_placeholder(self):
        record = logging.LogRecord("blog_api", logging.INFO, __file__, 1, "msg", None, None)

        RequestIDLogFilter().filter(record)

        assert record.request_id == NO_REQUEST_ID

    @pytest.mark.asyncio
    async def test_service_and_access_lines_carry_request_id(self, test_client, log_stream):
        response = await test_client.post(
            "/posts", json={"content": "no title"}, headers={"X-Request-ID": "trace-log-7"}
        )
        assert response.status_code == 400

        lines = log_stream.getvalue().splitlines()
        service_lines = [line for line in lines if "Missing `title`" in line]
        access_lines = [line for line in lines if "blog_api.access" in line]

        assert any(
            "blog_api.services.post_service [trace-log-7]" in line for line in service_lines
        )
        assert any("[trace-log-7]: POST /posts 400" in line for line in access_lines)


class TestLifespan:

    @pytest.mark.asyncio
    async def test_lifespan_opens_and_closes_database(self, tmp_path):
        db = Database(f"sqlite+aiosqlite:///{tmp_path}/lifespan.db")
        app = create_app(database=db)

        async with app.router.lifespan_context(app):
            assert db.is_connected

        assert not db.is_connected
