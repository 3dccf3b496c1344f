"""
Blog API — Test Configuration (conftest.py)
============================================

What:  Shared pytest fixtures for the entire test suite.
Why:   Provides reusable test infrastructure (mocked session, real SQLite
       database, API client, seed data).

Fixture Hierarchy (all function-scoped):
    ├── mock_db_session: Mock AsyncSession for service unit tests
    ├── database: Connected Database on a temporary SQLite file,
    │             tables dropped after each test
    ├── test_client: HTTPX AsyncClient bound to an app owning `database`
    └── seeded_posts: Ten stored posts with generated data
"""

import os
import random
import tempfile
import uuid
from unittest.mock import AsyncMock, MagicMock

# Override settings for testing BEFORE any app imports
_TEST_DIR = tempfile.mkdtemp(prefix="blog_api_test_")
os.environ["DATABASE_URL"] = f"sqlite+aiosqlite:///{_TEST_DIR}/app.db"
os.environ["TEST_DATABASE_URL"] = f"sqlite+aiosqlite:///{_TEST_DIR}/test.db"
os.environ["LOG_LEVEL"] = "WARNING"

import pytest  # noqa: E402
import pytest_asyncio  # noqa: E402
from httpx import ASGITransport, AsyncClient  # noqa: E402

from blog_api.config import settings  # noqa: E402
from blog_api.database import Database  # noqa: E402
from blog_api.models.post import Post  # noqa: E402

FIRST_NAMES = ["Ada", "Grace", "Alan", "Edsger", "Barbara", "Donald", "Margaret", "Linus"]
LAST_NAMES = ["Lovelace", "Hopper", "Turing", "Dijkstra", "Liskov", "Knuth", "Hamilton", "Torvalds"]
WORDS = [
    "async", "engine", "session", "post", "draft", "notes", "query", "index",
    "cursor", "schema", "commit", "router", "handler", "request", "response",
]


def _sentence(n_words: int) -> str:
    words = random.choices(WORDS, k=n_words)
    return " ".join(words).capitalize() + "."


def generate_post_data() -> dict:
    """Random request body for POST /posts; unique title per call."""
    return {
        "title": f"{_sentence(4)[:-1]} {uuid.uuid4().hex[:6]}",
        "content": " ".join(_sentence(8) for _ in range(3)),
        "author": {
            "firstName": random.choice(FIRST_NAMES),
            "lastName": random.choice(LAST_NAMES),
        },
    }


@pytest.fixture
def mock_db_session():
    """
    Provides a mock async database session.

    Usage:
        async def test_get_post(mock_db_session):
            mock_db_session.get.return_value = post
            result = await post_service.get_post(mock_db_session, str(post.id))
    """
    session = AsyncMock()
    session.execute = AsyncMock()
    session.get = AsyncMock()
    session.flush = AsyncMock()
    session.commit = AsyncMock()
    session.rollback = AsyncMock()
    session.close = AsyncMock()
    session.add = MagicMock()
    return session


@pytest_asyncio.fixture
async def database():
    """
    Connected Database on the test SQLite file.

    Tables are created on connect and dropped on teardown so each test
    starts from an empty store.
    """
    db = Database(settings.test_database_url)
    await db.connect()
    yield db
    await db.drop_all()
    await db.dispose()


@pytest_asyncio.fixture
async def test_client(database):
    """
    HTTPX AsyncClient talking to an app that owns `database`.

    ASGITransport does not run the lifespan, which is why the handle is
    connected by the `database` fixture instead.
    """
    from blog_api.main import create_app

    app = create_app(database=database)
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client


@pytest_asyncio.fixture
async def seeded_posts(database):
    """Insert ten posts directly through the database handle."""
    posts = []
    for _ in range(10):
        data = generate_post_data()
        posts.append(
            Post(
                title=data["title"],
                content=data["content"],
                author_first_name=data["author"]["firstName"],
                author_last_name=data["author"]["lastName"],
            )
        )

    async with database.session() as session:
        session.add_all(posts)

    return posts
