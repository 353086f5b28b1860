"""
Pytest configuration and shared fixtures for the pathgen test suite.
"""

import os
from unittest.mock import AsyncMock

import pytest
import pytest_asyncio
from fastapi.testclient import TestClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

# Set test environment before importing app
os.environ["PG_ENVIRONMENT"] = "test"
os.environ["PG_DB_URL"] = "sqlite+aiosqlite:///:memory:"
os.environ["PG_JWT_SECRET_KEY"] = "test-secret"
# Cheap hashing keeps the suite fast
os.environ["PG_BCRYPT_ROUNDS"] = "4"
os.environ["PG_GEMINI_API_KEY"] = "test-gemini-key"
os.environ["PG_LOG_LEVEL"] = "WARNING"

from pathgen.config import get_settings  # noqa: E402
from pathgen.db.base import Base, build_engine  # noqa: E402
from pathgen.models import User, UserMetrics  # noqa: E402

settings = get_settings()


@pytest_asyncio.fixture
async def test_engine():
    """Fresh in-memory database per test."""
    engine = build_engine(settings.db_url)

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    await engine.dispose()


@pytest_asyncio.fixture
async def db_session(test_engine):
    """Create a test database session."""
    async_session = async_sessionmaker(
        test_engine, class_=AsyncSession, expire_on_commit=False
    )

    async with async_session() as session:
        yield session
        await session.rollback()


async def make_user(session: AsyncSession, email: str) -> User:
    """Insert a user and an empty metrics row directly, skipping bcrypt."""
    user = User(email=email, password_hash="not-a-real-hash")
    session.add(user)
    await session.flush()
    session.add(UserMetrics(user_id=user.id))
    await session.commit()
    return user


@pytest_asyncio.fixture
async def user(db_session):
    return await make_user(db_session, "ada@example.com")


@pytest_asyncio.fixture
async def other_user(db_session):
    return await make_user(db_session, "grace@example.com")


@pytest.fixture
def sample_levels():
    """Three-level curriculum body as the client would send it."""
    return [
        {
            "name": "Beginner",
            "modules": [
                {
                    "title": "Variables and types",
                    "description": "Names, values and basic types.",
                    "youtubeUrl": "https://www.youtube.com/results?search_query=python+variables",
                    "githubUrl": "https://github.com/topics/python",
                },
                {"title": "Control flow", "description": "if, for and while."},
            ],
            "projects": [
                {
                    "title": "Number guessing game",
                    "description": "A small CLI game.",
                    "githubUrl": "https://github.com/example/guess",
                }
            ],
        },
        {
            "name": "Intermediate",
            "modules": [{"title": "Decorators", "description": "Wrapping callables."}],
            "projects": [],
        },
        {
            "name": "Advanced",
            "modules": [{"title": "Metaclasses", "description": "Classes of classes."}],
            "projects": [],
        },
    ]


@pytest.fixture
def sample_path(sample_levels):
    return {"topic": "Python", "levels": sample_levels}


@pytest.fixture
def gemini_reply():
    """A well-formed AI reply wrapped in a code fence."""
    return """```json
{
  "topic": "Rust",
  "levels": [
    {
      "name": "Beginner",
      "modules": [
        {"title": "Ownership", "description": "Moves and borrows.",
         "youtubeUrl": "https://www.youtube.com/results?search_query=rust+ownership",
         "githubUrl": "https://github.com/rust-lang/rustlings"}
      ],
      "projects": [
        {"title": "CLI todo list", "description": "Practice structs and enums.",
         "githubUrl": "https://github.com/example/todo"}
      ]
    },
    {"name": "Intermediate",
     "modules": [{"title": "Traits", "description": "Shared behaviour."}],
     "projects": [{"title": "HTTP client"}]},
    {"name": "Advanced",
     "modules": [{"title": "Unsafe Rust", "description": "Raw pointers."}],
     "projects": []}
  ]
}
```"""


@pytest.fixture
def mock_gemini_client(gemini_reply):
    """Mock Gemini client to avoid external API calls."""
    mock_client = AsyncMock()
    mock_client.generate_json.return_value = gemini_reply
    return mock_client


@pytest.fixture
def app():
    """Create test app instance with a fresh in-memory database."""
    from pathgen.server import create_app

    return create_app()


@pytest.fixture
def client(app):
    """Create a test client for the FastAPI app."""
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def register_user(client):
    """Register through the API; the session cookie is not kept."""

    def _register(email: str, password: str = "secret123") -> dict:
        response = client.post(
            "/api/auth/register", json={"email": email, "password": password}
        )
        assert response.status_code == 201, response.text
        client.cookies.clear()
        return response.json()

    return _register


@pytest.fixture
def auth_client(client, register_user):
    """Client authenticated as a freshly registered user via bearer header."""
    body = register_user("ada@example.com")
    client.headers["Authorization"] = f"Bearer {body['session']['access_token']}"
    return client


@pytest.fixture
def other_headers(register_user):
    """Authorization headers for a second, independent user."""
    body = register_user("grace@example.com")
    return {"Authorization": f"Bearer {body['session']['access_token']}"}

