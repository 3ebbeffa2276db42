"""
Test infrastructure for the Authors Haven API.

Strategy
--------
- SQLite in-memory via aiosqlite removes the need for a running Postgres
  instance; StaticPool makes every async task share the single in-memory
  connection (a second connection would see an empty database).
- The app's get_db dependency is overridden so every request in a test
  uses the test session factory.
- All tables are created before each test and dropped after it.
- Redis is disabled by setting cache._redis = None; CacheManager treats
  that as "no cache", so requests always take the database path.
- ``memory_store`` provides an in-memory ArticleStore so ArticleService
  can be exercised without any database at all.
"""
from datetime import datetime, timedelta, timezone

import pytest
import pytest_asyncio
from httpx import AsyncClient, ASGITransport
from sqlalchemy.ext.asyncio import create_async_engine, async_sessionmaker, AsyncSession
from sqlalchemy.pool import StaticPool

from app.cache import cache
from app.database import Base, get_db
from app.errors import TagReferenceError
from app.main import app
from app.middleware import install_query_counter
from app.models import Article, Tag
from app.repository import ArticleStore

# ---------------------------------------------------------------------------
# Test database engine - SQLite in-memory with aiosqlite
# ---------------------------------------------------------------------------

TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"

engine_test = create_async_engine(
    TEST_DATABASE_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)

install_query_counter(engine_test)

async_session_test = async_sessionmaker(
    engine_test,
    class_=AsyncSession,
    expire_on_commit=False,
)


async def override_get_db():
    async with async_session_test() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise


app.dependency_overrides[get_db] = override_get_db


# ---------------------------------------------------------------------------
# In-memory ArticleStore
# ---------------------------------------------------------------------------

class InMemoryArticleStore(ArticleStore):
    """
    ArticleStore over a plain list of transient Article instances.

    ``created_at`` advances one second per article so newest-first
    ordering is deterministic.
    """

    _epoch = datetime(2024, 1, 1, tzinfo=timezone.utc)

    def __init__(self, tag_names=()):
        self.articles: list[Article] = []
        self.tags = {name: Tag(id=i, name=name) for i, name in enumerate(tag_names, start=1)}
        self._next_id = 1

    def _scoped(self, owner_id):
        return [a for a in self.articles if owner_id is None or a.user_id == owner_id]

    async def find_by_slug(self, slug, owner_id=None, detail=False):
        for article in self._scoped(owner_id):
            if article.slug == slug:
                return article
        return None

    async def count(self, owner_id=None):
        return len(self._scoped(owner_id))

    async def find_page(self, offset, limit, owner_id=None):
        rows = sorted(self._scoped(owner_id), key=lambda a: (a.created_at, a.id), reverse=True)
        return rows[offset:offset + limit]

    async def resolve_tags(self, names):
        names = list(dict.fromkeys(names))
        missing = [name for name in names if name not in self.tags]
        if missing:
            raise TagReferenceError(missing)
        return [self.tags[name] for name in names]

    async def create(self, fields, tags):
        article = Article(
            id=self._next_id,
            created_at=self._epoch + timedelta(seconds=self._next_id),
            **fields,
        )
        article.tags = list(tags)
        self._next_id += 1
        self.articles.append(article)
        return article

    async def update_fields(self, article, fields):
        for field, value in fields.items():
            setattr(article, field, value)
        article.updated_at = datetime.now(timezone.utc)
        return article

    async def set_tag_associations(self, article, tags):
        article.tags = list(tags)

    async def delete(self, article):
        article.tags.clear()
        self.articles.remove(article)


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------

@pytest_asyncio.fixture(autouse=True)
async def setup_db():
    """Create all tables before each test, drop after to guarantee isolation."""
    async with engine_test.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield
    async with engine_test.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)


@pytest.fixture(autouse=True)
def no_redis():
    cache._redis = None


@pytest_asyncio.fixture
async def db_session() -> AsyncSession:
    """A live AsyncSession for seeding data or asserting ORM state directly."""
    async with async_session_test() as session:
        yield session


@pytest.fixture
def memory_store() -> InMemoryArticleStore:
    return InMemoryArticleStore(tag_names=["python", "health", "travel"])


@pytest_asyncio.fixture
async def async_client() -> AsyncClient:
    """httpx.AsyncClient wired to the FastAPI app via ASGITransport."""
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client


@pytest.fixture
def signup(async_client: AsyncClient):
    """
    Factory: register a user and return the Authorization headers for
    them.  The user id is available as ``headers["X-User-Id"]`` for
    assertions (the API ignores that header).
    """
    async def _signup(username: str) -> dict:
        resp = await async_client.post("/api/v1/users", json={
            "username": username,
            "email": f"{username}@example.com",
            "password": "s3cret-pass",
        })
        assert resp.status_code == 201, resp.text
        body = resp.json()
        return {
            "Authorization": f"Bearer {body['token']}",
            "X-User-Id": str(body["user"]["id"]),
        }

    return _signup


@pytest.fixture
def make_tags(async_client: AsyncClient):
    """Factory: create tags through the API as the given user."""
    async def _make_tags(headers: dict, *names: str) -> None:
        for name in names:
            resp = await async_client.post("/api/v1/tags", json={"name": name}, headers=headers)
            assert resp.status_code == 201, resp.text

    return _make_tags
