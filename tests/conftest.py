"""Shared test constants, fixtures, and factory functions."""

import random
from collections.abc import AsyncIterator
from datetime import UTC, datetime, timedelta
from typing import Any

import fakeredis
import pytest
from httpx import ASGITransport, AsyncClient
from redis.asyncio import Redis

from blog_posts_api.config import Settings
from blog_posts_api.main import app
from blog_posts_api.models import AuthorName, NewBlogPost
from blog_posts_api.redis_store import RedisPostStore
from blog_posts_api.store import MemoryPostStore, PostStore

# -- Constants --

SEED = 1234
SEED_COUNT = 10

AUTHOR_NAMES = [
    ("Mike", "Jones"),
    ("Jack", "Sparrow"),
    ("Rick", "Ross"),
    ("Will", "Smith"),
]

TITLES = [
    "10 things you won't believe!",
    "9 things you won't believe",
    "8 things you won't believe",
    "7 things you won't believe",
    "6 things you won't believe!",
    "5 things you won't believe",
    "4 things you won't believe",
    "3 things you won't believe",
    "2 things you won't believe!",
    "1 thing you wont believe",
]

LOREM = (
    "Lorem ipsum dolor sit amet, consectetur adipisicing elit, sed do eiusmod tempor "
    "incididunt ut labore et dolore magna aliqua. Ut enim ad minim veniam, quis nostrud "
    "exercitation ullamco "
)

UPDATED_TITLE = "fofofofofofo"
UPDATED_CONTENT = "this is some test content for the test."

POST_KEYS = {"id", "title", "author", "content", "created"}

_ONE_YEAR_SECONDS = 365 * 24 * 3600


# -- Factories --


class PostDataBuilder:
    """Deterministic pseudo-random blog posts for seeding stores."""

    def __init__(self, seed: int = SEED) -> None:
        self._rng = random.Random(seed)

    def author(self) -> AuthorName:
        first, last = self._rng.choice(AUTHOR_NAMES)
        return AuthorName(first_name=first, last_name=last)

    def created(self) -> datetime:
        """A timestamp within the past year."""
        return datetime.now(UTC) - timedelta(seconds=self._rng.randint(1, _ONE_YEAR_SECONDS))

    def build(self, **overrides: Any) -> NewBlogPost:
        fields: dict[str, Any] = {
            "title": self._rng.choice(TITLES),
            "content": LOREM,
            "author": self.author(),
            "created": self.created(),
        }
        return NewBlogPost(**(fields | overrides))

    def build_many(self, count: int) -> list[NewBlogPost]:
        return [self.build() for _ in range(count)]

    def request_body(self, **overrides: Any) -> dict[str, Any]:
        """A POST /posts JSON body."""
        first, last = self._rng.choice(AUTHOR_NAMES)
        body: dict[str, Any] = {
            "title": f"{self._rng.choice(TITLES)} #{self._rng.randint(1, 9999)}",
            "author": {"firstName": first, "lastName": last},
            "content": LOREM * self._rng.randint(1, 3),
        }
        return body | overrides


async def seed_blog_data(store: PostStore, count: int = SEED_COUNT, seed: int = SEED) -> int:
    """Seed *store* with *count* generated posts."""
    return await store.insert_many(PostDataBuilder(seed).build_many(count))


async def tear_down_db(store: PostStore) -> None:
    """Remove every post from *store* so no data leaks between tests."""
    await store.drop_all()


def make_settings(**overrides: Any) -> Settings:
    """Create a Settings instance with test defaults. Override any field."""
    defaults: dict[str, Any] = {"store_backend": "memory"}
    return Settings(**(defaults | overrides))


# -- Fixtures --


@pytest.fixture
def builder() -> PostDataBuilder:
    return PostDataBuilder()


def _redis_client() -> Redis:
    """Fake Redis per test, or a real one when TEST_DATABASE_URL is set."""
    url = Settings().test_database_url
    if url:
        return Redis.from_url(url)
    return fakeredis.FakeAsyncRedis(server=fakeredis.FakeServer())


@pytest.fixture(params=["memory", "redis"])
async def store(request: pytest.FixtureRequest) -> AsyncIterator[PostStore]:
    """A seeded store for each backend, emptied after the test."""
    backend: PostStore
    if request.param == "redis":
        backend = RedisPostStore(_redis_client())
    else:
        backend = MemoryPostStore()
    await seed_blog_data(backend)
    yield backend
    await tear_down_db(backend)
    await backend.aclose()


@pytest.fixture
async def client(store: PostStore) -> AsyncIterator[AsyncClient]:
    """AsyncClient wired to the FastAPI app with the seeded store."""
    app.state.store = store
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as c:
        yield c
