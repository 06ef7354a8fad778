"""Post store protocol and the in-memory backend."""

from __future__ import annotations

import asyncio
from typing import Protocol, runtime_checkable
from uuid import uuid4

import structlog

from blog_posts_api.models import BlogPost, NewBlogPost

log = structlog.get_logger()


def new_post_id() -> str:
    return uuid4().hex


@runtime_checkable
class PostStore(Protocol):
    """Protocol for blog post storage backends.

    Lookups and mutations on an unknown id never raise: reads return ``None``
    and mutations return ``False``.
    """

    async def insert(self, record: NewBlogPost) -> BlogPost: ...
    async def insert_many(self, records: list[NewBlogPost]) -> int: ...
    async def find_all(self) -> list[BlogPost]: ...
    async def find_by_id(self, post_id: str) -> BlogPost | None: ...
    async def find_one(self) -> BlogPost | None: ...
    async def update_by_id(
        self, post_id: str, *, title: str | None = None, content: str | None = None
    ) -> bool: ...
    async def delete_by_id(self, post_id: str) -> bool: ...
    async def count(self) -> int: ...
    async def drop_all(self) -> None: ...

    async def aclose(self) -> None: ...


def _sort_key(post: BlogPost) -> tuple[float, str]:
    return (post.created.timestamp(), post.id)


class MemoryPostStore:
    """In-memory post store for local runs and testing.

    A single lock serializes mutations so each one is atomic with respect to
    concurrent requests.
    """

    def __init__(self) -> None:
        self._posts: dict[str, BlogPost] = {}
        self._lock = asyncio.Lock()

    async def insert(self, record: NewBlogPost) -> BlogPost:
        post = BlogPost(id=new_post_id(), **dict(record))
        async with self._lock:
            self._posts[post.id] = post
        return post

    async def insert_many(self, records: list[NewBlogPost]) -> int:
        posts = [BlogPost(id=new_post_id(), **dict(r)) for r in records]
        async with self._lock:
            self._posts.update((p.id, p) for p in posts)
        return len(posts)

    async def find_all(self) -> list[BlogPost]:
        return sorted(self._posts.values(), key=_sort_key)

    async def find_by_id(self, post_id: str) -> BlogPost | None:
        return self._posts.get(post_id)

    async def find_one(self) -> BlogPost | None:
        return min(self._posts.values(), key=_sort_key, default=None)

    async def update_by_id(
        self, post_id: str, *, title: str | None = None, content: str | None = None
    ) -> bool:
        changes = {k: v for k, v in (("title", title), ("content", content)) if v is not None}
        async with self._lock:
            post = self._posts.get(post_id)
            if post is None:
                return False
            self._posts[post_id] = post.model_copy(update=changes)
        return True

    async def delete_by_id(self, post_id: str) -> bool:
        async with self._lock:
            return self._posts.pop(post_id, None) is not None

    async def count(self) -> int:
        return len(self._posts)

    async def drop_all(self) -> None:
        async with self._lock:
            dropped = len(self._posts)
            self._posts.clear()
        log.warning("store_dropped", backend="memory", dropped=dropped)

    async def aclose(self) -> None:
        """No-op, the in-memory store needs no cleanup."""
