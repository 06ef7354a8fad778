"""Redis-backed post store and the store factory.

Each post is a Redis hash under ``post:{id}``. A sorted set scored by the
creation time indexes the ids, giving ``find_all`` a stable order.
"""

from __future__ import annotations

from datetime import datetime
from typing import TYPE_CHECKING

import structlog

from blog_posts_api.models import AuthorName, BlogPost, NewBlogPost
from blog_posts_api.store import MemoryPostStore, PostStore, new_post_id

if TYPE_CHECKING:
    from redis.asyncio import Redis

log = structlog.get_logger()

_POST_PREFIX = "post:"
_INDEX_KEY = "posts:index"

# Lua: write the given fields only if the post still exists
_UPDATE_SCRIPT = (
    "if redis.call('exists',KEYS[1])==1 then "
    "for i=1,#ARGV,2 do redis.call('hset',KEYS[1],ARGV[i],ARGV[i+1]) end "
    "return 1 else return 0 end"
)


def _text(value: bytes | str) -> str:
    return value.decode() if isinstance(value, bytes) else value


def _to_hash(post: BlogPost) -> dict[str, str]:
    return {
        "title": post.title,
        "content": post.content,
        "author_first_name": post.author.first_name,
        "author_last_name": post.author.last_name,
        "created": post.created.isoformat(),
    }


def _from_hash(post_id: str, raw: dict[bytes, bytes] | dict[str, str]) -> BlogPost:
    fields = {_text(k): _text(v) for k, v in raw.items()}
    return BlogPost(
        id=post_id,
        title=fields["title"],
        content=fields["content"],
        author=AuthorName(
            first_name=fields["author_first_name"], last_name=fields["author_last_name"]
        ),
        created=datetime.fromisoformat(fields["created"]),
    )


class RedisPostStore:
    """Redis-backed post store implementing the PostStore protocol.

    Inserts and deletes run as MULTI/EXEC pipelines so the document and its
    index entry change together. Partial updates run as a Lua script.
    """

    def __init__(self, client: Redis) -> None:
        self._client: Redis = client

    async def _write(self, posts: list[BlogPost]) -> None:
        async with self._client.pipeline(transaction=True) as pipe:
            for post in posts:
                pipe.hset(f"{_POST_PREFIX}{post.id}", mapping=_to_hash(post))
                pipe.zadd(_INDEX_KEY, {post.id: post.created.timestamp()})
            await pipe.execute()

    async def insert(self, record: NewBlogPost) -> BlogPost:
        post = BlogPost(id=new_post_id(), **dict(record))
        await self._write([post])
        return post

    async def insert_many(self, records: list[NewBlogPost]) -> int:
        if not records:
            return 0
        posts = [BlogPost(id=new_post_id(), **dict(r)) for r in records]
        await self._write(posts)
        return len(posts)

    async def _ids(self, end: int = -1) -> list[str]:
        return [_text(i) for i in await self._client.zrange(_INDEX_KEY, 0, end)]

    async def find_all(self) -> list[BlogPost]:
        ids = await self._ids()
        if not ids:
            return []
        async with self._client.pipeline(transaction=False) as pipe:
            for post_id in ids:
                pipe.hgetall(f"{_POST_PREFIX}{post_id}")
            raws = await pipe.execute()
        # Skip ids whose document was deleted between the two reads
        return [_from_hash(i, raw) for i, raw in zip(ids, raws, strict=True) if raw]

    async def find_by_id(self, post_id: str) -> BlogPost | None:
        raw = await self._client.hgetall(f"{_POST_PREFIX}{post_id}")  # type: ignore[misc]
        if not raw:
            return None
        return _from_hash(post_id, raw)

    async def find_one(self) -> BlogPost | None:
        ids = await self._ids(end=0)
        if not ids:
            return None
        return await self.find_by_id(ids[0])

    async def update_by_id(
        self, post_id: str, *, title: str | None = None, content: str | None = None
    ) -> bool:
        key = f"{_POST_PREFIX}{post_id}"
        args: list[str] = []
        if title is not None:
            args += ["title", title]
        if content is not None:
            args += ["content", content]
        if not args:
            return bool(await self._client.exists(key))
        updated = await self._client.eval(_UPDATE_SCRIPT, 1, key, *args)  # type: ignore[misc]
        return bool(updated)

    async def delete_by_id(self, post_id: str) -> bool:
        async with self._client.pipeline(transaction=True) as pipe:
            pipe.delete(f"{_POST_PREFIX}{post_id}")
            pipe.zrem(_INDEX_KEY, post_id)
            deleted, _ = await pipe.execute()
        return bool(deleted)

    async def count(self) -> int:
        return int(await self._client.zcard(_INDEX_KEY))

    async def drop_all(self) -> None:
        ids = await self._ids()
        async with self._client.pipeline(transaction=True) as pipe:
            for post_id in ids:
                pipe.delete(f"{_POST_PREFIX}{post_id}")
            pipe.delete(_INDEX_KEY)
            await pipe.execute()
        log.warning("store_dropped", backend="redis", dropped=len(ids))

    async def aclose(self) -> None:
        """Close the underlying Redis connection."""
        await self._client.aclose()


def _create_redis_client(redis_url: str | None) -> Redis:
    import redis.asyncio as aioredis

    if not redis_url:
        msg = "redis_url is required for the redis store backend"
        raise ValueError(msg)
    return aioredis.from_url(redis_url)


def create_store(backend: str, redis_url: str | None = None) -> PostStore:
    """Factory: create a PostStore for the given backend."""
    if backend == "redis":
        return RedisPostStore(_create_redis_client(redis_url))
    return MemoryPostStore()
