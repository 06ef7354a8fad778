"""Pydantic models for blog posts: stored documents and their client-facing shape."""

from __future__ import annotations

from datetime import UTC, datetime

from pydantic import BaseModel, ConfigDict, Field


def _now() -> datetime:
    return datetime.now(UTC)


class AuthorName(BaseModel):
    """Structured author as it is stored."""

    model_config = ConfigDict(strict=True, populate_by_name=True)

    first_name: str = Field(alias="firstName")
    last_name: str = Field(alias="lastName")


def author_display(author: AuthorName) -> str:
    """Flatten a structured author into the display string sent to clients."""
    return f"{author.first_name} {author.last_name}"


class NewBlogPost(BaseModel):
    """A blog post before the store assigns it an id."""

    model_config = ConfigDict(strict=True)

    title: str
    content: str
    author: AuthorName
    created: datetime = Field(default_factory=_now, description="Set once at creation")


class BlogPost(NewBlogPost):
    """A stored blog post."""

    id: str = Field(description="Store-assigned identifier, immutable")


class BlogPostUpdate(BaseModel):
    """PUT body. Only title and content are mutable; other keys are ignored."""

    model_config = ConfigDict(strict=True, extra="ignore")

    id: str = Field(description="Must match the id in the request path")
    title: str | None = None
    content: str | None = None


class BlogPostOut(BaseModel):
    """Client-facing blog post, with the author flattened to a display string."""

    id: str
    title: str
    author: str
    content: str
    created: datetime

    @classmethod
    def from_post(cls, post: BlogPost) -> BlogPostOut:
        return cls(
            id=post.id,
            title=post.title,
            author=author_display(post.author),
            content=post.content,
            created=post.created,
        )
