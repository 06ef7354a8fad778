"""HTTP endpoints for the posts resource."""

import structlog
from fastapi import APIRouter, HTTPException, Request, Response
from pydantic import ValidationError

from blog_posts_api.metrics import (
    post_requests_rejected_total,
    posts_created_total,
    posts_deleted_total,
    posts_updated_total,
)
from blog_posts_api.models import BlogPostOut, BlogPostUpdate, NewBlogPost
from blog_posts_api.store import PostStore

log = structlog.get_logger()

router = APIRouter()


def _store(request: Request) -> PostStore:
    store: PostStore = request.app.state.store
    return store


def _invalid(detail: str) -> HTTPException:
    post_requests_rejected_total.add(1, {"reason": "invalid"})
    return HTTPException(status_code=400, detail=detail)


def _not_found(post_id: str) -> HTTPException:
    post_requests_rejected_total.add(1, {"reason": "not_found"})
    return HTTPException(status_code=404, detail=f"Post {post_id} not found")


def _missing_fields(exc: ValidationError) -> str:
    locs = [".".join(str(p) for p in err["loc"]) for err in exc.errors()]
    return f"Invalid or missing fields: {', '.join(locs) or 'body'}"


@router.get("/posts", response_model=list[BlogPostOut])
async def list_posts(request: Request) -> list[BlogPostOut]:
    posts = await _store(request).find_all()
    return [BlogPostOut.from_post(p) for p in posts]


@router.get("/posts/{post_id}", response_model=BlogPostOut)
async def read_post(request: Request, post_id: str) -> BlogPostOut:
    post = await _store(request).find_by_id(post_id)
    if post is None:
        raise _not_found(post_id)
    return BlogPostOut.from_post(post)


@router.post("/posts", status_code=201, response_model=BlogPostOut)
async def create_post(request: Request) -> BlogPostOut:
    try:
        record = NewBlogPost.model_validate_json(await request.body())
    except ValidationError as exc:
        raise _invalid(_missing_fields(exc)) from exc

    post = await _store(request).insert(record)
    posts_created_total.add(1)
    await log.ainfo("post_created", post_id=post.id, title=post.title)
    return BlogPostOut.from_post(post)


@router.put("/posts/{post_id}", status_code=204)
async def update_post(request: Request, post_id: str) -> Response:
    try:
        update = BlogPostUpdate.model_validate_json(await request.body())
    except ValidationError as exc:
        raise _invalid(_missing_fields(exc)) from exc
    # The body id must agree with the path id
    if update.id != post_id:
        raise _invalid(f"Request path id ({post_id}) and body id ({update.id}) must match")

    updated = await _store(request).update_by_id(
        post_id, title=update.title, content=update.content
    )
    if not updated:
        raise _not_found(post_id)
    posts_updated_total.add(1)
    await log.ainfo("post_updated", post_id=post_id)
    return Response(status_code=204)


@router.delete("/posts/{post_id}", status_code=204)
async def delete_post(request: Request, post_id: str) -> Response:
    if not await _store(request).delete_by_id(post_id):
        raise _not_found(post_id)
    posts_deleted_total.add(1)
    await log.ainfo("post_deleted", post_id=post_id)
    return Response(status_code=204)
