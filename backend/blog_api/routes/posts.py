"""
Blog API — Posts Route Handlers
================================

What:  GET/POST /posts and GET/PUT/DELETE /posts/{post_id}.
Why:   The HTTP surface of the single blog post resource.
How:   Parses the JSON body into request schemas, delegates to PostService,
       and picks the status code. Errors are formatted by the global handlers
       registered in main.py.
"""

import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, Response
from sqlalchemy.ext.asyncio import AsyncSession

from blog_api.database import get_db_session
from blog_api.schemas.post import ErrorResponse, PostCreate, PostResponse, PostUpdate
from blog_api.services.post_service import post_service

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Posts"])


@router.get(
    "/posts",
    response_model=List[PostResponse],
    responses={500: {"description": "Server error", "model": ErrorResponse}},
    summary="List all blog posts",
)
async def list_posts(db: AsyncSession = Depends(get_db_session)) -> List[PostResponse]:
    """Return every post, oldest first."""
    return await post_service.list_posts(db)


@router.get(
    "/posts/{post_id}",
    response_model=PostResponse,
    responses={
        404: {"description": "Post not found", "model": ErrorResponse},
        500: {"description": "Server error", "model": ErrorResponse},
    },
    summary="Get a single blog post",
)
async def get_post(post_id: str, db: AsyncSession = Depends(get_db_session)) -> PostResponse:
    return await post_service.get_post(db, post_id)


@router.post(
    "/posts",
    status_code=201,
    response_model=PostResponse,
    responses={
        400: {"description": "Missing required field", "model": ErrorResponse},
        500: {"description": "Server error", "model": ErrorResponse},
    },
    summary="Create a blog post",
)
async def create_post(
    payload: PostCreate,
    db: AsyncSession = Depends(get_db_session),
) -> PostResponse:
    """
    Create a post from `title` (required), `content` and `author`.

    Returns the stored post with its generated `id` and `created` timestamp.
    """
    return await post_service.create_post(db, payload)


@router.put(
    "/posts/{post_id}",
    status_code=204,
    response_class=Response,
    responses={
        400: {"description": "Path and body ids differ", "model": ErrorResponse},
        404: {"description": "Post not found", "model": ErrorResponse},
        500: {"description": "Server error", "model": ErrorResponse},
    },
    summary="Update fields of a blog post",
)
async def update_post(
    post_id: str,
    payload: Optional[PostUpdate] = None,
    db: AsyncSession = Depends(get_db_session),
) -> Response:
    """
    Partially update a post.

    The body must repeat the post id. Only the fields sent are changed;
    the response has no body, so clients re-fetch to see the result.
    A request without a body carries no id and is rejected with 400.
    """
    await post_service.update_post(db, post_id, payload or PostUpdate())
    return Response(status_code=204)


@router.delete(
    "/posts/{post_id}",
    status_code=204,
    response_class=Response,
    responses={500: {"description": "Server error", "model": ErrorResponse}},
    summary="Delete a blog post",
)
async def delete_post(post_id: str, db: AsyncSession = Depends(get_db_session)) -> Response:
    # Unknown ids are not an error: DELETE is idempotent
    await post_service.delete_post(db, post_id)
    return Response(status_code=204)
