"""
Blog API — Post Service (Business Logic)
=========================================

What:  The create / read / partial-update / delete operations behind /posts.
Why:   Keeps the required-field check, the id-match check and the partial
       merge out of the route handlers, where they can be tested without HTTP.
How:   Each method receives the request's AsyncSession, performs its queries,
       flushes writes so failures surface here, and returns response models.
       The request-scoped session commits once the handler returns.
Who:   Called by the route handlers in blog_api.routes.posts.

Error Handling Strategy:
    Client mistakes raise ValidationError (400) or NotFoundError (404).
    Anything else that goes wrong while talking to the database is logged
    with its details and re-raised as a generic DatabaseError (500).
"""

import logging
from typing import Any, Dict, List, Optional
from uuid import UUID

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from blog_api.exceptions import BlogApiError, DatabaseError, NotFoundError, ValidationError
from blog_api.models.post import Post
from blog_api.schemas.post import PostCreate, PostResponse, PostUpdate, serialize

logger = logging.getLogger(__name__)

# Fields a POST body must carry
REQUIRED_FIELDS = ("title",)


def _parse_id(post_id: str) -> Optional[UUID]:
    """Return the UUID for a path id, or None when it cannot name any post."""
    try:
        return UUID(str(post_id))
    except ValueError:
        return None


def collect_changes(payload: PostUpdate) -> Dict[str, Any]:
    """
    Map the keys present in an update body to Post column values.

    Keys the client left out are absent from the result, so applying it can
    never null a field by omission. `author: null` contributes nothing.
    """
    provided = payload.model_fields_set
    changes: Dict[str, Any] = {}

    for field in ("title", "content"):
        if field in provided:
            changes[field] = getattr(payload, field)

    if "author" in provided and payload.author is not None:
        author_fields = payload.author.model_fields_set
        if "first_name" in author_fields:
            changes["author_first_name"] = payload.author.first_name
        if "last_name" in author_fields:
            changes["author_last_name"] = payload.author.last_name

    return changes


class PostService:
    """
    Business logic layer for post operations.

    Responsibilities:
        - list_posts(): every stored post, oldest first
        - get_post(): single post by id with not-found handling
        - create_post(): required-field check, insert, serialized result
        - update_post(): id-match check, partial merge, no result
        - delete_post(): idempotent removal
    """

    async def list_posts(self, db: AsyncSession) -> List[PostResponse]:
        """
        Return all posts in serialized form.

        Ordering is created ascending, then id, so the output does not depend
        on the storage engine's natural row order.
        """
        try:
            result = await db.execute(
                select(Post).order_by(Post.created.asc(), Post.id.asc())
            )
            posts = result.scalars().all()
            return [serialize(post) for post in posts]
        except Exception as e:
            logger.error("Database error listing posts: %s", str(e), exc_info=True)
            raise DatabaseError(
                message="Could not retrieve posts. Please try again.",
                context={"error_type": type(e).__name__},
            )

    async def get_post(self, db: AsyncSession, post_id: str) -> PostResponse:
        """
        Retrieve a single post by id.

        Raises:
            NotFoundError: No post has this id (malformed ids included)
            DatabaseError: Query execution failed
        """
        uid = _parse_id(post_id)
        if uid is None:
            raise NotFoundError(resource="post", resource_id=str(post_id))

        try:
            post = await db.get(Post, uid)
        except Exception as e:
            logger.error("Database error fetching post %s: %s", post_id, str(e))
            raise DatabaseError(
                message="Could not retrieve the post. Please try again.",
                context={"post_id": str(post_id)},
            )

        if post is None:
            raise NotFoundError(resource="post", resource_id=str(post_id))
        return serialize(post)

    async def create_post(self, db: AsyncSession, payload: PostCreate) -> PostResponse:
        """
        Insert a new post and return its serialized form.

        Workflow:
            1. Reject the body if a required field is missing or empty
            2. Build the Post (id and created default on flush)
            3. Flush and serialize

        Raises:
            ValidationError: `title` missing or empty (nothing is written)
            DatabaseError: Insert failed
        """
        for field in REQUIRED_FIELDS:
            if not getattr(payload, field):
                message = f"Missing `{field}` in request body"
                logger.warning(message)
                raise ValidationError(message=message, field=field)

        author = payload.author
        post = Post(
            title=payload.title,
            content=payload.content,
            author_first_name=author.first_name if author else None,
            author_last_name=author.last_name if author else None,
        )
        if payload.created is not None:
            post.created = payload.created

        try:
            db.add(post)
            await db.flush()
        except Exception as e:
            logger.error("Database error creating post: %s", str(e), exc_info=True)
            raise DatabaseError(
                message="Could not create the post. Please try again.",
                context={"error_type": type(e).__name__},
            )

        logger.info("Post created: %s", post.id)
        return serialize(post)

    async def update_post(self, db: AsyncSession, post_id: str, payload: PostUpdate) -> None:
        """
        Apply a partial update to an existing post.

        Only keys present in the body are written; see collect_changes().
        The caller re-fetches to see the result.

        Raises:
            ValidationError: Body id missing or different from the path id
            NotFoundError: No post has this id
            DatabaseError: Query or flush failed
        """
        if not (post_id and payload.id and post_id == payload.id):
            message = (
                f"Request path id ({post_id}) and request body id "
                f"({payload.id}) must match"
            )
            logger.warning(message)
            raise ValidationError(
                message=message,
                field="id",
                context={"path_id": post_id, "body_id": payload.id},
            )

        uid = _parse_id(post_id)
        if uid is None:
            raise NotFoundError(resource="post", resource_id=post_id)

        changes = collect_changes(payload)

        try:
            post = await db.get(Post, uid)
            if post is None:
                raise NotFoundError(resource="post", resource_id=post_id)

            for column, value in changes.items():
                setattr(post, column, value)

            await db.flush()
        except BlogApiError:
            raise
        except Exception as e:
            logger.error("Database error updating post %s: %s", post_id, str(e), exc_info=True)
            raise DatabaseError(
                message="Could not update the post. Please try again.",
                context={"post_id": post_id, "error_type": type(e).__name__},
            )

        logger.info("Post %s updated: %s", post_id, sorted(changes))

    async def delete_post(self, db: AsyncSession, post_id: str) -> None:
        """
        Delete a post by id.

        Idempotent: an id that matches nothing (or is not a valid id at all)
        is still a success.
        """
        uid = _parse_id(post_id)
        if uid is None:
            logger.info("Delete of malformed post id %r ignored", post_id)
            return

        try:
            result = await db.execute(delete(Post).where(Post.id == uid))
        except Exception as e:
            logger.error("Database error deleting post %s: %s", post_id, str(e), exc_info=True)
            raise DatabaseError(
                message="Could not delete the post. Please try again.",
                context={"post_id": post_id, "error_type": type(e).__name__},
            )

        logger.info("Deleted post %s (%d row(s))", post_id, result.rowcount)


# ── Singleton Instance ────────────────────────────────────────────────────
# PostService is stateless; the session is passed into every call
post_service = PostService()
