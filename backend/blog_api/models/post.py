"""
Blog API — Post SQLAlchemy Model
=================================

What:  ORM model representing the `posts` table.
Why:   Maps Python objects to stored post records for type-safe database operations.
Who:   Used by PostService for CRUD operations and by Database.connect() to create the table.

Table Design:
    - id: UUID4 assigned on insert; opaque to clients, immutable
    - title: required text
    - content: optional text
    - author_first_name / author_last_name: the nested `author` value,
      flattened into columns so a partial update can touch one part
    - created: UTC timestamp, defaulted on insert, immutable

    The display name (`authorName`) is never stored; it is derived on output
    by `blog_api.schemas.post.author_name`.
"""

import uuid
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import DateTime, Index, Text, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from blog_api.database import Base


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Post(Base):
    """
    A blog post.

    Lifecycle:
        1. Created by POST /posts (id and created assigned here)
        2. Zero or more partial updates by PUT /posts/{id}
        3. Removed by DELETE /posts/{id}; no soft delete or versioning

    Query Patterns:
        - List all posts: SELECT ... ORDER BY created, id
          → Uses idx_posts_created
        - Single post: SELECT ... WHERE id = :uuid (primary key)
    """

    __tablename__ = "posts"

    # Portable Uuid type: native UUID on PostgreSQL, CHAR(32) on SQLite
    id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
    )

    title: Mapped[str] = mapped_column(Text, nullable=False)

    content: Mapped[Optional[str]] = mapped_column(Text, nullable=True, default=None)

    author_first_name: Mapped[Optional[str]] = mapped_column(Text, nullable=True, default=None)
    author_last_name: Mapped[Optional[str]] = mapped_column(Text, nullable=True, default=None)

    created: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=_utcnow,
    )

    __table_args__ = (
        Index("idx_posts_created", "created"),
    )

    def __repr__(self) -> str:
        return f"<Post(id={self.id}, title={self.title!r}, created='{self.created}')>"
