"""
Blog API — Pydantic Request/Response Schemas
=============================================

What:  Pydantic models defining the API contract, plus the two pure functions
       that turn a stored post into its external representation.
Why:   The stored shape (nested author, UUID id) differs from what clients see
       (a single `author` display string, string id).
How:   FastAPI validates request bodies against the *In/Create/Update models
       and serializes PostResponse on the way out.

Design Decision:
    `author_name` and `serialize` are free functions instead of methods or
    properties on the ORM class, so the projection stays testable without a
    session and the ORM model stays a plain record.
"""

from datetime import datetime, timezone
from typing import Optional

from pydantic import BaseModel, Field, field_validator

from blog_api.models.post import Post


# ══════════════════════════════════════════════════════════════════════════
# Derivation & Serialization
# ══════════════════════════════════════════════════════════════════════════


def author_name(first_name: Optional[str], last_name: Optional[str]) -> str:
    """
    Derive the display name shown as `author` in responses.

    Missing parts count as empty strings; the result is trimmed, so
    ("Ada", None) gives "Ada" and (None, None) gives "".
    """
    return f"{first_name or ''} {last_name or ''}".strip()


def as_utc(value: datetime) -> datetime:
    """
    Return `value` as an aware UTC datetime.

    Naive values are taken to be UTC already. SQLite hands back naive
    timestamps even for timezone-aware columns, so everything is stored and
    served in UTC.
    """
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def serialize(post: Post) -> "PostResponse":
    """Project a stored post onto the external representation."""
    return PostResponse(
        id=str(post.id),
        title=post.title,
        author=author_name(post.author_first_name, post.author_last_name),
        content=post.content,
        created=as_utc(post.created),
    )


# ══════════════════════════════════════════════════════════════════════════
# Request Models — What clients send
# ══════════════════════════════════════════════════════════════════════════


class AuthorIn(BaseModel):
    """Nested author value as sent by clients (`firstName` / `lastName`)."""
    first_name: Optional[str] = Field(default=None, alias="firstName")
    last_name: Optional[str] = Field(default=None, alias="lastName")

    model_config = {"populate_by_name": True}


class PostCreate(BaseModel):
    """
    What:  Body of POST /posts.

    `title` is declared optional on purpose: a missing title must reach the
    service and come back as a 400 naming the field, not FastAPI's generic 422.
    """
    title: Optional[str] = Field(default=None, description="Post title (required)")
    content: Optional[str] = Field(default=None, description="Post body")
    author: Optional[AuthorIn] = Field(default=None, description="Author first/last name")
    created: Optional[datetime] = Field(
        default=None,
        description="Creation timestamp; defaults to now when omitted",
    )

    @field_validator("created")
    @classmethod
    def normalize_created(cls, v: Optional[datetime]) -> Optional[datetime]:
        """Store client timestamps in UTC so list ordering compares instants."""
        return as_utc(v) if v is not None else None


class PostUpdate(BaseModel):
    """
    What:  Body of PUT /posts/{id}.

    Only the keys the client actually sent are applied (see
    PostService.update_post), so every field defaults to None and the set of
    provided keys is read from `model_fields_set`.
    """
    id: Optional[str] = Field(default=None, description="Must equal the path id")
    title: Optional[str] = None
    content: Optional[str] = None
    author: Optional[AuthorIn] = None


# ══════════════════════════════════════════════════════════════════════════
# Response Models — What the API returns
# ══════════════════════════════════════════════════════════════════════════


class PostResponse(BaseModel):
    """
    External representation of a post.

    `author` is the derived display name, never the nested first/last value.
    """
    id: str = Field(description="Unique post identifier")
    title: str = Field(description="Post title")
    author: str = Field(description="Author display name (first and last name)")
    content: Optional[str] = Field(default=None, description="Post body")
    created: datetime = Field(description="When the post was created")


class ErrorResponse(BaseModel):
    """
    Standardized error response format for all API errors.

    Example:
        {
            "error": "validation_error",
            "message": "Missing `title` in request body",
            "details": {"field": "title"},
            "request_id": "1f0c2a9b"
        }
    """
    error: str = Field(description="Machine-readable error code")
    message: str = Field(description="Human-readable error description")
    details: Optional[dict] = Field(default=None, description="Additional error context")
    request_id: Optional[str] = Field(default=None, description="Request correlation ID")


class HealthResponse(BaseModel):
    """Health check response showing service and database status."""
    status: str = Field(description="Overall service status: healthy, unhealthy")
    version: str = Field(description="Application version")
    database: str = Field(description="Database connectivity: connected, disconnected")
    uptime_seconds: float = Field(description="Seconds since service started")
