"""Pydantic models for local (user-submitted) and external (YouTube) comments."""

from __future__ import annotations

from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from moviedetail.models.common import CommentID, ExternalVideoID, RecordID, coerce_identifier


class CommentCreateRequest(BaseModel):
    """Payload for adding a comment to an open view."""

    content: str = Field(..., max_length=1000)


class LocalComment(BaseModel):
    """A comment stored by the movie backend.

    Authorship and timestamp columns vary between backend versions, so any
    extra keys are kept as-is and passed through untouched.
    """

    model_config = ConfigDict(populate_by_name=True, frozen=True, extra="allow")

    id: Optional[CommentID] = None
    movie_id: Optional[RecordID] = None
    content: str = ""

    @field_validator("id", "movie_id", mode="before")
    @classmethod
    def _stringify_ids(cls, value):  # noqa: N805
        return coerce_identifier(value)

    @field_validator("content", mode="before")
    @classmethod
    def _none_content(cls, value):  # noqa: N805
        return "" if value is None else value


def _mapping(value: Any) -> Dict[str, Any]:
    return value if isinstance(value, dict) else {}


class ExternalComment(BaseModel):
    """A top-level YouTube comment thread, flattened for display."""

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    id: Optional[str] = None
    video_id: ExternalVideoID
    text_display: str = Field(default="", alias="textDisplay")
    author_display_name: Optional[str] = Field(default=None, alias="authorDisplayName")
    like_count: int = Field(default=0, alias="likeCount")
    published_at: Optional[str] = Field(default=None, alias="publishedAt")

    @classmethod
    def from_provider_item(cls, item: Dict[str, Any], video_id: str) -> "ExternalComment":
        """Build from a ``commentThreads`` item.

        The display text lives at ``snippet.topLevelComment.snippet.textDisplay``.
        Missing levels yield an empty text rather than an error.
        """

        item = _mapping(item)
        thread_snippet = _mapping(item.get("snippet"))
        top_level = _mapping(thread_snippet.get("topLevelComment"))
        inner = _mapping(top_level.get("snippet"))

        return cls(
            id=item.get("id") or top_level.get("id"),
            video_id=thread_snippet.get("videoId") or video_id,
            text_display=inner.get("textDisplay") or "",
            author_display_name=inner.get("authorDisplayName"),
            like_count=inner.get("likeCount") or 0,
            published_at=inner.get("publishedAt"),
        )


__all__ = [
    "CommentCreateRequest",
    "LocalComment",
    "ExternalComment",
]
