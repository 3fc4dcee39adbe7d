"""View state owned by the detail controller and the snapshots it hands out."""

from __future__ import annotations

from enum import Enum
from typing import List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator

from moviedetail.models.comment import ExternalComment, LocalComment
from moviedetail.models.common import ExternalVideoID, PaginatedResponse, RecordID, ViewID
from moviedetail.models.movie import MovieRecord

LOAD_FAILED_MESSAGE = "Failed to load movie details"

SHARE_HASHTAGS = ["movies", "moviereview"]
SUMMARY_PREVIEW_LENGTH = 100


class CommentList(str, Enum):
    LOCAL = "comments"
    EXTERNAL = "external-comments"


class Modal(str, Enum):
    COMMENT = "comment"
    RATING = "rating"


class ViewState(BaseModel):
    """Mutable state of one open detail view.

    A new instance is created for every ``open_view`` call; results of
    gateway calls issued for an older instance are never applied to a newer
    one.
    """

    record_id: RecordID
    movie: Optional[MovieRecord] = None
    comments: List[LocalComment] = Field(default_factory=list)
    external_comments: List[ExternalComment] = Field(default_factory=list)
    average_rating: float = 0.0
    is_loading: bool = True
    error: Optional[str] = None
    comments_page: int = 1
    external_comments_page: int = 1
    external_video_id: Optional[ExternalVideoID] = None
    show_comment_modal: bool = False
    show_rating_modal: bool = False


def _format_number(value: Optional[float]) -> str:
    if value is None:
        return ""
    if float(value).is_integer():
        return str(int(value))
    return str(value)


class ShareMetadata(BaseModel):
    """Values the presentation layer needs for share buttons and OG tags."""

    model_config = ConfigDict(frozen=True)

    url: str
    title: str
    quote: str
    description: str
    hashtags: List[str] = Field(default_factory=lambda: list(SHARE_HASHTAGS))
    image: Optional[str] = None
    rating: Optional[float] = None
    site_name: str

    @classmethod
    def for_movie(cls, movie: MovieRecord, url: str, site_name: str) -> "ShareMetadata":
        return cls(
            url=url,
            title=f"{movie.title} - Movie Rating",
            quote=f" Genre: {movie.genre or ''}, UserRating: {_format_number(movie.rating)}/10",
            description=f"{movie.summary[:SUMMARY_PREVIEW_LENGTH]}... See more on {url}",
            image=movie.poster,
            rating=movie.rating,
            site_name=site_name,
        )


class ViewSnapshot(BaseModel):
    """Read-only picture of a view, with each comment list cut to its current page."""

    model_config = ConfigDict(frozen=True)

    recordId: RecordID
    movie: Optional[MovieRecord] = None
    averageRating: float = 0.0
    averageRatingDisplay: str = "0.0"
    isLoading: bool = True
    error: Optional[str] = None
    comments: PaginatedResponse[LocalComment]
    externalComments: PaginatedResponse[ExternalComment]
    showCommentModal: bool = False
    showRatingModal: bool = False
    share: Optional[ShareMetadata] = None


class ViewOpenRequest(BaseModel):
    movieId: Union[int, str] = Field(..., description="Movie record identifier")

    @field_validator("movieId")
    @classmethod
    def _not_blank(cls, value):  # noqa: N805
        if isinstance(value, str) and not value.strip():
            raise ValueError("movieId must not be blank")
        return value


class ViewSessionResponse(BaseModel):
    viewId: ViewID
    view: ViewSnapshot


__all__ = [
    "LOAD_FAILED_MESSAGE",
    "CommentList",
    "Modal",
    "ViewState",
    "ShareMetadata",
    "ViewSnapshot",
    "ViewOpenRequest",
    "ViewSessionResponse",
]
