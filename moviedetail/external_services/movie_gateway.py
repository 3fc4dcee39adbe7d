"""HTTP client for the movie backend consumed by the detail view.

Four calls are made against ``settings.MOVIE_API_BASE_URL``:

1. ``GET  movies/{id}``               – movie record, its comments and the
   audience average, plus the trailer's YouTube video id when known.
2. ``GET  youtube-comments/{videoId}`` – YouTube comment threads, proxied by
   the backend as a single ``commentThreads`` response.
3. ``POST comments``                   – create a comment.
4. ``POST ratings``                    – store a rating and return the new
   average.

Every failure (transport error, non-2xx status, body that is not JSON, or a
payload that does not match the expected shape) is raised as
``GatewayError`` so that callers only ever have one exception type to handle.
"""

from __future__ import annotations

import time
from typing import Any, List, Optional, Protocol
from urllib.parse import quote

import httpx
from opentelemetry import trace
from pydantic import AliasChoices, BaseModel, Field, ValidationError, field_validator

from moviedetail.core.config import settings
from moviedetail.metrics import GATEWAY_REQUEST_DURATION_SECONDS
from moviedetail.models.comment import ExternalComment, LocalComment
from moviedetail.models.common import ExternalVideoID, RecordID
from moviedetail.models.movie import MovieRecord
from moviedetail.models.rating import AggregateRatingResponse, coerce_average_rating

_tracer = trace.get_tracer(__name__)


class GatewayError(Exception):
    """Raised when a movie backend call cannot produce a usable result."""

    def __init__(self, operation: str, detail: str):
        super().__init__(f"{operation}: {detail}")
        self.operation = operation
        self.detail = detail


class MovieDetailPayload(BaseModel):
    """Response of the primary fetch."""

    movie: MovieRecord
    comments: List[LocalComment] = Field(default_factory=list)
    averageRating: Optional[float] = None
    externalVideoId: Optional[ExternalVideoID] = Field(
        default=None,
        validation_alias=AliasChoices("externalVideoId", "youtubeVideoId"),
    )

    @field_validator("comments", mode="before")
    @classmethod
    def _none_comments(cls, value):  # noqa: N805
        return [] if value is None else value

    @field_validator("averageRating", mode="before")
    @classmethod
    def _coerce_rating(cls, value):  # noqa: N805
        return coerce_average_rating(value)

    @field_validator("externalVideoId", mode="before")
    @classmethod
    def _blank_video_id(cls, value):  # noqa: N805
        return value or None


class MovieGateway(Protocol):
    async def get_movie_detail(self, record_id: RecordID) -> MovieDetailPayload: ...

    async def get_external_comments(
        self, video_id: ExternalVideoID
    ) -> Optional[List[ExternalComment]]: ...

    async def submit_comment(self, record_id: RecordID, content: str) -> LocalComment: ...

    async def submit_rating(self, record_id: RecordID, rating: float) -> float: ...


def parse_external_comments(
    data: Any, video_id: ExternalVideoID
) -> Optional[List[ExternalComment]]:
    """Flatten a ``commentThreads`` body; ``None`` when it has no ``items`` list."""

    items = data.get("items") if isinstance(data, dict) else None
    if not isinstance(items, list):
        return None
    return [ExternalComment.from_provider_item(item, video_id) for item in items]


class HttpMovieGateway:
    """``MovieGateway`` backed by the movie backend's REST API."""

    def __init__(
        self,
        base_url: str | None = None,
        timeout: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.base_url = base_url or settings.MOVIE_API_BASE_URL
        self.timeout = timeout if timeout is not None else settings.MOVIE_API_TIMEOUT
        self._transport = transport

    async def _request(
        self,
        operation: str,
        method: str,
        path: str,
        payload: dict[str, Any] | None = None,
    ) -> Any:
        start_time = time.perf_counter()

        with _tracer.start_as_current_span(f"movie_gateway.{operation}") as span:
            span.set_attribute("http.method", method)
            span.set_attribute("movie_gateway.path", path)
            try:
                async with httpx.AsyncClient(
                    base_url=self.base_url,
                    timeout=self.timeout,
                    follow_redirects=True,
                    transport=self._transport,
                ) as client:
                    resp = await client.request(method, path, json=payload)
            except httpx.HTTPError as exc:
                raise GatewayError(operation, f"request failed: {exc!r}") from exc
            finally:
                duration = time.perf_counter() - start_time
                GATEWAY_REQUEST_DURATION_SECONDS.labels(operation=operation).observe(
                    duration
                )
                span.set_attribute("duration_ms", int(duration * 1000))

            span.set_attribute("http.status_code", resp.status_code)
            if not resp.is_success:
                raise GatewayError(
                    operation, f"HTTP {resp.status_code}: {resp.text[:200]}"
                )
            try:
                return resp.json()
            except ValueError as exc:
                raise GatewayError(operation, "response body is not JSON") from exc

    async def get_movie_detail(self, record_id: RecordID) -> MovieDetailPayload:
        data = await self._request(
            "get_movie_detail", "GET", f"movies/{quote(str(record_id), safe='')}"
        )
        try:
            return MovieDetailPayload.model_validate(data)
        except ValidationError as exc:
            raise GatewayError("get_movie_detail", f"unexpected payload: {exc}") from exc

    async def get_external_comments(
        self, video_id: ExternalVideoID
    ) -> Optional[List[ExternalComment]]:
        data = await self._request(
            "get_external_comments",
            "GET",
            f"youtube-comments/{quote(str(video_id), safe='')}",
        )
        try:
            return parse_external_comments(data, video_id)
        except (ValidationError, AttributeError, TypeError) as exc:
            raise GatewayError(
                "get_external_comments", f"unexpected payload: {exc}"
            ) from exc

    async def submit_comment(self, record_id: RecordID, content: str) -> LocalComment:
        data = await self._request(
            "submit_comment",
            "POST",
            "comments",
            {"movie_id": record_id, "content": content},
        )
        try:
            return LocalComment.model_validate(data)
        except ValidationError as exc:
            raise GatewayError("submit_comment", f"unexpected payload: {exc}") from exc

    async def submit_rating(self, record_id: RecordID, rating: float) -> float:
        data = await self._request(
            "submit_rating",
            "POST",
            "ratings",
            {"movie_id": record_id, "rating": rating},
        )
        try:
            return AggregateRatingResponse.model_validate(data).averageRating
        except ValidationError as exc:
            raise GatewayError("submit_rating", f"unexpected payload: {exc}") from exc


__all__ = [
    "GatewayError",
    "MovieDetailPayload",
    "MovieGateway",
    "HttpMovieGateway",
    "parse_external_comments",
]
