"""An in-process movie gateway used during development and testing.

It keeps movies, comments, ratings and YouTube comment threads in memory and
behaves like the real backend: comments come back newest first, and every
rating submission returns the freshly recomputed average.  Individual
operations can be switched to failure mode to exercise error paths.
"""

from __future__ import annotations

import asyncio
import logging
from itertools import count
from typing import Any, Dict, List, Optional, Set

from moviedetail.external_services.movie_gateway import (
    GatewayError,
    MovieDetailPayload,
    parse_external_comments,
)
from moviedetail.models.comment import ExternalComment, LocalComment
from moviedetail.models.common import ExternalVideoID, RecordID, coerce_identifier

logger = logging.getLogger(__name__)


class InMemoryMovieGateway:
    """Deterministic ``MovieGateway`` holding all data in dictionaries."""

    def __init__(self, delay: float = 0.0):
        self.delay = delay
        self.movies: Dict[str, Dict[str, Any]] = {}
        self.comments: Dict[str, List[Dict[str, Any]]] = {}
        self.ratings: Dict[str, List[float]] = {}
        self.video_ids: Dict[str, str] = {}
        self.youtube_threads: Dict[str, Dict[str, Any]] = {}
        self.failing: Set[str] = set()
        self.calls: List[str] = []
        self._comment_ids = count(1)

    # ------------------------------------------------------------------
    # Seeding helpers
    # ------------------------------------------------------------------

    def add_movie(
        self,
        movie: Dict[str, Any],
        comments: Optional[List[Dict[str, Any]]] = None,
        ratings: Optional[List[float]] = None,
        youtube_video_id: Optional[str] = None,
    ) -> str:
        record_id = str(coerce_identifier(movie["id"]))
        self.movies[record_id] = dict(movie)
        self.comments[record_id] = [dict(c) for c in comments or []]
        self.ratings[record_id] = list(ratings or [])
        if youtube_video_id:
            self.video_ids[record_id] = youtube_video_id
        return record_id

    def add_youtube_comments(self, video_id: str, texts: List[str]) -> None:
        self.youtube_threads[video_id] = {
            "kind": "youtube#commentThreadListResponse",
            "items": [
                {
                    "id": f"{video_id}-{i}",
                    "snippet": {
                        "videoId": video_id,
                        "topLevelComment": {
                            "snippet": {"textDisplay": text, "likeCount": 0}
                        },
                    },
                }
                for i, text in enumerate(texts, start=1)
            ],
        }

    def fail(self, *operations: str) -> None:
        self.failing.update(operations)

    def recover(self, *operations: str) -> None:
        self.failing.difference_update(operations or set(self.failing))

    # ------------------------------------------------------------------
    # MovieGateway implementation
    # ------------------------------------------------------------------

    async def _enter(self, operation: str) -> None:
        self.calls.append(operation)
        if self.delay:
            await asyncio.sleep(self.delay)
        if operation in self.failing:
            raise GatewayError(operation, "simulated failure")

    def _average(self, record_id: str) -> Optional[float]:
        values = self.ratings.get(record_id) or []
        if not values:
            return None
        return sum(values) / len(values)

    async def get_movie_detail(self, record_id: RecordID) -> MovieDetailPayload:
        await self._enter("get_movie_detail")
        key = str(record_id)
        if key not in self.movies:
            raise GatewayError("get_movie_detail", "HTTP 404: movie not found")
        return MovieDetailPayload.model_validate(
            {
                "movie": self.movies[key],
                "comments": self.comments.get(key, []),
                "averageRating": self._average(key),
                "youtubeVideoId": self.video_ids.get(key),
            }
        )

    async def get_external_comments(
        self, video_id: ExternalVideoID
    ) -> Optional[List[ExternalComment]]:
        await self._enter("get_external_comments")
        return parse_external_comments(self.youtube_threads.get(video_id, {}), video_id)

    async def submit_comment(self, record_id: RecordID, content: str) -> LocalComment:
        await self._enter("submit_comment")
        key = str(record_id)
        doc = {"id": str(next(self._comment_ids)), "movie_id": key, "content": content}
        self.comments.setdefault(key, []).insert(0, doc)
        logger.debug("MOCK GATEWAY: stored comment %s for movie %s", doc["id"], key)
        return LocalComment.model_validate(doc)

    async def submit_rating(self, record_id: RecordID, rating: float) -> float:
        await self._enter("submit_rating")
        key = str(record_id)
        self.ratings.setdefault(key, []).append(float(rating))
        return self._average(key) or 0.0


__all__ = ["InMemoryMovieGateway"]
