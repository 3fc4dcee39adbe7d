"""State controller behind the movie detail view.

The controller owns one ``ViewState`` at a time.  It loads the movie record
(with its comments and audience average), then, when the backend knows the
trailer's YouTube id, loads the YouTube comments in a background task.  Both
comment lists are paged locally with independent page sizes.

Gateway failures never escape the public methods.  Only a failed primary
fetch is visible to the view (``ViewState.error``); every other failure is
reported through logging, the ``movie_gateway_failures_total`` counter and
``MovieDetailController.diagnostics``.

Every gateway call remembers the ``ViewState`` it was issued for and its
result is dropped if that state is no longer current, so a slow response for
a previous movie can never overwrite the view of the next one.
"""

from __future__ import annotations

import asyncio
import logging
from collections import deque
from datetime import datetime, timezone
from functools import partial
from typing import Any, Deque, Dict, List, Optional

from pydantic import BaseModel, Field

from moviedetail.core.config import settings
from moviedetail.external_services.movie_gateway import GatewayError, MovieGateway
from moviedetail.metrics import (
    CONCURRENT_WRITES_REJECTED_TOTAL,
    GATEWAY_FAILURES_TOTAL,
    STALE_RESULTS_DISCARDED_TOTAL,
)
from moviedetail.models.comment import ExternalComment, LocalComment
from moviedetail.models.common import (
    ExternalVideoID,
    PaginatedResponse,
    RecordID,
    coerce_identifier,
)
from moviedetail.models.view import (
    LOAD_FAILED_MESSAGE,
    CommentList,
    Modal,
    ShareMetadata,
    ViewSnapshot,
    ViewState,
)
from moviedetail.services.pager import Pager, clamp_page

logger = logging.getLogger(__name__)

MAX_DIAGNOSTICS = 50


class GatewayDiagnostic(BaseModel):
    operation: str
    record_id: Optional[RecordID] = None
    detail: str
    occurred_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))


class MovieDetailController:
    def __init__(
        self,
        gateway: MovieGateway,
        comments_page_size: Optional[int] = None,
        external_comments_page_size: Optional[int] = None,
    ):
        self.gateway = gateway
        self.comments_pager = Pager(comments_page_size or settings.USER_COMMENTS_PAGE_SIZE)
        self.external_pager = Pager(
            external_comments_page_size or settings.EXTERNAL_COMMENTS_PAGE_SIZE
        )
        self.diagnostics: Deque[GatewayDiagnostic] = deque(maxlen=MAX_DIAGNOSTICS)

        self._state: Optional[ViewState] = None
        self._external_task: Optional[asyncio.Task] = None
        self._writes_in_flight: Dict[str, ViewState] = {}

    @property
    def state(self) -> Optional[ViewState]:
        return self._state

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _require_state(self) -> ViewState:
        if self._state is None:
            raise RuntimeError("No movie detail view is open")
        return self._state

    def _is_current(self, state: ViewState, operation: str) -> bool:
        if self._state is state:
            return True
        STALE_RESULTS_DISCARDED_TOTAL.labels(operation=operation).inc()
        logger.debug(
            "Dropping %s result for record %s: view was closed or replaced",
            operation,
            state.record_id,
        )
        return False

    def _record_failure(self, exc: GatewayError, record_id: Optional[RecordID]) -> None:
        GATEWAY_FAILURES_TOTAL.labels(operation=exc.operation).inc()
        logger.warning(
            "Movie gateway call %s failed for record %s: %s",
            exc.operation,
            record_id,
            exc.detail,
            extra={"operation": exc.operation, "record_id": record_id},
        )
        self.diagnostics.append(
            GatewayDiagnostic(
                operation=exc.operation, record_id=record_id, detail=exc.detail
            )
        )

    def _acquire_write(self, state: ViewState, operation: str) -> bool:
        if self._writes_in_flight.get(operation) is state:
            CONCURRENT_WRITES_REJECTED_TOTAL.labels(operation=operation).inc()
            logger.info(
                "Rejecting %s for record %s: previous submission still in flight",
                operation,
                state.record_id,
            )
            return False
        self._writes_in_flight[operation] = state
        return True

    def _release_write(self, state: ViewState, operation: str) -> None:
        if self._writes_in_flight.get(operation) is state:
            del self._writes_in_flight[operation]

    def _cancel_external_fetch(self) -> None:
        task = self._external_task
        self._external_task = None
        if task is not None and not task.done():
            logger.debug("Cancelling pending external comment fetch")
            task.cancel()

    # ------------------------------------------------------------------
    # Loading
    # ------------------------------------------------------------------

    async def open_view(self, record_id: Any) -> ViewState:
        """Start a fresh view for *record_id* and run the primary fetch.

        Returns once the movie record has loaded (or failed).  External
        comments, when available, keep loading in the background; use
        ``settle()`` to wait for them.
        """

        record_id = coerce_identifier(record_id)
        if record_id is None or not str(record_id).strip():
            raise ValueError("record_id must be a non-empty identifier")
        record_id = str(record_id)

        self._cancel_external_fetch()
        state = ViewState(record_id=record_id)
        self._state = state

        try:
            payload = await self.gateway.get_movie_detail(record_id)
        except GatewayError as exc:
            self._record_failure(exc, record_id)
            if self._is_current(state, exc.operation):
                state.error = LOAD_FAILED_MESSAGE
                state.is_loading = False
            return state

        if not self._is_current(state, "get_movie_detail"):
            return state

        state.movie = payload.movie
        state.comments = list(payload.comments)
        if payload.averageRating is not None:
            state.average_rating = payload.averageRating
        state.comments_page = 1
        state.external_comments_page = 1
        state.external_video_id = payload.externalVideoId
        state.is_loading = False

        if payload.externalVideoId:
            logger.debug(
                "Record %s has YouTube video id %s", record_id, payload.externalVideoId
            )
            self._external_task = asyncio.create_task(
                self._load_external_comments(state, payload.externalVideoId),
                name=f"external-comments-{record_id}",
            )
            self._external_task.add_done_callback(
                partial(self._external_fetch_done, record_id)
            )
        else:
            logger.debug("No YouTube video id for record %s", record_id)

        return state

    async def fetch_external_comments(self, video_id: ExternalVideoID) -> None:
        """Load YouTube comments for *video_id* into the current view."""

        if not video_id:
            raise ValueError("video_id must be a non-empty identifier")
        await self._load_external_comments(self._require_state(), video_id)

    async def _load_external_comments(
        self, state: ViewState, video_id: ExternalVideoID
    ) -> None:
        try:
            comments = await self.gateway.get_external_comments(video_id)
        except GatewayError as exc:
            self._record_failure(exc, state.record_id)
            return

        if not self._is_current(state, "get_external_comments"):
            return
        if comments is None:
            logger.debug("No items in YouTube comments response for %s", video_id)
            return

        state.external_comments = list(comments)
        state.external_comments_page = clamp_page(
            state.external_comments_page,
            len(state.external_comments),
            self.external_pager.page_size,
        )

    def _external_fetch_done(self, record_id: RecordID, task: asyncio.Task) -> None:
        if task.cancelled() or task.exception() is None:
            return
        exc = task.exception()
        logger.error(
            "External comment fetch for record %s crashed", record_id, exc_info=exc
        )
        self._record_failure(
            GatewayError("get_external_comments", f"unexpected error: {exc!r}"),
            record_id,
        )

    async def settle(self) -> None:
        """Wait for a pending external comment fetch, if any."""

        task = self._external_task
        if task is not None:
            await asyncio.wait([task])

    def close_view(self) -> None:
        self._cancel_external_fetch()
        self._writes_in_flight.clear()
        self._state = None

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    async def submit_comment(self, content: Optional[str]) -> Optional[LocalComment]:
        """Post a comment and put it at the top of the list.

        Blank content is ignored without a backend call.  Returns the created
        comment, or ``None`` when nothing was added.
        """

        if content is None or not content.strip():
            return None
        state = self._state
        if state is None:
            logger.debug("submit_comment called without an open view")
            return None
        if not self._acquire_write(state, "submit_comment"):
            return None

        try:
            comment = await self.gateway.submit_comment(state.record_id, content)
        except GatewayError as exc:
            self._record_failure(exc, state.record_id)
            return None
        finally:
            self._release_write(state, "submit_comment")

        if not self._is_current(state, "submit_comment"):
            return None
        state.comments = [comment, *state.comments]
        return comment

    async def submit_rating(self, rating: float) -> Optional[float]:
        """Submit *rating* and adopt the backend's new average.

        On success the rating modal is closed.  On failure the modal stays
        open so the visitor can try again.
        """

        state = self._state
        if state is None:
            logger.debug("submit_rating called without an open view")
            return None
        if not self._acquire_write(state, "submit_rating"):
            return None

        try:
            average = await self.gateway.submit_rating(state.record_id, rating)
        except GatewayError as exc:
            self._record_failure(exc, state.record_id)
            return None
        finally:
            self._release_write(state, "submit_rating")

        if not self._is_current(state, "submit_rating"):
            return None
        state.average_rating = average
        state.show_rating_modal = False
        return average

    # ------------------------------------------------------------------
    # Navigation & modals
    # ------------------------------------------------------------------

    def _list(self, state: ViewState, which: CommentList) -> tuple[List, Pager, str]:
        if CommentList(which) is CommentList.LOCAL:
            return state.comments, self.comments_pager, "comments_page"
        return state.external_comments, self.external_pager, "external_comments_page"

    def next_page(self, which: CommentList) -> int:
        state = self._require_state()
        items, pager, attr = self._list(state, which)
        setattr(state, attr, pager.next(items, getattr(state, attr)))
        return getattr(state, attr)

    def prev_page(self, which: CommentList) -> int:
        state = self._require_state()
        _, pager, attr = self._list(state, which)
        setattr(state, attr, pager.previous(getattr(state, attr)))
        return getattr(state, attr)

    def set_modal(self, modal: Modal, visible: bool) -> None:
        state = self._require_state()
        if Modal(modal) is Modal.COMMENT:
            state.show_comment_modal = visible
        else:
            state.show_rating_modal = visible

    def open_comment_modal(self) -> None:
        self.set_modal(Modal.COMMENT, True)

    def close_comment_modal(self) -> None:
        self.set_modal(Modal.COMMENT, False)

    def open_rating_modal(self) -> None:
        self.set_modal(Modal.RATING, True)

    def close_rating_modal(self) -> None:
        self.set_modal(Modal.RATING, False)

    # ------------------------------------------------------------------
    # Read side
    # ------------------------------------------------------------------

    def share_url(self, record_id: RecordID) -> str:
        base = (settings.PUBLIC_BASE_URL or "").rstrip("/")
        return f"{base}/movies/{record_id}"

    def snapshot(self, share_url: Optional[str] = None) -> ViewSnapshot:
        """Immutable view of the current state with both lists cut to their page."""

        state = self._require_state()
        share = None
        if state.movie is not None:
            share = ShareMetadata.for_movie(
                state.movie,
                share_url or self.share_url(state.record_id),
                settings.SHARE_SITE_NAME,
            )

        return ViewSnapshot(
            recordId=state.record_id,
            movie=state.movie,
            averageRating=state.average_rating,
            averageRatingDisplay=f"{state.average_rating:.1f}",
            isLoading=state.is_loading,
            error=state.error,
            comments=PaginatedResponse[LocalComment](
                data=self.comments_pager.slice(state.comments, state.comments_page),
                pagination=self.comments_pager.describe(
                    state.comments, state.comments_page
                ),
            ),
            externalComments=PaginatedResponse[ExternalComment](
                data=self.external_pager.slice(
                    state.external_comments, state.external_comments_page
                ),
                pagination=self.external_pager.describe(
                    state.external_comments, state.external_comments_page
                ),
            ),
            showCommentModal=state.show_comment_modal,
            showRatingModal=state.show_rating_modal,
            share=share,
        )


__all__ = ["GatewayDiagnostic", "MovieDetailController"]
