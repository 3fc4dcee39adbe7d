from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, Query, Response, status

from moviedetail.api.v1.dependencies import (
    get_movie_gateway,
    get_view_registry,
    view_controller,
)
from moviedetail.external_services.movie_gateway import MovieGateway
from moviedetail.models.comment import CommentCreateRequest
from moviedetail.models.common import ViewID
from moviedetail.models.rating import RatingSubmitRequest
from moviedetail.models.view import (
    CommentList,
    Modal,
    ViewOpenRequest,
    ViewSessionResponse,
)
from moviedetail.services.detail_controller import MovieDetailController
from moviedetail.services.view_registry import ViewRegistry

router = APIRouter(tags=["Movie Views"])


def _session(view_id: ViewID, controller: MovieDetailController) -> ViewSessionResponse:
    return ViewSessionResponse(viewId=view_id, view=controller.snapshot())


@router.post(
    "/views",
    response_model=ViewSessionResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Open a movie detail view",
)
async def open_movie_view(
    request: ViewOpenRequest,
    registry: Annotated[ViewRegistry, Depends(get_view_registry)],
    gateway: Annotated[MovieGateway, Depends(get_movie_gateway)],
    wait_for_external: bool = Query(
        False,
        alias="waitForExternal",
        description="Also wait for YouTube comments before responding",
    ),
):
    """Load the movie record; YouTube comments keep loading in the background."""

    view_id, controller = registry.create(gateway)
    await controller.open_view(request.movieId)
    if wait_for_external:
        await controller.settle()
    return _session(view_id, controller)


@router.get(
    "/views/{view_id}",
    response_model=ViewSessionResponse,
    summary="Current state of a detail view",
)
async def get_movie_view(view_id: ViewID, controller: view_controller):
    return _session(view_id, controller)


@router.delete(
    "/views/{view_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Close a detail view",
)
async def close_movie_view(
    view_id: ViewID,
    registry: Annotated[ViewRegistry, Depends(get_view_registry)],
):
    if not registry.close(view_id):
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND, detail="View not found"
        )
    return Response(status_code=status.HTTP_204_NO_CONTENT)


# ---------------------------------------------------------------------------
# Writes
# ---------------------------------------------------------------------------


@router.post(
    "/views/{view_id}/comments",
    response_model=ViewSessionResponse,
    summary="Add a comment to the viewed movie",
)
async def post_view_comment(
    view_id: ViewID,
    comment_data: CommentCreateRequest,
    controller: view_controller,
):
    """Blank comments are ignored; a failed submission leaves the view unchanged."""

    await controller.submit_comment(comment_data.content)
    return _session(view_id, controller)


@router.post(
    "/views/{view_id}/ratings",
    response_model=ViewSessionResponse,
    summary="Rate the viewed movie",
)
async def post_view_rating(
    view_id: ViewID,
    rating_data: RatingSubmitRequest,
    controller: view_controller,
):
    await controller.submit_rating(rating_data.rating)
    return _session(view_id, controller)


# ---------------------------------------------------------------------------
# Navigation & modals
# ---------------------------------------------------------------------------


@router.post(
    "/views/{view_id}/pages/{comment_list}/next",
    response_model=ViewSessionResponse,
    summary="Show the next page of a comment list",
)
async def next_comment_page(
    view_id: ViewID, comment_list: CommentList, controller: view_controller
):
    controller.next_page(comment_list)
    return _session(view_id, controller)


@router.post(
    "/views/{view_id}/pages/{comment_list}/previous",
    response_model=ViewSessionResponse,
    summary="Show the previous page of a comment list",
)
async def previous_comment_page(
    view_id: ViewID, comment_list: CommentList, controller: view_controller
):
    controller.prev_page(comment_list)
    return _session(view_id, controller)


@router.post(
    "/views/{view_id}/modals/{modal}/open",
    response_model=ViewSessionResponse,
    summary="Show the comment or rating dialog",
)
async def open_modal(view_id: ViewID, modal: Modal, controller: view_controller):
    controller.set_modal(modal, True)
    return _session(view_id, controller)


@router.post(
    "/views/{view_id}/modals/{modal}/close",
    response_model=ViewSessionResponse,
    summary="Hide the comment or rating dialog",
)
async def close_modal(view_id: ViewID, modal: Modal, controller: view_controller):
    controller.set_modal(modal, False)
    return _session(view_id, controller)
