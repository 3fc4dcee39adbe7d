from functools import lru_cache
from typing import Annotated

from fastapi import Depends, HTTPException, Path, status

from moviedetail.core.config import settings
from moviedetail.external_services.gateway_mock import InMemoryMovieGateway
from moviedetail.external_services.movie_gateway import HttpMovieGateway, MovieGateway
from moviedetail.models.common import ViewID
from moviedetail.services.detail_controller import MovieDetailController
from moviedetail.services.view_registry import ViewRegistry


@lru_cache
def get_movie_gateway() -> MovieGateway:
    """Gateway selected by ``GATEWAY_BACKEND`` (one instance per process)."""

    backend = settings.GATEWAY_BACKEND.strip().lower()
    if backend == "memory":
        return InMemoryMovieGateway()
    if backend == "http":
        return HttpMovieGateway()
    raise ValueError(f"Unsupported GATEWAY_BACKEND '{settings.GATEWAY_BACKEND}'")


_registry = ViewRegistry()


def get_view_registry() -> ViewRegistry:
    return _registry


async def get_view_controller(
    view_id: Annotated[ViewID, Path(description="Identifier returned when the view was opened")],
    registry: Annotated[ViewRegistry, Depends(get_view_registry)],
) -> MovieDetailController:
    """Resolve an open view or raise 404."""

    controller = registry.get(view_id)
    if controller is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND, detail="View not found"
        )
    return controller


view_controller = Annotated[MovieDetailController, Depends(get_view_controller)]
