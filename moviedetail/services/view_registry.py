"""In-process registry of open detail views used by the HTTP adapter."""

from __future__ import annotations

import logging
from collections import OrderedDict
from typing import Optional, Tuple
from uuid import uuid4

from moviedetail.core.config import settings
from moviedetail.external_services.movie_gateway import MovieGateway
from moviedetail.models.common import ViewID
from moviedetail.services.detail_controller import MovieDetailController

logger = logging.getLogger(__name__)


class ViewRegistry:
    """Bounded, least-recently-used map of view id to controller."""

    def __init__(self, max_views: Optional[int] = None):
        self.max_views = max_views or settings.MAX_VIEW_SESSIONS
        self._views: "OrderedDict[ViewID, MovieDetailController]" = OrderedDict()

    def __len__(self) -> int:
        return len(self._views)

    def create(self, gateway: MovieGateway) -> Tuple[ViewID, MovieDetailController]:
        view_id = str(uuid4())
        controller = MovieDetailController(gateway)
        self._views[view_id] = controller

        while len(self._views) > self.max_views:
            evicted_id, evicted = self._views.popitem(last=False)
            evicted.close_view()
            logger.info("Evicted detail view %s (limit %d)", evicted_id, self.max_views)
        return view_id, controller

    def get(self, view_id: ViewID) -> Optional[MovieDetailController]:
        controller = self._views.get(view_id)
        if controller is not None:
            self._views.move_to_end(view_id)
        return controller

    def close(self, view_id: ViewID) -> bool:
        controller = self._views.pop(view_id, None)
        if controller is None:
            return False
        controller.close_view()
        return True

    def close_all(self) -> None:
        for controller in self._views.values():
            controller.close_view()
        self._views.clear()


__all__ = ["ViewRegistry"]
