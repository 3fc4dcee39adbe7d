from unittest.mock import MagicMock

from moviedetail.services.detail_controller import MovieDetailController
from moviedetail.services.view_registry import ViewRegistry


def test_create_and_get():
    registry = ViewRegistry(max_views=3)

    view_id, controller = registry.create(MagicMock())

    assert isinstance(controller, MovieDetailController)
    assert registry.get(view_id) is controller
    assert registry.get("missing") is None
    assert len(registry) == 1


def test_oldest_view_is_evicted_and_closed():
    registry = ViewRegistry(max_views=2)
    first_id, first = registry.create(MagicMock())
    first.close_view = MagicMock()
    second_id, _ = registry.create(MagicMock())

    # touching the first view makes the second one the eviction candidate
    registry.get(first_id)
    third_id, _ = registry.create(MagicMock())

    assert len(registry) == 2
    assert registry.get(second_id) is None
    assert registry.get(first_id) is first
    assert registry.get(third_id) is not None
    first.close_view.assert_not_called()


def test_close_and_close_all():
    registry = ViewRegistry(max_views=5)
    view_id, controller = registry.create(MagicMock())
    controller.close_view = MagicMock()
    other_id, other = registry.create(MagicMock())
    other.close_view = MagicMock()

    assert registry.close(view_id) is True
    controller.close_view.assert_called_once()
    assert registry.close(view_id) is False

    registry.close_all()
    other.close_view.assert_called_once()
    assert len(registry) == 0
