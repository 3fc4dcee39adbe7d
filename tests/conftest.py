"""Test configuration and shared fixtures."""

import os

# Keep the app import free of exporters and log files; observability tests
# switch it back on explicitly.
os.environ.setdefault("OBSERVABILITY_ENABLED", "false")

import pytest  # noqa: E402
from httpx import ASGITransport  # noqa: E402

from moviedetail.external_services.gateway_mock import InMemoryMovieGateway  # noqa: E402


def make_movie(movie_id=42, **overrides):
    doc = {
        "id": movie_id,
        "name": "The Matrix",
        "genre": "Sci-Fi",
        "summary": "A hacker learns the truth about his reality. " * 4,
        "rating": 8.7,
        "image_poster": "https://img.example.com/matrix.jpg",
        "trailer": "https://www.youtube.com/embed/vKQi3bBA1y8",
        "director": "The Wachowskis",
        "cast": ["Keanu Reeves", "Carrie-Anne Moss"],
        "release_year": 1999,
        "duration": "136 min",
        "rated": "R",
        "language": "English",
    }
    doc.update(overrides)
    return doc


@pytest.fixture
def movie_factory():
    return make_movie


@pytest.fixture
def movie_doc():
    return make_movie()


@pytest.fixture
def memory_gateway(movie_doc) -> InMemoryMovieGateway:
    gateway = InMemoryMovieGateway()
    gateway.add_movie(
        movie_doc,
        comments=[
            {"id": "c2", "movie_id": "42", "content": "Second"},
            {"id": "c1", "movie_id": "42", "content": "First"},
        ],
        ratings=[7, 8],
        youtube_video_id="vKQi3bBA1y8",
    )
    gateway.add_youtube_comments("vKQi3bBA1y8", [f"yt {i}" for i in range(1, 11)])
    return gateway


@pytest.fixture
def asgi_transport():
    from moviedetail.main import app

    return ASGITransport(app=app, raise_app_exceptions=False)


@pytest.fixture
def api_gateway(memory_gateway):
    """Route the HTTP adapter to the in-memory gateway and a fresh registry."""

    from moviedetail.main import app
    from moviedetail.api.v1.dependencies import get_movie_gateway, get_view_registry
    from moviedetail.services.view_registry import ViewRegistry

    registry = ViewRegistry(max_views=10)
    app.dependency_overrides[get_movie_gateway] = lambda: memory_gateway
    app.dependency_overrides[get_view_registry] = lambda: registry
    yield memory_gateway
    registry.close_all()
    app.dependency_overrides.clear()
