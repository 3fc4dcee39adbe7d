import pytest
from httpx import AsyncClient

from moviedetail.core.config import settings

API = settings.API_V1_STR


async def _open(client: AsyncClient, movie_id="42", wait=True):
    resp = await client.post(
        f"{API}/views",
        json={"movieId": movie_id},
        params={"waitForExternal": str(wait).lower()},
    )
    assert resp.status_code == 201, resp.text
    return resp.json()


@pytest.mark.asyncio
async def test_open_view_returns_loaded_snapshot(api_gateway, asgi_transport):
    async with AsyncClient(transport=asgi_transport, base_url="http://test") as ac:
        body = await _open(ac)

    view = body["view"]
    assert body["viewId"]
    assert view["recordId"] == "42"
    assert view["isLoading"] is False
    assert view["error"] is None
    assert view["movie"]["name"] == "The Matrix"
    assert view["averageRating"] == 7.5
    assert view["averageRatingDisplay"] == "7.5"
    assert [c["content"] for c in view["comments"]["data"]] == ["Second", "First"]
    assert len(view["externalComments"]["data"]) == 8
    assert view["externalComments"]["pagination"]["totalPages"] == 2
    assert view["share"]["title"] == "The Matrix - Movie Rating"


@pytest.mark.asyncio
async def test_open_unknown_movie_reports_error(api_gateway, asgi_transport):
    async with AsyncClient(transport=asgi_transport, base_url="http://test") as ac:
        body = await _open(ac, movie_id=999)

    assert body["view"]["error"] == "Failed to load movie details"
    assert body["view"]["isLoading"] is False
    assert body["view"]["movie"] is None


@pytest.mark.asyncio
async def test_open_view_rejects_blank_movie_id(api_gateway, asgi_transport):
    async with AsyncClient(transport=asgi_transport, base_url="http://test") as ac:
        resp = await ac.post(f"{API}/views", json={"movieId": " "})

    assert resp.status_code == 422


@pytest.mark.asyncio
async def test_get_view(api_gateway, asgi_transport):
    async with AsyncClient(transport=asgi_transport, base_url="http://test") as ac:
        view_id = (await _open(ac))["viewId"]
        resp = await ac.get(f"{API}/views/{view_id}")

    assert resp.status_code == 200
    assert resp.json()["viewId"] == view_id


@pytest.mark.asyncio
async def test_unknown_view_is_problem_detail(api_gateway, asgi_transport):
    async with AsyncClient(transport=asgi_transport, base_url="http://test") as ac:
        resp = await ac.get(f"{API}/views/does-not-exist")

    assert resp.status_code == 404
    body = resp.json()
    assert body["title"] == "Not Found"
    assert body["detail"] == "View not found"


@pytest.mark.asyncio
async def test_post_comment_prepends(api_gateway, asgi_transport):
    async with AsyncClient(transport=asgi_transport, base_url="http://test") as ac:
        view_id = (await _open(ac))["viewId"]
        resp = await ac.post(
            f"{API}/views/{view_id}/comments", json={"content": "Great film"}
        )

    assert resp.status_code == 200
    comments = resp.json()["view"]["comments"]["data"]
    assert [c["content"] for c in comments] == ["Great film", "Second", "First"]


@pytest.mark.asyncio
async def test_failed_comment_leaves_view_unchanged(api_gateway, asgi_transport):
    api_gateway.fail("submit_comment")

    async with AsyncClient(transport=asgi_transport, base_url="http://test") as ac:
        view_id = (await _open(ac))["viewId"]
        resp = await ac.post(f"{API}/views/{view_id}/comments", json={"content": "Lost"})

    assert resp.status_code == 200
    assert len(resp.json()["view"]["comments"]["data"]) == 2


@pytest.mark.asyncio
async def test_post_rating_updates_average(api_gateway, asgi_transport):
    async with AsyncClient(transport=asgi_transport, base_url="http://test") as ac:
        view_id = (await _open(ac))["viewId"]
        await ac.post(f"{API}/views/{view_id}/modals/rating/open")
        resp = await ac.post(f"{API}/views/{view_id}/ratings", json={"rating": 9})

    view = resp.json()["view"]
    assert resp.status_code == 200
    assert view["averageRating"] == 8.0
    assert view["averageRatingDisplay"] == "8.0"
    assert view["showRatingModal"] is False


@pytest.mark.asyncio
async def test_post_rating_out_of_range(api_gateway, asgi_transport):
    async with AsyncClient(transport=asgi_transport, base_url="http://test") as ac:
        view_id = (await _open(ac))["viewId"]
        resp = await ac.post(f"{API}/views/{view_id}/ratings", json={"rating": 11})

    assert resp.status_code == 422
    assert "submit_rating" not in api_gateway.calls


@pytest.mark.asyncio
async def test_paging_external_comments(api_gateway, asgi_transport):
    async with AsyncClient(transport=asgi_transport, base_url="http://test") as ac:
        view_id = (await _open(ac))["viewId"]
        nxt = await ac.post(f"{API}/views/{view_id}/pages/external-comments/next")
        again = await ac.post(f"{API}/views/{view_id}/pages/external-comments/next")
        prev = await ac.post(f"{API}/views/{view_id}/pages/external-comments/previous")

    page_two = nxt.json()["view"]["externalComments"]
    assert [c["textDisplay"] for c in page_two["data"]] == ["yt 9", "yt 10"]
    assert page_two["pagination"]["currentPage"] == 2
    assert again.json()["view"]["externalComments"]["pagination"]["currentPage"] == 2
    assert prev.json()["view"]["externalComments"]["pagination"]["currentPage"] == 1


@pytest.mark.asyncio
async def test_unknown_comment_list_is_rejected(api_gateway, asgi_transport):
    async with AsyncClient(transport=asgi_transport, base_url="http://test") as ac:
        view_id = (await _open(ac))["viewId"]
        resp = await ac.post(f"{API}/views/{view_id}/pages/reviews/next")

    assert resp.status_code == 422


@pytest.mark.asyncio
async def test_modal_toggles(api_gateway, asgi_transport):
    async with AsyncClient(transport=asgi_transport, base_url="http://test") as ac:
        view_id = (await _open(ac))["viewId"]
        opened = await ac.post(f"{API}/views/{view_id}/modals/comment/open")
        closed = await ac.post(f"{API}/views/{view_id}/modals/comment/close")

    assert opened.json()["view"]["showCommentModal"] is True
    assert opened.json()["view"]["showRatingModal"] is False
    assert closed.json()["view"]["showCommentModal"] is False


@pytest.mark.asyncio
async def test_delete_view(api_gateway, asgi_transport):
    async with AsyncClient(transport=asgi_transport, base_url="http://test") as ac:
        view_id = (await _open(ac, wait=False))["viewId"]
        resp = await ac.delete(f"{API}/views/{view_id}")
        after = await ac.get(f"{API}/views/{view_id}")

    assert resp.status_code == 204
    assert after.status_code == 404


@pytest.mark.asyncio
async def test_delete_unknown_view_is_not_found(api_gateway, asgi_transport):
    async with AsyncClient(transport=asgi_transport, base_url="http://test") as ac:
        resp = await ac.delete(f"{API}/views/does-not-exist")

    assert resp.status_code == 404
    assert resp.json()["detail"] == "View not found"
