"""Integration tests: registry → client → httpx transport → memory store.

A small in-process Yii2-style API is served through ``httpx.MockTransport``.
"""

import json

import httpx
import pytest

from restsync.config import Settings
from restsync.domain.exceptions import ConfigurationError, ServerError
from restsync.infrastructure.dependencies import build_registry
from tests.models import Draft, Membership, Post, Tagged, User

BASE_URL = "https://api.example.com/v1"


class FakeApi:
    """Serves /posts endpoints from a dict and records every request."""

    def __init__(self, count: int = 25):
        self.posts: dict[int, dict] = {
            i: {
                "id": i,
                "title": f"Post {i}",
                "status": "published" if i % 2 else "draft",
                "created_at": f"2024-01-{i:02d}",
                "author_id": 9,
            }
            for i in range(1, count + 1)
        }
        self.author = {"id": 9, "name": "Ada", "email": "ada@example.com"}
        self.requests: list[httpx.Request] = []
        self.fail_with: int | None = None

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self.fail_with is not None:
            return httpx.Response(self.fail_with, json={"name": "Failure"})

        path = request.url.path.removeprefix("/v1")
        route = (request.method, path)
        if route == ("GET", "/posts"):
            return self._list(request.url.params)
        if route == ("GET", "/posts/view"):
            return self._view(request.url.params)
        if route == ("POST", "/posts"):
            return self._create(json.loads(request.content))
        if route == ("PUT", "/posts/update"):
            return self._update(json.loads(request.content))
        if route == ("POST", "/posts/validate"):
            return self._validate(json.loads(request.content))
        if route == ("DELETE", "/posts/delete"):
            self.posts.pop(int(request.url.params["id"]), None)
            return httpx.Response(204)
        if route == ("GET", "/memberships"):
            return httpx.Response(200, json=[])
        return httpx.Response(404, json={"name": "Not Found"})

    def _list(self, params: httpx.QueryParams) -> httpx.Response:
        rows = list(self.posts.values())
        if "filter[status]" in params:
            rows = [row for row in rows if row["status"] == params["filter[status]"]]

        sort = params.get("sort", "")
        if sort:
            field = sort.lstrip("-")
            rows.sort(key=lambda row: row[field], reverse=sort.startswith("-"))

        page = int(params.get("page", 1))
        per_page = int(params.get("per-page", 0))
        if per_page:
            rows = rows[(page - 1) * per_page : page * per_page]

        headers = {
            "X-Pagination-Current-Page": str(page),
            "X-Pagination-Total-Count": str(len(self.posts)),
        }
        return httpx.Response(200, json=rows, headers=headers)

    def _view(self, params: httpx.QueryParams) -> httpx.Response:
        row = dict(self.posts[int(params["id"])])
        if params.get("expand") == "author":
            row["author"] = self.author
        return httpx.Response(200, json=row)

    def _create(self, body: dict) -> httpx.Response:
        new_id = max(self.posts) + 1
        row = {**body, "id": new_id, "created_at": "2024-02-01"}
        self.posts[new_id] = row
        return httpx.Response(201, json=row)

    def _update(self, body: dict) -> httpx.Response:
        self.posts[body["id"]].update(body)
        return httpx.Response(200, json=self.posts[body["id"]])

    def _validate(self, body: dict) -> httpx.Response:
        if not body.get("title"):
            return httpx.Response(
                422, json=[{"field": "title", "message": "Title cannot be blank."}]
            )
        return httpx.Response(200, json=body)


@pytest.fixture
def api() -> FakeApi:
    return FakeApi()


@pytest.fixture
def registry(api: FakeApi):
    settings = Settings(_env_file=None, base_url=BASE_URL + "/")
    http_client = httpx.AsyncClient(transport=httpx.MockTransport(api.handler))
    return build_registry(settings, http_client=http_client)


# ── list / view ──


@pytest.mark.asyncio
async def test_list_second_page_sorted_descending(registry, api: FakeApi):
    result = await registry.client(Post).list({"page": 2, "page_size": 10, "sort": "-created_at"})

    assert [post.id for post in result] == list(range(15, 5, -1))
    assert result.page == 2
    assert result.total_items == 25
    params = api.requests[0].url.params
    assert params["per-page"] == "10"
    assert params["page"] == "2"
    assert params["sort"] == "-created_at"
    assert all(post.dirty_fields() == [] for post in result)


@pytest.mark.asyncio
async def test_list_uses_default_page_size(registry, api: FakeApi):
    result = await registry.client(Post).list()

    assert api.requests[0].url.params["per-page"] == "5"
    assert len(result) == 5


@pytest.mark.asyncio
async def test_list_page_size_zero_is_sent_and_none_is_omitted(registry, api: FakeApi):
    client = registry.client(Post)

    await client.list({"page_size": 0})
    await client.list({"page_size": None})

    assert api.requests[0].url.params["per-page"] == "0"
    assert "per-page" not in api.requests[1].url.params


@pytest.mark.asyncio
async def test_list_filter_uses_bracket_notation(registry, api: FakeApi):
    result = await registry.client(Post).list(
        {"filter": {"status": "draft"}, "page_size": None, "sort": "id"}
    )

    assert api.requests[0].url.params["filter[status]"] == "draft"
    assert [post.id for post in result] == list(range(2, 26, 2))


@pytest.mark.asyncio
async def test_listed_records_are_cached(registry):
    client = registry.client(Post)

    await client.list({"page_size": 3, "sort": "id"})

    assert sorted(post.id for post in client.cached()) == [1, 2, 3]


@pytest.mark.asyncio
async def test_view_with_expanded_author(registry, api: FakeApi):
    result = await registry.client(Post).view(3, {"expand": "author"})

    post = result.first()
    assert post.id == 3
    assert isinstance(post.author, User)
    assert post.author.name == "Ada"
    assert api.requests[0].url.params["id"] == "3"
    assert registry.store.find(User, 9).email == "ada@example.com"


@pytest.mark.asyncio
async def test_list_without_endpoint_is_a_configuration_error(registry, api: FakeApi):
    with pytest.raises(ConfigurationError):
        await registry.client(Draft).list()

    assert api.requests == []


@pytest.mark.asyncio
async def test_list_server_error_propagates(registry, api: FakeApi):
    api.fail_with = 500

    with pytest.raises(ServerError) as exc_info:
        await registry.client(Post).list()

    assert exc_info.value.status == 500


@pytest.mark.asyncio
async def test_empty_composite_key_listing(registry, api: FakeApi):
    result = await registry.client(Membership).list()

    assert len(result) == 0
    assert result.first() is None


# ── save / validate / delete ──


@pytest.mark.asyncio
async def test_create_assigns_server_id_and_is_clean(registry, api: FakeApi):
    client = registry.client(Post)
    post = client.new(title="Hello")

    response = await client.save(post)

    assert response.status == 201
    assert api.requests[0].method == "POST"
    assert post.id == 26
    assert post.created_at == "2024-02-01"
    assert post.dirty_fields() == []
    assert registry.store.find(Post, 26).title == "Hello"


@pytest.mark.asyncio
async def test_update_puts_edits_and_refreshes_store(registry, api: FakeApi):
    client = registry.client(Post)
    post = (await client.view(4)).first()
    post.title = "Renamed"

    await client.save(post)

    update = api.requests[-1]
    assert update.method == "PUT"
    assert json.loads(update.content)["title"] == "Renamed"
    assert post.is_dirty("title") is False
    assert registry.store.find(Post, 4).title == "Renamed"
    assert api.posts[4]["title"] == "Renamed"


@pytest.mark.asyncio
async def test_validate_reports_field_errors(registry, api: FakeApi):
    client = registry.client(Post)
    post = client.new(title="")

    response = await client.validate(post, "/posts/validate")

    assert response.status == 422
    assert post.has_errors() is True
    assert post.get_error("title") == "Title cannot be blank."
    assert registry.store.all(Post) == []


@pytest.mark.asyncio
async def test_validate_success_does_not_touch_store(registry):
    client = registry.client(Post)
    post = client.new(title="Fine", id=99)

    response = await client.validate(post, "/posts/validate")

    assert response.status == 200
    assert post.has_errors() is False
    assert registry.store.find(Post, 99) is None


@pytest.mark.asyncio
async def test_delete_removes_record_from_store(registry, api: FakeApi):
    client = registry.client(Post)
    post = (await client.view(3)).first()

    response = await client.delete(post)

    assert response.status == 204
    assert api.requests[-1].url.params["id"] == "3"
    assert registry.store.find(Post, 3) is None
    assert 3 not in api.posts


# ── registry ──


def test_registry_caches_clients(registry):
    assert Post not in registry

    client = registry.client(Post)

    assert registry.client(Post) is client
    assert Post in registry
    assert registry.client(User) is not client


# ── transformed fields and routed endpoints ──


@pytest.fixture
def tagged_requests() -> list[httpx.Request]:
    return []


@pytest.fixture
def tagged_registry(tagged_requests: list[httpx.Request]):
    def handler(request: httpx.Request) -> httpx.Response:
        tagged_requests.append(request)
        if request.url.path == "/tagged":
            return httpx.Response(200, json=[{"id": 1, "tags": [1, 2]}])
        if request.url.path == "/tagged/4":
            return httpx.Response(200, json={"id": 4, "tags": [3]})
        return httpx.Response(404, json={"name": "Not Found"})

    settings = Settings(_env_file=None, base_url="http://api.test")
    http_client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return build_registry(settings, http_client=http_client)


@pytest.mark.asyncio
async def test_list_applies_transformers_once(tagged_registry):
    client = tagged_registry.client(Tagged)

    result = await client.list()

    assert result.first().tags == [10, 20]
    assert result.first().dirty_fields() == []
    assert client.cached()[0].tags == [10, 20]
    assert result.first().to_json()["tags"] == [1, 2]


@pytest.mark.asyncio
async def test_view_fills_endpoint_placeholders(tagged_registry, tagged_requests):
    result = await tagged_registry.client(Tagged).view(4)

    assert tagged_requests[0].url.path == "/tagged/4"
    assert result.first().tags == [30]


@pytest.mark.asyncio
async def test_list_with_unfilled_placeholder_is_a_configuration_error(
    tagged_registry, tagged_requests
):
    class Scoped(Tagged):
        endpoint_list = "/groups/{group_id}/tagged"

    with pytest.raises(ConfigurationError):
        await tagged_registry.client(Scoped).list()

    assert tagged_requests == []
