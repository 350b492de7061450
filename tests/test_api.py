"""HTTP layer: parameter mapping, error translation and headers."""

import pytest
from fastapi.testclient import TestClient

from conftest import NOW
from storefront_search.cache import CacheAside, InMemoryCache
from storefront_search.config import Settings
from storefront_search.errors import RetrievalError
from storefront_search.main import app
from storefront_search.search_service import SearchService, get_search_service


class FailingRepository:
    async def find_matching(self, product_filter):
        raise RetrievalError("store unavailable")

    async def find_name_matches(self, suggestion_filter):
        raise RetrievalError("store unavailable")


@pytest.fixture
def client(service):
    app.dependency_overrides[get_search_service] = lambda: service
    yield TestClient(app)
    app.dependency_overrides.pop(get_search_service, None)


def test_search_returns_camel_case_payload(client):
    resp = client.get("/search", params={"q": "widget", "limit": 2, "page": 2})

    assert resp.status_code == 200
    data = resp.json()
    assert data["total"] == 3
    assert data["page"] == 2
    assert data["totalPages"] == 2
    assert len(data["products"]) == 1
    assert "stockQuantity" in data["products"][0]
    assert "relevanceScore" not in data["products"][0]
    assert resp.headers["cache-control"] == "public, s-maxage=300, stale-while-revalidate=600"


def test_search_maps_filters(client, repository):
    resp = client.get(
        "/search",
        params={"q": "widget", "inStock": "true", "minPrice": 5, "maxPrice": 20, "sort": "price", "order": "asc"},
    )

    assert resp.status_code == 200
    assert [p["name"] for p in resp.json()["products"]] == ["Blue Widget"]
    assert repository.last_filter.in_stock is True
    assert repository.last_filter.min_price == 5.0


def test_short_query_is_a_hint_not_an_error(client, repository):
    resp = client.get("/search", params={"q": " w "})

    assert resp.status_code == 200
    data = resp.json()
    assert data["products"] == []
    assert data["totalPages"] == 0
    assert data["message"] == "Type at least 2 characters to search"
    assert repository.match_calls == 0


@pytest.mark.parametrize("params", [{"q": "widget", "limit": 0}, {"q": "widget", "limit": 101}, {"q": "widget", "page": 0}, {"q": "widget", "sort": "hot"}])
def test_invalid_parameters_are_rejected(client, params):
    assert client.get("/search", params=params).status_code == 422


def test_retrieval_failure_reads_as_unavailable(config):
    failing = SearchService(FailingRepository(), CacheAside(InMemoryCache()), config=config, clock=lambda: NOW)
    app.dependency_overrides[get_search_service] = lambda: failing
    try:
        client = TestClient(app)
        search = client.get("/search", params={"q": "widget"})
        suggest = client.get("/search/suggestions", params={"q": "widget"})
    finally:
        app.dependency_overrides.pop(get_search_service, None)

    assert search.status_code == 503
    assert search.json()["detail"] == "Search is currently unavailable"
    assert suggest.status_code == 503


def test_suggestions_endpoint(client):
    resp = client.get("/search/suggestions", params={"q": "WI", "limit": 1})

    assert resp.status_code == 200
    assert resp.json() == [
        {"id": "p1", "name": "Blue Widget", "slug": "blue-widget", "price": 10.0, "image": None}
    ]
    assert "s-maxage=3600" in resp.headers["cache-control"]


def test_short_suggestion_query_is_empty(client):
    resp = client.get("/search/suggestions", params={"q": "w"})

    assert resp.status_code == 200
    assert resp.json() == []


def test_popular_searches(client):
    assert client.get("/search/popular", params={"limit": 2}).json() == ["laptop", "phone"]


def test_cache_invalidation_requires_admin_token(client, repository):
    client.get("/search", params={"q": "widget"})

    denied = client.delete("/search/cache")
    allowed = client.delete("/search/cache", headers={"X-Admin-Token": "secret"})
    client.get("/search", params={"q": "widget"})

    assert denied.status_code == 403
    assert allowed.status_code == 200
    assert allowed.json() == {"pattern": "search:*", "deleted": 1}
    assert repository.match_calls == 2


def test_health_reports_backends(repository):
    memory_backed = SearchService(
        repository, CacheAside(InMemoryCache()), config=Settings(repository_backend="memory"), clock=lambda: NOW
    )
    app.dependency_overrides[get_search_service] = lambda: memory_backed
    try:
        data = TestClient(app).get("/health").json()
    finally:
        app.dependency_overrides.pop(get_search_service, None)

    assert data == {"repository": "memory", "cache": "InMemoryCache"}
