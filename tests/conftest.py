"""Shared fixtures: product factory, spying repository and a wired service."""

from datetime import datetime, timedelta, timezone

import pytest

from storefront_search.cache import CacheAside, InMemoryCache
from storefront_search.config import Settings
from storefront_search.models import Candidate
from storefront_search.repository import InMemoryProductRepository
from storefront_search.search_service import SearchService

NOW = datetime(2026, 10, 18, 12, 0, tzinfo=timezone.utc)
LONG_AGO = NOW - timedelta(days=365)


def make_product(product_id: str, name: str, **fields) -> Candidate:
    data = {
        "id": product_id,
        "name": name,
        "slug": name.lower().replace(" ", "-"),
        "price": 10.0,
        "stock_quantity": 0,
        "is_featured": False,
        "created_at": LONG_AGO,
    }
    data.update(fields)
    return Candidate(**data)


class SpyRepository(InMemoryProductRepository):
    """In-memory repository that counts calls and records the last filter."""

    def __init__(self, products=()):
        super().__init__(products)
        self.match_calls = 0
        self.suggestion_calls = 0
        self.last_filter = None

    async def find_matching(self, product_filter):
        self.match_calls += 1
        self.last_filter = product_filter
        return await super().find_matching(product_filter)

    async def find_name_matches(self, suggestion_filter):
        self.suggestion_calls += 1
        return await super().find_name_matches(suggestion_filter)


@pytest.fixture
def catalog():
    return [
        make_product("p1", "Blue Widget", sku="BW1", is_featured=True, stock_quantity=5),
        make_product("p2", "Widget Holder", sku="WH2", stock_quantity=0),
        make_product("p3", "Laptop Stand", sku="LS1", stock_quantity=3, category_id="acc", price=45.0),
        make_product("p4", "Phone Case", description="Fits every widget phone", price=15.0),
    ]


@pytest.fixture
def repository(catalog):
    return SpyRepository(catalog)


@pytest.fixture
def memory_cache():
    return InMemoryCache()


@pytest.fixture
def config():
    return Settings(admin_token="secret", popular_searches=("laptop", "phone", "camera"))


@pytest.fixture
def service(repository, memory_cache, config):
    return SearchService(repository, CacheAside(memory_cache), config=config, clock=lambda: NOW)
