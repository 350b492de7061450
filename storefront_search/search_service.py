"""Cache-fronted product search, ranking and autocomplete."""
from __future__ import annotations

import logging
from datetime import datetime, timezone
from functools import lru_cache
from time import perf_counter
from typing import Any, Callable, List, Optional

from pydantic import ValidationError

from .cache import CacheAside, get_cache
from .config import Settings, settings
from .keys import search_cache_key, search_pattern, suggestions_cache_key
from .models import SearchResult, Suggestion
from .pagination import page_number, total_pages, window
from .query import (
    SearchQuery,
    SortMode,
    SortOrder,
    SuggestionFilter,
    build_product_filter,
    is_searchable,
    normalize_query,
)
from .ranking import rank_candidates
from .repository import InMemoryProductRepository, ProductRepository

logger = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class SearchService:
    def __init__(
        self,
        repository: ProductRepository,
        cache: CacheAside,
        config: Settings = settings,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self.repository = repository
        self.cache = cache
        self.config = config
        self.clock = clock

    async def search(
        self,
        query: str,
        category_id: Optional[str] = None,
        min_price: Optional[float] = None,
        max_price: Optional[float] = None,
        in_stock: Optional[bool] = None,
        sort_by: SortMode | str = SortMode.RELEVANCE,
        order: SortOrder | str = SortOrder.DESC,
        limit: int = 20,
        offset: int = 0,
    ) -> SearchResult:
        request = SearchQuery.build(
            query,
            category_id=category_id,
            min_price=min_price,
            max_price=max_price,
            in_stock=in_stock,
            sort_by=sort_by,
            order=order,
            limit=limit,
            offset=offset,
        )
        if not is_searchable(request.text, self.config.min_query_length):
            return SearchResult.empty(request.text)

        cache_key = search_cache_key(request)
        t0 = perf_counter()
        cached = self._load(SearchResult, await self.cache.get(cache_key), cache_key)
        if cached is not None:
            logger.info(
                "timing: total=%.2fms cache_hit=1 q=%r sort=%s",
                (perf_counter() - t0) * 1000,
                request.text,
                request.sort_by.value,
            )
            return cached

        t1 = perf_counter()
        candidates, total = await self.repository.find_matching(
            build_product_filter(request, self.config.relevance_window)
        )
        t2 = perf_counter()
        if request.sort_by is SortMode.RELEVANCE:
            ranked = rank_candidates(
                candidates, request.text, self.clock(), self.config.recent_product_days
            )
            products = [item.candidate for item in window(ranked, request.offset, request.limit)]
        else:
            products = candidates[: request.limit]
        t3 = perf_counter()

        result = SearchResult(
            products=products,
            total=total,
            page=page_number(request.offset, request.limit),
            total_pages=total_pages(total, request.limit),
            query=request.text,
        )
        logger.info(
            "timing: total=%.2fms cache_hit=0 retrieve=%.2fms rank=%.2fms q=%r sort=%s total_hits=%s",
            (t3 - t0) * 1000,
            (t2 - t1) * 1000,
            (t3 - t2) * 1000,
            request.text,
            request.sort_by.value,
            total,
        )
        await self.cache.set(
            cache_key,
            result.model_dump(mode="json", by_alias=True),
            self.config.search_cache_ttl_seconds,
        )
        return result

    async def get_suggestions(self, query: str, limit: int = 5) -> List[Suggestion]:
        text = normalize_query(query)
        if not is_searchable(text, self.config.min_query_length):
            return []
        if limit < 1:
            return []

        cache_key = suggestions_cache_key(text, limit)
        cached = await self.cache.get(cache_key)
        if isinstance(cached, list):
            try:
                return [Suggestion.model_validate(item) for item in cached]
            except ValidationError as exc:
                logger.warning("discarding malformed cache entry key=%r: %s", cache_key, exc)

        suggestions = await self.repository.find_name_matches(SuggestionFilter(text=text, limit=limit))
        logger.debug("suggestions q=%r count=%s", text, len(suggestions))
        await self.cache.set(
            cache_key,
            [item.model_dump(mode="json", by_alias=True) for item in suggestions],
            self.config.suggestion_cache_ttl_seconds,
        )
        return suggestions

    async def invalidate_search_cache(self, pattern: str = search_pattern()) -> int:
        return await self.cache.invalidate(pattern)

    def get_popular_searches(self, limit: int = 10) -> List[str]:
        return list(self.config.popular_searches[: max(limit, 0)])

    @staticmethod
    def _load(model, payload: Any, cache_key: str):
        if payload is None:
            return None
        try:
            return model.model_validate(payload)
        except ValidationError as exc:
            logger.warning("discarding malformed cache entry key=%r: %s", cache_key, exc)
            return None


def build_repository(config: Settings = settings) -> ProductRepository:
    if config.repository_backend == "memory":
        from .importer import load_products

        products = load_products(config.products_path)
        logger.info("Using in-memory repository with %s products", len(products))
        return InMemoryProductRepository(products)
    if config.repository_backend == "elasticsearch":
        from .es_client import get_client
        from .es_repository import ElasticsearchProductRepository

        return ElasticsearchProductRepository(get_client(), config.es_index)
    raise ValueError(f"Unknown REPOSITORY_BACKEND {config.repository_backend!r}")


@lru_cache(maxsize=1)
def get_search_service() -> SearchService:
    return SearchService(repository=build_repository(), cache=CacheAside(get_cache()))
