"""Product repository backed by Elasticsearch."""
from __future__ import annotations

import asyncio
import logging
from typing import Any, Dict, List, Tuple

from elasticsearch import ApiError, Elasticsearch, TransportError

from .errors import RetrievalError
from .models import Candidate, Suggestion
from .query import ProductFilter, SortField, SuggestionFilter

logger = logging.getLogger(__name__)

WILDCARD_FIELDS = ["name.raw", "description.raw", "short_description.raw", "sku.raw"]
SORT_FIELDS = {
    SortField.CREATED_AT: "created_at",
    SortField.NAME: "name.sort",
    SortField.PRICE: "price",
}
# index.max_result_window default
MAX_RESULT_WINDOW = 10_000

PUBLIC_FILTERS: List[dict] = [
    {"term": {"status": "published"}},
    {"term": {"is_active": True}},
]


def _escape_wildcard(text: str) -> str:
    return text.replace("\\", "\\\\").replace("*", "\\*").replace("?", "\\?")


def _contains(field: str, text: str) -> dict:
    return {
        "wildcard": {
            field: {"value": f"*{_escape_wildcard(text)}*", "case_insensitive": True}
        }
    }


def build_match_query(product_filter: ProductFilter) -> Dict[str, Any]:
    filters = list(PUBLIC_FILTERS)
    if product_filter.category_id is not None:
        filters.append({"term": {"category_id": product_filter.category_id}})
    price_range: Dict[str, float] = {}
    if product_filter.min_price is not None:
        price_range["gte"] = product_filter.min_price
    if product_filter.max_price is not None:
        price_range["lte"] = product_filter.max_price
    if price_range:
        filters.append({"range": {"price": price_range}})
    if product_filter.in_stock:
        filters.append({"range": {"stock_quantity": {"gt": 0}}})

    return {
        "bool": {
            "filter": filters,
            "should": [_contains(field, product_filter.text) for field in WILDCARD_FIELDS],
            "minimum_should_match": 1,
        }
    }


def build_sort(product_filter: ProductFilter) -> List[dict]:
    field = SORT_FIELDS[product_filter.sort_field]
    return [{field: {"order": product_filter.order.value}}, {"id": {"order": "asc"}}]


def build_suggestion_query(suggestion_filter: SuggestionFilter) -> Dict[str, Any]:
    return {
        "bool": {
            "filter": PUBLIC_FILTERS + [_contains("name.raw", suggestion_filter.text)],
        }
    }


SUGGESTION_SORT = [
    {"is_featured": {"order": "desc"}},
    {"name.sort": {"order": "asc"}},
    {"id": {"order": "asc"}},
]


def _hits(response: Any) -> List[dict]:
    return response.get("hits", {}).get("hits", [])


def _total(response: Any) -> int:
    total = response.get("hits", {}).get("total", 0)
    if isinstance(total, dict):
        return int(total.get("value", 0))
    return int(total)


class ElasticsearchProductRepository:
    def __init__(self, es: Elasticsearch, index: str) -> None:
        self.es = es
        self.index = index

    async def _search(self, **kwargs: Any) -> Any:
        try:
            return await asyncio.to_thread(self.es.search, index=self.index, **kwargs)
        except (ApiError, TransportError) as exc:
            raise RetrievalError(f"Elasticsearch query on {self.index!r} failed: {exc}") from exc

    async def find_matching(self, product_filter: ProductFilter) -> Tuple[List[Candidate], int]:
        query = build_match_query(product_filter)
        logger.debug("ES match query=%s", query)
        offset = product_filter.offset
        if offset >= MAX_RESULT_WINDOW:
            # from + size may not exceed index.max_result_window; serve the count only.
            response = await self._search(query=query, size=0, track_total_hits=True)
            return [], _total(response)
        response = await self._search(
            query=query,
            sort=build_sort(product_filter),
            from_=offset,
            size=min(product_filter.limit, MAX_RESULT_WINDOW - offset),
            track_total_hits=True,
        )
        candidates = [Candidate.model_validate(hit.get("_source", {})) for hit in _hits(response)]
        return candidates, _total(response)

    async def find_name_matches(self, suggestion_filter: SuggestionFilter) -> List[Suggestion]:
        response = await self._search(
            query=build_suggestion_query(suggestion_filter),
            sort=SUGGESTION_SORT,
            size=suggestion_filter.limit,
        )
        return [
            Suggestion.from_candidate(Candidate.model_validate(hit.get("_source", {})))
            for hit in _hits(response)
        ]
