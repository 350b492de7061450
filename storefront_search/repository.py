"""Product repository contract and a list-backed implementation."""
from __future__ import annotations

import logging
from typing import Iterable, List, Protocol, Tuple

from .models import Candidate, Suggestion
from .query import ProductFilter, SortField, SortOrder, SuggestionFilter

logger = logging.getLogger(__name__)


class ProductRepository(Protocol):
    async def find_matching(self, product_filter: ProductFilter) -> Tuple[List[Candidate], int]:
        """Return one window of matches plus the total for the whole filter."""
        ...

    async def find_name_matches(self, suggestion_filter: SuggestionFilter) -> List[Suggestion]:
        """Name-contains lookup ordered featured first, then by name."""
        ...


TEXT_FIELDS = ("name", "description", "short_description", "sku")


def matches_text(candidate: Candidate, text: str) -> bool:
    return any(text in (getattr(candidate, field) or "").lower() for field in TEXT_FIELDS)


def matches_filter(candidate: Candidate, product_filter: ProductFilter) -> bool:
    if not candidate.is_searchable:
        return False
    if not matches_text(candidate, product_filter.text):
        return False
    if product_filter.category_id is not None and candidate.category_id != product_filter.category_id:
        return False
    if product_filter.min_price is not None and candidate.price < product_filter.min_price:
        return False
    if product_filter.max_price is not None and candidate.price > product_filter.max_price:
        return False
    if product_filter.in_stock and candidate.stock_quantity <= 0:
        return False
    return True


def _sort_value(candidate: Candidate, field: SortField):
    if field is SortField.NAME:
        return candidate.name.lower()
    if field is SortField.PRICE:
        return candidate.price
    return candidate.created_at


class InMemoryProductRepository:
    """Evaluates filters over a product list held in memory.

    Mirrors the Elasticsearch repository: the same filters, the same sort
    keys, ``id`` ascending as the final tie-break.
    """

    def __init__(self, products: Iterable[Candidate] = ()) -> None:
        self._products: List[Candidate] = list(products)

    def __len__(self) -> int:
        return len(self._products)

    async def find_matching(self, product_filter: ProductFilter) -> Tuple[List[Candidate], int]:
        matched = [item for item in self._products if matches_filter(item, product_filter)]
        matched.sort(key=lambda item: item.id)
        matched.sort(
            key=lambda item: _sort_value(item, product_filter.sort_field),
            reverse=product_filter.order is SortOrder.DESC,
        )
        start = product_filter.offset
        stop = start + product_filter.limit
        logger.debug("memory find_matching text=%r matched=%s", product_filter.text, len(matched))
        return matched[start:stop], len(matched)

    async def find_name_matches(self, suggestion_filter: SuggestionFilter) -> List[Suggestion]:
        matched = [
            item
            for item in self._products
            if item.is_searchable and suggestion_filter.text in item.name.lower()
        ]
        matched.sort(key=lambda item: (not item.is_featured, item.name.lower(), item.id))
        return [Suggestion.from_candidate(item) for item in matched[: suggestion_filter.limit]]
