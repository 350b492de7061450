"""Cache key construction for search results and suggestions."""
from __future__ import annotations

from typing import Optional
from urllib.parse import quote

from .query import SearchQuery

SEARCH_NAMESPACE = "search"
SUGGESTIONS_NAMESPACE = "suggestions"
UNSET = "all"
# Marks a set category so an id equal to UNSET cannot read as unscoped.
CATEGORY_MARK = "c="


def _text(value: str) -> str:
    # Separators and glob metacharacters from user input must not survive
    # into the key.
    return quote(value, safe="")


def _category(value: Optional[str]) -> str:
    return UNSET if value is None else CATEGORY_MARK + _text(value)


def _price(value: Optional[float]) -> str:
    return UNSET if value is None else repr(float(value))


def search_cache_key(query: SearchQuery) -> str:
    parts = [
        SEARCH_NAMESPACE,
        _text(query.text),
        _category(query.category_id),
        _price(query.min_price),
        _price(query.max_price),
        "in-stock" if query.in_stock else UNSET,
        query.sort_by.value,
        query.order.value,
        str(query.limit),
        str(query.offset),
    ]
    return ":".join(parts)


def suggestions_cache_key(text: str, limit: int) -> str:
    return f"{SUGGESTIONS_NAMESPACE}:{_text(text)}:{limit}"


def search_pattern(prefix: str = "") -> str:
    """Glob matching every cached search whose normalized query starts with ``prefix``."""
    return f"{SEARCH_NAMESPACE}:{_text(prefix)}*"


def suggestions_pattern(prefix: str = "") -> str:
    return f"{SUGGESTIONS_NAMESPACE}:{_text(prefix)}*"
