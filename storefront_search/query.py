"""Search parameters, query normalization and repository filters."""
from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional

from .errors import InvalidQueryError

MIN_QUERY_LENGTH = 2


class SortMode(str, Enum):
    RELEVANCE = "relevance"
    NAME = "name"
    PRICE = "price"
    DATE = "date"


class SortOrder(str, Enum):
    ASC = "asc"
    DESC = "desc"


class SortField(str, Enum):
    """Store-level sort keys understood by repositories."""

    CREATED_AT = "created_at"
    NAME = "name"
    PRICE = "price"


_SORT_FIELDS = {
    SortMode.NAME: SortField.NAME,
    SortMode.PRICE: SortField.PRICE,
    SortMode.DATE: SortField.CREATED_AT,
}


def normalize_query(raw: str | None) -> str:
    """Trim and lowercase the raw user text."""
    return (raw or "").strip().lower()


def is_searchable(normalized: str, min_length: int = MIN_QUERY_LENGTH) -> bool:
    return len(normalized) >= min_length


def _parse_enum(enum_cls, value, label: str):
    if isinstance(value, enum_cls):
        return value
    try:
        return enum_cls(str(value).lower())
    except ValueError:
        allowed = ", ".join(member.value for member in enum_cls)
        raise InvalidQueryError(f"Unsupported {label} {value!r}; expected one of: {allowed}") from None


@dataclass(frozen=True)
class SearchQuery:
    text: str
    category_id: Optional[str] = None
    min_price: Optional[float] = None
    max_price: Optional[float] = None
    in_stock: bool = False
    sort_by: SortMode = SortMode.RELEVANCE
    order: SortOrder = SortOrder.DESC
    limit: int = 20
    offset: int = 0

    @classmethod
    def build(
        cls,
        query: str | None,
        *,
        category_id: Optional[str] = None,
        min_price: Optional[float] = None,
        max_price: Optional[float] = None,
        in_stock: Optional[bool] = None,
        sort_by: SortMode | str = SortMode.RELEVANCE,
        order: SortOrder | str = SortOrder.DESC,
        limit: int = 20,
        offset: int = 0,
    ) -> "SearchQuery":
        """Validate caller parameters and normalize the query text."""
        if isinstance(limit, bool) or not isinstance(limit, int) or limit < 1:
            raise InvalidQueryError(f"limit must be a positive integer, got {limit!r}")
        if isinstance(offset, bool) or not isinstance(offset, int) or offset < 0:
            raise InvalidQueryError(f"offset must be a non-negative integer, got {offset!r}")
        return cls(
            text=normalize_query(query),
            category_id=category_id or None,
            min_price=float(min_price) if min_price is not None else None,
            max_price=float(max_price) if max_price is not None else None,
            in_stock=bool(in_stock),
            sort_by=_parse_enum(SortMode, sort_by, "sort mode"),
            order=_parse_enum(SortOrder, order, "sort order"),
            limit=limit,
            offset=offset,
        )


@dataclass(frozen=True)
class ProductFilter:
    """What the repository must match, plus the store-level sort and window."""

    text: str
    category_id: Optional[str] = None
    min_price: Optional[float] = None
    max_price: Optional[float] = None
    in_stock: bool = False
    sort_field: SortField = SortField.CREATED_AT
    order: SortOrder = SortOrder.DESC
    limit: int = 20
    offset: int = 0


@dataclass(frozen=True)
class SuggestionFilter:
    text: str
    limit: int = 5


def build_product_filter(query: SearchQuery, relevance_window: int) -> ProductFilter:
    """Translate a search into a repository filter.

    Non-relevance sorts push ordering and the page window down to the store.
    Relevance fetches the first ``relevance_window`` matches (widened to cover
    the requested page) in recency order so ranking sees the whole filtered
    set before pagination.
    """
    common = dict(
        text=query.text,
        category_id=query.category_id,
        min_price=query.min_price,
        max_price=query.max_price,
        in_stock=query.in_stock,
    )
    if query.sort_by is SortMode.RELEVANCE:
        return ProductFilter(
            **common,
            sort_field=SortField.CREATED_AT,
            order=SortOrder.DESC,
            limit=max(relevance_window, query.offset + query.limit),
            offset=0,
        )
    return ProductFilter(
        **common,
        sort_field=_SORT_FIELDS[query.sort_by],
        order=query.order,
        limit=query.limit,
        offset=query.offset,
    )
