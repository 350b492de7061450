"""Pydantic models for products, search results and suggestions."""
from __future__ import annotations

from datetime import datetime, timezone
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel


class _CamelModel(BaseModel):
    # Payloads are emitted in camelCase but accepted in either spelling, so
    # seed files, cached JSON and Elasticsearch sources all validate.
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class CategoryRef(_CamelModel):
    id: str
    name: str
    slug: str


class ProductImage(_CamelModel):
    url: str
    alt: Optional[str] = None
    is_primary: bool = False
    order: int = 0


class Candidate(_CamelModel):
    """A product record as returned by the repository. Treated as read-only."""

    model_config = ConfigDict(frozen=True)

    id: str
    name: str
    slug: str = ""
    description: Optional[str] = None
    short_description: Optional[str] = None
    sku: Optional[str] = None
    price: float
    compare_at_price: Optional[float] = None
    stock_quantity: int = 0
    is_featured: bool = False
    created_at: datetime
    category_id: Optional[str] = None
    category: Optional[CategoryRef] = None
    images: list[ProductImage] = Field(default_factory=list)
    status: str = "published"
    is_active: bool = True

    @field_validator("created_at")
    @classmethod
    def _assume_utc(cls, value: datetime) -> datetime:
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value

    @field_validator("images")
    @classmethod
    def _order_images(cls, value: list[ProductImage]) -> list[ProductImage]:
        return sorted(value, key=lambda image: (not image.is_primary, image.order))

    @property
    def is_searchable(self) -> bool:
        return self.status == "published" and self.is_active

    @property
    def primary_image(self) -> Optional[ProductImage]:
        for image in self.images:
            if image.is_primary:
                return image
        return None


class Suggestion(_CamelModel):
    id: str
    name: str
    slug: str
    price: float
    image: Optional[str] = None

    @classmethod
    def from_candidate(cls, candidate: Candidate) -> "Suggestion":
        primary = candidate.primary_image
        return cls(
            id=candidate.id,
            name=candidate.name,
            slug=candidate.slug,
            price=candidate.price,
            image=primary.url if primary else None,
        )


class SearchResult(_CamelModel):
    products: list[Candidate]
    total: int
    page: int
    total_pages: int
    query: str

    @classmethod
    def empty(cls, query: str) -> "SearchResult":
        return cls(products=[], total=0, page=1, total_pages=0, query=query)


class SearchResponse(SearchResult):
    """HTTP payload: a search result plus an optional hint for the shopper."""

    message: Optional[str] = None


class CacheInvalidation(_CamelModel):
    pattern: str
    deleted: int
