"""Product seed loading and Elasticsearch bulk import."""
from __future__ import annotations

import asyncio
import json
import logging
import re
from pathlib import Path
from typing import Iterable, List

from elasticsearch import Elasticsearch, helpers
from unidecode import unidecode

from .config import settings
from .models import Candidate

logger = logging.getLogger(__name__)

_NON_SLUG_RE = re.compile(r"[^a-z0-9]+")


def slugify(text: str) -> str:
    """ASCII slug for a product name, e.g. ``"Crème Brûlée Set"`` -> ``"creme-brulee-set"``."""
    return _NON_SLUG_RE.sub("-", unidecode(text).lower()).strip("-")


def _prepare_product(raw: dict) -> Candidate:
    product = Candidate.model_validate(raw)
    if not product.slug:
        product = product.model_copy(update={"slug": slugify(product.name)})
    return product


def load_products(path: str | Path) -> List[Candidate]:
    """Read a JSON array of product records (camelCase or snake_case keys)."""
    file_path = Path(path)
    if not file_path.exists():
        logger.warning("Products file %s is missing", file_path)
        return []
    with file_path.open("r", encoding="utf-8") as fh:
        raw_products = json.load(fh)
    return [_prepare_product(item) for item in raw_products]


def _iter_actions(index: str, products: Iterable[Candidate]) -> Iterable[dict]:
    for product in products:
        yield {
            "_index": index,
            "_id": product.id,
            "_source": product.model_dump(mode="json"),
        }


async def import_products(es: Elasticsearch, path: str | Path | None = None) -> int:
    products = load_products(path or settings.products_path)
    if not products:
        return 0
    actions = list(_iter_actions(settings.es_index, products))
    await asyncio.to_thread(helpers.bulk, es, actions, refresh="wait_for")
    logger.info("Indexed %s products into %s", len(actions), settings.es_index)
    return len(actions)


async def import_if_empty(es: Elasticsearch) -> int:
    from .indexing import index_is_empty

    if not await index_is_empty(es):
        return 0
    return await import_products(es)


async def reindex_data(es: Elasticsearch, service=None) -> int:
    """Rebuild the index from the seed file and drop cached searches.

    ``service`` is the :class:`SearchService` whose cache should be
    invalidated; pass ``None`` when no cache is in play.
    """
    from .indexing import drop_index, ensure_index
    from .keys import search_pattern, suggestions_pattern

    await drop_index(es)
    await ensure_index(es)
    count = await import_products(es)
    if service is not None:
        await service.invalidate_search_cache(search_pattern())
        await service.invalidate_search_cache(suggestions_pattern())
    return count
