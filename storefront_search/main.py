"""FastAPI application wiring the search service."""
from __future__ import annotations

import logging
from typing import List, Optional

from fastapi import Depends, FastAPI, Header, HTTPException, Query, Response

from .config import settings
from .errors import InvalidQueryError, RetrievalError
from .keys import search_pattern
from .models import CacheInvalidation, SearchResponse, Suggestion
from .query import SortMode, SortOrder
from .search_service import SearchService, get_search_service

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
LOG_LEVEL = logging.getLevelName(settings.log_level.upper())

# Force a predictable logging setup even when run under uvicorn. ``force=True``
# replaces uvicorn's default handlers.
logging.basicConfig(level=LOG_LEVEL, format=LOG_FORMAT, force=True)
for name in ("uvicorn", "uvicorn.error", "uvicorn.access", "elastic_transport"):
    logging.getLogger(name).setLevel(LOG_LEVEL)

logger = logging.getLogger(__name__)
logger.info("Logging configured at %s", settings.log_level.upper())

SEARCH_CACHE_CONTROL = "public, s-maxage=300, stale-while-revalidate=600"
SUGGESTIONS_CACHE_CONTROL = "public, s-maxage=3600, stale-while-revalidate=7200"
SHORT_QUERY_MESSAGE = "Type at least {n} characters to search"
UNAVAILABLE_MESSAGE = "Search is currently unavailable"

app = FastAPI(title="Storefront Search Service")


@app.on_event("startup")
async def startup_event() -> None:
    if settings.repository_backend != "elasticsearch":
        return
    from .es_client import get_client
    from .importer import import_if_empty
    from .indexing import ensure_index

    es = get_client()
    await ensure_index(es)
    if settings.load_on_startup:
        imported = await import_if_empty(es)
        if imported:
            logger.info("Imported %s products on startup", imported)


@app.get("/health")
async def health(service: SearchService = Depends(get_search_service)) -> dict:
    config = service.config
    status = {"repository": config.repository_backend, "cache": type(service.cache.backend).__name__}
    if config.repository_backend == "elasticsearch":
        from .es_client import cluster_status, get_client

        status["elasticsearch"] = await cluster_status(get_client())
        status["index"] = config.es_index
    return status


@app.get("/search", response_model=SearchResponse)
async def search(
    response: Response,
    q: str = Query("", description="Search query"),
    category: Optional[str] = Query(None, description="Category id filter"),
    min_price: Optional[float] = Query(None, alias="minPrice", ge=0),
    max_price: Optional[float] = Query(None, alias="maxPrice", ge=0),
    in_stock: bool = Query(False, alias="inStock"),
    sort: SortMode = Query(SortMode.RELEVANCE),
    order: SortOrder = Query(SortOrder.DESC),
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    service: SearchService = Depends(get_search_service),
) -> SearchResponse:
    try:
        result = await service.search(
            q,
            category_id=category,
            min_price=min_price,
            max_price=max_price,
            in_stock=in_stock,
            sort_by=sort,
            order=order,
            limit=limit,
            offset=(page - 1) * limit,
        )
    except InvalidQueryError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    except RetrievalError as exc:
        logger.exception("search failed q=%r", q)
        raise HTTPException(status_code=503, detail=UNAVAILABLE_MESSAGE) from exc

    payload = SearchResponse(**result.model_dump())
    min_length = service.config.min_query_length
    if len(result.query) < min_length:
        payload.message = SHORT_QUERY_MESSAGE.format(n=min_length)
    else:
        response.headers["Cache-Control"] = SEARCH_CACHE_CONTROL
    return payload


@app.get("/search/suggestions", response_model=List[Suggestion])
async def suggestions(
    response: Response,
    q: str = Query(""),
    limit: int = Query(5, ge=1, le=20),
    service: SearchService = Depends(get_search_service),
) -> List[Suggestion]:
    try:
        items = await service.get_suggestions(q, limit)
    except RetrievalError as exc:
        logger.exception("suggestions failed q=%r", q)
        raise HTTPException(status_code=503, detail=UNAVAILABLE_MESSAGE) from exc
    response.headers["Cache-Control"] = SUGGESTIONS_CACHE_CONTROL
    return items


@app.get("/search/popular", response_model=List[str])
async def popular(
    limit: int = Query(10, ge=1, le=50),
    service: SearchService = Depends(get_search_service),
) -> List[str]:
    return service.get_popular_searches(limit)


@app.delete("/search/cache", response_model=CacheInvalidation)
async def invalidate_cache(
    pattern: str = Query(search_pattern()),
    x_admin_token: Optional[str] = Header(None),
    service: SearchService = Depends(get_search_service),
) -> CacheInvalidation:
    token = service.config.admin_token
    if not token or x_admin_token != token:
        raise HTTPException(status_code=403, detail="Cache invalidation is not permitted")
    deleted = await service.invalidate_search_cache(pattern)
    return CacheInvalidation(pattern=pattern, deleted=deleted)
