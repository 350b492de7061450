"""Elasticsearch client factory.

The repository works against the official synchronous client. Blocking calls
are wrapped via ``asyncio.to_thread`` by the caller.
"""
from __future__ import annotations

import asyncio
import logging
from functools import lru_cache

from elasticsearch import ApiError, Elasticsearch, TransportError

from .config import settings

logger = logging.getLogger(__name__)


@lru_cache(maxsize=1)
def get_client() -> Elasticsearch:
    logger.info(
        "Connecting to Elasticsearch at %s (index=%s timeout=%ss retries=%s)",
        settings.es_host,
        settings.es_index,
        settings.es_request_timeout,
        settings.es_max_retries,
    )
    return Elasticsearch(
        settings.es_host,
        request_timeout=settings.es_request_timeout,
        max_retries=settings.es_max_retries,
        retry_on_timeout=True,
    )


async def cluster_status(es: Elasticsearch) -> str:
    """Cluster health colour, or ``"unreachable"`` when the cluster cannot answer."""
    try:
        health = await asyncio.to_thread(es.cluster.health)
    except (ApiError, TransportError) as exc:
        logger.warning("Elasticsearch health check failed: %s", exc)
        return "unreachable"
    return health.get("status", "unknown")
