"""Application configuration and constants."""
from __future__ import annotations

import os
from dataclasses import dataclass


def _get_env(name: str, default: str) -> str:
    value = os.getenv(name)
    return value if value is not None else default


def _get_flag(name: str, default: str) -> bool:
    return _get_env(name, default).lower() in {"1", "true", "yes"}


def _get_list(name: str, default: str) -> tuple[str, ...]:
    return tuple(item.strip() for item in _get_env(name, default).split(",") if item.strip())


@dataclass(frozen=True)
class Settings:
    """Simple settings container with environment variable overrides."""

    repository_backend: str = _get_env("REPOSITORY_BACKEND", "elasticsearch")
    es_host: str = _get_env("ES_HOST", "http://localhost:9200")
    es_index: str = _get_env("ES_INDEX", "storefront-products")
    es_request_timeout: float = float(_get_env("ES_REQUEST_TIMEOUT", "10"))
    es_max_retries: int = int(_get_env("ES_MAX_RETRIES", "2"))
    mapping_path: str = _get_env("MAPPING_PATH", "product-mapping.json")
    products_path: str = _get_env("PRODUCTS_PATH", "products.json")
    load_on_startup: bool = _get_flag("LOAD_ON_STARTUP", "true")
    redis_host: str = _get_env("REDIS_HOST", "localhost")
    redis_port: int = int(_get_env("REDIS_PORT", "6379"))
    redis_db: int = int(_get_env("REDIS_DB", "0"))
    cache_prefix: str = _get_env("CACHE_PREFIX", "")
    search_cache_ttl_seconds: int = int(_get_env("SEARCH_CACHE_TTL_SECONDS", "300"))
    suggestion_cache_ttl_seconds: int = int(_get_env("SUGGESTION_CACHE_TTL_SECONDS", "3600"))
    min_query_length: int = int(_get_env("MIN_QUERY_LENGTH", "2"))
    relevance_window: int = int(_get_env("RELEVANCE_WINDOW", "1000"))
    recent_product_days: int = int(_get_env("RECENT_PRODUCT_DAYS", "30"))
    popular_searches: tuple[str, ...] = _get_list(
        "POPULAR_SEARCHES", "laptop,phone,headphones,camera,watch"
    )
    admin_token: str | None = os.getenv("ADMIN_TOKEN") or None
    log_level: str = _get_env("LOG_LEVEL", "INFO")


settings = Settings()
