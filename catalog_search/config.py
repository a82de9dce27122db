"""Application configuration and constants."""
from __future__ import annotations

import os
from dataclasses import dataclass


def _get_env(name: str, default: str) -> str:
    value = os.getenv(name)
    return value if value is not None else default


@dataclass(frozen=True)
class Settings:
    """Simple settings container with environment variable overrides."""

    store_backend: str = _get_env("STORE_BACKEND", "postgrest")
    supabase_url: str = _get_env("SUPABASE_URL", "")
    supabase_key: str = _get_env("SUPABASE_ANON_KEY", "")
    products_table: str = _get_env("PRODUCTS_TABLE", "produtos")
    title_column: str = _get_env("TITLE_COLUMN", "titulo")
    sku_column: str = _get_env("SKU_COLUMN", "sku")
    es_host: str = _get_env("ES_HOST", "http://localhost:9200")
    es_index: str = _get_env("ES_INDEX", "products")
    es_title_field: str = _get_env("ES_TITLE_FIELD", "title.keyword")
    es_title_sort_field: str = _get_env("ES_TITLE_SORT_FIELD", "title.keyword")
    es_sku_field: str = _get_env("ES_SKU_FIELD", "sku.keyword")
    candidate_page_size: int = int(_get_env("CANDIDATE_PAGE_SIZE", "200"))
    default_limit: int = int(_get_env("DEFAULT_LIMIT", "8"))
    max_limit: int = int(_get_env("MAX_LIMIT", "20"))
    request_timeout_seconds: float = float(_get_env("REQUEST_TIMEOUT_SECONDS", "10"))
    redis_host: str = _get_env("REDIS_HOST", "localhost")
    redis_port: int = int(_get_env("REDIS_PORT", "6379"))
    cache_ttl_seconds: int = int(_get_env("CACHE_TTL_SECONDS", "60"))
    hidden_skus_path: str = _get_env("HIDDEN_SKUS_PATH", "")
    hidden_skus_ttl_seconds: int = int(_get_env("HIDDEN_SKUS_TTL_SECONDS", "60"))
    # PostgREST URLs grow with every excluded SKU; above this the exclusion
    # happens in-process only.
    hidden_sku_filter_limit: int = int(_get_env("HIDDEN_SKU_FILTER_LIMIT", "500"))
    log_level: str = _get_env("LOG_LEVEL", "INFO")


settings = Settings()
