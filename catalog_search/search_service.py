"""Search facade combining the pipeline with caching and visibility."""
from __future__ import annotations

import logging
from time import perf_counter

from .cache import CacheBackend, InMemoryCache, create_cache
from .candidates import CandidateSource, create_candidate_source
from .config import Settings
from .models import SearchResponse
from .query import SearchMode, SearchQuery
from .search import search_products
from .utils import clamp_limit, hash_query
from .visibility import HiddenSkuRegistry

logger = logging.getLogger(__name__)


class SearchEngine:
    def __init__(
        self,
        source: CandidateSource,
        settings: Settings,
        *,
        cache: CacheBackend | None = None,
        hidden: HiddenSkuRegistry | None = None,
    ) -> None:
        self.source = source
        self.settings = settings
        self.cache = cache if cache is not None else InMemoryCache()
        self.hidden = hidden if hidden is not None else HiddenSkuRegistry(frozenset)

    async def search(
        self,
        q: str,
        limit: int | None = None,
        mode: SearchMode = SearchMode.CATALOG,
    ) -> SearchResponse:
        limit = clamp_limit(
            self.settings.default_limit if limit is None else limit,
            upper=self.settings.max_limit,
        )
        cache_key = hash_query(mode.value, SearchQuery.parse(q).original, limit)
        ttl = self.settings.cache_ttl_seconds

        cache_start = perf_counter()
        cached = self.cache.get(cache_key) if ttl > 0 else None
        if cached is not None:
            logger.info(
                "timing: total=%.2fms cache_hit=1 q=%r mode=%s",
                (perf_counter() - cache_start) * 1000,
                q,
                mode.value,
            )
            response = SearchResponse.model_validate(cached)
            # Cached under the normalized query; echo back what this caller typed.
            return response.model_copy(update={"query": (q or "").strip()})

        response = await search_products(
            self.source,
            q,
            limit,
            mode,
            page_size=self.settings.candidate_page_size,
            hidden_skus=self.hidden.get(),
        )
        if ttl > 0 and response.totalMatches is not None:
            self.cache.set(cache_key, response.model_dump(mode="json"), ttl)
            logger.debug("cache_store q=%r ttl=%s", q, ttl)
        return response

    def invalidate(self) -> None:
        self.cache.invalidate()
        self.hidden.invalidate()

    async def aclose(self) -> None:
        await self.source.aclose()


def create_engine(settings: Settings) -> SearchEngine:
    cache: CacheBackend = create_cache(settings) if settings.cache_ttl_seconds > 0 else InMemoryCache()
    return SearchEngine(
        create_candidate_source(settings),
        settings,
        cache=cache,
        hidden=HiddenSkuRegistry.from_path(settings.hidden_skus_path, settings.hidden_skus_ttl_seconds),
    )
