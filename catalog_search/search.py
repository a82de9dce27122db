"""Search pipeline: parse → build filter → fetch candidates → score → rank."""
from __future__ import annotations

import logging
from time import perf_counter
from typing import Collection

from .candidates import CandidateSource
from .models import SearchResponse, SearchResult
from .query import SearchMode, SearchQuery, build_search_filter
from .ranking import rank_candidates

logger = logging.getLogger(__name__)

MIN_QUERY_LENGTH = 2
DEFAULT_PAGE_SIZE = 200


async def search_products(
    source: CandidateSource,
    q: str,
    limit: int = 8,
    mode: SearchMode = SearchMode.CATALOG,
    *,
    page_size: int = DEFAULT_PAGE_SIZE,
    hidden_skus: Collection[str] = (),
) -> SearchResponse:
    """Run one search against ``source``.

    Queries whose normalized form is shorter than two characters return an
    empty result without touching the store. A failed fetch propagates as
    :class:`~catalog_search.candidates.CandidateFetchFailed`; nothing is scored
    in that case, and cancellation while waiting on the store behaves the same.
    """

    raw = (q or "").strip()
    query = SearchQuery.parse(raw)
    if len(query.normalized) < MIN_QUERY_LENGTH:
        logger.debug("search skipped: normalized query %r too short", query.normalized)
        return SearchResponse(results=[], query=raw)

    t0 = perf_counter()
    expression = build_search_filter(query, mode)
    t1 = perf_counter()
    page = await source.fetch(expression, limit=page_size, exclude_skus=hidden_skus)
    t2 = perf_counter()

    candidates = page.candidates
    if hidden_skus:
        hidden = set(hidden_skus)
        candidates = [candidate for candidate in candidates if candidate.sku not in hidden]

    ranked = rank_candidates(query, candidates, limit)
    t3 = perf_counter()

    logger.info(
        "timing: total=%.2fms build=%.2fms fetch=%.2fms score=%.2fms q=%r mode=%s tokens=%s candidates=%s total_matches=%s",
        (t3 - t0) * 1000,
        (t1 - t0) * 1000,
        (t2 - t1) * 1000,
        (t3 - t2) * 1000,
        raw,
        mode.value,
        list(query.effective_tokens),
        len(candidates),
        page.total_matches,
    )

    results = [
        SearchResult(
            sku=candidate.sku,
            title=candidate.title,
            matchType=candidate.match_type,
            score=candidate.score,
        )
        for candidate in ranked
    ]
    return SearchResponse(results=results, query=raw, totalMatches=page.total_matches)
