"""Ranking and match-type classification of scored candidates."""
from __future__ import annotations

from typing import Iterable

from .candidates import Candidate, MatchType
from .phonetics import normalize_text
from .query import SearchQuery
from .scoring import score_candidate
from .utils import compact

SIMILAR_SCORE_THRESHOLD = 80


def classify_match(query: SearchQuery, candidate: Candidate) -> MatchType:
    title_norm = normalize_text(candidate.title)
    sku_norm = normalize_text(candidate.sku)
    if query.normalized in title_norm or query.normalized in sku_norm:
        return MatchType.EXACT
    if compact(query.normalized) in compact(sku_norm):
        return MatchType.SKU
    if candidate.score >= SIMILAR_SCORE_THRESHOLD:
        return MatchType.SIMILAR
    return MatchType.FUZZY


def _sort_key(candidate: Candidate) -> tuple[int, str, str]:
    return (-candidate.score, candidate.title.casefold(), candidate.sku)


def rank_candidates(
    query: SearchQuery, candidates: Iterable[Candidate], limit: int
) -> list[Candidate]:
    """Score every candidate, drop zero scores, sort and keep the top ``limit``.

    Equal scores are ordered by title, then SKU, so the output never depends
    on the order the store returned rows in.
    """

    scored = []
    for candidate in candidates:
        candidate.score = score_candidate(query, candidate.title, candidate.sku)
        if candidate.score > 0:
            scored.append(candidate)

    ranked = sorted(scored, key=_sort_key)[: max(limit, 0)]
    for candidate in ranked:
        candidate.match_type = classify_match(query, candidate)
    return ranked
