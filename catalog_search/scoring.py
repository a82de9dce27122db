"""Relevance scoring of fetched candidates against a parsed query.

All signals are additive; a candidate's score is the sum of:

* exact equality of title or SKU with the query            (+1000)
* title / SKU prefix                                       (+200 / +300)
* title / SKU substring                                    (+150 / +200)
* per query token: exact (3), prefix (2) or substring (1)
  hit against the title tokens, summed and multiplied by    (×30)
* phonetic substring of the whole query                    (+80)
* each phonetic query token found in a phonetic title token (+40)
* typo tolerance per token (Levenshtein), lexical / phonetic (×25 / ×15)
* SKU containing the query with spaces removed             (+100)
* every meaningful token of a multi-word query found        (+300)
"""
from __future__ import annotations

import math

from rapidfuzz import process
from rapidfuzz.distance import Levenshtein

from .phonetics import MIN_TOKEN_LENGTH, is_stopword, normalize_text, phonetic_key
from .query import SearchQuery
from .utils import compact

EXACT_BONUS = 1000
TITLE_PREFIX_BONUS = 200
SKU_PREFIX_BONUS = 300
TITLE_SUBSTRING_BONUS = 150
SKU_SUBSTRING_BONUS = 200
TOKEN_HIT_WEIGHT = 30
PHONETIC_SUBSTRING_BONUS = 80
PHONETIC_TOKEN_BONUS = 40
LEXICAL_TYPO_WEIGHT = 25
PHONETIC_TYPO_WEIGHT = 15
SKU_CONTAINS_BONUS = 100
COMPLETENESS_BONUS = 300

TYPO_MIN_TOKEN_LENGTH = 3
TYPO_MAX_LENGTH_DIFF = 3
TYPO_RATIO = 0.35


def levenshtein(a: str, b: str) -> int:
    """Classic edit distance with unit insert/delete/substitute costs."""
    return Levenshtein.distance(a, b)


def _token_hit(query_token: str, title_tokens: list[str]) -> int:
    # First title token that matches at all decides the weight.
    for title_token in title_tokens:
        if title_token == query_token:
            return 3
        if title_token.startswith(query_token):
            return 2
        if query_token in title_token:
            return 1
    return 0


def _typo_bonus(query_tokens: tuple[str, ...] | list[str], title_tokens: list[str], weight: int) -> int:
    bonus = 0
    for query_token in query_tokens:
        if len(query_token) < TYPO_MIN_TOKEN_LENGTH:
            continue
        choices = [
            title_token
            for title_token in title_tokens
            if abs(len(title_token) - len(query_token)) <= TYPO_MAX_LENGTH_DIFF
        ]
        if not choices:
            continue
        tolerance = max(1, math.floor(len(query_token) * TYPO_RATIO))
        match = process.extractOne(
            query_token, choices, scorer=Levenshtein.distance, score_cutoff=tolerance
        )
        if match is None:
            continue
        _, best, _ = match
        bonus += (tolerance - best + 1) * weight
    return bonus


def _all_meaningful_tokens_found(
    query: SearchQuery, title_tokens: list[str], title_phonetic_tokens: list[str]
) -> bool:
    meaningful = [
        token
        for token in query.tokens
        if len(token) >= MIN_TOKEN_LENGTH and not is_stopword(token)
    ]
    if len(meaningful) <= 1:
        return False
    for token in meaningful:
        if any(token in title_token for title_token in title_tokens):
            continue
        folded = compact(phonetic_key(token))
        if any(folded in title_token for title_token in title_phonetic_tokens):
            continue
        return False
    return True


def score_candidate(query: SearchQuery, title: str, sku: str) -> int:
    title_norm = normalize_text(title)
    sku_norm = normalize_text(sku)
    title_phonetic = phonetic_key(title_norm)
    title_tokens = title_norm.split()
    title_phonetic_tokens = title_phonetic.split()
    query_norm = query.normalized

    score = 0

    if query_norm in (title_norm, sku_norm):
        score += EXACT_BONUS

    if title_norm.startswith(query_norm):
        score += TITLE_PREFIX_BONUS
    if sku_norm.startswith(query_norm):
        score += SKU_PREFIX_BONUS

    if query_norm in title_norm:
        score += TITLE_SUBSTRING_BONUS
    if query_norm in sku_norm:
        score += SKU_SUBSTRING_BONUS

    token_hits = sum(_token_hit(token, title_tokens) for token in query.tokens)
    score += token_hits * TOKEN_HIT_WEIGHT

    if query.phonetic in title_phonetic:
        score += PHONETIC_SUBSTRING_BONUS
    for phonetic_token in query.phonetic_tokens:
        if len(phonetic_token) < MIN_TOKEN_LENGTH:
            continue
        if any(phonetic_token in title_token for title_token in title_phonetic_tokens):
            score += PHONETIC_TOKEN_BONUS

    score += _typo_bonus(query.tokens, title_tokens, LEXICAL_TYPO_WEIGHT)
    score += _typo_bonus(query.phonetic_tokens, title_phonetic_tokens, PHONETIC_TYPO_WEIGHT)

    if compact(query_norm) in sku_norm:
        score += SKU_CONTAINS_BONUS

    if len(query.tokens) > 1 and _all_meaningful_tokens_found(query, title_tokens, title_phonetic_tokens):
        score += COMPLETENESS_BONUS

    return score
