"""Query parsing and filter construction for catalog search.

Single token  → or(title ~ variants, sku ~ variants, sku-specific patterns)
Multi-token   → or(and(or(title ~ token1), or(title ~ token2), ...), sku-specific patterns)

``SearchMode.CATALOG`` restricts each token group to the title (precise);
``SearchMode.AUTOCOMPLETE`` also lets the first three patterns of each token
hit the SKU (wide).
"""
from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from enum import Enum

from .filters import And, Field, FilterExpression, Leaf, Or
from .patterns import generate_token_patterns
from .phonetics import is_stopword, normalize_text, phonetic_key, tokenize
from .utils import alnum_runs, compact, strip_sku_separators

logger = logging.getLogger(__name__)

MAX_TOKEN_GROUPS = 4
WIDE_SKU_PATTERNS = 3

_NON_ALNUM_RE = re.compile(r"[^a-z0-9]")
_WILDCARD_RUN_RE = re.compile(r"\*+")
_WHITESPACE_RE = re.compile(r"\s+")


class SearchMode(str, Enum):
    CATALOG = "catalog"
    AUTOCOMPLETE = "autocomplete"


@dataclass(frozen=True)
class SearchQuery:
    raw: str
    original: str
    normalized: str
    phonetic: str
    tokens: tuple[str, ...]
    phonetic_tokens: tuple[str, ...]
    effective_tokens: tuple[str, ...]

    @classmethod
    def parse(cls, raw: str) -> "SearchQuery":
        normalized = normalize_text(raw)
        phonetic = phonetic_key(normalized)
        tokens = tuple(tokenize(normalized))
        meaningful = tuple(token for token in tokens if not is_stopword(token))
        return cls(
            raw=raw or "",
            original=(raw or "").lower().strip(),
            normalized=normalized,
            phonetic=phonetic,
            tokens=tokens,
            phonetic_tokens=tuple(phonetic.split()),
            effective_tokens=meaningful or tokens,
        )


def _sku_leaf(pattern: str) -> Leaf:
    return Leaf(Field.SKU, pattern)


def build_sku_conditions(query: SearchQuery) -> list[Leaf]:
    """Patterns that match the query directly against the SKU."""

    no_spaces = compact(query.normalized)
    if len(no_spaces) < 2:
        return []

    conditions = [
        _sku_leaf(f"*{no_spaces}*"),
        _sku_leaf(f"*{_WHITESPACE_RE.sub('*', query.original)}*"),
    ]
    # "abc-12" typed by the user should still find "ABC12..."
    cleaned = strip_sku_separators(query.original)
    if cleaned != no_spaces and len(cleaned) >= 2:
        conditions.append(_sku_leaf(f"*{cleaned}*"))
    # "abc12" should find "ABC-1234"
    runs = alnum_runs(no_spaces)
    if len(runs) > 1:
        conditions.append(_sku_leaf(f"*{'*'.join(runs)}*"))
    return list(dict.fromkeys(conditions))


def _fallback_filter(query: SearchQuery) -> FilterExpression:
    wildcarded = _WILDCARD_RUN_RE.sub("*", f"*{_NON_ALNUM_RE.sub('*', query.original)}*")
    return Or((Leaf(Field.TITLE, wildcarded), Leaf(Field.SKU, wildcarded)))


def _token_group(token: str, mode: SearchMode) -> Or:
    patterns = generate_token_patterns(token)
    conditions = [Leaf(Field.TITLE, pattern) for pattern in patterns]
    if mode is SearchMode.AUTOCOMPLETE:
        conditions.extend(_sku_leaf(pattern) for pattern in patterns[:WIDE_SKU_PATTERNS])
    return Or(tuple(conditions))


def build_search_filter(
    query: SearchQuery | str, mode: SearchMode = SearchMode.CATALOG
) -> FilterExpression:
    """Build the candidate filter for ``query``.

    Every multi-token match requires each of the first four effective tokens to
    appear in the title (accent tolerant); the SKU-specific patterns are always
    OR-ed alongside so a typed SKU matches regardless of the title.
    """

    if isinstance(query, str):
        query = SearchQuery.parse(query)

    tokens = query.effective_tokens
    if not tokens:
        expression = _fallback_filter(query)
        logger.debug("build_search_filter fallback q=%r expr=%s", query.raw, expression)
        return expression

    sku_conditions = build_sku_conditions(query)

    if len(tokens) == 1:
        conditions: list[FilterExpression] = []
        for pattern in generate_token_patterns(tokens[0]):
            conditions.append(Leaf(Field.TITLE, pattern))
            conditions.append(_sku_leaf(pattern))
        conditions.extend(sku_conditions)
        expression: FilterExpression = Or(tuple(dict.fromkeys(conditions)))
    else:
        groups = tuple(_token_group(token, mode) for token in tokens[:MAX_TOKEN_GROUPS])
        expression = Or((And(groups), *sku_conditions))

    logger.debug(
        "build_search_filter q=%r mode=%s tokens=%s expr=%s",
        query.raw,
        mode.value,
        tokens,
        expression,
    )
    return expression
