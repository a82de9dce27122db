"""Small helpers shared by the query builder, the service and the API.

SKUs are typed by users in many shapes (``abc-12``, ``ABC 12``, ``abc.12``),
so the query builder needs a few ways of flattening them before they become
wildcard patterns.
"""
from __future__ import annotations

import hashlib
import re

_WHITESPACE_RE = re.compile(r"\s+")
_SKU_SEPARATORS_RE = re.compile(r"[-_.\s/\\]")
_ALNUM_RUN_RE = re.compile(r"[a-z]+|[0-9]+")


def compact(text: str) -> str:
    """Remove every whitespace character."""
    return _WHITESPACE_RE.sub("", text)


def strip_sku_separators(text: str) -> str:
    """Drop hyphens, underscores, dots, slashes and whitespace."""
    return _SKU_SEPARATORS_RE.sub("", text)


def alnum_runs(text: str) -> list[str]:
    """Split a lowercase string into alphabetic and numeric runs.

    ``"abc12"`` → ``["abc", "12"]``. Any other character ends a run and is
    discarded.
    """
    return _ALNUM_RUN_RE.findall(text)


def clamp_limit(limit: int, lower: int = 1, upper: int = 20) -> int:
    return max(lower, min(limit, upper))


def hash_query(*parts: object) -> str:
    """Stable cache key for a search request."""
    raw = "\x1f".join(str(part) for part in parts)
    return "search:" + hashlib.sha1(raw.encode("utf-8")).hexdigest()
