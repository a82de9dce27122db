"""Accent-tolerant wildcard patterns for a single search token.

The product titles in the store keep their Portuguese accents while queries
are normalized to plain ASCII, so each token is expanded into a handful of
``ILIKE``-style patterns (``*`` = any run, ``_`` = any single character) that
cover the likely accented spellings.
"""
from __future__ import annotations

import logging

logger = logging.getLogger(__name__)

MAX_PATTERNS_PER_TOKEN = 15

VOWELS = "aeiou"

# Character -> accented variants that commonly replace it in Portuguese.
ACCENT_VARIANTS: dict[str, tuple[str, ...]] = {
    "a": ("á", "ã", "â"),
    "e": ("é", "ê"),
    "i": ("í",),
    "o": ("ó", "ô", "õ"),
    "u": ("ú",),
    "c": ("ç",),
}


def _wrap(fragment: str) -> str:
    return f"*{fragment}*"


def _replace_at(token: str, index: int, replacement: str) -> str:
    return token[:index] + replacement + token[index + 1 :]


def _vowel_positions(token: str) -> list[int]:
    return [idx for idx, ch in enumerate(token) if ch in VOWELS]


def generate_token_patterns(token: str) -> list[str]:
    """Return up to :data:`MAX_PATTERNS_PER_TOKEN` patterns for ``token``.

    Patterns come most specific first:

    1. the bare substring ``*token*``;
    2. one accent substitution per eligible character position;
    3. Portuguese endings (``ao`` → ``ão``, ``oes`` → ``ões``, ``cao`` → ``ção``);
    4. ``ca`` → ``ça`` and ``co`` → ``ço`` (the latter skipped for ``com``);
    5. a ``_`` wildcard at the first vowel (length ≥ 3) and at the second
       vowel (length ≥ 5);
    6. the substring without its first character (length ≥ 4).
    """

    if len(token) < 2:
        return [_wrap(token)]

    patterns = [_wrap(token)]

    for idx, ch in enumerate(token):
        for variant in ACCENT_VARIANTS.get(ch, ()):
            patterns.append(_wrap(_replace_at(token, idx, variant)))

    if token.endswith("ao"):
        patterns.append(_wrap(token[:-2] + "ão"))
    if token.endswith("oes"):
        patterns.append(_wrap(token[:-3] + "ões"))
    if token.endswith("cao"):
        patterns.append(_wrap(token[:-3] + "ção"))
    if "ca" in token:
        patterns.append(_wrap(token.replace("ca", "ça", 1)))
    if "co" in token and "com" not in token:
        patterns.append(_wrap(token.replace("co", "ço", 1)))

    vowels = _vowel_positions(token)
    if vowels and len(token) >= 3:
        patterns.append(_wrap(_replace_at(token, vowels[0], "_")))
    if len(vowels) >= 2 and len(token) >= 5:
        patterns.append(_wrap(_replace_at(token, vowels[1], "_")))

    if len(token) >= 4:
        patterns.append(_wrap(token[1:]))

    unique = list(dict.fromkeys(patterns))[:MAX_PATTERNS_PER_TOKEN]
    logger.debug("generate_token_patterns token=%r patterns=%s", token, unique)
    return unique
