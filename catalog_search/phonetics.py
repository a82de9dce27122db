"""Utilities for query normalization and Portuguese phonetic folding.

Two-step pipeline shared by the query builder and the scorer:

    1) :func:`normalize_text` cleans the user text (lowercase, strip accents
       via Unicode decomposition, drop punctuation, collapse whitespace) so that
       ``"Óleo"`` and ``"oleo"`` compare equal.
    2) :func:`phonetic_key` folds the normalized string through an ordered list
       of Portuguese spelling rewrites so that variants such as ``"chave"`` /
       ``"xave"`` or ``"jeladeira"`` / ``"geladeira"`` share one key.

The phonetic key is only ever used for comparisons; it is never shown to users.
"""
from __future__ import annotations

import logging
import re
import unicodedata

logger = logging.getLogger(__name__)

# After accent stripping we keep only Latin letters/digits/spaces.
_NON_ALNUM_SPACE_RE = re.compile(r"[^a-z0-9 ]")

MIN_TOKEN_LENGTH = 2

# Applied strictly in order: digraph rules must run before the single-letter
# and doubled-consonant collapses that follow them.
PHONETIC_RULES: tuple[tuple[re.Pattern[str], str], ...] = (
    (re.compile(r"ss"), "s"),
    (re.compile(r"ç"), "s"),
    (re.compile(r"ch"), "x"),
    (re.compile(r"sh"), "x"),
    (re.compile(r"ph"), "f"),
    (re.compile(r"th"), "t"),
    (re.compile(r"lh"), "li"),
    (re.compile(r"nh"), "ni"),
    (re.compile(r"rr"), "r"),
    (re.compile(r"qu"), "k"),
    (re.compile(r"gu(?=[ei])"), "g"),
    (re.compile(r"ge"), "je"),
    (re.compile(r"gi"), "ji"),
    (re.compile(r"ce"), "se"),
    (re.compile(r"ci"), "si"),
    (re.compile(r"ks"), "x"),
    (re.compile(r"ct"), "t"),
    (re.compile(r"sc(?=[ei])"), "s"),
    (re.compile(r"xc(?=[ei])"), "s"),
    (re.compile(r"z$"), "s"),
    (re.compile(r"w"), "v"),
    (re.compile(r"y"), "i"),
    (re.compile(r"ll"), "l"),
    (re.compile(r"nn"), "n"),
    (re.compile(r"mm"), "m"),
    (re.compile(r"tt"), "t"),
    (re.compile(r"pp"), "p"),
    (re.compile(r"bb"), "b"),
    (re.compile(r"dd"), "d"),
    (re.compile(r"ff"), "f"),
    (re.compile(r"gg"), "g"),
    (re.compile(r"cc"), "c"),
)

# Portuguese stopwords: dropped from the query builder's token groups unless
# that would leave nothing to search for.
PT_STOPWORDS: frozenset[str] = frozenset(
    {
        "de", "do", "da", "dos", "das", "em", "no", "na", "nos", "nas",
        "um", "uma", "uns", "umas", "o", "a", "os", "as", "e", "ou",
        "para", "por", "com", "sem", "ate", "que", "se", "mas", "mais",
        "ao", "aos", "pelo", "pela", "pelos", "pelas", "es", "el",
        "so", "ja", "nao", "nem", "tipo", "ser", "ter",
    }
)


def normalize_text(text: str) -> str:
    """Normalize free-form input prior to matching and phonetics.

    1. Lowercase the input.
    2. Decompose to NFD and drop combining marks (``"é"`` → ``"e"``,
       ``"ç"`` → ``"c"``).
    3. Replace everything except ``a-z``, digits and spaces with a space.
    4. Collapse whitespace and trim.

    The function is total and idempotent: any string (including ``None``-ish
    empty input) yields a string made only of ``[a-z0-9 ]``.
    """

    lowered = (text or "").lower()
    decomposed = unicodedata.normalize("NFD", lowered)
    stripped = "".join(ch for ch in decomposed if not unicodedata.combining(ch))
    cleaned = _NON_ALNUM_SPACE_RE.sub(" ", stripped)
    normalized = " ".join(cleaned.split())
    logger.debug("normalize_text raw=%r normalized=%r", text, normalized)
    return normalized


def tokenize(normalized: str) -> list[str]:
    """Split a normalized string into tokens of at least two characters."""

    return [token for token in normalized.split() if len(token) >= MIN_TOKEN_LENGTH]


def is_stopword(token: str) -> bool:
    return token in PT_STOPWORDS


def phonetic_key(text: str) -> str:
    """Fold text into its Portuguese phonetic key.

    The input is normalized first (a no-op for already normalized strings),
    then every rule of :data:`PHONETIC_RULES` is applied in sequence.
    """

    folded = normalize_text(text)
    for pattern, replacement in PHONETIC_RULES:
        folded = pattern.sub(replacement, folded)
    return folded
