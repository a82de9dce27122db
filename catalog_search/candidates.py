"""Candidate records and the boundary to the external product store."""
from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, Collection, Protocol

from .filters import FilterExpression

if TYPE_CHECKING:
    from .config import Settings


class MatchType(str, Enum):
    EXACT = "exact"
    SKU = "sku"
    SIMILAR = "similar"
    FUZZY = "fuzzy"


@dataclass
class Candidate:
    """A product row fetched from the store, enriched in place by scoring."""

    sku: str
    title: str
    score: int = 0
    match_type: MatchType | None = None


@dataclass
class CandidatePage:
    candidates: list[Candidate] = field(default_factory=list)
    total_matches: int = 0


class CandidateFetchFailed(Exception):
    """The product store errored or answered with a non-success status."""

    def __init__(self, detail: str, status_code: int | None = None) -> None:
        super().__init__(detail)
        self.detail = detail
        self.status_code = status_code

    def __str__(self) -> str:
        if self.status_code is None:
            return self.detail
        return f"HTTP {self.status_code}: {self.detail}"


class CandidateSource(Protocol):
    async def fetch(
        self,
        expression: FilterExpression,
        *,
        limit: int,
        exclude_skus: Collection[str] = (),
    ) -> CandidatePage: ...

    async def aclose(self) -> None: ...


def create_candidate_source(settings: "Settings") -> CandidateSource:
    backend = settings.store_backend.lower()
    if backend == "postgrest":
        from .postgrest import PostgrestCandidateSource

        return PostgrestCandidateSource.from_settings(settings)
    if backend == "elasticsearch":
        from .es_client import ElasticsearchCandidateSource, get_client

        return ElasticsearchCandidateSource(get_client(settings.es_host), settings)
    raise ValueError(f"Unknown STORE_BACKEND: {settings.store_backend!r}")
