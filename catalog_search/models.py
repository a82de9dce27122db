"""Pydantic models for request/response payloads."""
from __future__ import annotations

from pydantic import BaseModel, Field

from .candidates import MatchType


class SearchResult(BaseModel):
    sku: str
    title: str
    matchType: MatchType
    score: int = Field(..., ge=0)


class SearchResponse(BaseModel):
    results: list[SearchResult] = Field(default_factory=list)
    query: str
    totalMatches: int | None = None


class InvalidateResponse(BaseModel):
    invalidated: bool = True
