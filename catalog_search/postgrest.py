"""Candidate source backed by a PostgREST (Supabase) products table."""
from __future__ import annotations

import logging
import re
from typing import Any, Collection

import httpx

from .candidates import Candidate, CandidateFetchFailed, CandidatePage
from .config import Settings
from .filters import Field, FilterExpression, quote_value, render_filter

logger = logging.getLogger(__name__)

_CONTENT_RANGE_TOTAL_RE = re.compile(r"/(\d+|\*)")


def parse_content_range(header: str | None, fallback: int) -> int:
    """Read the total from ``Content-Range: 0-199/1234``.

    An unknown total (``*``) or a missing header falls back to ``fallback``.
    """
    if not header:
        return fallback
    match = _CONTENT_RANGE_TOTAL_RE.search(header)
    if not match or match.group(1) == "*":
        return fallback
    return int(match.group(1))


class PostgrestCandidateSource:
    def __init__(
        self,
        client: httpx.AsyncClient,
        *,
        table: str = "produtos",
        title_column: str = "titulo",
        sku_column: str = "sku",
        hidden_sku_filter_limit: int = 500,
    ) -> None:
        self._client = client
        self.table = table
        self.title_column = title_column
        self.sku_column = sku_column
        self.hidden_sku_filter_limit = hidden_sku_filter_limit
        self.columns = {Field.TITLE: title_column, Field.SKU: sku_column}

    @classmethod
    def from_settings(cls, settings: Settings) -> "PostgrestCandidateSource":
        headers = {
            "apikey": settings.supabase_key,
            "Authorization": f"Bearer {settings.supabase_key}",
            "Content-Type": "application/json",
        }
        client = httpx.AsyncClient(
            base_url=f"{settings.supabase_url.rstrip('/')}/rest/v1",
            headers=headers,
            timeout=settings.request_timeout_seconds,
        )
        return cls(
            client,
            table=settings.products_table,
            title_column=settings.title_column,
            sku_column=settings.sku_column,
            hidden_sku_filter_limit=settings.hidden_sku_filter_limit,
        )

    def build_params(
        self, expression: FilterExpression, exclude_skus: Collection[str] = ()
    ) -> list[tuple[str, str]]:
        # "or=(...)": the outer "or" of render_filter becomes the parameter name.
        rendered = render_filter(expression, self.columns)
        params = [
            ("select", f"{self.sku_column},{self.title_column}"),
            ("or", rendered[len("or"):]),
        ]
        if exclude_skus and len(exclude_skus) <= self.hidden_sku_filter_limit:
            excluded = ",".join(quote_value(sku) for sku in sorted(exclude_skus))
            params.append((self.sku_column, f"not.in.({excluded})"))
        params.append(("order", f"{self.title_column}.asc"))
        return params

    def _to_candidate(self, row: dict[str, Any]) -> Candidate:
        return Candidate(
            sku=str(row.get(self.sku_column) or ""),
            title=str(row.get(self.title_column) or ""),
        )

    async def fetch(
        self,
        expression: FilterExpression,
        *,
        limit: int,
        exclude_skus: Collection[str] = (),
    ) -> CandidatePage:
        params = self.build_params(expression, exclude_skus)
        headers = {"Range": f"0-{max(limit, 1) - 1}", "Prefer": "count=exact"}
        try:
            response = await self._client.get(f"/{self.table}", params=params, headers=headers)
        except httpx.HTTPError as exc:
            logger.warning("PostgREST request failed: %s", exc.__class__.__name__)
            raise CandidateFetchFailed(f"network error: {exc.__class__.__name__}") from exc

        if not response.is_success:
            body = (response.text or "")[:200].replace("\n", " ")
            logger.warning("PostgREST error [%s]: %s", response.status_code, body)
            raise CandidateFetchFailed(body, status_code=response.status_code)

        try:
            rows: list[dict[str, Any]] = response.json()
        except ValueError as exc:
            logger.warning("PostgREST returned a non-JSON body [%s]", response.status_code)
            raise CandidateFetchFailed("invalid response body", status_code=response.status_code) from exc
        if not isinstance(rows, list) or not all(isinstance(row, dict) for row in rows):
            logger.warning("PostgREST returned %s instead of a row list", type(rows).__name__)
            raise CandidateFetchFailed("invalid response body", status_code=response.status_code)
        candidates = [self._to_candidate(row) for row in rows]
        total = parse_content_range(response.headers.get("content-range"), len(candidates))
        return CandidatePage(candidates=candidates, total_matches=total)

    async def aclose(self) -> None:
        await self._client.aclose()
