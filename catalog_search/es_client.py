"""Elasticsearch client factory and candidate source.

The rest of the code works against the official synchronous client. Blocking
calls are wrapped via ``asyncio.to_thread`` so searches stay cancellable from
the event loop.
"""
from __future__ import annotations

import asyncio
import logging
from functools import lru_cache
from typing import Any, Collection

from elasticsearch import ApiError, Elasticsearch, TransportError

from .candidates import Candidate, CandidateFetchFailed, CandidatePage
from .config import Settings
from .filters import And, Field, FilterExpression, Leaf

logger = logging.getLogger(__name__)


@lru_cache(maxsize=1)
def get_client(host: str) -> Elasticsearch:
    logger.info("Connecting to Elasticsearch at %s", host)
    return Elasticsearch(host)


def to_es_wildcard(pattern: str) -> str:
    """Translate an ILIKE pattern (``*``/``_``) to Elasticsearch (``*``/``?``)."""
    escaped = pattern.replace("\\", "\\\\").replace("?", "\\?")
    return escaped.replace("_", "?")


def to_es_query(expression: FilterExpression, fields: dict[Field, str]) -> dict:
    if isinstance(expression, Leaf):
        return {
            "wildcard": {
                fields[expression.field]: {
                    "value": to_es_wildcard(expression.pattern),
                    "case_insensitive": True,
                }
            }
        }
    children = [to_es_query(child, fields) for child in expression.children]
    if isinstance(expression, And):
        return {"bool": {"must": children}}
    return {"bool": {"should": children, "minimum_should_match": 1}}


class ElasticsearchCandidateSource:
    def __init__(self, es: Elasticsearch, settings: Settings) -> None:
        self.es = es
        self.index = settings.es_index
        self.title_field = settings.es_title_field
        self.title_sort_field = settings.es_title_sort_field
        self.sku_field = settings.es_sku_field
        self.fields = {Field.TITLE: settings.es_title_field, Field.SKU: settings.es_sku_field}

    def build_query(
        self, expression: FilterExpression, exclude_skus: Collection[str] = ()
    ) -> dict:
        bool_clause: dict[str, Any] = {"filter": [to_es_query(expression, self.fields)]}
        if exclude_skus:
            bool_clause["must_not"] = [{"terms": {self.sku_field: sorted(exclude_skus)}}]
        return {"bool": bool_clause}

    @staticmethod
    def _source_value(source: dict, field_name: str) -> str:
        # "title.keyword" is a sub-field; the document itself carries "title".
        value = source.get(field_name.split(".", 1)[0])
        return str(value or "")

    async def fetch(
        self,
        expression: FilterExpression,
        *,
        limit: int,
        exclude_skus: Collection[str] = (),
    ) -> CandidatePage:
        query = self.build_query(expression, exclude_skus)
        logger.debug("ES candidate query=%s", query)
        try:
            response = await asyncio.to_thread(
                self.es.search,
                index=self.index,
                query=query,
                size=limit,
                from_=0,
                sort=[{self.title_sort_field: {"order": "asc"}}],
                track_total_hits=True,
            )
        except ApiError as exc:
            status = getattr(exc.meta, "status", None)
            logger.warning("Elasticsearch error [%s]: %s", status, exc)
            raise CandidateFetchFailed(str(exc.message), status_code=status) from exc
        except TransportError as exc:
            logger.warning("Elasticsearch transport failed: %s", exc)
            raise CandidateFetchFailed(f"transport error: {exc.__class__.__name__}") from exc

        hits = response.get("hits", {})
        candidates = [
            Candidate(
                sku=self._source_value(hit.get("_source", {}), self.sku_field),
                title=self._source_value(hit.get("_source", {}), self.title_field),
            )
            for hit in hits.get("hits", [])
        ]
        total = hits.get("total", {}).get("value", len(candidates))
        return CandidatePage(candidates=candidates, total_matches=total)

    async def aclose(self) -> None:
        await asyncio.to_thread(self.es.close)
