"""Tests for the Elasticsearch candidate source."""
from __future__ import annotations

from unittest.mock import MagicMock

import pytest
from elasticsearch import ApiError, ConnectionError as ESConnectionError

from catalog_search.candidates import CandidateFetchFailed
from catalog_search.config import Settings
from catalog_search.es_client import ElasticsearchCandidateSource, to_es_query, to_es_wildcard
from catalog_search.filters import And, Field, Leaf, Or

FIELDS = {Field.TITLE: "title.keyword", Field.SKU: "sku.keyword"}


def test_to_es_wildcard():
    assert to_es_wildcard("*f_ltro*") == "*f?ltro*"
    assert to_es_wildcard("*a?b*") == "*a\\?b*"


def test_to_es_query_tree():
    expr = Or((And((Leaf(Field.TITLE, "*a*"),)), Leaf(Field.SKU, "*b*")))
    assert to_es_query(expr, FIELDS) == {
        "bool": {
            "should": [
                {"bool": {"must": [{"wildcard": {"title.keyword": {"value": "*a*", "case_insensitive": True}}}]}},
                {"wildcard": {"sku.keyword": {"value": "*b*", "case_insensitive": True}}},
            ],
            "minimum_should_match": 1,
        }
    }


@pytest.mark.asyncio
async def test_fetch_maps_hits_and_total():
    es = MagicMock()
    es.search.return_value = {
        "hits": {
            "total": {"value": 321, "relation": "eq"},
            "hits": [{"_source": {"sku": "FO-100", "title": "Filtro de Óleo"}}],
        }
    }
    source = ElasticsearchCandidateSource(es, Settings(es_index="products"))
    page = await source.fetch(Leaf(Field.TITLE, "*filtro*"), limit=200, exclude_skus={"X-1"})

    assert page.total_matches == 321
    assert [(c.sku, c.title) for c in page.candidates] == [("FO-100", "Filtro de Óleo")]
    kwargs = es.search.call_args.kwargs
    assert kwargs["index"] == "products"
    assert kwargs["size"] == 200
    assert kwargs["track_total_hits"] is True
    assert kwargs["sort"] == [{"title.keyword": {"order": "asc"}}]
    assert kwargs["query"]["bool"]["must_not"] == [{"terms": {"sku.keyword": ["X-1"]}}]


@pytest.mark.asyncio
async def test_fetch_api_error_carries_status():
    es = MagicMock()
    meta = MagicMock()
    meta.status = 400
    es.search.side_effect = ApiError("search_phase_execution_exception", meta=meta, body={})
    source = ElasticsearchCandidateSource(es, Settings())
    with pytest.raises(CandidateFetchFailed) as excinfo:
        await source.fetch(Leaf(Field.TITLE, "*x*"), limit=10)
    assert excinfo.value.status_code == 400


@pytest.mark.asyncio
async def test_fetch_transport_error_has_no_status():
    es = MagicMock()
    es.search.side_effect = ESConnectionError("connection refused")
    source = ElasticsearchCandidateSource(es, Settings())
    with pytest.raises(CandidateFetchFailed) as excinfo:
        await source.fetch(Leaf(Field.TITLE, "*x*"), limit=10)
    assert excinfo.value.status_code is None
