"""Elasticsearch-backed catalog.

Text search mirrors the weighting of the product text index (title 10, brand
8, search tags 6, description 2) with ``fuzziness: AUTO`` and adds a phonetic
should-clause over the ``phonetic`` field written by the importer. Hard
filters always go into the ``filter`` context so they never influence the
relevance score.

The official client is synchronous; callers offload these methods with
``asyncio.to_thread``.
"""
from __future__ import annotations

import logging
from typing import Any, Dict, List

from elasticsearch import ApiError, Elasticsearch, TransportError

from .catalog import Product
from .phonetics import to_phonetic
from .store import CatalogFilter, CatalogUnavailableError, SortOrder

logger = logging.getLogger(__name__)

TEXT_FIELDS = [
    "title^10",
    "brand.text^8",
    "searchTags.text^6",
    "description^2",
]
TOKEN_FIELDS = ["title.raw", "brand", "searchTags"]
DEFAULT_SIZE = 200


def _wildcard(field: str, token: str) -> dict:
    escaped = token.replace("\\", "\\\\").replace("*", "\\*").replace("?", "\\?")
    return {"wildcard": {field: {"value": f"*{escaped}*", "case_insensitive": True}}}


def build_filter_clauses(catalog_filter: CatalogFilter) -> List[dict]:
    clauses: List[dict] = [{"term": {"isActive": True}}]
    if catalog_filter.category:
        clauses.append({"term": {"category": catalog_filter.category}})
    if catalog_filter.brand:
        clauses.append(_wildcard("brand", catalog_filter.brand))
    price_range: Dict[str, float] = {}
    if catalog_filter.min_price is not None:
        price_range["gte"] = catalog_filter.min_price
    if catalog_filter.max_price is not None:
        price_range["lte"] = catalog_filter.max_price
    if price_range:
        clauses.append({"range": {"price": price_range}})
    if catalog_filter.tokens:
        clauses.append(
            {
                "bool": {
                    "should": [
                        _wildcard(field, token)
                        for token in catalog_filter.tokens
                        for field in TOKEN_FIELDS
                    ],
                    "minimum_should_match": 1,
                }
            }
        )
    return clauses


def build_text_query(query: str, catalog_filter: CatalogFilter) -> dict:
    should: List[dict] = []
    phonetic_q = to_phonetic(query)
    if phonetic_q:
        should.append({"match": {"phonetic": {"query": phonetic_q, "boost": 0.5}}})
    body = {
        "size": catalog_filter.limit or DEFAULT_SIZE,
        "query": {
            "bool": {
                "must": [
                    {
                        "multi_match": {
                            "query": query,
                            "fields": TEXT_FIELDS,
                            "type": "most_fields",
                            "fuzziness": "AUTO",
                        }
                    }
                ],
                "should": should,
                "filter": build_filter_clauses(catalog_filter),
            }
        },
    }
    logger.debug("ES text query payload=%s", body)
    return body


def build_filter_query(catalog_filter: CatalogFilter) -> dict:
    body: Dict[str, Any] = {
        "size": catalog_filter.limit or DEFAULT_SIZE,
        "query": {"bool": {"filter": build_filter_clauses(catalog_filter)}},
    }
    if catalog_filter.order is SortOrder.POPULARITY:
        body["sort"] = [{"rating": "desc"}, {"unitsSold": "desc"}]
    logger.debug("ES filter query payload=%s", body)
    return body


class ElasticsearchCatalog:
    supports_text_search = True

    def __init__(self, es: Elasticsearch, index: str) -> None:
        self.es = es
        self.index = index

    def _search(self, body: dict) -> List[Product]:
        try:
            response = self.es.search(index=self.index, body=body)
        except (ApiError, TransportError) as exc:
            logger.warning("Elasticsearch search failed on %s: %s", self.index, exc)
            raise CatalogUnavailableError(f"catalog search failed: {exc}") from exc
        hits = response.get("hits", {}).get("hits", [])
        return [Product.from_document({**hit.get("_source", {}), "id": hit.get("_id")}) for hit in hits]

    def find_active(self, catalog_filter: CatalogFilter) -> List[Product]:
        return self._search(build_filter_query(catalog_filter))

    def text_search(self, query: str, catalog_filter: CatalogFilter) -> List[Product]:
        if not query:
            return []
        return self._search(build_text_query(query, catalog_filter))

    def count(self) -> int:
        try:
            stats = self.es.count(index=self.index, body={"query": {"term": {"isActive": True}}})
        except (ApiError, TransportError) as exc:
            raise CatalogUnavailableError(f"catalog count failed: {exc}") from exc
        return int(stats.get("count", 0))
