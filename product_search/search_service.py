"""Search orchestration: parse, retrieve, rank, paginate.

:meth:`SearchService.search` returns a JSON-ready payload::

    {"data": [...items...],
     "meta": {"query", "parsedQuery" (debug), "totalCandidates",
              "page", "limit", "totalPages"}}

Blank queries raise :class:`InvalidQueryError` before the catalog is touched.
Catalog failures propagate as
:class:`~product_search.store.CatalogUnavailableError`; an empty result is a
normal response with zero counts.
"""
from __future__ import annotations

import logging
import math
from time import perf_counter
from typing import Any, Dict, List, Optional

from .cache import CacheBackend, search_cache_key
from .config import settings
from .query_parser import ParsedQuery, QueryInterpreter
from .ranking import Ranker, ScoredCandidate
from .retrieval import CandidateRetriever
from .store import CatalogStore

logger = logging.getLogger(__name__)

DEFAULT_PAGE = 1
DEFAULT_LIMIT = 20
MAX_LIMIT = 100


class InvalidQueryError(ValueError):
    """The request cannot be searched (missing or blank query)."""


def clamp_page(page: Optional[int]) -> int:
    return max(1, DEFAULT_PAGE if page is None else page)


def clamp_limit(limit: Optional[int]) -> int:
    return min(MAX_LIMIT, max(1, DEFAULT_LIMIT if limit is None else limit))


def shape_item(candidate: ScoredCandidate, debug: bool) -> Dict[str, Any]:
    product = candidate.product
    item: Dict[str, Any] = {
        "productId": product.id,
        "title": product.title,
        "description": product.description,
        "brand": product.brand,
        "category": product.category,
        "mrp": product.mrp,
        "sellingPrice": product.price,
        "discountPercent": product.discount_percent or 0,
        "currency": product.currency,
        "rating": product.rating,
        "reviewCount": product.review_count,
        "stock": product.stock,
        "metadata": product.attributes.to_dict(),
        "color": product.color,
        "fulfillmentType": product.fulfillment_type.value,
    }
    if debug:
        item["_scores"] = candidate.scores.to_dict()
    return item


def assemble_page(
    ranked: List[ScoredCandidate],
    *,
    raw_query: str,
    parsed: ParsedQuery,
    page: int,
    limit: int,
    debug: bool,
) -> Dict[str, Any]:
    skip = (page - 1) * limit
    paginated = ranked[skip : skip + limit]
    total = len(ranked)
    meta: Dict[str, Any] = {
        "query": raw_query,
        "totalCandidates": total,
        "page": page,
        "limit": limit,
        "totalPages": math.ceil(total / limit),
    }
    if debug:
        meta["parsedQuery"] = parsed.to_dict()
    return {"data": [shape_item(candidate, debug) for candidate in paginated], "meta": meta}


class SearchService:
    def __init__(
        self,
        store: CatalogStore,
        *,
        interpreter: Optional[QueryInterpreter] = None,
        ranker: Optional[Ranker] = None,
        cache: Optional[CacheBackend] = None,
        max_results: int = settings.max_search_results,
        fuzzy_threshold: float = settings.fuzzy_threshold,
        timeout: Optional[float] = settings.catalog_timeout_seconds,
        cache_ttl_seconds: int = settings.cache_ttl_seconds,
    ) -> None:
        self.store = store
        self.interpreter = interpreter or QueryInterpreter()
        self.ranker = ranker or Ranker()
        self.cache = cache
        self.cache_ttl_seconds = cache_ttl_seconds
        self.retriever = CandidateRetriever(
            store,
            max_results=max_results,
            fuzzy_threshold=fuzzy_threshold,
            timeout=timeout,
        )

    async def search(
        self,
        raw_query: Optional[str],
        *,
        page: Optional[int] = DEFAULT_PAGE,
        limit: Optional[int] = DEFAULT_LIMIT,
        category: Optional[str] = None,
        debug: bool = False,
    ) -> Dict[str, Any]:
        query = (raw_query or "").strip()
        if not query:
            raise InvalidQueryError("Search query is required. Use ?query=<your search term>")
        page = clamp_page(page)
        limit = clamp_limit(limit)
        category = category or None

        cache_key = search_cache_key(query, page=page, limit=limit, category=category, debug=debug)
        if self.cache is not None:
            cached = self.cache.get(cache_key)
            if cached is not None:
                logger.info("search cache_hit=1 q=%r page=%s limit=%s", query, page, limit)
                # Keys ignore case; the echoed query must be this caller's.
                return {**cached, "meta": {**cached["meta"], "query": query}}

        t0 = perf_counter()
        parsed = self.interpreter.parse(query)
        t1 = perf_counter()
        retrieval = await self.retriever.retrieve(parsed, category)
        t2 = perf_counter()
        ranked = self.ranker.rank(retrieval.candidates, parsed, retrieval.fuzzy_scores)
        t3 = perf_counter()
        response = assemble_page(ranked, raw_query=query, parsed=parsed, page=page, limit=limit, debug=debug)
        t4 = perf_counter()

        logger.info(
            "timing: total=%.2fms parse=%.2fms retrieve=%.2fms rank=%.2fms assemble=%.2fms q=%r candidates=%s",
            (t4 - t0) * 1000,
            (t1 - t0) * 1000,
            (t2 - t1) * 1000,
            (t3 - t2) * 1000,
            (t4 - t3) * 1000,
            query,
            len(ranked),
        )

        if self.cache is not None:
            self.cache.set(cache_key, response, self.cache_ttl_seconds)
            logger.debug("cache_store q=%r ttl=%s", query, self.cache_ttl_seconds)
        return response
