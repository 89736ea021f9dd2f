"""Candidate retrieval: turn a parsed query into a bounded candidate set.

Searchable catalogs are queried in three tiers whose results are merged in
order (not short-circuited):

    1) native full-text search with hard filters;
    2) token fallback: any query token inside title/brand/tags, always run
       because Hinglish/typo rewriting is imprecise;
    3) last resort: best rated / best selling items under the hard filters,
       only when tiers 1 and 2 produced nothing.

Plain catalogs are filtered, fuzzy matched and padded with unmatched items so
the ranker always has material to work with.

Every catalog call runs in a worker thread and is bounded by a timeout.
Timeouts surface as :class:`CatalogUnavailableError`; cancellation of the
calling task propagates untouched.
"""
from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Callable, Dict, Iterable, List, Optional, TypeVar

from .catalog import Product
from .fuzzy import DEFAULT_THRESHOLD, FuzzyIndex
from .query_parser import ParsedQuery
from .store import CatalogFilter, CatalogStore, CatalogUnavailableError, SortOrder

logger = logging.getLogger(__name__)

DEFAULT_MAX_RESULTS = 100
CANDIDATE_MULTIPLIER = 2
FUZZY_PAD_FLOOR = 20

T = TypeVar("T")


@dataclass
class Retrieval:
    candidates: List[Product] = field(default_factory=list)
    fuzzy_scores: Dict[str, float] = field(default_factory=dict)


def dedupe(products: Iterable[Product], cap: Optional[int] = None) -> List[Product]:
    seen: set[str] = set()
    unique: List[Product] = []
    for product in products:
        if product.id in seen:
            continue
        seen.add(product.id)
        unique.append(product)
        if cap is not None and len(unique) >= cap:
            break
    return unique


class CandidateRetriever:
    def __init__(
        self,
        store: CatalogStore,
        *,
        max_results: int = DEFAULT_MAX_RESULTS,
        fuzzy_threshold: float = DEFAULT_THRESHOLD,
        timeout: Optional[float] = None,
    ) -> None:
        self.store = store
        self.max_results = max_results
        self.fuzzy_threshold = fuzzy_threshold
        self.timeout = timeout

    @property
    def cap(self) -> int:
        return self.max_results * CANDIDATE_MULTIPLIER

    def hard_filter(self, parsed: ParsedQuery, category: Optional[str] = None, *, with_brand: bool) -> CatalogFilter:
        return CatalogFilter(
            category=category or None,
            brand=parsed.brand if with_brand else None,
            min_price=parsed.min_price,
            max_price=parsed.max_price,
            limit=self.cap,
        )

    async def _call(self, func: Callable[..., T], *args) -> T:
        try:
            return await asyncio.wait_for(asyncio.to_thread(func, *args), timeout=self.timeout)
        except asyncio.TimeoutError as exc:
            logger.warning("catalog call %s timed out after %ss", getattr(func, "__name__", func), self.timeout)
            raise CatalogUnavailableError(f"catalog did not answer within {self.timeout}s") from exc

    async def retrieve(self, parsed: ParsedQuery, category: Optional[str] = None) -> Retrieval:
        if self.store.supports_text_search:
            candidates = await self._retrieve_searchable(parsed, category)
            index = FuzzyIndex.build(candidates, threshold=self.fuzzy_threshold)
            return Retrieval(candidates=candidates, fuzzy_scores=index.scores(parsed.normalized))
        return await self._retrieve_plain(parsed, category)

    async def _retrieve_searchable(self, parsed: ParsedQuery, category: Optional[str]) -> List[Product]:
        base = self.hard_filter(parsed, category, with_brand=True)
        candidates: List[Product] = []

        if parsed.normalized:
            text_hits = await self._call(self.store.text_search, parsed.normalized, base)
            candidates.extend(text_hits)
        else:
            text_hits = []

        token_hits: List[Product] = []
        if parsed.tokens:
            token_hits = await self._call(self.store.find_active, base.with_tokens(parsed.tokens))
            candidates.extend(token_hits)

        fallback_hits: List[Product] = []
        if not candidates:
            fallback_hits = await self._call(self.store.find_active, base.ordered_by(SortOrder.POPULARITY))
            candidates.extend(fallback_hits)

        unique = dedupe(candidates, self.cap)
        logger.info(
            "retrieve searchable q=%r text=%s tokens=%s fallback=%s unique=%s",
            parsed.normalized,
            len(text_hits),
            len(token_hits),
            len(fallback_hits),
            len(unique),
        )
        return unique

    async def _retrieve_plain(self, parsed: ParsedQuery, category: Optional[str]) -> Retrieval:
        base = self.hard_filter(parsed, category, with_brand=False).limited(None)
        filtered = await self._call(self.store.find_active, base)

        index = FuzzyIndex.build(filtered, threshold=self.fuzzy_threshold)
        matches = index.search(parsed.normalized, limit=self.cap)
        candidates = [match.item for match in matches]
        if len(matches) < FUZZY_PAD_FLOOR:
            matched_ids = {product.id for product in candidates}
            for product in filtered:
                if len(candidates) >= self.cap:
                    break
                if product.id not in matched_ids:
                    candidates.append(product)
                    matched_ids.add(product.id)

        unique = dedupe(candidates, self.cap)
        logger.info(
            "retrieve plain q=%r filtered=%s fuzzy=%s unique=%s",
            parsed.normalized,
            len(filtered),
            len(matches),
            len(unique),
        )
        return Retrieval(
            candidates=unique,
            fuzzy_scores={match.item.id: match.score for match in matches},
        )
