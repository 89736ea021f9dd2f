"""Weighted approximate matching over product text fields.

Each field is scored independently with ``rapidfuzz``'s ``WRatio``. A field
counts as a match when its dissimilarity (``1 - similarity``) is within the
threshold; a product's dissimilarity is the weighted product of its matched
fields, so agreeing fields pull the score towards 0 and a single weak match
on a low-weight field stays close to 1. Products with no matching field are
left out of the results.

The index holds pre-folded field text only and never mutates the products, so
one index can be shared across requests for the same catalog snapshot.
"""
from __future__ import annotations

import logging
import sys
from dataclasses import dataclass
from typing import Dict, List, Optional, Sequence, Tuple

from rapidfuzz import fuzz, process

from .catalog import Product
from .phonetics import fold_text

logger = logging.getLogger(__name__)

DEFAULT_THRESHOLD = 0.45

FIELD_WEIGHTS: Tuple[Tuple[str, float], ...] = (
    ("title", 0.45),
    ("brand", 0.20),
    ("tags", 0.15),
    ("model", 0.10),
    ("description", 0.10),
)

# Floor for per-field distances; a perfect match must not zero the product.
_EPSILON = sys.float_info.epsilon


@dataclass(frozen=True)
class FuzzyMatch:
    item: Product
    score: float


def _field_text(product: Product, name: str) -> str:
    if name == "tags":
        return fold_text(" ".join(product.search_tags))
    return fold_text(getattr(product, name, ""))


class FuzzyIndex:
    def __init__(
        self,
        items: Sequence[Product],
        fields: Dict[str, List[str]],
        *,
        threshold: float,
        weights: Tuple[Tuple[str, float], ...],
    ) -> None:
        self._items = list(items)
        self._fields = fields
        self._weights = weights
        self.threshold = threshold

    @classmethod
    def build(
        cls,
        items: Sequence[Product],
        *,
        threshold: float = DEFAULT_THRESHOLD,
        weights: Tuple[Tuple[str, float], ...] = FIELD_WEIGHTS,
    ) -> "FuzzyIndex":
        total = sum(weight for _, weight in weights) or 1.0
        normalized = tuple((name, weight / total) for name, weight in weights)
        fields = {name: [_field_text(item, name) for item in items] for name, _ in normalized}
        return cls(items, fields, threshold=threshold, weights=normalized)

    def __len__(self) -> int:
        return len(self._items)

    def search(self, query: str, limit: Optional[int] = None) -> List[FuzzyMatch]:
        cleaned = fold_text(query)
        if not cleaned or not self._items:
            return []

        cutoff = (1.0 - self.threshold) * 100.0
        scores: Dict[int, float] = {}
        for name, weight in self._weights:
            matches = process.extract(
                cleaned,
                self._fields[name],
                scorer=fuzz.WRatio,
                processor=None,
                score_cutoff=cutoff,
                limit=None,
            )
            for _choice, similarity, idx in matches:
                distance = max(1.0 - similarity / 100.0, _EPSILON)
                scores[idx] = scores.get(idx, 1.0) * distance ** weight

        ranked = sorted(scores.items(), key=lambda pair: (pair[1], pair[0]))
        if limit is not None:
            ranked = ranked[:limit]
        logger.debug("fuzzy search q=%r items=%s matched=%s", cleaned, len(self._items), len(scores))
        return [FuzzyMatch(item=self._items[idx], score=min(1.0, max(0.0, score))) for idx, score in ranked]

    def scores(self, query: str) -> Dict[str, float]:
        """Dissimilarity per product id for every matched item."""
        return {match.item.id: match.score for match in self.search(query)}
