"""Composite relevance scoring.

Every candidate gets six independent sub-scores in ``[0, 1]``:

* **text**: fuzzy similarity, query-token coverage and a title-prefix bonus;
* **quality**: Bayesian-shrunk rating blended with return/complaint rates;
* **popularity**: log-compressed units sold, sales velocity and views;
* **stock**: availability tier plus an express fulfillment bonus;
* **commercial**: log-compressed discount;
* **intent**: additive bonuses conditioned on the parsed query.

The weighted sum is multiplied by an out-of-stock penalty. Scoring is pure
arithmetic over the candidate and the parsed query, so identical inputs give
identical output; the only clock dependency is the freshness term, which
takes an explicit ``current_year``.
"""
from __future__ import annotations

import datetime
import logging
import math
import re
from dataclasses import dataclass
from typing import Dict, Iterable, List, Mapping, Optional

from .catalog import Product
from .query_parser import ParsedQuery

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Weights:
    text: float = 0.30
    quality: float = 0.22
    popularity: float = 0.18
    stock: float = 0.08
    commercial: float = 0.10
    intent: float = 0.12


DEFAULT_WEIGHTS = Weights()

OUT_OF_STOCK_PENALTY = 0.5

# Bayesian prior: 50 virtual reviews averaging 3.5 stars.
PRIOR_MEAN = 3.5
PRIOR_STRENGTH = 50

UNITS_SOLD_CAP = 50_000
SALES_VELOCITY_CAP = 2_000
VIEW_COUNT_CAP = 100_000
DISCOUNT_CAP = 70

FRESHNESS_BASE_YEAR = 2018

_MODEL_NUMBER_RE = re.compile(r"\b(\d{1,2})\b")


def clamp(value: float, low: float = 0.0, high: float = 1.0) -> float:
    if value != value:  # NaN
        return low
    return max(low, min(high, value))


def _log_ratio(value: float, cap: float) -> float:
    if value is None or value <= 0:
        return 0.0
    return clamp(math.log1p(value) / math.log1p(cap))


@dataclass(frozen=True)
class ScoreBreakdown:
    text: float
    quality: float
    popularity: float
    stock: float
    commercial: float
    intent: float
    final: float

    def to_dict(self) -> Dict[str, float]:
        return {
            "text": self.text,
            "quality": self.quality,
            "popularity": self.popularity,
            "stock": self.stock,
            "commercial": self.commercial,
            "intent": self.intent,
            "final": self.final,
        }


@dataclass(frozen=True)
class ScoredCandidate:
    product: Product
    scores: ScoreBreakdown


def text_score(product: Product, parsed: ParsedQuery, dissimilarity: Optional[float]) -> float:
    distance = 1.0 if dissimilarity is None else clamp(dissimilarity)
    fuzzy_part = 0.6 * (1.0 - distance)

    tokens = parsed.tokens
    token_part = 0.0
    prefix_bonus = 0.0
    if tokens:
        haystack = " ".join(
            [product.title, product.brand, product.description, " ".join(product.search_tags), product.model]
        ).lower()
        hits = sum(1 for token in tokens if token in haystack)
        token_part = 0.35 * hits / len(tokens)
        if product.title.lower().startswith(tokens[0]):
            prefix_bonus = 0.15
    return clamp(fuzzy_part + token_part + prefix_bonus)


def bayesian_rating(rating: float, review_count: int) -> float:
    reviews = max(0, review_count or 0)
    return (PRIOR_STRENGTH * PRIOR_MEAN + clamp(rating, 0.0, 5.0) * reviews) / (PRIOR_STRENGTH + reviews)


def quality_score(product: Product) -> float:
    rating_score = bayesian_rating(product.rating, product.review_count) / 5.0
    return_part = 1.0 - clamp(product.return_rate / 100.0)
    complaint_part = 1.0 - clamp(product.complaint_rate / 100.0)
    return clamp(0.6 * rating_score + 0.25 * return_part + 0.15 * complaint_part)


def popularity_score(product: Product) -> float:
    return clamp(
        0.5 * _log_ratio(product.units_sold, UNITS_SOLD_CAP)
        + 0.35 * _log_ratio(product.sales_velocity, SALES_VELOCITY_CAP)
        + 0.15 * _log_ratio(product.view_count, VIEW_COUNT_CAP)
    )


def stock_score(product: Product) -> float:
    if product.stock <= 0:
        return 0.0
    if product.stock >= 50:
        level = 1.0
    elif product.stock >= 10:
        level = 0.75
    else:
        level = 0.5
    if product.is_express:
        level += 0.15
    return clamp(level)


def commercial_score(product: Product) -> float:
    return _log_ratio(product.discount_percent, DISCOUNT_CAP)


def _model_number(title: str) -> Optional[int]:
    match = _MODEL_NUMBER_RE.search(title)
    return int(match.group(1)) if match else None


def _freshness(launch_year: Optional[int], current_year: int) -> float:
    if not launch_year:
        return 0.0
    span = current_year - FRESHNESS_BASE_YEAR
    if span <= 0:
        return 1.0 if launch_year >= current_year else 0.0
    return clamp((launch_year - FRESHNESS_BASE_YEAR) / span)


def _price_tier_bonus(price: float) -> float:
    if price > 80_000:
        return 0.6
    if price > 50_000:
        return 0.3
    if price > 30_000:
        return 0.1
    return 0.0


def _in_price_range(price: float, parsed: ParsedQuery) -> bool:
    if parsed.min_price is not None and price < parsed.min_price:
        return False
    if parsed.max_price is not None and price > parsed.max_price:
        return False
    return True


def intent_bonus(product: Product, parsed: ParsedQuery, current_year: int) -> float:
    """Unclamped sum of the intent bonuses; may be negative on a price miss."""
    intent = parsed.intent
    bonus = 0.0

    if intent.cheap:
        if product.price < 20_000:
            band = 0.3
        elif product.price < 40_000:
            band = 0.15
        else:
            band = 0.0
        bonus += 0.5 * min(1.0, max(0.0, product.discount_percent) / 50.0) + 0.5 * band

    if intent.latest:
        bonus += _freshness(product.launch_year, current_year) * 0.8
        model_number = _model_number(product.title)
        if model_number is not None:
            if model_number >= 15:
                bonus += 0.1
            if model_number >= 16:
                bonus += 0.1

    if intent.best:
        bonus += clamp((product.rating - 3.0) / 2.0) * 0.9

    if intent.premium:
        bonus += _price_tier_bonus(product.price)

    if parsed.storage_gb is not None:
        storage = product.attributes.get_int("storage")
        if storage is not None and storage >= parsed.storage_gb:
            bonus += 0.5

    if parsed.color:
        color = parsed.color.lower()
        attribute_color = (product.attributes.get_text("color") or "").lower()
        if color in product.title.lower() or color in product.color.lower() or color in attribute_color:
            bonus += 0.6

    if parsed.ram_gb is not None:
        ram = product.attributes.get_int("ram")
        if ram is not None and ram >= parsed.ram_gb:
            bonus += 0.3

    if parsed.price_explicit:
        bonus += 0.4 if _in_price_range(product.price, parsed) else -0.8

    return bonus


def intent_score(product: Product, parsed: ParsedQuery, current_year: int) -> float:
    return clamp(intent_bonus(product, parsed, current_year))


class Ranker:
    def __init__(self, weights: Weights = DEFAULT_WEIGHTS, *, current_year: Optional[int] = None) -> None:
        self.weights = weights
        self._current_year = current_year

    @property
    def current_year(self) -> int:
        return self._current_year or datetime.date.today().year

    def score(self, product: Product, parsed: ParsedQuery, dissimilarity: Optional[float], current_year: int) -> ScoreBreakdown:
        text = text_score(product, parsed, dissimilarity)
        quality = quality_score(product)
        popularity = popularity_score(product)
        stock = stock_score(product)
        commercial = commercial_score(product)
        intent = intent_score(product, parsed, current_year)

        weights = self.weights
        weighted = (
            weights.text * text
            + weights.quality * quality
            + weights.popularity * popularity
            + weights.stock * stock
            + weights.commercial * commercial
            + weights.intent * intent
        )
        penalty = OUT_OF_STOCK_PENALTY if product.stock == 0 else 1.0
        return ScoreBreakdown(
            text=text,
            quality=quality,
            popularity=popularity,
            stock=stock,
            commercial=commercial,
            intent=intent,
            final=clamp(weighted) * penalty,
        )

    def rank(
        self,
        candidates: Iterable[Product],
        parsed: ParsedQuery,
        fuzzy_scores: Optional[Mapping[str, float]] = None,
    ) -> List[ScoredCandidate]:
        fuzzy_scores = fuzzy_scores or {}
        year = self.current_year
        scored = [
            ScoredCandidate(product=product, scores=self.score(product, parsed, fuzzy_scores.get(product.id), year))
            for product in candidates
        ]
        # sorted() is stable with reverse=True, ties keep their input order.
        ranked = sorted(scored, key=lambda candidate: candidate.scores.final, reverse=True)
        if ranked:
            logger.debug(
                "rank candidates=%s top=%r final=%.4f",
                len(ranked),
                ranked[0].product.title,
                ranked[0].scores.final,
            )
        return ranked


def rank_products(
    candidates: Iterable[Product],
    parsed: ParsedQuery,
    fuzzy_scores: Optional[Mapping[str, float]] = None,
    *,
    current_year: Optional[int] = None,
) -> List[ScoredCandidate]:
    return Ranker(current_year=current_year).rank(candidates, parsed, fuzzy_scores)
