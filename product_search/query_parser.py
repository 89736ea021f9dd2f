"""Turn raw shopper queries into structured search intent.

Pipeline:

    1) lowercase + trim, then rewrite Hinglish / colloquial phrases
       (``"sasta wala"`` -> ``"cheap"``, ``"laal"`` -> ``"red"``);
    2) correct known brand misspellings (``"ifone"`` -> ``"iphone"``);
    3) detect intent flags (cheap, latest, best, premium, more storage,
       strong) with fixed regexes;
    4) pull out brand, color, storage and RAM;
    5) extract a price ceiling or an approximate +-30% price band;
    6) tokenize and drop stopwords.

Parsing never raises: unknown words pass through untouched.
"""
from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from typing import Any, Dict, Optional, Tuple

from .vocabulary import DEFAULT_VOCABULARY, Vocabulary

logger = logging.getLogger(__name__)

_CHEAP_RE = re.compile(r"\bcheap\b")
_BUDGET_RE = re.compile(r"budget", re.IGNORECASE)
_LATEST_RE = re.compile(r"\b(latest|new|newest|recent)\b")
_BEST_RE = re.compile(r"\bbest\b")
_PREMIUM_RE = re.compile(r"\b(premium|flagship|pro|ultra|mahenga)\b")
_MORE_STORAGE_RE = re.compile(r"\b(more storage|more memory|high storage|large storage)\b")
_STRONG_RE = re.compile(r"\b(strong|tough|rugged|durable)\b")

# "128gb", "256 gb", "1tb"; a size followed by "ram" is a RAM size instead.
_STORAGE_RE = re.compile(r"(\d+)\s*(gb|tb|mb)(?!\s*ram)", re.IGNORECASE)
_RAM_RE = re.compile(r"(\d+)\s*(gb|mb)\s*ram", re.IGNORECASE)

# "50k" -> 50000
_PRICE_K_RE = re.compile(r"(\d+)\s*k\b", re.IGNORECASE)
# "70000", "70,000", "1,20,000", "₹20000"; numbers bound to a storage/RAM unit are skipped.
_PRICE_RE = re.compile(r"(?<![\w,])[₹]?\s*(\d{1,3}(?:,\d{2,3})+|\d+)(?![\d,]*\s*(?:gb|tb|mb|k\b))", re.IGNORECASE)
_PRICE_CEILING_RE = re.compile(r"\b(under|below|less than|less|upto|up to|within)\b")
_PRICE_FLOOR_VALUE = 100
_PRICE_BAND = 0.3

_TOKEN_STRIP_RE = re.compile(r"[^a-z0-9]")

DEFAULT_STORAGE_FLOOR_GB = 256


@dataclass(frozen=True)
class Intent:
    cheap: bool = False
    latest: bool = False
    best: bool = False
    premium: bool = False
    more_storage: bool = False
    strong: bool = False

    def to_dict(self) -> Dict[str, bool]:
        return {
            "cheap": self.cheap,
            "latest": self.latest,
            "best": self.best,
            "premium": self.premium,
            "moreStorage": self.more_storage,
            "strong": self.strong,
        }


@dataclass(frozen=True)
class ParsedQuery:
    raw: str = ""
    normalized: str = ""
    tokens: Tuple[str, ...] = ()
    intent: Intent = field(default_factory=Intent)
    brand: Optional[str] = None
    color: Optional[str] = None
    storage_gb: Optional[int] = None
    ram_gb: Optional[int] = None
    min_price: Optional[int] = None
    max_price: Optional[int] = None
    price_explicit: bool = False

    @property
    def is_empty(self) -> bool:
        return not self.normalized

    def to_dict(self) -> Dict[str, Any]:
        return {
            "normalised": self.normalized,
            "tokens": list(self.tokens),
            "intent": self.intent.to_dict(),
            "brand": self.brand,
            "color": self.color,
            "storageGB": self.storage_gb,
            "ramGB": self.ram_gb,
            "maxPrice": self.max_price,
            "minPrice": self.min_price,
            "priceExplicit": self.price_explicit,
        }


def _first_contained(text: str, keywords: Tuple[str, ...]) -> Optional[str]:
    for keyword in keywords:
        if keyword.lower() in text:
            return keyword
    return None


def _extract_storage(text: str, intent: Intent) -> Optional[int]:
    match = _STORAGE_RE.search(text)
    if match:
        value = int(match.group(1))
        return value * 1024 if match.group(2).lower() == "tb" else value
    if intent.more_storage:
        return DEFAULT_STORAGE_FLOOR_GB
    return None


def _extract_ram(text: str) -> Optional[int]:
    match = _RAM_RE.search(text)
    return int(match.group(1)) if match else None


def _price_value(text: str) -> Optional[int]:
    k_match = _PRICE_K_RE.search(text)
    if k_match:
        return int(k_match.group(1)) * 1000
    for match in _PRICE_RE.finditer(text):
        value = int(match.group(1).replace(",", ""))
        # "iphone 16" is a model number, not a 16 rupee budget.
        if value > _PRICE_FLOOR_VALUE:
            return value
    return None


def _extract_price(text: str) -> Tuple[Optional[int], Optional[int], bool]:
    value = _price_value(text)
    if value is None:
        return None, None, False
    if _PRICE_CEILING_RE.search(text):
        return None, value, True
    return int(round(value * (1 - _PRICE_BAND))), int(round(value * (1 + _PRICE_BAND))), True


class QueryInterpreter:
    def __init__(self, vocabulary: Vocabulary = DEFAULT_VOCABULARY) -> None:
        self.vocabulary = vocabulary

    def normalize(self, raw_query: Optional[str]) -> str:
        lowered = (raw_query or "").lower().strip()
        colloquial = self.vocabulary.colloquialisms.apply(lowered)
        corrected = self.vocabulary.misspellings.apply(colloquial)
        normalized = " ".join(corrected.split())
        logger.debug(
            "normalize raw=%r lowered=%r colloquial=%r corrected=%r",
            raw_query,
            lowered,
            colloquial,
            normalized,
        )
        return normalized

    def tokenize(self, normalized: str) -> Tuple[str, ...]:
        tokens = []
        for chunk in normalized.split():
            token = _TOKEN_STRIP_RE.sub("", chunk)
            if len(token) > 1 and token not in self.vocabulary.stopwords:
                tokens.append(token)
        return tuple(tokens)

    def parse(self, raw_query: Optional[str]) -> ParsedQuery:
        normalized = self.normalize(raw_query)
        if not normalized:
            return ParsedQuery(raw=raw_query or "")

        intent = Intent(
            cheap=bool(_CHEAP_RE.search(normalized) or _BUDGET_RE.search(normalized)),
            latest=bool(_LATEST_RE.search(normalized)),
            best=bool(_BEST_RE.search(normalized)),
            premium=bool(_PREMIUM_RE.search(normalized)),
            more_storage=bool(_MORE_STORAGE_RE.search(normalized)),
            strong=bool(_STRONG_RE.search(normalized)),
        )
        min_price, max_price, price_explicit = _extract_price(normalized)
        parsed = ParsedQuery(
            raw=raw_query or "",
            normalized=normalized,
            tokens=self.tokenize(normalized),
            intent=intent,
            brand=_first_contained(normalized, self.vocabulary.brands),
            color=_first_contained(normalized, self.vocabulary.colors),
            storage_gb=_extract_storage(normalized, intent),
            ram_gb=_extract_ram(normalized),
            min_price=min_price,
            max_price=max_price,
            price_explicit=price_explicit,
        )
        logger.info(
            "parse_query q=%r normalized=%r tokens=%s brand=%s color=%s price=%s..%s",
            raw_query,
            normalized,
            list(parsed.tokens),
            parsed.brand,
            parsed.color,
            parsed.min_price,
            parsed.max_price,
        )
        return parsed


_default_interpreter = QueryInterpreter()


def parse_query(raw_query: Optional[str]) -> ParsedQuery:
    return _default_interpreter.parse(raw_query)
