"""Static keyword tables used by the query interpreter.

The tables are plain data. :class:`SubstitutionTable` fixes the application
order when it is built (longest phrase first, declaration order among equal
lengths) so that ``"sasta wala"`` is rewritten before ``"sasta"`` can shadow
it. Bump :data:`VOCABULARY_VERSION` whenever a table changes: cached search
responses are keyed on it.
"""
from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Mapping, Pattern, Tuple

VOCABULARY_VERSION = "2024.2"

# Hinglish / colloquial phrases -> English.
COLLOQUIALISMS: dict[str, str] = {
    # price
    "sasta": "cheap",
    "sastha": "cheap",
    "sasta wala": "cheap",
    "saste mein": "cheap",
    "kam daam": "cheap",
    "low price": "cheap",
    "mahenga": "premium",
    "best deal": "cheap",
    # newness
    "naya": "latest",
    "naya wala": "latest",
    "latest": "latest",
    "nayi": "latest",
    "new": "latest",
    # quality
    "best": "best",
    "badiya": "best",
    "achha": "best",
    "top": "best",
    # storage
    "jyada storage": "more storage",
    "zyada storage": "more storage",
    "zyada memory": "more storage",
    # durability
    "strong cover": "strong",
    "tough cover": "strong",
    "tanki": "strong",
    # colors
    "laal": "red",
    "neela": "blue",
    "safed": "white",
    "kala": "black",
    "peela": "yellow",
    "hara": "green",
    "narangi": "orange",
    "sunhara": "gold",
}

# Common misspellings -> canonical brand/product term.
MISSPELLINGS: dict[str, str] = {
    "ifone": "iphone",
    "iphone": "iphone",
    "i phone": "iphone",
    "iphon": "iphone",
    "ipone": "iphone",
    "aifon": "iphone",
    "samsng": "samsung",
    "samsun": "samsung",
    "samung": "samsung",
    "samasung": "samsung",
    "samsumg": "samsung",
    "oneplus": "oneplus",
    "one plus": "oneplus",
    "1 plus": "oneplus",
    "realmi": "realme",
    "realmee": "realme",
    "real me": "realme",
    "redme": "redmi",
    "red mi": "redmi",
    "xaomi": "xiaomi",
    "xiomi": "xiaomi",
    "soni": "sony",
    "lenova": "lenovo",
    "lenovoo": "lenovo",
    "mac book": "macbook",
    "deil": "dell",
}

# Declared order is the match precedence: the first entry found wins.
BRANDS: Tuple[str, ...] = (
    "apple", "iphone", "samsung", "oneplus", "realme", "redmi", "xiaomi",
    "poco", "vivo", "oppo", "motorola", "nokia", "asus", "rog",
    "dell", "hp", "lenovo", "acer", "msi", "macbook",
    "sony", "jbl", "boat", "noise", "sennheiser", "bose", "audio-technica",
    "ptron", "zebronics",
)

COLORS: Tuple[str, ...] = (
    "red", "blue", "black", "white", "gold", "silver", "green",
    "yellow", "purple", "pink", "orange", "grey", "gray",
    "midnight", "starlight", "titanium", "graphite", "coral", "lavender",
)

STOPWORDS: frozenset[str] = frozenset(
    {"the", "a", "an", "and", "or", "for", "with", "in", "of", "at", "to", "on"}
)


def _phrase_pattern(phrase: str, whole_words: bool) -> Pattern[str]:
    escaped = re.escape(phrase)
    if whole_words:
        escaped = rf"\b{escaped}\b"
    return re.compile(escaped, re.IGNORECASE)


@dataclass(frozen=True)
class SubstitutionTable:
    """Phrase rewrites applied longest-match-first.

    With ``whole_words`` a phrase only matches between word boundaries;
    otherwise every occurrence is replaced, including inside longer words.
    """

    pairs: Tuple[Tuple[str, str], ...]
    whole_words: bool = True
    _patterns: Tuple[Pattern[str], ...] = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        object.__setattr__(self, "_patterns", tuple(_phrase_pattern(phrase, self.whole_words) for phrase, _ in self.pairs))

    @classmethod
    def from_mapping(cls, entries: Mapping[str, str], *, whole_words: bool = True) -> "SubstitutionTable":
        ordered = sorted(
            ((phrase.lower(), replacement) for phrase, replacement in entries.items()),
            key=lambda pair: len(pair[0]),
            reverse=True,
        )
        return cls(pairs=tuple(ordered), whole_words=whole_words)

    @property
    def phrases(self) -> Tuple[str, ...]:
        return tuple(phrase for phrase, _ in self.pairs)

    def apply(self, text: str) -> str:
        for (phrase, replacement), pattern in zip(self.pairs, self._patterns):
            if phrase in text:
                text = pattern.sub(replacement, text)
        return text


@dataclass(frozen=True)
class Vocabulary:
    version: str
    colloquialisms: SubstitutionTable
    misspellings: SubstitutionTable
    brands: Tuple[str, ...]
    colors: Tuple[str, ...]
    stopwords: frozenset[str]


DEFAULT_VOCABULARY = Vocabulary(
    version=VOCABULARY_VERSION,
    colloquialisms=SubstitutionTable.from_mapping(COLLOQUIALISMS, whole_words=False),
    misspellings=SubstitutionTable.from_mapping(MISSPELLINGS),
    brands=BRANDS,
    colors=COLORS,
    stopwords=STOPWORDS,
)
