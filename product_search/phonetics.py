"""Text folding and phonetic keys for catalog matching.

Two helpers shared by indexing and retrieval:

    1) :func:`fold_text` lowercases, transliterates to ASCII with ``unidecode``
       (``"Café Noir"`` -> ``"cafe noir"``, Devanagari brand names become
       Latin) and strips punctuation, so fuzzy comparisons see a clean string.
    2) :func:`to_phonetic` turns folded text into double-metaphone codes. The
       importer stores them in the ``phonetic`` field and the Elasticsearch
       adapter queries that field, so that ``"samsang"`` and ``"samsung"``
       meet even when edit-distance fuzziness gives up.
"""
from __future__ import annotations

import logging
import re
from typing import Iterable

from metaphone import doublemetaphone
from unidecode import unidecode

logger = logging.getLogger(__name__)

_ASCII_ALNUM_SPACE_RE = re.compile(r"[^0-9a-z ]+")
# Collapse runs of three or more identical letters ("iphoooone" -> "iphone").
_REPEATED_LETTER_RE = re.compile(r"([a-z])\1{2,}")


def fold_text(text: str | None) -> str:
    if not text:
        return ""
    transliterated = unidecode(str(text)).lower()
    collapsed = _REPEATED_LETTER_RE.sub(r"\1", transliterated)
    ascii_only = _ASCII_ALNUM_SPACE_RE.sub(" ", collapsed)
    return " ".join(ascii_only.split())


def _metaphone_tokens(tokens: Iterable[str]) -> list[str]:
    phonetics: list[str] = []
    for token in tokens:
        if token.isdigit():
            continue
        primary, secondary = doublemetaphone(token)
        for code in (primary, secondary):
            if code and code not in phonetics:
                phonetics.append(code)
    return phonetics


def to_phonetic(text: str | None) -> str:
    """Double-metaphone codes for every alphabetic token of ``text``.

    Digits carry no phonetic information and are skipped; model numbers are
    matched by the regular text fields instead.
    """
    folded = fold_text(text)
    if not folded:
        return ""
    codes = _metaphone_tokens(folded.split())
    phonetic = " ".join(codes)
    logger.debug("to_phonetic text=%r folded=%r codes=%s", text, folded, codes)
    return phonetic
