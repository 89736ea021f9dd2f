"""Catalog read interface used by candidate retrieval.

Retrieval only talks to :class:`CatalogStore`. Two adapters implement it:
:class:`InMemoryCatalog` (a process-memory list, no native text search) and
``ElasticsearchCatalog`` in :mod:`product_search.es_catalog`.
"""
from __future__ import annotations

from dataclasses import dataclass, replace
from enum import Enum
from typing import Iterable, List, Optional, Protocol, Tuple

from .catalog import Product


class CatalogUnavailableError(RuntimeError):
    """The catalog backend failed or did not answer in time."""


class SortOrder(str, Enum):
    CATALOG = "catalog"
    POPULARITY = "popularity"


@dataclass(frozen=True)
class CatalogFilter:
    """Hard filters applied before any relevance scoring.

    ``tokens`` restricts results to products where at least one token occurs
    (case-insensitively) in the title, brand or a search tag.
    """

    category: Optional[str] = None
    brand: Optional[str] = None
    min_price: Optional[float] = None
    max_price: Optional[float] = None
    tokens: Tuple[str, ...] = ()
    order: SortOrder = SortOrder.CATALOG
    limit: Optional[int] = None

    def with_tokens(self, tokens: Iterable[str]) -> "CatalogFilter":
        return replace(self, tokens=tuple(tokens))

    def ordered_by(self, order: SortOrder) -> "CatalogFilter":
        return replace(self, order=order)

    def limited(self, limit: Optional[int]) -> "CatalogFilter":
        return replace(self, limit=limit)


class CatalogStore(Protocol):
    supports_text_search: bool

    def find_active(self, catalog_filter: CatalogFilter) -> List[Product]: ...

    def text_search(self, query: str, catalog_filter: CatalogFilter) -> List[Product]: ...

    def count(self) -> int: ...


def matches_filter(product: Product, catalog_filter: CatalogFilter) -> bool:
    if not product.is_active:
        return False
    if catalog_filter.category and product.category != catalog_filter.category:
        return False
    if catalog_filter.brand and catalog_filter.brand.lower() not in product.brand.lower():
        return False
    if catalog_filter.min_price is not None and product.price < catalog_filter.min_price:
        return False
    if catalog_filter.max_price is not None and product.price > catalog_filter.max_price:
        return False
    if catalog_filter.tokens:
        haystacks = [product.title.lower(), product.brand.lower()]
        haystacks.extend(tag.lower() for tag in product.search_tags)
        if not any(token.lower() in text for token in catalog_filter.tokens for text in haystacks):
            return False
    return True


class InMemoryCatalog:
    """Plain list-backed catalog; retrieval falls back to fuzzy matching."""

    supports_text_search = False

    def __init__(self, products: Iterable[Product] = ()) -> None:
        self._products: List[Product] = list(products)

    def find_active(self, catalog_filter: CatalogFilter) -> List[Product]:
        found = [product for product in self._products if matches_filter(product, catalog_filter)]
        if catalog_filter.order is SortOrder.POPULARITY:
            found.sort(key=lambda product: (product.rating, product.units_sold), reverse=True)
        if catalog_filter.limit is not None:
            found = found[: catalog_filter.limit]
        return found

    def text_search(self, query: str, catalog_filter: CatalogFilter) -> List[Product]:
        raise NotImplementedError("InMemoryCatalog has no native text search")

    def count(self) -> int:
        return sum(1 for product in self._products if product.is_active)
