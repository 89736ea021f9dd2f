"""Catalog loading for both backends.

``load_catalog`` reads the JSON catalog (a list of camelCase product
documents) into :class:`~product_search.catalog.Product` records. Products
without an id get sequential ids starting at 1. The Elasticsearch helpers
bulk-index those records together with a phonetic key for fuzzy brand/title
matching.
"""
from __future__ import annotations

import asyncio
import json
import logging
from pathlib import Path
from typing import Iterable, List

from elasticsearch import Elasticsearch, helpers

from .catalog import Product
from .config import settings
from .indexing import drop_index, ensure_index, index_is_empty
from .phonetics import to_phonetic

logger = logging.getLogger(__name__)


def load_catalog(path: str | Path) -> List[Product]:
    file_path = Path(path)
    if not file_path.exists():
        logger.warning("Catalog file %s is missing", file_path)
        return []
    with file_path.open("r", encoding="utf-8") as fh:
        raw_products = json.load(fh)
    if not isinstance(raw_products, list):
        raise ValueError(f"Catalog file {file_path} must contain a JSON list of products")
    products = [
        Product.from_document(raw, default_id=str(position))
        for position, raw in enumerate(raw_products, start=1)
        if isinstance(raw, dict)
    ]
    logger.info("Loaded %s products from %s", len(products), file_path)
    return products


def _prepare_document(product: Product) -> dict:
    document = product.to_document()
    document["phonetic"] = to_phonetic(" ".join(part for part in (product.title, product.brand) if part))
    return document


def _iter_actions(index: str, products: Iterable[Product]) -> Iterable[dict]:
    for product in products:
        yield {
            "_index": index,
            "_id": product.id,
            "_source": _prepare_document(product),
        }


async def import_products(es: Elasticsearch, products: List[Product] | None = None) -> int:
    if products is None:
        products = load_catalog(settings.catalog_path)
    if not products:
        return 0
    actions = list(_iter_actions(settings.es_index, products))
    await asyncio.to_thread(helpers.bulk, es, actions, refresh="wait_for")
    return len(actions)


async def import_if_empty(es: Elasticsearch) -> int:
    if not await index_is_empty(es):
        return 0
    return await import_products(es)


async def reindex_data(es: Elasticsearch) -> int:
    await drop_index(es)
    await ensure_index(es)
    return await import_products(es)
