import asyncio
import json
from dataclasses import replace
from pathlib import Path

import pytest

from product_search import importer, indexing
from product_search.importer import import_if_empty, import_products, load_catalog

MAPPING_PATH = Path(__file__).resolve().parents[1] / "product-mapping.json"


class FakeIndices:
    def __init__(self, exists=False):
        self.present = exists
        self.created = []

    def exists(self, index):
        return self.present

    def create(self, index, settings=None, mappings=None):
        self.created.append((index, settings, mappings))
        self.present = True


class FakeES:
    def __init__(self, count=0, exists=False):
        self.total = count
        self.indices = FakeIndices(exists)

    def count(self, index):
        return {"count": self.total}


@pytest.fixture
def bulk_calls(monkeypatch):
    calls = []

    def fake_bulk(es, actions, **kwargs):
        calls.append((list(actions), kwargs))
        return len(calls[-1][0]), []

    monkeypatch.setattr(importer.helpers, "bulk", fake_bulk)
    return calls


def _write(path, payload):
    path.write_text(json.dumps(payload), encoding="utf-8")
    return path


def test_load_catalog_assigns_sequential_ids(tmp_path):
    path = _write(
        tmp_path / "products.json",
        [
            {"title": "Redmi Note 13", "price": 15999},
            {"id": "sku-9", "title": "Boat Airdopes", "price": 1299},
            "not a product",
        ],
    )

    products = load_catalog(path)

    assert [p.id for p in products] == ["1", "sku-9"]
    assert products[0].title == "Redmi Note 13"


def test_missing_catalog_file_is_empty(tmp_path):
    assert load_catalog(tmp_path / "absent.json") == []


def test_catalog_must_be_a_list(tmp_path):
    path = _write(tmp_path / "products.json", {"title": "oops"})

    with pytest.raises(ValueError):
        load_catalog(path)


def test_bundled_sample_catalog_loads():
    products = load_catalog(Path(__file__).resolve().parents[1] / "data" / "products.json")

    assert products
    assert len({p.id for p in products}) == len(products)


def test_import_products_writes_phonetic_documents(bulk_calls, make_product):
    products = [make_product("a", title="Samsung Galaxy S24", brand="Samsung")]

    indexed = asyncio.run(import_products(FakeES(), products))

    assert indexed == 1
    [(actions, kwargs)] = bulk_calls
    assert kwargs == {"refresh": "wait_for"}
    assert actions[0]["_id"] == "a"
    source = actions[0]["_source"]
    assert source["title"] == "Samsung Galaxy S24"
    assert source["phonetic"]
    assert "id" not in source


def test_import_products_skips_empty_batches(bulk_calls):
    assert asyncio.run(import_products(FakeES(), [])) == 0
    assert bulk_calls == []


def test_import_if_empty_leaves_populated_index_alone(bulk_calls):
    assert asyncio.run(import_if_empty(FakeES(count=3))) == 0
    assert bulk_calls == []


def test_import_if_empty_loads_configured_catalog(bulk_calls, monkeypatch, tmp_path):
    path = _write(tmp_path / "products.json", [{"title": "Lenovo IdeaPad", "price": 45000}])
    monkeypatch.setattr(importer, "settings", replace(importer.settings, catalog_path=str(path)))

    assert asyncio.run(import_if_empty(FakeES(count=0))) == 1
    assert bulk_calls[0][0][0]["_source"]["title"] == "Lenovo IdeaPad"


def test_ensure_index_creates_from_mapping_once(monkeypatch):
    monkeypatch.setattr(indexing, "settings", replace(indexing.settings, mapping_path=str(MAPPING_PATH)))
    es = FakeES()

    asyncio.run(indexing.ensure_index(es))
    asyncio.run(indexing.ensure_index(es))

    assert len(es.indices.created) == 1
    _, index_settings, mappings = es.indices.created[0]
    assert index_settings is not None
    assert "phonetic" in mappings["properties"]
