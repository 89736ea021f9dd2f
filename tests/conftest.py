"""Shared fixtures for search tests."""
from __future__ import annotations

import pytest

from product_search.catalog import Product

BASE_PRODUCT = {
    "title": "Generic Product",
    "description": "",
    "brand": "Generic",
    "category": "Mobile Phones",
    "price": 20000,
    "mrp": 25000,
    "stock": 100,
    "fulfillmentType": "standard",
    "rating": 4.0,
    "reviewCount": 100,
    "returnRate": 5,
    "complaintRate": 2,
    "unitsSold": 1000,
    "salesVelocity": 50,
    "viewCount": 5000,
    "launchYear": 2023,
}


def build_product(product_id: str, **overrides) -> Product:
    raw = {**BASE_PRODUCT, "id": product_id, **overrides}
    return Product.from_document(raw)


@pytest.fixture
def make_product():
    return build_product


@pytest.fixture
def phone_catalog():
    return [
        build_product(
            "iphone16",
            title="Apple iPhone 16 (128 GB) - Black",
            brand="Apple",
            model="iPhone 16",
            price=69999,
            mrp=79900,
            stock=120,
            rating=4.6,
            reviewCount=8000,
            searchTags=["iphone", "apple", "smartphone"],
            metadata={"storage": "128GB", "ram": "8GB", "color": "Black"},
            launchYear=2024,
        ),
        build_product(
            "iphone16pro",
            title="Apple iPhone 16 Pro (256 GB) - Titanium",
            brand="Apple",
            model="iPhone 16 Pro",
            price=65000,
            mrp=79900,
            stock=0,
            rating=4.6,
            reviewCount=8000,
            searchTags=["iphone", "apple", "smartphone"],
            metadata={"storage": "256GB", "ram": "8GB", "color": "Titanium"},
            launchYear=2024,
        ),
        build_product(
            "galaxy-m15",
            title="Samsung Galaxy M15 5G (6GB RAM, 128GB) - Blue",
            brand="Samsung",
            model="M15",
            price=12999,
            mrp=17999,
            searchTags=["samsung", "galaxy", "android"],
            metadata={"storage": "128GB", "ram": "6GB", "color": "Blue"},
        ),
        build_product(
            "galaxy-watch",
            title="Samsung Galaxy Watch6 Classic",
            brand="Samsung",
            category="Smartwatches",
            price=24999,
            mrp=43999,
            searchTags=["samsung", "smartwatch", "watch"],
        ),
        build_product(
            "dell-inspiron",
            title="Dell Inspiron 15 Laptop 16GB RAM 512GB SSD",
            brand="Dell",
            category="Laptops",
            price=56990,
            mrp=78000,
            searchTags=["dell", "laptop"],
            metadata={"storage": "512GB", "ram": "16GB", "color": "Silver"},
        ),
        build_product(
            "inactive-phone",
            title="Apple iPhone 12 Refurbished",
            brand="Apple",
            price=30000,
            isActive=False,
        ),
    ]
