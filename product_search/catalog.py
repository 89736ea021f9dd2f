"""Read-only product records consumed by retrieval and ranking.

Catalog documents arrive in the camelCase shape used by the JSON catalog and
the Elasticsearch index (``discountPercent``, ``reviewCount``, ``searchTags``,
``metadata`` ...). :meth:`Product.from_document` accepts those as well as the
snake_case attribute names and never raises on missing or malformed numeric
values: each one falls back to its documented default.
"""
from __future__ import annotations

import math
import re
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Iterator, Mapping, Optional, Tuple, Union

Scalar = Union[str, int, float, bool, None]

_LEADING_INT_RE = re.compile(r"^\s*(-?\d+)\s*([a-z]*)")

DEFAULT_RATING = 0.0
DEFAULT_RETURN_RATE = 5.0
DEFAULT_COMPLAINT_RATE = 2.0
DEFAULT_STOCK = 0
DEFAULT_CURRENCY = "INR"


class FulfillmentType(str, Enum):
    EXPRESS = "express"
    STANDARD = "standard"
    SELLER_FULFILLED = "seller_fulfilled"

    @classmethod
    def parse(cls, value: Any) -> "FulfillmentType":
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            return cls.STANDARD


class Attributes:
    """Ordered, case-insensitive attribute map (``ram``, ``storage``, ``color`` ...).

    Lookups of absent keys return ``None`` instead of raising.
    """

    __slots__ = ("_values",)

    def __init__(self, values: Optional[Mapping[str, Scalar]] = None) -> None:
        self._values: Dict[str, Scalar] = {}
        if not isinstance(values, Mapping):
            return
        for key, value in values.items():
            self._values[str(key).strip().lower()] = value

    def get(self, key: str, default: Scalar = None) -> Scalar:
        return self._values.get(key.lower(), default)

    def get_text(self, key: str) -> Optional[str]:
        value = self.get(key)
        if value is None:
            return None
        return str(value)

    def get_int(self, key: str) -> Optional[int]:
        """Parse the leading integer of a value, e.g. ``"256GB"`` -> 256.

        A ``tb`` unit is converted to gigabytes so storage sizes compare on
        the same scale as query floors.
        """
        value = self.get(key)
        if value is None or isinstance(value, bool):
            return None
        if isinstance(value, (int, float)):
            return int(value)
        match = _LEADING_INT_RE.match(str(value).lower())
        if not match:
            return None
        number = int(match.group(1))
        if match.group(2) == "tb":
            number *= 1024
        return number

    def to_dict(self) -> Dict[str, Scalar]:
        return dict(self._values)

    def items(self):
        return self._values.items()

    def __getitem__(self, key: str) -> Scalar:
        return self.get(key)

    def __contains__(self, key: object) -> bool:
        return isinstance(key, str) and key.lower() in self._values

    def __iter__(self) -> Iterator[str]:
        return iter(self._values)

    def __len__(self) -> int:
        return len(self._values)

    def __eq__(self, other: object) -> bool:
        if isinstance(other, Attributes):
            return self._values == other._values
        return NotImplemented

    def __repr__(self) -> str:
        return f"Attributes({self._values!r})"


def _number(value: Any, default: float) -> float:
    if value is None or isinstance(value, bool):
        return default
    try:
        number = float(value)
    except (TypeError, ValueError):
        return default
    if not math.isfinite(number):
        return default
    return number


def _count(value: Any, default: int = 0) -> int:
    return max(0, int(_number(value, default)))


def _optional_int(value: Any) -> Optional[int]:
    if value is None:
        return None
    number = _number(value, 0.0)
    return int(number) if number else None


def _pick(raw: Mapping[str, Any], *names: str) -> Any:
    for name in names:
        if name in raw and raw[name] is not None:
            return raw[name]
    return None


def compute_discount(price: float, mrp: float) -> int:
    if mrp > 0:
        return int(round((mrp - price) / mrp * 100))
    return 0


@dataclass(frozen=True)
class Product:
    id: str
    title: str = ""
    description: str = ""
    brand: str = ""
    category: str = ""
    model: str = ""
    price: float = 0.0
    mrp: float = 0.0
    discount_percent: float = 0.0
    currency: str = DEFAULT_CURRENCY
    stock: int = DEFAULT_STOCK
    fulfillment_type: FulfillmentType = FulfillmentType.STANDARD
    rating: float = DEFAULT_RATING
    review_count: int = 0
    return_rate: float = DEFAULT_RETURN_RATE
    complaint_rate: float = DEFAULT_COMPLAINT_RATE
    units_sold: int = 0
    sales_velocity: float = 0.0
    view_count: int = 0
    attributes: Attributes = field(default_factory=Attributes)
    search_tags: Tuple[str, ...] = ()
    color: str = ""
    launch_year: Optional[int] = None
    is_active: bool = True

    @classmethod
    def from_document(cls, raw: Mapping[str, Any], *, default_id: Optional[str] = None) -> "Product":
        price = max(0.0, _number(_pick(raw, "price", "sellingPrice"), 0.0))
        mrp = max(0.0, _number(_pick(raw, "mrp"), price))
        discount_raw = _pick(raw, "discountPercent", "discount_percent")
        discount = _number(discount_raw, compute_discount(price, mrp))
        currency = str(_pick(raw, "currency") or DEFAULT_CURRENCY)
        if currency == "Rupee":
            currency = DEFAULT_CURRENCY
        product_id = _pick(raw, "id", "_id", "productId", "product_id")
        if product_id is None:
            product_id = default_id if default_id is not None else ""
        tags = _pick(raw, "searchTags", "search_tags", "tags") or ()
        if isinstance(tags, str):
            tags = (tags,)
        is_active = _pick(raw, "isActive", "is_active")
        return cls(
            id=str(product_id),
            title=str(_pick(raw, "title", "name") or ""),
            description=str(_pick(raw, "description") or ""),
            brand=str(_pick(raw, "brand") or ""),
            category=str(_pick(raw, "category") or ""),
            model=str(_pick(raw, "model") or ""),
            price=price,
            mrp=mrp,
            discount_percent=discount,
            currency=currency,
            stock=_count(_pick(raw, "stock"), DEFAULT_STOCK),
            fulfillment_type=FulfillmentType.parse(_pick(raw, "fulfillmentType", "fulfillment_type")),
            rating=_number(_pick(raw, "rating"), DEFAULT_RATING),
            review_count=_count(_pick(raw, "reviewCount", "review_count")),
            return_rate=_number(_pick(raw, "returnRate", "return_rate"), DEFAULT_RETURN_RATE),
            complaint_rate=_number(_pick(raw, "complaintRate", "complaint_rate"), DEFAULT_COMPLAINT_RATE),
            units_sold=_count(_pick(raw, "unitsSold", "units_sold")),
            sales_velocity=max(0.0, _number(_pick(raw, "salesVelocity", "sales_velocity"), 0.0)),
            view_count=_count(_pick(raw, "viewCount", "view_count")),
            attributes=Attributes(_pick(raw, "metadata", "attributes") or {}),
            search_tags=tuple(str(tag) for tag in tags),
            color=str(_pick(raw, "color") or ""),
            launch_year=_optional_int(_pick(raw, "launchYear", "launch_year")),
            is_active=True if is_active is None else bool(is_active),
        )

    def to_document(self) -> Dict[str, Any]:
        """Serialize into the camelCase catalog shape."""
        return {
            "title": self.title,
            "description": self.description,
            "brand": self.brand,
            "category": self.category,
            "model": self.model,
            "price": self.price,
            "mrp": self.mrp,
            "discountPercent": self.discount_percent,
            "currency": self.currency,
            "stock": self.stock,
            "fulfillmentType": self.fulfillment_type.value,
            "rating": self.rating,
            "reviewCount": self.review_count,
            "returnRate": self.return_rate,
            "complaintRate": self.complaint_rate,
            "unitsSold": self.units_sold,
            "salesVelocity": self.sales_velocity,
            "viewCount": self.view_count,
            "metadata": self.attributes.to_dict(),
            "searchTags": list(self.search_tags),
            "color": self.color,
            "launchYear": self.launch_year,
            "isActive": self.is_active,
        }

    @property
    def in_stock(self) -> bool:
        return self.stock > 0

    @property
    def is_express(self) -> bool:
        return self.fulfillment_type is FulfillmentType.EXPRESS
