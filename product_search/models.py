"""Pydantic models for request/response payloads."""
from __future__ import annotations

from typing import Any, Dict, List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field

AttributeValue = Union[str, int, float, bool, None]


class ScoreBreakdown(BaseModel):
    text: float
    quality: float
    popularity: float
    stock: float
    commercial: float
    intent: float
    final: float


class ProductResult(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    productId: str
    title: str
    description: Optional[str] = None
    brand: Optional[str] = None
    category: Optional[str] = None
    mrp: float
    sellingPrice: float
    discountPercent: float = 0
    currency: str = "INR"
    rating: float = 0
    reviewCount: int = 0
    stock: int = 0
    metadata: Dict[str, AttributeValue] = Field(default_factory=dict)
    color: Optional[str] = None
    fulfillmentType: str = "standard"
    scores: Optional[ScoreBreakdown] = Field(default=None, alias="_scores")


class SearchMeta(BaseModel):
    query: str
    parsedQuery: Optional[Dict[str, Any]] = None
    totalCandidates: int
    page: int
    limit: int
    totalPages: int


class SearchResponse(BaseModel):
    success: bool = True
    latencyMs: float
    data: List[ProductResult]
    meta: SearchMeta


class ErrorResponse(BaseModel):
    success: bool = False
    message: str


class CatalogStats(BaseModel):
    success: bool = True
    totalProducts: int
    timestamp: str


class ReindexResponse(BaseModel):
    success: bool = True
    indexed: int
