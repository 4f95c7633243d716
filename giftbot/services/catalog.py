# =============================================
# File: giftbot/services/catalog.py
# Purpose: Read-only product catalog loaded from the bundled JSON file
# =============================================
from __future__ import annotations

import json
import os
from functools import lru_cache
from typing import Dict, List, Optional, Sequence

from loguru import logger
from pydantic import BaseModel, ConfigDict, Field

_CATALOG_PATH = os.path.join(os.path.dirname(os.path.dirname(__file__)), "data", "catalog.json")


class Product(BaseModel):
    """
    A catalog entry. Immutable inside the engine.
    - rating: 0..5 stars
    - review_count: number of reviews (>= 0)
    - description: optional free text, used by keyword overlap scoring
    """
    model_config = ConfigDict(frozen=True)

    id: str = Field(..., min_length=1)
    name: str = Field(..., min_length=1)
    category: str
    price: float = Field(..., ge=0)
    rating: float = Field(0.0, ge=0.0, le=5.0)
    review_count: int = Field(0, ge=0)
    description: Optional[str] = None
    image: str = ""
    original_price: Optional[float] = None
    badge: Optional[str] = None
    stock: int = Field(0, ge=0)
    specs: Optional[Dict[str, str]] = None


def catalog_path() -> str:
    return os.getenv("GIFTBOT_CATALOG_PATH", _CATALOG_PATH)


def parse_catalog(raw: Sequence[dict]) -> List[Product]:
    """Validate raw dicts into Products; duplicate ids are rejected."""
    products = [Product.model_validate(item) for item in raw]
    seen = set()
    for p in products:
        if p.id in seen:
            raise ValueError(f"duplicate product id in catalog: {p.id}")
        seen.add(p.id)
    return products


def load_catalog(path: str | None = None) -> List[Product]:
    path = path or catalog_path()
    with open(path, "r", encoding="utf-8") as f:
        products = parse_catalog(json.load(f))
    logger.info(f"[catalog] loaded {len(products)} products from {path}")
    return products


@lru_cache(maxsize=1)
def default_catalog() -> tuple:
    """Process-wide catalog, loaded once. Tuple so callers cannot mutate it."""
    return tuple(load_catalog())


def find_product(catalog: Sequence[Product], product_id: str) -> Product | None:
    for p in catalog:
        if p.id == product_id:
            return p
    return None
