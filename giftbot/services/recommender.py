# =============================================
# File: giftbot/services/recommender.py
# Purpose: Split ranked products into inline top matches and carousel recommendations
# =============================================
from __future__ import annotations
from dataclasses import dataclass, field
from typing import List, Literal, Optional, Sequence

from loguru import logger

from giftbot.services.catalog import Product
from giftbot.services.scoring import FeedbackLookup, ScoredProduct, relevant

TOP_MATCHES = 4
RELATED = 5
POOL_CAP = 5

RelatedSource = Literal["ranked", "category", "catalog"]


@dataclass
class Selection:
    top_matches: List[Product] = field(default_factory=list)
    related: List[Product] = field(default_factory=list)
    related_source: RelatedSource = "catalog"
    scored: List[ScoredProduct] = field(default_factory=list)

    def score_of(self, product_id: str) -> Optional[float]:
        for s in self.scored:
            if s.product.id == product_id:
                return s.score
        return None


def _catalog_slice(catalog: Sequence[Product], exclude: Sequence[Product] = (), k: int = RELATED) -> List[Product]:
    skip = {p.id for p in exclude}
    return [p for p in catalog if p.id not in skip][:k]


def _same_category(catalog: Sequence[Product], top: Sequence[Product], k: int = RELATED) -> List[Product]:
    category = top[0].category
    skip = {p.id for p in top}
    return [p for p in catalog if p.category == category and p.id not in skip][:k]


def select(
    catalog: Sequence[Product],
    text: str,
    feedback: Optional[FeedbackLookup] = None,
) -> Selection:
    """
    Rank the catalog against `text`:
      - top_matches: first 4 relevant products (shown inline in chat)
      - related: next 5 relevant products (carousel)
    Fallbacks for `related`:
      - nothing relevant -> first 5 catalog items
      - only top matches -> other items of the best match's category,
        else the first catalog items that are not top matches
    """
    scored = relevant(catalog, text, feedback)
    picks = [s.product for s in scored]

    if not picks:
        sel = Selection([], _catalog_slice(catalog), "catalog", scored)
    else:
        top = picks[:TOP_MATCHES]
        related = picks[TOP_MATCHES:TOP_MATCHES + RELATED]
        if related:
            sel = Selection(top, related, "ranked", scored)
        else:
            similar = _same_category(catalog, top)
            if similar:
                sel = Selection(top, similar, "category", scored)
            else:
                sel = Selection(top, _catalog_slice(catalog, exclude=top), "catalog", scored)

    logger.info(
        f"[recommend] relevant={len(scored)} top={len(sel.top_matches)} "
        f"related={len(sel.related)} source={sel.related_source}"
    )
    return sel


def initial_pool(catalog: Sequence[Product], k: int = POOL_CAP) -> List[Product]:
    """Carousel before the first turn: first catalog items, most reviewed first."""
    return sorted(catalog[:k], key=lambda p: p.review_count, reverse=True)
