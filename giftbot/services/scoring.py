# =============================================
# File: giftbot/services/scoring.py
# Purpose: Multi-signal relevance score of a product against free text
# =============================================
from __future__ import annotations
from dataclasses import dataclass
from typing import Iterable, List, Optional, Protocol, Sequence

from giftbot.services.catalog import Product
from giftbot.utils.keywords import extract_keywords

# Signal weights
MENTION_WEIGHT = 50.0
CATEGORY_WEIGHT = 20.0
KEYWORD_NAME_WEIGHT = 10.0
KEYWORD_CATEGORY_WEIGHT = 5.0
KEYWORD_DESCRIPTION_WEIGHT = 2.0
RATING_WEIGHT = 2.0
REVIEW_WEIGHT = 0.05

LIKE_MULTIPLIER = 1.5
DISLIKE_MULTIPLIER = 0.5

RELEVANCE_THRESHOLD = 5.0


class FeedbackLookup(Protocol):
    def get(self, product_id: str) -> Optional[str]: ...


@dataclass(frozen=True)
class ScoreBreakdown:
    mention: float = 0.0
    category: float = 0.0
    keywords: float = 0.0
    popularity: float = 0.0
    multiplier: float = 1.0

    @property
    def textual(self) -> float:
        """Part of the score that came from the text itself."""
        return self.mention + self.category + self.keywords

    @property
    def total(self) -> float:
        return (self.textual + self.popularity) * self.multiplier


@dataclass(frozen=True)
class ScoredProduct:
    product: Product
    breakdown: ScoreBreakdown

    @property
    def score(self) -> float:
        return self.breakdown.total

    @property
    def relevant(self) -> bool:
        # Popularity alone never makes a product relevant.
        return self.breakdown.textual > 0 and self.score > RELEVANCE_THRESHOLD


def feedback_multiplier(product_id: str, feedback: Optional[FeedbackLookup]) -> float:
    if feedback is None:
        return 1.0
    verdict = feedback.get(product_id)
    if verdict == "like":
        return LIKE_MULTIPLIER
    if verdict == "dislike":
        return DISLIKE_MULTIPLIER
    return 1.0


def popularity(product: Product) -> float:
    return max(0.0, product.rating) * RATING_WEIGHT + max(0, product.review_count) * REVIEW_WEIGHT


def breakdown(
    product: Product,
    text: str,
    feedback: Optional[FeedbackLookup] = None,
    keywords: Optional[Iterable[str]] = None,
) -> ScoreBreakdown:
    """
    Score components for one product.
    `keywords` may be passed in when ranking many products against the same text.
    """
    norm = (text or "").lower()
    name = product.name.lower()
    category = product.category.lower()
    description = (product.description or "").lower()
    if keywords is None:
        keywords = extract_keywords(text)

    kw_score = 0.0
    for k in keywords:
        if k in name:
            kw_score += KEYWORD_NAME_WEIGHT
        if k in category:
            kw_score += KEYWORD_CATEGORY_WEIGHT
        if k in description:
            kw_score += KEYWORD_DESCRIPTION_WEIGHT

    return ScoreBreakdown(
        mention=MENTION_WEIGHT if name and name in norm else 0.0,
        category=CATEGORY_WEIGHT if category and category in norm else 0.0,
        keywords=kw_score,
        popularity=popularity(product),
        multiplier=feedback_multiplier(product.id, feedback),
    )


def score(product: Product, text: str, feedback: Optional[FeedbackLookup] = None) -> float:
    return breakdown(product, text, feedback).total


def rank(
    catalog: Sequence[Product],
    text: str,
    feedback: Optional[FeedbackLookup] = None,
) -> List[ScoredProduct]:
    """All products, best first. sorted() is stable, so ties keep catalog order."""
    keywords = extract_keywords(text)
    scored = [ScoredProduct(p, breakdown(p, text, feedback, keywords)) for p in catalog]
    return sorted(scored, key=lambda s: s.score, reverse=True)


def relevant(
    catalog: Sequence[Product],
    text: str,
    feedback: Optional[FeedbackLookup] = None,
) -> List[ScoredProduct]:
    return [s for s in rank(catalog, text, feedback) if s.relevant]

