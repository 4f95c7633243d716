# giftbot/routers/recommend.py
from __future__ import annotations

from typing import List, Optional

from fastapi import APIRouter, HTTPException
from pydantic import BaseModel, Field

from giftbot.services.catalog import Product
from giftbot.services.recommender import Selection, select
from giftbot.services.scoring import ScoredProduct
from giftbot.services.sessions import get_registry, valid_session_id

router = APIRouter(tags=["recommend"])


# ---------- Schemas ----------

class RecommendRequest(BaseModel):
    """
    Stateless scoring of arbitrary text against the catalog.
    When session_id is given, that session's like/dislike verdicts personalize the scores.
    """
    text: str = Field(..., max_length=5000)
    session_id: Optional[str] = None


class ScoredItem(BaseModel):
    product: Product
    score: float
    mention: float
    category: float
    keywords: float
    popularity: float
    multiplier: float


class RecommendResponse(BaseModel):
    top_matches: List[Product]
    related: List[Product]
    related_source: str
    scores: List[ScoredItem]


# ---------- Helpers ----------

def _scored_item(s: ScoredProduct) -> ScoredItem:
    b = s.breakdown
    return ScoredItem(
        product=s.product,
        score=round(s.score, 4),
        mention=b.mention,
        category=b.category,
        keywords=b.keywords,
        popularity=round(b.popularity, 4),
        multiplier=b.multiplier,
    )


def _to_response(sel: Selection) -> RecommendResponse:
    return RecommendResponse(
        top_matches=sel.top_matches,
        related=sel.related,
        related_source=sel.related_source,
        scores=[_scored_item(s) for s in sel.scored],
    )


# ---------- Endpoints ----------

@router.post("/recommend", response_model=RecommendResponse)
def post_recommend(req: RecommendRequest) -> RecommendResponse:
    registry = get_registry()
    feedback = None
    if req.session_id:
        if not valid_session_id(req.session_id):
            raise HTTPException(status_code=422, detail="Invalid session id.")
        feedback = registry.get(req.session_id).feedback
    return _to_response(select(registry.catalog, req.text, feedback))


@router.get("/products", response_model=List[Product])
def get_products() -> List[Product]:
    return get_registry().catalog
