# =============================================
# File: giftbot/services/feedback.py
# Purpose: Per-product like/dislike store (tri-state) used for personalization
# =============================================
from __future__ import annotations
from typing import Dict, Mapping, Optional

from loguru import logger

from giftbot.services.persistence import PersistenceAdapter, Verdict
from giftbot.services.scoring import feedback_multiplier

VERDICTS = ("like", "dislike")


class FeedbackStore:
    """
    productId -> "like" | "dislike". A missing entry means neutral.
    Toggling the verdict a product already has removes it again.
    Every mutation is persisted right away when an adapter is attached.
    """
    def __init__(
        self,
        initial: Optional[Mapping[str, Verdict]] = None,
        persistence: Optional[PersistenceAdapter] = None,
    ) -> None:
        self._verdicts: Dict[str, Verdict] = dict(initial or {})
        self._persistence = persistence

    @classmethod
    def load(cls, persistence: PersistenceAdapter) -> "FeedbackStore":
        return cls(persistence.load_feedback(), persistence=persistence)

    def get(self, product_id: str) -> Optional[Verdict]:
        return self._verdicts.get(product_id)

    def multiplier(self, product_id: str) -> float:
        return feedback_multiplier(product_id, self)

    def toggle(self, product_id: str, verdict: Verdict) -> Optional[Verdict]:
        """Returns the verdict stored after the toggle (None when back to neutral)."""
        if verdict not in VERDICTS:
            raise ValueError(f"unknown verdict: {verdict!r}")
        if self._verdicts.get(product_id) == verdict:
            del self._verdicts[product_id]
            current = None
        else:
            self._verdicts[product_id] = verdict
            current = verdict
        if self._persistence is not None:
            self._persistence.save_feedback(self._verdicts)
        logger.info(f"[feedback] product={product_id} verdict={current or 'neutral'}")
        return current

    def as_dict(self) -> Dict[str, Verdict]:
        return dict(self._verdicts)

    def __contains__(self, product_id: object) -> bool:
        return product_id in self._verdicts

    def __len__(self) -> int:
        return len(self._verdicts)
