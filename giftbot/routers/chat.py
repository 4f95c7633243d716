# giftbot/routers/chat.py
from __future__ import annotations
import math
from typing import Dict, List, Literal, Optional

from fastapi import APIRouter, HTTPException, Request
from pydantic import BaseModel, Field, field_validator

from giftbot.services.catalog import Product, find_product
from giftbot.services.conversation import ConversationController
from giftbot.services.messages import Message
from giftbot.services.sessions import get_registry, valid_session_id
from giftbot.utils import metrics, slog
from giftbot.utils.i18n import suggested_prompts
from giftbot.utils.ratelimit import RateLimitExceeded, check_rate_limit

MAX_CHARS = 500

router = APIRouter(prefix="/chat", tags=["chat"])


# --------- Schemas ---------

class SubmitRequest(BaseModel):
    """
    - text: what the user typed (1..500 chars, not blank)
    - locale: optional language switch for this and later turns
    """
    text: str = Field(..., min_length=1, max_length=MAX_CHARS)
    locale: Optional[Literal["en", "bn"]] = None

    @field_validator("text")
    @classmethod
    def _trim_text(cls, v: str) -> str:
        v = (v or "").strip()
        if not v:
            raise ValueError("text must not be empty")
        return v


class MessageFeedbackRequest(BaseModel):
    verdict: Literal["up", "down"]


class ProductFeedbackRequest(BaseModel):
    verdict: Literal["like", "dislike"]


class ProductFeedbackResponse(BaseModel):
    product_id: str
    verdict: Optional[Literal["like", "dislike"]] = None


class SessionSnapshot(BaseModel):
    session_id: str
    state: str
    is_awaiting: bool
    last_error: Optional[str] = None
    locale: str
    messages: List[Message]
    recommendation_pool: List[Product]
    feedback: Dict[str, str]
    suggested_prompts: List[str]


# --------- Helpers ---------

def _controller(session_id: str, locale: Optional[str] = None) -> ConversationController:
    try:
        return get_registry().get(session_id, locale=locale)
    except ValueError as e:
        raise HTTPException(status_code=422, detail=str(e))


def _snapshot(ctl: ConversationController) -> SessionSnapshot:
    return SessionSnapshot(
        session_id=ctl.session_id,
        state=ctl.state.value,
        is_awaiting=ctl.is_awaiting,
        last_error=ctl.last_error,
        locale=ctl.locale,
        messages=ctl.messages,
        recommendation_pool=ctl.recommendation_pool,
        feedback=ctl.feedback.as_dict(),
        suggested_prompts=suggested_prompts(ctl.locale),
    )


# --------- Routes ---------

@router.get("/{session_id}", response_model=SessionSnapshot)
def get_session(session_id: str) -> SessionSnapshot:
    return _snapshot(_controller(session_id))


@router.post("/{session_id}/messages", response_model=SessionSnapshot)
async def post_message(session_id: str, req: SubmitRequest, request: Request) -> SessionSnapshot:
    """
    Run one conversation turn: the reply and any product matches are appended
    before the response is returned. 409 while the previous turn is still running.
    """
    request.state.log_context = {"session_id": session_id, "qhash": slog.qhash(req.text)}
    # validate before the limiter allocates a window for the id
    if not valid_session_id(session_id):
        raise HTTPException(status_code=422, detail=f"invalid session id: {session_id!r}")
    try:
        check_rate_limit(session_id)
    except RateLimitExceeded as e:
        metrics.incr("rate_limit_hits_total")
        request.state.log_context["rate_limited"] = True
        raise HTTPException(
            status_code=429,
            detail="Too Many Requests",
            headers={"Retry-After": str(max(1, math.ceil(e.retry_after)))},
        )

    ctl = _controller(session_id, locale=req.locale)
    accepted = await ctl.submit(req.text)
    if not accepted:
        metrics.incr("busy_rejections_total")
        raise HTTPException(status_code=409, detail="A reply is already in progress for this session.")

    request.state.log_context["fallback"] = ctl.last_error is not None
    return _snapshot(ctl)


@router.post("/{session_id}/messages/{index}/feedback", response_model=Message)
def post_message_feedback(session_id: str, index: int, req: MessageFeedbackRequest) -> Message:
    ctl = _controller(session_id)
    try:
        return ctl.rate_message(index, req.verdict)
    except IndexError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except ValueError as e:
        raise HTTPException(status_code=422, detail=str(e))


@router.post("/{session_id}/products/{product_id}/feedback", response_model=ProductFeedbackResponse)
def post_product_feedback(session_id: str, product_id: str, req: ProductFeedbackRequest) -> ProductFeedbackResponse:
    """Toggle like/dislike; sending the current verdict again clears it."""
    ctl = _controller(session_id)
    if find_product(get_registry().catalog, product_id) is None:
        raise HTTPException(status_code=404, detail=f"Unknown product: {product_id}")
    current = ctl.toggle_feedback(product_id, req.verdict)
    metrics.incr("feedback_events_total")
    return ProductFeedbackResponse(product_id=product_id, verdict=current)


@router.post("/{session_id}/reset", response_model=SessionSnapshot)
def post_reset(session_id: str) -> SessionSnapshot:
    ctl = _controller(session_id)
    if not ctl.reset():
        metrics.incr("busy_rejections_total")
        raise HTTPException(status_code=409, detail="A reply is still in progress for this session.")
    return _snapshot(ctl)
