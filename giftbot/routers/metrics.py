# giftbot/routers/metrics.py
from __future__ import annotations
from typing import Any, Dict

from fastapi import APIRouter

from giftbot.services.sessions import get_registry
from giftbot.utils.metrics import snapshot

router = APIRouter(tags=["metrics"])


@router.get("/metrics")
def get_metrics() -> Dict[str, Any]:
    """
    Turn/request counters, turn latency histogram, per-route latency,
    plus how many chat sessions this process currently holds.
    """
    data = snapshot()
    data["sessions"] = {"open": len(get_registry())}
    return data
