# =============================================
# File: giftbot/utils/slog.py
# Purpose: JSON-per-line event log for HTTP requests and chat turns
# =============================================
from __future__ import annotations
import hashlib
import json
import logging
import os
import uuid
from typing import Any, Dict, Optional

LOGGER_NAME = "giftbot"


def _build_logger() -> logging.Logger:
    log = logging.getLogger(LOGGER_NAME)
    if not log.handlers:
        log.setLevel(getattr(logging, os.getenv("LOG_LEVEL", "INFO").upper(), logging.INFO))
        handler = logging.StreamHandler()
        # records are already JSON strings
        handler.setFormatter(logging.Formatter("%(message)s"))
        log.addHandler(handler)
        log.propagate = True  # pytest caplog listens on the root logger
    return log


_logger = _build_logger()


def qhash(text: str) -> str:
    """10-char digest of the case/space-normalized text. Raw chat text is never logged."""
    norm = " ".join((text or "").lower().split())
    return hashlib.sha256(norm.encode("utf-8")).hexdigest()[:10]


def new_request_id() -> str:
    return uuid.uuid4().hex


def _emit(payload: Dict[str, Any]) -> None:
    _logger.info(json.dumps(payload, ensure_ascii=False, default=str))


def log_event(event: str, **fields: Any) -> None:
    _emit({"event": event, **fields})


def log_turn(session_id: str, outcome: str, text: str, latency_ms: int, **fields: Any) -> None:
    """One `chat.turn` line per finished turn; outcome is "reply" or "fallback"."""
    log_event(
        "chat.turn",
        session_id=session_id,
        outcome=outcome,
        qhash=qhash(text),
        latency_ms=latency_ms,
        **fields,
    )


def log_request(
    request_id: str,
    method: str,
    path: str,
    status: int,
    latency_ms: int,
    client_ip: Optional[str],
    ctx: Optional[Dict[str, Any]] = None,
) -> None:
    """`request.completed` line; router-provided context (session_id, qhash, ...) is merged in."""
    payload: Dict[str, Any] = {
        "event": "request.completed",
        "request_id": request_id,
        "method": method,
        "path": path,
        "status": status,
        "latency_ms": latency_ms,
        "client_ip": client_ip or "",
    }
    payload.update(ctx or {})
    _emit(payload)
