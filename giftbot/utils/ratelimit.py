# =============================================
# File: giftbot/utils/ratelimit.py
# Purpose: Sliding-window limiter for chat submissions, keyed by session id
# =============================================
from __future__ import annotations
import os
import time
from collections import deque
from typing import Deque, Dict

# session id -> submission timestamps (monotonic seconds) inside the window
_windows: Dict[str, Deque[float]] = {}


class RateLimitExceeded(RuntimeError):
    def __init__(self, key: str, retry_after: float) -> None:
        super().__init__(f"rate limit exceeded for {key}")
        self.key = key
        self.retry_after = retry_after


def _get_limits() -> tuple[int, int]:
    """Read at call time so monkeypatched env takes effect."""
    return int(os.getenv("RL_MAX_REQS", "30")), int(os.getenv("RL_WINDOW_SECONDS", "60"))


def check_rate_limit(key: str) -> int:
    """
    Record one submission for `key` and return how many are left in the window.
    Raises RateLimitExceeded (nothing recorded) once the window is full.
    """
    max_reqs, window_s = _get_limits()
    now = time.monotonic()
    window = _windows.setdefault(key, deque())
    while window and window[0] <= now - window_s:
        window.popleft()

    if len(window) >= max_reqs:
        oldest = window[0] if window else now
        raise RateLimitExceeded(key, retry_after=max(0.0, oldest + window_s - now))

    window.append(now)
    return max_reqs - len(window)


def reset_rate_limit() -> None:
    """For tests: forget all windows."""
    _windows.clear()
