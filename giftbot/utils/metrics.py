# =============================================
# File: giftbot/utils/metrics.py
# Purpose: In-process counters & histograms for /metrics
# =============================================
from __future__ import annotations
from typing import Any, Dict, List, Optional
import threading
import time

_lock = threading.Lock()

COUNTERS = (
    "requests_total",
    "turns_total",
    "fallback_turns_total",
    "busy_rejections_total",
    "rate_limit_hits_total",
    "feedback_events_total",
)
RELATED_SOURCES = ("ranked", "category", "catalog")

# Turn latency upper bounds (ms); one extra overflow slot for +Inf
TURN_BUCKETS_MS: List[int] = [50, 100, 200, 500, 1000, 2000, 5000, 10000, 30000]

_counters: Dict[str, int] = dict.fromkeys(COUNTERS, 0)
_related_source: Dict[str, int] = dict.fromkeys(RELATED_SOURCES, 0)
_turn_hist: List[int] = [0] * (len(TURN_BUCKETS_MS) + 1)

# "METHOD /route/{template}" -> recent latencies (ms), bounded
_MAX_SAMPLES = 1000
_endpoint_samples: Dict[str, List[float]] = {}
_endpoint_counts: Dict[str, int] = {}


def _bucket_index(ms: int) -> int:
    for i, upper in enumerate(TURN_BUCKETS_MS):
        if ms <= upper:
            return i
    return len(TURN_BUCKETS_MS)


def _percentile(values: List[float], q: float) -> float:
    if not values:
        return 0.0
    xs = sorted(values)
    return xs[int(q * (len(xs) - 1))]


def record_turn(latency_ms: int, fallback: bool, related_source: Optional[str] = None) -> None:
    with _lock:
        _counters["turns_total"] += 1
        if fallback:
            _counters["fallback_turns_total"] += 1
        if related_source in _related_source:
            _related_source[related_source] += 1
        _turn_hist[_bucket_index(int(latency_ms))] += 1


def incr(name: str) -> None:
    with _lock:
        _counters[name] = _counters.get(name, 0) + 1


def record_endpoint(method: str, path: str, latency_ms: float) -> None:
    key = f"{method.upper()} {path}"
    with _lock:
        _counters["requests_total"] += 1
        _endpoint_counts[key] = _endpoint_counts.get(key, 0) + 1
        samples = _endpoint_samples.setdefault(key, [])
        samples.append(float(latency_ms))
        if len(samples) > _MAX_SAMPLES:
            del samples[0]


def snapshot() -> Dict[str, Any]:
    with _lock:
        endpoints = {
            key: {
                "count": float(_endpoint_counts.get(key, 0)),
                "avg_latency_ms": sum(samples) / len(samples) if samples else 0.0,
                "p95_latency_ms": _percentile(samples, 0.95),
            }
            for key, samples in _endpoint_samples.items()
        }
        return {
            "counters": dict(_counters),
            "related_source": dict(_related_source),
            "turn_latency_ms": {
                "buckets": list(TURN_BUCKETS_MS) + ["+Inf"],
                "counts": list(_turn_hist),
            },
            "performance": {
                "endpoints": endpoints,
                "generated_at": time.time(),
            },
        }


def reset() -> None:
    """For tests: zero everything."""
    with _lock:
        for name in list(_counters):
            _counters[name] = 0
        for src in _related_source:
            _related_source[src] = 0
        _turn_hist[:] = [0] * len(_turn_hist)
        _endpoint_samples.clear()
        _endpoint_counts.clear()
