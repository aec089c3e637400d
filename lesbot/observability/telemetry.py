"""
In-process telemetry for the Lesbot API.

Events go to the "lesbot.telemetry" logger; counters and latency samples are
kept in memory per worker so tests can assert on instrumentation. Latencies
are stored in milliseconds under a name ending in "_ms".
"""

from __future__ import annotations

import contextlib
import logging
import time
from collections import Counter, defaultdict
from collections.abc import Iterator
from typing import Any

logger = logging.getLogger("lesbot.telemetry")

_counters: Counter[str] = Counter()
_latencies_ms: defaultdict[str, list[float]] = defaultdict(list)

_EMPTY_STATS: dict[str, float] = {
    "count": 0,
    **dict.fromkeys(("min", "max", "avg", "p50", "p95", "p99"), 0.0),
}


def _metric_key(metric_name: str) -> str:
    # "chat.latency" and "chat.latency_ms" share one series
    return metric_name if metric_name.endswith("_ms") else f"{metric_name}_ms"


def _percentile(ordered: list[float], fraction: float) -> float:
    return ordered[min(int(len(ordered) * fraction), len(ordered) - 1)]


def log_event(event_name: str, **fields: Any) -> None:
    """Emit a structured info event. Pass sizes and flags, never user text."""
    logger.info("event=%s %s", event_name, fields)


def counter(name: str, increment: int = 1) -> int:
    """Add `increment` to a named counter and return the new value."""
    _counters[name] += increment
    logger.debug("counter=%s value=%d", name, _counters[name])
    return _counters[name]


def get_counter(name: str) -> int:
    return _counters[name]


@contextlib.contextmanager
def time_block(metric_name: str) -> Iterator[None]:
    """Record the wall time of the block, also when it raises."""
    started = time.perf_counter()
    try:
        yield
    finally:
        elapsed_ms = (time.perf_counter() - started) * 1000
        key = _metric_key(metric_name)
        _latencies_ms[key].append(elapsed_ms)
        logger.debug("timing=%s ms=%.2f", key, elapsed_ms)


def get_p95(metric_name: str) -> float:
    samples = _latencies_ms.get(_metric_key(metric_name))
    return _percentile(sorted(samples), 0.95) if samples else 0.0


def get_latency_stats(metric_name: str) -> dict[str, float]:
    """count/min/max/avg/p50/p95/p99 in milliseconds (zeros when unused)."""
    samples = sorted(_latencies_ms.get(_metric_key(metric_name), []))
    if not samples:
        return dict(_EMPTY_STATS)

    return {
        "count": len(samples),
        "min": samples[0],
        "max": samples[-1],
        "avg": sum(samples) / len(samples),
        "p50": _percentile(samples, 0.50),
        "p95": _percentile(samples, 0.95),
        "p99": _percentile(samples, 0.99),
    }


def reset_latencies() -> None:
    _latencies_ms.clear()
