"""Minimal in-memory metrics collector.

Purpose:
    - Counters and simple latency samples for resolution health.
    - Zero external deps; can be swapped by a Prometheus exporter later.

Core API (intentionally tiny):
    inc(name, labels=None, value=1)
    observe(name, value, labels=None)
    snapshot() -> dict (copy for safe reading)

Thread-safety: coarse RLock; overhead negligible for low event volume.

Resolution related metric names (documented for discoverability):
    - resolution_total{status}                 # ok|error|disabled
    - resolution_latency_ms                    # histogram
    - resolution_failures_total{error_type}
    - candidates_excluded_total
    - candidates_filtered_total
    - events_emitted_total{event}
    - env_override_total{path}
"""
from __future__ import annotations

from threading import RLock
from time import time
from typing import Dict, Tuple, Any

_COUNTERS: Dict[Tuple[str, Tuple[Tuple[str, str], ...]], float] = {}
_HIST: Dict[Tuple[str, Tuple[Tuple[str, str], ...]], list] = {}
_LOCK = RLock()


def _norm_labels(labels: dict[str, Any] | None) -> Tuple[Tuple[str, str], ...]:
    if not labels:
        return tuple()
    return tuple(sorted((str(k), str(v)) for k, v in labels.items()))


def _label_suffix(labels: Tuple[Tuple[str, str], ...]) -> str:
    if not labels:
        return ""
    return "{" + ",".join(f"{k}={v}" for k, v in labels) + "}"


def inc(
    name: str,
    labels: dict[str, Any] | None = None,
    value: float = 1.0,
) -> None:
    key = (name, _norm_labels(labels))
    with _LOCK:
        _COUNTERS[key] = _COUNTERS.get(key, 0.0) + value


def observe(
    name: str,
    value: float,
    labels: dict[str, Any] | None = None,
) -> None:
    key = (name, _norm_labels(labels))
    with _LOCK:
        _HIST.setdefault(key, []).append(value)


def snapshot() -> dict[str, Any]:
    with _LOCK:
        counters: dict[str, float] = {}
        for (name, labels), v in _COUNTERS.items():
            counters[name + _label_suffix(labels)] = v
        hist = {}
        for (name, labels), vals in _HIST.items():
            if not vals:
                continue
            ordered = sorted(vals)
            hist[name + _label_suffix(labels)] = {
                "count": len(vals),
                "min": ordered[0],
                "max": ordered[-1],
                "p50": ordered[len(ordered) // 2],
                "last": vals[-1],
            }
        return {
            "ts": time(),
            "counters": counters,
            "histograms": hist,
        }


def reset_for_tests() -> None:  # pragma: no cover
    with _LOCK:
        _COUNTERS.clear()
        _HIST.clear()


__all__ = [
    "inc",
    "observe",
    "snapshot",
    "reset_for_tests",
]


# ------------------- Helper wrappers -------------------

def inc_resolution(status: str) -> None:
    """Increment resolution outcome counter (ok|error|disabled)."""
    inc("resolution_total", {"status": status})


def inc_resolution_failure(error_type: str) -> None:
    """Increment failure counter labelled with a taxonomy code."""
    if error_type:
        inc("resolution_failures_total", {"error_type": error_type})


def inc_excluded(count: int) -> None:
    if count:
        inc("candidates_excluded_total", value=count)


def inc_filtered(count: int) -> None:
    if count:
        inc("candidates_filtered_total", value=count)


__all__ += [
    "inc_resolution",
    "inc_resolution_failure",
    "inc_excluded",
    "inc_filtered",
]
