"""Resolution event dataclasses + any-subscriber bridge.

Per-event subscriptions go through `activation.eventbus`. This module also
exposes `on(handler)` / `subscribe(handler)` where handler(name, payload)
receives every event (used by the metrics collector and by tests).
"""
from __future__ import annotations

from dataclasses import dataclass, asdict
from time import time
from typing import Any, Callable, Dict, List, Protocol

from activation import metrics as _metrics
from activation.eventbus import emit as _emit_bus

EventHandler = Callable[[str, Dict[str, Any]], None]


class SupportsEvent(Protocol):  # pragma: no cover
    def to_event(self) -> Dict[str, Any]:  # noqa: D401
        ...


@dataclass(slots=True)
class BaseEvent:
    def to_event(self) -> Dict[str, Any]:  # noqa: D401
        data = asdict(self)
        data["ts"] = data.get("ts") or time()
        return data


@dataclass(slots=True)
class ResolutionStarted(BaseEvent):
    resolution_id: str
    candidate_count: int


@dataclass(slots=True)
class ModulesResolved(BaseEvent):
    """Final activated set for one resolution pass.

    modules: ordered activation list
    exclusions: merged exclusion set (sorted for stable payloads)
    """
    modules: list[str]
    exclusions: list[str]


@dataclass(slots=True)
class ResolutionFailed(BaseEvent):
    resolution_id: str
    state: str  # pipeline state reached before the failure
    error_type: str
    message: str | None = None


_ANY_SUBS: List[EventHandler] = []


def _metrics_collector(
    name: str, payload: Dict[str, Any]
) -> None:  # noqa: D401
    if name == "ModulesResolved":
        _metrics.observe(
            "resolved_modules_count", len(payload.get("modules") or [])
        )
    elif name == "ResolutionFailed":
        _metrics.inc(
            "resolution_failed_events_total",
            {"state": payload.get("state", "unknown")},
        )


_ANY_SUBS.append(_metrics_collector)


def emit(ev: BaseEvent | SupportsEvent) -> None:
    name = ev.__class__.__name__
    payload = ev.to_event()
    _emit_bus(name, payload)
    for h in list(_ANY_SUBS):  # copy for isolation
        try:
            h(name, dict(payload))
        except Exception:  # noqa: BLE001
            _metrics.inc("handler_exceptions_total", {"event": name})


def on(handler: EventHandler) -> None:
    _ANY_SUBS.append(handler)


def subscribe(handler: EventHandler):
    on(handler)

    def _unsub() -> None:  # noqa: D401
        try:
            _ANY_SUBS.remove(handler)
        except ValueError:
            pass
    return _unsub


def reset_listeners_for_tests() -> None:  # pragma: no cover
    _ANY_SUBS.clear()
    _ANY_SUBS.append(_metrics_collector)


__all__ = [
    "emit",
    "on",
    "subscribe",
    "BaseEvent",
    "ResolutionStarted",
    "ModulesResolved",
    "ResolutionFailed",
    "reset_listeners_for_tests",
]
