"""Resolution listeners.

Listeners run once per successful resolution, in registration order, after
filtering. Their exceptions are not caught: a failing listener aborts the
resolution.
"""
from __future__ import annotations

from threading import RLock
from typing import AbstractSet, List, Protocol, Sequence

from activation.events import ModulesResolved, emit


class Listener(Protocol):
    def on_resolved(
        self, modules: Sequence[str], exclusions: AbstractSet[str]
    ) -> None:
        ...


class EventListener:
    """Publish ``ModulesResolved`` on the event bus."""

    def on_resolved(
        self, modules: Sequence[str], exclusions: AbstractSet[str]
    ) -> None:
        emit(
            ModulesResolved(
                modules=list(modules),
                exclusions=sorted(exclusions),
            )
        )


class ResolutionReport:
    """Keeps the outcome of the last resolution for introspection."""

    def __init__(self) -> None:
        self._lock = RLock()
        self._modules: List[str] = []
        self._exclusions: List[str] = []
        self._count = 0

    def on_resolved(
        self, modules: Sequence[str], exclusions: AbstractSet[str]
    ) -> None:
        with self._lock:
            self._modules = list(modules)
            self._exclusions = sorted(exclusions)
            self._count += 1

    @property
    def resolutions(self) -> int:
        return self._count

    def as_dict(self) -> dict:
        with self._lock:
            return {
                "modules": list(self._modules),
                "exclusions": list(self._exclusions),
                "resolutions": self._count,
            }


__all__ = ["Listener", "EventListener", "ResolutionReport"]
