"""ModuleSelector: resolves the ordered set of modules to activate.

Pipeline (linear, no retries):

    LOADED → DEDUPLICATED → EXCLUSIONS_APPLIED → ORDERED → FILTERED
           → NOTIFIED → DONE

Any failure halts the pass and propagates to the caller; there is no
partial result. Failures are counted (`resolution_failures_total`) and
published as a ``ResolutionFailed`` event before re-raising.

Collaborators are injected at construction:
  - candidate source   (``list_candidates()``)
  - metadata factory   (called once per pass; fresh cache every time)
  - filters            (ordered, batch predicates)
  - listeners          (ordered, notified after filtering)
"""
from __future__ import annotations

import enum
import logging
import time
import uuid
from pathlib import Path
from typing import Callable, Iterable, List, Optional, Protocol, Sequence

from activation import metrics
from activation.config import get_config
from activation.config.schemas.modules import ModulesConfig
from activation.errors import map_exception
from activation.events import ResolutionFailed, ResolutionStarted, emit

from .candidates import (
    Loadable,
    check_exclusions,
    dedupe,
    is_loadable,
    resolve_exclusions,
)
from .exceptions import EmptyCandidatePoolError
from .filters import Filter, FilterChain, RequiresFilter
from .inspector import SourceInspector
from .listeners import EventListener, Listener, ResolutionReport
from .metadata import IndexedMetadataSource, MetadataCache, MetadataSource
from .sorter import order_candidates

logger = logging.getLogger("activation.selector")


class CandidateSource(Protocol):
    def list_candidates(self) -> Sequence[str]:
        ...


MetadataFactory = Callable[[], MetadataSource]


class ResolutionState(enum.Enum):
    IDLE = "idle"
    LOADED = "loaded"
    DEDUPLICATED = "deduplicated"
    EXCLUSIONS_APPLIED = "exclusions_applied"
    ORDERED = "ordered"
    FILTERED = "filtered"
    NOTIFIED = "notified"
    DONE = "done"


# phase that was running when a failure surfaced in a given state
_FAILURE_PHASE = {
    ResolutionState.ORDERED: "filter",
    ResolutionState.FILTERED: "notify",
}


def _default_metadata_factory() -> MetadataSource:
    return IndexedMetadataSource(
        inspector=SourceInspector(), cache=MetadataCache()
    )


class ModuleSelector:
    """One instance per caller: ``state`` describes that caller's last pass."""

    def __init__(
        self,
        source: CandidateSource,
        *,
        metadata_factory: MetadataFactory | None = None,
        filters: Sequence[Filter] = (),
        listeners: Sequence[Listener] = (),
        config: ModulesConfig | None = None,
        loadable: Loadable = is_loadable,
    ) -> None:
        self._source = source
        self._metadata_factory = metadata_factory or _default_metadata_factory
        self._filters = list(filters)
        self._listeners = list(listeners)
        self._config = config or ModulesConfig()
        self._loadable = loadable
        self.state = ResolutionState.IDLE

    @property
    def filters(self) -> List[Filter]:
        return list(self._filters)

    @property
    def listeners(self) -> List[Listener]:
        return list(self._listeners)

    def select(
        self,
        exclude: Iterable[object] = (),
        exclude_names: Iterable[str] = (),
    ) -> List[str]:
        """Resolve the ordered activation list.

        ``exclude`` takes module objects or ids, ``exclude_names`` plain
        names; configured ``modules.exclude`` names are merged in.
        """
        self.state = ResolutionState.IDLE
        if not self._config.enabled:
            metrics.inc_resolution("disabled")
            logger.info("module activation disabled by configuration")
            return []
        resolution_id = uuid.uuid4().hex[:12]
        t0 = time.perf_counter()
        try:
            result = self._run(resolution_id, exclude, exclude_names)
        except Exception as e:
            self._on_failure(resolution_id, e)
            raise
        latency_ms = (time.perf_counter() - t0) * 1000.0
        metrics.inc_resolution("ok")
        metrics.observe("resolution_latency_ms", latency_ms)
        logger.debug(
            "resolution %s activated %d modules in %.1f ms",
            resolution_id,
            len(result),
            latency_ms,
        )
        return result

    def _run(
        self,
        resolution_id: str,
        exclude: Iterable[object],
        exclude_names: Iterable[str],
    ) -> List[str]:
        raw = list(self._source.list_candidates())
        if not raw:
            raise EmptyCandidatePoolError()
        self.state = ResolutionState.LOADED
        emit(
            ResolutionStarted(
                resolution_id=resolution_id, candidate_count=len(raw)
            )
        )

        candidates = dedupe(raw)
        self.state = ResolutionState.DEDUPLICATED

        exclusions = resolve_exclusions(
            exclude, exclude_names, self._config.exclude
        )
        check_exclusions(candidates, exclusions, self._loadable)
        remaining = [c for c in candidates if c not in exclusions]
        metrics.inc_excluded(len(candidates) - len(remaining))
        self.state = ResolutionState.EXCLUSIONS_APPLIED

        metadata = self._metadata_factory()
        ordered = order_candidates(remaining, metadata)
        self.state = ResolutionState.ORDERED

        result = FilterChain(self._filters).apply(ordered, metadata)
        metrics.inc_filtered(len(ordered) - len(result))
        self.state = ResolutionState.FILTERED

        frozen = frozenset(exclusions)
        for listener in self._listeners:
            listener.on_resolved(list(result), frozen)
        self.state = ResolutionState.NOTIFIED

        self.state = ResolutionState.DONE
        return result

    def _on_failure(self, resolution_id: str, e: Exception) -> None:
        phase = _FAILURE_PHASE.get(self.state, "resolve")
        code = map_exception(e, phase)
        metrics.inc_resolution("error")
        metrics.inc_resolution_failure(code)
        logger.warning(
            "resolution %s failed state=%s error_type=%s: %s",
            resolution_id,
            self.state.value,
            code,
            e,
        )
        emit(
            ResolutionFailed(
                resolution_id=resolution_id,
                state=self.state.value,
                error_type=code,
                message=str(e),
            )
        )


def build_selector(
    repo_root: str | Path = ".",
    *,
    filters: Optional[Sequence[Filter]] = None,
    listeners: Optional[Sequence[Listener]] = None,
) -> ModuleSelector:
    """Selector wired from config: registry manifests + metadata index.

    Default filters: [RequiresFilter]. Default listeners: [EventListener].
    The index is re-read on every pass so each pass has its own cache.
    """
    # local import: registry depends on this package's metadata module
    from activation.registry import (
        RegistryCandidateSource,
        load_metadata_index,
    )

    cfg = get_config()
    root = Path(repo_root)
    index_path = root / cfg.registry.metadata_index

    def _metadata() -> MetadataSource:
        return IndexedMetadataSource(
            index=load_metadata_index(index_path),
            inspector=SourceInspector(),
            cache=MetadataCache(),
        )

    return ModuleSelector(
        RegistryCandidateSource(root, cfg.registry.directory),
        metadata_factory=_metadata,
        filters=[RequiresFilter()] if filters is None else filters,
        listeners=[EventListener()] if listeners is None else listeners,
        config=cfg.modules,
    )


_REPORT = ResolutionReport()


def get_resolution_report() -> ResolutionReport:
    return _REPORT

