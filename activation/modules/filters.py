"""Batch candidate filters.

Each filter sees the whole remaining candidate list once and answers with
one verdict per position, so it can share lookups across candidates.
A candidate survives only when every filter accepts it.
"""
from __future__ import annotations

import logging
import time
from typing import Callable, Dict, List, Protocol, Sequence

from .candidates import is_loadable
from .metadata import MetadataSource

logger = logging.getLogger("activation.filters")

REQUIRES_KEY = "requires"


class Filter(Protocol):
    def match(
        self, candidates: Sequence[str], metadata: MetadataSource
    ) -> Sequence[bool]:
        ...


class FilterChain:
    def __init__(self, filters: Sequence[Filter] = ()) -> None:
        self._filters = list(filters)

    def __len__(self) -> int:
        return len(self._filters)

    def apply(
        self, candidates: Sequence[str], metadata: MetadataSource
    ) -> List[str]:
        start = time.perf_counter()
        items = list(candidates)
        skip = [False] * len(items)
        skipped = False
        for f in self._filters:
            verdicts = list(f.match(list(items), metadata))
            if len(verdicts) != len(items):
                raise ValueError(
                    f"{type(f).__name__}.match returned {len(verdicts)} "
                    f"verdicts for {len(items)} candidates"
                )
            for i, ok in enumerate(verdicts):
                if not ok:
                    skip[i] = True
                    skipped = True
        if not skipped:
            return items
        result = [c for c, s in zip(items, skip) if not s]
        logger.debug(
            "filtered %d module candidates in %.1f ms",
            len(items) - len(result),
            (time.perf_counter() - start) * 1000.0,
        )
        return result


class RequiresFilter:
    """Reject candidates whose ``requires`` names a module that is absent.

    Loadability answers are shared across the batch.
    """

    def __init__(self, loadable: Callable[[str], bool] = is_loadable) -> None:
        self._loadable = loadable

    def match(
        self, candidates: Sequence[str], metadata: MetadataSource
    ) -> List[bool]:
        seen: Dict[str, bool] = {}
        out: List[bool] = []
        for c in candidates:
            ok = True
            for req in sorted(metadata.get_set(c, REQUIRES_KEY)):
                if req not in seen:
                    seen[req] = self._loadable(req)
                if not seen[req]:
                    logger.debug("%s skipped: requires %s", c, req)
                    ok = False
                    break
            out.append(ok)
        return out


__all__ = ["Filter", "FilterChain", "RequiresFilter", "REQUIRES_KEY"]
