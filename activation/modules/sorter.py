"""Priority ordering of activation candidates.

Three passes, each stable with respect to the previous one:
  1. lexical sort of candidate ids
  2. sort by order hint (lower first, undeclared = LOWEST_PRECEDENCE)
  3. precedence pass: every candidate is placed after all of its
     predecessors (its own ``after`` list plus every candidate whose
     ``before`` list names it); unconstrained pairs keep the pass-2 order.

Pass 3 is a depth-first walk over an explicit stack so very large pools do
not hit the interpreter recursion limit.
"""
from __future__ import annotations

import enum
from typing import Dict, Iterable, Iterator, List, Tuple

from .candidates import dedupe
from .exceptions import (
    CycleDetectedError,
    MetadataReadError,
    ResolutionError,
)
from .metadata import MetadataSource, ModuleMetadata


class VisitState(enum.Enum):
    UNVISITED = "unvisited"
    IN_PROGRESS = "in-progress"
    DONE = "done"


class PriorityOrderer:
    def __init__(self, metadata: MetadataSource) -> None:
        self._metadata = metadata

    def order(self, candidates: Iterable[str]) -> List[str]:
        names = sorted(set(candidates))
        meta: Dict[str, ModuleMetadata] = {n: self._read(n) for n in names}
        names.sort(key=lambda n: meta[n].order_hint)
        return self._sort_by_precedence(names, meta)

    def _read(self, candidate: str) -> ModuleMetadata:
        try:
            return self._metadata.metadata_for(candidate)
        except ResolutionError:
            raise
        except Exception as e:  # noqa: BLE001
            raise MetadataReadError(candidate, str(e)) from e

    @staticmethod
    def predecessors(
        names: List[str], meta: Dict[str, ModuleMetadata]
    ) -> Dict[str, List[str]]:
        """Declared ``after`` first, then candidates claiming ``before``."""
        claimed: Dict[str, List[str]] = {n: [] for n in names}
        for a in names:
            for b in meta[a].before:
                if b in claimed:
                    claimed[b].append(a)
        return {
            n: dedupe(list(meta[n].after) + claimed[n]) for n in names
        }

    def _sort_by_precedence(
        self, names: List[str], meta: Dict[str, ModuleMetadata]
    ) -> List[str]:
        preds = self.predecessors(names, meta)
        state: Dict[str, VisitState] = {n: VisitState.UNVISITED for n in names}
        placed: List[str] = []
        for root in names:
            if state[root] is not VisitState.UNVISITED:
                continue
            state[root] = VisitState.IN_PROGRESS
            stack: List[Tuple[str, Iterator[str]]] = [
                (root, iter(preds[root]))
            ]
            while stack:
                current, pending = stack[-1]
                for pred in pending:
                    st = state.get(pred)
                    if st is None or st is VisitState.DONE:
                        # outside the working set, or already placed
                        continue
                    if st is VisitState.IN_PROGRESS:
                        raise CycleDetectedError(current, pred)
                    state[pred] = VisitState.IN_PROGRESS
                    stack.append((pred, iter(preds[pred])))
                    break
                else:
                    stack.pop()
                    state[current] = VisitState.DONE
                    placed.append(current)
        return placed


def order_candidates(
    candidates: Iterable[str], metadata: MetadataSource
) -> List[str]:
    return PriorityOrderer(metadata).order(candidates)


__all__ = ["PriorityOrderer", "VisitState", "order_candidates"]
