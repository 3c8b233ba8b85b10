"""Modules package.

Resolution of the ordered set of optional modules to activate:
 - candidates: dedupe, exclusion merge + validation
 - metadata / inspector: order hints and precedence declarations
 - sorter: lexical → order hint → precedence (cycle detection)
 - filters / listeners: injected collaborators
 - selector: ModuleSelector orchestrating the pass
"""
from __future__ import annotations

from .candidates import (  # noqa: F401
    check_exclusions,
    dedupe,
    find_invalid_exclusions,
    is_loadable,
    resolve_exclusions,
)
from .exceptions import (  # noqa: F401
    CycleDetectedError,
    EmptyCandidatePoolError,
    InvalidExclusionError,
    MetadataReadError,
    ResolutionError,
)
from .filters import Filter, FilterChain, RequiresFilter  # noqa: F401
from .inspector import SourceInspector  # noqa: F401
from .listeners import EventListener, Listener, ResolutionReport  # noqa: F401
from .metadata import (  # noqa: F401
    HIGHEST_PRECEDENCE,
    LOWEST_PRECEDENCE,
    IndexedMetadataSource,
    MetadataCache,
    MetadataIndex,
    MetadataSource,
    ModuleMetadata,
)
from .selector import (  # noqa: F401
    CandidateSource,
    ModuleSelector,
    ResolutionState,
    build_selector,
    get_resolution_report,
)
from .sorter import PriorityOrderer, order_candidates  # noqa: F401

__all__ = [
    "check_exclusions",
    "dedupe",
    "find_invalid_exclusions",
    "is_loadable",
    "resolve_exclusions",
    "CycleDetectedError",
    "EmptyCandidatePoolError",
    "InvalidExclusionError",
    "MetadataReadError",
    "ResolutionError",
    "Filter",
    "FilterChain",
    "RequiresFilter",
    "SourceInspector",
    "EventListener",
    "Listener",
    "ResolutionReport",
    "HIGHEST_PRECEDENCE",
    "LOWEST_PRECEDENCE",
    "IndexedMetadataSource",
    "MetadataCache",
    "MetadataIndex",
    "MetadataSource",
    "ModuleMetadata",
    "CandidateSource",
    "ModuleSelector",
    "ResolutionState",
    "build_selector",
    "get_resolution_report",
    "PriorityOrderer",
    "order_candidates",
]
