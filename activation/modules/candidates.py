"""Candidate list helpers: dedupe, exclusion merge, exclusion validation."""
from __future__ import annotations

import importlib.util
from types import ModuleType
from typing import Callable, Iterable, List, Set

from .exceptions import InvalidExclusionError

Loadable = Callable[[str], bool]


def dedupe(ids: Iterable[str]) -> List[str]:
    """Drop repeats, keeping the position of the first occurrence."""
    return list(dict.fromkeys(ids))


def _as_name(item: object) -> str:
    if isinstance(item, ModuleType):
        return item.__name__
    if isinstance(item, str):
        return item
    raise TypeError(
        f"Exclusions must be module names or modules, got {type(item).__name__}"
    )


def resolve_exclusions(
    explicit_ids: Iterable[object] = (),
    explicit_names: Iterable[str] = (),
    external_names: Iterable[str] = (),
) -> Set[str]:
    """Union of the three exclusion sources (no validation)."""
    excluded: Set[str] = set()
    excluded.update(_as_name(i) for i in explicit_ids)
    excluded.update(explicit_names)
    excluded.update(external_names)
    return excluded


def is_loadable(name: str) -> bool:
    """True when the import system can locate ``name``.

    Locating a dotted name imports its parent packages; a parent that fails
    to import makes the name unresolvable.
    """
    try:
        return importlib.util.find_spec(name) is not None
    except Exception:  # noqa: BLE001
        # parent missing or broken, empty or relative name
        return False


def find_invalid_exclusions(
    candidates: Iterable[str],
    exclusions: Iterable[str],
    loadable: Loadable = is_loadable,
) -> List[str]:
    """Exclusions naming a real module that is not a candidate.

    Names that do not resolve to any module are tolerated.
    """
    pool = set(candidates)
    return sorted(
        e for e in set(exclusions) if e not in pool and loadable(e)
    )


def check_exclusions(
    candidates: Iterable[str],
    exclusions: Iterable[str],
    loadable: Loadable = is_loadable,
) -> None:
    invalid = find_invalid_exclusions(candidates, exclusions, loadable)
    if invalid:
        raise InvalidExclusionError(invalid)


__all__ = [
    "dedupe",
    "resolve_exclusions",
    "is_loadable",
    "find_invalid_exclusions",
    "check_exclusions",
]
