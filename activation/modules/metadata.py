"""Per-candidate ordering metadata and the sources that provide it.

Two lookup paths, chosen per candidate by ``was_precomputed``:
  - precomputed index (authoritative, no inspection)
  - lazy inspection of the module source (see `inspector.SourceInspector`)

Lookups are memoized in a `MetadataCache` that lives for one resolution
pass only. Hosts running several resolutions concurrently must build one
source per pass (the selector does this through its metadata factory).

Attribute names are lower-case on both paths: ``order``, ``before``,
``after`` plus any extra attribute (e.g. ``requires``) used by filters.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import (
    Any,
    Callable,
    Dict,
    Iterable,
    Mapping,
    Optional,
    Protocol,
    Tuple,
)

from .exceptions import MetadataReadError

LOWEST_PRECEDENCE = 2**31 - 1
HIGHEST_PRECEDENCE = -(2**31)

ORDER_KEY = "order"
BEFORE_KEY = "before"
AFTER_KEY = "after"


def _as_names(value: Any, key: str) -> Tuple[str, ...]:
    if value is None:
        return ()
    if isinstance(value, str):
        value = [value]
    if not isinstance(value, (list, tuple, set, frozenset)):
        raise ValueError(f"'{key}' must be a list of module names")
    out: list[str] = []
    for item in value:
        if not isinstance(item, str):
            raise ValueError(f"'{key}' entries must be strings, got {item!r}")
        if item not in out:
            out.append(item)
    # sets carry no declaration order; sort them for determinism
    if isinstance(value, (set, frozenset)):
        out.sort()
    return tuple(out)


@dataclass(frozen=True)
class ModuleMetadata:
    order_hint: int = LOWEST_PRECEDENCE
    before: Tuple[str, ...] = ()
    after: Tuple[str, ...] = ()
    attributes: Mapping[str, Any] = field(
        default_factory=dict, compare=False, hash=False
    )

    @classmethod
    def from_attributes(cls, attrs: Mapping[str, Any]) -> "ModuleMetadata":
        """Build metadata from a raw attribute mapping.

        Raises ValueError on wrongly typed ``order`` / ``before`` / ``after``
        or an ``order`` outside the 32-bit precedence range.
        """
        order = attrs.get(ORDER_KEY, LOWEST_PRECEDENCE)
        if order is None:
            order = LOWEST_PRECEDENCE
        if isinstance(order, bool) or not isinstance(order, int):
            raise ValueError(f"'{ORDER_KEY}' must be an integer, got {order!r}")
        if not HIGHEST_PRECEDENCE <= order <= LOWEST_PRECEDENCE:
            raise ValueError(
                f"'{ORDER_KEY}' out of range: {order} not in "
                f"[{HIGHEST_PRECEDENCE}, {LOWEST_PRECEDENCE}]"
            )
        return cls(
            order_hint=order,
            before=_as_names(attrs.get(BEFORE_KEY), BEFORE_KEY),
            after=_as_names(attrs.get(AFTER_KEY), AFTER_KEY),
            attributes=dict(attrs),
        )


DEFAULT_METADATA = ModuleMetadata()


class MetadataSource(Protocol):
    """Capability set the pipeline needs from a metadata provider."""

    def metadata_for(self, candidate: str) -> ModuleMetadata:
        ...

    def was_precomputed(self, candidate: str) -> bool:
        ...

    def get(self, candidate: str, key: str, default: Any = None) -> Any:
        ...

    def get_int(self, candidate: str, key: str, default: int = 0) -> int:
        ...

    def get_set(
        self, candidate: str, key: str, default: Iterable[str] = ()
    ) -> frozenset[str]:
        ...


class MetadataIndex:
    """Precomputed attributes keyed by candidate id."""

    def __init__(self, entries: Mapping[str, Mapping[str, Any]] | None = None):
        self._entries: Dict[str, Dict[str, Any]] = {
            k: dict(v or {}) for k, v in (entries or {}).items()
        }

    def __contains__(self, candidate: object) -> bool:
        return candidate in self._entries

    def __len__(self) -> int:
        return len(self._entries)

    def attributes(self, candidate: str) -> Dict[str, Any]:
        return dict(self._entries.get(candidate, {}))

    def as_dict(self) -> Dict[str, Dict[str, Any]]:
        return {k: dict(v) for k, v in self._entries.items()}


class MetadataCache:
    """Memo for one resolution pass; never shared between passes."""

    __slots__ = ("_items",)

    def __init__(self) -> None:
        self._items: Dict[str, ModuleMetadata] = {}

    def get_or_load(
        self, candidate: str, loader: Callable[[str], ModuleMetadata]
    ) -> ModuleMetadata:
        meta = self._items.get(candidate)
        if meta is None:
            meta = loader(candidate)
            self._items[candidate] = meta
        return meta

    def __len__(self) -> int:
        return len(self._items)


class IndexedMetadataSource:
    """Index first, lazy inspection for everything the index lacks.

    ``inspector`` is any object with ``inspect(candidate) -> dict``; when it
    is None, candidates missing from the index get default metadata.
    """

    def __init__(
        self,
        index: MetadataIndex | None = None,
        inspector: Optional[Any] = None,
        cache: MetadataCache | None = None,
    ) -> None:
        self._index = index or MetadataIndex()
        self._inspector = inspector
        self._cache = cache if cache is not None else MetadataCache()

    @classmethod
    def from_mapping(
        cls, entries: Mapping[str, Mapping[str, Any]]
    ) -> "IndexedMetadataSource":
        return cls(MetadataIndex(entries))

    def was_precomputed(self, candidate: str) -> bool:
        return candidate in self._index

    def metadata_for(self, candidate: str) -> ModuleMetadata:
        return self._cache.get_or_load(candidate, self._load)

    def _load(self, candidate: str) -> ModuleMetadata:
        if self.was_precomputed(candidate):
            attrs = self._index.attributes(candidate)
        elif self._inspector is not None:
            attrs = self._inspector.inspect(candidate)
        else:
            return DEFAULT_METADATA
        try:
            return ModuleMetadata.from_attributes(attrs)
        except ValueError as e:
            raise MetadataReadError(candidate, str(e)) from e

    def get(self, candidate: str, key: str, default: Any = None) -> Any:
        return self.metadata_for(candidate).attributes.get(key, default)

    def get_int(self, candidate: str, key: str, default: int = 0) -> int:
        value = self.get(candidate, key)
        if value is None:
            return default
        try:
            return int(value)
        except (TypeError, ValueError) as e:
            raise MetadataReadError(
                candidate, f"'{key}' is not an integer"
            ) from e

    def get_set(
        self, candidate: str, key: str, default: Iterable[str] = ()
    ) -> frozenset[str]:
        value = self.get(candidate, key)
        if value is None:
            return frozenset(default)
        try:
            return frozenset(_as_names(value, key))
        except ValueError as e:
            raise MetadataReadError(candidate, str(e)) from e


__all__ = [
    "LOWEST_PRECEDENCE",
    "HIGHEST_PRECEDENCE",
    "ModuleMetadata",
    "DEFAULT_METADATA",
    "MetadataSource",
    "MetadataIndex",
    "MetadataCache",
    "IndexedMetadataSource",
]
