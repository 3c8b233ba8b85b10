"""Registry loader: candidate manifests + precomputed metadata index.

Layout (paths relative to the repository root, configurable):

    registry.d/*.yaml        one CandidateManifest per file
    metadata-index.yaml      {candidate: {order: 10, before: [...], ...}}

Manifests are read in sorted file order and concatenated; the same
candidate may appear in several manifests (the pipeline dedupes).
"""
from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Dict, Iterator, List

import yaml
from yaml import YAMLError

from activation.modules.metadata import MetadataIndex, ModuleMetadata
from .manifest import CandidateManifest

logger = logging.getLogger("activation.registry")


class RegistryError(Exception):
    """Raised when a manifest or the metadata index cannot be parsed."""

    error_type = "registry-invalid"


def _iter_manifest_files(registry_dir: Path) -> Iterator[Path]:
    for path in sorted(registry_dir.glob("*.yaml")):
        if path.is_file():
            yield path


def _read_yaml(path: Path) -> Any:
    """Parse YAML, retrying once with tabs replaced by spaces."""
    raw_text = path.read_text(encoding="utf-8")
    try:
        return yaml.safe_load(raw_text)
    except YAMLError as e:
        if "\t" not in raw_text:
            raise RegistryError(f"Invalid YAML in {path.name}: {e}") from e
        logger.warning("re-parsing %s with tabs replaced by spaces", path.name)
        try:
            return yaml.safe_load(raw_text.replace("\t", "  "))
        except YAMLError as e2:
            raise RegistryError(f"Invalid YAML in {path.name}: {e2}") from e2


def _load_manifest_file(path: Path) -> CandidateManifest:
    data = _read_yaml(path) or {}
    try:
        return CandidateManifest(**data)
    except Exception as e:  # noqa: BLE001
        raise RegistryError(f"Invalid manifest {path.name}: {e}") from e


def load_candidates(
    repo_root: str | Path,
    registry_subdir: str = "registry.d",
) -> List[str]:
    """All candidates from every manifest, in file order, repeats kept."""
    registry_dir = Path(repo_root).resolve() / registry_subdir
    if not registry_dir.is_dir():
        logger.debug("registry directory missing: %s", registry_dir)
        return []
    out: List[str] = []
    for mf in _iter_manifest_files(registry_dir):
        out.extend(_load_manifest_file(mf).candidates)
    return out


def load_metadata_index(path: str | Path) -> MetadataIndex:
    """Load the precomputed index; a missing file means an empty index."""
    path = Path(path)
    if not path.exists():
        return MetadataIndex()
    data = _read_yaml(path) or {}
    if not isinstance(data, dict):
        raise RegistryError(f"{path.name} must contain a mapping")
    entries: Dict[str, Dict[str, Any]] = {}
    for candidate, attrs in data.items():
        attrs = attrs or {}
        if not isinstance(attrs, dict):
            raise RegistryError(
                f"{path.name}: entry for {candidate} must be a mapping"
            )
        try:
            ModuleMetadata.from_attributes(attrs)
        except ValueError as e:
            raise RegistryError(f"{path.name}: {candidate}: {e}") from e
        entries[str(candidate)] = attrs
    return MetadataIndex(entries)


def _plain(value: Any) -> Any:
    # safe_dump only knows lists / dicts / scalars
    if isinstance(value, (set, frozenset)):
        return sorted(_plain(v) for v in value)
    if isinstance(value, (list, tuple)):
        return [_plain(v) for v in value]
    if isinstance(value, dict):
        return {str(k): _plain(v) for k, v in value.items()}
    return value


def dump_metadata_index(index: MetadataIndex, path: str | Path) -> Path:
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    with path.open("w", encoding="utf-8") as f:
        yaml.safe_dump(_plain(index.as_dict()), f, sort_keys=True)
    return path


class RegistryCandidateSource:
    """CandidateSource backed by the manifest directory."""

    def __init__(
        self, repo_root: str | Path = ".", registry_subdir: str = "registry.d"
    ) -> None:
        self.repo_root = Path(repo_root)
        self.registry_subdir = registry_subdir

    def list_candidates(self) -> List[str]:
        return load_candidates(self.repo_root, self.registry_subdir)
