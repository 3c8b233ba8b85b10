"""Candidate registry.

Responsibilities:
- Load candidate manifests (YAML) from the registry directory
- Load / dump the precomputed metadata index
- Adapt both to the selector's collaborator interfaces
"""
from __future__ import annotations

from .loader import (  # noqa: F401
    RegistryCandidateSource,
    RegistryError,
    dump_metadata_index,
    load_candidates,
    load_metadata_index,
)
from .manifest import CandidateManifest  # noqa: F401

__all__ = [
    "CandidateManifest",
    "RegistryCandidateSource",
    "RegistryError",
    "dump_metadata_index",
    "load_candidates",
    "load_metadata_index",
]
