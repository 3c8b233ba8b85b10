"""Resolution exception hierarchy.

Every error carries an ``error_type`` from the central taxonomy
(`activation.errors`), used for metrics labels and API payloads.
"""
from __future__ import annotations

from typing import Iterable


class ResolutionError(Exception):
    """Base resolution exception."""

    error_type = "config-invalid"


class EmptyCandidatePoolError(ResolutionError):
    """Raised when discovery yields no candidates at all.

    Usually a packaging problem: the registry directory is missing or every
    manifest in it lists nothing.
    """

    error_type = "empty-candidate-pool"

    def __init__(self, message: str | None = None) -> None:
        super().__init__(
            message
            or "No module candidates found. If you are using a custom "
            "registry location, make sure it contains candidate manifests."
        )


class InvalidExclusionError(ResolutionError):
    """Raised when exclusions name real modules that are not candidates.

    ``invalid`` holds every offending name, never just the first.
    """

    error_type = "invalid-exclusion"

    def __init__(self, invalid: Iterable[str]) -> None:
        self.invalid = list(invalid)
        lines = "".join(f"\t- {name}\n" for name in self.invalid)
        super().__init__(
            "The following modules could not be excluded because they are "
            f"not activation candidates:\n{lines}"
        )


class CycleDetectedError(ResolutionError):
    """Raised when precedence constraints cannot be linearized."""

    error_type = "cycle-detected"

    def __init__(self, first: str, second: str) -> None:
        self.first = first
        self.second = second
        super().__init__(
            f"Activation cycle detected between {first} and {second}"
        )


class MetadataReadError(ResolutionError):
    """Raised when metadata for a candidate cannot be read.

    Always chained (``raise ... from``) to the underlying cause.
    """

    error_type = "metadata-read-failure"

    def __init__(self, candidate: str, reason: str | None = None) -> None:
        self.candidate = candidate
        msg = f"Unable to read metadata for module {candidate}"
        if reason:
            msg += f": {reason}"
        super().__init__(msg)


__all__ = [
    "ResolutionError",
    "EmptyCandidatePoolError",
    "InvalidExclusionError",
    "CycleDetectedError",
    "MetadataReadError",
]
