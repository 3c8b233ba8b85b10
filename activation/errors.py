"""Central Error Taxonomy enforcement.

Every ``error_type`` surfaced by resolution failures, metrics labels and the
API error payload must be one of the codes below.
"""
from __future__ import annotations

_ALLOWED_ERROR_TYPES = {
    # resolution.discovery
    "empty-candidate-pool",
    "registry-invalid",
    # resolution.exclusions
    "invalid-exclusion",
    # resolution.ordering
    "cycle-detected",
    "metadata-read-failure",
    # resolution.collaborators
    "filter-failure",
    "listener-failure",
    # config
    "config-invalid",
    "config-out-of-range",
    # infra
    "event-handler-error",
}


def validate_error_type(code: str) -> str:
    assert (
        code in _ALLOWED_ERROR_TYPES
    ), f"Unknown error_type '{code}' (not in taxonomy)"
    return code


def map_exception(e: Exception, phase: str) -> str:
    """Map an arbitrary collaborator exception to a taxonomy code.

    Resolution errors carry their own ``error_type``; anything else raised
    while filtering or notifying is attributed to that phase.
    """
    code = getattr(e, "error_type", None)
    if isinstance(code, str) and code in _ALLOWED_ERROR_TYPES:
        return code
    if phase == "filter":
        return "filter-failure"
    if phase == "notify":
        return "listener-failure"
    return "config-invalid"


__all__ = ["validate_error_type", "map_exception"]
