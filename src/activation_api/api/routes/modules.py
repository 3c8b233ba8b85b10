"""/modules routes: run a resolution pass and inspect the last outcome."""
from __future__ import annotations

from typing import List

from fastapi import APIRouter, Query
from fastapi.responses import JSONResponse

from activation import metrics
from activation.config import ConfigError
from activation.errors import validate_error_type
from activation.modules import (
    EventListener,
    ResolutionError,
    ResolutionReport,
    build_selector,
    get_resolution_report,
)
from activation.registry import RegistryError

router = APIRouter()


def _error(e: Exception, status: int) -> JSONResponse:
    code = validate_error_type(getattr(e, "error_type", "config-invalid"))
    payload = {"error_type": code, "message": str(e)}
    invalid = getattr(e, "invalid", None)
    if invalid:
        payload["invalid"] = list(invalid)
    return JSONResponse(status_code=status, content=payload)


@router.get("/modules")
def resolve_modules(exclude: List[str] = Query(default=[])):  # noqa: D401
    """Resolve against the configured registry; ``exclude`` is repeatable."""
    request_report = ResolutionReport()
    try:
        selector = build_selector(
            ".",
            listeners=[
                EventListener(),
                request_report,
                get_resolution_report(),
            ],
        )
        modules = selector.select(exclude_names=exclude)
    except ResolutionError as e:
        return _error(e, 409)
    except (ConfigError, RegistryError) as e:
        metrics.inc("api_config_errors_total", {"route": "/modules"})
        return _error(e, 500)
    return {
        "modules": modules,
        "exclusions": request_report.as_dict()["exclusions"],
    }


@router.get("/modules/report")
def last_report():  # noqa: D401
    return get_resolution_report().as_dict()
