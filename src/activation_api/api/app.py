"""FastAPI application factory for the activation API layer.

Endpoints: /health, /config, /metrics, /modules, /modules/report.
"""
from __future__ import annotations

import time

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from activation import metrics
from activation.config import ConfigError, get_config
from activation_api.api.routes.modules import router as modules_router


def create_app() -> FastAPI:
    app = FastAPI(
        title="Activation API",
        version="0.1.0",
        docs_url=None,
        redoc_url=None,
    )

    @app.get("/health")
    def health():  # noqa: D401
        return {"status": "ok"}

    @app.get("/config")
    def config():  # noqa: D401
        try:
            cfg = get_config()
        except ConfigError as e:
            return JSONResponse(
                status_code=500,
                content={"error_type": e.error_type, "message": str(e)},
            )
        return {
            "schema_version": cfg.schema_version,
            "modules": cfg.modules.model_dump(),
            "registry": cfg.registry.model_dump(),
        }

    @app.get("/metrics")
    def metrics_snapshot():  # noqa: D401
        return metrics.snapshot()

    app.include_router(modules_router)

    @app.middleware("http")
    async def _metrics_mw(request: Request, call_next):  # noqa: D401
        start = time.time()
        labels = {"route": request.url.path, "method": request.method}
        response = await call_next(request)
        duration_ms = (time.time() - start) * 1000.0
        metrics.inc("api_request_total", labels)
        metrics.observe("api_request_latency_ms", duration_ms, labels)
        if response.status_code >= 400:
            metrics.inc(
                "api_request_errors_total",
                labels | {"status": response.status_code},
            )
        return response

    return app


app = create_app()


def main() -> None:  # pragma: no cover
    import uvicorn

    uvicorn.run(
        "activation_api.api.app:app", host="127.0.0.1", port=8000, reload=False
    )


if __name__ == "__main__":  # pragma: no cover
    main()
