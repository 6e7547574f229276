"""
FastAPI application exposing resolved site configuration.
Maps the request Host to a site, and answers 401 when the shared default site is refused.
"""

import time
import uuid
from contextlib import asynccontextmanager
from typing import Dict, Mapping

from fastapi import Depends, FastAPI, Request, status
from fastapi.responses import JSONResponse, PlainTextResponse

from sitenv.bootstrap import create_resolver, site_for_host
from sitenv.config import settings
from sitenv.dotenv_loader import load_environment
from sitenv.errors import UnresolvableDatabaseName, UnsafeDefaultSiteRefusal
from sitenv.logging_utils import logger, log_request
from sitenv.metrics import (
    http_requests_total,
    request_latency_histogram,
    generate_metrics,
)
from sitenv.models import SiteConfig, build_site_config
from sitenv.resolver import Resolver


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan: load the environment snapshot once at startup."""
    logger.info("Starting sitenv API")
    get_environ()
    yield
    logger.info("Shutting down sitenv API")


app = FastAPI(
    title="sitenv",
    description="Multi-site environment configuration resolver",
    version="1.0.0",
    lifespan=lifespan,
)


def get_environ() -> Mapping[str, str]:
    """Environment snapshot, loaded from the project's env files on first use."""
    environ = getattr(app.state, "environ", None)
    if environ is None:
        environ = load_environment(settings.PROJECT_PATH)
        app.state.environ = environ
    return environ


def get_resolver(request: Request, environ: Mapping[str, str] = Depends(get_environ)) -> Resolver:
    """Fresh Resolver per request, scoped to the site serving the Host header."""
    resolver = create_resolver(environ)
    host = request.headers.get("host", "")
    resolver.set_site_name(site_for_host(resolver, host))
    request.state.site = resolver.get_site_name()
    return resolver


@app.exception_handler(UnsafeDefaultSiteRefusal)
async def unsafe_default_site_handler(request: Request, exc: UnsafeDefaultSiteRefusal):
    """The default site of a multi-site install is never served."""
    return PlainTextResponse("Unauthorized", status_code=status.HTTP_401_UNAUTHORIZED)


@app.exception_handler(UnresolvableDatabaseName)
async def unresolvable_database_name_handler(request: Request, exc: UnresolvableDatabaseName):
    logger.error(
        "Database name could not be computed",
        extra={"request_id": getattr(request.state, "request_id", None), "site": getattr(request.state, "site", None)},
    )
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"detail": str(exc)},
    )


@app.middleware("http")
async def logging_and_metrics_middleware(request: Request, call_next):
    """
    Middleware for request logging and metrics collection.
    Tracks latency, HTTP status, and generates structured JSON logs.
    """
    request_id = str(uuid.uuid4())
    request.state.request_id = request_id

    start_time = time.time()

    try:
        response = await call_next(request)
    except Exception as exc:
        logger.error(
            "Unhandled exception",
            extra={
                "request_id": request_id,
                "method": request.method,
                "path": request.url.path,
                "error": str(exc),
            },
        )
        response = JSONResponse(
            status_code=500,
            content={"detail": "Internal server error"},
        )

    latency_ms = (time.time() - start_time) * 1000

    http_requests_total.labels(
        method=request.method,
        path=request.url.path,
        status=response.status_code,
    ).inc()

    request_latency_histogram.labels(
        method=request.method,
        path=request.url.path,
    ).observe(latency_ms)

    log_data = {
        "request_id": request_id,
        "method": request.method,
        "path": request.url.path,
        "status": response.status_code,
        "latency_ms": round(latency_ms, 2),
    }
    if hasattr(request.state, "site"):
        log_data["site"] = request.state.site

    log_request(log_data)

    response.headers["X-Request-ID"] = request_id

    return response


@app.get("/config", response_model=SiteConfig, response_model_exclude={"db_password"})
async def site_config(resolver: Resolver = Depends(get_resolver)):
    """
    Resolved configuration for the site serving this Host.

    - Never includes db_password; the site is chosen by a client-controlled Host
    - Returns 401 for the default site of a multi-site install
    - Returns 500 when no database name can be computed
    """
    return build_site_config(resolver)


@app.get("/sites")
async def list_sites(resolver: Resolver = Depends(get_resolver)) -> Dict:
    """Site matrix and domains for the current app."""
    return {
        "multi_site": resolver.is_multi_site(),
        "domains": resolver.get_domains(),
        "sites": resolver.get_sites(),
    }


@app.get("/health/live")
async def health_live():
    """
    Liveness probe: always returns 200 when app is running.
    """
    return {"status": "ok"}


@app.get("/metrics", response_class=PlainTextResponse)
async def metrics():
    """
    Prometheus-style metrics endpoint.

    Exposes:
    - http_requests_total: Counter of HTTP requests by method, path, status
    - database_name_resolutions_total: Counter of derivations by source and result
    - request_latency_ms: Histogram of request latencies
    """
    return generate_metrics()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "sitenv.main:app",
        host="0.0.0.0",
        port=8000,
        log_config=None,  # Disable uvicorn's default logging
    )
