"""FastAPI application for the swap router.

Note: Authentication and rate limiting are not implemented at the application
level. They belong to the infrastructure layer in front of this service.
"""

import os
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

import uvicorn
from fastapi import Depends, FastAPI, Request
from fastapi.responses import JSONResponse

from swaprouter import __version__
from swaprouter.api.endpoints import get_planner, router
from swaprouter.config import configure_logging
from swaprouter.planner import RoutePlanner, shutdown_default_planner

# Configuration from environment variables with sensible defaults
HOST = os.environ.get("ROUTER_HOST", "0.0.0.0")
PORT = int(os.environ.get("ROUTER_PORT", "8000"))
DEBUG = os.environ.get("ROUTER_DEBUG", "false").lower() in ("true", "1", "yes")
LOG_LEVEL = os.environ.get("ROUTER_LOG_LEVEL", "DEBUG" if DEBUG else "INFO")

# Maximum request body size (1 MB); only POST /reload accepts a body and ignores it
MAX_REQUEST_SIZE = 1024 * 1024


@asynccontextmanager
async def lifespan(_app: FastAPI) -> AsyncIterator[None]:
    yield
    shutdown_default_planner()


app = FastAPI(
    title="Swap Router",
    description="Route planning and liquidity aggregation for token swaps",
    version=__version__,
    lifespan=lifespan,
)


@app.middleware("http")
async def limit_request_size(request: Request, call_next):  # type: ignore[no-untyped-def]
    """Reject requests with body larger than MAX_REQUEST_SIZE."""
    content_length = request.headers.get("content-length")
    if content_length and int(content_length) > MAX_REQUEST_SIZE:
        return JSONResponse(status_code=413, content={"detail": "Request too large"})
    return await call_next(request)


app.include_router(router)


@app.get("/health")
async def health(planner: RoutePlanner = Depends(get_planner)) -> dict[str, object]:
    """Health check endpoint."""
    return {"status": "ok", "snapshotVersion": planner.store.snapshot.version}


def run() -> None:
    """Run the router API server.

    Configuration via environment variables:
    - ROUTER_HOST: Host to bind to (default: 0.0.0.0)
    - ROUTER_PORT: Port to bind to (default: 8000)
    - ROUTER_DEBUG: Enable debug/reload mode (default: false)
    - ROUTER_LOG_LEVEL: Log level (default: INFO, DEBUG in debug mode)
    """
    configure_logging(LOG_LEVEL)
    uvicorn.run(
        "swaprouter.api.main:app",
        host=HOST,
        port=PORT,
        reload=DEBUG,
    )


if __name__ == "__main__":
    run()
