"""FastAPI application for the index pool service.

Note: authentication is limited to the X-Caller header compared against the
pool controller. Anything stronger belongs in the infrastructure layer.
"""

import logging
import os

import structlog
import uvicorn
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from indexpool import __version__
from indexpool.api.endpoints import router
from indexpool.errors import IndexPoolError, Unauthorized, UnknownPool
from indexpool.models.api import ErrorResponse

logger = structlog.get_logger()

# Configuration from environment variables with sensible defaults
HOST = os.environ.get("INDEXPOOL_HOST", "0.0.0.0")
PORT = int(os.environ.get("INDEXPOOL_PORT", "8000"))
DEBUG = os.environ.get("INDEXPOOL_DEBUG", "false").lower() in ("true", "1", "yes")

# Maximum request body size (1 MB)
MAX_REQUEST_SIZE = 1024 * 1024

app = FastAPI(
    title="Index Pool",
    description="Weight engine for index pools with gradual reweighing and reindexing",
    version=__version__,
)


@app.middleware("http")
async def limit_request_size(request: Request, call_next):  # type: ignore[no-untyped-def]
    """Reject requests with body larger than MAX_REQUEST_SIZE."""
    content_length = request.headers.get("content-length")
    if content_length and int(content_length) > MAX_REQUEST_SIZE:
        return JSONResponse(status_code=413, content={"detail": "Request too large"})
    return await call_next(request)


@app.exception_handler(IndexPoolError)
async def index_pool_error_handler(request: Request, exc: IndexPoolError) -> JSONResponse:
    """Map pool errors to 4xx responses; nothing has been committed."""
    if isinstance(exc, Unauthorized):
        status_code = 403
    elif isinstance(exc, UnknownPool):
        status_code = 404
    else:
        status_code = 400
    logger.warning(
        "request_rejected",
        path=request.url.path,
        error=type(exc).__name__,
        detail=str(exc),
    )
    return JSONResponse(
        status_code=status_code,
        content=ErrorResponse(error=type(exc).__name__, detail=str(exc)).model_dump(),
    )


app.include_router(router)


@app.get("/health")
async def health() -> dict[str, object]:
    """Health check endpoint."""
    return {"status": "ok", "version": __version__}


def run() -> None:
    """Run the index pool API server.

    Configuration via environment variables:
    - INDEXPOOL_HOST: Host to bind to (default: 0.0.0.0)
    - INDEXPOOL_PORT: Port to bind to (default: 8000)
    - INDEXPOOL_DEBUG: Enable debug/reload mode and debug logs (default: false)
    """
    log_level = logging.DEBUG if DEBUG else logging.INFO
    structlog.configure(
        processors=[
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.dev.ConsoleRenderer(),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(log_level),
    )

    uvicorn.run(
        "indexpool.api.main:app",
        host=HOST,
        port=PORT,
        reload=DEBUG,
    )


if __name__ == "__main__":
    run()
