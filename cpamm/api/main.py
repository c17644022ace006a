"""FastAPI application exposing pair state and quotes.

The API is read-only: it never submits transactions, it only reads reserves,
accumulators and registry state of the deployment it serves.
"""

import os

import uvicorn
from fastapi import FastAPI

from cpamm import __version__
from cpamm.api.endpoints import router

# Configuration from environment variables with sensible defaults
HOST = os.environ.get("CPAMM_HOST", "127.0.0.1")
PORT = int(os.environ.get("CPAMM_PORT", "8000"))
DEBUG = os.environ.get("CPAMM_DEBUG", "false").lower() in ("true", "1", "yes")

app = FastAPI(
    title="cpamm",
    description="Read-only view of a constant-product AMM deployment",
    version=__version__,
)

app.include_router(router)


@app.get("/health")
async def health() -> dict[str, object]:
    """Health check endpoint."""
    return {"status": "ok", "version": __version__}


def run() -> None:
    """Run the API server.

    Configuration via environment variables:
    - CPAMM_HOST: Host to bind to (default: 127.0.0.1)
    - CPAMM_PORT: Port to bind to (default: 8000)
    - CPAMM_DEBUG: Enable debug/reload mode (default: false)
    """
    uvicorn.run(
        "cpamm.api.main:app",
        host=HOST,
        port=PORT,
        reload=DEBUG,
    )


if __name__ == "__main__":
    run()
