"""FastAPI application main module.

This module defines the main FastAPI application instance and core API endpoints
for the CatalogRec service: health checks, catalog status, metrics, and the
recommendation and collection routers.
"""

from typing import Dict

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from src.api.dependencies import engine_status
from src.api.exceptions import CatalogRecException
from src.api.logging_config import RequestLoggingMiddleware, setup_logging
from src.api.metrics import metrics_service
from src.api.routes import collections, recommend
from src.config import load_settings

setup_logging(load_settings().log_level)

# Create FastAPI application instance
app = FastAPI(
    title="CatalogRec API",
    description="Smart collections and product recommendations for a product catalog",
    version="0.1.0",
)

app.add_middleware(RequestLoggingMiddleware)

# Include routers
app.include_router(recommend.router)
app.include_router(collections.router)


@app.exception_handler(CatalogRecException)
async def catalogrec_exception_handler(request: Request, exc: CatalogRecException) -> JSONResponse:
    """Render engine errors as JSON with their status code."""
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": exc.message, "details": exc.details},
    )


@app.get("/ping")
def ping() -> Dict[str, str]:
    """Health check endpoint.

    Returns:
        Dictionary with status key set to "ok".

    Example:
        >>> response = client.get("/ping")
        >>> assert response.json() == {"status": "ok"}
    """
    return {"status": "ok"}


@app.get("/status")
def status() -> Dict:
    """Catalog load state; does not trigger loading."""
    return engine_status()


@app.get("/metrics")
def metrics() -> Dict:
    return metrics_service.get_metrics()


if __name__ == "__main__":
    import sys
    from pathlib import Path

    import uvicorn

    # Add project root to Python path for imports
    project_root = Path(__file__).parent.parent.parent
    sys.path.insert(0, str(project_root))

    uvicorn.run(
        "src.api.main:app",
        host="0.0.0.0",
        port=8000,
        reload=True,
    )
