# src/vote_vision/main.py
"""Main entry point for the VoteVision application."""

from __future__ import annotations

import logging

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.responses import JSONResponse

from vote_vision.api.v1 import (
    auth_router,
    generation_router,
    prompts_router,
    users_router,
    votes_router,
)
from vote_vision.core.errors import ValidationError, VoteVisionError
from vote_vision.core.settings import settings
from vote_vision.services.orchestrator import shutdown_orchestrator
from vote_vision.services.poller import GenerationPoller, get_poller

logging.basicConfig(
    level=getattr(logging, settings.log_level.upper(), logging.INFO),
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
)
logger = logging.getLogger(__name__)

# Initialize FastAPI app
app = FastAPI(
    title="VoteVision API",
    description="Community voting on prompts for AI-generated video",
    version=settings.app_version,
)

# Add CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=settings.cors_allow_credentials,
    allow_methods=settings.cors_allow_methods,
    allow_headers=settings.cors_allow_headers,
)

# Add GZip middleware for compression
app.add_middleware(GZipMiddleware)

# Include API routers
app.include_router(auth_router, prefix="/api/v1")
app.include_router(users_router, prefix="/api/v1")
app.include_router(prompts_router, prefix="/api/v1")
app.include_router(votes_router, prefix="/api/v1")
app.include_router(generation_router, prefix="/api/v1")


@app.exception_handler(VoteVisionError)
async def handle_domain_error(request: Request, exc: VoteVisionError) -> JSONResponse:
    """Translate a domain exception into its HTTP response."""
    if exc.status_code >= 500:
        logger.warning("%s on %s: %s", type(exc).__name__, request.url.path, exc.detail)
    content: dict[str, object] = {"detail": exc.detail}
    if isinstance(exc, ValidationError):
        content["errors"] = exc.errors
    return JSONResponse(status_code=exc.status_code, content=content)


@app.on_event("startup")
async def on_startup() -> None:
    if settings.generation_poller_enabled:
        poller = get_poller()
        await poller.start()
        app.state.poller = poller
    else:
        app.state.poller = None


@app.on_event("shutdown")
async def on_shutdown() -> None:
    poller: GenerationPoller | None = getattr(app.state, "poller", None)
    if poller:
        await poller.stop()
    await shutdown_orchestrator()


@app.get("/health")
async def health_check() -> dict[str, str]:
    """Health check endpoint to verify the service is running."""
    return {"status": "ok"}


@app.get("/")
async def root() -> dict[str, str]:
    """Root endpoint with basic information about the API."""
    return {
        "name": "VoteVision API",
        "version": settings.app_version,
        "description": "Community voting on prompts for AI-generated video",
        "docs": "/docs",
        "redoc": "/redoc",
    }


if __name__ == "__main__":
    import uvicorn
    uvicorn.run("vote_vision.main:app", host="0.0.0.0", port=8000, reload=settings.debug)
