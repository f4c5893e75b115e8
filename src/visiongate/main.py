"""FastAPI application entry point."""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import AsyncIterator

import httpx
import uvicorn
from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from visiongate.api.routes import router
from visiongate.config import get_settings

logger = logging.getLogger(__name__)

INVALID_IMAGE_URLS_MESSAGE = "imageUrls must be a non-empty array of URLs"


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Application lifespan: initialize on startup, clean up on shutdown."""
    settings = get_settings()
    app.state.settings = settings

    logging.basicConfig(
        level=settings.log_level.upper(),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )

    missing = settings.missing_credentials()
    logger.info(
        "Starting VisionGate (port=%s, request_timeout=%ss, missing_keys=%s)",
        settings.port,
        settings.request_timeout,
        ", ".join(missing) or "none",
    )

    http_client = httpx.AsyncClient()
    app.state.http_client = http_client

    logger.info("VisionGate ready")
    yield

    logger.info("Shutting down VisionGate")
    await http_client.aclose()
    logger.info("VisionGate shutdown complete")


async def _validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    logger.info("Rejected %s %s: %s", request.method, request.url.path, exc.errors())
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"error": INVALID_IMAGE_URLS_MESSAGE},
    )


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    application = FastAPI(
        title="VisionGate",
        description="Two-stage image classification over Custom Vision prediction endpoints",
        version="0.1.0",
        lifespan=lifespan,
    )

    application.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    application.add_exception_handler(RequestValidationError, _validation_error_handler)  # type: ignore[arg-type]
    application.include_router(router)
    return application


app = create_app()


def run() -> None:
    """Serve the application with uvicorn on the configured host and port."""
    settings = get_settings()
    uvicorn.run("visiongate.main:app", host=settings.host, port=settings.port)
