"""API route definitions."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from fastapi import APIRouter, Request, status
from fastapi.responses import JSONResponse

from visiongate.api.schemas import (
    ClassifyRequest,
    ClassifyResponse,
    ErrorResponse,
    HealthResponse,
    PredictorInfo,
    PredictorsResponse,
)
from visiongate.config import (
    CIVILIAN_HYBRID_PREDICTOR,
    MODEL_NOT_MODEL_PREDICTOR,
    SUPERMODEL_COMMON_PREDICTOR,
    MissingCredentialsError,
)
from visiongate.vision.pipeline import Branch, TwoStageClassifier
from visiongate.vision.predictor import PredictionError

if TYPE_CHECKING:
    import httpx

    from visiongate.config import Settings

logger = logging.getLogger(__name__)

router = APIRouter()


def _get_settings(request: Request) -> Settings:
    settings: Settings = request.app.state.settings
    return settings


def _get_http_client(request: Request) -> httpx.AsyncClient:
    client: httpx.AsyncClient = request.app.state.http_client
    return client


def _error(status_code: int, error: str, details: object = None) -> JSONResponse:
    body = ErrorResponse(error=error, details=details).model_dump(exclude_none=True)
    return JSONResponse(status_code=status_code, content=body)


@router.post(
    "/classify",
    response_model=ClassifyResponse,
    responses={
        status.HTTP_400_BAD_REQUEST: {"model": ErrorResponse},
        status.HTTP_500_INTERNAL_SERVER_ERROR: {"model": ErrorResponse},
    },
    summary="Classify a batch of images through the two-stage pipeline",
)
async def classify(body: ClassifyRequest, request: Request) -> ClassifyResponse | JSONResponse:
    """Run the Model / NOT Model gate, then the matching refinement predictor."""
    settings = _get_settings(request)
    try:
        config = settings.pipeline_config()
    except MissingCredentialsError as exc:
        logger.error("Refusing /classify: missing %s", ", ".join(exc.missing))
        return _error(status.HTTP_500_INTERNAL_SERVER_ERROR, str(exc), exc.missing)

    classifier = TwoStageClassifier(_get_http_client(request), config)
    try:
        result = await classifier.classify(body.image_urls)
    except PredictionError as exc:
        logger.error("ERROR /classify: %s (%s)", exc, exc.details)
        return _error(status.HTTP_500_INTERNAL_SERVER_ERROR, "Internal server error", exc.details)
    except Exception as exc:  # noqa: BLE001 - surfaced to the caller as a 500
        logger.exception("Unexpected error in /classify")
        return _error(status.HTTP_500_INTERNAL_SERVER_ERROR, "Internal server error", str(exc) or "Unknown error")

    return ClassifyResponse.from_result(result)


@router.get(
    "/health",
    response_model=HealthResponse,
    summary="Health check",
)
async def health(request: Request) -> HealthResponse:
    """Return service health status."""
    settings = _get_settings(request)
    return HealthResponse(status="ok", credentials_configured=not settings.missing_credentials())


@router.get(
    "/predictors",
    response_model=PredictorsResponse,
    summary="List configured predictors",
)
async def list_predictors(request: Request) -> PredictorsResponse:
    """Return the gate and branch predictors and whether each has a key."""
    settings = _get_settings(request)
    return PredictorsResponse(
        predictors=[
            PredictorInfo(
                name=MODEL_NOT_MODEL_PREDICTOR,
                role="gate",
                url=settings.model_not_model_url,
                key_configured=bool(settings.model_not_model_key),
            ),
            PredictorInfo(
                name=SUPERMODEL_COMMON_PREDICTOR,
                role=Branch.SUPER_MODEL_COMMON.value,
                url=settings.supermodel_common_url,
                key_configured=bool(settings.supermodel_common_key),
            ),
            PredictorInfo(
                name=CIVILIAN_HYBRID_PREDICTOR,
                role=Branch.CIVILIAN_HYBRID.value,
                url=settings.civilian_hybrid_url,
                key_configured=bool(settings.civilian_hybrid_key),
            ),
        ]
    )
