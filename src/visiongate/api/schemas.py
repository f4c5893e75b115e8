"""Pydantic request/response schemas for the VisionGate API.

Field names are snake_case in Python and camelCase on the wire.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

if TYPE_CHECKING:
    from visiongate.vision.aggregation import ImagePrediction
    from visiongate.vision.pipeline import ClassificationResult


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, protected_namespaces=())


class ClassifyRequest(CamelModel):
    """Request body for ``POST /classify``. Only the camelCase ``imageUrls`` key is accepted."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=False)

    image_urls: list[str] = Field(min_length=1, description="Publicly fetchable image URLs")


class TagProbability(CamelModel):
    tag_name: str
    probability: float


class ImagePredictions(CamelModel):
    """Raw predictions for one image."""

    image_url: str
    predictions: list[TagProbability]

    @classmethod
    def from_domain(cls, image: ImagePrediction) -> ImagePredictions:
        return cls(
            image_url=image.image_url,
            predictions=[TagProbability(tag_name=p.tag_name, probability=p.probability) for p in image.predictions],
        )


class InputEcho(CamelModel):
    image_count: int
    image_urls: list[str]


class Stage1Response(CamelModel):
    predictor: str
    averages: dict[str, float]
    per_image: list[ImagePredictions]
    is_model: bool
    model_probability: float
    not_model_probability: float


class Stage2Response(CamelModel):
    predictor: str
    branch: str = Field(description="'SuperModelCommonModel' or 'CivilianHybrid'")
    averages: dict[str, float]
    per_image: list[ImagePredictions]
    final_label: str | None
    final_label_probability: float
    high_confidence: bool
    confidence_threshold: float


class ClassifyResponse(CamelModel):
    """Full two-stage breakdown returned by ``POST /classify``."""

    input: InputEcho
    stage1: Stage1Response
    stage2: Stage2Response

    @classmethod
    def from_result(cls, result: ClassificationResult) -> ClassifyResponse:
        stage1, stage2 = result.stage1, result.stage2
        return cls(
            input=InputEcho(image_count=result.image_count, image_urls=list(result.image_urls)),
            stage1=Stage1Response(
                predictor=stage1.predictor,
                averages=stage1.averages.as_dict(),
                per_image=[ImagePredictions.from_domain(image) for image in stage1.per_image],
                is_model=stage1.decision.is_model,
                model_probability=stage1.decision.model_probability,
                not_model_probability=stage1.decision.not_model_probability,
            ),
            stage2=Stage2Response(
                predictor=stage2.predictor,
                branch=stage2.branch.value,
                averages=stage2.averages.as_dict(),
                per_image=[ImagePredictions.from_domain(image) for image in stage2.per_image],
                final_label=stage2.final_label,
                final_label_probability=stage2.final_label_probability,
                high_confidence=stage2.high_confidence,
                confidence_threshold=stage2.confidence_threshold,
            ),
        )


class HealthResponse(CamelModel):
    """Health check response."""

    status: str = "ok"
    credentials_configured: bool


class PredictorInfo(CamelModel):
    """A configured prediction endpoint. Keys are never exposed."""

    name: str
    role: str = Field(description="'gate' or the stage-2 branch it serves")
    url: str
    key_configured: bool


class PredictorsResponse(CamelModel):
    predictors: list[PredictorInfo]


class ErrorResponse(BaseModel):
    """Standard error response."""

    error: str
    details: Any = None
