"""Two-stage classification: a Model / NOT Model gate, then a branch refinement."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import StrEnum
from typing import TYPE_CHECKING

from visiongate.vision.aggregation import ImagePrediction, TagAverages, average_by_tag, best_label
from visiongate.vision.predictor import predict_batch

if TYPE_CHECKING:
    from collections.abc import Sequence

    import httpx

    from visiongate.config import PipelineConfig, PredictorEndpoint

logger = logging.getLogger(__name__)

MODEL_TAG = "Model"
NOT_MODEL_TAG = "NOT Model"
CONFIDENCE_THRESHOLD: float = 0.95


class Branch(StrEnum):
    SUPER_MODEL_COMMON = "SuperModelCommonModel"
    CIVILIAN_HYBRID = "CivilianHybrid"


@dataclass(frozen=True)
class BranchDecision:
    """Outcome of the stage-1 gate."""

    model_probability: float
    not_model_probability: float

    @property
    def is_model(self) -> bool:
        # Ties go to Model.
        return self.model_probability >= self.not_model_probability

    @property
    def branch(self) -> Branch:
        return Branch.SUPER_MODEL_COMMON if self.is_model else Branch.CIVILIAN_HYBRID


def decide_branch(averages: TagAverages) -> BranchDecision:
    """Pick the stage-2 branch from stage-1 averages (absent tags count as 0)."""
    return BranchDecision(
        model_probability=averages.probability_of(MODEL_TAG, 0.0),
        not_model_probability=averages.probability_of(NOT_MODEL_TAG, 0.0),
    )


def select_endpoint(config: PipelineConfig, branch: Branch) -> PredictorEndpoint:
    if branch is Branch.SUPER_MODEL_COMMON:
        return config.super_common
    return config.civilian_hybrid


@dataclass(frozen=True)
class GateStageResult:
    predictor: str
    averages: TagAverages
    per_image: tuple[ImagePrediction, ...]
    decision: BranchDecision


@dataclass(frozen=True)
class RefinementStageResult:
    predictor: str
    branch: Branch
    averages: TagAverages
    per_image: tuple[ImagePrediction, ...]
    final_label: str | None
    final_label_probability: float
    confidence_threshold: float = CONFIDENCE_THRESHOLD

    @property
    def high_confidence(self) -> bool:
        return self.final_label_probability >= self.confidence_threshold


@dataclass(frozen=True)
class ClassificationResult:
    """Everything produced for one classify request."""

    image_urls: tuple[str, ...]
    stage1: GateStageResult
    stage2: RefinementStageResult

    @property
    def image_count(self) -> int:
        return len(self.image_urls)


class TwoStageClassifier:
    """Runs the gate stage, picks a branch, then runs the refinement stage.

    Stages run strictly one after the other. Any ``PredictionError`` from
    either stage propagates unchanged; there is no fallback branch.
    """

    def __init__(self, client: httpx.AsyncClient, config: PipelineConfig) -> None:
        self._client = client
        self._config = config

    async def _run_stage(
        self, image_urls: Sequence[str], endpoint: PredictorEndpoint
    ) -> tuple[tuple[ImagePrediction, ...], TagAverages]:
        per_image = await predict_batch(self._client, image_urls, endpoint, timeout=self._config.request_timeout)
        return tuple(per_image), average_by_tag(per_image)

    async def classify(self, image_urls: Sequence[str]) -> ClassificationResult:
        urls = tuple(image_urls)

        gate = self._config.gate
        stage1_images, stage1_averages = await self._run_stage(urls, gate)
        decision = decide_branch(stage1_averages)
        logger.info(
            "Stage 1: Model=%.4f NOT Model=%.4f -> %s",
            decision.model_probability,
            decision.not_model_probability,
            decision.branch,
        )

        endpoint = select_endpoint(self._config, decision.branch)
        stage2_images, stage2_averages = await self._run_stage(urls, endpoint)
        final = best_label(stage2_averages)
        stage2 = RefinementStageResult(
            predictor=endpoint.name,
            branch=decision.branch,
            averages=stage2_averages,
            per_image=stage2_images,
            final_label=final.label,
            final_label_probability=final.probability,
        )
        logger.info(
            "Stage 2 (%s): %s=%.4f high_confidence=%s",
            endpoint.name,
            final.label,
            final.probability,
            stage2.high_confidence,
        )

        return ClassificationResult(
            image_urls=urls,
            stage1=GateStageResult(
                predictor=gate.name,
                averages=stage1_averages,
                per_image=stage1_images,
                decision=decision,
            ),
            stage2=stage2,
        )
