"""Shared fixtures: a fake Custom Vision endpoint served through httpx.MockTransport."""

from __future__ import annotations

import json
from dataclasses import dataclass, field

import httpx
import pytest

from visiongate.config import PipelineConfig, PredictorEndpoint

GATE_URL = "https://gate.test/classify/iterations/ModelNotModelPredictor/url"
SUPER_URL = "https://super.test/classify/iterations/SuperModelCommonModelPredictor/url"
CIVILIAN_URL = "https://civilian.test/classify/iterations/CivilianHybridPredictor/url"


@dataclass
class FakeClassifier:
    """Scripted responses keyed by (endpoint URL, image URL)."""

    responses: dict[tuple[str, str], object] = field(default_factory=dict)
    calls: list[tuple[str, str, str | None]] = field(default_factory=list)

    def predicts(self, endpoint_url: str, image_url: str, tags: dict[str, float]) -> None:
        predictions = [{"tagName": name, "probability": prob, "tagId": "x"} for name, prob in tags.items()]
        self.responses[(endpoint_url, image_url)] = httpx.Response(200, json={"predictions": predictions})

    def returns(self, endpoint_url: str, image_url: str, response: httpx.Response) -> None:
        self.responses[(endpoint_url, image_url)] = response

    def raises(self, endpoint_url: str, image_url: str, exc_type: type[httpx.RequestError]) -> None:
        self.responses[(endpoint_url, image_url)] = exc_type

    def calls_to(self, endpoint_url: str) -> list[str]:
        return [image for url, image, _ in self.calls if url == endpoint_url]

    def handler(self, request: httpx.Request) -> httpx.Response:
        image_url = json.loads(request.content)["Url"]
        endpoint_url = str(request.url)
        self.calls.append((endpoint_url, image_url, request.headers.get("Prediction-Key")))
        scripted = self.responses[(endpoint_url, image_url)]
        if isinstance(scripted, type):
            raise scripted("scripted failure", request=request)
        assert isinstance(scripted, httpx.Response)
        return scripted

    def client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(transport=httpx.MockTransport(self.handler))


@pytest.fixture()
def fake_classifier() -> FakeClassifier:
    return FakeClassifier()


@pytest.fixture()
def pipeline_config() -> PipelineConfig:
    return PipelineConfig(
        gate=PredictorEndpoint("Model/NOT Model Predictor", GATE_URL, "gate-key"),
        super_common=PredictorEndpoint("SuperModel/Common Model Predictor", SUPER_URL, "super-key"),
        civilian_hybrid=PredictorEndpoint("Civilian/Hybrid Predictor", CIVILIAN_URL, "civilian-key"),
        request_timeout=1.0,
    )

