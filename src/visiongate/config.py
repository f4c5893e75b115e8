"""Environment-based configuration for VisionGate."""

from __future__ import annotations

from dataclasses import dataclass

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

_CUSTOM_VISION_BASE = "https://gesmodelsclassification-prediction.cognitiveservices.azure.com/customvision/v3.0/Prediction"

DEFAULT_MODEL_NOT_MODEL_URL = (
    f"{_CUSTOM_VISION_BASE}/35afe559-03ae-4d8c-91e9-ed001feac52e/classify/iterations/ModelNotModelPredictor/url"
)
DEFAULT_CIVILIAN_HYBRID_URL = (
    f"{_CUSTOM_VISION_BASE}/d784e366-21a8-4231-8058-6f2ad50a72e0/classify/iterations/CivilianHybridPredictor/url"
)
DEFAULT_SUPERMODEL_COMMON_URL = (
    "https://germanywestcentral.api.cognitive.microsoft.com/customvision/v3.0/Prediction"
    "/133f6dd8-c9e3-4a86-84d7-c1b6fdd4ef69/classify/iterations/SuperModelCommonModelPredictor/url"
)

MODEL_NOT_MODEL_PREDICTOR = "Model/NOT Model Predictor"
SUPERMODEL_COMMON_PREDICTOR = "SuperModel/Common Model Predictor"
CIVILIAN_HYBRID_PREDICTOR = "Civilian/Hybrid Predictor"

CREDENTIAL_ENV_VARS = ("MODEL_NOT_MODEL_KEY", "CIVILIAN_HYBRID_KEY", "SUPERMODEL_COMMON_KEY")


class MissingCredentialsError(RuntimeError):
    """Raised when one or more prediction keys are not configured."""

    def __init__(self, missing: list[str]) -> None:
        self.missing = missing
        super().__init__(f"Prediction keys not set ({' / '.join(CREDENTIAL_ENV_VARS)})")


@dataclass(frozen=True)
class PredictorEndpoint:
    """A remote classification endpoint and the key used to call it."""

    name: str
    url: str
    key: str


@dataclass(frozen=True)
class PipelineConfig:
    """Everything the two-stage classifier needs to reach its predictors."""

    gate: PredictorEndpoint
    super_common: PredictorEndpoint
    civilian_hybrid: PredictorEndpoint
    request_timeout: float = 25.0


class Settings(BaseSettings):
    """Application settings loaded from environment variables (unprefixed)."""

    model_config = SettingsConfigDict(
        env_prefix="",
        env_file=".env",
        extra="ignore",
        case_sensitive=False,
        protected_namespaces=(),
    )

    # Server
    host: str = "0.0.0.0"  # noqa: S104
    port: int = 3000
    log_level: str = "INFO"

    # Stage 1: Model vs NOT Model
    model_not_model_url: str = DEFAULT_MODEL_NOT_MODEL_URL
    model_not_model_key: str | None = None

    # Stage 2 branches
    civilian_hybrid_url: str = DEFAULT_CIVILIAN_HYBRID_URL
    civilian_hybrid_key: str | None = None
    supermodel_common_url: str = DEFAULT_SUPERMODEL_COMMON_URL
    supermodel_common_key: str | None = None

    # Per-request timeout for calls to the prediction API, in seconds
    request_timeout: float = Field(default=25.0, gt=0)

    def missing_credentials(self) -> list[str]:
        """Return the environment variable names of unset prediction keys."""
        keys = (self.model_not_model_key, self.civilian_hybrid_key, self.supermodel_common_key)
        return [name for name, key in zip(CREDENTIAL_ENV_VARS, keys, strict=True) if not key]

    def pipeline_config(self) -> PipelineConfig:
        """Build the classifier configuration.

        Raises:
            MissingCredentialsError: If any prediction key is unset or empty.
        """
        missing = self.missing_credentials()
        if missing:
            raise MissingCredentialsError(missing)

        return PipelineConfig(
            gate=PredictorEndpoint(MODEL_NOT_MODEL_PREDICTOR, self.model_not_model_url, str(self.model_not_model_key)),
            super_common=PredictorEndpoint(
                SUPERMODEL_COMMON_PREDICTOR, self.supermodel_common_url, str(self.supermodel_common_key)
            ),
            civilian_hybrid=PredictorEndpoint(
                CIVILIAN_HYBRID_PREDICTOR, self.civilian_hybrid_url, str(self.civilian_hybrid_key)
            ),
            request_timeout=self.request_timeout,
        )


def get_settings() -> Settings:
    """Create and return application settings."""
    return Settings()
