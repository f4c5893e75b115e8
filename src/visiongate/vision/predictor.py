"""Batched calls to a Custom Vision style ``classify/url`` endpoint.

Architecture:
    one POST per image URL -> asyncio.TaskGroup -> list[ImagePrediction]

The join is all-or-nothing: the first failing request fails the batch
and cancels its siblings.
"""

from __future__ import annotations

import asyncio
import logging
from typing import TYPE_CHECKING, Any

import httpx

from visiongate.vision.aggregation import ImagePrediction, TagPrediction

if TYPE_CHECKING:
    from collections.abc import Sequence

    from visiongate.config import PredictorEndpoint

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT_SECONDS: float = 25.0


class PredictionError(Exception):
    """A call to the remote prediction API failed.

    ``details`` holds the remote error body when one was returned, otherwise
    a short description of the transport failure.
    """

    def __init__(self, message: str, details: Any = None) -> None:
        super().__init__(message)
        self.details = details if details is not None else message


def _response_details(response: httpx.Response) -> Any:
    try:
        return response.json()
    except ValueError:
        text = response.text.strip()
        return text or f"HTTP {response.status_code}"


def _parse_predictions(response: httpx.Response) -> tuple[TagPrediction, ...]:
    # A 2xx body without a predictions list (empty, not JSON, not an object) means no predictions.
    try:
        payload = response.json()
    except ValueError:
        return ()
    raw = payload.get("predictions") if isinstance(payload, dict) else None
    if not isinstance(raw, list):
        return ()
    return tuple(TagPrediction(tag_name=str(p["tagName"]), probability=float(p["probability"])) for p in raw)


async def predict_image(
    client: httpx.AsyncClient,
    image_url: str,
    endpoint: PredictorEndpoint,
    *,
    timeout: float = DEFAULT_TIMEOUT_SECONDS,
) -> ImagePrediction:
    """Classify a single image URL against ``endpoint``.

    ``timeout`` caps the whole request, body included.

    Raises:
        PredictionError: On transport errors, timeouts, non-2xx responses or
            prediction entries missing ``tagName``/``probability``.
    """
    try:
        async with asyncio.timeout(timeout):
            response = await client.post(
                endpoint.url,
                json={"Url": image_url},
                headers={
                    "Prediction-Key": endpoint.key,
                    "Content-Type": "application/json",
                },
                timeout=timeout,
            )
    except (TimeoutError, httpx.TimeoutException) as exc:
        raise PredictionError(f"{endpoint.name} timed out after {timeout}s for {image_url}") from exc
    except httpx.RequestError as exc:
        raise PredictionError(f"{endpoint.name} request failed for {image_url}: {exc!s}") from exc

    if response.is_error:
        raise PredictionError(
            f"{endpoint.name} returned HTTP {response.status_code} for {image_url}",
            details=_response_details(response),
        )

    try:
        predictions = _parse_predictions(response)
    except (ValueError, KeyError, TypeError) as exc:
        raise PredictionError(f"{endpoint.name} returned malformed predictions for {image_url}") from exc

    logger.debug("%s: %d predictions for %s", endpoint.name, len(predictions), image_url)
    return ImagePrediction(image_url=image_url, predictions=predictions)


async def predict_batch(
    client: httpx.AsyncClient,
    image_urls: Sequence[str],
    endpoint: PredictorEndpoint,
    *,
    timeout: float = DEFAULT_TIMEOUT_SECONDS,
) -> list[ImagePrediction]:
    """Classify every image URL concurrently, preserving input order.

    Raises:
        ValueError: If ``image_urls`` is empty.
        PredictionError: If any single request fails. The first failure
            cancels the requests still in flight.
    """
    if not image_urls:
        raise ValueError("image_urls must not be empty")

    logger.info("Calling %s for %d image(s)", endpoint.name, len(image_urls))
    try:
        async with asyncio.TaskGroup() as group:
            tasks = [
                group.create_task(predict_image(client, url, endpoint, timeout=timeout)) for url in image_urls
            ]
    except ExceptionGroup as failures:
        raise failures.exceptions[0]  # noqa: B904
    return [task.result() for task in tasks]
