"""Prediction value types and the pure aggregation steps over them.

Averages are kept as an ordered association list (first-seen label order)
so that best-label tie-breaking does not depend on mapping internals.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Iterable, Sequence


@dataclass(frozen=True)
class TagPrediction:
    """One (tag, probability) pair returned by the remote classifier."""

    tag_name: str
    probability: float


@dataclass(frozen=True)
class ImagePrediction:
    """All predictions returned for a single image URL, in response order."""

    image_url: str
    predictions: tuple[TagPrediction, ...] = ()


@dataclass(frozen=True)
class TagAverages:
    """Mean probability per tag across a batch, in first-seen tag order."""

    items: tuple[tuple[str, float], ...] = ()

    def probability_of(self, label: str, default: float = 0.0) -> float:
        """Return the averaged probability for ``label``, or ``default`` if absent."""
        for name, probability in self.items:
            if name == label:
                return probability
        return default

    def as_dict(self) -> dict[str, float]:
        return dict(self.items)

    def __len__(self) -> int:
        return len(self.items)


@dataclass(frozen=True)
class LabelScore:
    """A selected label and its probability. ``label`` is None when nothing was selectable."""

    label: str | None
    probability: float


NO_LABEL = LabelScore(label=None, probability=-1.0)


def average_by_tag(images: Sequence[ImagePrediction]) -> TagAverages:
    """Average each tag's probability over every image in the batch.

    The divisor is the number of images, so an image that did not report a
    tag contributes 0 for it.
    """
    sums: dict[str, float] = {}
    count = 0
    for image in images:
        count += 1
        for prediction in image.predictions:
            sums[prediction.tag_name] = sums.get(prediction.tag_name, 0.0) + prediction.probability

    divisor = count or 1
    return TagAverages(items=tuple((tag, total / divisor) for tag, total in sums.items()))


def best_label(averages: TagAverages | Iterable[tuple[str, float]]) -> LabelScore:
    """Return the label with the strictly greatest probability.

    Ties keep the earliest label. An empty input yields ``NO_LABEL``.
    """
    pairs = averages.items if isinstance(averages, TagAverages) else averages
    best = NO_LABEL
    for label, probability in pairs:
        if probability > best.probability:
            best = LabelScore(label=label, probability=probability)
    return best
