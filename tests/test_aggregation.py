"""Tests for tag averaging and best-label selection."""

from __future__ import annotations

import pytest

from visiongate.vision.aggregation import (
    NO_LABEL,
    ImagePrediction,
    LabelScore,
    TagAverages,
    TagPrediction,
    average_by_tag,
    best_label,
)


def _image(url: str, **tags: float) -> ImagePrediction:
    return ImagePrediction(
        image_url=url,
        predictions=tuple(TagPrediction(tag_name=name, probability=prob) for name, prob in tags.items()),
    )


class TestAverageByTag:
    def test_averages_over_all_images(self) -> None:
        averages = average_by_tag([_image("a.jpg", Tank=0.9, Car=0.1), _image("b.jpg", Tank=0.7, Car=0.3)])
        assert averages.probability_of("Tank") == pytest.approx(0.8)
        assert averages.probability_of("Car") == pytest.approx(0.2)

    def test_missing_label_counts_as_zero(self) -> None:
        averages = average_by_tag([_image("a.jpg", Tank=0.6), _image("b.jpg", Car=0.4), _image("c.jpg")])
        assert averages.probability_of("Tank") == pytest.approx(0.2)
        assert averages.probability_of("Car") == pytest.approx(0.4 / 3)

    def test_image_without_predictions_still_counts(self) -> None:
        averages = average_by_tag([_image("a.jpg", Tank=1.0), _image("b.jpg")])
        assert averages.probability_of("Tank") == pytest.approx(0.5)

    def test_labels_keep_first_seen_order(self) -> None:
        averages = average_by_tag([_image("a.jpg", B=0.1, A=0.2), _image("b.jpg", C=0.3, A=0.4)])
        assert [label for label, _ in averages.items] == ["B", "A", "C"]

    def test_empty_batch_gives_empty_averages(self) -> None:
        assert average_by_tag([]) == TagAverages()

    def test_is_idempotent(self) -> None:
        images = [_image("a.jpg", Model=0.9, **{"NOT Model": 0.1}), _image("b.jpg", Model=0.8)]
        assert average_by_tag(images) == average_by_tag(images)

    def test_unknown_label_uses_default(self) -> None:
        averages = average_by_tag([_image("a.jpg", Tank=0.5)])
        assert averages.probability_of("Plane") == 0.0
        assert averages.probability_of("Plane", default=-1.0) == -1.0

    def test_as_dict(self) -> None:
        averages = average_by_tag([_image("a.jpg", Tank=0.25, Car=0.75)])
        assert averages.as_dict() == {"Tank": 0.25, "Car": 0.75}


class TestBestLabel:
    def test_picks_maximum(self) -> None:
        averages = TagAverages(items=(("Car", 0.2), ("Tank", 0.7), ("Bus", 0.1)))
        assert best_label(averages) == LabelScore(label="Tank", probability=0.7)

    def test_tie_keeps_first_label(self) -> None:
        averages = TagAverages(items=(("Car", 0.5), ("Tank", 0.5)))
        assert best_label(averages).label == "Car"

    def test_empty_returns_sentinel(self) -> None:
        result = best_label(TagAverages())
        assert result is NO_LABEL
        assert result.label is None
        assert result.probability < 0.0

    def test_accepts_plain_pairs(self) -> None:
        assert best_label([("x", 0.1), ("y", 0.3)]) == LabelScore(label="y", probability=0.3)

    def test_zero_probability_label_is_selectable(self) -> None:
        assert best_label(TagAverages(items=(("Only", 0.0),))).label == "Only"
