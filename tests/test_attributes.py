import pytest

from crowd_guard.attributes import ProportionHeuristic
from crowd_guard.config import AttributeConfig
from crowd_guard.identity import Box


@pytest.fixture
def heuristic():
    return ProportionHeuristic()


def test_tall_off_center_box_scores_positive(heuristic):
    box = Box(5, 0, 50, 150)
    # +0.3 tall, +0.06 perturbation, -0.075 size
    assert heuristic.score(box) == pytest.approx(0.285)
    assessment = heuristic.classify(box)
    assert assessment.label == "female-analog"
    assert assessment.proportions.aspect_ratio == 3.0
    assert assessment.proportions.area == 7500


def test_wide_centered_box_scores_negative(heuristic):
    box = Box(350, 200, 100, 150)
    # -0.3 wide, -0.2 near center, 0 perturbation, -0.15 size
    assert heuristic.score(box) == pytest.approx(-0.65)
    assert heuristic.classify(box).label == "male-analog"


def test_mid_aspect_ratio_adds_no_shape_term(heuristic):
    box = Box(10, 0, 100, 220)
    assert heuristic.score(box) == pytest.approx(-0.08 - 0.22)


def test_size_term_is_capped(heuristic):
    box = Box(0, 0, 400, 1200)
    assert heuristic.score(box) == pytest.approx(0.3 - 0.2 - 0.4)


def test_zero_score_is_negative_label():
    cfg = AttributeConfig(
        tall_weight=0.0, wide_weight=0.0, center_weight=0.0, perturbation_weight=0.0, size_weight=0.0
    )
    assert ProportionHeuristic(cfg).classify(Box(0, 0, 10, 10)).label == cfg.negative_label


def test_classification_is_reproducible(heuristic):
    box = Box(123.4, 56.7, 80, 190)
    assert heuristic.classify(box) == heuristic.classify(box)


def test_weights_are_overridable():
    cfg = AttributeConfig(tall_weight=5.0)
    assert ProportionHeuristic(cfg).classify(Box(0, 0, 400, 1200)).label == cfg.positive_label
