from crowd_guard.attributes import Assessment, Proportions
from crowd_guard.config import TrackingConfig
from crowd_guard.tracking import TrackRegistry


def assessment(label="male-analog"):
    return Assessment(label=label, score=-0.1, proportions=Proportions(aspect_ratio=2.0, area=100.0))


def test_admit_keeps_first_label():
    registry = TrackRegistry()
    registry.admit("a", assessment("female-analog"))
    track = registry.admit("a", assessment("male-analog"))
    assert track.label == "female-analog"
    assert len(registry) == 1


def test_age_resets_observed_and_increments_absent():
    registry = TrackRegistry()
    registry.admit("a", assessment())
    registry.admit("b", assessment())
    registry.age(["a", "b"])
    registry.age(["a"])
    registry.age(["a"])
    assert registry.get("a").absence_count == 0
    assert registry.get("b").absence_count == 2

    registry.age(["b"])
    assert registry.get("b").absence_count == 0
    assert registry.get("a").absence_count == 1


def test_absent_fifty_cycles_is_retained():
    registry = TrackRegistry()
    registry.admit("a", assessment())
    registry.age(["a"])
    for _ in range(50):
        assert registry.age([]) == []
    assert "a" in registry
    assert registry.get("a").absence_count == 50


def test_absent_fifty_one_cycles_is_evicted():
    registry = TrackRegistry()
    registry.admit("a", assessment())
    registry.age(["a"])
    for _ in range(50):
        registry.age([])
    assert registry.age([]) == ["a"]
    assert "a" not in registry
    assert registry.get("a") is None


def test_readmission_after_eviction_can_change_label():
    registry = TrackRegistry(TrackingConfig(eviction_threshold=1))
    registry.admit("a", assessment("female-analog"))
    registry.age([])
    registry.age([])
    assert "a" not in registry
    assert registry.admit("a", assessment("male-analog")).label == "male-analog"


def test_labels_and_clear():
    registry = TrackRegistry()
    registry.admit("a", assessment("female-analog"))
    registry.admit("b", assessment("male-analog"))
    assert registry.labels() == {"a": "female-analog", "b": "male-analog"}
    registry.clear()
    assert len(registry) == 0
