import numpy as np
import pytest

pytest.importorskip("ultralytics")

from crowd_guard.service import CameraHub, CameraSpec

from conftest import ScriptedDetector, person

FRAME = np.zeros((120, 160, 3), dtype=np.uint8)


@pytest.fixture
def hub(monkeypatch, tmp_path):
    monkeypatch.chdir(tmp_path)
    scripts = {
        "CAM_A": ScriptedDetector([person(0, 0, 100, 200), person(0, 0, 100, 220)]),
        "CAM_B": ScriptedDetector([person(500, 300, 60, 180)]),
    }
    return CameraHub(detector_factory=lambda cfg: scripts[cfg.events.camera_id])


def test_snapshot_carries_cycle_payload_and_activity(hub):
    received = []
    hub.subscribe(lambda camera_id, events: received.append((camera_id, [e["type"] for e in events])))

    pipeline = hub.build_pipeline(CameraSpec(camera_id="CAM_A", source=0, input_scale=0.5))
    assert pipeline.cfg.detection.input_scale == 0.5
    assert pipeline.render_enabled is False
    assert hub.snapshot("CAM_A").last_cycle is None

    pipeline.process_frame(FRAME)
    snap = hub.snapshot("CAM_A")
    assert snap.count == 2
    assert snap.alert is True
    assert snap.last_cycle["count"] == len(snap.last_cycle["identities"]) == 2
    assert len(snap.last_cycle["alert_pairs"]) == 1
    assert [a["kind"] for a in snap.activities] == ["entry"]
    assert received == [("CAM_A", ["Possible Altercation", "Entry"])]


def test_totals_sum_over_cameras(hub):
    for camera_id in ("CAM_A", "CAM_B"):
        hub.build_pipeline(CameraSpec(camera_id=camera_id, source=0)).process_frame(FRAME)

    totals = hub.totals()
    assert totals["cameras"] == 2
    assert totals["count"] == 3
    assert sum(totals["attribute_counts"].values()) == 3
    assert totals["alerting"] == ["CAM_A"]
    assert hub.alerting_cameras() == ["CAM_A"]


def test_failing_listener_does_not_break_pipeline(hub):
    def broken(camera_id, events):
        raise RuntimeError("listener down")

    hub.subscribe(broken)
    pipeline = hub.build_pipeline(CameraSpec(camera_id="CAM_A", source=0))
    pipeline.process_frame(FRAME)
    assert hub.snapshot("CAM_A").count == 2


def test_remove_unknown_camera_is_noop():
    hub = CameraHub()
    hub.remove_camera("missing")
    assert hub.cameras() == []
