import json

from crowd_guard.config import DisplayConfig, EventConfig
from crowd_guard.display import DisplayState
from crowd_guard.engine import SKIPPED, CycleResult
from crowd_guard.events import EventSink, activity_event, alert_event

from conftest import FakeClock


def reading(count, alert=False, pairs=()):
    return CycleResult(
        count=count,
        attribute_counts={"female-analog": count, "male-analog": 0},
        alert=alert,
        alert_pairs=list(pairs),
    )


def test_alert_is_held_after_last_true_reading():
    clock = FakeClock()
    display = DisplayState(DisplayConfig(alert_hold_s=10.0), clock=clock)
    display.update(reading(2, alert=True))
    display.update(reading(2, alert=False))
    assert display.alert is True
    clock.advance(9.9)
    assert display.alert is True
    clock.advance(0.2)
    assert display.alert is False


def test_skipped_cycle_keeps_previous_values():
    display = DisplayState(clock=FakeClock())
    display.update(reading(3))
    assert display.update(SKIPPED) is None
    assert display.count == 3
    assert display.stats()["attribute_counts"] == {"female-analog": 3, "male-analog": 0}


def test_activity_log_records_entries_and_exits():
    display = DisplayState(DisplayConfig(activity_log_size=2), clock=FakeClock())
    assert display.update(reading(0)) is None
    assert display.update(reading(2)).kind == "entry"
    assert display.update(reading(2)) is None
    assert display.update(reading(1)).kind == "exit"
    display.update(reading(4))
    assert [a.count for a in display.recent_activities()] == [4, 1]


def test_event_sink_appends_json_lines(tmp_path):
    sink = EventSink(EventConfig(camera_id="CAM_X", log_dir=tmp_path))
    display = DisplayState(clock=FakeClock())
    result = reading(2, alert=True, pairs=[("a", "b")])
    sink.emit([alert_event(result), activity_event(display.update(result))])

    lines = (tmp_path / "events.jsonl").read_text().splitlines()
    records = [json.loads(line) for line in lines]
    assert [r["type"] for r in records] == ["Possible Altercation", "Entry"]
    assert records[0]["pairs"] == [["a", "b"]]
    assert all(r["camera_id"] == "CAM_X" for r in records)


def test_event_sink_without_file_logging(tmp_path):
    sink = EventSink(EventConfig(log_dir=tmp_path / "unused", enable_file_logging=False))
    sink.emit([{"type": "Exit", "count": 0}])
    assert sink.path is None
    assert not (tmp_path / "unused").exists()
