"""Multi-camera host.

Runs one pipeline per camera in its own thread and keeps, per camera, a
snapshot a frontend can poll: the last cycle payload, the held alert state and
the recent entry/exit activity. Cross-camera totals are summed from those
snapshots.
"""
from __future__ import annotations

import threading
from dataclasses import dataclass, field
from datetime import datetime
from typing import Callable, Dict, List, Optional

from loguru import logger

from .config import PipelineConfig
from .runner import Pipeline

AlertListener = Callable[[str, List[dict]], None]


@dataclass(frozen=True)
class CameraSpec:
    camera_id: str
    source: str | int
    device: str = "cuda"
    min_interval_s: float = 0.2
    input_scale: float = 1.0


@dataclass
class CameraSnapshot:
    camera_id: str
    count: int = 0
    attribute_counts: Dict[str, int] = field(default_factory=dict)
    alert: bool = False  # held alert, not the instantaneous reading
    last_cycle: Optional[dict] = None
    activities: List[dict] = field(default_factory=list)
    updated_at: Optional[datetime] = None


class CameraHub:
    """Owns the per-camera pipelines and the snapshots they publish."""

    def __init__(self, detector_factory: Optional[Callable[[PipelineConfig], Callable]] = None):
        self._detector_factory = detector_factory
        self._pipelines: Dict[str, Pipeline] = {}
        self._workers: Dict[str, threading.Thread] = {}
        self._snapshots: Dict[str, CameraSnapshot] = {}
        self._listeners: List[AlertListener] = []
        self._lock = threading.Lock()

    def subscribe(self, listener: AlertListener) -> None:
        """Receive every event batch as (camera_id, events)."""
        self._listeners.append(listener)

    def _publish(self, camera_id: str, pipeline: Pipeline) -> None:
        display = pipeline.display
        last = display.last_result
        snapshot = CameraSnapshot(
            camera_id=camera_id,
            count=display.count,
            attribute_counts=dict(display.attribute_counts),
            alert=display.alert,
            last_cycle=last.to_dict() if last is not None else None,
            activities=[
                {"kind": a.kind, "time": a.time.isoformat(), "count": a.count,
                 "attribute_counts": dict(a.attribute_counts)}
                for a in display.recent_activities()
            ],
            updated_at=datetime.now(),
        )
        with self._lock:
            self._snapshots[camera_id] = snapshot

    def _dispatch(self, camera_id: str, events: List[dict]) -> None:
        for listener in list(self._listeners):
            try:
                listener(camera_id, events)
            except Exception as e:
                logger.warning(f"Event listener failed for {camera_id}: {e}")

    def build_pipeline(self, spec: CameraSpec) -> Pipeline:
        cfg = PipelineConfig(video_source=spec.source)
        cfg.events.camera_id = spec.camera_id
        cfg.detection.device = spec.device
        cfg.detection.input_scale = spec.input_scale
        cfg.engine.scheduler.min_interval_s = spec.min_interval_s

        detector = self._detector_factory(cfg) if self._detector_factory else None
        pipeline = Pipeline(
            cfg,
            detector=detector,
            frame_callback=lambda frame, stats: self._publish(spec.camera_id, pipeline),
            event_callback=lambda events: self._dispatch(spec.camera_id, events),
        )
        pipeline.render_enabled = False  # headless; frontends poll snapshots
        with self._lock:
            self._snapshots[spec.camera_id] = CameraSnapshot(camera_id=spec.camera_id)
        return pipeline

    def add_camera(self, spec: CameraSpec) -> None:
        if spec.camera_id in self._pipelines:
            raise ValueError(f"Camera already running: {spec.camera_id}")

        pipeline = self.build_pipeline(spec)
        worker = threading.Thread(target=pipeline.run, name=f"camera-{spec.camera_id}", daemon=True)
        self._pipelines[spec.camera_id] = pipeline
        self._workers[spec.camera_id] = worker
        worker.start()
        logger.info(f"Camera {spec.camera_id} added ({spec.source})")

    def remove_camera(self, camera_id: str, timeout: float = 5.0) -> None:
        pipeline = self._pipelines.pop(camera_id, None)
        if pipeline is None:
            return
        pipeline.stop()
        worker = self._workers.pop(camera_id, None)
        if worker is not None:
            worker.join(timeout=timeout)
        with self._lock:
            self._snapshots.pop(camera_id, None)
        logger.info(f"Camera {camera_id} removed")

    def shutdown(self) -> None:
        for camera_id in list(self._pipelines):
            self.remove_camera(camera_id)

    def reset_camera(self, camera_id: str) -> None:
        """Drop a camera's tracks and motion history, e.g. after the view moved."""
        pipeline = self._pipelines.get(camera_id)
        if pipeline is not None:
            pipeline.engine.reset()

    def cameras(self) -> List[str]:
        return list(self._pipelines)

    def snapshot(self, camera_id: str) -> Optional[CameraSnapshot]:
        with self._lock:
            return self._snapshots.get(camera_id)

    def alerting_cameras(self) -> List[str]:
        with self._lock:
            return [cid for cid, snap in self._snapshots.items() if snap.alert]

    def totals(self) -> dict:
        """People and per-attribute counts summed over every camera."""
        with self._lock:
            snapshots = list(self._snapshots.values())
        attribute_counts: Dict[str, int] = {}
        for snap in snapshots:
            for label, n in snap.attribute_counts.items():
                attribute_counts[label] = attribute_counts.get(label, 0) + n
        return {
            "cameras": len(snapshots),
            "count": sum(snap.count for snap in snapshots),
            "attribute_counts": attribute_counts,
            "alerting": [snap.camera_id for snap in snapshots if snap.alert],
        }
