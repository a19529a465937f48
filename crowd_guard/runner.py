"""Video pipeline around the tracking engine.

Reads frames from a camera or file, runs an engine cycle per frame, keeps the
display state, emits events and optionally draws an overlay window.
"""
import argparse
import threading
from typing import Callable, Optional

import cv2
import numpy as np
from loguru import logger

from .config import PipelineConfig
from .detection import Detector
from .display import DisplayState
from .engine import Engine, Skip
from .events import EventSink, activity_event, alert_event

# BGR
COLORS = {
    "female-analog": (119, 39, 219),
    "male-analog": (235, 99, 37),
}
ALERT_COLOR = (50, 50, 255)


def open_video_source(source: str | int) -> cv2.VideoCapture:
    cap = cv2.VideoCapture(source)
    if not cap.isOpened():
        raise RuntimeError(f"Cannot open video source: {source}")
    logger.info(f"Opened video source {source}")
    return cap


class Pipeline:
    def __init__(
        self,
        cfg: PipelineConfig,
        detector: Optional[Callable] = None,
        frame_callback: Optional[Callable[[np.ndarray, dict], None]] = None,
        event_callback: Optional[Callable[[list[dict]], None]] = None,
    ):
        self.cfg = cfg
        # DetectorUnavailable propagates: the pipeline cannot run without a model
        self.detector = detector or Detector(cfg.detection)
        self.engine = Engine(self.detector, cfg.engine)
        self.display = DisplayState(cfg.display)
        self.events = EventSink(cfg.events)
        self.frame_callback = frame_callback
        self.event_callback = event_callback
        self.render_enabled: bool = True
        self._stop = threading.Event()
        self.cap: Optional[cv2.VideoCapture] = None
        logger.info(f"Pipeline initialized for camera {cfg.events.camera_id}")

    def process_frame(self, frame: np.ndarray) -> dict:
        was_alert = self.display.alert
        result = self.engine.run_cycle(frame)
        activity = self.display.update(result)

        events = []
        if not isinstance(result, Skip) and result.alert and not was_alert:
            events.append(alert_event(result))
        if activity is not None:
            events.append(activity_event(activity))
        if events:
            self.events.emit(events)
            if self.event_callback:
                self.event_callback(events)

        stats = self.display.stats()
        self._render(frame, stats)
        if self.frame_callback:
            self.frame_callback(frame, stats)
        return stats

    def _render(self, frame: np.ndarray, stats: dict) -> None:
        result = self.display.last_result
        if result is not None:
            centers = {}
            alerted = {key for pair in result.alert_pairs for key in pair}
            for record in result.identities:
                x1, y1, x2, y2 = map(int, record.box.to_xyxy())
                color = ALERT_COLOR if record.key in alerted else COLORS.get(record.label, (200, 200, 200))
                cv2.rectangle(frame, (x1, y1), (x2, y2), color, 2)
                cv2.putText(frame, record.label, (x1 + 5, y1 - 5), cv2.FONT_HERSHEY_SIMPLEX, 0.5, (255, 255, 255), 1)
                centers[record.key] = tuple(map(int, record.box.center))
            for a, b in result.alert_pairs:
                cv2.line(frame, centers[a], centers[b], ALERT_COLOR, 3)

        counts = " | ".join(f"{k}: {v}" for k, v in stats["attribute_counts"].items())
        cv2.putText(frame, f"People: {stats['count']} | {counts}", (10, 30),
                    cv2.FONT_HERSHEY_SIMPLEX, 0.6, (255, 255, 255), 2)
        if stats["alert"]:
            cv2.putText(frame, "POSSIBLE FIGHT DETECTED", (10, 60), cv2.FONT_HERSHEY_SIMPLEX, 0.8, ALERT_COLOR, 2)

        if self.render_enabled:
            try:
                cv2.imshow(f"CrowdGuard - {self.cfg.events.camera_id}", frame)
                if cv2.waitKey(1) & 0xFF == ord("q"):
                    self.stop()
            except cv2.error as e:
                logger.warning(f"Disabling rendering due to OpenCV GUI error: {e}")
                self.render_enabled = False

    def stop(self) -> None:
        self._stop.set()

    def run(self) -> None:
        """Run the pipeline until the source ends, 'q' is pressed or stop() is called."""
        self.cap = open_video_source(self.cfg.video_source)
        logger.info("Starting pipeline. Press 'q' to exit.")
        try:
            while not self._stop.is_set():
                ok, frame = self.cap.read()
                if not ok or frame is None:
                    break
                self.process_frame(frame)
        except KeyboardInterrupt:
            logger.info("Interrupted by user")
        finally:
            self.cap.release()
            if self.render_enabled:
                try:
                    cv2.destroyAllWindows()
                except cv2.error as e:
                    logger.warning(f"cv2.destroyAllWindows failed: {e}")
            logger.info(f"Final stats: {self.display.stats()}, tracked identities: {len(self.engine.tracks)}")


def parse_args(argv=None):
    parser = argparse.ArgumentParser(description="Person tracking with heuristic altercation alerts")
    parser.add_argument("--source", type=str, default="0", help="Video source (index or path)")
    parser.add_argument("--camera-id", type=str, default="CAM_01", help="Camera identifier")
    parser.add_argument("--model", type=str, default=None, help="YOLO checkpoint path")
    parser.add_argument("--conf", type=float, default=None, help="Detection confidence override")
    parser.add_argument("--interval-ms", type=float, default=None, help="Minimum milliseconds between cycles")
    parser.add_argument("--scale", type=float, default=None, help="Frame downscale factor before detection")
    parser.add_argument("--device", type=str, default=None, help="cuda | mps | cpu")
    parser.add_argument("--no-render", action="store_true", help="Disable the OpenCV window")
    return parser.parse_args(argv)


def build_config(args) -> PipelineConfig:
    source: str | int = int(args.source) if args.source.isdigit() else args.source
    cfg = PipelineConfig(video_source=source)
    cfg.events.camera_id = args.camera_id
    if args.model is not None:
        cfg.detection.model_path = args.model
    if args.conf is not None:
        cfg.detection.conf_threshold = args.conf
    if args.interval_ms is not None:
        cfg.engine.scheduler.min_interval_s = args.interval_ms / 1000.0
    if args.scale is not None:
        cfg.detection.input_scale = args.scale
    if args.device is not None:
        cfg.detection.device = args.device
    return cfg


def main(argv=None):
    args = parse_args(argv)
    pipeline = Pipeline(build_config(args))
    pipeline.render_enabled = not args.no_render
    pipeline.run()


if __name__ == "__main__":
    main()
