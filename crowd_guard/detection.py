"""YOLO person detector adapter.

Wraps an ultralytics model and returns detections in the loose entry format
the engine consumes: ``{"label", "score", "box": {"xmin", "ymin", "xmax", "ymax"}}``
in full-resolution frame coordinates.
"""
from typing import List

import cv2
import numpy as np
from loguru import logger
from ultralytics import YOLO

from .config import DetectionConfig, select_device
from .errors import DetectorUnavailable


class Detector:
    """Callable detector: ``detector(frame) -> list[dict]``.

    Initialization is tried on the preferred device first and once more on
    the fallback device. If both fail the detector is unavailable.
    """

    def __init__(self, cfg: DetectionConfig):
        self.cfg = cfg
        self.model, self.device = self._load()
        logger.info(f"Detection threshold: {cfg.conf_threshold}, input scale: {cfg.input_scale}")

    def _load(self):
        preferred = select_device(self.cfg.device)
        try:
            return self._load_on(preferred), preferred
        except Exception as e:
            logger.warning(f"Loading {self.cfg.model_path} on {preferred} failed ({e}), falling back to {self.cfg.fallback_device}")

        try:
            return self._load_on(self.cfg.fallback_device), self.cfg.fallback_device
        except Exception as e:
            logger.error(f"Fallback load of {self.cfg.model_path} failed: {e}")
            raise DetectorUnavailable(f"Could not load {self.cfg.model_path}") from e

    def _load_on(self, device: str):
        logger.info(f"Loading YOLO model {self.cfg.model_path} on {device}")
        model = YOLO(self.cfg.model_path)
        model.to(device)
        return model

    def __call__(self, frame: np.ndarray) -> List[dict]:
        scale = self.cfg.input_scale
        if scale != 1.0:
            frame = cv2.resize(frame, None, fx=scale, fy=scale, interpolation=cv2.INTER_AREA)

        results = self.model.predict(
            frame,
            conf=self.cfg.conf_threshold,
            iou=self.cfg.iou_threshold,
            device=self.device,
            verbose=False,
            imgsz=self.cfg.imgsz,
        )[0]

        if len(results.boxes) == 0:
            return []

        boxes = results.boxes.xyxy.cpu().numpy() / scale
        scores = results.boxes.conf.cpu().numpy()
        classes = results.boxes.cls.cpu().numpy().astype(int)
        names = self.model.names

        detections = []
        for (x1, y1, x2, y2), score, cls in zip(boxes, scores, classes):
            detections.append({
                "label": names[int(cls)],
                "score": float(score),
                "box": {"xmin": float(x1), "ymin": float(y1), "xmax": float(x2), "ymax": float(y2)},
            })
        return detections
