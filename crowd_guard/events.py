from __future__ import annotations

import json
from datetime import datetime
from pathlib import Path
from typing import Optional

from loguru import logger

from .config import EventConfig
from .display import Activity
from .engine import CycleResult


def alert_event(result: CycleResult) -> dict:
    return {
        "type": "Possible Altercation",
        "pairs": [list(p) for p in result.alert_pairs],
        "count": result.count,
    }


def activity_event(activity: Activity) -> dict:
    return {
        "type": "Entry" if activity.kind == "entry" else "Exit",
        "count": activity.count,
        "attribute_counts": dict(activity.attribute_counts),
    }


class EventSink:
    """Log events and, when enabled, append them to a JSON lines file."""

    def __init__(self, cfg: EventConfig):
        self.cfg = cfg
        self.path: Optional[Path] = None
        if cfg.enable_file_logging:
            cfg.log_dir.mkdir(parents=True, exist_ok=True)
            self.path = cfg.log_dir / "events.jsonl"

    def emit(self, events: list[dict]) -> None:
        for event in events:
            record = {"camera_id": self.cfg.camera_id, "ts": datetime.now().isoformat(), **event}
            if event.get("type") == "Possible Altercation":
                logger.warning(f"[{self.cfg.camera_id}] POSSIBLE ALTERCATION: {event.get('pairs')}")
            else:
                logger.info(f"[{self.cfg.camera_id}] {event.get('type')}: count={event.get('count')}")

            if self.path is not None:
                try:
                    with self.path.open("a", encoding="utf-8") as fh:
                        fh.write(json.dumps(record) + "\n")
                except OSError as e:
                    logger.warning(f"Event file write failed for {self.path}: {e}")
