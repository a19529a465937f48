"""Frame scheduler: runs one detect -> resolve -> classify -> age -> evaluate cycle.

The engine owns every piece of cross-cycle state (tracks, position history,
throttle timestamp) so independent instances never share anything. At most
one cycle runs at a time; a call that arrives while a cycle is running, or
sooner than the configured interval after the last accepted one, returns
:data:`SKIPPED` without touching any state.
"""
from __future__ import annotations

import threading
import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Dict, List, Optional, Tuple, Union

from loguru import logger

from .attributes import AttributeStrategy, ProportionHeuristic
from .behavior import InteractionDetector, Position
from .config import EngineConfig
from .errors import DetectionCycleFailed
from .identity import Box, IdentityResolver, extract_people
from .tracking import TrackRegistry


class SchedulerState(Enum):
    IDLE = "idle"
    RUNNING = "running"


class Skip(Enum):
    SKIPPED = "skipped"

    def to_dict(self) -> dict:
        # Hosts read a negative count as "keep what is on screen"
        return {"count": -1, "attribute_counts": {}, "alert": False, "identities": [], "skipped": True}


SKIPPED = Skip.SKIPPED


@dataclass
class IdentityRecord:
    key: str
    box: Box
    label: str
    score: float

    def to_dict(self) -> dict:
        return {"id": self.key, "box": self.box.to_list(), "label": self.label, "score": self.score}


@dataclass
class CycleResult:
    count: int
    attribute_counts: Dict[str, int]
    alert: bool
    identities: List[IdentityRecord] = field(default_factory=list)
    alert_pairs: List[Tuple[str, str]] = field(default_factory=list)
    failed: bool = False  # detector call failed; counts are the neutral zero result

    @classmethod
    def neutral(cls, labels: Tuple[str, ...], failed: bool = False) -> "CycleResult":
        return cls(count=0, attribute_counts={label: 0 for label in labels}, alert=False, failed=failed)

    def to_dict(self) -> dict:
        return {
            "count": self.count,
            "attribute_counts": dict(self.attribute_counts),
            "alert": self.alert,
            "identities": [r.to_dict() for r in self.identities],
            "alert_pairs": [list(p) for p in self.alert_pairs],
            "failed": self.failed,
            "skipped": False,
        }


Detector = Callable[[Any], Any]


class Engine:
    """Tracking and heuristic classification engine for one video stream."""

    def __init__(
        self,
        detector: Detector,
        cfg: EngineConfig | None = None,
        classifier: AttributeStrategy | None = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.cfg = cfg or EngineConfig()
        self.detector = detector
        self.classifier = classifier or ProportionHeuristic(self.cfg.attributes)
        self.resolver = IdentityResolver(self.cfg.identity)
        self.tracks = TrackRegistry(self.cfg.tracking)
        self.interactions = InteractionDetector(self.cfg.interaction)
        self._clock = clock

        # Held for a whole cycle; try-acquire only, never waits
        self._lock = threading.Lock()
        self._state = SchedulerState.IDLE
        self._last_processed: Optional[float] = None

    @property
    def state(self) -> SchedulerState:
        return self._state

    def run_cycle(self, frame: Any) -> Union[CycleResult, Skip]:
        """Process one frame, or return :data:`SKIPPED` if busy or throttled."""
        now = self._clock()
        if not self._lock.acquire(blocking=False):
            return SKIPPED
        try:
            if (
                self._last_processed is not None
                and now - self._last_processed < self.cfg.scheduler.min_interval_s
            ):
                return SKIPPED
            self._last_processed = now
            self._state = SchedulerState.RUNNING
            return self._cycle(frame)
        finally:
            self._state = SchedulerState.IDLE
            self._lock.release()

    def _cycle(self, frame: Any) -> CycleResult:
        try:
            predictions = self.detector(frame)
            entries = extract_people(predictions, self.cfg.identity.person_label)
        except Exception as e:
            failure = DetectionCycleFailed(e)
            logger.warning(f"{failure}; returning neutral result")
            return CycleResult.neutral(self.classifier.labels, failed=True)

        resolved = self.resolver.resolve(entries)

        # Everything below mutates engine state and runs to completion
        counts = {label: 0 for label in self.classifier.labels}
        records: List[IdentityRecord] = []
        snapshot: Dict[str, Position] = {}
        for det in resolved:
            track = self.tracks.get(det.key)
            if track is None:
                track = self.tracks.admit(det.key, self.classifier.classify(det.box))
                logger.debug(f"New identity {det.key} labelled {track.label}")
            counts[track.label] = counts.get(track.label, 0) + 1
            records.append(IdentityRecord(key=det.key, box=det.box, label=track.label, score=det.score))
            snapshot[det.key] = Position.from_box(det.box)

        self.tracks.age(snapshot.keys())
        interaction = self.interactions.evaluate(snapshot)

        return CycleResult(
            count=len(records),
            attribute_counts=counts,
            alert=interaction.alert,
            identities=records,
            alert_pairs=interaction.pairs,
        )

    def reset(self) -> None:
        """Forget all tracks, position history and the throttle timestamp."""
        with self._lock:
            self.tracks.clear()
            self.interactions.reset()
            self._last_processed = None
        logger.info("Engine state reset")
