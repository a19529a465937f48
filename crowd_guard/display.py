"""Host-side display state.

The engine reports instantaneous readings only. This module turns them into
what a screen shows: counts that survive skipped cycles, an alert banner
that stays up for a while after the last positive reading, and a short
entry/exit activity log.
"""
from __future__ import annotations

import time
from collections import deque
from dataclasses import dataclass, field
from datetime import datetime
from typing import Callable, Deque, Dict, List, Optional, Union

from .config import DisplayConfig
from .engine import CycleResult, Skip


@dataclass
class Activity:
    kind: str  # "entry" | "exit"
    time: datetime
    count: int
    attribute_counts: Dict[str, int] = field(default_factory=dict)


class DisplayState:
    def __init__(self, cfg: DisplayConfig | None = None, clock: Callable[[], float] = time.monotonic):
        self.cfg = cfg or DisplayConfig()
        self._clock = clock
        self.count = 0
        self.attribute_counts: Dict[str, int] = {}
        self.last_result: Optional[CycleResult] = None
        self.activities: Deque[Activity] = deque(maxlen=self.cfg.activity_log_size)
        self._alert_until: Optional[float] = None

    @property
    def alert(self) -> bool:
        return self._alert_until is not None and self._clock() < self._alert_until

    def update(self, result: Union[CycleResult, Skip]) -> Optional[Activity]:
        """Fold one cycle result into the display. Returns a new activity, if any."""
        if isinstance(result, Skip):
            return None

        self.last_result = result
        if result.alert:
            self._alert_until = self._clock() + self.cfg.alert_hold_s

        activity = None
        previous = self.activities[0].count if self.activities else 0
        if result.count != previous:
            activity = Activity(
                kind="entry" if result.count > previous else "exit",
                time=datetime.now(),
                count=result.count,
                attribute_counts=dict(result.attribute_counts),
            )
            self.activities.appendleft(activity)

        self.count = result.count
        self.attribute_counts = dict(result.attribute_counts)
        return activity

    def recent_activities(self) -> List[Activity]:
        return list(self.activities)

    def stats(self) -> dict:
        return {
            "count": self.count,
            "attribute_counts": dict(self.attribute_counts),
            "alert": self.alert,
        }
