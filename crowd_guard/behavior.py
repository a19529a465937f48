"""Pairwise interaction analysis (possible altercations).

Two identities form an alert pair when they stand closer than a multiple of
their average width and at least one of them moved fast since the previous
cycle. On the very first evaluated cycle there is no motion history, so
proximity alone is enough.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from itertools import combinations
from typing import Dict, List, Optional, Tuple

import numpy as np
from loguru import logger

from .config import InteractionConfig
from .identity import Box


def distance(p1: tuple[float, float], p2: tuple[float, float]) -> float:
    """Euclidean distance between two points."""
    return float(np.sqrt((p1[0] - p2[0]) ** 2 + (p1[1] - p2[1]) ** 2))


@dataclass(frozen=True)
class Position:
    box: Box
    center: tuple[float, float]

    @classmethod
    def from_box(cls, box: Box) -> "Position":
        return cls(box=box, center=box.center)


PositionSnapshot = Dict[str, Position]


@dataclass
class InteractionResult:
    alert: bool = False
    pairs: List[Tuple[str, str]] = field(default_factory=list)


class InteractionDetector:
    """Reports this cycle's alert state only; it keeps one step of history."""

    def __init__(self, cfg: InteractionConfig | None = None):
        self.cfg = cfg or InteractionConfig()
        self._previous: Optional[PositionSnapshot] = None

    @property
    def previous(self) -> Optional[PositionSnapshot]:
        return self._previous

    def _moved_fast(self, key: str, current: Position) -> bool:
        before = self._previous.get(key) if self._previous is not None else None
        if before is None:
            return False
        return distance(current.center, before.center) > self.cfg.rapid_movement_px

    def evaluate(self, current: PositionSnapshot) -> InteractionResult:
        bootstrap = self._previous is None
        result = InteractionResult()

        for key_a, key_b in combinations(current, 2):
            a, b = current[key_a], current[key_b]
            gap = distance(a.center, b.center)
            threshold = (a.box.width + b.box.width) / 2 * self.cfg.proximity_multiplier
            if gap >= threshold:
                continue
            if bootstrap or self._moved_fast(key_a, a) or self._moved_fast(key_b, b):
                result.pairs.append((key_a, key_b))

        result.alert = bool(result.pairs)
        if result.alert:
            logger.debug(f"Interaction alert for pairs: {result.pairs}")

        self._previous = dict(current)
        return result

    def reset(self) -> None:
        self._previous = None
