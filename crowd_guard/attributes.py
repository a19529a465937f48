"""Attribute classification for newly seen identities.

The default strategy is a fixed proportion heuristic. It is reproducible for
a given box but carries no demographic meaning; swap in another
:class:`AttributeStrategy` to change it without touching tracking.
"""
from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Tuple

import numpy as np

from .config import AttributeConfig
from .identity import Box


@dataclass(frozen=True)
class Proportions:
    aspect_ratio: float
    area: float


@dataclass(frozen=True)
class Assessment:
    label: str
    score: float
    proportions: Proportions


class AttributeStrategy(ABC):
    """Scores a box once, on the first observation of its identity."""

    @property
    @abstractmethod
    def labels(self) -> Tuple[str, ...]:
        raise NotImplementedError

    @abstractmethod
    def classify(self, box: Box) -> Assessment:
        raise NotImplementedError


class ProportionHeuristic(AttributeStrategy):
    def __init__(self, cfg: AttributeConfig | None = None):
        self.cfg = cfg or AttributeConfig()

    @property
    def labels(self) -> Tuple[str, ...]:
        return self.cfg.positive_label, self.cfg.negative_label

    def score(self, box: Box) -> float:
        cfg = self.cfg
        aspect = box.aspect_ratio
        total = 0.0

        if aspect > cfg.tall_aspect_ratio:
            total += cfg.tall_weight
        elif aspect < cfg.wide_aspect_ratio:
            total -= cfg.wide_weight

        cx, cy = box.center
        rx, ry = cfg.reference_center
        if float(np.hypot(cx - rx, cy - ry)) < cfg.center_radius:
            total -= cfg.center_weight

        spatial = ((box.x * cfg.perturbation_multiplier) % cfg.perturbation_modulus) / cfg.perturbation_modulus
        total += (spatial - 0.5) * cfg.perturbation_weight

        total -= min(box.area / cfg.reference_area, 1.0) * cfg.size_weight
        return total

    def classify(self, box: Box) -> Assessment:
        total = self.score(box)
        label = self.cfg.positive_label if total > 0 else self.cfg.negative_label
        return Assessment(
            label=label,
            score=total,
            proportions=Proportions(aspect_ratio=box.aspect_ratio, area=box.area),
        )
