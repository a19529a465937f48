"""Identity resolution from raw detector output.

An identity is a pure function of the current frame's geometry: the box
position is snapped to a coarse grid and the size to a finer one, and the
snapped values are joined into a string key. There is no frame-to-frame
association, so a subject crossing a grid boundary gets a new key.
"""
from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Any, Iterable, List, Mapping

import numpy as np
from loguru import logger

from .config import IdentityConfig
from .errors import MalformedDetection


@dataclass(frozen=True)
class Box:
    """Axis-aligned box in full-resolution pixel coordinates, top-left anchored."""
    x: float
    y: float
    width: float
    height: float

    @property
    def center(self) -> tuple[float, float]:
        return self.x + self.width / 2, self.y + self.height / 2

    @property
    def area(self) -> float:
        return self.width * self.height

    @property
    def aspect_ratio(self) -> float:
        return self.height / self.width if self.width else float("inf")

    def to_xyxy(self) -> tuple[float, float, float, float]:
        return self.x, self.y, self.x + self.width, self.y + self.height

    def to_list(self) -> list[float]:
        return [self.x, self.y, self.width, self.height]


@dataclass(frozen=True)
class ResolvedDetection:
    key: str
    box: Box
    label: str
    score: float


def _number(value: Any) -> float:
    try:
        number = float(value)
    except (TypeError, ValueError) as e:
        raise MalformedDetection(f"Non-numeric box coordinate: {value!r}") from e
    if not math.isfinite(number):
        raise MalformedDetection(f"Non-finite box coordinate: {value!r}")
    return number


def _from_corners(x1: Any, y1: Any, x2: Any, y2: Any) -> Box:
    x1, y1, x2, y2 = (_number(v) for v in (x1, y1, x2, y2))
    return Box(x=x1, y=y1, width=x2 - x1, height=y2 - y1)


def parse_box(raw: Any) -> Box:
    """Convert any accepted box encoding into a canonical :class:`Box`.

    Accepted encodings:
    - sequence ``[x, y, width, height]`` (list, tuple or numpy array)
    - mapping with ``x, y, width, height``
    - mapping with corners ``xmin, ymin, xmax, ymax``
    - mapping with corners ``x1, y1, x2, y2``
    """
    if isinstance(raw, np.ndarray):
        raw = raw.tolist()

    if isinstance(raw, Mapping):
        if all(k in raw for k in ("xmin", "ymin", "xmax", "ymax")):
            box = _from_corners(raw["xmin"], raw["ymin"], raw["xmax"], raw["ymax"])
        elif all(k in raw for k in ("x1", "y1", "x2", "y2")):
            box = _from_corners(raw["x1"], raw["y1"], raw["x2"], raw["y2"])
        elif all(k in raw for k in ("x", "y", "width", "height")):
            box = Box(*(_number(raw[k]) for k in ("x", "y", "width", "height")))
        else:
            raise MalformedDetection(f"Unrecognized box keys: {sorted(map(str, raw))}")
    elif isinstance(raw, (list, tuple)):
        if len(raw) != 4:
            raise MalformedDetection(f"Expected 4 box values, got {len(raw)}")
        box = Box(*(_number(v) for v in raw))
    else:
        raise MalformedDetection(f"Unsupported box type: {type(raw).__name__}")

    if box.width <= 0 or box.height <= 0:
        raise MalformedDetection(f"Degenerate box: {box}")
    return box


def extract_people(predictions: Any, label: str = "person") -> List[Mapping]:
    """Pick the entries labelled ``label`` out of a detector response.

    The response may be a bare list of entries or a mapping that wraps the
    list under ``results`` or ``objects``. Other shapes yield nothing.
    """
    entries: Iterable = ()
    if isinstance(predictions, (list, tuple)):
        entries = predictions
    elif isinstance(predictions, Mapping):
        for wrapper in ("results", "objects"):
            if isinstance(predictions.get(wrapper), (list, tuple)):
                entries = predictions[wrapper]
                break

    return [e for e in entries if isinstance(e, Mapping) and e.get("label") == label]


def _snap(value: float, grid: float) -> float:
    # Half-up rounding keeps keys stable regardless of banker's rounding
    return math.floor(value / grid + 0.5) * grid


def _fmt(value: float) -> str:
    return str(int(value)) if float(value).is_integer() else repr(value)


class IdentityResolver:
    def __init__(self, cfg: IdentityConfig | None = None):
        self.cfg = cfg or IdentityConfig()

    def identity_key(self, box: Box) -> str:
        qx = _snap(box.x, self.cfg.position_grid)
        qy = _snap(box.y, self.cfg.position_grid)
        qw = _snap(box.width, self.cfg.size_grid)
        qh = _snap(box.height, self.cfg.size_grid)
        return f"{self.cfg.person_label}_{_fmt(qx)}_{_fmt(qy)}_{_fmt(qw)}_{_fmt(qh)}"

    @staticmethod
    def _score(entry: Mapping) -> float:
        try:
            return _number(entry.get("score", 0.0))
        except MalformedDetection as e:
            logger.debug(f"Unusable detection score, using 0.0: {e}")
            return 0.0

    def resolve(self, entries: Iterable[Mapping]) -> List[ResolvedDetection]:
        """Tag each entry with its identity key, skipping malformed ones."""
        resolved: List[ResolvedDetection] = []
        for entry in entries:
            try:
                if "box" not in entry:
                    raise MalformedDetection("Detection has no box")
                box = parse_box(entry["box"])
            except MalformedDetection as e:
                logger.debug(f"Skipping malformed detection: {e}")
                continue
            score = self._score(entry)
            resolved.append(
                ResolvedDetection(
                    key=self.identity_key(box),
                    box=box,
                    label=str(entry.get("label", self.cfg.person_label)),
                    score=score,
                )
            )
        return resolved
