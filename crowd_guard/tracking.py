from dataclasses import dataclass
from typing import Dict, Iterable, List, Optional

from loguru import logger

from .attributes import Assessment, Proportions
from .config import TrackingConfig


@dataclass
class Track:
    key: str
    label: str  # fixed at admission
    proportions: Proportions
    absence_count: int = 0  # cycles since last observed


class TrackRegistry:
    """Owns every Track and is the only place they are deleted."""

    def __init__(self, cfg: TrackingConfig | None = None):
        self.cfg = cfg or TrackingConfig()
        self._tracks: Dict[str, Track] = {}

    def __len__(self) -> int:
        return len(self._tracks)

    def __contains__(self, key: str) -> bool:
        return key in self._tracks

    def get(self, key: str) -> Optional[Track]:
        return self._tracks.get(key)

    def admit(self, key: str, assessment: Assessment) -> Track:
        """Create the Track for a new identity. Known identities keep their label."""
        track = self._tracks.get(key)
        if track is None:
            track = Track(key=key, label=assessment.label, proportions=assessment.proportions)
            self._tracks[key] = track
        return track

    def age(self, observed_keys: Iterable[str]) -> List[str]:
        """Advance absence counters by one cycle and evict stale tracks.

        Returns the evicted keys.
        """
        observed = set(observed_keys)
        evicted: List[str] = []
        for key, track in self._tracks.items():
            if key in observed:
                track.absence_count = 0
            else:
                track.absence_count += 1
                if track.absence_count > self.cfg.eviction_threshold:
                    evicted.append(key)

        for key in evicted:
            del self._tracks[key]
        if evicted:
            logger.debug(f"Evicted {len(evicted)} stale identities: {evicted}")
        return evicted

    def labels(self) -> Dict[str, str]:
        return {key: track.label for key, track in self._tracks.items()}

    def clear(self) -> None:
        self._tracks.clear()
