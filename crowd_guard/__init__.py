"""
Person tracking and heuristic altercation alerts on top of a YOLO detector.

Modules:
- config: tunable parameters.
- errors: error taxonomy.
- identity: box parsing and grid-quantized identity keys.
- attributes: swappable attribute classification strategy.
- tracking: track lifecycle (absence counting and eviction).
- behavior: pairwise proximity/motion alerts.
- engine: throttled, serialized frame cycle.
- detection: YOLO detector adapter.
- display: host-side alert hold and activity log.
- events: event logging/output.
- runner: video pipeline orchestration and CLI.
- service: multi-camera service and frontend hooks.
"""
from .engine import SKIPPED, CycleResult, Engine

__all__ = [
    "config",
    "errors",
    "identity",
    "attributes",
    "tracking",
    "behavior",
    "engine",
    "detection",
    "display",
    "events",
    "runner",
    "service",
    "Engine",
    "CycleResult",
    "SKIPPED",
]
