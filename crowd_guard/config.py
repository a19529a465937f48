from dataclasses import dataclass, field
from pathlib import Path


@dataclass
class DetectionConfig:
    # Any ultralytics checkpoint: "yolo11n.pt" for speed, "yolo11x.pt" for accuracy
    model_path: str = "yolo11n.pt"

    conf_threshold: float = 0.35
    iou_threshold: float = 0.45
    imgsz: int = 640

    # Frames are shrunk by this factor before inference, boxes scaled back up
    input_scale: float = 1.0

    device: str = "cuda"  # fallback handled at runtime
    fallback_device: str = "cpu"


@dataclass
class SchedulerConfig:
    min_interval_s: float = 0.2  # detection-interval floor


@dataclass
class IdentityConfig:
    person_label: str = "person"
    position_grid: float = 50.0
    size_grid: float = 20.0


@dataclass
class AttributeConfig:
    """Weights for the proportion heuristic.

    The heuristic is arbitrary and reproducible. It has no demographic grounding.
    """
    positive_label: str = "female-analog"
    negative_label: str = "male-analog"

    tall_aspect_ratio: float = 2.5
    tall_weight: float = 0.3
    wide_aspect_ratio: float = 2.0
    wide_weight: float = 0.3

    reference_center: tuple[float, float] = (400.0, 300.0)
    center_radius: float = 200.0
    center_weight: float = 0.2

    perturbation_multiplier: float = 13.0
    perturbation_modulus: float = 100.0
    perturbation_weight: float = 0.4

    reference_area: float = 40000.0
    size_weight: float = 0.4


@dataclass
class TrackingConfig:
    eviction_threshold: int = 50  # cycles absent before a track is dropped


@dataclass
class InteractionConfig:
    proximity_multiplier: float = 1.5
    rapid_movement_px: float = 20.0


@dataclass
class EngineConfig:
    scheduler: SchedulerConfig = field(default_factory=SchedulerConfig)
    identity: IdentityConfig = field(default_factory=IdentityConfig)
    attributes: AttributeConfig = field(default_factory=AttributeConfig)
    tracking: TrackingConfig = field(default_factory=TrackingConfig)
    interaction: InteractionConfig = field(default_factory=InteractionConfig)


@dataclass
class DisplayConfig:
    alert_hold_s: float = 10.0  # keep the alert banner up after the last true reading
    activity_log_size: int = 5


@dataclass
class EventConfig:
    camera_id: str = "CAM_01"
    log_dir: Path = Path("logs")
    enable_file_logging: bool = True


@dataclass
class PipelineConfig:
    video_source: str | int = 0  # default webcam
    engine: EngineConfig = field(default_factory=EngineConfig)
    detection: DetectionConfig = field(default_factory=DetectionConfig)
    display: DisplayConfig = field(default_factory=DisplayConfig)
    events: EventConfig = field(default_factory=EventConfig)


def select_device(requested: str) -> str:
    """Pick device string depending on availability.

    Supports:
    - cuda: NVIDIA GPU (Linux/Windows)
    - mps: Apple Silicon GPU (macOS M1/M2/M3/M4)
    - cpu: Fallback for all platforms
    """
    try:
        import torch

        if requested == "cuda" and torch.cuda.is_available():
            return "cuda"
        if requested in ("cuda", "mps") and torch.backends.mps.is_available():
            return "mps"
    except Exception:
        return "cpu"
    return "cpu"
