"""Error taxonomy for the tracking engine and its detector adapter."""


class CrowdGuardError(Exception):
    """Base class for all package errors."""


class DetectorUnavailable(CrowdGuardError):
    """The external detector could not be initialized, even on the fallback path."""


class DetectionCycleFailed(CrowdGuardError):
    """A single detector invocation failed. Recovered by the engine every time."""

    def __init__(self, cause: BaseException):
        super().__init__(f"Detector call failed: {cause!r}")
        self.cause = cause


class MalformedDetection(CrowdGuardError):
    """A detection entry carries no recognizable box encoding."""
