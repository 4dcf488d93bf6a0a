"""
Typed models for the slip scanner.

Frames, classifier detections, verdicts, error kinds and the typed view of
the YAML configuration.
"""

from .frame import FrameData
from .detection import Detection, BoundingBox
from .verdict import SubjectIdentity, Verdict, UNKNOWN
from .errors import (
    ScanError,
    ModelNotReady,
    SourceUnavailable,
    InferenceFailure,
    ScanInProgress,
    NotificationError,
)
from .config import (
    Config,
    CameraConfig,
    ClassAllowList,
    ClassifierConfig,
    HeuristicConfig,
    NotifyConfig,
    ScanConfig,
    SessionWindow,
    WebConfig,
)

__all__ = [
    # Frame
    "FrameData",
    # Detection
    "Detection",
    "BoundingBox",
    # Verdict
    "SubjectIdentity",
    "Verdict",
    "UNKNOWN",
    # Errors
    "ScanError",
    "ModelNotReady",
    "SourceUnavailable",
    "InferenceFailure",
    "ScanInProgress",
    "NotificationError",
    # Config
    "Config",
    "CameraConfig",
    "ClassAllowList",
    "ClassifierConfig",
    "HeuristicConfig",
    "NotifyConfig",
    "ScanConfig",
    "SessionWindow",
    "WebConfig",
]
