"""
Error kinds raised by the scan pipeline and its collaborators.
"""

from __future__ import annotations


class ScanError(RuntimeError):
    """Base class for errors that stop a scan from producing a verdict."""


class ModelNotReady(ScanError):
    """A scan was requested before the classifier finished loading."""


class SourceUnavailable(ScanError):
    """The video source is missing, closed or stopped delivering frames."""


class InferenceFailure(ScanError):
    """The classifier raised while evaluating a frame."""

    def __init__(self, frame_index: int, cause: BaseException):
        super().__init__(f"Inference failed on frame {frame_index}: {cause}")
        self.frame_index = frame_index
        self.cause = cause


class ScanInProgress(ScanError):
    """Another scan is already running against the same source."""


class NotificationError(RuntimeError):
    """An alert could not be delivered. Never affects the verdict."""
