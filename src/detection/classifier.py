"""
Classifier signal: object detector output reduced to a single flag.

A frame is flagged when any detection's class is on the allow-list and its
score is at or above the allow-list cutoff. Each frame is judged on its own;
combining frames is the aggregator's job.
"""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass
from typing import Callable, List, Optional, Sequence

from inference.backend import InferenceBackend
from models.config import ClassAllowList
from models.detection import Detection
from models.errors import InferenceFailure, ModelNotReady
from models.frame import FrameData


@dataclass(frozen=True)
class ClassifierResult:
    detections: List[Detection]
    flagged: bool


class ClassifierSignal:
    """
    Wraps an inference backend and an allow-list.

    The backend is built by `backend_factory` when `load()` is called; until
    then `is_ready` is False and `evaluate()` raises ModelNotReady. A backend
    instance can also be passed directly, in which case the signal is ready
    immediately.
    """

    def __init__(
        self,
        allow_list: Optional[ClassAllowList] = None,
        backend_factory: Optional[Callable[[], InferenceBackend]] = None,
        backend: Optional[InferenceBackend] = None,
    ):
        self.allow_list = allow_list or ClassAllowList()
        self._factory = backend_factory
        self._backend = backend
        self._load_error: Optional[BaseException] = None
        self._load_lock = threading.Lock()

    @property
    def is_ready(self) -> bool:
        return self._backend is not None

    @property
    def load_error(self) -> Optional[BaseException]:
        return self._load_error

    def load(self) -> None:
        """Build the backend. Errors are recorded, logged and re-raised."""
        with self._load_lock:
            if self._backend is not None:
                return
            if self._factory is None:
                raise ModelNotReady("No classifier backend configured")
            logging.info("Loading classifier model...")
            try:
                self._backend = self._factory()
            except Exception as e:
                self._load_error = e
                logging.error(f"Classifier model failed to load: {e}")
                raise
            self._load_error = None
            logging.info("Classifier model loaded, ready to scan")

    def is_flagged(self, detection: Detection) -> bool:
        return self.allow_list.matches(detection.class_name, detection.score)

    def flags(self, detections: Sequence[Detection]) -> bool:
        """True if any detection is an allow-listed class at or above the cutoff."""
        return any(self.is_flagged(d) for d in detections)

    def evaluate(self, frame_data: FrameData) -> ClassifierResult:
        if self._backend is None:
            raise ModelNotReady("Classifier model is not loaded yet")
        try:
            detections = list(self._backend.detect(frame_data.frame))
        except Exception as e:
            raise InferenceFailure(frame_data.frame_index, e) from e
        return ClassifierResult(detections=detections, flagged=self.flags(detections))
