"""
Object detector seam used by the classifier signal.
"""

from __future__ import annotations

from typing import List, Protocol

import numpy as np

from models.detection import Detection


class InferenceBackend(Protocol):
    """Turns one BGR frame into detections in that frame's pixel coordinates."""

    def detect(self, frame: np.ndarray) -> List[Detection]:
        ...
