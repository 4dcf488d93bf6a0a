"""
A single captured frame and where it came from.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Tuple

import numpy as np


@dataclass(frozen=True)
class FrameData:
    """
    Pixels (BGR, BGRA or grayscale) plus capture metadata.

    `frame_index` counts from 1 within one opening of the source, so it also
    names the frame inside a scan window in logs and verdicts.
    """
    frame: np.ndarray
    width: int
    height: int
    timestamp: float
    frame_index: int = 0
    source: Optional[str] = None

    @classmethod
    def from_numpy(
        cls,
        frame: np.ndarray,
        timestamp: float,
        frame_index: int = 0,
        source: Optional[str] = None,
    ) -> "FrameData":
        height, width = frame.shape[:2]
        return cls(frame, width, height, timestamp, frame_index, source)

    @property
    def channels(self) -> int:
        return self.frame.shape[2] if self.frame.ndim == 3 else 1

    @property
    def size(self) -> Tuple[int, int]:
        """(width, height)"""
        return self.width, self.height
