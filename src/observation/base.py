"""
Frame sources for the entry scan.

A scan never buffers: it asks the source for the current frame each time it
needs one. Concrete sources only implement how to open the device, grab one
frame and release it; stamping frames with their index and time happens here.
"""

from __future__ import annotations

import logging
import threading
import time
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Optional, Tuple

import numpy as np

from models.frame import FrameData


@dataclass
class SourceConfig:
    """
    Settings shared by every source.

    Attributes:
        source_id: Name used in logs, health and frame metadata.
        resolution: Requested (width, height), or None for the device default.
        fps: Requested device frame rate, or None for the device default.
    """
    source_id: str = "entry-cam"
    resolution: Optional[Tuple[int, int]] = None
    fps: Optional[float] = None


class ObservationSource(ABC):
    """
    On-demand frame provider.

    open() must succeed before read(); read() returns None when the device has
    nothing to give, which the scan treats as the source going away. close()
    may be called any number of times. Usable as a context manager.

    read() and close() are serialised, so a frame grab never overlaps another
    grab or the device release.
    """

    def __init__(self, config: SourceConfig):
        self.config = config
        self._is_open = False
        self._frames_read = 0
        self._lock = threading.Lock()

    @property
    def source_id(self) -> str:
        return self.config.source_id

    @property
    def is_open(self) -> bool:
        return self._is_open

    @property
    def frame_index(self) -> int:
        """Index of the last frame handed out since open() (0 before the first)."""
        return self._frames_read

    def open(self) -> None:
        """Raises RuntimeError if the device cannot be opened."""
        if self._is_open:
            return
        self._open()
        self._is_open = True
        self._frames_read = 0
        logging.info(f"Source {self.source_id} opened")

    def read(self) -> Optional[FrameData]:
        with self._lock:
            if not self._is_open:
                return None
            pixels = self._grab()
            if pixels is None:
                return None
            self._frames_read += 1
            return FrameData.from_numpy(
                pixels,
                timestamp=time.time(),
                frame_index=self._frames_read,
                source=self.source_id,
            )

    def close(self) -> None:
        with self._lock:
            if not self._is_open:
                return
            self._is_open = False
            self._release()
        logging.info(f"Source {self.source_id} closed after {self._frames_read} frames")

    @abstractmethod
    def _open(self) -> None:
        ...

    @abstractmethod
    def _grab(self) -> Optional[np.ndarray]:
        """Current pixels, or None if the device produced nothing."""

    @abstractmethod
    def _release(self) -> None:
        ...

    def __enter__(self) -> "ObservationSource":
        self.open()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()
