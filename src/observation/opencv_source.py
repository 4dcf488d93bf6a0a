"""
Webcam, stream or video-file source backed by cv2.VideoCapture.
"""

from __future__ import annotations

import logging
import os
import time
from dataclasses import dataclass
from typing import Optional, Union

import cv2
import numpy as np

from models.config import CameraConfig

from .base import ObservationSource, SourceConfig

_ROTATIONS = {
    90: cv2.ROTATE_90_CLOCKWISE,
    180: cv2.ROTATE_180,
    270: cv2.ROTATE_90_COUNTERCLOCKWISE,
}


@dataclass
class OpenCVSourceConfig(SourceConfig):
    """
    Attributes:
        device_id: Webcam index, stream URL or video file path.
        buffer_size: Capture queue length; 1 keeps reads close to "now".
        open_attempts: How many times to try opening before giving up.
        warmup_seconds: Pause after opening a live camera (auto exposure settles).
        rotate: 0, 90, 180 or 270 degrees clockwise.
        flip_horizontal: Mirror the image; on by default for front-facing webcams.
        flip_vertical: Upside-down mounts.
        swap_rb: For devices that deliver RGB instead of BGR.
    """
    device_id: Union[int, str] = 0
    buffer_size: int = 1
    open_attempts: int = 3
    warmup_seconds: float = 0.5
    rotate: int = 0
    flip_horizontal: bool = True
    flip_vertical: bool = False
    swap_rb: bool = False

    @classmethod
    def from_camera_config(cls, camera: CameraConfig, source_id: str = "entry-cam") -> "OpenCVSourceConfig":
        return cls(
            source_id=source_id,
            resolution=tuple(camera.resolution) if camera.resolution else None,
            fps=camera.fps,
            device_id=camera.device_id,
            buffer_size=camera.buffer_size,
            open_attempts=camera.open_attempts,
            warmup_seconds=camera.warmup_seconds,
            rotate=camera.rotate,
            flip_horizontal=camera.flip_horizontal,
            flip_vertical=camera.flip_vertical,
            swap_rb=camera.swap_rb,
        )


def orient(
    frame: np.ndarray,
    rotate: int = 0,
    flip_horizontal: bool = False,
    flip_vertical: bool = False,
    swap_rb: bool = False,
) -> np.ndarray:
    """Rotate, then flip, then fix channel order."""
    rotation = _ROTATIONS.get(rotate)
    if rotation is not None:
        frame = cv2.rotate(frame, rotation)

    if flip_horizontal and flip_vertical:
        frame = cv2.flip(frame, -1)
    elif flip_horizontal:
        frame = cv2.flip(frame, 1)
    elif flip_vertical:
        frame = cv2.flip(frame, 0)

    if swap_rb:
        frame = cv2.cvtColor(frame, cv2.COLOR_RGB2BGR)
    return frame


class OpenCVSource(ObservationSource):
    """
    Example:
        with OpenCVSource(OpenCVSourceConfig(device_id=0)) as source:
            frame_data = source.read()
    """

    def __init__(self, config: OpenCVSourceConfig):
        super().__init__(config)
        self._cap: Optional[cv2.VideoCapture] = None

    @property
    def device_id(self) -> Union[int, str]:
        return self.config.device_id

    @property
    def is_file(self) -> bool:
        return isinstance(self.device_id, str) and os.path.isfile(self.device_id)

    def _open(self) -> None:
        attempts = max(1, self.config.open_attempts)
        for attempt in range(1, attempts + 1):
            cap = cv2.VideoCapture(self.device_id)
            if cap.isOpened():
                break
            cap.release()
            logging.warning(f"Camera {self.device_id} did not open (attempt {attempt}/{attempts})")
            if attempt < attempts:
                time.sleep(min(2 ** attempt, 10))
        else:
            raise RuntimeError(f"Failed to open camera {self.device_id} after {attempts} attempts")

        if isinstance(self.device_id, int):
            self._apply_device_settings(cap)
        self._cap = cap

        if not self.is_file and self.config.warmup_seconds > 0:
            time.sleep(self.config.warmup_seconds)

    def _apply_device_settings(self, cap: cv2.VideoCapture) -> None:
        cfg = self.config
        if cfg.resolution:
            cap.set(cv2.CAP_PROP_FRAME_WIDTH, cfg.resolution[0])
            cap.set(cv2.CAP_PROP_FRAME_HEIGHT, cfg.resolution[1])
        if cfg.fps:
            cap.set(cv2.CAP_PROP_FPS, cfg.fps)
        cap.set(cv2.CAP_PROP_BUFFERSIZE, cfg.buffer_size)
        logging.info(
            f"Camera {self.device_id} delivering "
            f"{int(cap.get(cv2.CAP_PROP_FRAME_WIDTH))}x{int(cap.get(cv2.CAP_PROP_FRAME_HEIGHT))}"
        )

    def _grab(self) -> Optional[np.ndarray]:
        if self._cap is None:
            return None
        ok, frame = self._cap.read()
        if not ok or frame is None:
            logging.warning(f"No frame from camera {self.device_id}")
            return None
        cfg = self.config
        return orient(frame, cfg.rotate, cfg.flip_horizontal, cfg.flip_vertical, cfg.swap_rb)

    def _release(self) -> None:
        if self._cap is not None:
            self._cap.release()
            self._cap = None
