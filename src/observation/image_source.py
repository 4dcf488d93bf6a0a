"""
Still-image source: the same picture on every read, for dry runs without a camera.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional

import cv2
import numpy as np

from models.config import CameraConfig

from .base import ObservationSource, SourceConfig


@dataclass
class StaticImageSourceConfig(SourceConfig):
    image_path: str = ""

    @classmethod
    def from_camera_config(cls, camera: CameraConfig, source_id: str = "entry-cam") -> "StaticImageSourceConfig":
        return cls(source_id=source_id, image_path=camera.image_path or "")


class StaticImageSource(ObservationSource):
    def __init__(self, config: StaticImageSourceConfig):
        super().__init__(config)
        self._image: Optional[np.ndarray] = None

    def _open(self) -> None:
        image = cv2.imread(self.config.image_path, cv2.IMREAD_COLOR)
        if image is None:
            raise RuntimeError(f"Failed to read image {self.config.image_path}")
        self._image = image
        logging.info(f"Serving {self.config.image_path} ({image.shape[1]}x{image.shape[0]})")

    def _grab(self) -> Optional[np.ndarray]:
        return None if self._image is None else self._image.copy()

    def _release(self) -> None:
        self._image = None
