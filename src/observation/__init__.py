"""
Observation layer for pluggable video/image sources.

This layer abstracts the source of frames (camera, video file, still image)
from the scan pipeline. Each source implements the ObservationSource
interface and returns FrameData objects.
"""

from __future__ import annotations

from typing import Any, Dict

from models.config import CameraConfig

from .base import ObservationSource, SourceConfig
from .opencv_source import OpenCVSource, OpenCVSourceConfig, orient
from .image_source import StaticImageSource, StaticImageSourceConfig


def create_source_from_config(camera_cfg: Dict[str, Any], source_id: str = "entry-cam") -> ObservationSource:
    """
    Build an ObservationSource from the `camera` section of the config.
    
    backend "opencv" (default) opens a camera, stream or video file;
    backend "image" serves camera.image_path on every read.
    """
    camera = CameraConfig.from_dict(camera_cfg)
    if camera.backend == "image":
        return StaticImageSource(StaticImageSourceConfig.from_camera_config(camera, source_id=source_id))
    if camera.backend == "opencv":
        return OpenCVSource(OpenCVSourceConfig.from_camera_config(camera, source_id=source_id))
    raise ValueError(f"Unknown camera backend: {camera.backend}")


__all__ = [
    "ObservationSource",
    "SourceConfig",
    "OpenCVSource",
    "OpenCVSourceConfig",
    "orient",
    "StaticImageSource",
    "StaticImageSourceConfig",
    "create_source_from_config",
]
