"""
Typed configuration models matching the YAML config structure.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import Any, Dict, FrozenSet, List, Optional, Union

DEFAULT_UNAUTHORIZED_CLASSES = ("book", "cell phone", "laptop", "remote", "tv")
DEFAULT_ALERT_MESSAGE = "Unauthorized slips/papers detected at entry."


@dataclass
class CameraConfig:
    """Camera configuration."""
    backend: str = "opencv"
    device_id: Union[int, str] = 0
    resolution: Optional[List[int]] = field(default_factory=lambda: [640, 480])
    fps: Optional[float] = 30
    buffer_size: int = 1
    open_attempts: int = 3
    warmup_seconds: float = 0.5
    swap_rb: bool = False
    rotate: int = 0
    flip_horizontal: bool = True
    flip_vertical: bool = False
    image_path: Optional[str] = None

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "CameraConfig":
        """Adapter: Create from config dictionary."""
        return cls(
            backend=d.get("backend", "opencv"),
            device_id=d.get("device_id", 0),
            resolution=d.get("resolution", [640, 480]),
            fps=d.get("fps", 30),
            buffer_size=int(d.get("buffer_size", 1)),
            open_attempts=int(d.get("open_attempts", 3)),
            warmup_seconds=float(d.get("warmup_seconds", 0.5)),
            swap_rb=bool(d.get("swap_rb", False)),
            rotate=int(d.get("rotate", 0) or 0),
            flip_horizontal=bool(d.get("flip_horizontal", True)),
            flip_vertical=bool(d.get("flip_vertical", False)),
            image_path=d.get("image_path"),
        )

    def to_dict(self) -> Dict[str, Any]:
        d = {
            "backend": self.backend,
            "device_id": self.device_id,
            "resolution": self.resolution,
            "fps": self.fps,
            "buffer_size": self.buffer_size,
            "open_attempts": self.open_attempts,
            "warmup_seconds": self.warmup_seconds,
            "swap_rb": self.swap_rb,
            "rotate": self.rotate,
            "flip_horizontal": self.flip_horizontal,
            "flip_vertical": self.flip_vertical,
        }
        if self.image_path is not None:
            d["image_path"] = self.image_path
        return d


@dataclass(frozen=True)
class ClassAllowList:
    """
    Class labels treated as unauthorized material, plus the score cutoff.

    Membership is an exact string match and the cutoff is inclusive.
    """
    classes: FrozenSet[str] = frozenset(DEFAULT_UNAUTHORIZED_CLASSES)
    min_score: float = 0.55

    def matches(self, class_name: Optional[str], score: float) -> bool:
        return class_name in self.classes and score >= self.min_score

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "ClassAllowList":
        return cls(
            classes=frozenset(d.get("classes", DEFAULT_UNAUTHORIZED_CLASSES)),
            min_score=float(d.get("min_score", 0.55)),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {"classes": sorted(self.classes), "min_score": self.min_score}


@dataclass
class ClassifierConfig:
    """Object classifier configuration."""
    backend: str = "yolo"
    model: str = "yolov8n.pt"
    conf_threshold: float = 0.25
    iou_threshold: float = 0.45
    allow_list: ClassAllowList = field(default_factory=ClassAllowList)

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "ClassifierConfig":
        return cls(
            backend=d.get("backend", "yolo"),
            model=d.get("model", "yolov8n.pt"),
            conf_threshold=float(d.get("conf_threshold", 0.25)),
            iou_threshold=float(d.get("iou_threshold", 0.45)),
            allow_list=ClassAllowList.from_dict(d.get("allow_list", {}) or {}),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "backend": self.backend,
            "model": self.model,
            "conf_threshold": self.conf_threshold,
            "iou_threshold": self.iou_threshold,
            "allow_list": self.allow_list.to_dict(),
        }


@dataclass(frozen=True)
class HeuristicConfig:
    """
    Thresholds for the bright-paper heuristic.

    Absolute values are defined against the downscaled square, not the
    source resolution.

    Attributes:
        size: Side of the square the frame is downscaled to.
        roi_offset: Fraction of the height above the analysed region.
        brightness_cutoff: Mean RGB value a pixel must exceed to count as bright.
        bright_ratio_cutoff: Bright pixels / region area must exceed this.
        row_fill_cutoff: Bright fraction of a row needed for the row to count.
        consistency_cutoff: Consistent rows / mid-band rows must exceed this.
        mid_band: Start and end of the mid-band as fractions of region height.
    """
    size: int = 224
    roi_offset: float = 0.45
    brightness_cutoff: float = 225.0
    bright_ratio_cutoff: float = 0.05
    row_fill_cutoff: float = 0.20
    consistency_cutoff: float = 0.35
    mid_band: tuple = (0.20, 0.75)

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "HeuristicConfig":
        return cls(
            size=int(d.get("size", 224)),
            roi_offset=float(d.get("roi_offset", 0.45)),
            brightness_cutoff=float(d.get("brightness_cutoff", 225.0)),
            bright_ratio_cutoff=float(d.get("bright_ratio_cutoff", 0.05)),
            row_fill_cutoff=float(d.get("row_fill_cutoff", 0.20)),
            consistency_cutoff=float(d.get("consistency_cutoff", 0.35)),
            mid_band=tuple(d.get("mid_band", (0.20, 0.75))),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "size": self.size,
            "roi_offset": self.roi_offset,
            "brightness_cutoff": self.brightness_cutoff,
            "bright_ratio_cutoff": self.bright_ratio_cutoff,
            "row_fill_cutoff": self.row_fill_cutoff,
            "consistency_cutoff": self.consistency_cutoff,
            "mid_band": list(self.mid_band),
        }


@dataclass(frozen=True)
class SessionWindow:
    """Number of frames in one scan and the real-time gap between them."""
    frame_count: int
    inter_frame_delay: float

    @classmethod
    def from_rate(cls, seconds: float, fps: float) -> "SessionWindow":
        if fps <= 0:
            raise ValueError("fps must be positive")
        return cls(
            frame_count=max(1, math.floor(seconds * fps)),
            inter_frame_delay=1.0 / fps,
        )


@dataclass
class ScanConfig:
    """Scan window configuration."""
    seconds: float = 2.0
    fps: float = 4.0

    def window(self) -> SessionWindow:
        return SessionWindow.from_rate(self.seconds, self.fps)

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "ScanConfig":
        return cls(
            seconds=float(d.get("seconds", 2.0)),
            fps=float(d.get("fps", 4.0)),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {"seconds": self.seconds, "fps": self.fps}


@dataclass
class NotifyConfig:
    """Alert delivery configuration."""
    backend: str = "log"
    smtp_host: str = "smtp.gmail.com"
    smtp_port: int = 587
    username: Optional[str] = None
    password: Optional[str] = None
    sender: Optional[str] = None
    recipients: List[str] = field(default_factory=list)
    alert_message: str = DEFAULT_ALERT_MESSAGE

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "NotifyConfig":
        return cls(
            backend=d.get("backend", "log"),
            smtp_host=d.get("smtp_host", "smtp.gmail.com"),
            smtp_port=int(d.get("smtp_port", 587)),
            username=d.get("username"),
            password=d.get("password"),
            sender=d.get("sender"),
            recipients=list(d.get("recipients", []) or []),
            alert_message=d.get("alert_message", DEFAULT_ALERT_MESSAGE),
        )

    def to_dict(self) -> Dict[str, Any]:
        # password is deliberately left out
        return {
            "backend": self.backend,
            "smtp_host": self.smtp_host,
            "smtp_port": self.smtp_port,
            "username": self.username,
            "sender": self.sender,
            "recipients": self.recipients,
            "alert_message": self.alert_message,
        }


@dataclass
class WebConfig:
    host: str = "0.0.0.0"
    port: int = 5000

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "WebConfig":
        return cls(host=d.get("host", "0.0.0.0"), port=int(d.get("port", 5000)))

    def to_dict(self) -> Dict[str, Any]:
        return {"host": self.host, "port": self.port}


@dataclass
class Config:
    """
    Complete application configuration.

    This is a typed representation of the YAML config structure.
    """
    camera: CameraConfig = field(default_factory=CameraConfig)
    classifier: ClassifierConfig = field(default_factory=ClassifierConfig)
    heuristic: HeuristicConfig = field(default_factory=HeuristicConfig)
    scan: ScanConfig = field(default_factory=ScanConfig)
    notify: NotifyConfig = field(default_factory=NotifyConfig)
    web: WebConfig = field(default_factory=WebConfig)
    log_path: str = "logs/slip_scanner.log"
    log_level: str = "INFO"

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "Config":
        """Adapter: Create Config from raw dictionary (e.g., from load_config)."""
        return cls(
            camera=CameraConfig.from_dict(d.get("camera", {}) or {}),
            classifier=ClassifierConfig.from_dict(d.get("classifier", {}) or {}),
            heuristic=HeuristicConfig.from_dict(d.get("heuristic", {}) or {}),
            scan=ScanConfig.from_dict(d.get("scan", {}) or {}),
            notify=NotifyConfig.from_dict(d.get("notify", {}) or {}),
            web=WebConfig.from_dict(d.get("web", {}) or {}),
            log_path=d.get("log_path", "logs/slip_scanner.log"),
            log_level=d.get("log_level", "INFO"),
        )

    def to_dict(self) -> Dict[str, Any]:
        """Convert back to dictionary (for saving or logging)."""
        return {
            "camera": self.camera.to_dict(),
            "classifier": self.classifier.to_dict(),
            "heuristic": self.heuristic.to_dict(),
            "scan": self.scan.to_dict(),
            "notify": self.notify.to_dict(),
            "web": self.web.to_dict(),
            "log_path": self.log_path,
            "log_level": self.log_level,
        }
