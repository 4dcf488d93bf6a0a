"""
Detection models for object classifier results.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Optional, Tuple


@dataclass(frozen=True)
class BoundingBox:
    """Corners (x1, y1) top-left and (x2, y2) bottom-right, in frame pixels."""
    x1: float
    y1: float
    x2: float
    y2: float

    @property
    def width(self) -> float:
        return self.x2 - self.x1

    @property
    def height(self) -> float:
        return self.y2 - self.y1

    def as_int_tuple(self) -> Tuple[int, int, int, int]:
        """Corners truncated to ints, ready for cv2 drawing calls."""
        return int(self.x1), int(self.y1), int(self.x2), int(self.y2)

    def as_xywh(self) -> Tuple[float, float, float, float]:
        return self.x1, self.y1, self.width, self.height

    @classmethod
    def from_xywh(cls, x: float, y: float, w: float, h: float) -> "BoundingBox":
        return cls(x, y, x + w, y + h)


@dataclass(frozen=True)
class Detection:
    """
    A single labelled box from the object classifier.
    
    Attributes:
        bbox: Bounding box in pixel coordinates of the source frame.
        score: Confidence score in [0, 1].
        class_name: Human-readable class label (e.g. "cell phone").
        class_id: Optional numeric class ID from the model.
    """
    bbox: BoundingBox
    score: float
    class_name: str
    class_id: Optional[int] = None

    @classmethod
    def from_xywh(
        cls,
        x: float,
        y: float,
        w: float,
        h: float,
        score: float,
        class_name: str,
        class_id: Optional[int] = None,
    ) -> "Detection":
        return cls(
            bbox=BoundingBox.from_xywh(x, y, w, h),
            score=score,
            class_name=class_name,
            class_id=class_id,
        )

    @property
    def label(self) -> str:
        """Overlay label, e.g. "book 87%"."""
        return f"{self.class_name} {self.score * 100:.0f}%"

    def to_dict(self) -> Dict[str, Any]:
        return {
            "class": self.class_name,
            "score": self.score,
            "bbox": list(self.bbox.as_xywh()),
        }
