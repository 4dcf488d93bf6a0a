"""
Overlay drawing and evidence encoding.

Overlays are for the operator only; nothing here feeds back into a flag.
"""

from __future__ import annotations

import logging
from typing import Callable, Optional, Sequence, Tuple

import cv2
import numpy as np

from models.detection import Detection

# Colors (BGR)
COLOR_BOX = (255, 255, 255)
COLOR_FLAGGED = (0, 0, 255)
COLOR_PAPER = (0, 200, 255)
COLOR_LABEL_BG = (0, 0, 0)


def _as_bgr(frame: np.ndarray) -> np.ndarray:
    if frame.ndim == 2:
        return cv2.cvtColor(frame, cv2.COLOR_GRAY2BGR)
    if frame.shape[2] == 4:
        return cv2.cvtColor(frame, cv2.COLOR_BGRA2BGR)
    return frame.copy()


def draw_detections(
    frame: np.ndarray,
    detections: Sequence[Detection],
    is_flagged: Optional[Callable[[Detection], bool]] = None,
) -> np.ndarray:
    """
    Draw labelled boxes ("<class> <pct>%") onto a copy of the frame.

    Boxes for which `is_flagged` returns True are drawn red.
    """
    out = _as_bgr(frame)
    font = cv2.FONT_HERSHEY_SIMPLEX

    for det in detections:
        x1, y1, x2, y2 = det.bbox.as_int_tuple()
        color = COLOR_FLAGGED if is_flagged is not None and is_flagged(det) else COLOR_BOX
        cv2.rectangle(out, (x1, y1), (x2, y2), color, 3)

        label = det.label
        (tw, th), _ = cv2.getTextSize(label, font, 0.5, 1)
        top = max(y1 - th - 8, 0)
        cv2.rectangle(out, (x1, top), (x1 + tw + 10, top + th + 8), COLOR_LABEL_BG, -1)
        cv2.putText(out, label, (x1 + 5, top + th + 3), font, 0.5, (255, 255, 255), 1)

    return out


def draw_paper_hint(frame: np.ndarray, region: Tuple[int, int, int, int]) -> np.ndarray:
    """Outline the region the paper heuristic looked at."""
    x1, y1, x2, y2 = region
    cv2.rectangle(frame, (x1, y1), (x2 - 1, y2 - 1), COLOR_PAPER, 2)
    cv2.putText(frame, "bright sheet?", (x1 + 6, y1 + 20), cv2.FONT_HERSHEY_SIMPLEX, 0.6, COLOR_PAPER, 2)
    return frame


def annotate(
    frame: np.ndarray,
    detections: Sequence[Detection],
    is_flagged: Optional[Callable[[Detection], bool]] = None,
    paper_region: Optional[Tuple[int, int, int, int]] = None,
) -> np.ndarray:
    """
    Composite the frame with its overlay.

    Drawing errors are logged and the raw frame is returned instead.
    """
    try:
        out = draw_detections(frame, detections, is_flagged)
        if paper_region is not None:
            draw_paper_hint(out, paper_region)
        return out
    except Exception as e:
        logging.warning(f"Overlay drawing failed, using raw frame: {e}")
        return _as_bgr(frame)


def encode_evidence(image: np.ndarray) -> bytes:
    """Encode an image as PNG bytes."""
    ok, buf = cv2.imencode(".png", image)
    if not ok or buf is None or buf.size == 0:
        raise RuntimeError("Failed to encode evidence image")
    return buf.tobytes()
