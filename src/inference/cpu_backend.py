"""
COCO-pretrained Ultralytics YOLO on the CPU.

COCO already names the items an invigilator cares about ("book",
"cell phone", "laptop", "remote", "tv"). It has no paper class, which is
why the brightness heuristic runs alongside it.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, List

import numpy as np

from models.detection import BoundingBox, Detection


@dataclass(frozen=True)
class CpuYoloConfig:
    model: str
    conf_threshold: float = 0.25
    iou_threshold: float = 0.45


def _to_numpy(values: Any) -> np.ndarray:
    # Ultralytics hands back torch tensors; test doubles hand back arrays
    if hasattr(values, "cpu"):
        values = values.cpu().numpy()
    return np.asarray(values)


class UltralyticsCpuBackend:
    """
    Loading the weights is slow (and downloads them on first use), so build
    this off the event loop; ClassifierSignal.load() does.
    """

    def __init__(self, cfg: CpuYoloConfig):
        from ultralytics import YOLO

        self.cfg = cfg
        self._model = YOLO(cfg.model)
        logging.info(f"YOLO model {cfg.model} loaded (conf={cfg.conf_threshold}, iou={cfg.iou_threshold})")

    def detect(self, frame: np.ndarray) -> List[Detection]:
        results = self._model.predict(
            frame,
            conf=self.cfg.conf_threshold,
            iou=self.cfg.iou_threshold,
            device="cpu",
            verbose=False,
        )
        if not results or getattr(results[0], "boxes", None) is None:
            return []

        result = results[0]
        names = result.names or {}
        boxes = _to_numpy(result.boxes.xyxy)
        scores = _to_numpy(result.boxes.conf)
        class_ids = _to_numpy(result.boxes.cls).astype(int)

        return [
            Detection(
                bbox=BoundingBox(*(float(v) for v in box[:4])),
                score=float(score),
                class_name=str(names.get(int(class_id), class_id)),
                class_id=int(class_id),
            )
            for box, score, class_id in zip(boxes, scores, class_ids)
        ]
