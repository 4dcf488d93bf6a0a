"""
Paper heuristic: a cheap detector for a large blank bright sheet.

The classifier has no "paper" class, so this looks for a bright,
roughly rectangular region in the lower part of the frame (where hands
holding a slip appear). It works on a fixed-size downscaled copy so the
thresholds do not depend on the camera resolution.

Steps:
1. Downscale to a `size` x `size` square.
2. Keep the rows below `roi_offset` of the height.
3. Count pixels whose mean R, G, B exceeds `brightness_cutoff`, per row.
4. bright_ratio = bright pixels / region area.
5. In the mid-band rows, a row is consistent if its bright count exceeds
   `row_fill_cutoff` of the width; consist_ratio = consistent / band rows.
6. Likely paper iff bright_ratio > `bright_ratio_cutoff` and
   consist_ratio > `consistency_cutoff`.

A global bright ratio alone fires on bright backgrounds; requiring a
contiguous band of bright rows separates a held sheet from scattered
highlights.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Tuple

import cv2
import numpy as np

from models.config import HeuristicConfig


@dataclass(frozen=True)
class PaperAssessment:
    bright_ratio: float
    consist_ratio: float
    likely_paper: bool


class PaperHeuristic:
    """Pure function of the pixel data: the same frame always gives the same answer."""

    def __init__(self, config: Optional[HeuristicConfig] = None):
        self.config = config or HeuristicConfig()

    def region(self, width: int, height: int) -> Tuple[int, int, int, int]:
        """The analysed region mapped back onto a width x height frame, as (x1, y1, x2, y2)."""
        size = self.config.size
        y0 = int(size * self.config.roi_offset)
        return (0, int(round(y0 * height / size)), width, height)

    def measure(self, frame: np.ndarray) -> PaperAssessment:
        cfg = self.config
        size = cfg.size

        small = cv2.resize(frame, (size, size), interpolation=cv2.INTER_AREA)
        if small.ndim == 2:
            small = small[:, :, np.newaxis]
        else:
            # BGR/BGRA: alpha is ignored, channel order does not matter for a mean
            small = small[:, :, :3]

        y0 = int(size * cfg.roi_offset)
        region = small[y0:]
        region_h = region.shape[0]
        if region_h == 0:
            return PaperAssessment(bright_ratio=0.0, consist_ratio=0.0, likely_paper=False)

        bright = region.mean(axis=2) > cfg.brightness_cutoff
        row_counts = bright.sum(axis=1)
        bright_ratio = float(row_counts.sum()) / float(size * region_h)

        band_start = int(region_h * cfg.mid_band[0])
        band_end = int(region_h * cfg.mid_band[1])
        band = row_counts[band_start:band_end]
        if band.size == 0:
            consist_ratio = 0.0
        else:
            consistent = int((band > size * cfg.row_fill_cutoff).sum())
            consist_ratio = consistent / float(band.size)

        likely = bright_ratio > cfg.bright_ratio_cutoff and consist_ratio > cfg.consistency_cutoff
        return PaperAssessment(
            bright_ratio=bright_ratio,
            consist_ratio=consist_ratio,
            likely_paper=bool(likely),
        )

    def assess(self, frame: np.ndarray) -> bool:
        return self.measure(frame).likely_paper
