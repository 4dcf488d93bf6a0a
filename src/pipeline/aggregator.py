"""
Verdict aggregation across a scan window.
"""

from __future__ import annotations

import logging
from enum import Enum
from typing import List, Optional

import numpy as np

from detection.annotate import encode_evidence
from models.frame import FrameData
from models.verdict import SubjectIdentity, Verdict


class AggregatorState(str, Enum):
    CLEAN = "clean"
    FLAGGED = "flagged"


class VerdictAggregator:
    """
    Sticky OR across frames.

    Starts CLEAN; the first frame with either flag set moves it to FLAGGED
    and nothing moves it back. The evidence image is the composite of the
    first flagged frame, kept until the window ends and encoded then.
    """

    def __init__(self):
        self.state = AggregatorState.CLEAN
        self.frames_seen = 0
        self.flagged_frames: List[int] = []
        self._evidence: Optional[np.ndarray] = None
        self._finished = False

    @property
    def is_flagged(self) -> bool:
        return self.state is AggregatorState.FLAGGED

    def observe(
        self,
        frame_data: FrameData,
        class_flag: bool,
        paper_flag: bool,
        composite: Optional[np.ndarray] = None,
    ) -> bool:
        """
        Record one frame's flags. Returns True if the frame was positive.

        `composite` is the frame with its overlay; the raw frame is used if
        it is missing.
        """
        if self._finished:
            raise RuntimeError("Aggregator already produced its verdict")

        self.frames_seen += 1
        positive = bool(class_flag or paper_flag)
        if not positive:
            return False

        self.flagged_frames.append(frame_data.frame_index)
        if self.state is AggregatorState.CLEAN:
            self.state = AggregatorState.FLAGGED
            image = composite if composite is not None else frame_data.frame
            self._evidence = image.copy()
            logging.info(
                f"Frame {frame_data.frame_index} flagged "
                f"(classifier={class_flag}, paper={paper_flag})"
            )
        return True

    def finish(self, subject: SubjectIdentity) -> Verdict:
        """Emit the verdict. Can be called once."""
        if self._finished:
            raise RuntimeError("Aggregator already produced its verdict")
        self._finished = True

        evidence = None
        if self.is_flagged:
            evidence = encode_evidence(self._evidence)
        self._evidence = None

        return Verdict(
            has_unauthorized_material=self.is_flagged,
            evidence_image=evidence,
            subject=SubjectIdentity(name=subject.name, roll_number=subject.roll_number),
            frames_scanned=self.frames_seen,
            flagged_frames=tuple(self.flagged_frames),
        )
