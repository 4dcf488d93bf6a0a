"""
Scan session: one fixed-length scan producing one Verdict.

A scan reads a window of frames, runs the classifier signal and the paper
heuristic on each, and ORs their flags into a sticky verdict. The whole
window is always scanned, even after an early positive frame.

Suspension points are the frame read and the pacing delay only; classifier
and heuristic run synchronously per frame, so frames never overlap.
"""

from __future__ import annotations

import asyncio
import logging
import time
from typing import Any, Callable, Dict, List, Optional

import numpy as np

from detection.annotate import annotate
from detection.classifier import ClassifierSignal, ClassifierResult
from detection.paper import PaperHeuristic
from models.config import HeuristicConfig, ScanConfig
from models.errors import ModelNotReady, ScanInProgress, SourceUnavailable
from models.frame import FrameData
from models.verdict import SubjectIdentity, Verdict
from observation.base import ObservationSource
from .aggregator import VerdictAggregator
from .sampler import FrameSampler, Sleeper

FrameCallback = Callable[[FrameData, np.ndarray], None]


class ScanSession:
    """
    Orchestrates sampler, signals and aggregator for a single source.

    One session owns one source; a second `scan()` while one is running
    raises ScanInProgress immediately. Cancelling the awaiting task stops the
    scan without producing a verdict; a cancel during a frame read takes
    effect once that read returns.

    Example:
        session = ScanSession(source, classifier, PaperHeuristic(), ScanConfig())
        verdict = await session.scan(SubjectIdentity("Asha", "21CS042"))
    """

    def __init__(
        self,
        source: ObservationSource,
        classifier: ClassifierSignal,
        heuristic: Optional[PaperHeuristic] = None,
        config: Optional[ScanConfig] = None,
        sleep: Sleeper = asyncio.sleep,
    ):
        self.source = source
        self.classifier = classifier
        self.heuristic = heuristic or PaperHeuristic()
        self.config = config or ScanConfig()
        self._sleep = sleep
        self._active = False
        self._callbacks: List[FrameCallback] = []

    @property
    def is_scanning(self) -> bool:
        return self._active

    def add_callback(self, callback: FrameCallback) -> None:
        """
        Add a callback receiving (frame_data, annotated_frame) for every frame.

        Callbacks are for display only; their errors are logged and ignored.
        """
        self._callbacks.append(callback)

    async def scan(self, subject: SubjectIdentity) -> Verdict:
        if self._active:
            raise ScanInProgress(f"A scan is already running on {self.source.source_id}")
        if not self.classifier.is_ready:
            raise ModelNotReady("Classifier model is not loaded yet")
        if not self.source.is_open:
            raise SourceUnavailable(f"Source {self.source.source_id} is not open")

        self._active = True
        try:
            window = self.config.window()
            sampler = FrameSampler(self.source, window, sleep=self._sleep)
            aggregator = VerdictAggregator()
            started = time.time()
            logging.info(
                f"Scan started: source={self.source.source_id}, frames={window.frame_count}, "
                f"delay={window.inter_frame_delay:.3f}s, subject={subject.name} ({subject.roll_number})"
            )

            async for frame_data in sampler.frames():
                self._process_frame(frame_data, aggregator)

            verdict = aggregator.finish(subject)
            logging.info(
                f"Scan finished in {time.time() - started:.2f}s: "
                f"unauthorized={verdict.has_unauthorized_material}, "
                f"flagged_frames={list(verdict.flagged_frames)}"
            )
            return verdict
        except asyncio.CancelledError:
            logging.info(f"Scan cancelled: source={self.source.source_id}")
            raise
        finally:
            self._active = False

    def _process_frame(self, frame_data: FrameData, aggregator: VerdictAggregator) -> None:
        result: ClassifierResult = self.classifier.evaluate(frame_data)
        assessment = self.heuristic.measure(frame_data.frame)
        paper_flag = assessment.likely_paper

        logging.debug(
            f"[SCAN] frame={frame_data.frame_index} detections={len(result.detections)} "
            f"class_flag={result.flagged} bright={assessment.bright_ratio:.3f} "
            f"consist={assessment.consist_ratio:.3f} paper_flag={paper_flag}"
        )

        composite = None
        if self._callbacks or ((result.flagged or paper_flag) and not aggregator.is_flagged):
            region = self.heuristic.region(frame_data.width, frame_data.height) if paper_flag else None
            composite = annotate(
                frame_data.frame,
                result.detections,
                is_flagged=self.classifier.is_flagged,
                paper_region=region,
            )

        aggregator.observe(frame_data, result.flagged, paper_flag, composite)

        for callback in self._callbacks:
            try:
                callback(frame_data, composite)
            except Exception as e:
                logging.warning(f"Frame callback error: {e}")


def create_session_from_config(
    config: Dict[str, Any],
    source: ObservationSource,
    classifier: ClassifierSignal,
) -> ScanSession:
    """
    Factory function to create a ScanSession from the config dict.

    Args:
        config: Full application config dict.
        source: Opened (or to be opened) observation source.
        classifier: Classifier signal, loaded or loading.
    """
    heuristic = PaperHeuristic(HeuristicConfig.from_dict(config.get("heuristic", {}) or {}))
    scan_cfg = ScanConfig.from_dict(config.get("scan", {}) or {})
    return ScanSession(source, classifier, heuristic, scan_cfg)
