"""
End-to-end tests for one scan session.
"""

import asyncio
from unittest.mock import patch

import numpy as np
import pytest

from detection.classifier import ClassifierSignal
from models.config import ScanConfig
from models.errors import InferenceFailure, ModelNotReady, ScanInProgress, SourceUnavailable
from models.verdict import SubjectIdentity
from pipeline.session import ScanSession, create_session_from_config
from fakes import GatedSleep, MockObservationSource, RecordingSleep, ScriptedBackend, SlowSource, frames_of

SUBJECT = SubjectIdentity("Asha Rao", "21CS042")


def _session(script=None, frames=None, sleep=None, open_source=True):
    source = MockObservationSource(frames=frames)
    if open_source:
        source.open()
    backend = ScriptedBackend(script)
    classifier = ClassifierSignal(backend=backend)
    session = ScanSession(source, classifier, config=ScanConfig(seconds=2.0, fps=4), sleep=sleep or RecordingSleep())
    return session, backend


class TestScanSession:
    def test_positive_on_last_frame(self):
        session, backend = _session({8: [("cell phone", 0.9)]})

        verdict = asyncio.run(session.scan(SUBJECT))

        assert verdict.has_unauthorized_material is True
        assert verdict.evidence_image.startswith(b"\x89PNG")
        assert verdict.flagged_frames == (8,)
        assert verdict.frames_scanned == 8
        assert verdict.subject == SUBJECT
        assert backend.calls == 8

    def test_scans_whole_window_after_early_positive(self):
        session, backend = _session({1: [("book", 0.7)]})

        verdict = asyncio.run(session.scan(SUBJECT))

        assert verdict.flagged_frames == (1,)
        assert backend.calls == 8

    def test_all_negative(self):
        session, _ = _session({2: [("cell phone", 0.5)], 5: [("person", 0.99)]})

        verdict = asyncio.run(session.scan(SUBJECT))

        assert verdict.has_unauthorized_material is False
        assert verdict.evidence_image is None

    def test_paper_alone_flags(self):
        session, _ = _session(frames=frames_of(0, 0, 255, 0, 0, 0, 0, 0))

        verdict = asyncio.run(session.scan(SUBJECT))

        assert verdict.has_unauthorized_material is True
        assert verdict.flagged_frames == (3,)

    def test_model_not_ready(self):
        source = MockObservationSource()
        source.open()
        classifier = ClassifierSignal(backend_factory=ScriptedBackend)
        session = ScanSession(source, classifier, sleep=RecordingSleep())

        with pytest.raises(ModelNotReady):
            asyncio.run(session.scan(SUBJECT))
        assert source.reads == 0

    def test_source_not_open(self):
        session, backend = _session(open_source=False)

        with pytest.raises(SourceUnavailable):
            asyncio.run(session.scan(SUBJECT))
        assert backend.calls == 0
        assert not session.is_scanning

    def test_source_runs_dry(self):
        session, _ = _session(frames=frames_of(0, 0, 0))

        with pytest.raises(SourceUnavailable):
            asyncio.run(session.scan(SUBJECT))
        assert not session.is_scanning

    def test_inference_failure_propagates(self):
        session, backend = _session({2: RuntimeError("bad tensor")})

        with pytest.raises(InferenceFailure) as exc_info:
            asyncio.run(session.scan(SUBJECT))

        assert exc_info.value.frame_index == 2
        assert backend.calls == 2
        assert not session.is_scanning

    def test_second_scan_rejected_while_running(self):
        async def run():
            gate = GatedSleep()
            session, _ = _session(sleep=gate)
            first = asyncio.create_task(session.scan(SUBJECT))
            await gate.entered.wait()

            assert session.is_scanning
            with pytest.raises(ScanInProgress):
                await session.scan(SUBJECT)

            gate.release()
            verdict = await first
            return session, verdict

        session, verdict = asyncio.run(run())

        assert verdict.frames_scanned == 8
        assert not session.is_scanning

    def test_cancel_stops_without_verdict(self):
        async def run():
            gate = GatedSleep()
            session, backend = _session({1: [("book", 0.9)]}, sleep=gate)
            task = asyncio.create_task(session.scan(SUBJECT))
            await gate.entered.wait()

            task.cancel()
            with pytest.raises(asyncio.CancelledError):
                await task
            return session, backend

        session, backend = asyncio.run(run())

        assert backend.calls == 1
        assert not session.is_scanning

    def test_cancel_mid_read_then_rescan(self):
        async def run():
            source = SlowSource(delay=0.05)
            source.open()
            session = ScanSession(
                source,
                ClassifierSignal(backend=ScriptedBackend()),
                config=ScanConfig(seconds=2.0, fps=4),
                sleep=RecordingSleep(),
            )
            task = asyncio.create_task(session.scan(SUBJECT))
            await asyncio.sleep(0.02)

            task.cancel()
            with pytest.raises(asyncio.CancelledError):
                await task
            in_flight_after_cancel = source.in_flight

            verdict = await session.scan(SUBJECT)
            return source, in_flight_after_cancel, verdict

        source, in_flight_after_cancel, verdict = asyncio.run(run())

        assert in_flight_after_cancel == 0
        assert source.max_in_flight == 1
        assert verdict.frames_scanned == 8

    def test_device_error_mid_scan(self):
        source = MockObservationSource(fail_on=3)
        source.open()
        backend = ScriptedBackend()
        session = ScanSession(source, ClassifierSignal(backend=backend), sleep=RecordingSleep())

        with pytest.raises(SourceUnavailable, match="device unplugged"):
            asyncio.run(session.scan(SUBJECT))

        assert backend.calls == 2
        assert not session.is_scanning

    def test_session_reusable_after_scan(self):
        session, backend = _session({1: [("book", 0.9)]})

        first = asyncio.run(session.scan(SUBJECT))
        second = asyncio.run(session.scan(SUBJECT))

        assert first.has_unauthorized_material is True
        assert second.has_unauthorized_material is False
        assert backend.calls == 16

    def test_callbacks_receive_composites(self):
        session, _ = _session({1: [("cell phone", 0.9)]})
        seen = []
        session.add_callback(lambda fd, composite: seen.append((fd.frame_index, composite.shape)))

        asyncio.run(session.scan(SUBJECT))

        assert [i for i, _ in seen] == list(range(1, 9))
        assert all(shape == (240, 320, 3) for _, shape in seen)

    def test_callback_errors_ignored(self):
        session, _ = _session({4: [("book", 0.9)]})

        def broken(fd, composite):
            raise ValueError("display gone")

        session.add_callback(broken)
        verdict = asyncio.run(session.scan(SUBJECT))

        assert verdict.has_unauthorized_material is True

    def test_below_cutoff_box_not_drawn_as_flagged(self):
        session, _ = _session({1: [("cell phone", 0.4)], 2: [("cell phone", 0.9)]})
        composites = []
        session.add_callback(lambda fd, composite: composites.append(composite))

        verdict = asyncio.run(session.scan(SUBJECT))

        # left edge of the scripted box at (10, 10, 60, 40)
        assert tuple(composites[0][30, 10]) == (255, 255, 255)
        assert tuple(composites[1][30, 10]) == (0, 0, 255)
        assert verdict.flagged_frames == (2,)

    def test_overlay_failure_keeps_verdict(self):
        session, _ = _session({3: [("cell phone", 0.95)]})

        with patch("detection.annotate.draw_detections", side_effect=RuntimeError("font missing")):
            verdict = asyncio.run(session.scan(SUBJECT))

        assert verdict.has_unauthorized_material is True
        assert verdict.evidence_image.startswith(b"\x89PNG")


class TestCreateSessionFromConfig:
    def test_builds_from_config(self, valid_config):
        valid_config["scan"] = {"seconds": 1.0, "fps": 2}
        valid_config["heuristic"]["brightness_cutoff"] = 200
        source = MockObservationSource()
        classifier = ClassifierSignal(backend=ScriptedBackend())

        session = create_session_from_config(valid_config, source, classifier)

        assert session.config.window().frame_count == 2
        assert session.heuristic.config.brightness_cutoff == 200.0
        assert session.source is source
