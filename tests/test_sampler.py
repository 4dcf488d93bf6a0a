"""
Tests for the frame sampler.
"""

import asyncio

import pytest

from models.config import SessionWindow
from models.errors import SourceUnavailable
from pipeline.sampler import FrameSampler
from fakes import MockObservationSource, RecordingSleep, SlowSource


async def _collect(sampler):
    return [fd async for fd in sampler.frames()]


class TestFrameSampler:
    def test_yields_exactly_frame_count(self):
        source = MockObservationSource(max_frames=100)
        source.open()
        sleep = RecordingSleep()
        sampler = FrameSampler(source, SessionWindow.from_rate(2.0, 4), sleep=sleep)

        frames = asyncio.run(_collect(sampler))

        assert [fd.frame_index for fd in frames] == list(range(1, 9))
        assert source.reads == 8

    def test_paces_between_frames_only(self):
        source = MockObservationSource()
        source.open()
        sleep = RecordingSleep()
        sampler = FrameSampler(source, SessionWindow(frame_count=8, inter_frame_delay=0.25), sleep=sleep)

        asyncio.run(_collect(sampler))

        assert sleep.delays == [0.25] * 7

    def test_single_frame_window_never_sleeps(self):
        source = MockObservationSource()
        source.open()
        sleep = RecordingSleep()
        sampler = FrameSampler(source, SessionWindow.from_rate(0.1, 1), sleep=sleep)

        frames = asyncio.run(_collect(sampler))

        assert len(frames) == 1
        assert sleep.delays == []

    def test_missing_frame_raises(self):
        source = MockObservationSource(max_frames=3)
        source.open()
        sampler = FrameSampler(source, SessionWindow(frame_count=8, inter_frame_delay=0.0), sleep=RecordingSleep())

        with pytest.raises(SourceUnavailable):
            asyncio.run(_collect(sampler))
        assert source.reads == 4

    def test_closed_source_raises(self):
        source = MockObservationSource()
        sampler = FrameSampler(source, SessionWindow(frame_count=2, inter_frame_delay=0.0), sleep=RecordingSleep())

        with pytest.raises(SourceUnavailable):
            asyncio.run(_collect(sampler))
        assert source.reads == 0

    def test_source_closed_mid_window(self):
        source = MockObservationSource()
        source.open()

        async def close_then_sleep(seconds):
            source.close()

        sampler = FrameSampler(source, SessionWindow(frame_count=4, inter_frame_delay=0.1), sleep=close_then_sleep)

        with pytest.raises(SourceUnavailable):
            asyncio.run(_collect(sampler))
        assert source.reads == 1

    def test_not_restartable(self):
        source = MockObservationSource()
        source.open()
        sampler = FrameSampler(source, SessionWindow(frame_count=1, inter_frame_delay=0.0), sleep=RecordingSleep())

        asyncio.run(_collect(sampler))

        with pytest.raises(RuntimeError, match="restarted"):
            asyncio.run(_collect(sampler))

    def test_device_error_becomes_source_unavailable(self):
        source = MockObservationSource(fail_on=3)
        source.open()
        sampler = FrameSampler(source, SessionWindow(frame_count=8, inter_frame_delay=0.0), sleep=RecordingSleep())

        with pytest.raises(SourceUnavailable) as exc_info:
            asyncio.run(_collect(sampler))

        assert isinstance(exc_info.value.__cause__, OSError)
        assert source.reads == 3

    def test_cancel_waits_for_read_in_flight(self):
        async def run():
            source = SlowSource(delay=0.1)
            source.open()
            sampler = FrameSampler(source, SessionWindow(frame_count=4, inter_frame_delay=0.0), sleep=RecordingSleep())
            task = asyncio.create_task(_collect(sampler))
            await asyncio.sleep(0.02)

            task.cancel()
            with pytest.raises(asyncio.CancelledError):
                await task
            return source

        source = asyncio.run(run())

        assert source.in_flight == 0
        assert source.reads == 1
