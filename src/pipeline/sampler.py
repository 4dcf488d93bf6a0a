"""
Frame sampler for a fixed scan window.
"""

from __future__ import annotations

import asyncio
import logging
from typing import AsyncIterator, Awaitable, Callable, Optional

from models.config import SessionWindow
from models.errors import SourceUnavailable
from models.frame import FrameData
from observation.base import ObservationSource

Sleeper = Callable[[float], Awaitable[None]]


class FrameSampler:
    """
    Pulls exactly `window.frame_count` frames from a live source.

    Each frame is read at the moment it is requested, and consecutive frames
    are `window.inter_frame_delay` seconds apart. A sampler is single use.

    Example:
        sampler = FrameSampler(source, SessionWindow.from_rate(2.0, 4))
        async for frame_data in sampler.frames():
            ...
    """

    def __init__(self, source: ObservationSource, window: SessionWindow, sleep: Sleeper = asyncio.sleep):
        self._source = source
        self.window = window
        self._sleep = sleep
        self._started = False

    async def frames(self) -> AsyncIterator[FrameData]:
        if self._started:
            raise RuntimeError("FrameSampler cannot be restarted; create a new one per scan")
        self._started = True

        for i in range(self.window.frame_count):
            if i > 0:
                await self._sleep(self.window.inter_frame_delay)
            if not self._source.is_open:
                raise SourceUnavailable(f"Source {self._source.source_id} is closed")

            frame_data = await self._read()
            if frame_data is None:
                logging.error(
                    f"Source {self._source.source_id} returned no frame "
                    f"({i + 1}/{self.window.frame_count})"
                )
                raise SourceUnavailable(
                    f"Source {self._source.source_id} stopped delivering frames"
                )
            yield frame_data

    async def _read(self) -> Optional[FrameData]:
        """
        Read one frame on a worker thread.

        If the scan is cancelled mid-read, the worker keeps the device until
        it returns, so the cancellation is held back until then. Any error
        from the device surfaces as SourceUnavailable.
        """
        read = asyncio.ensure_future(asyncio.to_thread(self._source.read))
        try:
            return await asyncio.shield(read)
        except asyncio.CancelledError:
            await asyncio.wait([read])
            if not read.cancelled() and read.exception() is not None:
                logging.warning(f"Read on {self._source.source_id} failed after cancel: {read.exception()}")
            raise
        except Exception as e:
            logging.error(f"Source {self._source.source_id} read failed: {e}")
            raise SourceUnavailable(f"Source {self._source.source_id} read failed: {e}") from e
