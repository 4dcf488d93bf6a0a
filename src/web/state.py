import threading

import numpy as np


class FrameBuffer:
    """
    Latest annotated scan frame, shared between the scan task and the
    web routes that preview it.
    """

    def __init__(self):
        self._lock = threading.Lock()
        self._frame = None

    def on_frame(self, frame_data, annotated):
        """ScanSession callback."""
        frame = annotated if annotated is not None else frame_data.frame
        self.set_frame(frame)

    def set_frame(self, frame: np.ndarray):
        with self._lock:
            self._frame = frame.copy()

    def get_frame(self):
        with self._lock:
            if self._frame is None:
                return None
            return self._frame.copy()
