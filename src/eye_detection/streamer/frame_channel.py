import queue
import threading

import numpy as np


class FrameChannel:
    """
    Bounded single-producer / single-consumer handoff for frames.

    send() never blocks: when the channel is full the oldest queued frame is dropped,
    so the consumer always works on the newest frames in arrival order. poll() never
    blocks either; it returns None when no frame is ready.
    """

    def __init__(self, maxsize: int = 2):
        if maxsize < 1:
            raise ValueError("maxsize must be >= 1")
        self._queue: queue.Queue[np.ndarray] = queue.Queue(maxsize=maxsize)
        self._closed = threading.Event()
        self._send_lock = threading.Lock()
        self.dropped = 0

    @property
    def closed(self) -> bool:
        return self._closed.is_set()

    def close(self):
        self._closed.set()

    def send(self, frame: np.ndarray) -> bool:
        """Returns False once the channel is closed (the frame is not queued)."""
        if self.closed:
            return False
        with self._send_lock:
            # If queue is full, drop the old one
            if self._queue.full():
                try:
                    self._queue.get_nowait()
                    self.dropped += 1
                except queue.Empty:
                    pass
            try:
                self._queue.put_nowait(frame)
            except queue.Full:
                # another sender won the slot
                self.dropped += 1
        return True

    def poll(self) -> np.ndarray | None:
        try:
            return self._queue.get_nowait()
        except queue.Empty:
            return None

    def recv(self, timeout: float | None = None) -> np.ndarray | None:
        """Blocking receive, None on timeout."""
        try:
            return self._queue.get(timeout=timeout)
        except queue.Empty:
            return None

    def qsize(self) -> int:
        return self._queue.qsize()
