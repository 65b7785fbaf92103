# base_stream.py

import threading
import time
from abc import ABC, abstractmethod

import numpy as np

from eye_detection.logging_utils.logging_setup import get_logger
from eye_detection.streamer.frame_channel import FrameChannel

log = get_logger(__name__)


class StreamSetupError(RuntimeError):
    """The frame source could not be opened (no camera, missing asset...)."""


class StreamHandle:
    """Running producer thread plus its cooperative stop signal."""

    def __init__(self, thread: threading.Thread, stop_event: threading.Event, channel: FrameChannel):
        self.thread = thread
        self._stop_event = stop_event
        self._channel = channel

    def is_alive(self) -> bool:
        return self.thread.is_alive()

    def stop(self, timeout: float = 2.0):
        self._stop_event.set()
        self._channel.close()
        if self.thread.is_alive():
            self.thread.join(timeout)
        if self.thread.is_alive():
            log.warning(f"{self.thread.name} did not stop within {timeout}s")


class BaseStream(ABC):
    """
    A frame source with a fixed resolution.

    fetch_images() starts a producer thread that pushes frames into a bounded
    FrameChannel and returns (handle, channel). Subclasses implement read_frame().
    """

    def __init__(self, fps: float | None = None, queue_size: int = 2):
        self.fps = fps
        self.queue_size = queue_size

    @classmethod
    @abstractmethod
    def setup(cls, *args, **kwargs) -> "BaseStream":
        pass

    @abstractmethod
    def get_resolution(self) -> tuple[int, int]:
        pass

    @abstractmethod
    def read_frame(self) -> np.ndarray | None:
        """Next frame, or None when the source is exhausted / failed."""
        pass

    def release(self):
        """Free the underlying device. Called from the producer thread on exit."""
        pass

    def fetch_images(self) -> tuple[StreamHandle, FrameChannel]:
        channel = FrameChannel(maxsize=self.queue_size)
        stop_event = threading.Event()
        thread = threading.Thread(
            target=self._produce,
            args=(channel, stop_event),
            name=f"{type(self).__name__}Producer",
            daemon=True,
        )
        thread.start()
        log.info(f"{type(self).__name__} streaming {self.get_resolution()} "
                 f"at {self.fps if self.fps else 'max'} fps")
        return StreamHandle(thread, stop_event, channel), channel

    def _produce(self, channel: FrameChannel, stop_event: threading.Event):
        name = type(self).__name__
        width, height = self.get_resolution()
        delay = 1.0 / self.fps if self.fps else 0.0
        n_frames = 0
        try:
            while not stop_event.is_set():
                t0 = time.perf_counter()

                frame = self.read_frame()
                if frame is None:
                    log.warning(f"[{name}] No more images, producer stops")
                    break
                if frame.shape[:2] != (height, width):
                    log.error(f"[{name}] Frame shape {frame.shape[:2]} does not match "
                              f"resolution {width}x{height}, producer stops")
                    break
                if not channel.send(frame):
                    log.info(f"[{name}] Channel closed, producer stops")
                    break
                n_frames += 1

                if delay:
                    stop_event.wait(max(0.0, delay - (time.perf_counter() - t0)))
        finally:
            self.release()
            log.info(f"[{name}] Producer ended after {n_frames} frames ({channel.dropped} dropped)")
