import platform

import cv2
import numpy as np

from eye_detection.logging_utils.logging_setup import get_logger
from eye_detection.streamer.base_stream import BaseStream, StreamSetupError

log = get_logger(__name__)


class WebcamStream(BaseStream):
    """OpenCV VideoCapture source. The resolution reported by the device is fixed at setup."""

    def __init__(self, cap: cv2.VideoCapture, fps: float | None = None, queue_size: int = 2):
        super().__init__(fps=fps, queue_size=queue_size)
        self._cap = cap
        self._dim = (int(cap.get(cv2.CAP_PROP_FRAME_WIDTH)),
                     int(cap.get(cv2.CAP_PROP_FRAME_HEIGHT)))

    @classmethod
    def setup(cls, camera_id: int = 0, width: int = 640, height: int = 480,
              fps: float | None = None, queue_size: int = 2) -> "WebcamStream":
        if platform.system().lower() == "windows":
            # DirectShow backend on Windows
            cap = cv2.VideoCapture(camera_id, cv2.CAP_DSHOW)
        else:
            cap = cv2.VideoCapture(camera_id)

        if not cap.isOpened():
            cap.release()
            raise StreamSetupError(f"Cannot open webcam index {camera_id}")

        cap.set(cv2.CAP_PROP_FRAME_WIDTH, width)
        cap.set(cv2.CAP_PROP_FRAME_HEIGHT, height)

        ok, frame = cap.read()
        if not ok or frame is None:
            cap.release()
            raise StreamSetupError(f"Webcam {camera_id} opened but delivers no frames")

        stream = cls(cap, fps=fps, queue_size=queue_size)
        log.info(f"Webcam {camera_id} opened at {stream.get_resolution()}")
        return stream

    def get_resolution(self) -> tuple[int, int]:
        return self._dim

    def read_frame(self) -> np.ndarray | None:
        ok, frame = self._cap.read()
        if not ok:
            log.error("Webcam read failed")
            return None
        return frame

    def release(self):
        self._cap.release()
