import math

import cv2
import numpy as np

from eye_detection.streamer.base_stream import BaseStream


def make_eye_frame(width: int, height: int, center: tuple[int, int], radius: int,
                   pupil_value: int = 20, background_value: int = 220,
                   color: bool = True) -> np.ndarray:
    """Dark filled disk on a uniform bright background (BGR if color, else grayscale)."""
    img = np.full((height, width), background_value, dtype=np.uint8)
    cv2.circle(img, (int(center[0]), int(center[1])), int(radius), int(pupil_value), thickness=-1)
    if color:
        return cv2.cvtColor(img, cv2.COLOR_GRAY2BGR)
    return img


class SyntheticEyeStream(BaseStream):
    """
    Renders a pupil-like disk that slowly circles around the frame center.
    drift=0 keeps the pupil still.
    """

    def __init__(self, width: int = 640, height: int = 480, radius: int | None = None,
                 drift: float = 0.0, fps: float | None = 30.0, queue_size: int = 2):
        super().__init__(fps=fps, queue_size=queue_size)
        self._dim = (int(width), int(height))
        self.radius = int(radius) if radius else min(width, height) // 6
        self.drift = float(drift)
        self._tick = 0

    @classmethod
    def setup(cls, width: int = 640, height: int = 480, radius: int | None = None,
              drift: float = 0.0, fps: float | None = 30.0, queue_size: int = 2) -> "SyntheticEyeStream":
        return cls(width, height, radius=radius, drift=drift, fps=fps, queue_size=queue_size)

    def get_resolution(self) -> tuple[int, int]:
        return self._dim

    def read_frame(self) -> np.ndarray:
        width, height = self._dim
        phase = self._tick * 0.05
        cx = width / 2 + self.drift * math.cos(phase)
        cy = height / 2 + self.drift * math.sin(phase)
        self._tick += 1
        return make_eye_frame(width, height, (round(cx), round(cy)), self.radius)
