from pathlib import Path

import cv2
import numpy as np

from eye_detection.logging_utils.logging_setup import get_logger
from eye_detection.streamer.base_stream import BaseStream, StreamSetupError

log = get_logger(__name__)

DEFAULT_ASSET = "eye.jpg"


def find_asset(name: str, start: Path | None = None, parents: int = 3, kids: int = 3) -> Path | None:
    """
    Look for assets/<name> in `start` and up to `parents` parent directories, then in
    subdirectories of `start` up to `kids` levels deep.
    """
    start = Path(start or Path.cwd()).resolve()

    for folder in [start, *list(start.parents)[:parents]]:
        candidate = folder / "assets" / name
        if candidate.is_file():
            return candidate

    frontier = [start]
    for _ in range(kids):
        next_frontier = []
        for folder in frontier:
            for sub in sorted(p for p in folder.iterdir() if p.is_dir()):
                candidate = sub / "assets" / name
                if candidate.is_file():
                    return candidate
                next_frontier.append(sub)
        frontier = next_frontier
    return None


class DummyStream(BaseStream):
    """Loops one static image forever (no camera needed)."""

    def __init__(self, image: np.ndarray, fps: float | None = 30.0, queue_size: int = 2):
        super().__init__(fps=fps, queue_size=queue_size)
        self._image = image
        self._dim = (image.shape[1], image.shape[0])

    @classmethod
    def setup(cls, image_path: str | Path | None = None, fps: float | None = 30.0,
              queue_size: int = 2) -> "DummyStream":
        path = Path(image_path) if image_path else find_asset(DEFAULT_ASSET)
        if path is None or not path.is_file():
            raise StreamSetupError(f"Image asset not found: {image_path or 'assets/' + DEFAULT_ASSET}")

        img = cv2.imread(str(path), cv2.IMREAD_COLOR)
        if img is None:
            raise StreamSetupError(f"Could not read image: {path}")

        log.info(f"DummyStream using {path} ({img.shape[1]}x{img.shape[0]})")
        return cls(img, fps=fps, queue_size=queue_size)

    def get_resolution(self) -> tuple[int, int]:
        return self._dim

    def read_frame(self) -> np.ndarray:
        # each frame is handed off, so it must not alias the source image
        return self._image.copy()
