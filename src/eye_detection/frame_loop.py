from dataclasses import dataclass, field

import numpy as np

from eye_detection.config.tuning_config import TuningConfig
from eye_detection.helpers.fps_counter import FpsCounter
from eye_detection.helpers.image_helpers import to_grayscale, to_rgba, paint_contours
from eye_detection.helpers.thread_safe_config import ThreadSafeConfig
from eye_detection.logging_utils.logging_setup import get_logger
from eye_detection.processing.canny_edge import EdgeDetector
from eye_detection.processing.contour_processor import ContourProcessor, Contour
from eye_detection.processing.ellipse_candidate import EllipseCandidate
from eye_detection.processing.ellipse_fit import EllipseFitter
from eye_detection.streamer.frame_channel import FrameChannel

log = get_logger(__name__)


@dataclass
class FrameResult:
    """What the render collaborator gets for one processed frame."""
    image: np.ndarray                                   # RGBA (H, W, 4)
    candidates: list[EllipseCandidate]                  # accepted by the eye window
    all_candidates: list[EllipseCandidate] = field(default_factory=list)
    contours: list[Contour] = field(default_factory=list)
    fps: int = 0
    frame_index: int = 0


def filter_candidates(candidates: list[EllipseCandidate] | None,
                      tuning: TuningConfig) -> list[EllipseCandidate]:
    """Radius strictly inside (min, max), center strictly within the eye window on both axes."""
    if not candidates:
        return []
    eye_x, eye_y = tuning.eye_pos
    thr = tuning.eye_pos_threshold
    return [
        c for c in candidates
        if tuning.eye_min_radius < c.radius < tuning.eye_max_radius
        and abs(c.center_x - eye_x) < thr
        and abs(c.center_y - eye_y) < thr
    ]


class FrameLoop:
    """
    One tick: poll a frame, snapshot the tuning, edges -> contours -> fit -> filter.

    tick() never blocks; without a new frame it returns the previous result so the
    viewer keeps drawing.
    """

    def __init__(self,
                 channel: FrameChannel,
                 edge_detector: EdgeDetector,
                 contour_processor: ContourProcessor,
                 ellipse_fitter: EllipseFitter,
                 tuning: ThreadSafeConfig[TuningConfig]):
        self.channel = channel
        self.edge_detector = edge_detector
        self.contour_processor = contour_processor
        self.ellipse_fitter = ellipse_fitter
        self.tuning = tuning

        self._fps_counter = FpsCounter()
        self._frame_index = 0
        self._last_frame: np.ndarray | None = None
        self.last_result: FrameResult | None = None

    def process_frame(self, frame: np.ndarray, tuning: TuningConfig,
                      debug_view: bool = False) -> FrameResult:
        gray = to_grayscale(frame)
        edges = self.edge_detector.execute_edge_detection(gray, tuning.low_threshold, tuning.high_threshold)
        contours = self.contour_processor.find_contours(edges, tuning.size_filter)
        all_candidates = self.ellipse_fitter.execute_ellipse_fit(contours) or []
        accepted = filter_candidates(all_candidates, tuning)

        if debug_view:
            image = paint_contours(to_rgba(edges), contours)
        else:
            image = to_rgba(frame)

        return FrameResult(
            image=image,
            candidates=accepted,
            all_candidates=all_candidates,
            contours=contours,
        )

    def tick(self, debug_view: bool = False) -> FrameResult | None:
        frame = self.channel.poll()
        if frame is None:
            return self.last_result

        width, height = self.edge_detector.resolution
        if frame.shape[:2] != (height, width):
            log.warning(f"Dropping frame with shape {frame.shape}, expected {width}x{height}")
            return self.last_result

        tuning = self.tuning.get()
        try:
            result = self.process_frame(frame, tuning, debug_view=debug_view)
        except ValueError as e:
            log.error(f"Frame {self._frame_index + 1} skipped: {e}")
            return self.last_result

        self._frame_index += 1
        result.fps = self._fps_counter.tick()
        result.frame_index = self._frame_index
        self._last_frame = frame
        self.last_result = result
        return result

    def refresh(self, debug_view: bool = False) -> FrameResult | None:
        """
        Reprocess the last frame with the current tuning, e.g. after the view mode
        changed while no new frames arrive. Keeps fps and frame_index.
        """
        if self._last_frame is None or self.last_result is None:
            return self.last_result

        try:
            result = self.process_frame(self._last_frame, self.tuning.get(), debug_view=debug_view)
        except ValueError as e:
            log.error(f"Refresh of frame {self._frame_index} failed: {e}")
            return self.last_result

        result.fps = self.last_result.fps
        result.frame_index = self.last_result.frame_index
        self.last_result = result
        return result
