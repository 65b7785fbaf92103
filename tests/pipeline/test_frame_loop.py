import numpy as np
import pytest

from eye_detection.config.tuning_config import TuningConfig
from eye_detection.frame_loop import FrameLoop, filter_candidates
from eye_detection.helpers.image_helpers import CONTOUR_COLOR_RGBA
from eye_detection.helpers.thread_safe_config import ThreadSafeConfig
from eye_detection.processing import processing_context
from eye_detection.processing.contour_processor import ContourProcessor
from eye_detection.processing.ellipse_candidate import EllipseCandidate
from eye_detection.streamer.frame_channel import FrameChannel
from eye_detection.streamer.synthetic_stream import make_eye_frame

DIM = (100, 100)


def eye_tuning() -> TuningConfig:
    return TuningConfig(
        low_threshold=60.0,
        high_threshold=120.0,
        size_filter=5,
        eye_pos=(50, 50),
        eye_pos_threshold=10,
        eye_min_radius=10.0,
        eye_max_radius=30.0,
    )


class CountingConfig(ThreadSafeConfig):
    def __init__(self, data_obj):
        super().__init__(data_obj)
        self.reads = 0

    def get(self):
        self.reads += 1
        return super().get()


@pytest.fixture(scope="module")
def kernels():
    ctx = processing_context.setup(DIM)
    return ctx.setup_canny_edge_detection(), ctx.setup_ellipse_detection(2.0, 30)


def make_loop(kernels, tuning=None) -> FrameLoop:
    canny, fit = kernels
    holder = tuning if tuning is not None else ThreadSafeConfig(eye_tuning())
    return FrameLoop(FrameChannel(maxsize=2), canny, ContourProcessor(), fit, holder)


def test_dark_disk_gives_one_candidate(kernels):
    loop = make_loop(kernels)
    frame = make_eye_frame(*DIM, center=(50, 50), radius=20)

    result = loop.process_frame(frame, eye_tuning())

    assert len(result.candidates) == 1
    for cand in result.candidates:
        assert abs(cand.center_x - 50) <= 1
        assert abs(cand.center_y - 50) <= 1
        assert abs(cand.radius - 20) < 1.0
    assert result.image.shape == (100, 100, 4)


def test_grayscale_frames_are_accepted(kernels):
    loop = make_loop(kernels)
    frame = make_eye_frame(*DIM, center=(50, 50), radius=20, color=False)
    assert loop.process_frame(frame, eye_tuning()).candidates


def test_same_frame_same_snapshot_same_candidates(kernels):
    loop = make_loop(kernels)
    frame = make_eye_frame(*DIM, center=(48, 52), radius=18)
    first = loop.process_frame(frame, eye_tuning())
    loop.process_frame(make_eye_frame(*DIM, center=(30, 30), radius=12), eye_tuning())
    second = loop.process_frame(frame, eye_tuning())
    assert first.candidates == second.candidates
    assert first.all_candidates == second.all_candidates


def test_disk_outside_eye_window_is_rejected(kernels):
    loop = make_loop(kernels)
    frame = make_eye_frame(*DIM, center=(25, 25), radius=15)
    result = loop.process_frame(frame, eye_tuning())
    assert result.all_candidates
    assert result.candidates == []


def test_tick_polls_without_blocking_and_reemits_last_result(kernels):
    tuning = CountingConfig(eye_tuning())
    loop = make_loop(kernels, tuning)

    assert loop.tick() is None
    assert tuning.reads == 0

    loop.channel.send(make_eye_frame(*DIM, center=(50, 50), radius=20))
    result = loop.tick()
    assert result is not None
    assert result.frame_index == 1
    assert result.fps >= 1
    assert tuning.reads == 1
    assert result.candidates

    assert loop.tick() is result
    assert tuning.reads == 1


def test_tuning_changes_apply_on_next_frame(kernels):
    holder = ThreadSafeConfig(eye_tuning())
    loop = make_loop(kernels, holder)
    frame = make_eye_frame(*DIM, center=(50, 50), radius=20)

    loop.channel.send(frame)
    assert loop.tick().candidates

    holder.update(eye_min_radius=25.0, eye_max_radius=40.0)
    loop.channel.send(frame)
    assert loop.tick().candidates == []


def test_wrong_sized_frame_is_dropped(kernels):
    loop = make_loop(kernels)
    loop.channel.send(np.zeros((50, 50, 3), dtype=np.uint8))
    assert loop.tick() is None


def test_debug_view_shows_edges_and_contours(kernels):
    loop = make_loop(kernels)
    frame = make_eye_frame(*DIM, center=(50, 50), radius=20)
    result = loop.process_frame(frame, eye_tuning(), debug_view=True)

    contour = result.contours[0]
    x, y = contour.points[0]
    assert tuple(result.image[y, x]) == CONTOUR_COLOR_RGBA
    # far from the disk the edge map is black
    assert tuple(result.image[5, 5]) == (0, 0, 0, 255)


def test_refresh_redraws_last_frame_without_new_input(kernels):
    loop = make_loop(kernels)
    assert loop.refresh(debug_view=True) is None

    loop.channel.send(make_eye_frame(*DIM, center=(50, 50), radius=20))
    shown = loop.tick()
    assert tuple(shown.image[5, 5]) == (220, 220, 220, 255)

    # producer gone: no new frame, the debug view still appears
    debug = loop.refresh(debug_view=True)
    assert debug is loop.last_result
    assert tuple(debug.image[5, 5]) == (0, 0, 0, 255)
    assert debug.frame_index == shown.frame_index
    assert debug.fps == shown.fps
    assert debug.candidates == shown.candidates
    assert loop.tick() is debug


def test_filter_bounds_are_exclusive():
    tuning = eye_tuning()
    cands = [
        EllipseCandidate(50, 50, 20.0),     # inside
        EllipseCandidate(50, 50, 10.0),     # radius == min
        EllipseCandidate(50, 50, 30.0),     # radius == max
        EllipseCandidate(60, 50, 20.0),     # dx == threshold
        EllipseCandidate(50, 41, 20.0),     # dy == 9
    ]
    assert filter_candidates(cands, tuning) == [cands[0], cands[4]]
    assert filter_candidates(None, tuning) == []


if __name__ == "__main__":
    pytest.main([__file__])
