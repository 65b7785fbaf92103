import numpy as np
import pytest

from eye_detection.processing import processing_context
from eye_detection.processing.canny_edge import EdgeDetector
from eye_detection.processing.ellipse_fit import EllipseFitter
from eye_detection.processing.processing_context import ComputeDeviceError


def test_setup_hands_out_kernels_for_the_session_resolution():
    ctx = processing_context.setup((64, 48), verbose=True)
    assert ctx.device.name == "cpu"
    assert ctx.resolution == (64, 48)

    canny = ctx.setup_canny_edge_detection()
    assert isinstance(canny, EdgeDetector)
    assert canny.resolution == (64, 48)
    out = canny.execute_edge_detection(np.zeros((48, 64), dtype=np.uint8), 60, 120)
    assert out.shape == (48, 64)

    fit = ctx.setup_ellipse_detection(2.0, 30)
    assert isinstance(fit, EllipseFitter)
    assert fit.max_contour_samples == 30
    assert fit.min_radius_scale == 2.0


def test_buffers_are_reused_across_frames():
    canny = processing_context.setup((32, 32)).setup_canny_edge_detection()
    scratch = canny._magnitude
    for value in (0, 50, 200):
        canny.execute_edge_detection(np.full((32, 32), value, dtype=np.uint8), 10, 20)
    assert canny._magnitude is scratch


@pytest.mark.parametrize("device", ["cuda", "opencl", ""])
def test_unknown_device_is_fatal(device):
    with pytest.raises(ComputeDeviceError):
        processing_context.setup((64, 48), device=device)


@pytest.mark.parametrize("resolution", [(0, 10), (10, -1)])
def test_invalid_resolution(resolution):
    with pytest.raises(ValueError):
        processing_context.setup(resolution)


if __name__ == "__main__":
    pytest.main([__file__])
