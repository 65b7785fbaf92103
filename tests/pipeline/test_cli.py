import pytest

pytest.importorskip("PyQt5.QtWidgets")

from eye_detection.main import build_arg_parser, setup_streamer
from eye_detection.streamer.base_stream import StreamSetupError
from eye_detection.streamer.synthetic_stream import SyntheticEyeStream


def test_defaults():
    args = build_arg_parser().parse_args([])
    assert args.source == "synthetic"
    assert args.device == "cpu"
    assert args.min_radius_scale == 2.0
    assert args.max_contour_samples == 30
    assert args.queue_size == 2


def test_synthetic_source_uses_requested_size():
    args = build_arg_parser().parse_args(["--width", "120", "--height", "90", "--fps", "0"])
    stream = setup_streamer(args)
    assert isinstance(stream, SyntheticEyeStream)
    assert stream.get_resolution() == (120, 90)
    assert stream.fps is None


def test_dummy_source_without_image_fails(tmp_path):
    args = build_arg_parser().parse_args(["--source", "dummy", "--image", str(tmp_path / "none.jpg")])
    with pytest.raises(StreamSetupError):
        setup_streamer(args)


def test_unknown_source_is_rejected():
    with pytest.raises(SystemExit):
        build_arg_parser().parse_args(["--source", "usb"])


if __name__ == "__main__":
    pytest.main([__file__])
