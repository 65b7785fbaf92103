"""
Live eye detection viewer.

    eye-detection --source synthetic --drift 40
    eye-detection --source dummy --image assets/eye.jpg
    eye-detection --source webcam --camera-id 0
"""
import argparse
import sys
from pathlib import Path

from PyQt5.QtWidgets import QApplication

from eye_detection.config.tuning_config import TUNING_TOML_PATH, load_tuning_config
from eye_detection.config.tuning_config_gui import TuningConfigDialog
from eye_detection.frame_loop import FrameLoop
from eye_detection.gui.eye_detection_viewer import EyeDetectionViewer
from eye_detection.helpers.thread_safe_config import ThreadSafeConfig
from eye_detection.logging_utils.logging_setup import get_logger, start_logging, install_crash_hooks
from eye_detection.processing import processing_context
from eye_detection.processing.contour_processor import ContourProcessor
from eye_detection.processing.processing_context import ComputeDeviceError
from eye_detection.streamer.base_stream import BaseStream, StreamSetupError
from eye_detection.streamer.dummy_stream import DummyStream
from eye_detection.streamer.synthetic_stream import SyntheticEyeStream
from eye_detection.streamer.webcam_stream import WebcamStream

log = get_logger(__name__)


def build_arg_parser() -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(description="Real-time pupil detection with live tuning")
    ap.add_argument("--source", choices=["synthetic", "dummy", "webcam"], default="synthetic")
    ap.add_argument("--image", type=str, default=None,
                    help="Image looped by the dummy source (default: assets/eye.jpg)")
    ap.add_argument("--camera-id", type=int, default=0)
    ap.add_argument("--width", type=int, default=640)
    ap.add_argument("--height", type=int, default=480)
    ap.add_argument("--fps", type=float, default=30.0, help="Producer rate, 0 = as fast as possible")
    ap.add_argument("--drift", type=float, default=0.0, help="Synthetic pupil motion radius (px)")
    ap.add_argument("--queue-size", type=int, default=2)
    ap.add_argument("--config", type=str, default=str(TUNING_TOML_PATH), help="Tuning TOML file")
    ap.add_argument("--device", type=str, default="cpu")
    ap.add_argument("--min-radius-scale", type=float, default=2.0)
    ap.add_argument("--max-contour-samples", type=int, default=30)
    ap.add_argument("--verbose", action="store_true")
    return ap


def setup_streamer(args) -> BaseStream:
    fps = args.fps if args.fps > 0 else None
    if args.source == "webcam":
        return WebcamStream.setup(camera_id=args.camera_id, width=args.width, height=args.height,
                                  fps=fps, queue_size=args.queue_size)
    if args.source == "dummy":
        return DummyStream.setup(image_path=args.image, fps=fps, queue_size=args.queue_size)
    return SyntheticEyeStream.setup(width=args.width, height=args.height, drift=args.drift,
                                    fps=fps, queue_size=args.queue_size)


def main(argv=None) -> int:
    args = build_arg_parser().parse_args(argv)

    start_logging()
    install_crash_hooks()

    try:
        streamer = setup_streamer(args)
        dim = streamer.get_resolution()
        processor = processing_context.setup(dim, device=args.device, verbose=args.verbose)
        canny_edge = processor.setup_canny_edge_detection()
        ellipse_fit = processor.setup_ellipse_detection(args.min_radius_scale, args.max_contour_samples)
    except (StreamSetupError, ComputeDeviceError, ValueError) as e:
        log.critical(f"Setup failed: {e}")
        return 1

    tuning = ThreadSafeConfig(load_tuning_config(Path(args.config), dim))

    app = QApplication(sys.argv[:1])

    handle, channel = streamer.fetch_images()
    frame_loop = FrameLoop(channel, canny_edge, ContourProcessor(), ellipse_fit, tuning)

    dialog = TuningConfigDialog(cfg_holder=tuning, resolution=dim, toml_path=Path(args.config))
    viewer = EyeDetectionViewer(frame_loop, handle, dim, tuning_dialog=dialog)
    viewer.show()
    dialog.show()

    exit_code = app.exec_()
    handle.stop()
    log.info("Done")
    return exit_code


if __name__ == "__main__":
    sys.exit(main())
