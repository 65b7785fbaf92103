"""
Compute-device context for the per-frame kernels.

The device is Numba's native JIT target: kernels are compiled to machine code once,
run with the GIL released, and reuse buffers allocated for the session resolution.
"""
from __future__ import annotations

import platform
from dataclasses import dataclass

import numba
from numba.core.errors import NumbaError

from eye_detection.logging_utils.logging_setup import get_logger
from eye_detection.processing.canny_edge import EdgeDetector
from eye_detection.processing.ellipse_fit import EllipseFitter

log = get_logger(__name__)

SUPPORTED_DEVICES = ("cpu",)


class ComputeDeviceError(RuntimeError):
    """No compatible compute device could be set up."""


@dataclass(frozen=True)
class ComputeDevice:
    name: str
    backend: str
    threads: int
    processor: str

    def __str__(self):
        return f"{self.name} ({self.backend}, {self.threads} threads, {self.processor or 'unknown cpu'})"


def _find_device(device: str) -> ComputeDevice:
    if device not in SUPPORTED_DEVICES:
        raise ComputeDeviceError(
            f"No compatible compute device '{device}' (supported: {', '.join(SUPPORTED_DEVICES)})"
        )
    return ComputeDevice(
        name=device,
        backend=f"numba {numba.__version__}",
        threads=int(numba.config.NUMBA_NUM_THREADS),
        processor=platform.processor() or platform.machine(),
    )


class ProcessingContext:
    """Owns the device handle and hands out kernels bound to the session resolution."""

    def __init__(self, device: ComputeDevice, resolution: tuple[int, int]):
        self.device = device
        self.resolution = resolution

    def setup_canny_edge_detection(self) -> EdgeDetector:
        detector = EdgeDetector(self.resolution)
        self._compile("canny edge detection", detector.compile)
        return detector

    def setup_ellipse_detection(self, min_radius_scale: float = 2.0,
                                max_contour_samples: int = 30) -> EllipseFitter:
        fitter = EllipseFitter(self.resolution,
                               min_radius_scale=min_radius_scale,
                               max_contour_samples=max_contour_samples)
        self._compile("ellipse fit", fitter.compile)
        return fitter

    def _compile(self, kernel_name: str, compile_fn):
        try:
            compile_fn()
        except NumbaError as e:
            raise ComputeDeviceError(f"Could not compile {kernel_name} kernel on {self.device}: {e}") from e
        log.debug(f"Kernel '{kernel_name}' ready on {self.device.name}")


def setup(resolution: tuple[int, int], device: str = "cpu", verbose: bool = False) -> ProcessingContext:
    """
    Raises ComputeDeviceError when the device is unavailable and ValueError for a
    resolution that is not two positive integers.
    """
    width, height = resolution
    if int(width) <= 0 or int(height) <= 0:
        raise ValueError(f"Invalid resolution {resolution}")

    compute_device = _find_device(device)
    if verbose:
        log.info(f"Compute device: {compute_device}")
        log.info(f"Session resolution: {int(width)}x{int(height)}")

    return ProcessingContext(compute_device, (int(width), int(height)))
