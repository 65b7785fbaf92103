import numpy as np

from eye_detection.processing.kernels import canny_kernel


class EdgeDetector:
    """
    Canny edge detection on a fixed-size grayscale frame.

    Scratch buffers are allocated once for the session resolution; only the returned
    edge map is a fresh array per call.
    """

    def __init__(self, resolution: tuple[int, int]):
        width, height = resolution
        self.resolution = (int(width), int(height))
        shape = (self.resolution[1], self.resolution[0])

        self._blurred = np.zeros(shape, dtype=np.float64)
        self._magnitude = np.zeros(shape, dtype=np.float64)
        self._direction = np.zeros(shape, dtype=np.uint8)
        self._classes = np.zeros(shape, dtype=np.uint8)
        self._stack = np.zeros(shape[0] * shape[1], dtype=np.int64)
        self._out = np.zeros(shape, dtype=np.uint8)

    def compile(self):
        """Force kernel compilation on the session buffers (one blank frame)."""
        self.execute_edge_detection(np.zeros_like(self._out), 0.0, 0.0)

    def execute_edge_detection(self, gray, low: float, high: float) -> np.ndarray:
        """
        Parameters
        ----------
        gray : np.ndarray | sequence of uint8
            (H, W) grayscale frame, or the same pixels flattened row by row.
        low, high : float
            Hysteresis thresholds on the Sobel magnitude. low > high is allowed and
            simply leaves only the strong edges.

        Returns
        -------
        np.ndarray
            uint8 edge map (0 / 255) with the same shape as the input.
        """
        pixels = np.asarray(gray, dtype=np.uint8)
        flat_input = pixels.ndim == 1
        width, height = self.resolution

        if pixels.size != width * height:
            raise ValueError(
                f"Expected {width}x{height} = {width * height} pixels, got {pixels.size}"
            )
        pixels = np.ascontiguousarray(pixels.reshape(height, width))

        canny_kernel(pixels, float(low), float(high),
                     self._blurred, self._magnitude, self._direction,
                     self._classes, self._stack, self._out)

        result = self._out.copy()
        return result.ravel() if flat_input else result
