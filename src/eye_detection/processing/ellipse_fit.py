from typing import Sequence

import numpy as np

from eye_detection.processing.contour_processor import Contour
from eye_detection.processing.ellipse_candidate import EllipseCandidate
from eye_detection.processing.kernels import fit_circle_kernel


class EllipseFitter:
    """
    Fits one circle per contour.

    min_radius_scale:
        A refined fit is only trusted when its radius stays within
        [r0 / scale, r0 * scale] of the centroid estimate r0; otherwise the centroid
        estimate is returned. Must be >= 1, or <= 0 to disable the check.
    max_contour_samples:
        Contours are subsampled to at most this many evenly spaced points before the
        fit (<= 0 uses every point).

    Buffers are sized once for the session resolution (a frame cannot yield more
    contour points than pixels); larger inputs are processed in batches.
    """

    def __init__(self, resolution: tuple[int, int], min_radius_scale: float = 2.0,
                 max_contour_samples: int = 30):
        if 0.0 < min_radius_scale < 1.0:
            raise ValueError(f"min_radius_scale must be >= 1 (or <= 0 to disable), got {min_radius_scale}")

        width, height = resolution
        capacity = max(int(width) * int(height), 1)

        self.resolution = (int(width), int(height))
        self.min_radius_scale = float(min_radius_scale)
        self.max_contour_samples = int(max_contour_samples)

        self._points = np.zeros((capacity, 2), dtype=np.int32)
        self._offsets = np.zeros(capacity + 1, dtype=np.int64)
        self._out = np.zeros((capacity, 3), dtype=np.float64)

    def compile(self):
        """Force kernel compilation with a single one-point contour."""
        self.execute_ellipse_fit([Contour(np.zeros((1, 2), dtype=np.int32))])

    def _sample(self, points: np.ndarray) -> np.ndarray:
        n = len(points)
        m = self.max_contour_samples
        if m <= 0 or n <= m:
            return points
        idx = (np.arange(m) * n) // m
        return points[idx]

    def _run_batch(self, batch: list[np.ndarray], results: list[EllipseCandidate]):
        n_points = 0
        self._offsets[0] = 0
        for i, pts in enumerate(batch):
            self._points[n_points:n_points + len(pts)] = pts
            n_points += len(pts)
            self._offsets[i + 1] = n_points

        fit_circle_kernel(self._points, self._offsets, len(batch),
                          self.min_radius_scale, self._out)

        for cx, cy, r in self._out[:len(batch)]:
            results.append(EllipseCandidate(
                center_x=max(int(round(cx)), 0),
                center_y=max(int(round(cy)), 0),
                radius=max(float(r), 0.0),
            ))

    def execute_ellipse_fit(self, contours: Sequence[Contour]) -> list[EllipseCandidate] | None:
        """
        One candidate per contour, in input order. None only for an empty input.
        Quality filtering (radius range, eye window) is left to the caller.
        """
        if len(contours) == 0:
            return None

        capacity = len(self._out)
        results: list[EllipseCandidate] = []
        batch: list[np.ndarray] = []
        batch_points = 0

        for contour in contours:
            pts = contour.points if isinstance(contour, Contour) else Contour(contour).points
            pts = self._sample(pts)
            if len(pts) > capacity:
                # only reachable with sampling disabled and oversized input
                pts = pts[(np.arange(capacity) * len(pts)) // capacity]
            if batch and (len(batch) == capacity or batch_points + len(pts) > capacity):
                self._run_batch(batch, results)
                batch, batch_points = [], 0
            batch.append(pts)
            batch_points += len(pts)

        self._run_batch(batch, results)
        return results
