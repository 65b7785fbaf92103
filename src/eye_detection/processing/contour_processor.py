from dataclasses import dataclass

import numpy as np

from eye_detection.processing.kernels import trace_components


@dataclass
class Contour:
    """One connected edge component; points are (x, y) in traversal order."""
    points: np.ndarray

    def __post_init__(self):
        self.points = np.asarray(self.points, dtype=np.int32).reshape(-1, 2)

    def __len__(self) -> int:
        return len(self.points)

    @property
    def xs(self) -> np.ndarray:
        return self.points[:, 0]

    @property
    def ys(self) -> np.ndarray:
        return self.points[:, 1]


class ContourProcessor:
    """
    Groups 8-connected edge pixels into contours.

    Scratch buffers are kept per frame shape and fully reset on every call, so the
    result only depends on the edge map passed in.
    """

    def __init__(self):
        self._shape: tuple[int, int] | None = None
        self._visited = None
        self._order = None
        self._offsets = None
        self._stack = None

    def _ensure_buffers(self, shape: tuple[int, int]):
        if self._shape == shape:
            return
        n = shape[0] * shape[1]
        self._visited = np.zeros(shape, dtype=np.uint8)
        self._order = np.zeros(n, dtype=np.int64)
        self._offsets = np.zeros(n + 1, dtype=np.int64)
        self._stack = np.zeros(n, dtype=np.int64)
        self._shape = shape

    def find_contours(self, edge_map: np.ndarray, size_filter: int) -> list[Contour]:
        edges = np.ascontiguousarray(edge_map, dtype=np.uint8)
        if edges.ndim != 2:
            raise ValueError(f"Edge map must be 2D, got shape {edges.shape}")
        self._ensure_buffers(edges.shape)

        n_components = trace_components(edges, self._visited, self._order,
                                        self._offsets, self._stack)
        if n_components == 0:
            return []

        n_points = self._offsets[n_components]
        ys, xs = np.divmod(self._order[:n_points], edges.shape[1])
        points = np.stack([xs, ys], axis=1).astype(np.int32)

        min_size = max(int(size_filter), 0)
        contours = []
        for i in range(n_components):
            start, end = self._offsets[i], self._offsets[i + 1]
            if end - start < min_size:
                continue
            contours.append(Contour(points[start:end]))
        return contours
