from typing import Iterable

import cv2
import numpy as np

from eye_detection.processing.contour_processor import Contour
from eye_detection.processing.ellipse_candidate import EllipseCandidate

CANDIDATE_COLOR_RGBA = (255, 0, 0, 255)   # red
CONTOUR_COLOR_RGBA = (0, 255, 0, 255)     # green
FPS_COLOR_RGBA = (74, 173, 79, 255)


def ensure_uint8(image: np.ndarray) -> np.ndarray:
    """
    Convert any image (binary, float, int) to uint8 format in range [0, 255].

    - Binary {0,1} / bool images become {0,255}.
    - Float or other numeric types are normalized to 0–255.
    - uint8 images are returned unchanged.
    """
    if image is None:
        raise ValueError("Input image is None")

    if image.dtype == np.uint8:
        return image

    if image.dtype == np.bool_ or np.array_equal(np.unique(image), [0, 1]):
        return image.astype(np.uint8) * 255

    image_norm = cv2.normalize(image, None, 0, 255, cv2.NORM_MINMAX)
    return image_norm.astype(np.uint8)


def to_grayscale(frame: np.ndarray) -> np.ndarray:
    """BGR (OpenCV order) or grayscale frame -> contiguous (H, W) uint8."""
    frame = ensure_uint8(frame)
    if frame.ndim == 2:
        return np.ascontiguousarray(frame)
    if frame.ndim == 3 and frame.shape[2] == 3:
        return cv2.cvtColor(frame, cv2.COLOR_BGR2GRAY)
    if frame.ndim == 3 and frame.shape[2] == 4:
        return cv2.cvtColor(frame, cv2.COLOR_BGRA2GRAY)
    raise ValueError(f"Unsupported image shape: {frame.shape}")


def to_rgba(frame: np.ndarray) -> np.ndarray:
    """Grayscale or BGR frame -> new (H, W, 4) RGBA uint8 image."""
    frame = ensure_uint8(frame)
    if frame.ndim == 2:
        return cv2.cvtColor(frame, cv2.COLOR_GRAY2RGBA)
    if frame.ndim == 3 and frame.shape[2] == 3:
        return cv2.cvtColor(frame, cv2.COLOR_BGR2RGBA)
    if frame.ndim == 3 and frame.shape[2] == 4:
        return cv2.cvtColor(frame, cv2.COLOR_BGRA2RGBA)
    raise ValueError(f"Unsupported image shape: {frame.shape}")


def paint_contours(rgba: np.ndarray, contours: Iterable[Contour],
                   color_rgba=CONTOUR_COLOR_RGBA) -> np.ndarray:
    """Color every contour pixel in place (debug view)."""
    for c in contours:
        rgba[c.ys, c.xs] = color_rgba
    return rgba


def draw_candidates(rgba: np.ndarray, candidates: Iterable[EllipseCandidate],
                    color_rgba=CANDIDATE_COLOR_RGBA, thickness: int = 1) -> np.ndarray:
    """Circle outline per accepted candidate, drawn in place."""
    for cand in candidates:
        if cand.radius <= 0 or not np.isfinite(cand.radius):
            continue
        cv2.circle(rgba, (int(cand.center_x), int(cand.center_y)),
                   int(round(cand.radius)), color_rgba, thickness, lineType=cv2.LINE_AA)
    return rgba


def render_overlay(rgba: np.ndarray, candidates: Iterable[EllipseCandidate] | None,
                   fps: float) -> np.ndarray:
    """
    Render collaborator: image + accepted candidates + FPS label.
    Returns a new RGBA image, the input is left untouched.
    """
    out = rgba.copy()
    if candidates:
        draw_candidates(out, candidates)
    cv2.putText(out, f"FPS: {int(fps)}", (10, 30), cv2.FONT_HERSHEY_SIMPLEX,
                0.8, FPS_COLOR_RGBA, 2, lineType=cv2.LINE_AA)
    return out
