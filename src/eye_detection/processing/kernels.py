import math

import numpy as np
from numba import njit

# Pixel classes inside the Canny scratch buffer
NO_EDGE = 0
WEAK_EDGE = 1
STRONG_EDGE = 2

EDGE_VALUE = 255

# 5x5 Gaussian, sigma ~1.4 (classic Canny smoothing kernel)
GAUSS_5X5 = np.array([
    [2, 4, 5, 4, 2],
    [4, 9, 12, 9, 4],
    [5, 12, 15, 12, 5],
    [4, 9, 12, 9, 4],
    [2, 4, 5, 4, 2],
], dtype=np.float64) / 159.0

GAUSS_NEWTON_ITERS = 10


# ----------------------------------------------------------------------
# Edge detection
# ----------------------------------------------------------------------

@njit(cache=True, nogil=True)
def _quantize_direction(gx, gy):
    """
    Gradient direction folded into [0, 180) and binned:
    0 -> 0 deg, 1 -> 45 deg, 2 -> 90 deg, 3 -> 135 deg (image y axis points down).
    """
    angle = math.degrees(math.atan2(gy, gx))
    if angle < 0.0:
        angle += 180.0
    if angle < 22.5 or angle >= 157.5:
        return 0
    if angle < 67.5:
        return 1
    if angle < 112.5:
        return 2
    return 3


@njit(cache=True, nogil=True)
def canny_kernel(gray, low, high, blurred, magnitude, direction, classes, stack, out):
    """
    gray: (H, W) uint8. blurred/magnitude: (H, W) float64 scratch, direction/classes: (H, W) uint8
    scratch, stack: (H*W,) int64 scratch, out: (H, W) uint8 result (0 / 255).
    """
    h, w = gray.shape

    # 1) Gaussian smoothing, clamp-to-edge
    for y in range(h):
        for x in range(w):
            acc = 0.0
            for ky in range(-2, 3):
                yy = min(max(y + ky, 0), h - 1)
                for kx in range(-2, 3):
                    xx = min(max(x + kx, 0), w - 1)
                    acc += GAUSS_5X5[ky + 2, kx + 2] * gray[yy, xx]
            blurred[y, x] = acc

    # 2) Sobel gradient
    for y in range(h):
        ym = max(y - 1, 0)
        yp = min(y + 1, h - 1)
        for x in range(w):
            xm = max(x - 1, 0)
            xp = min(x + 1, w - 1)
            gx = (blurred[ym, xp] + 2.0 * blurred[y, xp] + blurred[yp, xp]) \
                - (blurred[ym, xm] + 2.0 * blurred[y, xm] + blurred[yp, xm])
            gy = (blurred[yp, xm] + 2.0 * blurred[yp, x] + blurred[yp, xp]) \
                - (blurred[ym, xm] + 2.0 * blurred[ym, x] + blurred[ym, xp])
            magnitude[y, x] = np.sqrt(gx * gx + gy * gy)
            direction[y, x] = _quantize_direction(gx, gy)

    # 3) Non-maximum suppression + double threshold. Border is never an edge.
    for y in range(h):
        for x in range(w):
            classes[y, x] = NO_EDGE

    for y in range(1, h - 1):
        for x in range(1, w - 1):
            m = magnitude[y, x]
            if m <= 0.0:
                continue
            d = direction[y, x]
            if d == 0:
                n1 = magnitude[y, x - 1]
                n2 = magnitude[y, x + 1]
            elif d == 1:
                n1 = magnitude[y - 1, x - 1]
                n2 = magnitude[y + 1, x + 1]
            elif d == 2:
                n1 = magnitude[y - 1, x]
                n2 = magnitude[y + 1, x]
            else:
                n1 = magnitude[y + 1, x - 1]
                n2 = magnitude[y - 1, x + 1]
            if m < n1 or m < n2:
                continue
            if m >= high:
                classes[y, x] = STRONG_EDGE
            elif m >= low:
                classes[y, x] = WEAK_EDGE

    # 4) Hysteresis: promote weak pixels 8-connected to strong ones
    top = 0
    for y in range(h):
        for x in range(w):
            if classes[y, x] == STRONG_EDGE:
                stack[top] = y * w + x
                top += 1

    while top > 0:
        top -= 1
        idx = stack[top]
        cy = idx // w
        cx = idx - cy * w
        for dy in range(-1, 2):
            yy = cy + dy
            if yy < 0 or yy >= h:
                continue
            for dx in range(-1, 2):
                xx = cx + dx
                if xx < 0 or xx >= w:
                    continue
                if classes[yy, xx] == WEAK_EDGE:
                    classes[yy, xx] = STRONG_EDGE
                    stack[top] = yy * w + xx
                    top += 1

    for y in range(h):
        for x in range(w):
            out[y, x] = EDGE_VALUE if classes[y, x] == STRONG_EDGE else 0


# ----------------------------------------------------------------------
# Connected components (CPU side of the pipeline)
# ----------------------------------------------------------------------

@njit(cache=True, nogil=True)
def trace_components(edges, visited, order, offsets, stack):
    """
    8-connected depth-first tracing of non-zero pixels, seeds in raster order.

    order receives flat pixel indices (y * W + x) in traversal order, component i
    spans order[offsets[i]:offsets[i + 1]]. Returns the number of components.
    """
    h, w = edges.shape
    for y in range(h):
        for x in range(w):
            visited[y, x] = 0

    n_points = 0
    n_components = 0
    offsets[0] = 0

    for y in range(h):
        for x in range(w):
            if edges[y, x] == 0 or visited[y, x] != 0:
                continue
            visited[y, x] = 1
            stack[0] = y * w + x
            top = 1
            while top > 0:
                top -= 1
                idx = stack[top]
                order[n_points] = idx
                n_points += 1
                cy = idx // w
                cx = idx - cy * w
                for dy in range(-1, 2):
                    yy = cy + dy
                    if yy < 0 or yy >= h:
                        continue
                    for dx in range(-1, 2):
                        xx = cx + dx
                        if xx < 0 or xx >= w:
                            continue
                        if edges[yy, xx] != 0 and visited[yy, xx] == 0:
                            visited[yy, xx] = 1
                            stack[top] = yy * w + xx
                            top += 1
            n_components += 1
            offsets[n_components] = n_points

    return n_components


# ----------------------------------------------------------------------
# Circle fitting
# ----------------------------------------------------------------------

@njit(cache=True, nogil=True)
def _solve3(a, b):
    """Cramer's rule for a 3x3 system. Returns (ok, x0, x1, x2)."""
    det = a[0, 0] * (a[1, 1] * a[2, 2] - a[1, 2] * a[2, 1]) \
        - a[0, 1] * (a[1, 0] * a[2, 2] - a[1, 2] * a[2, 0]) \
        + a[0, 2] * (a[1, 0] * a[2, 1] - a[1, 1] * a[2, 0])
    if abs(det) < 1e-12:
        return False, 0.0, 0.0, 0.0
    d0 = b[0] * (a[1, 1] * a[2, 2] - a[1, 2] * a[2, 1]) \
        - a[0, 1] * (b[1] * a[2, 2] - a[1, 2] * b[2]) \
        + a[0, 2] * (b[1] * a[2, 1] - a[1, 1] * b[2])
    d1 = a[0, 0] * (b[1] * a[2, 2] - a[1, 2] * b[2]) \
        - b[0] * (a[1, 0] * a[2, 2] - a[1, 2] * a[2, 0]) \
        + a[0, 2] * (a[1, 0] * b[2] - b[1] * a[2, 0])
    d2 = a[0, 0] * (a[1, 1] * b[2] - b[1] * a[2, 1]) \
        - a[0, 1] * (a[1, 0] * b[2] - b[1] * a[2, 0]) \
        + b[0] * (a[1, 0] * a[2, 1] - a[1, 1] * a[2, 0])
    return True, d0 / det, d1 / det, d2 / det


@njit(cache=True, nogil=True)
def fit_circle_kernel(points, offsets, n_contours, radius_scale, out):
    """
    points: (M, 2) int32 (x, y), contour i spans points[offsets[i]:offsets[i + 1]].
    out: (K, 3) float64 receives (cx, cy, r) per contour.

    Centroid + mean radial distance, then Kasa algebraic fit, then Gauss-Newton on the
    geometric residual |p - c| - r. Collinear input -> (centroid, 0). A refined circle
    outside [r0 / radius_scale, r0 * radius_scale] falls back to (centroid, r0).
    """
    jtj = np.empty((3, 3))
    jtr = np.empty(3)

    for i in range(n_contours):
        start = offsets[i]
        end = offsets[i + 1]
        n = end - start
        if n <= 0:
            out[i, 0] = 0.0
            out[i, 1] = 0.0
            out[i, 2] = 0.0
            continue

        sx = 0.0
        sy = 0.0
        for k in range(start, end):
            sx += points[k, 0]
            sy += points[k, 1]
        cx = sx / n
        cy = sy / n

        r0 = 0.0
        for k in range(start, end):
            dx = points[k, 0] - cx
            dy = points[k, 1] - cy
            r0 += np.sqrt(dx * dx + dy * dy)
        r0 /= n

        out[i, 0] = cx
        out[i, 1] = cy
        out[i, 2] = r0
        if n < 3 or r0 <= 0.0:
            out[i, 2] = 0.0
            continue

        # Kasa fit in centroid-relative coordinates
        suu = 0.0
        suv = 0.0
        svv = 0.0
        suuu = 0.0
        svvv = 0.0
        suvv = 0.0
        svuu = 0.0
        for k in range(start, end):
            u = points[k, 0] - cx
            v = points[k, 1] - cy
            suu += u * u
            suv += u * v
            svv += v * v
            suuu += u * u * u
            svvv += v * v * v
            suvv += u * v * v
            svuu += v * u * u
        det = suu * svv - suv * suv
        if det <= 1e-9 * suu * svv:
            # collinear
            out[i, 2] = 0.0
            continue

        uc = (svv * (suuu + suvv) - suv * (svvv + svuu)) / (2.0 * det)
        vc = (suu * (svvv + svuu) - suv * (suuu + suvv)) / (2.0 * det)
        a = cx + uc
        b = cy + vc
        r = np.sqrt(uc * uc + vc * vc + (suu + svv) / n)

        # Gauss-Newton refinement
        for _ in range(GAUSS_NEWTON_ITERS):
            for p in range(3):
                jtr[p] = 0.0
                for q in range(3):
                    jtj[p, q] = 0.0
            for k in range(start, end):
                dx = points[k, 0] - a
                dy = points[k, 1] - b
                rho = np.sqrt(dx * dx + dy * dy)
                if rho < 1e-12:
                    continue
                j0 = -dx / rho
                j1 = -dy / rho
                j2 = -1.0
                res = rho - r
                jtj[0, 0] += j0 * j0
                jtj[0, 1] += j0 * j1
                jtj[0, 2] += j0 * j2
                jtj[1, 1] += j1 * j1
                jtj[1, 2] += j1 * j2
                jtj[2, 2] += j2 * j2
                jtr[0] -= j0 * res
                jtr[1] -= j1 * res
                jtr[2] -= j2 * res
            jtj[1, 0] = jtj[0, 1]
            jtj[2, 0] = jtj[0, 2]
            jtj[2, 1] = jtj[1, 2]
            ok, da, db, dr = _solve3(jtj, jtr)
            if not ok:
                break
            a += da
            b += db
            r += dr
            if da * da + db * db + dr * dr < 1e-12:
                break

        if not (np.isfinite(a) and np.isfinite(b) and np.isfinite(r)) or r < 0.0:
            continue
        if radius_scale > 0.0 and (r > r0 * radius_scale or r * radius_scale < r0):
            continue
        out[i, 0] = a
        out[i, 1] = b
        out[i, 2] = r
