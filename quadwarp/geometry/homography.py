# quadwarp/geometry/homography.py
"""
Closed-form homography from the unit square onto a quad.

The unit-square corners (0,0), (1,0), (1,1), (0,1) map onto the quad
corners TL, TR, BR, BL. With only four fixed source points there is no
linear system to solve: the eight parameters fall out directly.

Degenerate quads (parallel edge-direction ratios) make the denominators
vanish. The result then contains inf/NaN; nothing is raised. Callers that
care check `is_degenerate_quad` first, or `Homography.is_finite()` after.
"""

from __future__ import annotations
from typing import Union
import cv2
import numpy as np

from quadwarp.core.contracts import Corners, Homography, InverseHomography


def _edge_terms(corners: Corners):
    (x00, y00), (x10, y10), (x11, y11), (x01, y01) = corners.pts
    a = x10 - x11
    b = x01 - x11
    c = x00 - x01 - x10 + x11
    d = y10 - y11
    e = y01 - y11
    f = y00 - y01 - y10 + y11
    return a, b, c, d, e, f


def compute_homography(corners: Corners) -> Homography:
    """
    Homography mapping the unit square onto `corners` (TL, TR, BR, BL).

    Returns:
        Homography with params [h11, h12, h13, h21, h22, h23, h31, h32], h33 = 1.
    """
    if not isinstance(corners, Corners):
        corners = Corners(corners)
    (x00, y00), (x10, y10), _, (x01, y01) = corners.pts
    a, b, c, d, e, f = (np.float64(v) for v in _edge_terms(corners))

    # divide-by-zero is the documented degenerate case; let inf/NaN through
    with np.errstate(divide="ignore", invalid="ignore"):
        h32 = (c * d - a * f) / (b * d - a * e)
        h31 = (c * e - b * f) / (a * e - b * d)

        h13 = x00
        h23 = y00
        h11 = x10 - x00 + h31 * x10
        h12 = x01 - x00 + h32 * x01
        h21 = y10 - y00 + h31 * y10
        h22 = y01 - y00 + h32 * y01

    params = np.array([h11, h12, h13, h21, h22, h23, h31, h32], dtype=np.float64)
    return Homography(params)


def is_degenerate_quad(corners: Corners, eps: float = 1e-12) -> bool:
    """
    True if the corners cannot give a usable homography: either
    `compute_homography` would divide by (near) zero, or the resulting
    matrix is (near) singular, e.g. three collinear corners.
    """
    if not isinstance(corners, Corners):
        corners = Corners(corners)
    if not np.isfinite(corners.pts).all():
        return True
    a, b, _, d, e, _ = _edge_terms(corners)
    if abs(b * d - a * e) <= eps:
        return True
    h = compute_homography(corners)
    if not h.is_finite():
        return True
    return bool(abs(np.linalg.det(h.matrix())) <= eps)


def apply_homography(
    h: Union[Homography, InverseHomography, np.ndarray],
    points: np.ndarray,
) -> np.ndarray:
    """
    Perspective-map (N, 2) points through `h`.

    (u, v) -> ((h11 u + h12 v + h13) / w, (h21 u + h22 v + h23) / w),
    with w = h31 u + h32 v + h33.
    """
    if isinstance(h, (Homography, InverseHomography)):
        m = h.matrix()
    else:
        m = np.asarray(h, dtype=np.float64).reshape(3, 3)
    pts = np.asarray(points, dtype=np.float64).reshape(-1, 1, 2)
    if pts.shape[0] == 0:
        return pts.reshape(0, 2)
    out = cv2.perspectiveTransform(pts, m)
    return out.reshape(-1, 2)
