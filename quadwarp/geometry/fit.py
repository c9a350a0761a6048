# quadwarp/geometry/fit.py
"""
Fit a layout rectangle around a world-space quad and express the quad's
corners in that rectangle's normalized [0, 1] space (and back).

The bounding box is a per-axis min/max, not an oriented box: for a quad
rotated relative to the rectangle it is looser than the quad itself, and
corners that land outside [0, 1] are clamped.
"""

from __future__ import annotations
from typing import Callable, Dict, Optional, Tuple
import numpy as np

from quadwarp.core.config import merge_cfg
from quadwarp.core.contracts import Corners, RectFit, as_point

# to_local(world_point) -> local point (pivot origin)
ToLocal = Callable[[np.ndarray], np.ndarray]
# to_world(local_point) -> world point
ToWorld = Callable[[np.ndarray], np.ndarray]


def bounding_box(points: np.ndarray) -> Tuple[float, float, float, float]:
    """(xmin, ymin, xmax, ymax) over the points, axis by axis."""
    p = np.asarray(points, dtype=np.float64).reshape(-1, 2)
    xmin, ymin = p.min(axis=0)
    xmax, ymax = p.max(axis=0)
    return float(xmin), float(ymin), float(xmax), float(ymax)


def clamp_unit(point, lo: float = 0.0, hi: float = 1.0) -> np.ndarray:
    return np.clip(as_point(point), lo, hi)


def _safe_div(num: np.ndarray, den: np.ndarray) -> np.ndarray:
    out = np.zeros_like(num, dtype=np.float64)
    nz = den != 0
    out[nz] = num[nz] / den[nz]
    return out


def _safe_inv(v: np.ndarray) -> np.ndarray:
    return _safe_div(np.ones_like(v, dtype=np.float64), v)


def _as_quad(world_pts) -> np.ndarray:
    pts = np.asarray(world_pts, dtype=np.float64)
    if pts.size != 8:
        raise ValueError(f"Expected 4 world points, got shape {pts.shape}")
    return pts.reshape(4, 2)


def fit_placement(
    world_pts: np.ndarray,
    *,
    pivot,
    anchor_min,
    anchor_max,
    parent_size,
    scale,
) -> Tuple[np.ndarray, np.ndarray, np.ndarray]:
    """
    Rectangle placement over the quad's bounding box.

    Returns:
        (position, size_delta, local_size), each of shape (2,).
    """
    pts = _as_quad(world_pts)
    pivot = as_point(pivot)
    anchor_min = as_point(anchor_min)
    anchor_max = as_point(anchor_max)
    parent_size = as_point(parent_size)
    scale = as_point(scale)

    xmin, ymin, xmax, ymax = bounding_box(pts)
    size = np.array([xmax - xmin, ymax - ymin], dtype=np.float64)
    position = np.array([xmin, ymin], dtype=np.float64) + size * pivot

    local_size = _safe_div(size, scale)

    size_delta = local_size.copy()
    stretched = anchor_min != anchor_max
    rate = anchor_max - anchor_min
    size_delta[stretched] = -(parent_size[stretched] * rate[stretched] - local_size[stretched])
    return position, size_delta, local_size


def world_to_normalized(
    world_pts: np.ndarray,
    *,
    pivot,
    anchor_min,
    anchor_max,
    parent_size,
    scale,
    to_local: ToLocal,
    cfg: Optional[Dict] = None,
) -> RectFit:
    """
    Place a rectangle over the world-space quad and normalize its corners.

    Args:
        world_pts: 4×2 world points, TL, TR, BR, BL.
        pivot/anchor_min/anchor_max: rectangle fractions (x, y).
        parent_size: parent rectangle size in local units.
        scale: the rectangle's current lossy scale.
        to_local: world -> local (pivot origin) transform of the rectangle
                  at its fitted position (see `fit_placement`).

    Returns:
        RectFit with position, size_delta, local_size and clamped corners.
    """
    cfg = merge_cfg(cfg)
    pts = _as_quad(world_pts)
    pivot = as_point(pivot)
    position, size_delta, local_size = fit_placement(
        pts, pivot=pivot, anchor_min=anchor_min, anchor_max=anchor_max,
        parent_size=parent_size, scale=scale,
    )

    inv_size = _safe_inv(local_size)
    pivot_offset = local_size * pivot
    lo, hi = float(cfg["clamp"]["min"]), float(cfg["clamp"]["max"])

    normalized = np.zeros((4, 2), dtype=np.float64)
    for i in range(4):
        local = as_point(to_local(pts[i]))
        raw = (local + pivot_offset) * inv_size
        normalized[i] = clamp_unit(raw, lo, hi)
        if cfg.get("debug") and not np.allclose(raw, normalized[i]):
            print(f"[fit] corner {i} clamped: {raw.tolist()} -> {normalized[i].tolist()}")

    if cfg.get("debug"):
        xmin, ymin, xmax, ymax = bounding_box(pts)
        print(f"[fit] bbox=({xmin:.3f},{ymin:.3f},{xmax:.3f},{ymax:.3f}) "
              f"position={position.tolist()} size_delta={size_delta.tolist()}")

    return RectFit(position=position, size_delta=size_delta, local_size=local_size, corners=Corners(normalized))


def normalized_to_world(
    index: int,
    corners: Corners,
    rect_width: float,
    rect_height: float,
    pivot,
    to_world: ToWorld,
) -> np.ndarray:
    """Map normalized corner `index` back into world space through the rectangle."""
    if not 0 <= index < 4:
        raise IndexError(f"Corner index must be 0..3, got {index}")
    size = np.array([rect_width, rect_height], dtype=np.float64)
    local = corners.pts[index] * size
    local = local - size * as_point(pivot)
    return as_point(to_world(local))
