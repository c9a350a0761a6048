"""
Core contracts and simple data types shared across the geometry stages.
"""

from __future__ import annotations
from dataclasses import dataclass
from typing import List, Tuple
import numpy as np


class SingularMatrixError(ValueError):
    """Raised when a 3x3 matrix has a zero determinant and cannot be inverted."""


def as_point(p) -> np.ndarray:
    """Coerce an (x, y) pair (or a 3-vector, z dropped) to a float64 array of shape (2,)."""
    arr = np.asarray(p, dtype=np.float64).ravel()
    if arr.size < 2:
        raise ValueError(f"Expected an (x, y) point, got {p!r}")
    return arr[:2].copy()


@dataclass
class Corners:
    """
    The four quad corners, ordered:
    [top-left, top-right, bottom-right, bottom-left].

    Used both for normalized unit-square coordinates and world coordinates.
    Points are never reordered; callers supply them in this order.

    pts: np.ndarray with shape (4, 2), dtype float64
    """
    pts: np.ndarray

    def __post_init__(self):
        if isinstance(self.pts, Corners):
            self.pts = self.pts.pts
        pts = np.asarray(self.pts, dtype=np.float64)
        if pts.size != 8:
            raise ValueError(f"Corners need exactly 4 (x, y) points, got shape {pts.shape}")
        self.pts = pts.reshape(4, 2).copy()

    @classmethod
    def unit_square(cls) -> "Corners":
        return cls(np.array([[0, 0], [1, 0], [1, 1], [0, 1]], dtype=np.float64))

    def as_tuple(self) -> Tuple[Tuple[float, float], Tuple[float, float], Tuple[float, float], Tuple[float, float]]:
        return tuple(map(tuple, self.pts.astype(float)))  # type: ignore[return-value]


@dataclass(frozen=True)
class Homography:
    """
    Unit-square -> quad homography in compact form.

    params: (8,) float64 = [h11, h12, h13, h21, h22, h23, h31, h32]; h33 is 1.
    """
    params: np.ndarray

    def matrix(self) -> np.ndarray:
        return np.append(self.params, 1.0).reshape(3, 3)

    def as_list(self) -> List[float]:
        return [float(v) for v in self.params] + [1.0]

    def is_finite(self) -> bool:
        return bool(np.isfinite(self.params).all())


@dataclass(frozen=True)
class InverseHomography:
    """
    Full inverse of a Homography. o33 is computed, not assumed to be 1.

    values: (9,) float64 = [o11, o12, o13, o21, o22, o23, o31, o32, o33]
    """
    values: np.ndarray

    def matrix(self) -> np.ndarray:
        return np.asarray(self.values, dtype=np.float64).reshape(3, 3)

    def as_uniform(self) -> List[float]:
        # order matters to the shader side: row-major o11..o33
        return [float(v) for v in self.values]


@dataclass
class RectFit:
    """Rectangle placement fitted around a world-space quad, plus its normalized corners."""
    position: np.ndarray    # world-space pivot position, (2,)
    size_delta: np.ndarray  # anchor-relative size, (2,)
    local_size: np.ndarray  # width/height in local (unscaled) units, (2,)
    corners: Corners
