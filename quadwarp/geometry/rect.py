# quadwarp/geometry/rect.py
"""
Plain 2D rectangle placement: the caller-side affine transform pair
(to_local / to_world) the quad fitter works against.

Local space has its origin at the pivot; world = position + R * (scale * local).
"""

from __future__ import annotations
from dataclasses import dataclass, field
import math
from typing import Optional
import numpy as np


def _vec(x, y) -> np.ndarray:
    return np.array([x, y], dtype=np.float64)


@dataclass
class RectTransform:
    position: np.ndarray = field(default_factory=lambda: _vec(0, 0))
    rotation_deg: float = 0.0
    lossy_scale: np.ndarray = field(default_factory=lambda: _vec(1, 1))
    pivot: np.ndarray = field(default_factory=lambda: _vec(0.5, 0.5))
    anchor_min: np.ndarray = field(default_factory=lambda: _vec(0.5, 0.5))
    anchor_max: np.ndarray = field(default_factory=lambda: _vec(0.5, 0.5))
    parent_size: np.ndarray = field(default_factory=lambda: _vec(0, 0))
    size_delta: np.ndarray = field(default_factory=lambda: _vec(100, 100))

    def __post_init__(self):
        for name in ("position", "lossy_scale", "pivot", "anchor_min", "anchor_max", "parent_size", "size_delta"):
            setattr(self, name, np.asarray(getattr(self, name), dtype=np.float64).reshape(2).copy())

    @property
    def rect_size(self) -> np.ndarray:
        """Width/height in local units: size_delta plus the stretched share of the parent."""
        return self.size_delta + self.parent_size * (self.anchor_max - self.anchor_min)

    def _rotation(self) -> np.ndarray:
        t = math.radians(self.rotation_deg)
        c, s = math.cos(t), math.sin(t)
        return np.array([[c, -s], [s, c]], dtype=np.float64)

    def transform_point(self, local_xy) -> np.ndarray:
        """Local (pivot-origin) point -> world."""
        local = np.asarray(local_xy, dtype=np.float64).reshape(-1)[:2]
        return self.position + self._rotation() @ (self.lossy_scale * local)

    def inverse_transform_point(self, world_xy, position: Optional[np.ndarray] = None) -> np.ndarray:
        """
        World point -> local (pivot-origin) point.

        `position` overrides the stored position, so a placement that is not
        committed yet can be evaluated. Zero scale components map to 0.
        """
        origin = self.position if position is None else np.asarray(position, dtype=np.float64)
        world = np.asarray(world_xy, dtype=np.float64).reshape(-1)[:2]
        unrotated = self._rotation().T @ (world - origin)
        out = np.zeros(2, dtype=np.float64)
        nz = self.lossy_scale != 0
        out[nz] = unrotated[nz] / self.lossy_scale[nz]
        return out

    # bound forms handed to the quad fitter
    def to_local(self, world_xy, position: Optional[np.ndarray] = None) -> np.ndarray:
        return self.inverse_transform_point(world_xy, position)

    def to_world(self, local_xy) -> np.ndarray:
        return self.transform_point(local_xy)
