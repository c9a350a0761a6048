# quadwarp/image/homography_image.py
"""
Stateful wrapper around the geometry core.

A HomographyImage owns the four normalized corners of a warped image and
the rectangle it is laid out in. Every corner mutation recomputes the
homography and its inverse immediately and pushes the inverse to whoever
is listening:

  - observers registered with subscribe(), called with the image;
  - an optional uniform sink, called as sink(name, values) with the 9
    inverse values (row-major o11..o33) under cfg["uniform_name"].
"""

from __future__ import annotations
from typing import Callable, Dict, List, Optional
import numpy as np

from quadwarp.core.config import merge_cfg
from quadwarp.core.contracts import Corners, Homography, InverseHomography, SingularMatrixError, as_point
from quadwarp.geometry.fit import fit_placement, normalized_to_world, world_to_normalized
from quadwarp.geometry.homography import compute_homography
from quadwarp.geometry.invert import invert_matrix
from quadwarp.geometry.rect import RectTransform

Observer = Callable[["HomographyImage"], None]
UniformSink = Callable[[str, List[float]], None]


class HomographyImage:
    def __init__(
        self,
        rect: Optional[RectTransform] = None,
        points: Optional[np.ndarray] = None,
        cfg: Optional[Dict] = None,
    ):
        self.cfg = merge_cfg(cfg)
        self.rect = rect if rect is not None else RectTransform()
        self._observers: List[Observer] = []
        self._sink: Optional[UniformSink] = None
        self.homography: Optional[Homography] = None
        self.inv_homography: Optional[InverseHomography] = None

        corners = Corners.unit_square() if points is None else Corners(points)
        corners.pts = np.clip(corners.pts, *self._clamp_range())
        self._commit(corners)

    # ------------------------------------------------------------------ #
    # Observers                                                          #
    # ------------------------------------------------------------------ #

    def subscribe(self, callback: Observer) -> None:
        if callback not in self._observers:
            self._observers.append(callback)

    def unsubscribe(self, callback: Observer) -> None:
        if callback in self._observers:
            self._observers.remove(callback)

    def bind_uniform_sink(self, sink: Optional[UniformSink]) -> None:
        """Attach (or detach with None) the sink and push the current inverse to it."""
        self._sink = sink
        if sink is not None:
            sink(self.cfg["uniform_name"], self.inv_homography.as_uniform())

    # ------------------------------------------------------------------ #
    # Normalized corners                                                 #
    # ------------------------------------------------------------------ #

    @property
    def points(self) -> Corners:
        return Corners(self._corners.pts)

    def get_point(self, index: int) -> np.ndarray:
        return self._corners.pts[index].copy()

    def set_point(self, index: int, value) -> None:
        """Set one normalized corner (clamped) and recompute."""
        if not 0 <= index < 4:
            raise IndexError(f"Corner index must be 0..3, got {index}")
        pts = self._corners.pts.copy()
        pts[index] = np.clip(as_point(value), *self._clamp_range())
        self._commit(Corners(pts))

    # ------------------------------------------------------------------ #
    # World-space corners                                                #
    # ------------------------------------------------------------------ #

    def set_points_world(self, world_pts) -> None:
        """Re-fit the rectangle around four world points and store their normalized corners."""
        pts = np.asarray(world_pts, dtype=np.float64)
        if pts.ndim != 2 or pts.shape[0] != 4 or pts.shape[1] < 2:
            raise ValueError(f"Expected 4 world points, got shape {pts.shape}")

        rect = self.rect
        placement = dict(
            pivot=rect.pivot,
            anchor_min=rect.anchor_min,
            anchor_max=rect.anchor_max,
            parent_size=rect.parent_size,
            scale=rect.lossy_scale,
        )
        # local space has to be measured from where the rect is about to move
        position, _, _ = fit_placement(pts[:, :2], **placement)
        fit = world_to_normalized(
            pts[:, :2],
            to_local=lambda p: rect.to_local(p, position),
            cfg=self.cfg,
            **placement,
        )
        # observers see the new placement; a singular fit puts the rect back
        prev_position, prev_size_delta = rect.position, rect.size_delta
        rect.position = fit.position
        rect.size_delta = fit.size_delta
        try:
            self._commit(fit.corners)
        except SingularMatrixError:
            rect.position = prev_position
            rect.size_delta = prev_size_delta
            raise

    def get_point_world(self, index: int) -> np.ndarray:
        width, height = self.rect.rect_size
        return normalized_to_world(index, self._corners, width, height, self.rect.pivot, self.rect.to_world)

    def get_points_world(self) -> np.ndarray:
        return np.stack([self.get_point_world(i) for i in range(4)])

    # ------------------------------------------------------------------ #
    # Internals                                                          #
    # ------------------------------------------------------------------ #

    def _clamp_range(self):
        return float(self.cfg["clamp"]["min"]), float(self.cfg["clamp"]["max"])

    def _commit(self, corners: Corners) -> None:
        # compute both before touching state; SingularMatrixError leaves everything as it was
        h = compute_homography(corners)
        inv = invert_matrix(h)
        if self.cfg.get("debug") and not h.is_finite():
            print(f"[homography] degenerate corners {corners.as_tuple()} -> non-finite matrix")

        self._corners = corners
        self.homography = h
        self.inv_homography = inv

        if self._sink is not None:
            self._sink(self.cfg["uniform_name"], inv.as_uniform())
        for cb in list(self._observers):
            cb(self)
        if self.cfg.get("debug"):
            print(f"[image] corners={corners.as_tuple()} inv={inv.as_uniform()}")
