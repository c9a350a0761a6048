"""
Pytest for fitting a layout rectangle around a world-space quad.
"""
from __future__ import annotations

import numpy as np
import pytest

from quadwarp.core.contracts import Corners
from quadwarp.geometry.fit import (
    bounding_box,
    clamp_unit,
    fit_placement,
    normalized_to_world,
    world_to_normalized,
)
from quadwarp.geometry.rect import RectTransform

_QUAD = np.array([[10.0, 40.0], [50.0, 42.0], [48.0, 5.0], [12.0, 8.0]])

# ---------- Utilities ---------- #

def _placement(rect: RectTransform) -> dict:
    return dict(
        pivot=rect.pivot,
        anchor_min=rect.anchor_min,
        anchor_max=rect.anchor_max,
        parent_size=rect.parent_size,
        scale=rect.lossy_scale,
    )

def _fit(rect: RectTransform, pts: np.ndarray, cfg=None):
    """Fit with the rect's transform evaluated at the fitted position."""
    position, _, _ = fit_placement(pts, **_placement(rect))
    return world_to_normalized(
        pts,
        to_local=lambda p: rect.to_local(p, position),
        cfg=cfg,
        **_placement(rect),
    )

# ---------- Tests ---------- #

def test_bounding_box_is_per_axis():
    assert bounding_box(_QUAD) == (10.0, 5.0, 50.0, 42.0)

def test_clamp_unit():
    assert np.allclose(clamp_unit((1.4, -0.3)), (1.0, 0.0))
    assert np.allclose(clamp_unit((0.25, 0.75)), (0.25, 0.75))

def test_position_and_size_follow_pivot_and_scale():
    rect = RectTransform(pivot=(0.25, 0.5), lossy_scale=(2.0, 0.5))
    fit = _fit(rect, _QUAD)
    assert np.allclose(fit.position, (10.0 + 40.0 * 0.25, 5.0 + 37.0 * 0.5))
    assert np.allclose(fit.local_size, (20.0, 74.0))
    assert np.allclose(fit.size_delta, fit.local_size)

def test_stretch_anchors_adjust_size_delta():
    rect = RectTransform(anchor_min=(0.0, 0.2), anchor_max=(1.0, 0.2), parent_size=(200.0, 100.0))
    fit = _fit(rect, _QUAD)
    assert fit.size_delta[0] == pytest.approx(-(200.0 - 40.0))
    assert fit.size_delta[1] == pytest.approx(37.0)  # y anchors are not stretched

    rect.position = fit.position
    rect.size_delta = fit.size_delta
    assert np.allclose(rect.rect_size, fit.local_size)

@pytest.mark.parametrize("pivot", [(0.5, 0.5), (0.0, 0.0), (1.0, 0.3)])
def test_world_round_trip(pivot):
    rect = RectTransform(pivot=pivot, lossy_scale=(2.0, 2.0))
    fit = _fit(rect, _QUAD)
    rect.position = fit.position
    width, height = fit.local_size
    for i in range(4):
        back = normalized_to_world(i, fit.corners, width, height, rect.pivot, rect.to_world)
        assert np.allclose(back, _QUAD[i], atol=1e-5)

def test_bbox_corners_normalize_to_unit_square():
    rect = RectTransform()
    box = np.array([[0.0, 10.0], [30.0, 10.0], [30.0, 0.0], [0.0, 0.0]])
    fit = _fit(rect, box)
    assert np.allclose(fit.corners.pts, [[0, 1], [1, 1], [1, 0], [0, 0]])

def test_normalized_corners_are_always_clamped():
    rng = np.random.default_rng(1)
    for deg in (0.0, 30.0, 45.0, 170.0):
        rect = RectTransform(rotation_deg=deg, lossy_scale=(1.5, 0.7))
        for _ in range(10):
            fit = _fit(rect, rng.uniform(-100, 100, size=(4, 2)))
            assert (fit.corners.pts >= 0.0).all() and (fit.corners.pts <= 1.0).all()

def test_out_of_range_local_points_are_clamped():
    far = lambda p: np.array([1e6, -1e6])
    fit = world_to_normalized(
        _QUAD, pivot=(0.5, 0.5), anchor_min=(0.5, 0.5), anchor_max=(0.5, 0.5),
        parent_size=(0, 0), scale=(1, 1), to_local=far,
    )
    assert np.allclose(fit.corners.pts, [[1.0, 0.0]] * 4)

def test_zero_scale_gives_zero_not_nan():
    rect = RectTransform(lossy_scale=(0.0, 1.0))
    fit = _fit(rect, _QUAD)
    assert fit.local_size[0] == 0.0
    assert np.isfinite(fit.corners.pts).all()
    assert np.allclose(fit.corners.pts[:, 0], 0.0)

def test_zero_height_quad():
    flat = np.array([[0.0, 5.0], [10.0, 5.0], [10.0, 5.0], [0.0, 5.0]])
    fit = _fit(RectTransform(), flat)
    assert fit.local_size[1] == 0.0
    assert np.allclose(fit.corners.pts[:, 1], 0.0)
    assert np.allclose(fit.corners.pts[:, 0], [0, 1, 1, 0])

def test_rejects_wrong_point_count():
    with pytest.raises(ValueError):
        _fit(RectTransform(), _QUAD[:3])

def test_normalized_to_world_index_range():
    with pytest.raises(IndexError):
        normalized_to_world(4, Corners.unit_square(), 1.0, 1.0, (0.5, 0.5), lambda p: p)

def test_debug_reports_clamping(capsys):
    rect = RectTransform(rotation_deg=45.0)
    _fit(rect, _QUAD, cfg={"debug": True})
    out = capsys.readouterr().out
    assert "[fit] bbox=" in out
    assert "clamped" in out

def test_single_argument_to_local():
    position, _, _ = fit_placement(
        _QUAD, pivot=(0.5, 0.5), anchor_min=(0.5, 0.5), anchor_max=(0.5, 0.5),
        parent_size=(0, 0), scale=(1, 1),
    )
    fit = world_to_normalized(
        _QUAD, pivot=(0.5, 0.5), anchor_min=(0.5, 0.5), anchor_max=(0.5, 0.5),
        parent_size=(0, 0), scale=(1, 1), to_local=lambda p: p - position,
    )
    assert np.allclose(fit.position, position)
    assert np.allclose(fit.corners.pts, (_QUAD - [10.0, 5.0]) / [40.0, 37.0])

def test_fit_placement_matches_world_to_normalized():
    rect = RectTransform(pivot=(0.2, 0.7), lossy_scale=(2.0, 4.0), anchor_min=(0, 0), anchor_max=(1, 0),
                         parent_size=(100.0, 50.0))
    position, size_delta, local_size = fit_placement(_QUAD, **_placement(rect))
    fit = _fit(rect, _QUAD)
    assert np.allclose(position, fit.position)
    assert np.allclose(size_delta, fit.size_delta)
    assert np.allclose(local_size, fit.local_size)
