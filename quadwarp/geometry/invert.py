# quadwarp/geometry/invert.py
from __future__ import annotations
from typing import Union
import numpy as np

from quadwarp.core.contracts import Homography, InverseHomography, SingularMatrixError


def _as_nine(h) -> np.ndarray:
    """Accept a Homography, an InverseHomography, 8 values (h33 = 1), 9 values or a 3x3."""
    if isinstance(h, Homography):
        return h.matrix().ravel()
    if isinstance(h, InverseHomography):
        return h.matrix().ravel()
    arr = np.asarray(h, dtype=np.float64).ravel()
    if arr.size == 8:
        return np.append(arr, 1.0)
    if arr.size == 9:
        return arr
    raise ValueError(f"Expected 8 or 9 matrix values, got {arr.size}")


def invert_matrix(h: Union[Homography, InverseHomography, np.ndarray]) -> InverseHomography:
    """
    Invert a 3x3 matrix with the adjugate / determinant formula.

    Raises:
        SingularMatrixError: if the determinant is zero.
    """
    i11, i12, i13, i21, i22, i23, i31, i32, i33 = _as_nine(h)

    with np.errstate(invalid="ignore", over="ignore"):
        det = (
            + (i11 * i22 * i33)
            + (i12 * i23 * i31)
            + (i13 * i21 * i32)
            - (i13 * i22 * i31)
            - (i12 * i21 * i33)
            - (i11 * i23 * i32)
        )
    if det == 0:
        raise SingularMatrixError("Matrix is singular (determinant is zero)")

    # non-finite input (degenerate quad) propagates instead of raising
    with np.errstate(divide="ignore", invalid="ignore"):
        o11 = (i22 * i33 - i23 * i32) / det
        o12 = (-i12 * i33 + i13 * i32) / det
        o13 = (i12 * i23 - i13 * i22) / det
        o21 = (-i21 * i33 + i23 * i31) / det
        o22 = (i11 * i33 - i13 * i31) / det
        o23 = (-i11 * i23 + i13 * i21) / det
        o31 = (i21 * i32 - i22 * i31) / det
        o32 = (-i11 * i32 + i12 * i31) / det
        o33 = (i11 * i22 - i12 * i21) / det

    return InverseHomography(np.array([o11, o12, o13, o21, o22, o23, o31, o32, o33], dtype=np.float64))
