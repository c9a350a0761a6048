#!/usr/bin/env python3
from __future__ import annotations
import argparse, json
from typing import List, Optional
import numpy as np

from quadwarp.core.config import load_cfg, merge_cfg
from quadwarp.core.contracts import Corners, SingularMatrixError
from quadwarp.geometry.homography import apply_homography, compute_homography, is_degenerate_quad
from quadwarp.geometry.invert import invert_matrix

_UNIT = np.array([[0, 0], [1, 0], [1, 1], [0, 1]], dtype=np.float64)


def load_quad(path):
    # expects JSON: [[x,y],[x,y],[x,y],[x,y]] in TL,TR,BR,BL order
    with open(path, "r") as f:
        arr = np.array(json.load(f), dtype=np.float64)
    return arr.reshape(4, 2)


def _finite_or_none(vals: List[float]) -> List[Optional[float]]:
    # strict JSON has no NaN/Infinity
    return [v if np.isfinite(v) else None for v in vals]


def build_report(quad: np.ndarray, cfg: dict) -> dict:
    corners = Corners(quad)
    h = compute_homography(corners)
    report = {
        "corners": [list(p) for p in corners.as_tuple()],
        "degenerate": is_degenerate_quad(corners, float(cfg["degenerate_eps"])),
        "homography": _finite_or_none(h.as_list()),
    }
    if not h.is_finite():
        report["error"] = "Degenerate quad: homography is not finite"
        return report
    try:
        inv = invert_matrix(h)
    except SingularMatrixError as e:
        report["error"] = str(e)
        return report
    report[cfg["uniform_name"]] = _finite_or_none(inv.as_uniform())
    report["reprojection_error"] = float(np.abs(apply_homography(h, _UNIT) - corners.pts).max())
    return report


def _fmt_rows(vals: List[Optional[float]]) -> str:
    cells = ["     n/a" if v is None else f"{v: .6f}" for v in vals]
    return "\n".join("  " + "  ".join(cells[r * 3:r * 3 + 3]) for r in range(3))


def main(argv: Optional[List[str]] = None) -> int:
    ap = argparse.ArgumentParser(description="Print the unit-square homography and its inverse for a quad.")
    ap.add_argument("quad", help="Path to quad JSON [[x,y],...] in TL,TR,BR,BL order.")
    ap.add_argument("--config", default=None, help="YAML config (optional).")
    ap.add_argument("--json", action="store_true", help="Print the report as JSON.")
    args = ap.parse_args(argv)

    cfg = load_cfg(args.config) if args.config else merge_cfg(None)
    report = build_report(load_quad(args.quad), cfg)

    if args.json:
        print(json.dumps(report, indent=2, allow_nan=False))
        return 1 if "error" in report else 0

    print(f"corners: {report['corners']}")
    if report["degenerate"]:
        print("[warn] quad is degenerate")
    print("homography:")
    print(_fmt_rows(report["homography"]))
    if "error" in report:
        print(f"[error] {report['error']}")
        return 1
    print(f"{cfg['uniform_name']}:")
    print(_fmt_rows(report[cfg["uniform_name"]]))
    print(f"max reprojection error: {report['reprojection_error']:.3e}")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
