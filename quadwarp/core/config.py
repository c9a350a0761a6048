# quadwarp/core/config.py
from __future__ import annotations
from pathlib import Path
from typing import Dict, Optional
import yaml

_DEFAULT_CFG: Dict = {
    "debug": False,
    # normalized corners are hard-clamped into this range
    "clamp": {"min": 0.0, "max": 1.0},
    # name the 9 inverse values are published under
    "uniform_name": "_InvHomography",
    # |b*d - a*e| below this counts as a degenerate quad
    "degenerate_eps": 1e-12,
}


def merge_cfg(cfg: Optional[Dict]) -> Dict:
    """Overlay a user config on the defaults (nested dicts merged one level deep)."""
    merged = {k: (dict(v) if isinstance(v, dict) else v) for k, v in _DEFAULT_CFG.items()}
    if not cfg:
        return merged
    for k, v in cfg.items():
        if isinstance(v, dict) and k in merged and isinstance(merged[k], dict):
            merged[k] = {**merged[k], **v}
        else:
            merged[k] = v
    return merged


def load_cfg(path: str | Path) -> Dict:
    """Read a YAML config file and merge it over the defaults."""
    path = Path(path)
    if not path.is_file():
        raise FileNotFoundError(f"Config not found: {path}")
    with open(path, "r") as f:
        data = yaml.safe_load(f)
    if data is None:
        data = {}
    if not isinstance(data, dict):
        raise ValueError(f"Expected a mapping at {path}, got {type(data).__name__}")
    return merge_cfg(data)
