from __future__ import annotations

from .types import FeatureVector, NormalizedPoseFrame


def flatten_frame(frame: NormalizedPoseFrame) -> FeatureVector:
    """把归一化帧展开为 {<key>_x, <key>_y} 特征字典，缺失点不产生条目。"""
    flat: FeatureVector = {}
    for key in sorted(frame.points):
        p = frame.points[key]
        if p is None:
            continue
        flat[f"{key}_x"] = float(p.x)
        flat[f"{key}_y"] = float(p.y)
    return flat


def feature_keys(point_keys) -> list[str]:
    """给定语义键，返回完整特征键集合（按字母序）。"""
    return sorted(f"{k}_{axis}" for k in point_keys for axis in ("x", "y"))
