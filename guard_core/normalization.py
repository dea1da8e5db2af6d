from __future__ import annotations

import math
from typing import Optional, Sequence

from .config import GuardConfig, NormalizationConfig
from .skeleton import DEPTH_PAIRS, MIRROR_SWAP_PAIRS
from .types import Landmark, NamedPoseFrame, NormalizedPoseFrame


def pair_distance(a: Optional[Landmark], b: Optional[Landmark], confidence_floor: float = 0.4) -> Optional[float]:
    """两点都可信（置信度 > floor）时返回欧氏距离，否则返回 None。"""
    if a is None or b is None:
        return None
    if not (a.confidence > confidence_floor and b.confidence > confidence_floor):
        return None
    return math.hypot(a.x - b.x, a.y - b.y)


def compute_depth_scale(landmarks: Sequence[Landmark], cfg: Optional[NormalizationConfig] = None) -> float:
    """以肩、髋、肘三对距离的均值估计主体到相机的远近。

    输入: 检测器原始关键点序列（17 点）；cfg 归一化配置。
    输出: 正的有限浮点数。
    作用: 无可用距离对时返回默认值；均值退化为 0 或非有限值时同样回退到默认值。
    """
    cfg = cfg or NormalizationConfig()
    valid = []
    for i, j in DEPTH_PAIRS:
        d = pair_distance(landmarks[i], landmarks[j], cfg.confidence_floor)
        if d is not None:
            valid.append(d)
    if not valid:
        return cfg.default_depth_scale
    scale = sum(valid) / len(valid)
    if not math.isfinite(scale) or scale <= cfg.min_depth_scale:
        return cfg.default_depth_scale
    return scale


def compute_anchor(frame: NamedPoseFrame, anchor_keys: tuple[str, str]) -> Optional[tuple[float, float]]:
    """取两个锚点的中点作为归一化原点（不做置信度过滤）。

    两个锚点都缺失时返回 None；只缺一个时退化为另一个点本身。
    """
    a = frame.get(anchor_keys[0])
    b = frame.get(anchor_keys[1])
    if a is None and b is None:
        return None
    if a is None:
        return b.x, b.y
    if b is None:
        return a.x, a.y
    return (a.x + b.x) / 2.0, (a.y + b.y) / 2.0


def mirror_frame(frame: NormalizedPoseFrame, swap_pairs=MIRROR_SWAP_PAIRS) -> NormalizedPoseFrame:
    """镜像站架：所有 x 取反，并交换左右肘、腕、髋。

    两步都是对合变换，连续调用两次得到原帧。
    """
    points: dict[str, Optional[Landmark]] = {
        k: None if p is None else Landmark(x=-p.x, y=p.y, confidence=p.confidence)
        for k, p in frame.points.items()
    }
    for left, right in swap_pairs:
        # 只移动已有的键，不为缺失的一侧补 None
        has_left, has_right = left in points, right in points
        left_pt, right_pt = points.pop(left, None), points.pop(right, None)
        if has_left:
            points[right] = left_pt
        if has_right:
            points[left] = right_pt
    return NormalizedPoseFrame(points=points)


def normalize_frame(
    frame: NamedPoseFrame,
    depth_scale: float,
    config: GuardConfig,
    mirror_stance: bool = False,
) -> NormalizedPoseFrame:
    """平移到锚点、按深度尺度缩放，必要时再做镜像。

    输入:
    - frame: 适配器输出的语义键帧。
    - depth_scale: compute_depth_scale 的结果。
    - config: 变体配置（锚点对、尺度下限）。
    - mirror_stance: 是否反架。

    输出: NormalizedPoseFrame，缺失点保持缺失。
    """
    ncfg = config.normalization
    scale = depth_scale
    if not math.isfinite(scale) or scale <= ncfg.min_depth_scale:
        scale = ncfg.default_depth_scale
    anchor = compute_anchor(frame, config.anchor_keys())
    ax, ay = anchor if anchor is not None else (0.0, 0.0)

    points: dict[str, Optional[Landmark]] = {}
    for key, p in frame.points.items():
        if p is None:
            points[key] = None
            continue
        points[key] = Landmark(
            x=(p.x - ax) / scale,
            y=(p.y - ay) / scale,
            confidence=p.confidence,
        )
    out = NormalizedPoseFrame(points=points)
    if mirror_stance:
        out = mirror_frame(out)
    return out
