from __future__ import annotations

from typing import Optional, Sequence

from .config import GuardConfig, NormalizationConfig
from .skeleton import JOINT_INDEX, L_EAR, LANDMARK_COUNT, R_EAR
from .types import Landmark, NamedPoseFrame


def _jaw(ear: Landmark, cfg: NormalizationConfig) -> Landmark:
    return Landmark(x=ear.x, y=ear.y + cfg.jaw_offset, confidence=ear.confidence)


def _head_center(left_ear: Landmark, right_ear: Landmark, cfg: NormalizationConfig) -> Optional[Landmark]:
    """两耳均可信时，取两耳 x 中点、较高一侧耳朵上移固定距离作为头部中心。"""
    th = cfg.confidence_floor
    if not (left_ear.confidence > th and right_ear.confidence > th):
        return None
    return Landmark(
        x=(left_ear.x + right_ear.x) / 2.0,
        y=min(left_ear.y, right_ear.y) - cfg.head_offset,
        confidence=1.0,
    )


def adapt_landmarks(
    landmarks: Optional[Sequence[Landmark]],
    config: GuardConfig,
) -> Optional[NamedPoseFrame]:
    """将检测器的定长关键点序列映射为语义键帧。

    输入:
    - landmarks: 按 skeleton.KEYPOINT_NAMES 顺序的关键点序列；None 或空表示本帧未检测到人体。
    - config: 部署变体配置，point_keys 决定输出哪些键。

    输出:
    - NamedPoseFrame；序列为空或长度不足时返回 None（下游整帧跳过）。

    作用: 按固定索引取关节点，并派生 leftJaw/rightJaw/headCenter。
    """
    if not landmarks or len(landmarks) < LANDMARK_COUNT:
        return None

    ncfg = config.normalization
    left_ear = landmarks[L_EAR]
    right_ear = landmarks[R_EAR]

    derived = {
        "leftJaw": lambda: _jaw(left_ear, ncfg),
        "rightJaw": lambda: _jaw(right_ear, ncfg),
        "headCenter": lambda: _head_center(left_ear, right_ear, ncfg),
    }

    points: dict[str, Optional[Landmark]] = {}
    for key in config.point_keys:
        if key in JOINT_INDEX:
            points[key] = landmarks[JOINT_INDEX[key]]
        elif key in derived:
            points[key] = derived[key]()
        else:
            raise KeyError(f"unknown point key in config: {key!r}")
    return NamedPoseFrame(points=points)
