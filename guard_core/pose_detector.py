from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

import cv2
import numpy as np

from .skeleton import MEDIAPIPE_TO_COCO17
from .types import Landmark


@dataclass(frozen=True)
class PoseDetectorConfig:
    model_complexity: int = 0
    min_detection_confidence: float = 0.5
    min_tracking_confidence: float = 0.5


def landmarks_from_array(data: np.ndarray, width: int, height: int) -> list[Landmark]:
    """把 (33,4) 的 MediaPipe 归一化关键点转换为 17 点像素坐标 Landmark 列表。

    输入: data 每行为 x,y,z,visibility；width/height 为帧尺寸。
    输出: 按 skeleton.KEYPOINT_NAMES 顺序的 17 个 Landmark。
    作用: 派生点的偏移量以像素为单位，因此这里统一换算到像素坐标。
    """
    out = []
    for idx in MEDIAPIPE_TO_COCO17:
        x, y, _, vis = (float(v) for v in data[idx, :4])
        out.append(Landmark(x=x * width, y=y * height, confidence=float(np.clip(vis, 0.0, 1.0))))
    return out


class PoseDetector:
    """MediaPipe Pose 的薄封装。业务层只拿到 17 点 Landmark 列表，不暴露 MediaPipe 对象。"""

    def __init__(self, config: Optional[PoseDetectorConfig] = None):
        """初始化 PoseDetector。

        输入:
        - config: 可选的 PoseDetectorConfig，用于控制模型复杂度与置信度阈值。

        输出: 无（构造器）。

        作用: 延迟导入 mediapipe 并创建内部的 Pose 推理对象。
        """
        self._config = config or PoseDetectorConfig()
        # 延迟导入，避免没有安装 mediapipe 时 import 直接炸
        import mediapipe as mp

        self._pose = mp.solutions.pose.Pose(
            static_image_mode=False,
            model_complexity=self._config.model_complexity,
            enable_segmentation=False,
            smooth_landmarks=True,
            min_detection_confidence=self._config.min_detection_confidence,
            min_tracking_confidence=self._config.min_tracking_confidence,
        )

    def detect(self, frame_bgr: np.ndarray) -> Optional[list[Landmark]]:
        """对单帧运行姿态检测。

        输入:
        - frame_bgr: BGR 图像帧，形状 (h,w,3)。

        输出:
        - 检测到人体时返回 17 个 Landmark（像素坐标 + 可见度）；
        - 未检测到人体或输入无效时返回 None。
        """
        if frame_bgr is None or frame_bgr.size == 0:
            return None

        h, w = frame_bgr.shape[:2]
        frame_rgb = cv2.cvtColor(frame_bgr, cv2.COLOR_BGR2RGB)
        result = self._pose.process(frame_rgb)
        if result.pose_landmarks is None:
            return None

        lm = result.pose_landmarks.landmark
        data = np.zeros((33, 4), dtype=np.float32)
        for i in range(33):
            data[i, 0] = lm[i].x
            data[i, 1] = lm[i].y
            data[i, 2] = lm[i].z
            data[i, 3] = lm[i].visibility
        return landmarks_from_array(data, w, h)

    def close(self) -> None:
        """释放内部 MediaPipe 资源，调用后不应再使用该实例。"""
        self._pose.close()
