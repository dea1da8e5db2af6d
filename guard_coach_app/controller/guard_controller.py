from __future__ import annotations

import logging
import time
from pathlib import Path
from typing import Mapping, Optional

import cv2
import numpy as np
from PySide6.QtCore import QObject, QTimer
from PySide6.QtCore import Qt
from PySide6.QtGui import QImage, QPixmap

from guard_core.actuator import ActuatorSink, dispatch_code
from guard_core.combos import ComboDrill
from guard_core.pipeline import GuardContext, safe_tick
from guard_core.pose_detector import PoseDetector
from guard_core.training_data import append_sample, capture_sample, dumps_sample
from guard_core.types import LabeledSample

from .view_protocol import GuardView

logger = logging.getLogger(__name__)


def _bgr_to_qpixmap(frame_bgr: np.ndarray, max_w: int, max_h: int) -> QPixmap:
    """BGR 帧转 QPixmap 并按最大尺寸等比缩放。"""
    h, w = frame_bgr.shape[:2]
    rgb = cv2.cvtColor(frame_bgr, cv2.COLOR_BGR2RGB)
    qimg = QImage(rgb.data, w, h, rgb.strides[0], QImage.Format.Format_RGB888)
    pm = QPixmap.fromImage(qimg.copy())
    return pm.scaled(
        max_w,
        max_h,
        Qt.AspectRatioMode.KeepAspectRatio,
        Qt.TransformationMode.SmoothTransformation,
    )


class GuardController(QObject):
    """控制器：按显示节拍逐帧执行 检测 -> 护架判断 -> 反馈/执行器。

    QTimer 的超时事件在 UI 线程串行分发，上一帧（包括检测器调用）处理完之前不会开始下一帧。
    """

    def __init__(
        self,
        view: GuardView,
        ctx: GuardContext,
        sink: Optional[ActuatorSink] = None,
        corpus_path: Optional[str | Path] = None,
        camera_index: int = 0,
        drill: Optional[ComboDrill] = None,
    ):
        """初始化控制器。

        输入:
        - view: 实现 GuardView 协议的视图对象。
        - ctx: 已训练好模型的上下文。
        - sink: 可选执行器。
        - corpus_path: 录制样本时追加写入的语料文件。
        - camera_index: 摄像头编号。
        - drill: 可选的连击练习节奏。
        """
        super().__init__()
        self._view = view
        self._ctx = ctx
        self._sink = sink
        self._corpus_path = corpus_path
        self._camera_index = camera_index
        self._drill = drill
        self._mirror_stance = False

        self._timer = QTimer(self)
        self._timer.setInterval(33)  # ~30fps
        self._timer.timeout.connect(self._on_tick)

        self._cap: Optional[cv2.VideoCapture] = None
        self._detector = PoseDetector()
        self._start_time_s = 0.0

    @property
    def context(self) -> GuardContext:
        return self._ctx

    def set_mirror_stance(self, enabled: bool) -> None:
        self._mirror_stance = bool(enabled)

    def start(self) -> None:
        """打开摄像头并启动逐帧处理。"""
        self.stop()
        self._cap = cv2.VideoCapture(self._camera_index)
        if self._cap is None or not self._cap.isOpened():
            self._view.show_error("打开失败", f"无法打开摄像头 {self._camera_index}")
            self._cap = None
            return
        self._start_time_s = time.perf_counter()
        self._timer.start()
        self._view.set_status("开始练习：正在检查护架…", 2000)

    def stop(self) -> None:
        if self._timer.isActive():
            self._timer.stop()
        if self._cap is not None:
            self._cap.release()
            self._cap = None

    def _on_tick(self) -> None:
        if self._cap is None:
            return
        ok, frame = self._cap.read()
        if not ok:
            self.stop()
            self._view.set_status("摄像头读取失败，已停止", 5000)
            return

        try:
            landmarks = self._detector.detect(frame)
        except Exception:
            logger.exception("pose detection failed")
            landmarks = None

        self._ctx, result = safe_tick(self._ctx, landmarks, self._mirror_stance)
        if result is None:
            self._view.set_feedback("未检测到人体", False)
        else:
            fb = result.feedback
            self._view.set_feedback(fb.message, fb.all_clear)
            dispatch_code(self._sink, fb.code)

        if self._drill is not None:
            idx, punch = self._drill.at(time.perf_counter() - self._start_time_s)
            current = punch.label if punch is not None else "休息"
            self._view.set_combo(f"连击 {idx + 1}: {self._drill.describe(idx)}  |  当前: {current}")

        self._view.set_user_pixmap(_bgr_to_qpixmap(frame, 640, 480))

    def record_sample(self, labels: Mapping[str, bool]) -> Optional[LabeledSample]:
        """用最近一帧与当前勾选的标注生成训练样本，写日志并追加到语料文件。"""
        sample = capture_sample(self._ctx.last_frame, labels, self._ctx.config)
        if sample is None:
            self._view.set_status("尚未检测到关键点", 3000)
            return None
        logger.info("training sample:\n%s", dumps_sample(sample))
        if self._corpus_path is not None:
            try:
                n = append_sample(self._corpus_path, sample)
            except (OSError, ValueError) as e:
                self._view.show_error("保存样本失败", str(e))
                return sample
            self._view.set_status(f"样本已保存（共 {n} 条）", 3000)
        return sample

    def close(self) -> None:
        """停止流程并释放摄像头与检测器。"""
        self.stop()
        self._detector.close()
