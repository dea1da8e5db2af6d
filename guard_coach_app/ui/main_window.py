from __future__ import annotations

from typing import Optional

from PySide6.QtCore import Qt
from PySide6.QtGui import QPixmap
from PySide6.QtWidgets import (
    QCheckBox,
    QGroupBox,
    QHBoxLayout,
    QLabel,
    QMainWindow,
    QMessageBox,
    QPushButton,
    QStatusBar,
    QVBoxLayout,
    QWidget,
)

from guard_core.actuator import ActuatorSink
from guard_core.combos import ComboDrill
from guard_core.pipeline import GuardContext

from guard_coach_app.controller.guard_controller import GuardController


class MainWindow(QMainWindow):
    def __init__(
        self,
        ctx: GuardContext,
        sink: Optional[ActuatorSink] = None,
        corpus_path: Optional[str] = None,
        camera_index: int = 0,
        drill: Optional[ComboDrill] = None,
    ):
        """初始化主窗口并构造控制器。

        输入: 已训练的上下文以及执行器、语料路径、摄像头编号、连击节奏。
        输出: 无。
        """
        super().__init__()
        self.setWindowTitle(f"拳击护架练习（{ctx.config.name}）")
        self.resize(900, 700)

        self._labels = ctx.config.labels
        self._controller = GuardController(
            self,
            ctx,
            sink=sink,
            corpus_path=corpus_path,
            camera_index=camera_index,
            drill=drill,
        )

        self._build_ui()
        self._wire_events()

    def _build_ui(self) -> None:
        root = QWidget(self)
        self.setCentralWidget(root)

        self.btn_start = QPushButton("开始摄像头")
        self.btn_stop = QPushButton("停止")
        self.chk_mirror = QCheckBox("反架（左撇子）")

        self.lbl_user = QLabel("用户画面预览")
        self.lbl_user.setAlignment(Qt.AlignmentFlag.AlignCenter)
        self.lbl_user.setMinimumSize(640, 480)

        self.lbl_feedback = QLabel("--")
        self.lbl_feedback.setAlignment(Qt.AlignmentFlag.AlignLeft | Qt.AlignmentFlag.AlignTop)
        self.lbl_combo = QLabel("")

        grp_controls = QGroupBox("操作")
        controls_layout = QHBoxLayout(grp_controls)
        controls_layout.addWidget(self.btn_start)
        controls_layout.addWidget(self.btn_stop)
        controls_layout.addWidget(self.chk_mirror)
        controls_layout.addStretch(1)

        # 录制训练样本：勾选表示该部位姿势正确
        grp_labels = QGroupBox("样本标注")
        labels_layout = QHBoxLayout(grp_labels)
        self.label_boxes: dict[str, QCheckBox] = {}
        for label in self._labels:
            box = QCheckBox(label)
            self.label_boxes[label] = box
            labels_layout.addWidget(box)
        self.btn_record = QPushButton("记录样本")
        labels_layout.addStretch(1)
        labels_layout.addWidget(self.btn_record)

        layout = QVBoxLayout(root)
        layout.addWidget(grp_controls)
        layout.addWidget(self.lbl_user)
        layout.addWidget(self.lbl_combo)
        layout.addWidget(self.lbl_feedback)
        layout.addWidget(grp_labels)

        self._status = QStatusBar(self)
        self.setStatusBar(self._status)

    def _wire_events(self) -> None:
        self.btn_start.clicked.connect(self._controller.start)
        self.btn_stop.clicked.connect(self._controller.stop)
        self.chk_mirror.toggled.connect(self._controller.set_mirror_stance)
        self.btn_record.clicked.connect(self._on_record)

    def _on_record(self) -> None:
        labels = {k: box.isChecked() for k, box in self.label_boxes.items()}
        self._controller.record_sample(labels)

    # ====== 供控制器调用（视图接口） ======

    def set_feedback(self, message: str, ok: bool) -> None:
        color = "#15803d" if ok else "#b91c1c"
        self.lbl_feedback.setStyleSheet(f"color: {color}; font-size: 18px;")
        self.lbl_feedback.setText(message)

    def set_combo(self, text: str) -> None:
        self.lbl_combo.setText(text)

    def set_user_pixmap(self, pixmap: QPixmap) -> None:
        self.lbl_user.setPixmap(pixmap)

    def show_error(self, title: str, message: str) -> None:
        QMessageBox.critical(self, title, message)

    def set_status(self, message: str, timeout_ms: int = 3000) -> None:
        self.statusBar().showMessage(message, timeout_ms)

    def closeEvent(self, event) -> None:
        """窗口关闭钩子：释放控制器资源后再关闭。"""
        try:
            self._controller.close()
        finally:
            super().closeEvent(event)
