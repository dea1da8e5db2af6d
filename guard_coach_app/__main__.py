from __future__ import annotations

import argparse
import logging
import sys

from PySide6.QtWidgets import QApplication

from guard_core.actuator import open_sink
from guard_core.classifier import TrainingDataError
from guard_core.combos import ComboDrill, get_difficulty
from guard_core.config import load_config
from guard_core.pipeline import build_context
from guard_core.training_data import load_samples

from guard_coach_app.ui.main_window import MainWindow

logger = logging.getLogger("guard_coach_app")


def _parse_args(argv: list[str]) -> argparse.Namespace:
    ap = argparse.ArgumentParser(prog="guard_coach_app", description="拳击护架实时反馈")
    ap.add_argument("--config", default=None, help="JSON 配置文件")
    ap.add_argument("--variant", default=None, choices=["primary", "alternate"], help="部署变体")
    ap.add_argument("--training-data", default="data/guard_samples.json", help="训练语料（JSON 数组）")
    ap.add_argument("--actuator", default=None, help="执行器设备路径，如 /dev/ttyUSB0")
    ap.add_argument("--camera", type=int, default=0)
    ap.add_argument("--difficulty", default=None, help="连击节奏：easy/normal/advanced/pro")
    ap.add_argument("--log-level", default="INFO")
    return ap.parse_args(argv)


def main(argv: list[str] | None = None) -> int:
    """应用入口：先阻塞训练模型，成功后再创建窗口并运行事件循环。

    输入: 命令行参数。
    输出: 退出码；训练数据不合法时返回 2 且不启动推理循环。
    """
    args = _parse_args(sys.argv[1:] if argv is None else argv)
    logging.basicConfig(
        level=getattr(logging, str(args.log_level).upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    config = load_config(args.config, variant=args.variant)
    try:
        samples = load_samples(args.training_data)
        ctx, result = build_context(config, samples)
    except TrainingDataError as e:
        logger.error("training failed: %s", e)
        return 2
    logger.info("model ready (%d iterations, error=%.5f)", result.iterations, result.error)

    sink = open_sink(args.actuator)
    drill = ComboDrill(get_difficulty(args.difficulty)) if args.difficulty else None

    app = QApplication(sys.argv[:1])
    w = MainWindow(ctx, sink=sink, corpus_path=args.training_data, camera_index=args.camera, drill=drill)
    w.show()
    return app.exec()


if __name__ == "__main__":
    raise SystemExit(main())
