from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Mapping, Optional

from .classifier import TrainingDataError
from .config import GuardConfig
from .features import flatten_frame
from .types import LabeledSample, NormalizedPoseFrame

logger = logging.getLogger(__name__)


def parse_sample(obj: Any, index: int = 0) -> LabeledSample:
    """把 {"input": {...}, "output": {...}} 解析为 LabeledSample。

    结构不合法时抛出 TrainingDataError；数值合法性由训练阶段统一校验。
    """
    if not isinstance(obj, dict):
        raise TrainingDataError(f"sample {index}: expected an object, got {type(obj).__name__}")
    inp = obj.get("input")
    out = obj.get("output")
    if not isinstance(inp, dict) or not isinstance(out, dict):
        raise TrainingDataError(f"sample {index}: 'input' and 'output' must be objects")
    return LabeledSample(
        input={str(k): v for k, v in inp.items()},
        output={str(k): v for k, v in out.items()},
    )


def load_samples(path: str | Path) -> list[LabeledSample]:
    """读取 JSON 训练语料（样本数组）。

    输入: path 文件路径。
    输出: LabeledSample 列表。
    作用: 文件缺失或格式错误直接抛出 TrainingDataError，启动阶段据此中止。
    """
    p = Path(path).expanduser()
    try:
        raw = json.loads(p.read_text(encoding="utf-8"))
    except OSError as e:
        raise TrainingDataError(f"cannot read training data {p}: {e}") from e
    except json.JSONDecodeError as e:
        raise TrainingDataError(f"malformed training data {p}: {e}") from e
    if not isinstance(raw, list):
        raise TrainingDataError(f"training data {p} must be a JSON array of samples")
    samples = [parse_sample(obj, i) for i, obj in enumerate(raw)]
    logger.info("loaded %d training samples from %s", len(samples), p)
    return samples


def capture_sample(
    frame: Optional[NormalizedPoseFrame],
    labels: Mapping[str, bool | int],
    config: GuardConfig,
) -> Optional[LabeledSample]:
    """把当前归一化帧与手工标注组合成一个训练样本。

    输入:
    - frame: 最近一帧的归一化结果；None 表示还没有检测到人体。
    - labels: {部位: 是否正确}，未给出的部位记为 0。
    - config: 变体配置，决定输出标签集合。

    输出: LabeledSample 或 None。
    """
    if frame is None:
        return None
    output = {label: 1 if labels.get(label) else 0 for label in config.labels}
    return LabeledSample(input=flatten_frame(frame), output=output)


def dumps_sample(sample: LabeledSample) -> str:
    return json.dumps(sample.to_dict(), indent=2)


def append_sample(path: str | Path, sample: LabeledSample) -> int:
    """追加样本到 JSON 语料文件（不存在则新建），返回追加后的样本数。"""
    p = Path(path).expanduser()
    data: list = []
    if p.exists():
        try:
            data = json.loads(p.read_text(encoding="utf-8"))
        except json.JSONDecodeError as e:
            raise TrainingDataError(f"malformed training data {p}: {e}") from e
        if not isinstance(data, list):
            raise TrainingDataError(f"training data {p} must be a JSON array of samples")
    data.append(sample.to_dict())
    p.parent.mkdir(parents=True, exist_ok=True)
    p.write_text(json.dumps(data, indent=2), encoding="utf-8")
    return len(data)
