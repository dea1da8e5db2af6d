from __future__ import annotations

from dataclasses import dataclass, field
from typing import Mapping, Optional


@dataclass(frozen=True)
class Landmark:
    """单个带置信度的二维关键点。

    属性:
    - x, y: 坐标（原始帧为像素坐标，归一化帧为无量纲坐标）。
    - confidence: 检测置信度，范围 [0,1]。
    """

    x: float
    y: float
    confidence: float


@dataclass(frozen=True)
class PoseFrame:
    """按语义键组织的一帧关键点，缺失点为 None。

    原始帧（NamedPoseFrame）与归一化帧（NormalizedPoseFrame）共用此结构。
    """

    points: Mapping[str, Optional[Landmark]] = field(default_factory=dict)

    def get(self, key: str) -> Optional[Landmark]:
        return self.points.get(key)

    def present(self) -> dict[str, Landmark]:
        """返回所有非缺失的点。"""
        return {k: p for k, p in self.points.items() if p is not None}


NamedPoseFrame = PoseFrame
NormalizedPoseFrame = PoseFrame

FeatureVector = dict[str, float]
Prediction = dict[str, float]


@dataclass(frozen=True)
class LabeledSample:
    input: FeatureVector
    output: dict[str, int]

    def to_dict(self) -> dict:
        return {"input": dict(self.input), "output": dict(self.output)}


@dataclass(frozen=True)
class Feedback:
    """一帧的反馈结果。

    - lines: 低于阈值的部位提示（按优先级顺序）；全部合格时为 all-clear 文本。
    - code: 可选的优先级编码（1..N），None 表示不向外部设备发送。
    """

    lines: tuple[str, ...]
    code: Optional[int] = None
    all_clear: bool = False

    @property
    def message(self) -> str:
        return "\n".join(self.lines)
