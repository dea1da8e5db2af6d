from __future__ import annotations

import json
import logging
import math
from dataclasses import dataclass, field, replace
from enum import Enum
from pathlib import Path
from typing import Any, Dict, Optional

logger = logging.getLogger(__name__)


class CodePolicy(str, Enum):
    # 按优先级第一个低于阈值的部位决定编码，后续部位只追加文本
    FIRST_MATCH = "first_match"
    # 只输出文本，不产生编码
    NONE = "none"


@dataclass(frozen=True)
class NormalizationConfig:
    confidence_floor: float = 0.4
    default_depth_scale: float = 200.0
    # 深度尺度的下限，防止除零
    min_depth_scale: float = 1e-6
    jaw_offset: float = 35.0
    head_offset: float = 50.0


@dataclass(frozen=True)
class TrainingConfig:
    iterations: int = 1000
    error_threshold: float = 0.005
    learning_rate: float = 0.3
    momentum: float = 0.1
    # None 表示一层 max(3, 输入数 // 2) 个隐藏单元
    hidden_layers: Optional[tuple[int, ...]] = None
    log_period: int = 100
    seed: int = 0


@dataclass(frozen=True)
class GuardConfig:
    """一个部署变体的完整配置。

    - point_keys: 适配器输出的语义键（含派生点）。
    - anchor: "hip" 或 "shoulder"，决定归一化原点。
    - labels: 被跟踪部位，顺序即优先级顺序；编码为位置 + 1。
    - warnings: 部位 -> 低于阈值时的提示文本。
    """

    name: str
    point_keys: tuple[str, ...]
    anchor: str
    labels: tuple[str, ...]
    warnings: Dict[str, str]
    all_clear: str
    code_policy: CodePolicy = CodePolicy.FIRST_MATCH
    decision_threshold: float = 0.5
    normalization: NormalizationConfig = field(default_factory=NormalizationConfig)
    training: TrainingConfig = field(default_factory=TrainingConfig)

    def anchor_keys(self) -> tuple[str, str]:
        if self.anchor == "hip":
            return "leftHip", "rightHip"
        if self.anchor == "shoulder":
            return "leftShoulder", "rightShoulder"
        raise ValueError(f"unknown anchor: {self.anchor!r}")

    def code_for(self, label: str) -> int:
        return self.labels.index(label) + 1


PRIMARY_CONFIG = GuardConfig(
    name="primary",
    point_keys=(
        "leftElbow", "rightElbow",
        "leftWrist", "rightWrist",
        "leftHip", "rightHip",
        "leftEar", "rightEar",
        "leftJaw", "rightJaw",
        "headCenter",
    ),
    anchor="hip",
    labels=("leftElbow", "rightElbow", "leftWrist", "rightWrist", "leftHip", "rightHip", "head"),
    warnings={
        "leftElbow": "Left elbow out of guard position!",
        "rightElbow": "Right elbow out of guard position!",
        "leftWrist": "Left hand dropped from your jaw!",
        "rightWrist": "Right hand dropped from your jaw!",
        "leftHip": "Left hip out of stance!",
        "rightHip": "Right hip out of stance!",
        "head": "Head exposed, tuck your chin!",
    },
    all_clear="Guard is correct!",
)

# 服务端变体：以肩部中点为原点，只跟踪手臂
ALTERNATE_CONFIG = GuardConfig(
    name="alternate",
    point_keys=(
        "leftElbow", "rightElbow",
        "leftWrist", "rightWrist",
        "leftShoulder", "rightShoulder",
        "leftHip", "rightHip",
    ),
    anchor="shoulder",
    labels=("leftElbow", "rightElbow", "leftWrist", "rightWrist"),
    warnings={
        "leftElbow": "Left elbow too far from punch position!",
        "rightElbow": "Right elbow too far from punch position!",
        "leftWrist": "Left wrist in incorrect position!",
        "rightWrist": "Right wrist in incorrect position!",
    },
    all_clear="Punch form is correct!",
)

VARIANTS: Dict[str, GuardConfig] = {
    PRIMARY_CONFIG.name: PRIMARY_CONFIG,
    ALTERNATE_CONFIG.name: ALTERNATE_CONFIG,
}


def get_variant(name: str) -> GuardConfig:
    try:
        return VARIANTS[name]
    except KeyError:
        raise ValueError(f"unknown variant: {name!r} (expected one of {sorted(VARIANTS)})") from None


def _deep_get(d: Dict[str, Any], keys: list[str], default: Any = None) -> Any:
    cur: Any = d
    for k in keys:
        if not isinstance(cur, dict):
            return default
        cur = cur.get(k)
    return cur if cur is not None else default


def _as_int(v: Any, default: int) -> int:
    try:
        return int(v)
    except (TypeError, ValueError):
        return int(default)


def _as_float(v: Any, default: float) -> float:
    try:
        f = float(v)
    except (TypeError, ValueError):
        return float(default)
    # float() 接受 "nan" / "inf"，这里按非法值处理
    return f if math.isfinite(f) else float(default)


def load_config(path: Optional[str | Path] = None, variant: Optional[str] = None) -> GuardConfig:
    """读取 JSON 配置并叠加到内置变体上。

    输入:
    - path: 配置文件路径；为空或不存在时只使用内置默认值。
    - variant: 显式指定变体名，优先于文件中的 "variant"。

    输出: GuardConfig。

    作用: 文件格式错误或文件中的变体名未知时回退到默认值；数值字段非法（含 nan、inf）时使用默认值。
    显式传入的未知 variant 仍抛出 ValueError。
    """
    raw: Dict[str, Any] = {}
    if path:
        p = Path(path).expanduser()
        if p.exists():
            try:
                loaded = json.loads(p.read_text(encoding="utf-8"))
            except (OSError, json.JSONDecodeError):
                loaded = {}
            if isinstance(loaded, dict):
                raw = loaded

    if variant:
        base = get_variant(variant)
    else:
        file_variant = str(_deep_get(raw, ["variant"], PRIMARY_CONFIG.name))
        try:
            base = get_variant(file_variant)
        except ValueError:
            logger.warning("unknown variant %r in config file, using %r", file_variant, PRIMARY_CONFIG.name)
            base = PRIMARY_CONFIG

    policy_raw = str(_deep_get(raw, ["code_policy"], base.code_policy.value)).strip().lower()
    try:
        policy = CodePolicy(policy_raw)
    except ValueError:
        policy = base.code_policy

    n0 = base.normalization
    norm = NormalizationConfig(
        confidence_floor=_as_float(_deep_get(raw, ["normalization", "confidence_floor"]), n0.confidence_floor),
        default_depth_scale=_as_float(_deep_get(raw, ["normalization", "default_depth_scale"]), n0.default_depth_scale),
        min_depth_scale=n0.min_depth_scale,
        jaw_offset=_as_float(_deep_get(raw, ["normalization", "jaw_offset"]), n0.jaw_offset),
        head_offset=_as_float(_deep_get(raw, ["normalization", "head_offset"]), n0.head_offset),
    )
    if norm.default_depth_scale <= 0.0:
        norm = replace(norm, default_depth_scale=n0.default_depth_scale)

    t0 = base.training
    iterations = _as_int(_deep_get(raw, ["training", "iterations"]), t0.iterations)
    training = TrainingConfig(
        iterations=iterations if iterations > 0 else t0.iterations,
        error_threshold=_as_float(_deep_get(raw, ["training", "error_threshold"]), t0.error_threshold),
        learning_rate=_as_float(_deep_get(raw, ["training", "learning_rate"]), t0.learning_rate),
        momentum=_as_float(_deep_get(raw, ["training", "momentum"]), t0.momentum),
        hidden_layers=t0.hidden_layers,
        log_period=max(1, _as_int(_deep_get(raw, ["training", "log_period"]), t0.log_period)),
        seed=_as_int(_deep_get(raw, ["training", "seed"]), t0.seed),
    )

    return replace(
        base,
        code_policy=policy,
        decision_threshold=_as_float(_deep_get(raw, ["decision_threshold"]), base.decision_threshold),
        normalization=norm,
        training=training,
    )
