from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from typing import Callable, Iterable, Iterator, Optional, Sequence

from .actuator import ActuatorSink, dispatch_code
from .classifier import GuardModel, TrainingResult
from .config import GuardConfig
from .features import flatten_frame
from .feedback import decide_feedback
from .normalization import compute_depth_scale, normalize_frame
from .schema import adapt_landmarks
from .types import FeatureVector, Feedback, LabeledSample, Landmark, NormalizedPoseFrame, Prediction

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class GuardContext:
    """每帧处理所需的全部状态。

    - model: 训练完成的模型（推理期间只读）。
    - last_frame: 最近一帧的归一化结果，供手工录制样本使用；未检测到人体的帧会将其清空。
    """

    config: GuardConfig
    model: GuardModel
    last_frame: Optional[NormalizedPoseFrame] = None


@dataclass(frozen=True)
class TickResult:
    frame: NormalizedPoseFrame
    depth_scale: float
    features: FeatureVector
    prediction: Prediction
    feedback: Feedback


def build_context(config: GuardConfig, samples: Sequence[LabeledSample]) -> tuple[GuardContext, TrainingResult]:
    """阻塞地训练模型并返回可用于推理循环的上下文。

    样本不合法时 TrainingDataError 向上抛出，调用方不应启动推理循环。
    """
    model = GuardModel(config.training)
    result = model.train(samples, labels=config.labels)
    return GuardContext(config=config, model=model), result


def run_tick(
    ctx: GuardContext,
    landmarks: Optional[Sequence[Landmark]],
    mirror_stance: bool = False,
) -> tuple[GuardContext, Optional[TickResult]]:
    """处理一帧：适配 -> 归一化 -> 展开 -> 推理 -> 决策。

    输入: 当前上下文、检测器输出（None/空表示未检测到人体）、反架标志。
    输出: (新上下文, 结果)；未检测到人体时结果为 None。
    """
    named = adapt_landmarks(landmarks, ctx.config)
    if named is None:
        return replace(ctx, last_frame=None), None

    depth_scale = compute_depth_scale(landmarks, ctx.config.normalization)
    frame = normalize_frame(named, depth_scale, ctx.config, mirror_stance)
    features = flatten_frame(frame)
    prediction = ctx.model.predict(features)
    feedback = decide_feedback(prediction, ctx.config)
    result = TickResult(
        frame=frame,
        depth_scale=depth_scale,
        features=features,
        prediction=prediction,
        feedback=feedback,
    )
    return replace(ctx, last_frame=frame), result


def safe_tick(
    ctx: GuardContext,
    landmarks: Optional[Sequence[Landmark]],
    mirror_stance: bool = False,
) -> tuple[GuardContext, Optional[TickResult]]:
    """与 run_tick 相同，但把单帧内的异常限制在本帧内（记录日志后返回空结果）。"""
    try:
        return run_tick(ctx, landmarks, mirror_stance)
    except Exception:
        logger.exception("guard tick failed; skipping frame")
        return replace(ctx, last_frame=None), None


def run_frames(
    ctx: GuardContext,
    landmark_stream: Iterable[Optional[Sequence[Landmark]]],
    sink: Optional[ActuatorSink] = None,
    mirror_stance: Callable[[], bool] = lambda: False,
) -> Iterator[tuple[GuardContext, Optional[TickResult]]]:
    """顺序处理检测结果流，每次只处理一帧。

    输入:
    - landmark_stream: 每帧的检测器输出；迭代器拉取下一帧前本帧已处理完毕。
    - sink: 可选执行器；有编码时每帧写入一个字节。
    - mirror_stance: 每帧采样一次的反架标志。

    输出: 逐帧产出 (上下文, 结果)。
    """
    for landmarks in landmark_stream:
        ctx, result = safe_tick(ctx, landmarks, mirror_stance())
        if result is not None:
            dispatch_code(sink, result.feedback.code)
        yield ctx, result
