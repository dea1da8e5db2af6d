from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from typing import Mapping, Optional, Sequence

import numpy as np

from .config import TrainingConfig
from .types import LabeledSample, Prediction

logger = logging.getLogger(__name__)


class TrainingDataError(ValueError):
    pass


class ModelNotTrainedError(RuntimeError):
    pass


@dataclass(frozen=True)
class TrainingResult:
    iterations: int
    error: float


def _sigmoid(z: np.ndarray) -> np.ndarray:
    return 1.0 / (1.0 + np.exp(-np.clip(z, -500.0, 500.0)))


def _check_finite(value: object, where: str) -> float:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise TrainingDataError(f"{where}: expected a number, got {value!r}")
    v = float(value)
    if not math.isfinite(v):
        raise TrainingDataError(f"{where}: non-finite value {value!r}")
    return v


def _build_matrices(
    samples: Sequence[LabeledSample],
    labels: Optional[Sequence[str]],
) -> tuple[list[str], list[str], np.ndarray, np.ndarray]:
    """校验训练样本并转换为矩阵。

    输入: samples 样本序列；labels 期望的输出标签（None 则以第一个样本为准）。
    输出: (输入键, 输出键, X (N,I), Y (N,O))。
    作用: 任一样本的特征键集合或标签集合与其余样本不一致即整体失败，不做静默补零。
    """
    if not samples:
        raise TrainingDataError("training set is empty")

    input_keys = sorted(samples[0].input)
    if not input_keys:
        raise TrainingDataError("sample 0: input has no features")
    output_keys = list(labels) if labels is not None else list(samples[0].output)
    if not output_keys:
        raise TrainingDataError("no output labels")

    in_set = set(input_keys)
    out_set = set(output_keys)
    X = np.zeros((len(samples), len(input_keys)), dtype=np.float64)
    Y = np.zeros((len(samples), len(output_keys)), dtype=np.float64)

    for n, s in enumerate(samples):
        keys = set(s.input)
        if keys != in_set:
            missing = sorted(in_set - keys)
            extra = sorted(keys - in_set)
            raise TrainingDataError(f"sample {n}: feature keys differ (missing={missing}, extra={extra})")
        if set(s.output) != out_set:
            missing = sorted(out_set - set(s.output))
            extra = sorted(set(s.output) - out_set)
            raise TrainingDataError(f"sample {n}: output labels differ (missing={missing}, extra={extra})")
        for i, k in enumerate(input_keys):
            X[n, i] = _check_finite(s.input[k], f"sample {n} input {k}")
        for j, k in enumerate(output_keys):
            v = _check_finite(s.output[k], f"sample {n} output {k}")
            if v not in (0.0, 1.0):
                raise TrainingDataError(f"sample {n} output {k}: expected 0 or 1, got {v!r}")
            Y[n, j] = v
    return input_keys, output_keys, X, Y


class GuardModel:
    """小型全连接 sigmoid 网络：姿态特征 -> 各部位正确性置信度。

    训练是一次性的阻塞过程；训练完成后权重只读，推理不修改任何状态。
    """

    def __init__(self, config: Optional[TrainingConfig] = None) -> None:
        self._cfg = config or TrainingConfig()
        self.input_keys: list[str] = []
        self.output_keys: list[str] = []
        self._weights: list[np.ndarray] = []
        self._biases: list[np.ndarray] = []

    @property
    def is_trained(self) -> bool:
        return bool(self._weights)

    def _layer_sizes(self, n_in: int, n_out: int) -> list[int]:
        hidden = self._cfg.hidden_layers
        if hidden is None:
            hidden = (max(3, n_in // 2),)
        return [n_in, *[int(h) for h in hidden], n_out]

    @staticmethod
    def _forward(x: np.ndarray, weights: Sequence[np.ndarray], biases: Sequence[np.ndarray]) -> list[np.ndarray]:
        outs = [x]
        for w, b in zip(weights, biases):
            outs.append(_sigmoid(w @ outs[-1] + b))
        return outs

    def train(self, samples: Sequence[LabeledSample], labels: Optional[Sequence[str]] = None) -> TrainingResult:
        """逐样本反向传播（带动量）训练，直到误差低于阈值或达到迭代上限。

        输入:
        - samples: 非空的 LabeledSample 序列。
        - labels: 输出标签顺序；None 时取第一个样本的标签顺序。

        输出: TrainingResult（实际迭代次数、最后一次的平均误差）。

        作用: 样本格式不合法时抛出 TrainingDataError 且不改变已有权重；
        达到迭代上限但未收敛不算失败。
        """
        input_keys, output_keys, X, Y = _build_matrices(samples, labels)
        cfg = self._cfg
        sizes = self._layer_sizes(len(input_keys), len(output_keys))
        rng = np.random.default_rng(cfg.seed)

        weights = [rng.random((sizes[i + 1], sizes[i])) * 0.4 - 0.2 for i in range(len(sizes) - 1)]
        biases = [rng.random(sizes[i + 1]) * 0.4 - 0.2 for i in range(len(sizes) - 1)]
        changes = [np.zeros_like(w) for w in weights]

        lr = cfg.learning_rate
        momentum = cfg.momentum
        error = 1.0
        iterations = 0
        logger.info(
            "training guard model: %d samples, layers=%s, max_iter=%d, error_thresh=%g",
            len(X), sizes, cfg.iterations, cfg.error_threshold,
        )
        while iterations < cfg.iterations and error > cfg.error_threshold:
            iterations += 1
            total = 0.0
            for x, target in zip(X, Y):
                outs = self._forward(x, weights, biases)
                out = outs[-1]
                err = target - out
                total += float(np.mean(err ** 2))

                deltas: list[np.ndarray] = [np.empty(0)] * len(weights)
                deltas[-1] = err * out * (1.0 - out)
                for layer in range(len(weights) - 2, -1, -1):
                    h = outs[layer + 1]
                    deltas[layer] = (weights[layer + 1].T @ deltas[layer + 1]) * h * (1.0 - h)

                for layer, delta in enumerate(deltas):
                    changes[layer] = lr * np.outer(delta, outs[layer]) + momentum * changes[layer]
                    weights[layer] += changes[layer]
                    biases[layer] += lr * delta
            error = total / len(X)
            if iterations % cfg.log_period == 0:
                logger.info("iterations: %d, training error: %.6f", iterations, error)

        for w, b in zip(weights, biases):
            w.setflags(write=False)
            b.setflags(write=False)
        self.input_keys = input_keys
        self.output_keys = output_keys
        self._weights = weights
        self._biases = biases
        logger.info("training finished after %d iterations, error=%.6f", iterations, error)
        return TrainingResult(iterations=iterations, error=error)

    def predict(self, features: Mapping[str, float]) -> Prediction:
        """推理：输入特征字典，输出 {标签: [0,1] 置信度}。

        缺失的特征按 0 输入；模型未见过的特征键被忽略。
        """
        if not self.is_trained:
            raise ModelNotTrainedError("guard model has not been trained")
        x = np.array([float(features.get(k, 0.0)) for k in self.input_keys], dtype=np.float64)
        out = self._forward(x, self._weights, self._biases)[-1]
        out = np.clip(out, 0.0, 1.0)
        return {k: float(v) for k, v in zip(self.output_keys, out)}


def train_model(
    samples: Sequence[LabeledSample],
    labels: Optional[Sequence[str]] = None,
    config: Optional[TrainingConfig] = None,
) -> tuple[GuardModel, TrainingResult]:
    model = GuardModel(config)
    result = model.train(samples, labels)
    return model, result
