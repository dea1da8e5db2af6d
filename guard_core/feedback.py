from __future__ import annotations

from typing import Mapping, Optional

from .config import CodePolicy, GuardConfig
from .types import Feedback


def decide_feedback(prediction: Mapping[str, float], config: GuardConfig) -> Feedback:
    """按优先级顺序把各部位置信度转换为提示文本和可选编码。

    输入:
    - prediction: {部位: [0,1] 置信度}；缺少的部位视为 0。
    - config: 变体配置（labels 顺序即优先级、提示文本、编码策略、阈值）。

    输出: Feedback。

    作用:
    - 所有低于阈值的部位都追加一行提示；
    - FIRST_MATCH 策略下，第一个低于阈值的部位决定编码（位置 + 1），后续部位不覆盖；
    - NONE 策略下不产生编码；
    - 全部合格时只输出 all-clear 文本且无编码。
    """
    th = config.decision_threshold
    lines: list[str] = []
    code: Optional[int] = None
    for label in config.labels:
        score = float(prediction.get(label, 0.0))
        if score < th:
            lines.append(config.warnings[label])
            if code is None and config.code_policy is CodePolicy.FIRST_MATCH:
                code = config.code_for(label)
    if not lines:
        return Feedback(lines=(config.all_clear,), code=None, all_clear=True)
    return Feedback(lines=tuple(lines), code=code)
