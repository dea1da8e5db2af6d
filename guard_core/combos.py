from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional

# 每组连击最多的出拳数
MAX_MOVES = 6


class Punch(str, Enum):
    JAB = "jab"
    CROSS = "cross"
    LEFT_HOOK = "left_hook"
    RIGHT_HOOK = "right_hook"
    LEFT_UPPERCUT = "left_uppercut"
    RIGHT_UPPERCUT = "right_uppercut"

    @property
    def label(self) -> str:
        return self.value.replace("_", " ").capitalize()


@dataclass(frozen=True)
class Difficulty:
    name: str
    punch_timeout_ms: int
    combo_timeout_ms: int


EASY = Difficulty("easy", 3000, 5000)
NORMAL = Difficulty("normal", 2000, 4000)
ADVANCED = Difficulty("advanced", 800, 2500)
PRO = Difficulty("pro", 450, 1250)

DIFFICULTIES: dict[str, Difficulty] = {d.name: d for d in (EASY, NORMAL, ADVANCED, PRO)}

_J, _C, _LH, _RH = Punch.JAB, Punch.CROSS, Punch.LEFT_HOOK, Punch.RIGHT_HOOK

_BASE_COMBOS: tuple[tuple[Punch, ...], ...] = (
    (_J, _C, _LH),
    (_J, _LH, _C, _RH),
    (_J, _C, _J, _LH, _C),
)

# 目前各难度使用同一套连击，只有节奏不同
COMBOS: dict[str, tuple[tuple[Punch, ...], ...]] = {name: _BASE_COMBOS for name in DIFFICULTIES}


def get_difficulty(name: str) -> Difficulty:
    try:
        return DIFFICULTIES[name]
    except KeyError:
        raise ValueError(f"unknown difficulty: {name!r} (expected one of {sorted(DIFFICULTIES)})") from None


def combo_schedule(difficulty: Difficulty, index: int) -> list[tuple[int, Punch]]:
    """返回第 index 组连击的出拳时间表 [(相对毫秒, 出拳)]，相邻出拳间隔为 punch_timeout_ms。"""
    combos = COMBOS[difficulty.name]
    combo = combos[index % len(combos)]
    return [(i * difficulty.punch_timeout_ms, p) for i, p in enumerate(combo)]


class ComboDrill:
    """按时间循环播放连击：每组持续 出拳数 * punch_timeout + combo_timeout 毫秒。"""

    def __init__(self, difficulty: Difficulty, start_s: float = 0.0) -> None:
        self.difficulty = difficulty
        self._start_s = start_s
        self._combos = COMBOS[difficulty.name]

    def _period_ms(self, combo: tuple[Punch, ...]) -> int:
        return len(combo) * self.difficulty.punch_timeout_ms + self.difficulty.combo_timeout_ms

    def cycle_ms(self) -> int:
        return sum(self._period_ms(c) for c in self._combos)

    def at(self, t_s: float) -> tuple[int, Optional[Punch]]:
        """查询时刻 t_s 所处的连击序号与当前应出的拳（组间休息时为 None）。"""
        elapsed = int(max(0.0, t_s - self._start_s) * 1000.0) % self.cycle_ms()
        for idx, combo in enumerate(self._combos):
            period = self._period_ms(combo)
            if elapsed < period:
                move = elapsed // self.difficulty.punch_timeout_ms
                return idx, combo[move] if move < len(combo) else None
            elapsed -= period
        return 0, None

    def describe(self, index: int) -> str:
        combo = self._combos[index % len(self._combos)]
        return " - ".join(p.label for p in combo)
