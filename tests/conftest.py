from __future__ import annotations

import pytest

from guard_core.skeleton import KEYPOINT_NAMES, LANDMARK_COUNT
from guard_core.types import Landmark


GUARD_POSE = {
    "left_ear": (330.0, 180.0, 0.9),
    "right_ear": (270.0, 180.0, 0.9),
    "left_shoulder": (360.0, 260.0, 0.9),
    "right_shoulder": (240.0, 260.0, 0.9),
    "left_elbow": (380.0, 350.0, 0.9),
    "right_elbow": (220.0, 350.0, 0.9),
    "left_wrist": (330.0, 250.0, 0.9),
    "right_wrist": (270.0, 250.0, 0.9),
    "left_hip": (350.0, 450.0, 0.9),
    "right_hip": (250.0, 450.0, 0.9),
}


def build_landmarks(points: dict | None = None, dx: float = 0.0, dy: float = 0.0, k: float = 1.0) -> list[Landmark]:
    seq = [Landmark(0.0, 0.0, 0.0) for _ in range(LANDMARK_COUNT)]
    for name, (x, y, c) in (points or {}).items():
        seq[KEYPOINT_NAMES.index(name)] = Landmark(x * k + dx, y * k + dy, c)
    return seq


@pytest.fixture
def make_landmarks():
    return build_landmarks


@pytest.fixture
def guard_landmarks():
    return build_landmarks(GUARD_POSE)
