import math

import pytest

from guard_core.config import ALTERNATE_CONFIG, NormalizationConfig, PRIMARY_CONFIG
from guard_core.normalization import (
    compute_anchor,
    compute_depth_scale,
    mirror_frame,
    normalize_frame,
    pair_distance,
)
from guard_core.schema import adapt_landmarks
from guard_core.types import Landmark, PoseFrame

from conftest import GUARD_POSE, build_landmarks


def _normalize(landmarks, config=PRIMARY_CONFIG, mirror=False):
    frame = adapt_landmarks(landmarks, config)
    return normalize_frame(frame, compute_depth_scale(landmarks, config.normalization), config, mirror)


def _assert_frames_close(a, b):
    assert set(a.points) == set(b.points)
    for key, p in a.points.items():
        q = b.points[key]
        if p is None:
            assert q is None
            continue
        assert p.x == pytest.approx(q.x, abs=1e-9)
        assert p.y == pytest.approx(q.y, abs=1e-9)
        assert p.confidence == q.confidence


HIPS_AND_ELBOWS = {
    "left_hip": (100.0, 500.0, 0.9),
    "right_hip": (300.0, 500.0, 0.9),
    "left_elbow": (80.0, 400.0, 0.9),
    "right_elbow": (320.0, 400.0, 0.9),
}


def test_hip_center_anchor_and_depth_scale():
    landmarks = build_landmarks(HIPS_AND_ELBOWS)
    frame = adapt_landmarks(landmarks, PRIMARY_CONFIG)
    assert compute_anchor(frame, PRIMARY_CONFIG.anchor_keys()) == (200.0, 500.0)
    # hip pair 200 and elbow pair 240 both qualify
    depth = compute_depth_scale(landmarks)
    assert depth == pytest.approx(220.0)

    norm = normalize_frame(frame, depth, PRIMARY_CONFIG)
    assert norm.get("leftHip").x == pytest.approx(-100.0 / depth)
    assert norm.get("leftHip").y == pytest.approx(0.0)
    assert norm.get("rightElbow").x == pytest.approx(120.0 / depth)
    assert norm.get("rightElbow").y == pytest.approx(-100.0 / depth)


def test_depth_scale_from_elbow_pair_only():
    points = dict(HIPS_AND_ELBOWS)
    points["left_hip"] = (100.0, 500.0, 0.3)
    landmarks = build_landmarks(points)
    depth = compute_depth_scale(landmarks)
    assert depth == pytest.approx(240.0)
    # anchor ignores confidence
    norm = _normalize(landmarks)
    assert norm.get("leftHip").x == pytest.approx(-100.0 / 240.0)


def test_depth_scale_default_when_no_pair_qualifies():
    landmarks = build_landmarks({"left_elbow": (0.0, 0.0, 0.9), "right_elbow": (50.0, 0.0, 0.4)})
    assert compute_depth_scale(landmarks) == 200.0
    assert compute_depth_scale(landmarks, NormalizationConfig(default_depth_scale=150.0)) == 150.0


def test_depth_scale_never_zero():
    landmarks = build_landmarks({"left_elbow": (10.0, 10.0, 0.9), "right_elbow": (10.0, 10.0, 0.9)})
    depth = compute_depth_scale(landmarks)
    assert math.isfinite(depth) and depth > 0.0
    norm = _normalize(landmarks)
    for p in norm.present().values():
        assert math.isfinite(p.x) and math.isfinite(p.y)


def test_normalize_frame_guards_bad_divisor(guard_landmarks):
    frame = adapt_landmarks(guard_landmarks, PRIMARY_CONFIG)
    for bad in (0.0, -3.0, float("nan"), float("inf")):
        norm = normalize_frame(frame, bad, PRIMARY_CONFIG)
        assert norm.get("leftHip").x == pytest.approx(50.0 / 200.0)


def test_pair_distance_requires_both_confident():
    a = Landmark(0.0, 0.0, 0.9)
    assert pair_distance(a, Landmark(3.0, 4.0, 0.41)) == pytest.approx(5.0)
    assert pair_distance(a, Landmark(3.0, 4.0, 0.4)) is None
    assert pair_distance(a, None) is None


@pytest.mark.parametrize("dx,dy", [(37.5, -12.0), (-400.0, 250.0), (0.001, 0.0)])
def test_translation_invariance(dx, dy):
    base = _normalize(build_landmarks(GUARD_POSE))
    moved = _normalize(build_landmarks(GUARD_POSE, dx=dx, dy=dy))
    _assert_frames_close(base, moved)


def test_scale_invariance_when_pairs_qualify():
    near = _normalize(build_landmarks(GUARD_POSE, k=2.0))
    far = _normalize(build_landmarks(GUARD_POSE))
    # derived points use fixed pixel offsets, so compare joints only
    for key in ("leftElbow", "rightElbow", "leftWrist", "rightWrist", "leftHip", "rightHip", "leftEar", "rightEar"):
        assert near.get(key).x == pytest.approx(far.get(key).x)
        assert near.get(key).y == pytest.approx(far.get(key).y)


def test_absent_points_stay_absent():
    landmarks = build_landmarks({"left_ear": (0.0, 0.0, 0.1), "right_ear": (5.0, 0.0, 0.9)})
    norm = _normalize(landmarks)
    assert "headCenter" in norm.points
    assert norm.get("headCenter") is None


def test_anchor_missing_points():
    one = PoseFrame({"leftHip": Landmark(4.0, 6.0, 0.0), "rightHip": None})
    assert compute_anchor(one, ("leftHip", "rightHip")) == (4.0, 6.0)
    none = PoseFrame({"leftHip": None, "rightHip": None})
    assert compute_anchor(none, ("leftHip", "rightHip")) is None
    norm = normalize_frame(PoseFrame({"leftHip": None, "leftElbow": Landmark(20.0, 40.0, 1.0)}), 10.0, PRIMARY_CONFIG)
    assert (norm.get("leftElbow").x, norm.get("leftElbow").y) == (2.0, 4.0)


def test_shoulder_anchor_variant(guard_landmarks):
    norm = _normalize(guard_landmarks, ALTERNATE_CONFIG)
    assert norm.get("leftShoulder").y == pytest.approx(0.0)
    assert norm.get("leftShoulder").x == pytest.approx(-norm.get("rightShoulder").x)


def test_mirror_negates_x_and_swaps_limbs(guard_landmarks):
    plain = _normalize(guard_landmarks)
    mirrored = _normalize(guard_landmarks, mirror=True)
    for left, right in (("leftElbow", "rightElbow"), ("leftWrist", "rightWrist"), ("leftHip", "rightHip")):
        assert mirrored.get(left).x == pytest.approx(-plain.get(right).x)
        assert mirrored.get(left).y == pytest.approx(plain.get(right).y)
    # ears, jaws and head are negated but not swapped
    for key in ("leftEar", "rightEar", "leftJaw", "rightJaw", "headCenter"):
        assert mirrored.get(key).x == pytest.approx(-plain.get(key).x)
        assert mirrored.get(key).y == pytest.approx(plain.get(key).y)


def test_mirror_twice_is_identity(guard_landmarks):
    plain = _normalize(guard_landmarks)
    assert mirror_frame(mirror_frame(plain)) == plain


def test_mirror_partial_frame_keeps_key_set():
    frame = PoseFrame(points={"leftHip": Landmark(x=-0.5, y=0.1, confidence=0.9), "headCenter": None})
    once = mirror_frame(frame)
    assert set(once.points) == {"rightHip", "headCenter"}
    assert once.get("rightHip").x == pytest.approx(0.5)
    assert once.get("headCenter") is None
    assert mirror_frame(once) == frame
