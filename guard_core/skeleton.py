"""17 点人体关键点定义（MoveNet / COCO 顺序）。

外部检测器每帧输出固定长度、固定顺序的关键点序列，这里把索引固定为常量。
"""

from __future__ import annotations

KEYPOINT_NAMES: tuple[str, ...] = (
    "nose",
    "left_eye",
    "right_eye",
    "left_ear",
    "right_ear",
    "left_shoulder",
    "right_shoulder",
    "left_elbow",
    "right_elbow",
    "left_wrist",
    "right_wrist",
    "left_hip",
    "right_hip",
    "left_knee",
    "right_knee",
    "left_ankle",
    "right_ankle",
)

LANDMARK_COUNT = len(KEYPOINT_NAMES)

L_EAR = 3
R_EAR = 4
L_SHOULDER = 5
R_SHOULDER = 6
L_ELBOW = 7
R_ELBOW = 8
L_WRIST = 9
R_WRIST = 10
L_HIP = 11
R_HIP = 12

# 语义键 -> 检测器索引（派生点 leftJaw/rightJaw/headCenter 不在此表中）
JOINT_INDEX: dict[str, int] = {
    "leftElbow": L_ELBOW,
    "rightElbow": R_ELBOW,
    "leftWrist": L_WRIST,
    "rightWrist": R_WRIST,
    "leftShoulder": L_SHOULDER,
    "rightShoulder": R_SHOULDER,
    "leftHip": L_HIP,
    "rightHip": R_HIP,
    "leftEar": L_EAR,
    "rightEar": R_EAR,
}

DERIVED_KEYS: tuple[str, ...] = ("leftJaw", "rightJaw", "headCenter")

# 用于估计深度尺度的左右成对关键点：肩、髋、肘
DEPTH_PAIRS: tuple[tuple[int, int], ...] = (
    (L_SHOULDER, R_SHOULDER),
    (L_HIP, R_HIP),
    (L_ELBOW, R_ELBOW),
)

# 镜像站架时需要左右交换的键（耳、下颌、头部中心不交换）
MIRROR_SWAP_PAIRS: tuple[tuple[str, str], ...] = (
    ("leftElbow", "rightElbow"),
    ("leftWrist", "rightWrist"),
    ("leftHip", "rightHip"),
)

# MediaPipe Pose 33 点 -> 上述 17 点
# https://developers.google.com/mediapipe/solutions/vision/pose_landmarker
MEDIAPIPE_TO_COCO17: tuple[int, ...] = (
    0,   # nose
    2,   # left_eye
    5,   # right_eye
    7,   # left_ear
    8,   # right_ear
    11,  # left_shoulder
    12,  # right_shoulder
    13,  # left_elbow
    14,  # right_elbow
    15,  # left_wrist
    16,  # right_wrist
    23,  # left_hip
    24,  # right_hip
    25,  # left_knee
    26,  # right_knee
    27,  # left_ankle
    28,  # right_ankle
)
