"""
Virtual joints derived from sampled landmarks.

The pose model samples neither a pelvis, a neck nor any spine point, so
they are reconstructed per frame:
- hip center: midpoint of the two hips
- neck center: midpoint of the two shoulders
- lower/mid/upper spine: hip center to neck center at 0.3 / 0.6 / 0.9
- head: the nose landmark as-is
"""

from dataclasses import dataclass
from enum import Enum
from typing import Dict

import numpy as np

from mocap_export.core.types import Frame, PoseLandmark
from mocap_export.utils.math_utils import lerp


class VirtualJoint(str, Enum):
    """Joints computed from landmarks rather than sampled."""
    HIP_CENTER = "hip_center"
    NECK_CENTER = "neck_center"
    SPINE_LOWER = "spine_lower"
    SPINE_MID = "spine_mid"
    SPINE_UPPER = "spine_upper"
    HEAD = "head"


SPINE_FRACTIONS = {
    VirtualJoint.SPINE_LOWER: 0.3,
    VirtualJoint.SPINE_MID: 0.6,
    VirtualJoint.SPINE_UPPER: 0.9,
}


@dataclass
class VirtualJoints:
    """Virtual joint positions for a single frame, in capture space."""
    hip_center: np.ndarray
    neck_center: np.ndarray
    spine_lower: np.ndarray
    spine_mid: np.ndarray
    spine_upper: np.ndarray
    head: np.ndarray

    def get(self, joint: VirtualJoint) -> np.ndarray:
        return getattr(self, joint.value)


def landmark_track(landmarks: np.ndarray, index: int) -> np.ndarray:
    """
    Positions of one landmark across frames.

    Args:
        landmarks: (F, N, 3) landmark array
        index: Landmark index

    Returns:
        (F, 3) positions, zeros when the index is outside [0, N)
    """
    if 0 <= index < landmarks.shape[1]:
        return landmarks[:, index, :]
    return np.zeros((landmarks.shape[0], 3))


def virtual_joint_array(landmarks: np.ndarray) -> Dict[VirtualJoint, np.ndarray]:
    """
    Derive every virtual joint for a stack of frames.

    The derivation has no cross-frame dependency, so all frames are
    processed at once.

    Args:
        landmarks: (F, N, 3) landmark array in capture space

    Returns:
        Mapping from VirtualJoint to (F, 3) positions
    """
    landmarks = np.asarray(landmarks, dtype=np.float64)

    hip_center = (
        landmark_track(landmarks, PoseLandmark.LEFT_HIP)
        + landmark_track(landmarks, PoseLandmark.RIGHT_HIP)
    ) * 0.5
    neck_center = (
        landmark_track(landmarks, PoseLandmark.LEFT_SHOULDER)
        + landmark_track(landmarks, PoseLandmark.RIGHT_SHOULDER)
    ) * 0.5

    joints = {
        VirtualJoint.HIP_CENTER: hip_center,
        VirtualJoint.NECK_CENTER: neck_center,
        VirtualJoint.HEAD: landmark_track(landmarks, PoseLandmark.NOSE).copy(),
    }
    for joint, fraction in SPINE_FRACTIONS.items():
        joints[joint] = lerp(hip_center, neck_center, fraction)

    return joints


def derive_virtual_joints(frame: Frame) -> VirtualJoints:
    """Derive the virtual joints of a single frame."""
    joints = virtual_joint_array(frame.positions()[np.newaxis])
    return VirtualJoints(**{joint.value: position[0] for joint, position in joints.items()})
