"""
Data structures and export functionality for motion data.

Provides:
- Skeleton definitions and hierarchies
- Keyframe tracks and animation clips
- Landmark sequence storage (JSON)
- Export to BVH and rotation animation formats
"""

from mocap_export.data.skeleton import (
    BoneSpec,
    Skeleton,
    POSITIONAL_SKELETON,
    ROTATION_SKELETON,
    REST_DIRECTIONS,
)
from mocap_export.data.motion_data import (
    KeyframeTrack,
    AnimationClip,
    JointNode,
)
from mocap_export.data.landmark_io import load_frames, save_frames

__all__ = [
    "BoneSpec",
    "Skeleton",
    "POSITIONAL_SKELETON",
    "ROTATION_SKELETON",
    "REST_DIRECTIONS",
    "KeyframeTrack",
    "AnimationClip",
    "JointNode",
    "load_frames",
    "save_frames",
]
