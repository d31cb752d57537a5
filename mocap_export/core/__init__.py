"""
Core export processing module.

Contains the processing pipeline including:
- Landmark frame types and validation
- Temporal smoothing
- Virtual joint derivation
- Bone orientation solving
"""

from mocap_export.core.exceptions import ExportError, InputError, BackendError
from mocap_export.core.types import (
    Landmark,
    Frame,
    PoseLandmark,
    NUM_POSE_LANDMARKS,
    validate_frames,
)
from mocap_export.core.temporal_filter import (
    ExponentialFilter,
    smooth_frames,
)
from mocap_export.core.virtual_joints import (
    VirtualJoint,
    VirtualJoints,
    derive_virtual_joints,
)
from mocap_export.core.rotation_solver import (
    RotationSolution,
    solve_global_rotations,
    globals_to_locals,
    solve_rotations,
)

__all__ = [
    "ExportError",
    "InputError",
    "BackendError",
    "Landmark",
    "Frame",
    "PoseLandmark",
    "NUM_POSE_LANDMARKS",
    "validate_frames",
    "ExponentialFilter",
    "smooth_frames",
    "VirtualJoint",
    "VirtualJoints",
    "derive_virtual_joints",
    "RotationSolution",
    "solve_global_rotations",
    "globals_to_locals",
    "solve_rotations",
]
