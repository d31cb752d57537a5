"""
Bone orientation solving from landmark positions.

For every bone with a primary child, the global orientation is the
shortest-arc rotation taking the bone's rest direction onto the observed
bone direction (child position minus bone position). Rotation about the
bone's own axis (twist) is not observable from two points and is always
zero. Local orientations are then taken relative to the parent:

    local = inverse(parent_global) * global

Nothing here depends on other frames or on other bones' orientations, so
all frames and bones are solved together as array operations.
"""

import logging
from dataclasses import dataclass
from typing import List, Sequence

import numpy as np

from mocap_export.core.types import Frame, frames_to_array, frame_timestamps
from mocap_export.core.virtual_joints import VirtualJoint, landmark_track, virtual_joint_array
from mocap_export.data.skeleton import Skeleton, ROTATION_SKELETON
from mocap_export.utils.math_utils import (
    EPSILON,
    IDENTITY_QUATERNION,
    normalize_vector,
    quaternion_from_unit_vectors,
    quaternion_inverse,
    quaternion_multiply,
    to_target_space,
)

logger = logging.getLogger(__name__)


@dataclass
class RotationSolution:
    """
    Per-frame solver output for one skeleton.

    Attributes:
        times: (F,) frame timestamps
        positions: (F, B, 3) bone positions in target space
        global_rotations: (F, B, 4) world-space quaternions [x, y, z, w]
        local_rotations: (F, B, 4) parent-relative quaternions [x, y, z, w]
    """
    times: np.ndarray
    positions: np.ndarray
    global_rotations: np.ndarray
    local_rotations: np.ndarray

    @property
    def num_frames(self) -> int:
        return len(self.times)


def bone_positions(landmarks: np.ndarray, skeleton: Skeleton, scale: float = 100.0) -> np.ndarray:
    """
    Place every bone of a skeleton for a stack of frames.

    Args:
        landmarks: (F, N, 3) landmark array in capture space
        skeleton: Skeleton whose bones declare a source
        scale: Capture-to-target unit factor

    Returns:
        (F, B, 3) positions in target space, bones in declaration order
    """
    landmarks = np.asarray(landmarks, dtype=np.float64)
    virtual = virtual_joint_array(landmarks)
    positions = np.zeros((landmarks.shape[0], skeleton.num_bones, 3))

    for i, bone in enumerate(skeleton.bones):
        if isinstance(bone.source, VirtualJoint):
            capture = virtual[bone.source]
        elif bone.source is not None:
            if not 0 <= int(bone.source) < landmarks.shape[1]:
                logger.debug(f"Landmark {int(bone.source)} missing for {bone.name}, using origin")
            capture = landmark_track(landmarks, int(bone.source))
        else:
            continue
        positions[:, i] = to_target_space(capture, scale) + np.asarray(bone.position_offset)

    return positions


def bone_directions(positions: np.ndarray, skeleton: Skeleton) -> np.ndarray:
    """
    Observed unit direction of every bone.

    Bones with a primary child aim at it. Bones with a fixed direction
    use it unchanged. All other bones get the zero vector.

    Args:
        positions: (F, B, 3) bone positions

    Returns:
        (F, B, 3) directions
    """
    directions = np.zeros_like(positions)
    for i, bone in enumerate(skeleton.bones):
        child = skeleton.primary_child(i)
        if child is not None:
            directions[:, i] = normalize_vector(positions[:, child] - positions[:, i])
        elif bone.fixed_direction is not None:
            directions[:, i] = bone.fixed_direction
    return directions


def solve_global_rotations(positions: np.ndarray, skeleton: Skeleton) -> np.ndarray:
    """
    World-space orientation of every bone.

    Args:
        positions: (F, B, 3) bone positions in target space
        skeleton: Skeleton providing rest directions and primary children

    Returns:
        (F, B, 4) unit quaternions [x, y, z, w]
    """
    positions = np.asarray(positions, dtype=np.float64)
    num_frames = positions.shape[0]
    rotations = np.tile(IDENTITY_QUATERNION, (num_frames, skeleton.num_bones, 1))

    rest = skeleton.rest_directions()
    current = bone_directions(positions, skeleton)

    solvable = [
        i for i, bone in enumerate(skeleton.bones)
        if (skeleton.primary_child(i) is not None or bone.fixed_direction is not None)
        and bone.rest_direction is not None
    ]
    if not solvable or num_frames == 0:
        return rotations

    rest_sel = np.broadcast_to(rest[solvable], current[:, solvable].shape)
    current_sel = current[:, solvable]

    dots = np.sum(rest_sel * current_sel, axis=-1)
    opposite = np.count_nonzero(dots + 1.0 < EPSILON)
    if opposite:
        logger.debug(f"{opposite} bone directions opposite to rest pose, using perpendicular axis")

    rotations[:, solvable] = quaternion_from_unit_vectors(rest_sel, current_sel)
    return rotations


def globals_to_locals(global_rotations: np.ndarray, skeleton: Skeleton) -> np.ndarray:
    """
    Express each bone's orientation relative to its parent.

    Args:
        global_rotations: (F, B, 4) world-space quaternions

    Returns:
        (F, B, 4) local quaternions; the root's equal its global ones
    """
    global_rotations = np.asarray(global_rotations, dtype=np.float64)
    local_rotations = global_rotations.copy()
    if global_rotations.shape[0] == 0:
        return local_rotations

    children = [i for i in range(skeleton.num_bones) if skeleton.parent_of(i) is not None]
    parents = [skeleton.parents[i] for i in children]

    parent_inverse = quaternion_inverse(global_rotations[:, parents])
    local_rotations[:, children] = quaternion_multiply(parent_inverse, global_rotations[:, children])
    return local_rotations


def driven_bones(skeleton: Skeleton) -> List[int]:
    """Indices of bones whose direction comes from a child, in pre-order."""
    return [i for i in skeleton.preorder() if not skeleton.is_leaf(i)]


def solve_rotations(
    frames: Sequence[Frame],
    skeleton: Skeleton = ROTATION_SKELETON,
    scale: float = 100.0,
) -> RotationSolution:
    """
    Run the full solve for a frame sequence.

    Args:
        frames: Smoothed frames
        skeleton: Rotation skeleton
        scale: Capture-to-target unit factor

    Returns:
        RotationSolution with positions, global and local orientations
    """
    landmarks = frames_to_array(frames)
    positions = bone_positions(landmarks, skeleton, scale)
    global_rotations = solve_global_rotations(positions, skeleton)
    local_rotations = globals_to_locals(global_rotations, skeleton)

    return RotationSolution(
        times=frame_timestamps(frames),
        positions=positions,
        global_rotations=global_rotations,
        local_rotations=local_rotations,
    )
