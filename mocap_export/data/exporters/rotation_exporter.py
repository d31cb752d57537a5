"""
Rotation-based skeletal animation exporter.

Converts smoothed landmark frames into joint rotations relative to a
T-pose and hands a joint hierarchy plus an animation clip to a
serialization backend. Bone names follow the Mixamo rig so the result can
drive a pre-rigged character by name alone.

Only the root joint carries a position track. Every other joint is
animated by rotation only; its offset comes from the target rig, so
length changes caused by noisy landmarks are dropped.
"""

import logging
from pathlib import Path
from typing import Optional, Sequence

import numpy as np

from mocap_export.core.rotation_solver import RotationSolution, driven_bones, solve_rotations
from mocap_export.core.types import Frame, validate_frames
from mocap_export.data.exporters.backends import GLBBackend, SerializationBackend
from mocap_export.data.motion_data import AnimationClip, JointNode, KeyframeTrack, POSITION, QUATERNION
from mocap_export.data.skeleton import Skeleton, ROTATION_SKELETON

logger = logging.getLogger(__name__)


SCENE_ROOT_NAME = "Scene"
DEFAULT_CLIP_NAME = "MixamoMotion"


class RotationExporter:
    """
    Exports landmark frames as a rotation animation.

    Attributes:
        backend: Serializer producing the file bytes
        skeleton: 20-bone rotation skeleton
        scale: Capture-to-target unit factor
        root_height_offset: Added to the root's vertical position, since
            captured positions are relative to the hips
        clip_name: Name of the exported animation
        leaf_rotation_tracks: Also write rotation tracks for bones without
            a child (head, hands, feet)
    """

    def __init__(
        self,
        backend: Optional[SerializationBackend] = None,
        skeleton: Skeleton = ROTATION_SKELETON,
        scale: float = 100.0,
        root_height_offset: float = 100.0,
        clip_name: str = DEFAULT_CLIP_NAME,
        leaf_rotation_tracks: bool = False,
    ):
        self.backend = backend if backend is not None else GLBBackend()
        self.skeleton = skeleton
        self.scale = scale
        self.root_height_offset = root_height_offset
        self.clip_name = clip_name
        self.leaf_rotation_tracks = leaf_rotation_tracks

    def build_scene(self) -> JointNode:
        """
        Build the joint hierarchy under a scene root node.

        Returns:
            Scene root with the skeleton's root joint as its only child
        """
        scene = JointNode(SCENE_ROOT_NAME)
        nodes = {}
        for index in self.skeleton.preorder():
            bone = self.skeleton.bones[index]
            parent = self.skeleton.parent_of(index)
            node = JointNode(bone.name)
            if parent is None:
                scene.add(node)
            else:
                nodes[parent].add(node)
            nodes[index] = node
        return scene

    def _rotation_bones(self):
        if self.leaf_rotation_tracks:
            return list(self.skeleton.preorder())
        return driven_bones(self.skeleton)

    def build_clip(self, frames: Sequence[Frame]) -> AnimationClip:
        """
        Solve rotations and assemble keyframe tracks.

        Tracks are ordered by the skeleton's pre-order traversal; the root
        position track directly follows the root rotation track.

        Args:
            frames: Smoothed frames

        Returns:
            AnimationClip with duration -1 (derived from tracks)

        Raises:
            InputError: If frames is empty or inconsistent
        """
        validate_frames(frames)
        solution = solve_rotations(frames, self.skeleton, self.scale)
        return self.clip_from_solution(solution)

    def clip_from_solution(self, solution: RotationSolution) -> AnimationClip:
        """Assemble keyframe tracks from an already solved sequence."""
        clip = AnimationClip(name=self.clip_name, duration=-1.0)
        rotation_bones = set(self._rotation_bones())
        root = self.skeleton.root

        for index in self.skeleton.preorder():
            name = self.skeleton.bones[index].name

            if index in rotation_bones:
                clip.add_track(KeyframeTrack(
                    target_bone=name,
                    channel=QUATERNION,
                    times=solution.times,
                    values=solution.local_rotations[:, index],
                ))

            if index == root:
                root_positions = solution.positions[:, index] + np.array(
                    [0.0, self.root_height_offset, 0.0]
                )
                clip.add_track(KeyframeTrack(
                    target_bone=name,
                    channel=POSITION,
                    times=solution.times,
                    values=root_positions,
                ))

        return clip

    def generate(self, frames: Sequence[Frame]) -> bytes:
        """
        Build the animation and serialize it with the backend.

        Input is validated before the backend is touched. Backend
        exceptions propagate unchanged.

        Returns:
            Serialized file contents
        """
        clip = self.build_clip(frames)
        scene = self.build_scene()

        logger.info(
            f"Rotation export: {len(frames)} frames, {clip.num_tracks} tracks, "
            f"{clip.resolved_duration:.3f}s"
        )
        return self.backend.serialize(scene, clip)

    def export(self, frames: Sequence[Frame], output_path: Path) -> Path:
        """
        Export frames to a file.

        Nothing is written unless serialization succeeds.

        Args:
            frames: Smoothed frames
            output_path: Output file path

        Returns:
            The written path
        """
        data = self.generate(frames)

        output_path = Path(output_path)
        output_path.parent.mkdir(parents=True, exist_ok=True)
        with open(output_path, "wb") as f:
            f.write(data)

        logger.info(f"Wrote {output_path} ({len(data)} bytes)")
        return output_path
