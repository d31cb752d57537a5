"""
BVH (Biovision Hierarchy) format exporter.

Exports smoothed landmark sequences as a positional BVH file:
1. HIERARCHY section - every joint has a zero offset and six channels
2. MOTION section - absolute joint positions per frame, rotations zeroed

Absolute positions let a 3D tool import the tracked points without
guessing bone lengths; a rig can then be constrained to them.
"""

import logging
from pathlib import Path
from typing import List, Sequence

from mocap_export.core.rotation_solver import bone_positions
from mocap_export.core.types import Frame, frames_to_array, validate_frames
from mocap_export.data.skeleton import Skeleton, POSITIONAL_SKELETON

logger = logging.getLogger(__name__)


CHANNELS = ["Xposition", "Yposition", "Zposition", "Zrotation", "Xrotation", "Yrotation"]
ZERO_OFFSET = "OFFSET 0.00 0.00 0.00"
ZERO_ROTATION = "0.00 0.00 0.00"
INDENT = "  "


def _format_position(value: float) -> str:
    # Adding 0.0 turns -0.0 into 0.0
    return f"{value + 0.0:.4f}"


class BVHExporter:
    """
    Exports landmark frames to positional BVH.

    Attributes:
        skeleton: Joint hierarchy to write (15-bone positional skeleton)
        fps: Frame rate written to the Frame Time line
        scale: Capture-to-target unit factor (meters to centimeters)
    """

    def __init__(
        self,
        skeleton: Skeleton = POSITIONAL_SKELETON,
        fps: float = 30.0,
        scale: float = 100.0,
    ):
        """
        Initialize BVH exporter.

        Args:
            skeleton: Joint hierarchy to write
            fps: Frames per second of the motion block
            scale: Scale factor for positions (BVH typically uses cm)
        """
        if fps <= 0:
            raise ValueError(f"fps must be positive, got {fps}")
        self.skeleton = skeleton
        self.fps = fps
        self.scale = scale

    @property
    def frame_time(self) -> float:
        return 1.0 / self.fps

    def _write_joint(self, lines: List[str], index: int, depth: int):
        """Write one joint block and its children recursively."""
        bone = self.skeleton.bones[index]
        indent = INDENT * depth
        inner = INDENT * (depth + 1)

        keyword = "ROOT" if self.skeleton.parent_of(index) is None else "JOINT"
        lines.append(f"{indent}{keyword} {bone.name}")
        lines.append(f"{indent}{{")
        lines.append(f"{inner}{ZERO_OFFSET}")
        lines.append(f"{inner}CHANNELS {len(CHANNELS)} {' '.join(CHANNELS)}")

        if not self.skeleton.is_leaf(index):
            for child in self.skeleton.children(index):
                self._write_joint(lines, child, depth + 1)
        else:
            lines.append(f"{inner}End Site")
            lines.append(f"{inner}{{")
            lines.append(f"{inner}{INDENT}{ZERO_OFFSET}")
            lines.append(f"{inner}}}")

        lines.append(f"{indent}}}")

    def hierarchy_lines(self) -> List[str]:
        """HIERARCHY section lines."""
        lines = ["HIERARCHY"]
        self._write_joint(lines, self.skeleton.root, 0)
        return lines

    def motion_lines(self, frames: Sequence[Frame]) -> List[str]:
        """MOTION section lines, one data line per frame."""
        positions = bone_positions(frames_to_array(frames), self.skeleton, self.scale)
        order = self.skeleton.preorder()

        lines = [
            "MOTION",
            f"Frames: {len(frames)}",
            f"Frame Time: {self.frame_time:.6f}",
        ]
        for frame_positions in positions:
            values = []
            for index in order:
                x, y, z = frame_positions[index]
                values.append(
                    f"{_format_position(x)} {_format_position(y)} {_format_position(z)} {ZERO_ROTATION}"
                )
            lines.append(" ".join(values).strip())
        return lines

    def generate(self, frames: Sequence[Frame]) -> str:
        """
        Build the BVH document.

        Args:
            frames: Smoothed frames in capture order

        Returns:
            BVH text, every line newline-terminated

        Raises:
            InputError: If frames is empty or inconsistent
        """
        validate_frames(frames)

        lines = self.hierarchy_lines() + self.motion_lines(frames)
        logger.info(f"BVH: {len(frames)} frames, {self.skeleton.num_bones} joints")
        return "\n".join(lines) + "\n"

    def export(self, frames: Sequence[Frame], output_path: Path) -> Path:
        """
        Export frames to a BVH file.

        The document is fully built before the file is opened, so a
        failure never leaves a partial file behind.

        Args:
            frames: Smoothed frames
            output_path: Output file path

        Returns:
            The written path
        """
        text = self.generate(frames)

        output_path = Path(output_path)
        output_path.parent.mkdir(parents=True, exist_ok=True)
        with open(output_path, "w", newline="\n") as f:
            f.write(text)

        logger.info(f"Wrote {output_path}")
        return output_path


def generate_bvh(frames: Sequence[Frame], fps: float = 30.0, scale: float = 100.0) -> str:
    """Convenience wrapper around BVHExporter.generate."""
    return BVHExporter(fps=fps, scale=scale).generate(frames)

