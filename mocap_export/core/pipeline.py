"""
Export pipeline.

Runs the smoothing pass once and feeds the same smoothed sequence to both
serializers. All state lives in the call; nothing carries over between
exports.
"""

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional, Sequence

from mocap_export.config.settings import Settings
from mocap_export.core.temporal_filter import smooth_frames
from mocap_export.core.types import Frame, validate_frames
from mocap_export.data.exporters.backends import SerializationBackend
from mocap_export.data.exporters.bvh_exporter import BVHExporter
from mocap_export.data.exporters.rotation_exporter import RotationExporter

logger = logging.getLogger(__name__)


@dataclass
class ExportResult:
    """Paths written by one export call."""
    num_frames: int
    bvh_path: Optional[Path] = None
    rotation_path: Optional[Path] = None


class MotionExporter:
    """
    Smooths landmark frames and exports them.

    Example:
        exporter = MotionExporter(Settings())
        exporter.export(frames, bvh_path="take.bvh", rotation_path="take.glb")
    """

    def __init__(
        self,
        settings: Optional[Settings] = None,
        backend: Optional[SerializationBackend] = None,
    ):
        self.settings = settings or Settings()
        export = self.settings.export

        self.bvh_exporter = BVHExporter(fps=export.fps, scale=export.scale)
        self.rotation_exporter = RotationExporter(
            backend=backend,
            scale=export.scale,
            root_height_offset=export.root_height_offset,
            clip_name=export.clip_name,
            leaf_rotation_tracks=export.leaf_rotation_tracks,
        )

    def smooth(self, frames: Sequence[Frame]) -> List[Frame]:
        """Apply the configured smoothing pass (or copy frames if disabled)."""
        smoothing = self.settings.smoothing
        if not smoothing.enabled:
            return list(frames)
        return smooth_frames(frames, smoothing.alpha)

    def to_bvh(self, frames: Sequence[Frame]) -> str:
        """Smooth and serialize to BVH text."""
        validate_frames(frames)
        return self.bvh_exporter.generate(self.smooth(frames))

    def to_rotation(self, frames: Sequence[Frame]) -> bytes:
        """Smooth and serialize with the rotation backend."""
        validate_frames(frames)
        return self.rotation_exporter.generate(self.smooth(frames))

    def export(
        self,
        frames: Sequence[Frame],
        bvh_path: Optional[Path] = None,
        rotation_path: Optional[Path] = None,
    ) -> ExportResult:
        """
        Export to any combination of BVH and rotation files.

        Both outputs are generated before either file is written, so a
        failure in one format leaves no files behind.

        Args:
            frames: Raw frames from the pose estimator
            bvh_path: Optional BVH output path
            rotation_path: Optional rotation-format output path

        Returns:
            ExportResult describing what was written

        Raises:
            InputError: If frames is empty or inconsistent
        """
        validate_frames(frames)
        smoothed = self.smooth(frames)
        logger.info(f"Exporting {len(frames)} frames")

        bvh_text = self.bvh_exporter.generate(smoothed) if bvh_path else None
        rotation_data = self.rotation_exporter.generate(smoothed) if rotation_path else None

        result = ExportResult(num_frames=len(frames))
        if bvh_text is not None:
            result.bvh_path = _write(Path(bvh_path), bvh_text.encode("utf-8"))
        if rotation_data is not None:
            result.rotation_path = _write(Path(rotation_path), rotation_data)

        return result


def _write(path: Path, data: bytes) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "wb") as f:
        f.write(data)
    logger.info(f"Wrote {path}")
    return path
