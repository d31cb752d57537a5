"""
Unit tests for the positional BVH exporter.

Covers the HIERARCHY layout, the MOTION block values and number
formatting, and failure behavior on bad input.
"""

import pytest

from mocap_export.core.exceptions import InputError
from mocap_export.core.types import PoseLandmark
from mocap_export.data.exporters.bvh_exporter import BVHExporter, generate_bvh


HEADER = (
    "HIERARCHY\n"
    "ROOT Hips\n"
    "{\n"
    "  OFFSET 0.00 0.00 0.00\n"
    "  CHANNELS 6 Xposition Yposition Zposition Zrotation Xrotation Yrotation\n"
    "  JOINT Spine\n"
    "  {\n"
)


@pytest.fixture
def exporter():
    return BVHExporter()


class TestHierarchy:
    def test_header(self, exporter, standing_frames):
        text = exporter.generate(standing_frames)
        assert text.startswith(HEADER)

    def test_end_sites(self, exporter, standing_frames):
        lines = exporter.generate(standing_frames).split("\n")
        assert sum(1 for line in lines if line.strip() == "End Site") == 5

        head = lines.index("    JOINT Head")
        assert lines[head + 1:head + 6] == [
            "    {",
            "      OFFSET 0.00 0.00 0.00",
            "      CHANNELS 6 Xposition Yposition Zposition Zrotation Xrotation Yrotation",
            "      End Site",
            "      {",
        ]

    def test_joint_order(self, exporter):
        lines = exporter.hierarchy_lines()
        joints = [line.split()[1] for line in lines if line.strip().startswith(("ROOT", "JOINT"))]
        assert joints == [
            "Hips", "Spine", "Head",
            "LeftShoulder", "LeftElbow", "LeftWrist",
            "RightShoulder", "RightElbow", "RightWrist",
            "LeftHip", "LeftKnee", "LeftAnkle",
            "RightHip", "RightKnee", "RightAnkle",
        ]

    def test_braces_balance(self, exporter):
        lines = exporter.hierarchy_lines()
        opened = sum(1 for line in lines if line.strip() == "{")
        closed = sum(1 for line in lines if line.strip() == "}")
        assert opened == closed == 15 + 5


class TestMotion:
    def test_frame_header(self, exporter, standing_frames):
        lines = exporter.generate(standing_frames).split("\n")
        motion = lines.index("MOTION")
        assert lines[motion + 1] == "Frames: 10"
        assert lines[motion + 2] == "Frame Time: 0.033333"

    def test_one_line_per_frame(self, exporter, standing_frames):
        text = exporter.generate(standing_frames)
        assert text.endswith("\n")

        lines = text.split("\n")
        data = lines[lines.index("MOTION") + 3:-1]
        assert len(data) == 10
        for line in data:
            assert len(line.split(" ")) == 15 * 6

    def test_values(self, exporter, static_frames):
        lines = exporter.generate(static_frames).split("\n")
        tokens = lines[lines.index("MOTION") + 3].split(" ")

        # Hips at the origin, rotations zeroed
        assert tokens[0:6] == ["0.0000", "0.0000", "0.0000", "0.00", "0.00", "0.00"]
        # Spine at the neck center, Y flipped and scaled to centimeters
        assert tokens[6:9] == ["0.0000", "50.0000", "0.0000"]

    def test_left_shoulder_position(self, exporter, make_frame):
        frame = make_frame(0.0, {PoseLandmark.LEFT_SHOULDER: (0.18, -0.45, 0.1)})
        lines = exporter.generate([frame]).split("\n")
        tokens = lines[lines.index("MOTION") + 3].split(" ")

        # LeftShoulder is the fourth joint in pre-order
        assert tokens[18:21] == ["-18.0000", "45.0000", "10.0000"]

    def test_missing_landmarks_are_zero(self, exporter, make_frame):
        frame = make_frame(0.0, {PoseLandmark.NOSE: (0.0, -0.6, 0.0)}, count=25)
        lines = exporter.generate([frame]).split("\n")
        tokens = lines[lines.index("MOTION") + 3].split(" ")

        # LeftKnee is the eleventh joint in pre-order
        assert tokens[60:63] == ["0.0000", "0.0000", "0.0000"]

    def test_custom_fps(self, standing_frames):
        text = BVHExporter(fps=60).generate(standing_frames)
        assert "Frame Time: 0.016667\n" in text

    def test_generate_bvh_helper(self, standing_frames):
        assert generate_bvh(standing_frames) == BVHExporter().generate(standing_frames)


class TestFailures:
    def test_empty_input(self, exporter):
        with pytest.raises(InputError):
            exporter.generate([])

    def test_export_empty_writes_nothing(self, exporter, tmp_path):
        path = tmp_path / "out.bvh"
        with pytest.raises(InputError):
            exporter.export([], path)
        assert not path.exists()

    def test_invalid_fps(self):
        with pytest.raises(ValueError):
            BVHExporter(fps=0)

    def test_export_writes_file(self, exporter, standing_frames, tmp_path):
        path = exporter.export(standing_frames, tmp_path / "nested" / "take.bvh")
        assert path.read_text() == exporter.generate(standing_frames)
