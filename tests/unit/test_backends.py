"""Unit tests for the binary glTF serialization backend."""

import struct

import numpy as np
import pytest

from mocap_export.core.exceptions import BackendError
from mocap_export.data.exporters.backends import (
    CHUNK_BIN,
    CHUNK_JSON,
    GLB_MAGIC,
    GLBBackend,
    read_accessor,
    read_glb,
)
from mocap_export.data.exporters.rotation_exporter import RotationExporter
from mocap_export.data.motion_data import AnimationClip, JointNode, KeyframeTrack


@pytest.fixture
def backend():
    return GLBBackend()


@pytest.fixture
def glb_bytes(backend, standing_frames):
    return RotationExporter(backend).generate(standing_frames)


def _tiny_scene():
    scene = JointNode("Scene")
    root = scene.add(JointNode("Root"))
    root.add(JointNode("Child", offset=(0.0, 10.0, 0.0)))
    return scene


class TestContainer:
    def test_header(self, glb_bytes):
        magic, version, length = struct.unpack_from("<III", glb_bytes, 0)
        assert magic == GLB_MAGIC
        assert version == 2
        assert length == len(glb_bytes)

    def test_chunks_aligned(self, glb_bytes):
        json_length, json_type = struct.unpack_from("<II", glb_bytes, 12)
        assert json_type == CHUNK_JSON
        assert json_length % 4 == 0

        bin_length, bin_type = struct.unpack_from("<II", glb_bytes, 20 + json_length)
        assert bin_type == CHUNK_BIN
        assert bin_length % 4 == 0

    def test_read_rejects_garbage(self):
        with pytest.raises(BackendError):
            read_glb(b"not a glb file at all")


class TestDocument:
    def test_nodes(self, glb_bytes):
        document, _ = read_glb(glb_bytes)
        names = [node["name"] for node in document["nodes"]]

        assert len(names) == 21
        assert names[0] == "Scene"
        assert names[1] == "mixamorig:Hips"
        assert document["nodes"][0]["children"] == [1]
        assert document["scenes"][0]["nodes"] == [0]

    def test_animation(self, glb_bytes):
        document, _ = read_glb(glb_bytes)
        animation = document["animations"][0]

        assert animation["name"] == "MixamoMotion"
        assert len(animation["channels"]) == 16
        assert len(animation["samplers"]) == 16
        assert {s["interpolation"] for s in animation["samplers"]} == {"LINEAR"}

        paths = [c["target"]["path"] for c in animation["channels"]]
        assert paths.count("translation") == 1
        assert paths.count("rotation") == 15

    def test_keyframe_data(self, glb_bytes, standing_frames):
        document, blob = read_glb(glb_bytes)
        animation = document["animations"][0]
        times = [f.timestamp for f in standing_frames]

        for sampler in animation["samplers"]:
            np.testing.assert_allclose(
                read_accessor(document, blob, sampler["input"])[:, 0], times, atol=1e-6
            )
            time_accessor = document["accessors"][sampler["input"]]
            assert time_accessor["min"][0] == pytest.approx(0.0)
            assert time_accessor["max"][0] == pytest.approx(9 / 30.0)

        rotations = read_accessor(document, blob, animation["samplers"][0]["output"])
        assert rotations.shape == (10, 4)
        np.testing.assert_allclose(np.linalg.norm(rotations, axis=1), 1.0, atol=1e-5)

    def test_translation_values(self, backend):
        clip = AnimationClip("Move", tracks=[
            KeyframeTrack("Root", "position", [0.0, 0.5], [[1.0, 2.0, 3.0], [4.0, 5.0, 6.0]]),
        ])
        document, blob = backend.build_document(_tiny_scene(), clip)

        channel = document["animations"][0]["channels"][0]
        assert channel["target"] == {"node": 1, "path": "translation"}
        values = read_accessor(document, blob, document["animations"][0]["samplers"][0]["output"])
        np.testing.assert_allclose(values, [[1.0, 2.0, 3.0], [4.0, 5.0, 6.0]])

    def test_node_offsets(self, backend):
        clip = AnimationClip("Hold", tracks=[
            KeyframeTrack("Child", "quaternion", [0.0], [[0.0, 0.0, 0.0, 1.0]]),
        ])
        document, _ = backend.build_document(_tiny_scene(), clip)

        assert "translation" not in document["nodes"][1]
        assert document["nodes"][2]["translation"] == [0.0, 10.0, 0.0]


class TestValidation:
    def test_no_tracks(self, backend):
        with pytest.raises(BackendError, match="no tracks"):
            backend.serialize(_tiny_scene(), AnimationClip("Empty"))

    def test_empty_track(self, backend):
        clip = AnimationClip("Empty", tracks=[KeyframeTrack("Root", "quaternion", [], [])])
        with pytest.raises(BackendError, match="no keyframes"):
            backend.serialize(_tiny_scene(), clip)

    def test_decreasing_times(self, backend):
        clip = AnimationClip("Back", tracks=[
            KeyframeTrack("Root", "quaternion", [0.5, 0.0], [[0.0, 0.0, 0.0, 1.0]] * 2),
        ])
        with pytest.raises(BackendError, match="monotonically"):
            backend.serialize(_tiny_scene(), clip)

    def test_value_count_mismatch(self, backend):
        clip = AnimationClip("Short", tracks=[
            KeyframeTrack("Root", "quaternion", [0.0, 0.5], [[0.0, 0.0, 0.0, 1.0]]),
        ])
        with pytest.raises(BackendError, match="values"):
            backend.serialize(_tiny_scene(), clip)

    def test_unknown_joint(self, backend):
        clip = AnimationClip("Lost", tracks=[
            KeyframeTrack("Nowhere", "quaternion", [0.0], [[0.0, 0.0, 0.0, 1.0]]),
        ])
        with pytest.raises(BackendError, match="unknown joint"):
            backend.serialize(_tiny_scene(), clip)
