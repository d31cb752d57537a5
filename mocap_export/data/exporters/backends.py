"""
Serialization backends for rotation-based animation.

A backend turns a joint hierarchy plus one animation clip into the bytes
of a file. The exporter only depends on the SerializationBackend protocol;
GLBBackend is the default and writes binary glTF 2.0.
"""

import json
import logging
import struct
from typing import Dict, List, Protocol, Tuple

import numpy as np

from mocap_export.core.exceptions import BackendError
from mocap_export.data.motion_data import AnimationClip, JointNode, KeyframeTrack, POSITION, QUATERNION

logger = logging.getLogger(__name__)


class SerializationBackend(Protocol):
    """Builds a binary animation file from a joint scene and a clip."""

    def serialize(self, scene: JointNode, clip: AnimationClip) -> bytes:
        ...


# ── GLB constants ──────────────────────────────────────────────────────────
GLB_MAGIC = 0x46546C67
GLB_VERSION = 2
CHUNK_JSON = 0x4E4F534A
CHUNK_BIN = 0x004E4942

COMPONENT_FLOAT = 5126

GLTF_PATHS = {
    QUATERNION: ("rotation", "VEC4"),
    POSITION: ("translation", "VEC3"),
}


def _pad(data: bytes, fill: bytes) -> bytes:
    return data + fill * (-len(data) % 4)


class _BufferBuilder:
    """Accumulates float32 accessors into a single binary buffer."""

    def __init__(self):
        self.blob = bytearray()
        self.buffer_views: List[Dict] = []
        self.accessors: List[Dict] = []

    def add(self, array: np.ndarray, accessor_type: str, with_bounds: bool = False) -> int:
        data = np.ascontiguousarray(array, dtype="<f4")
        offset = len(self.blob)
        self.blob += data.tobytes()
        self.blob += b"\x00" * (-len(self.blob) % 4)

        self.buffer_views.append({
            "buffer": 0,
            "byteOffset": offset,
            "byteLength": data.nbytes,
        })

        accessor = {
            "bufferView": len(self.buffer_views) - 1,
            "componentType": COMPONENT_FLOAT,
            "count": int(data.shape[0]),
            "type": accessor_type,
        }
        if with_bounds:
            flat = data.reshape(data.shape[0], -1)
            accessor["min"] = [float(v) for v in flat.min(axis=0)]
            accessor["max"] = [float(v) for v in flat.max(axis=0)]
        self.accessors.append(accessor)
        return len(self.accessors) - 1


class GLBBackend:
    """
    Writes a joint hierarchy and one animation as binary glTF (.glb).

    Every joint becomes a node carrying its name and rest translation.
    Each track becomes a LINEAR sampler targeting its joint's rotation or
    translation.
    """

    def __init__(self, generator: str = "mocap-export"):
        self.generator = generator

    def _validate_track(self, track: KeyframeTrack):
        if track.num_keys == 0:
            raise BackendError(f"Track {track.name} has no keyframes")
        if np.any(np.diff(track.times) < 0):
            raise BackendError(f"Track {track.name} times are not monotonically non-decreasing")
        if len(track.values) != track.num_keys:
            raise BackendError(
                f"Track {track.name} has {len(track.values)} values for {track.num_keys} keys"
            )

    def _build_nodes(self, scene: JointNode) -> Tuple[List[Dict], Dict[str, int]]:
        order = list(scene.walk())
        node_index = {id(node): i for i, node in enumerate(order)}
        by_name: Dict[str, int] = {}

        nodes = []
        for i, node in enumerate(order):
            entry: Dict = {"name": node.name}
            if any(node.offset):
                entry["translation"] = [float(v) for v in node.offset]
            if node.children:
                entry["children"] = [node_index[id(child)] for child in node.children]
            nodes.append(entry)
            by_name.setdefault(node.name, i)

        return nodes, by_name

    def build_document(self, scene: JointNode, clip: AnimationClip) -> Tuple[Dict, bytes]:
        """
        Build the glTF JSON document and its binary buffer.

        Raises:
            BackendError: If the clip has no tracks or a track is invalid
        """
        if not clip.tracks:
            raise BackendError(f"Animation '{clip.name}' has no tracks")

        nodes, by_name = self._build_nodes(scene)
        buffers = _BufferBuilder()
        samplers = []
        channels = []

        for track in clip.tracks:
            self._validate_track(track)
            if track.target_bone not in by_name:
                raise BackendError(f"Track {track.name} targets unknown joint")

            path, accessor_type = GLTF_PATHS[track.channel]
            time_accessor = buffers.add(track.times, "SCALAR", with_bounds=True)
            value_accessor = buffers.add(track.values, accessor_type)

            samplers.append({
                "input": time_accessor,
                "output": value_accessor,
                "interpolation": "LINEAR",
            })
            channels.append({
                "sampler": len(samplers) - 1,
                "target": {"node": by_name[track.target_bone], "path": path},
            })

        document = {
            "asset": {"version": "2.0", "generator": self.generator},
            "scene": 0,
            "scenes": [{"name": scene.name, "nodes": [0]}],
            "nodes": nodes,
            "animations": [{
                "name": clip.name,
                "samplers": samplers,
                "channels": channels,
            }],
            "buffers": [{"byteLength": len(buffers.blob)}],
            "bufferViews": buffers.buffer_views,
            "accessors": buffers.accessors,
        }
        return document, bytes(buffers.blob)

    def serialize(self, scene: JointNode, clip: AnimationClip) -> bytes:
        """Serialize the scene and clip to GLB bytes."""
        document, blob = self.build_document(scene, clip)

        json_chunk = _pad(json.dumps(document, separators=(",", ":")).encode("utf-8"), b" ")
        bin_chunk = _pad(blob, b"\x00")

        total = 12 + 8 + len(json_chunk) + 8 + len(bin_chunk)
        output = bytearray()
        output += struct.pack("<III", GLB_MAGIC, GLB_VERSION, total)
        output += struct.pack("<II", len(json_chunk), CHUNK_JSON)
        output += json_chunk
        output += struct.pack("<II", len(bin_chunk), CHUNK_BIN)
        output += bin_chunk

        logger.debug(
            f"GLB: {len(document['nodes'])} nodes, {len(clip.tracks)} tracks, {total} bytes"
        )
        return bytes(output)


def read_glb(data: bytes) -> Tuple[Dict, bytes]:
    """
    Split a GLB buffer into its JSON document and binary chunk.

    Raises:
        BackendError: If the container header or chunks are malformed
    """
    if len(data) < 20:
        raise BackendError("GLB data too short")

    magic, version, length = struct.unpack_from("<III", data, 0)
    if magic != GLB_MAGIC or version != GLB_VERSION or length != len(data):
        raise BackendError("Invalid GLB header")

    json_length, json_type = struct.unpack_from("<II", data, 12)
    if json_type != CHUNK_JSON:
        raise BackendError("First GLB chunk is not JSON")
    document = json.loads(data[20:20 + json_length].decode("utf-8"))

    offset = 20 + json_length
    blob = b""
    if offset < len(data):
        bin_length, bin_type = struct.unpack_from("<II", data, offset)
        if bin_type != CHUNK_BIN:
            raise BackendError("Second GLB chunk is not BIN")
        blob = data[offset + 8:offset + 8 + bin_length]

    return document, blob


def read_accessor(document: Dict, blob: bytes, index: int) -> np.ndarray:
    """Read a float accessor written by GLBBackend as an (N, components) array."""
    accessor = document["accessors"][index]
    view = document["bufferViews"][accessor["bufferView"]]
    components = {"SCALAR": 1, "VEC3": 3, "VEC4": 4}[accessor["type"]]
    start = view.get("byteOffset", 0)
    data = np.frombuffer(blob, dtype="<f4", count=accessor["count"] * components, offset=start)
    return data.reshape(accessor["count"], components).astype(np.float64)
