"""
Animation data handed to serialization backends.

Provides:
- KeyframeTrack: one animated channel of one bone
- AnimationClip: a named set of tracks
- JointNode: scene-graph node for a joint hierarchy
"""

from dataclasses import dataclass, field
from typing import Iterator, List, Optional, Tuple

import numpy as np


QUATERNION = "quaternion"
POSITION = "position"

CHANNEL_SIZES = {
    QUATERNION: 4,
    POSITION: 3,
}


@dataclass
class KeyframeTrack:
    """
    Keyframes for a single bone channel.

    Attributes:
        target_bone: Name of the animated joint
        channel: "quaternion" ([x, y, z, w] values) or "position" ([x, y, z])
        times: (K,) keyframe times in seconds
        values: (K, 4) or (K, 3) keyframe values
    """
    target_bone: str
    channel: str
    times: np.ndarray
    values: np.ndarray

    def __post_init__(self):
        if self.channel not in CHANNEL_SIZES:
            raise ValueError(f"Unknown track channel: {self.channel}")
        self.times = np.asarray(self.times, dtype=np.float64).reshape(-1)
        self.values = np.asarray(self.values, dtype=np.float64).reshape(-1, self.value_size)

    @property
    def name(self) -> str:
        """Track binding path, e.g. 'mixamorig:Hips.quaternion'."""
        return f"{self.target_bone}.{self.channel}"

    @property
    def value_size(self) -> int:
        return CHANNEL_SIZES[self.channel]

    @property
    def num_keys(self) -> int:
        return len(self.times)

    @property
    def end_time(self) -> float:
        return float(self.times[-1]) if len(self.times) else 0.0


@dataclass
class AnimationClip:
    """
    A named collection of keyframe tracks.

    A duration of -1 means the clip lasts as long as its longest track.
    """
    name: str = "untitled"
    duration: float = -1.0
    tracks: List[KeyframeTrack] = field(default_factory=list)

    @property
    def num_tracks(self) -> int:
        return len(self.tracks)

    @property
    def resolved_duration(self) -> float:
        """Clip duration, derived from track extents when set to -1."""
        if self.duration >= 0:
            return self.duration
        if not self.tracks:
            return 0.0
        return max(track.end_time for track in self.tracks)

    def add_track(self, track: KeyframeTrack):
        self.tracks.append(track)

    def get_track(self, name: str) -> Optional[KeyframeTrack]:
        for track in self.tracks:
            if track.name == name:
                return track
        return None


@dataclass
class JointNode:
    """
    A node in the exported joint hierarchy.

    Attributes:
        name: Joint name animation tracks bind to
        offset: Rest translation relative to the parent
        children: Child nodes in order
    """
    name: str
    offset: Tuple[float, float, float] = (0.0, 0.0, 0.0)
    children: List["JointNode"] = field(default_factory=list)
    parent: Optional["JointNode"] = field(default=None, repr=False, compare=False)

    def add(self, child: "JointNode") -> "JointNode":
        """Attach a child node and return it."""
        child.parent = self
        self.children.append(child)
        return child

    def walk(self) -> Iterator["JointNode"]:
        """Pre-order traversal starting at this node."""
        yield self
        for child in self.children:
            yield from child.walk()

    def find(self, name: str) -> Optional["JointNode"]:
        for node in self.walk():
            if node.name == name:
                return node
        return None
