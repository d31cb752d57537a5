"""
Core data types for landmark sequences.

A capture is an ordered list of Frame values, one per sampled video
timestamp, each holding the 33 MediaPipe Pose world landmarks in meters.
"""

from dataclasses import dataclass, field
from enum import IntEnum
from typing import Iterable, List, Optional, Sequence, Tuple

import numpy as np
from numpy.typing import NDArray

from mocap_export.core.exceptions import InputError


NUM_POSE_LANDMARKS = 33


class PoseLandmark(IntEnum):
    """MediaPipe Pose landmark indices consumed by the exporters."""

    NOSE = 0
    LEFT_SHOULDER = 11
    RIGHT_SHOULDER = 12
    LEFT_ELBOW = 13
    RIGHT_ELBOW = 14
    LEFT_WRIST = 15
    RIGHT_WRIST = 16
    LEFT_HIP = 23
    RIGHT_HIP = 24
    LEFT_KNEE = 25
    RIGHT_KNEE = 26
    LEFT_ANKLE = 27
    RIGHT_ANKLE = 28
    LEFT_HEEL = 29
    RIGHT_HEEL = 30
    LEFT_FOOT_INDEX = 31
    RIGHT_FOOT_INDEX = 32


@dataclass(frozen=True)
class Landmark:
    """One tracked point with optional detection confidence."""

    x: float
    y: float
    z: float
    visibility: Optional[float] = None

    def to_array(self) -> NDArray[np.float64]:
        return np.array([self.x, self.y, self.z], dtype=np.float64)


@dataclass(frozen=True)
class Frame:
    """
    A timestamped snapshot of all landmarks.

    Attributes:
        timestamp: Capture time in seconds
        landmarks: Landmarks ordered by PoseLandmark index
    """

    timestamp: float
    landmarks: Tuple[Landmark, ...] = field(default_factory=tuple)

    def __post_init__(self):
        # Lists are accepted for convenience but stored as a tuple
        if not isinstance(self.landmarks, tuple):
            object.__setattr__(self, "landmarks", tuple(self.landmarks))

    @property
    def num_landmarks(self) -> int:
        return len(self.landmarks)

    def position(self, index: int) -> NDArray[np.float64]:
        """Get a landmark position, or the zero vector if the index is absent."""
        if 0 <= index < len(self.landmarks):
            return self.landmarks[index].to_array()
        return np.zeros(3)

    def positions(self) -> NDArray[np.float64]:
        """Get all landmark positions as an (N, 3) array."""
        if not self.landmarks:
            return np.zeros((0, 3))
        return np.array([[lm.x, lm.y, lm.z] for lm in self.landmarks], dtype=np.float64)

    def visibilities(self) -> List[Optional[float]]:
        return [lm.visibility for lm in self.landmarks]

    @classmethod
    def from_arrays(
        cls,
        timestamp: float,
        positions: np.ndarray,
        visibility: Optional[Sequence[Optional[float]]] = None,
    ) -> "Frame":
        """
        Build a frame from an (N, 3) position array.

        Args:
            timestamp: Capture time in seconds
            positions: Landmark positions
            visibility: Optional per-landmark confidence values

        Returns:
            New Frame instance
        """
        if visibility is None:
            visibility = [None] * len(positions)

        landmarks = tuple(
            Landmark(
                float(p[0]),
                float(p[1]),
                float(p[2]),
                None if v is None else float(v),
            )
            for p, v in zip(positions, visibility)
        )
        return cls(timestamp=float(timestamp), landmarks=landmarks)


def validate_frames(frames: Sequence[Frame]) -> None:
    """
    Check the invariants every exporter relies on.

    Raises:
        InputError: If the sequence is empty, landmark counts differ
            between frames, or timestamps are not strictly increasing.
    """
    if not frames:
        raise InputError("No frames to export")

    count = frames[0].num_landmarks
    previous = None
    for i, frame in enumerate(frames):
        if frame.num_landmarks != count:
            raise InputError(
                f"Frame {i} has {frame.num_landmarks} landmarks, expected {count}"
            )
        if previous is not None and frame.timestamp <= previous:
            raise InputError(
                f"Timestamps must be strictly increasing (frame {i}: "
                f"{frame.timestamp} after {previous})"
            )
        previous = frame.timestamp


def frames_to_array(frames: Iterable[Frame]) -> NDArray[np.float64]:
    """Stack landmark positions of all frames into an (F, N, 3) array."""
    arrays = [frame.positions() for frame in frames]
    if not arrays:
        return np.zeros((0, 0, 3))
    return np.stack(arrays)


def frame_timestamps(frames: Iterable[Frame]) -> NDArray[np.float64]:
    return np.array([frame.timestamp for frame in frames], dtype=np.float64)
