"""
Pytest configuration and shared fixtures for mocap-export tests

Fixtures:
- make_frame: Factory building a 33-landmark frame from a few positions
- standing_positions: Raw landmark positions of an upright person
- standing_frames: Short noisy capture of that person
- static_frames: Two identical frames with hips and shoulders only
- fake_backend: Serialization backend that records its input
"""

import numpy as np
import pytest

from mocap_export.core.types import Frame, Landmark, NUM_POSE_LANDMARKS, PoseLandmark


# MediaPipe world coordinates: meters, hip-centered, Y pointing down
STANDING_POSE = {
    PoseLandmark.NOSE: (0.0, -0.62, -0.05),
    PoseLandmark.LEFT_SHOULDER: (0.18, -0.45, 0.0),
    PoseLandmark.RIGHT_SHOULDER: (-0.18, -0.45, 0.0),
    PoseLandmark.LEFT_ELBOW: (0.21, -0.2, 0.02),
    PoseLandmark.RIGHT_ELBOW: (-0.21, -0.2, 0.02),
    PoseLandmark.LEFT_WRIST: (0.23, 0.02, 0.06),
    PoseLandmark.RIGHT_WRIST: (-0.23, 0.02, 0.06),
    PoseLandmark.LEFT_HIP: (0.1, 0.0, 0.0),
    PoseLandmark.RIGHT_HIP: (-0.1, 0.0, 0.0),
    PoseLandmark.LEFT_KNEE: (0.11, 0.4, 0.02),
    PoseLandmark.RIGHT_KNEE: (-0.11, 0.4, 0.02),
    PoseLandmark.LEFT_ANKLE: (0.12, 0.8, 0.04),
    PoseLandmark.RIGHT_ANKLE: (-0.12, 0.8, 0.04),
}


def build_frame(timestamp, positions=None, count=NUM_POSE_LANDMARKS, visibility=0.9):
    """Frame with the given landmark positions; all others at the origin."""
    positions = positions or {}
    landmarks = []
    for i in range(count):
        x, y, z = positions.get(i, (0.0, 0.0, 0.0))
        landmarks.append(Landmark(x, y, z, visibility))
    return Frame(timestamp=timestamp, landmarks=tuple(landmarks))


@pytest.fixture
def make_frame():
    return build_frame


@pytest.fixture
def standing_positions():
    return {int(k): v for k, v in STANDING_POSE.items()}


@pytest.fixture
def standing_frames(standing_positions):
    """Ten frames of the standing pose with a little tracking noise."""
    rng = np.random.default_rng(7)
    frames = []
    for i in range(10):
        noisy = {
            index: tuple(np.asarray(p) + rng.normal(0.0, 0.01, 3))
            for index, p in standing_positions.items()
        }
        frames.append(build_frame(i / 30.0, noisy))
    return frames


@pytest.fixture
def static_frames():
    """Two identical frames: hips at y=0, shoulders 0.5 m above (Y down)."""
    positions = {
        PoseLandmark.LEFT_HIP: (-0.1, 0.0, 0.0),
        PoseLandmark.RIGHT_HIP: (0.1, 0.0, 0.0),
        PoseLandmark.LEFT_SHOULDER: (-0.1, -0.5, 0.0),
        PoseLandmark.RIGHT_SHOULDER: (0.1, -0.5, 0.0),
    }
    return [build_frame(0.0, positions), build_frame(1 / 30.0, positions)]


class FakeBackend:
    """Records what it is asked to serialize."""

    def __init__(self, error=None):
        self.error = error
        self.calls = []

    def serialize(self, scene, clip):
        self.calls.append((scene, clip))
        if self.error is not None:
            raise self.error
        return b"FAKE" + clip.name.encode("utf-8")


@pytest.fixture
def fake_backend():
    return FakeBackend()


@pytest.fixture
def failing_backend():
    return FakeBackend(error=RuntimeError("backend exploded"))
