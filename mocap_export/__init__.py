"""
mocap-export - Landmark capture to animation file export

Turns sequences of 33-point pose landmarks (MediaPipe Pose world
coordinates) into motion data for 3D authoring tools.

Features:
- Recursive exponential smoothing of landmark jitter
- Virtual hip, neck and spine joints
- Positional BVH export (15 joints)
- Rotation animation export on a Mixamo-named 20 joint rig (binary glTF)

License: MIT
"""

__version__ = "1.0.0"
__author__ = "mocap-export Contributors"
__license__ = "MIT"

from mocap_export.core.exceptions import ExportError, InputError, BackendError
from mocap_export.core.types import Landmark, Frame, PoseLandmark
from mocap_export.core.temporal_filter import smooth_frames
from mocap_export.core.pipeline import MotionExporter
from mocap_export.config.settings import Settings
from mocap_export.data.exporters import BVHExporter, RotationExporter, GLBBackend

__all__ = [
    "ExportError",
    "InputError",
    "BackendError",
    "Landmark",
    "Frame",
    "PoseLandmark",
    "smooth_frames",
    "MotionExporter",
    "Settings",
    "BVHExporter",
    "RotationExporter",
    "GLBBackend",
]
