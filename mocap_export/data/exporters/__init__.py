"""
Export modules for motion data.

Supports export to:
- BVH (Biovision Hierarchy) - positional joint data
- Rotation animation - Mixamo-named joints via a serialization backend
  (binary glTF by default)
"""

from mocap_export.data.exporters.bvh_exporter import BVHExporter
from mocap_export.data.exporters.rotation_exporter import RotationExporter
from mocap_export.data.exporters.backends import SerializationBackend, GLBBackend

__all__ = [
    "BVHExporter",
    "RotationExporter",
    "SerializationBackend",
    "GLBBackend",
]
