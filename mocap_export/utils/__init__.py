"""Utility modules for mocap-export."""

from mocap_export.utils.math_utils import (
    normalize_vector,
    to_target_space,
    quaternion_from_unit_vectors,
    quaternion_multiply,
    quaternion_inverse,
    rotate_vector,
)

__all__ = [
    "normalize_vector",
    "to_target_space",
    "quaternion_from_unit_vectors",
    "quaternion_multiply",
    "quaternion_inverse",
    "rotate_vector",
]
